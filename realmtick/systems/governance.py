"""Governance phase advancer: elections, impeachments and laws.

This module is the only writer of phase fields. Transitions are driven purely
by elapsed deadlines and the vote tallies the voting API already stored.

Elections:     NOMINATIONS -> VOTING -> COMPLETED  (no candidates: straight to COMPLETED)
Impeachments:  ACTIVE -> RESOLVED (PASSED | FAILED)
Laws:          PROPOSED -> ACTIVE | REJECTED, ACTIVE -> EXPIRED
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from realmtick.core.enums import (
    ElectionKind,
    ElectionPhase,
    ImpeachmentOutcome,
    ImpeachmentStatus,
    LawStatus,
    LawType,
)
from realmtick.store.models import (
    Election,
    ElectionCandidate,
    ElectionVote,
    Impeachment,
    Kingdom,
    Law,
    Town,
)

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.engine.context import TickContext
    from realmtick.utils.event_log import EventBatch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Elections
# ---------------------------------------------------------------------------

def tally_votes(session: Session, election_id: int) -> tuple[int | None, dict[int, int]]:
    """Return (winner, counts). Ties go to the earliest nominated candidate."""
    counts: dict[int, int] = dict(
        session.query(ElectionVote.candidate_id, func.count(ElectionVote.id))
        .filter(ElectionVote.election_id == election_id)
        .group_by(ElectionVote.candidate_id)
        .all()
    )
    candidates = (
        session.query(ElectionCandidate)
        .filter(ElectionCandidate.election_id == election_id)
        .order_by(ElectionCandidate.nominated_at, ElectionCandidate.id)
        .all()
    )
    winner: int | None = None
    max_votes = 0
    for candidate in candidates:
        votes = counts.get(candidate.character_id, 0)
        if votes > max_votes:
            max_votes = votes
            winner = candidate.character_id
    return winner, counts


def _install_winner(session: Session, election: Election, winner_id: int) -> None:
    match election.kind:
        case ElectionKind.MAYOR:
            town = session.get(Town, election.town_id) if election.town_id is not None else None
            if town is not None:
                town.mayor_id = winner_id
        case ElectionKind.RULER:
            kingdom = session.get(Kingdom, election.kingdom_id) if election.kingdom_id is not None else None
            if kingdom is not None:
                kingdom.ruler_id = winner_id


def schedule_mayor_elections(session: Session, config: TickConfig, events: EventBatch, now: datetime) -> int:
    """Open a MAYOR election for towns without a mayor or whose term ran out."""
    created = 0
    term = timedelta(days=config.mayor_term_days)
    for town in session.query(Town).order_by(Town.id).all():
        open_election = (
            session.query(Election.id)
            .filter(Election.kind == ElectionKind.MAYOR)
            .filter(Election.town_id == town.id)
            .filter(Election.phase != ElectionPhase.COMPLETED)
            .first()
        )
        if open_election is not None:
            continue

        last = (
            session.query(Election)
            .filter(Election.kind == ElectionKind.MAYOR)
            .filter(Election.town_id == town.id)
            .order_by(Election.term_number.desc())
            .first()
        )
        term_expired = last is not None and last.completed_at is not None and last.completed_at + term <= now
        if town.mayor_id is not None and not term_expired:
            continue

        election = Election(
            kind=ElectionKind.MAYOR,
            town_id=town.id,
            phase=ElectionPhase.NOMINATIONS,
            term_number=(last.term_number + 1) if last is not None else 1,
            phase_ends_at=now + timedelta(days=config.election_nomination_days),
            created_at=now,
        )
        session.add(election)
        session.flush()
        created += 1
        events.emit("election:created", {
            "election_id": election.id,
            "town_id": town.id,
            "term_number": election.term_number,
        })
    return created


def advance_elections(session: Session, config: TickConfig, events: EventBatch, now: datetime) -> dict[str, int]:
    totals = {"to_voting": 0, "completed": 0, "no_candidates": 0}
    due = (
        session.query(Election)
        .filter(Election.phase != ElectionPhase.COMPLETED)
        .filter(Election.phase_ends_at <= now)
        .order_by(Election.id)
        .all()
    )
    for election in due:
        match election.phase:
            case ElectionPhase.NOMINATIONS:
                candidates = (
                    session.query(func.count(ElectionCandidate.id))
                    .filter(ElectionCandidate.election_id == election.id)
                    .scalar()
                )
                if not candidates:
                    election.phase = ElectionPhase.COMPLETED
                    election.completed_at = now
                    totals["no_candidates"] += 1
                    events.emit("election:no_candidates", {"election_id": election.id})
                    continue
                election.phase = ElectionPhase.VOTING
                election.phase_ends_at = now + timedelta(days=config.election_voting_days)
                totals["to_voting"] += 1
                events.emit("election:voting_open", {"election_id": election.id, "candidates": candidates})

            case ElectionPhase.VOTING:
                winner, counts = tally_votes(session, election.id)
                election.phase = ElectionPhase.COMPLETED
                election.completed_at = now
                election.winner_id = winner
                if winner is not None:
                    _install_winner(session, election, winner)
                totals["completed"] += 1
                events.emit("election:completed", {
                    "election_id": election.id,
                    "kind": election.kind.value,
                    "winner_id": winner,
                    "votes": {str(k): v for k, v in counts.items()},
                })
    return totals


def elections_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        totals = advance_elections(session, ctx.config, outbox, ctx.now)
        totals["created"] = schedule_mayor_elections(session, ctx.config, outbox, ctx.now)
        session.commit()
    outbox.flush()
    return totals


# ---------------------------------------------------------------------------
# Impeachments
# ---------------------------------------------------------------------------

def resolve_impeachments(session: Session, events: EventBatch, now: datetime) -> dict[str, int]:
    totals = {"passed": 0, "failed": 0}
    due = (
        session.query(Impeachment)
        .filter(Impeachment.status == ImpeachmentStatus.ACTIVE)
        .filter(Impeachment.ends_at <= now)
        .order_by(Impeachment.id)
        .all()
    )
    for impeachment in due:
        passed = impeachment.votes_for > impeachment.votes_against
        impeachment.status = ImpeachmentStatus.RESOLVED
        impeachment.outcome = ImpeachmentOutcome.PASSED if passed else ImpeachmentOutcome.FAILED
        impeachment.resolved_at = now

        if passed:
            totals["passed"] += 1
            if impeachment.town_id is not None:
                town = session.get(Town, impeachment.town_id)
                if town is not None and town.mayor_id == impeachment.target_id:
                    town.mayor_id = None
            if impeachment.kingdom_id is not None:
                kingdom = session.get(Kingdom, impeachment.kingdom_id)
                if kingdom is not None and kingdom.ruler_id == impeachment.target_id:
                    kingdom.ruler_id = None
        else:
            totals["failed"] += 1

        events.emit("impeachment:resolved", {
            "impeachment_id": impeachment.id,
            "target_id": impeachment.target_id,
            "outcome": impeachment.outcome.value,
            "votes_for": impeachment.votes_for,
            "votes_against": impeachment.votes_against,
        })
    return totals


def impeachments_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        totals = resolve_impeachments(session, outbox, ctx.now)
        session.commit()
    outbox.flush()
    return totals


# ---------------------------------------------------------------------------
# Laws
# ---------------------------------------------------------------------------

def process_laws(session: Session, events: EventBatch, now: datetime) -> dict[str, int]:
    totals = {"enacted": 0, "rejected": 0, "expired": 0}

    proposed = (
        session.query(Law)
        .filter(Law.status == LawStatus.PROPOSED)
        .filter(Law.voting_ends_at <= now)
        .order_by(Law.id)
        .all()
    )
    for law in proposed:
        if law.votes_for > law.votes_against:
            law.status = LawStatus.ACTIVE
            law.enacted_at = now
            if law.duration_days is not None:
                law.expires_at = now + timedelta(days=law.duration_days)
            if law.law_type == LawType.TAX_RATE and law.town_id is not None and law.value is not None:
                town = session.get(Town, law.town_id)
                if town is not None:
                    town.tax_rate = law.value
            totals["enacted"] += 1
            events.emit("law:enacted", {"law_id": law.id, "title": law.title})
        else:
            law.status = LawStatus.REJECTED
            totals["rejected"] += 1
            events.emit("law:rejected", {"law_id": law.id, "title": law.title})

    expiring = (
        session.query(Law)
        .filter(Law.status == LawStatus.ACTIVE)
        .filter(Law.expires_at.is_not(None))
        .filter(Law.expires_at <= now)
        .all()
    )
    for law in expiring:
        law.status = LawStatus.EXPIRED
        totals["expired"] += 1
        events.emit("law:expired", {"law_id": law.id, "title": law.title})
    return totals


def laws_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        totals = process_laws(session, outbox, ctx.now)
        session.commit()
    outbox.flush()
    return totals
