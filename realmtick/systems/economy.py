"""Economic decay jobs: NPC income, loan maturity and reputation decay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from realmtick.core.enums import LoanStatus, ProfessionTier
from realmtick.core.rules import SERVICE_PROFESSIONS
from realmtick.store.models import Character, CharacterProfession, Loan, ServiceReputation
from realmtick.systems.formulas import npc_daily_income

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.engine.context import TickContext
    from realmtick.utils.event_log import EventBatch

logger = logging.getLogger(__name__)


def pay_npc_income(session: Session) -> tuple[int, int]:
    """Credit passive NPC-client income to service professionals.

    Returns (professionals paid, total gold).
    """
    professions = (
        session.query(CharacterProfession)
        .filter(CharacterProfession.profession_type.in_(list(SERVICE_PROFESSIONS)))
        .filter(CharacterProfession.is_active.is_(True))
        .filter(CharacterProfession.tier != ProfessionTier.APPRENTICE)
        .all()
    )
    reputations = {
        (r.character_id, r.profession_type): r.reputation
        for r in session.query(ServiceReputation).all()
    }

    paid = total = 0
    for profession in professions:
        reputation = reputations.get((profession.character_id, profession.profession_type), 0)
        income = npc_daily_income(profession.tier, reputation)
        if income <= 0:
            continue
        character = session.get(Character, profession.character_id)
        if character is None:
            continue
        character.gold += income
        paid += 1
        total += income
    return paid, total


def npc_income_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        paid, total = pay_npc_income(session)
        session.commit()
    if total:
        logger.info("NPC income: paid %dg across %d service professionals", total, paid)
    return {"paid": paid, "total": total}


def process_loans(session: Session, events: EventBatch, game_day: int) -> dict[str, int]:
    """Settle loans past their due day from whatever the borrower holds."""
    totals = {"repaid": 0, "defaulted": 0, "recovered": 0}
    overdue = (
        session.query(Loan)
        .filter(Loan.status == LoanStatus.ACTIVE)
        .filter(Loan.due_day < game_day)
        .order_by(Loan.id)
        .all()
    )
    for loan in overdue:
        borrower = session.get(Character, loan.borrower_id)
        lender = session.get(Character, loan.lender_id)
        remaining = max(0, loan.total_owed - loan.amount_repaid)
        recovered = min(borrower.gold, remaining) if borrower is not None else 0

        if recovered > 0:
            borrower.gold -= recovered
            if lender is not None:
                lender.gold += recovered
            loan.amount_repaid += recovered
            totals["recovered"] += recovered

        payload = {
            "loan_id": loan.id,
            "lender_id": loan.lender_id,
            "borrower_id": loan.borrower_id,
            "recovered": recovered,
        }
        if loan.amount_repaid >= loan.total_owed:
            loan.status = LoanStatus.REPAID
            totals["repaid"] += 1
            events.emit("loan:repaid", payload)
        else:
            loan.status = LoanStatus.DEFAULTED
            totals["defaulted"] += 1
            events.emit("loan:defaulted", {**payload, "outstanding": loan.total_owed - loan.amount_repaid})
    return totals


def loans_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        totals = process_loans(session, outbox, ctx.game_day)
        session.commit()
    outbox.flush()
    return totals


def decay_reputation(session: Session, config: TickConfig, game_day: int) -> int:
    """Idle service reputations erode toward zero."""
    decayed = 0
    for rep in session.query(ServiceReputation).filter(ServiceReputation.reputation > 0).all():
        idle = rep.last_active_day is None or game_day - rep.last_active_day >= config.reputation_idle_days
        if not idle:
            continue
        rep.reputation = max(0, rep.reputation - config.reputation_decay_amount)
        decayed += 1
    return decayed


def reputation_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        decayed = decay_reputation(session, ctx.config, ctx.game_day)
        session.commit()
    return {"decayed": decayed}
