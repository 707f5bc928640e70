"""Tests for economic decay jobs and the pure formulas behind them."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from realmtick.core.enums import HungerState, LoanStatus, ProfessionTier, ProfessionType
from realmtick.store.models import Character, CharacterProfession, Loan, ServiceReputation
from realmtick.systems import economy
from realmtick.systems.formulas import (
    apply_xp,
    daily_property_tax,
    encounter_win_chance,
    gather_yield,
    hunger_modifier,
    npc_daily_income,
    reputation_bonus,
    xp_to_next_level,
)
from tests.helpers.world_builder import WorldBuilder


class TestFormulas:
    def test_xp_curve(self):
        assert xp_to_next_level(1) == 100
        assert xp_to_next_level(2) == 300
        assert xp_to_next_level(3) == 675

    def test_apply_xp_multiple_levels(self):
        assert apply_xp(1, 0, 450) == (3, 50, 2)
        assert apply_xp(1, 0, 99) == (1, 99, 0)

    def test_gather_yield(self):
        assert gather_yield(4, 100, 0.0, 1.0) == 6
        assert gather_yield(4, 0, 0.5, 1.0) == 0
        assert gather_yield(1, 10, 0.0, 0.6) == 1
        assert gather_yield(4, 100, 0.0, hunger_modifier(HungerState.INCAPACITATED)) == 0

    def test_win_chance_clamped(self):
        assert encounter_win_chance(50, 1, 1.0) == 0.95
        assert encounter_win_chance(1, 50, 1.0) == 0.05
        assert encounter_win_chance(3, 3, 1.0) == 0.6

    def test_property_tax(self):
        assert daily_property_tax(20, 3, 0.0) == 60
        assert daily_property_tax(5, 1, 0.10) == 5

    def test_reputation_bonus_bands(self):
        assert reputation_bonus(0) == 0.0
        assert reputation_bonus(21) == 0.05
        assert reputation_bonus(60) == 0.10
        assert reputation_bonus(100) == 0.20

    def test_npc_income(self):
        assert npc_daily_income(ProfessionTier.APPRENTICE, 100) == 0
        assert npc_daily_income(ProfessionTier.JOURNEYMAN, 0) == 5
        assert npc_daily_income(ProfessionTier.MASTER, 90) == 72


class TestNpcIncome:
    def test_service_professionals_paid(self):
        world = WorldBuilder()
        merchant = world.add_character("Merchant", gold=10)
        miner = world.add_character("Miner", gold=10)
        novice = world.add_character("Novice", gold=10)
        world.add(
            CharacterProfession(character_id=merchant.id, profession_type=ProfessionType.MERCHANT,
                                tier=ProfessionTier.CRAFTSMAN),
            CharacterProfession(character_id=miner.id, profession_type=ProfessionType.MINER,
                                tier=ProfessionTier.MASTER),
            CharacterProfession(character_id=novice.id, profession_type=ProfessionType.HEALER,
                                tier=ProfessionTier.APPRENTICE),
            ServiceReputation(character_id=merchant.id, profession_type=ProfessionType.MERCHANT, reputation=45,
                              last_active_day=world.game_day),
        )

        summary = world.run_step(economy.npc_income_step)

        # 2 clients * 8 gold * 1.10
        assert summary == {"paid": 1, "total": 17}
        assert world.get(Character, merchant.id).gold == 27
        assert world.get(Character, miner.id).gold == 10
        assert world.get(Character, novice.id).gold == 10


class TestLoans:
    def _loan(self, world: WorldBuilder, lender, borrower, owed: int, due_offset: int) -> Loan:
        return world.add(Loan(lender_id=lender.id, borrower_id=borrower.id, principal=owed, total_owed=owed,
                              due_day=world.game_day + due_offset))

    def test_overdue_loan_repaid_in_full(self):
        world = WorldBuilder()
        bank = world.add_character("Bank", gold=0)
        debtor = world.add_character("Debtor", gold=150)
        loan = self._loan(world, bank, debtor, 100, due_offset=-1)

        summary = world.run_step(economy.loans_step)

        assert summary["repaid"] == 1
        assert world.get(Loan, loan.id).status == LoanStatus.REPAID
        assert world.get(Character, debtor.id).gold == 50
        assert world.get(Character, bank.id).gold == 100

    def test_short_borrower_defaults(self):
        world = WorldBuilder()
        bank = world.add_character("Bank", gold=0)
        debtor = world.add_character("Debtor", gold=30)
        loan = self._loan(world, bank, debtor, 100, due_offset=-1)

        world.run_step(economy.loans_step)

        settled = world.get(Loan, loan.id)
        assert settled.status == LoanStatus.DEFAULTED
        assert settled.amount_repaid == 30
        assert world.get(Character, debtor.id).gold == 0
        [event] = world.events_named("loan:defaulted")
        assert event.payload["outstanding"] == 70

    def test_loan_due_today_untouched(self):
        world = WorldBuilder()
        bank = world.add_character("Bank")
        debtor = world.add_character("Debtor", gold=500)
        loan = self._loan(world, bank, debtor, 100, due_offset=0)

        world.run_step(economy.loans_step)

        assert world.get(Loan, loan.id).status == LoanStatus.ACTIVE
        assert world.get(Character, debtor.id).gold == 500


class TestReputationDecay:
    def test_idle_reputation_decays(self):
        world = WorldBuilder()
        idle = world.add_character("Idle")
        busy = world.add_character("Busy")
        never = world.add_character("Never")
        day = world.game_day
        world.add(
            ServiceReputation(character_id=idle.id, profession_type=ProfessionType.HEALER, reputation=30,
                              last_active_day=day - 7),
            ServiceReputation(character_id=busy.id, profession_type=ProfessionType.HEALER, reputation=30,
                              last_active_day=day - 2),
            ServiceReputation(character_id=never.id, profession_type=ProfessionType.HEALER, reputation=1),
        )

        summary = world.run_step(economy.reputation_step)

        assert summary == {"decayed": 2}
        reps = {r.character_id: r.reputation for r in world.all(ServiceReputation)}
        assert reps == {idle.id: 29, busy.id: 30, never.id: 0}
