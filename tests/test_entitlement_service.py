"""
Entitlement store: allotment on first sight, compare-and-decrement debits, top-ups.
"""
import pytest

from roast_api.models.entitlement import Entitlement, Plan
from roast_api.services import entitlement_service
from conftest import run_concurrently


class TestGetOrCreate:
    def test_first_sight_grants_free_allotment(self, db):
        entitlement = entitlement_service.get_or_create(db, "user_new", "new@example.com")

        assert entitlement.roasts_remaining == 3
        assert entitlement.total_roasts == 0
        assert entitlement.plan == Plan.FREE
        assert entitlement.email == "new@example.com"

    def test_second_call_returns_existing_row(self, db):
        first = entitlement_service.get_or_create(db, "user_1")
        entitlement_service.consume(db, "user_1")
        second = entitlement_service.get_or_create(db, "user_1")

        assert second.id == first.id
        assert second.roasts_remaining == 2
        assert db.query(Entitlement).count() == 1

    def test_lost_insert_race_reads_winner_row(self, session_factory, monkeypatch):
        with session_factory() as winner:
            entitlement_service.get_or_create(winner, "user_race")
            entitlement_service.consume(winner, "user_race")

        # The loser's initial lookup ran before the winner committed.
        original = entitlement_service.get_entitlement
        lookups = []

        def stale_first_lookup(db, principal_id):
            lookups.append(principal_id)
            if len(lookups) == 1:
                return None
            return original(db, principal_id)

        monkeypatch.setattr(entitlement_service, "get_entitlement", stale_first_lookup)

        with session_factory() as loser:
            entitlement = entitlement_service.get_or_create(loser, "user_race")
            assert entitlement.roasts_remaining == 2
            assert loser.query(Entitlement).count() == 1

    def test_get_entitlement_never_creates(self, db):
        assert entitlement_service.get_entitlement(db, "ghost") is None
        assert db.query(Entitlement).count() == 0


class TestConsume:
    def test_debits_down_to_zero_then_denies(self, db):
        entitlement_service.get_or_create(db, "user_1")

        remaining = [entitlement_service.consume(db, "user_1").remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

        outcome = entitlement_service.consume(db, "user_1")
        assert outcome.granted is False
        assert outcome.remaining == 0

        entitlement = entitlement_service.get_entitlement(db, "user_1")
        db.refresh(entitlement)
        assert entitlement.roasts_remaining == 0
        assert entitlement.total_roasts == 3
        assert entitlement.last_roast_at is not None

    def test_unknown_principal_is_denied(self, db):
        outcome = entitlement_service.consume(db, "nobody")
        assert outcome.granted is False

    def test_concurrent_consumers_never_oversell(self, session_factory):
        with session_factory() as db:
            entitlement_service.get_or_create(db, "user_race")

        outcomes, errors = run_concurrently(
            session_factory, lambda session: entitlement_service.consume(session, "user_race").granted
        )

        assert errors == []
        assert outcomes.count(True) == 3
        assert outcomes.count(False) == 47

        with session_factory() as db:
            entitlement = entitlement_service.get_entitlement(db, "user_race")
            assert entitlement.roasts_remaining == 0
            assert entitlement.total_roasts == 3


class TestTopUp:
    def test_adds_roasts_and_switches_plan(self, db):
        entitlement_service.get_or_create(db, "user_1")
        for _ in range(3):
            entitlement_service.consume(db, "user_1")

        entitlement = entitlement_service.top_up(db, "user_1", 10, Plan.PRO)

        assert entitlement.roasts_remaining == 10
        assert entitlement.plan == Plan.PRO
        assert entitlement_service.consume(db, "user_1").remaining == 9

    def test_plan_left_alone_when_not_supplied(self, db):
        entitlement_service.get_or_create(db, "user_1")
        entitlement = entitlement_service.top_up(db, "user_1", 5)

        assert entitlement.roasts_remaining == 8
        assert entitlement.plan == Plan.FREE

    def test_rejects_non_positive_count(self, db):
        entitlement_service.get_or_create(db, "user_1")
        with pytest.raises(ValueError):
            entitlement_service.top_up(db, "user_1", 0)

    def test_unknown_principal(self, db):
        with pytest.raises(LookupError):
            entitlement_service.top_up(db, "nobody", 10)
