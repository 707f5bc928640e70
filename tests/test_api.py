"""Tests for the REST surface: manual tick, health, collect, routes, events."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from realmtick.api.app import create_app
from realmtick.api.engine_manager import EngineManager
from realmtick.config import TickConfig
from realmtick.core.enums import ActionKind, ActionStatus
from realmtick.store.database import create_db_engine
from realmtick.store.models import Character, ItemTemplate, TimedAction
from realmtick.store.seed import seed_demo_world
from realmtick.systems.game_day import utcnow


@pytest.fixture
def manager():
    config = TickConfig(database_url="sqlite://", scheduler_enabled=False, log_level="WARNING")
    return EngineManager(config, engine=create_db_engine(config.database_url))


@pytest.fixture
def client(manager):
    with TestClient(create_app(manager=manager)) as c:
        yield c


def _seed(manager: EngineManager) -> None:
    with manager.session_factory() as session:
        seed_demo_world(session, manager.clock.now(), manager.clock.game_day())


def _crafting_action(manager: EngineManager) -> int:
    with manager.session_factory() as session:
        smith = Character(name="Smith")
        sword = ItemTemplate(name="Iron Sword", category="weapon")
        session.add_all([smith, sword])
        session.flush()
        session.add(TimedAction(
            character_id=smith.id, kind=ActionKind.CRAFTING, status=ActionStatus.COMPLETED,
            started_at=utcnow() - timedelta(hours=3), completes_at=utcnow() - timedelta(hours=1),
            result_template_id=sword.id, xp_reward=25,
        ))
        session.commit()
        return smith.id


class TestControl:
    def test_manual_tick(self, client):
        resp = client.post("/api/v1/admin/tick")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["error"] is None
        assert len(body["result"]["steps"]) == 15
        assert body["result"]["failed"] == []

    def test_health_reports_stale_then_fresh(self, client):
        before = client.get("/api/v1/health/tick").json()
        assert before["stale"] is True
        assert before["last_success_at"] is None

        client.post("/api/v1/admin/tick")

        after = client.get("/api/v1/health/tick").json()
        assert after["stale"] is False
        assert after["last_tick_day"] == before["game_day"]
        assert after["staleness_hours"] == 25.0

    def test_advance_day_flag(self, client, manager):
        day = manager.clock.game_day()

        body = client.post("/api/v1/admin/tick", params={"advance_day": "true"}).json()

        assert body["result"]["game_day"] == day + 1
        assert manager.clock.offset_days == 1
        assert client.get("/api/v1/health/tick").json()["stale"] is False


class TestCollect:
    def test_collect_then_nothing_left(self, client, manager):
        smith_id = _crafting_action(manager)

        first = client.post(f"/api/v1/characters/{smith_id}/actions/crafting/collect")
        assert first.status_code == 200
        body = first.json()
        assert body["kind"] == "CRAFTING"
        assert body["items"] == [{"template_id": body["items"][0]["template_id"], "name": "Iron Sword", "quantity": 1}]
        assert body["xp_gained"] == 25

        second = client.post(f"/api/v1/characters/{smith_id}/actions/crafting/collect")
        assert second.status_code == 400
        assert second.json()["detail"]["code"] == "NO_ACTIVE_ACTION"

    def test_unknown_character(self, client):
        resp = client.post("/api/v1/characters/999/actions/gathering/collect")
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "NOT_FOUND"

    def test_unknown_kind_rejected(self, client):
        resp = client.post("/api/v1/characters/1/actions/fishing/collect")
        assert resp.status_code == 422


class TestTravelRoute:
    def test_route_between_towns(self, client, manager):
        _seed(manager)
        resp = client.get("/api/v1/travel/route", params={"from_town": 1, "to_town": 3})
        assert resp.status_code == 200
        body = resp.json()
        assert body["distance"] == 4
        assert len(body["path"]) == 5

    def test_unreachable(self, client, manager):
        _seed(manager)
        resp = client.get("/api/v1/travel/route", params={"from_town": 1, "to_town": 99})
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "UNREACHABLE"


class TestEvents:
    def test_tick_complete_listed(self, client):
        client.post("/api/v1/admin/tick")

        resp = client.get("/api/v1/events", params={"name": "tickComplete"})
        assert resp.status_code == 200
        [event] = resp.json()
        assert event["payload"]["failed"] == []

    def test_limit(self, client, manager):
        for i in range(5):
            manager.events.emit("test:ping", {"i": i})

        resp = client.get("/api/v1/events", params={"limit": 2})
        assert [e["payload"]["i"] for e in resp.json()] == [3, 4]
