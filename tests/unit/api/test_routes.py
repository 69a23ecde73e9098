"""API tests — FastAPI TestClient with dependency overrides (no database)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from autoassign.adapters.persistence.database import get_session
from autoassign.application.use_cases.process_queue import ProcessAssignmentQueueUseCase
from autoassign.domain.entities.technician import Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.infrastructure.api.dependencies import (
    get_auto_assign_uc,
    get_log_repo,
    get_process_queue_uc,
    get_rule_repo,
    get_settings_repo,
)
from autoassign.main import create_app
from tests.fakes import NOW, Harness, make_rule


class FakeSession:
    def __init__(self):
        self.commits = 0

    async def commit(self):
        self.commits += 1


@pytest.fixture
def harness():
    return Harness(
        work_orders=[WorkOrder(id="wo-1", status="Open")],
        technicians=[Technician(id="t1", name="Tom")],
        rules=[make_rule()],
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(harness, session):
    app = create_app()

    async def _session():
        yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_auto_assign_uc] = lambda: harness.engine
    app.dependency_overrides[get_process_queue_uc] = lambda: ProcessAssignmentQueueUseCase(
        auto_assign=harness.engine,
        queue_repo=harness.queue,
        settings_repo=harness.settings,
        unit_of_work=harness.uow,
        clock=lambda: NOW,
    )
    app.dependency_overrides[get_rule_repo] = lambda: harness.rules
    app.dependency_overrides[get_settings_repo] = lambda: harness.settings
    app.dependency_overrides[get_log_repo] = lambda: harness.logs
    return TestClient(app)


def test_auto_assign_endpoint(client, session):
    resp = client.post("/api/auto-assign/wo-1")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["assigned_technician_id"] == "t1"
    assert body["candidates_evaluated"] == 1
    assert session.commits == 1


def test_auto_assign_unknown_work_order_reports_failure(client):
    body = client.post("/api/auto-assign/missing").json()
    assert body["success"] is False
    assert "Work order not found" in body["message"]


def test_logs_endpoint_newest_first(client):
    client.post("/api/auto-assign/wo-1")
    client.post("/api/auto-assign/wo-1")  # skipped, no log

    body = client.get("/api/auto-assign/logs", params={"work_order_id": "wo-1"}).json()

    assert body["total"] == 1
    assert body["logs"][0]["status"] == "success"
    assert body["logs"][0]["candidates_data"][0]["technician_id"] == "t1"


def test_queue_process_endpoint(client, harness):
    body = client.post("/api/auto-assign/queue/process").json()
    assert body["status"] == "ok"
    assert body["processed"] == 0


def test_create_rule(client, harness):
    resp = client.post(
        "/api/auto-assign/rules",
        json={"name": "Night shift", "priority": 2, "weight_proximity": 60},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["weight_proximity"] == 60
    assert body["fallback_action"] == "queue"
    assert body["id"] in harness.rules.rules


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Bad", "weight_proximity": 150},
        {"name": "Bad", "weight_workload": -1},
        {"name": "Bad", "weight_availability": 12.5},
        {"name": "Bad", "fallback_action": "page_oncall"},
        {
            "name": "Zero",
            "weight_availability": 0,
            "weight_specialization": 0,
            "weight_proximity": 0,
            "weight_workload": 0,
            "weight_performance": 0,
        },
    ],
)
def test_create_rule_rejects_invalid_input(client, harness, payload):
    resp = client.post("/api/auto-assign/rules", json=payload)
    assert resp.status_code == 422
    assert len(harness.rules.rules) == 1


def test_toggle_rule(client, harness):
    resp = client.patch("/api/auto-assign/rules/rule-1/active", json={"is_active": False})
    assert resp.status_code == 200
    assert harness.rules.rules["rule-1"].is_active is False

    missing = client.patch("/api/auto-assign/rules/nope/active", json={"is_active": True})
    assert missing.status_code == 404


def test_list_rules(client):
    body = client.get("/api/auto-assign/rules").json()
    assert body["total"] == 1
    assert body["rules"][0]["id"] == "rule-1"


def test_settings_round_trip(client, harness):
    resp = client.put(
        "/api/auto-assign/settings",
        json={"max_candidates_to_evaluate": 10, "notification_channels": ["push"]},
    )
    assert resp.status_code == 200
    assert harness.settings.settings.max_candidates_to_evaluate == 10

    body = client.get("/api/auto-assign/settings").json()
    assert body["notification_channels"] == ["push"]
    assert body["auto_assignment_enabled"] is True


def test_settings_reject_bad_business_days(client):
    resp = client.put("/api/auto-assign/settings", json={"business_days": [0, 8]})
    assert resp.status_code == 422


def test_update_rule(client, harness, session):
    resp = client.put(
        "/api/auto-assign/rules/rule-1",
        json={"name": "Nearest first", "priority": 3, "weight_proximity": 80, "max_distance_km": 30},
    )

    assert resp.status_code == 200
    rule = harness.rules.rules["rule-1"]
    assert rule.name == "Nearest first"
    assert rule.weight_proximity == 80
    assert rule.max_distance_km == 30
    assert len(harness.rules.rules) == 1
    assert session.commits == 1


def test_update_rule_validates_and_404s(client, harness):
    bad = client.put("/api/auto-assign/rules/rule-1", json={"name": "Bad", "weight_workload": 101})
    assert bad.status_code == 422
    assert harness.rules.rules["rule-1"].weight_workload == 15

    missing = client.put("/api/auto-assign/rules/nope", json={"name": "Ghost"})
    assert missing.status_code == 404
    assert "nope" not in harness.rules.rules


def test_updated_weights_apply_to_next_evaluation(client, harness):
    client.put(
        "/api/auto-assign/rules/rule-1",
        json={"name": "No techs allowed", "allowed_locations": ["depot-9"], "fallback_action": "escalate"},
    )

    body = client.post("/api/auto-assign/wo-1").json()

    assert body["success"] is False
    assert body["fallback_action"] == "escalate"


def test_delete_rule_keeps_logs(client, harness, session):
    client.post("/api/auto-assign/wo-1")

    resp = client.delete("/api/auto-assign/rules/rule-1")

    assert resp.status_code == 200
    assert harness.rules.rules == {}
    logs = client.get("/api/auto-assign/logs").json()["logs"]
    assert logs[0]["candidates_data"][0]["technician_id"] == "t1"
    assert logs[0]["assignment_score"] is not None

    again = client.delete("/api/auto-assign/rules/rule-1")
    assert again.status_code == 404
