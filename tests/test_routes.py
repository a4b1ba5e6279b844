"""Tests for the HTTP surface around the ledger."""

import json

from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.handlers import ledger
from app.models import AuditEntry


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health/").json()["status"] == "healthy"
    assert client.get("/health/live").json() == {"status": "alive"}
    assert client.get("/health/ready").json() == {"status": "ready"}


def test_track_view(client, make_resource):
    make_resource(22, title="Photosynthesis Slides")

    response = client.post(
        "/resources/22/views",
        headers={"X-Actor-Id": "7", "User-Agent": "Test Browser"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["resource_id"] == 22
    assert data["actor_id"] == 7
    assert data["kind"] == "view"

    resource = client.get("/resources/22").json()
    assert resource["view_count"] == 1
    assert resource["download_count"] == 0


def test_track_download_anonymous(client, make_resource):
    make_resource(22)

    response = client.post("/resources/22/downloads")

    assert response.status_code == 201
    assert response.json()["actor_id"] is None
    assert client.get("/resources/22").json()["download_count"] == 1


def test_track_missing_resource_is_404(client, table_counts):
    response = client.post("/resources/999999/views", headers={"X-Actor-Id": "1"})

    assert response.status_code == 404
    assert table_counts(999999)["events"] == 0


def test_invalid_actor_header_is_400(client, make_resource, table_counts):
    make_resource(22)

    response = client.post("/resources/22/views", headers={"X-Actor-Id": "admin"})

    assert response.status_code == 400
    assert table_counts(22)["view_count"] == 0


def test_storage_failure_is_503_and_not_counted(client, make_resource, table_counts, monkeypatch):
    make_resource(22)

    async def broken_audit(*args, **kwargs):
        raise OperationalError("INSERT", None, Exception("database is locked"))

    monkeypatch.setattr(ledger, "_append_audit_entry", broken_audit)

    response = client.post("/resources/22/downloads", headers={"X-Actor-Id": "7"})

    assert response.status_code == 503
    assert table_counts(22) == {"view_count": 0, "download_count": 0, "events": 0, "audits": 0}


def test_list_and_get_resources(client, make_resource):
    make_resource(1, title="First")
    make_resource(2, title="Second")

    listing = client.get("/resources")
    assert listing.status_code == 200
    assert [r["title"] for r in listing.json()] == ["First", "Second"]

    assert client.get("/resources/3").status_code == 404


def test_reconcile_and_repair_endpoints(client, make_resource):
    make_resource(22, view_count=5)

    report = client.get("/ledger/resources/22/view/reconcile").json()
    assert report == {
        "resource_id": 22,
        "kind": "view",
        "event_count": 0,
        "counter_value": 5,
        "audit_count": 0,
        "in_sync": False,
    }

    repaired = client.post("/ledger/resources/22/view/repair")
    assert repaired.status_code == 200
    assert repaired.json() == {"resource_id": 22, "kind": "view", "counter_value": 0}

    assert client.get("/ledger/resources/22/view/reconcile").json()["in_sync"] is True


def test_ledger_endpoint_errors(client, make_resource):
    make_resource(22)

    assert client.get("/ledger/resources/22/like/reconcile").status_code == 400
    assert client.get("/ledger/resources/999999/view/reconcile").status_code == 404
    assert client.post("/ledger/resources/999999/download/repair").status_code == 404


def test_drift_endpoint(client, make_resource):
    make_resource(21)
    make_resource(22, view_count=5)
    client.post("/resources/21/views")

    drift = client.get("/ledger/drift").json()
    assert [(r["resource_id"], r["kind"]) for r in drift] == [(22, "view")]

    everything = client.get("/ledger/drift", params={"include_in_sync": True}).json()
    assert len(everything) == 4


def test_resource_id_beyond_integer_column_is_404(client, make_resource, table_counts):
    make_resource(22)
    too_big = str(2 ** 64)

    assert client.post(f"/resources/{too_big}/views").status_code == 404
    assert client.post(f"/resources/{too_big}/downloads", headers={"X-Actor-Id": "7"}).status_code == 404
    assert client.get(f"/resources/{too_big}").status_code == 404
    assert client.get(f"/ledger/resources/{too_big}/view/reconcile").status_code == 404
    assert client.post(f"/ledger/resources/{too_big}/view/repair").status_code == 404
    assert table_counts(22) == {"view_count": 0, "download_count": 0, "events": 0, "audits": 0}


def test_actor_header_beyond_integer_column_is_400(client, make_resource, table_counts):
    make_resource(22)

    response = client.post("/resources/22/views", headers={"X-Actor-Id": str(2 ** 64)})

    assert response.status_code == 400
    assert table_counts(22)["view_count"] == 0


def test_forwarded_for_is_truncated(client, make_resource, run_with_session):
    make_resource(22)

    response = client.post(
        "/resources/22/views",
        headers={"X-Forwarded-For": "10.0.0.1, " * 600, "User-Agent": "Test Browser"}
    )

    assert response.status_code == 201
    context = json.loads(response.json()["context"])
    assert len(context["ip_address"]) == 255
    assert context["ip_address"].startswith("10.0.0.1, ")

    async def audit_details(session):
        audit = (await session.execute(select(AuditEntry))).scalars().one()
        return json.loads(audit.details)

    details = run_with_session(audit_details)
    assert details["ip_address"] == context["ip_address"]
    assert details["user_agent"] == "Test Browser"
