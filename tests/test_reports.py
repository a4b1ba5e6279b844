"""Tests for engagement reports and the activity log."""

import pytest

from app.handlers.ledger import record_access
from app.handlers.reports import get_popular_resources, repair_drift, scan_drift
from app.models import AccessKind


@pytest.fixture
def busy_platform(make_resource, run_with_session):
    """Three resources with a handful of recorded views and downloads."""
    make_resource(1, title="Fractions Worksheet")
    make_resource(2, title="Photosynthesis Slides")
    make_resource(3, title="Reading Pack")

    async def traffic(session):
        for _ in range(3):
            await record_access(session, 2, 7, AccessKind.VIEW)
        await record_access(session, 2, 7, AccessKind.DOWNLOAD)
        await record_access(session, 1, 8, AccessKind.VIEW)
        await record_access(session, 3, None, AccessKind.DOWNLOAD)
        await record_access(session, 3, None, AccessKind.DOWNLOAD)

    run_with_session(traffic)


def test_engagement_summary(client, busy_platform):
    summary = client.get("/reports/summary").json()

    assert summary == {
        "total_resources": 3,
        "total_views": 4,
        "total_downloads": 3,
        "recorded_view_events": 4,
        "recorded_download_events": 3,
        "activity_log_entries": 7,
    }


def test_summary_on_empty_database(client):
    summary = client.get("/reports/summary").json()
    assert summary["total_resources"] == 0
    assert summary["total_views"] == 0
    assert summary["recorded_download_events"] == 0


def test_popular_resources_order(busy_platform, run_with_session):
    popular = run_with_session(lambda session: get_popular_resources(session, limit=2))
    assert [r.id for r in popular] == [2, 3]


def test_popular_endpoint(client, busy_platform):
    response = client.get("/reports/popular", params={"limit": 1})
    assert response.status_code == 200
    assert [r["title"] for r in response.json()] == ["Photosynthesis Slides"]


def test_activity_log_filters_and_pagination(client, busy_platform):
    page = client.get("/reports/activity", params={"limit": 2}).json()
    assert page["total"] == 7
    assert len(page["entries"]) == 2
    # Newest first
    assert page["entries"][0]["action"] == "RESOURCE_DOWNLOADED"
    assert page["entries"][0]["resource_id"] == 3

    views = client.get("/reports/activity", params={"action": "RESOURCE_VIEWED"}).json()
    assert views["total"] == 4

    by_actor = client.get("/reports/activity", params={"actor_id": 7}).json()
    assert by_actor["total"] == 4

    by_resource = client.get(
        "/reports/activity", params={"resource_id": 2, "action": "RESOURCE_DOWNLOADED"}
    ).json()
    assert by_resource["total"] == 1

    assert client.get("/reports/activity", params={"action": "NOPE"}).status_code == 422


def test_scan_and_repair_drift(make_resource, busy_platform, run_with_session):
    make_resource(22, view_count=5)

    drifted = run_with_session(scan_drift)
    assert [(r.resource_id, r.kind) for r in drifted] == [(22, AccessKind.VIEW)]

    repaired = run_with_session(repair_drift)
    assert repaired == [{"resource_id": 22, "kind": "view", "previous": 5, "counter_value": 0}]

    assert run_with_session(scan_drift) == []
