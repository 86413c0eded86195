"""Tests for structured logging helpers."""

import logging

from buildcost.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        org_id="org-1",
        request_id="req-1",
        route="/materials",
        method="PATCH",
    )

    assert context == {
        "user_id": "user-1",
        "org_id": "org-1",
        "request_id": "req-1",
        "route": "/materials",
        "method": "PATCH",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(user_id="", org_id=None, request_id="req-1")

    assert context == {"request_id": "req-1"}


async def test_domain_errors_logged_with_request_context(authed_client, caplog):
    with caplog.at_level(logging.INFO, logger="buildcost.main"):
        response = await authed_client.get(
            "/materials/00000000-0000-0000-0000-000000000000",
            headers={"X-Request-ID": "req-log"},
        )

    assert response.status_code == 404
    records = [r for r in caplog.records if r.name == "buildcost.main"]
    assert records
    assert records[-1].request_id == "req-log"
    assert records[-1].route == "/materials/00000000-0000-0000-0000-000000000000"
    assert not hasattr(records[-1], "email")
