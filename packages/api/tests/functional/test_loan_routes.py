# This project was developed with assistance from AI tools.
"""Functional tests: loan lifecycle endpoints through the real app."""

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from factories import make_document, make_loan, make_repository, make_user
from portal_db.enums import UserRole

pytestmark = pytest.mark.functional

STAFF = make_user(UserRole.AGENT, "agent-7")
OWNER = make_user(UserRole.CLIENT, "client-1")
STRANGER = make_user(UserRole.CLIENT, "client-9")


# ---------------------------------------------------------------------------
# PATCH /api/loans/{id}/status
# ---------------------------------------------------------------------------


def test_staff_approves_loan(make_client, services):
    repo = make_repository(loan=make_loan(status="processing"))
    client = make_client(STAFF, repo)

    resp = client.patch("/api/loans/loan-0001-aaaa/status", json={"status": "approved"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "status": "approved", "changed": True}
    assert repo.add_loan_history.await_args.kwargs["changed_by"] == "agent-7"
    job_name = services.dispatcher.dispatch.call_args.args[0]
    assert job_name == "loan-approved-email-loan-0001-aaaa"


def test_same_status_reports_unchanged(make_client):
    repo = make_repository(loan=make_loan(status="processing"))
    resp = make_client(STAFF, repo).patch(
        "/api/loans/loan-0001-aaaa/status", json={"status": "processing"}
    )
    assert resp.status_code == 200
    assert resp.json()["changed"] is False
    repo.update_loan.assert_not_awaited()


def test_terminal_loan_returns_409(make_client):
    repo = make_repository(loan=make_loan(status="funded"))
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "pending"})

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "terminal_status"
    assert body["title"] == "Conflict"
    assert "can no longer be modified" in body["detail"]


def test_invalid_transition_returns_422(make_client):
    repo = make_repository(loan=make_loan(status="pending"))
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "funded"})

    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_transition"


def test_rejection_without_reason_returns_422(make_client):
    repo = make_repository(loan=make_loan(status="under_review"))
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "rejected"})

    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"
    assert resp.json()["detail"] == "A rejection reason is required"


def test_stale_loan_returns_409(make_client):
    repo = make_repository(loan=make_loan(status="processing"))
    repo.update_loan.return_value = False
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "approved"})

    assert resp.status_code == 409
    assert resp.json()["code"] == "stale_status"


def test_database_failure_returns_503(make_client):
    repo = make_repository(loan=make_loan(status="processing"))
    repo.update_loan.side_effect = RuntimeError("connection reset")
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "approved"})

    assert resp.status_code == 503
    assert resp.json()["code"] == "persistence_failed"


def test_client_cannot_change_loan_status(make_client):
    repo = make_repository(loan=make_loan(status="processing"))
    resp = make_client(OWNER, repo).patch("/api/loans/loan-0001-aaaa/status", json={"status": "approved"})

    assert resp.status_code == 403
    repo.update_loan.assert_not_awaited()


def test_unknown_loan_returns_404(make_client):
    resp = make_client(STAFF, make_repository(loan=None)).patch(
        "/api/loans/missing/status", json={"status": "approved"}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Loan not found"


def test_missing_status_field_is_invalid_input(make_client):
    repo = make_repository(loan=make_loan())
    resp = make_client(STAFF, repo).patch("/api/loans/loan-0001-aaaa/status", json={})
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


def test_owner_sees_allowed_transitions(make_client):
    repo = make_repository(loan=make_loan(status="pending"))
    resp = make_client(OWNER, repo).get("/api/loans/loan-0001-aaaa/status/transitions")

    assert resp.status_code == 200
    body = resp.json()
    assert body["current"]["value"] == "pending"
    assert body["terminal"] is False
    assert [d["value"] for d in body["allowed"]] == ["documents_required", "under_review", "rejected"]


def test_other_client_gets_404(make_client):
    repo = make_repository(loan=make_loan())
    resp = make_client(STRANGER, repo).get("/api/loans/loan-0001-aaaa/status/transitions")
    assert resp.status_code == 404


def test_status_history_newest_first(make_client):
    rows = [
        SimpleNamespace(
            old_status="processing",
            new_status="approved",
            changed_by="agent-7",
            rejection_reason=None,
            next_action=None,
            notes=None,
            created_at=datetime(2026, 3, 2, tzinfo=UTC),
        ),
        SimpleNamespace(
            old_status=None,
            new_status="pending",
            changed_by=None,
            rejection_reason=None,
            next_action=None,
            notes="Automatic system transition",
            created_at=datetime(2026, 3, 1, tzinfo=UTC),
        ),
    ]
    repo = make_repository(loan=make_loan(status="approved"))
    repo.list_loan_history.return_value = rows

    resp = make_client(OWNER, repo).get("/api/loans/loan-0001-aaaa/status/history")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [row["new_status"] for row in data] == ["approved", "pending"]
    assert data[1]["notes"] == "Automatic system transition"


def test_document_progress(make_client):
    docs = [make_document(category=c) for c in ("identite", "fiscal", "revenus")]
    repo = make_repository(loan=make_loan(status="documents_required"), documents=docs)

    resp = make_client(OWNER, repo).get("/api/loans/loan-0001-aaaa/documents/progress")

    assert resp.status_code == 200
    body = resp.json()
    assert body["complete"] is False
    assert body["primary"] == {"completed": 5, "total": 8, "percentage": 63}
    assert body["coborrower"] is None
    assert len(body["checklist"]) == 8
    assert body["checklist"][0]["category_label"] == "Identity"


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


def test_progress_check_moves_complete_file(make_client):
    docs = [make_document(category=c) for c in ("identite", "fiscal", "revenus", "bancaire", "bien")]
    repo = make_repository(loan=make_loan(status="pending"), documents=docs)

    resp = make_client(STAFF, repo).post("/api/loans/loan-0001-aaaa/documents/progress/check")

    assert resp.status_code == 200
    assert resp.json() == {
        "loan_id": "loan-0001-aaaa",
        "outcome": "transitioned",
        "complete": True,
        "error": None,
    }
    assert repo.update_loan.await_args.args[2]["status"] == "under_review"


def test_progress_check_on_reviewed_loan_is_not_applicable(make_client):
    repo = make_repository(loan=make_loan(status="processing"))
    resp = make_client(STAFF, repo).post("/api/loans/loan-0001-aaaa/documents/progress/check")
    assert resp.json()["outcome"] == "not_applicable"
    assert resp.json()["complete"] is None


def test_owner_check_after_upload_moves_complete_file(make_client):
    docs = [make_document(category=c) for c in ("identite", "fiscal", "revenus", "bancaire", "bien")]
    repo = make_repository(loan=make_loan(status="pending"), documents=docs)

    resp = make_client(OWNER, repo).post("/api/loans/loan-0001-aaaa/documents/progress/check")

    assert resp.status_code == 200
    assert resp.json()["outcome"] == "transitioned"
    _, expected, values = repo.update_loan.await_args.args
    assert (expected, values["status"]) == ("pending", "under_review")
    assert repo.add_loan_history.await_args.kwargs["changed_by"] is None


def test_other_client_cannot_run_progress_check(make_client):
    repo = make_repository(loan=make_loan(status="pending"))
    resp = make_client(STRANGER, repo).post("/api/loans/loan-0001-aaaa/documents/progress/check")
    assert resp.status_code == 404
    repo.update_loan.assert_not_awaited()


def test_owner_announces_document_change(make_client, services):
    services.change_feed.publish.return_value = 1
    repo = make_repository(loan=make_loan(status="pending"))

    resp = make_client(OWNER, repo).post("/api/loans/loan-0001-aaaa/documents/changed")

    assert resp.status_code == 202
    assert resp.json() == {"loan_id": "loan-0001-aaaa", "handlers": 1}
    services.change_feed.publish.assert_called_once_with("loan-0001-aaaa")


def test_other_client_cannot_announce_document_change(make_client, services):
    repo = make_repository(loan=make_loan(status="pending"))
    resp = make_client(STRANGER, repo).post("/api/loans/loan-0001-aaaa/documents/changed")
    assert resp.status_code == 404
    services.change_feed.publish.assert_not_called()


def test_sequestre_update_fires_alert(make_client):
    repo = make_repository(loan=make_loan(sequestre_status="partial"))

    resp = make_client(STAFF, repo).patch(
        "/api/loans/loan-0001-aaaa/sequestre",
        json={"amount_expected": "30000.00", "amount_received": "30000.00"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["alert_sent"] is True
    assert body["sequestre_status"] == "complete"
    repo.mark_sequestre_complete.assert_awaited_once_with("loan-0001-aaaa")


def test_partial_sequestre_update_keeps_stored_expected_amount(make_client):
    loan = make_loan(
        sequestre_status="partial",
        sequestre_amount_expected=Decimal("30000.00"),
        sequestre_amount_received=Decimal("10000.00"),
    )
    repo = make_repository(loan=loan)

    resp = make_client(STAFF, repo).patch(
        "/api/loans/loan-0001-aaaa/sequestre", json={"amount_received": "30000.00"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["amount_expected"]) == Decimal("30000.00")
    assert body["alert_sent"] is True
    args = repo.update_sequestre_amounts.await_args.args
    assert args[1] == Decimal("30000.00")
    assert args[2] == Decimal("30000.00")


def test_sequestre_rejects_negative_amounts(make_client):
    repo = make_repository(loan=make_loan())
    resp = make_client(STAFF, repo).patch(
        "/api/loans/loan-0001-aaaa/sequestre", json={"amount_received": "-5"}
    )
    assert resp.status_code == 422
    repo.update_sequestre_amounts.assert_not_awaited()


def test_client_cannot_update_sequestre(make_client):
    repo = make_repository(loan=make_loan())
    resp = make_client(OWNER, repo).patch(
        "/api/loans/loan-0001-aaaa/sequestre", json={"amount_received": "100"}
    )
    assert resp.status_code == 403
