# This project was developed with assistance from AI tools.
"""Tests for the loan status orchestrator."""

from unittest.mock import AsyncMock

from factories import (
    loan_snapshot,
    make_dispatcher,
    make_email_service,
    make_repository,
    notification_rows,
)
from portal_db.enums import LoanStatus

from portal_api.services.email import EmailTemplate
from portal_api.services.loan_status_update import update_loan_status
from portal_api.services.status_update import SYSTEM_TRANSITION_NOTE


async def _update(loan, new_status, repo=None, **kwargs):
    repo = repo or make_repository()
    dispatcher = make_dispatcher()
    email = make_email_service()
    result = await update_loan_status(
        repo,
        loan,
        new_status,
        email_service=email,
        dispatcher=dispatcher,
        portal_url="https://portal.test",
        **kwargs,
    )
    await dispatcher.drain()
    return result, repo, email, dispatcher


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


async def test_same_status_is_a_no_op():
    """Requesting the current status succeeds without any write or side effect."""
    result, repo, email, _ = await _update(loan_snapshot(status="processing"), "processing")

    assert result.success is True
    assert result.changed is False
    repo.update_loan.assert_not_awaited()
    repo.add_loan_history.assert_not_awaited()
    repo.add_notifications.assert_not_awaited()
    email.send.assert_not_awaited()


async def test_same_status_on_terminal_loan_is_still_a_no_op():
    result, repo, _, _ = await _update(loan_snapshot(status="funded"), LoanStatus.FUNDED)
    assert result.success is True
    assert result.changed is False
    repo.update_loan.assert_not_awaited()


async def test_terminal_loan_cannot_change():
    result, repo, email, _ = await _update(loan_snapshot(status="funded"), "pending")

    assert result.success is False
    assert result.error_code == "terminal_status"
    assert "can no longer be modified" in result.error
    repo.update_loan.assert_not_awaited()
    email.send.assert_not_awaited()


async def test_invalid_transition_lists_allowed_destinations():
    result, repo, _, _ = await _update(loan_snapshot(status="pending"), "funded")

    assert result.success is False
    assert result.error_code == "invalid_transition"
    assert "Documents required, Under review, Rejected" in result.error
    repo.update_loan.assert_not_awaited()


async def test_loan_without_status_cannot_be_approved():
    result, repo, _, _ = await _update(loan_snapshot(status=None), "approved")
    assert result.success is False
    assert result.error_code == "invalid_transition"
    repo.update_loan.assert_not_awaited()


async def test_loan_without_status_can_be_set_to_pending():
    result, repo, _, _ = await _update(loan_snapshot(status=None), "pending")
    assert result.success is True
    assert repo.update_loan.await_args.args[1] is None


async def test_rejection_requires_reason():
    result, repo, _, _ = await _update(loan_snapshot(status="under_review"), "rejected")

    assert result.success is False
    assert result.error_code == "invalid_input"
    assert result.error == "A rejection reason is required"
    repo.update_loan.assert_not_awaited()


async def test_next_action_too_long_is_invalid_input():
    result, _, _, _ = await _update(
        loan_snapshot(status="under_review"), "processing", next_action="x" * 501
    )
    assert result.error_code == "invalid_input"
    assert result.error == "Next action is too long"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def test_stale_snapshot_fails_without_side_effects():
    repo = make_repository()
    repo.update_loan.return_value = False

    result, repo, email, _ = await _update(loan_snapshot(status="processing"), "approved", repo)

    assert result.success is False
    assert result.error_code == "stale_status"
    repo.add_loan_history.assert_not_awaited()
    repo.add_notifications.assert_not_awaited()
    email.send.assert_not_awaited()


async def test_database_error_is_persistence_failure():
    repo = make_repository()
    repo.update_loan.side_effect = RuntimeError("connection reset")

    result, repo, _, _ = await _update(loan_snapshot(status="processing"), "approved", repo)

    assert result.success is False
    assert result.error_code == "persistence_failed"
    repo.add_loan_history.assert_not_awaited()


async def test_persisted_values_for_rejection():
    result, repo, _, _ = await _update(
        loan_snapshot(status="under_review"),
        "rejected",
        rejection_reason="  Insufficient income  ",
        next_action="",
        actor_id="agent-7",
    )

    assert result.success is True
    loan_id, expected, values = repo.update_loan.await_args.args
    assert loan_id == "loan-0001-aaaa"
    assert expected == "under_review"
    assert values == {
        "status": LoanStatus.REJECTED,
        "next_action": None,
        "rejection_reason": "Insufficient income",
    }


async def test_non_rejection_does_not_touch_rejection_reason():
    _, repo, _, _ = await _update(
        loan_snapshot(status="processing"), "approved", next_action="Sign the offer"
    )
    values = repo.update_loan.await_args.args[2]
    assert "rejection_reason" not in values
    assert values["next_action"] == "Sign the offer"


# ---------------------------------------------------------------------------
# Side effects
# ---------------------------------------------------------------------------


async def test_success_writes_history_notification_and_email():
    result, repo, email, _ = await _update(
        loan_snapshot(status="processing"), "approved", actor_id="agent-7"
    )

    assert result.success is True
    assert result.changed is True
    repo.add_loan_history.assert_awaited_once()
    history = repo.add_loan_history.await_args.kwargs
    assert history["old_status"] == "processing"
    assert history["new_status"] == "approved"
    assert history["changed_by"] == "agent-7"
    assert history["notes"] is None

    (row,) = notification_rows(repo)
    assert row["user_id"] == "client-1"
    assert row["title"] == "Loan file approved"
    assert row["related_entity"] == "loan_applications"
    assert row["related_id"] == "loan-0001-aaaa"

    email.send.assert_awaited_once()
    template, to, data = email.send.await_args.args
    assert template == EmailTemplate.LOAN_APPROVED
    assert to == "marie@example.com"
    assert data["firstName"] == "Marie"
    assert data["amount"] == 250000.0


async def test_next_action_is_shown_in_the_notification():
    _, repo, _, _ = await _update(
        loan_snapshot(status="pending"),
        "documents_required",
        next_action="Upload your last three payslips",
        actor_id="agent-7",
    )

    (row,) = notification_rows(repo)
    assert row["message"] == (
        "Additional documents are required to continue your file. "
        "Next step: Upload your last three payslips"
    )


async def test_system_transition_has_no_actor_and_a_note():
    _, repo, _, _ = await _update(
        loan_snapshot(status="pending"),
        "documents_required",
        actor_id="agent-7",
        system_initiated=True,
    )
    history = repo.add_loan_history.await_args.kwargs
    assert history["changed_by"] is None
    assert history["notes"] == SYSTEM_TRANSITION_NOTE


async def test_history_failure_does_not_fail_the_update():
    repo = make_repository()
    repo.add_loan_history.side_effect = RuntimeError("history insert failed")

    result, repo, email, _ = await _update(loan_snapshot(status="processing"), "approved", repo)

    assert result.success is True
    repo.add_notifications.assert_awaited_once()
    email.send.assert_awaited_once()


async def test_email_failure_is_dead_lettered_not_raised():
    repo = make_repository()
    dispatcher = make_dispatcher(max_attempts=2)
    email = make_email_service()
    email.send = AsyncMock(side_effect=RuntimeError("smtp down"))

    result = await update_loan_status(
        repo,
        loan_snapshot(status="processing"),
        "approved",
        email_service=email,
        dispatcher=dispatcher,
    )
    await dispatcher.drain()

    assert result.success is True
    assert email.send.await_count == 2
    assert [d.name for d in dispatcher.dead_letters] == ["loan-approved-email-loan-0001-aaaa"]


async def test_no_email_without_contact_address():
    repo = make_repository(profile=None)
    result, _, email, _ = await _update(loan_snapshot(status="processing"), "approved", repo)
    assert result.success is True
    email.send.assert_not_awaited()


async def test_status_without_email_sends_none():
    result, _, email, _ = await _update(loan_snapshot(status="documents_required"), "pending")
    assert result.success is True
    email.send.assert_not_awaited()


async def test_notify_owner_false_skips_notification_and_email():
    _, repo, email, _ = await _update(
        loan_snapshot(status="pending"), "under_review", notify_owner=False
    )
    repo.add_loan_history.assert_awaited_once()
    repo.add_notifications.assert_not_awaited()
    email.send.assert_not_awaited()
