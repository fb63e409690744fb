# This project was developed with assistance from AI tools.
"""Tests for mapping failed status updates to HTTP errors."""

import importlib
import warnings

import pytest

from portal_api.routes import _deps
from portal_api.services.status_update import (
    InvalidTransitionError,
    PersistenceError,
    StatusInputError,
    StatusUpdateResult,
    TerminalStatusError,
)


def test_error_mapping_imports_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        importlib.reload(_deps)


@pytest.mark.parametrize(
    "exc,status_code",
    [
        (TerminalStatusError("locked"), 409),
        (InvalidTransitionError("no edge"), 422),
        (StatusInputError("reason missing"), 422),
        (PersistenceError("db down"), 503),
    ],
)
def test_failed_result_becomes_http_error(exc, status_code):
    with pytest.raises(_deps.StatusUpdateHTTPError) as info:
        _deps.raise_for_result(StatusUpdateResult.failed(exc, "pending"))

    assert info.value.status_code == status_code
    assert info.value.detail == exc.message
    assert info.value.code == exc.code


def test_successful_result_passes():
    _deps.raise_for_result(StatusUpdateResult.ok("approved"))
