"""Tests for the glacier view exception hierarchy."""

import pytest

from modules.glacier_view.exceptions import (
    DuplicateEntityError, EmptyInputError, JoinAmbiguityError, PublicationConflictError,
    RefreshCancelledError, ViewRefreshError
)
from src.exceptions import ERGIBaseException, ERGIProcessingError


@pytest.mark.parametrize("error", [
    JoinAmbiguityError("G1", "burgess", ["1", "2"]),
    DuplicateEntityError("G1", 2),
    EmptyInputError("entities"),
    PublicationConflictError("ergi_mat_view"),
    RefreshCancelledError("ergi_mat_view", "publish"),
])
def test_refresh_errors_share_base(error):
    assert isinstance(error, ViewRefreshError)
    assert isinstance(error, ERGIProcessingError)
    assert isinstance(error, ERGIBaseException)


def test_ambiguity_context():
    error = JoinAmbiguityError("G1", "burgess", ("3", "4"))

    assert error.context == {"entity_id": "G1", "family": "burgess", "candidates": ["3", "4"]}
    assert str(error).startswith("Entity G1 has 2 surviving region candidates")


def test_empty_input_reason_is_optional():
    assert "reason" not in EmptyInputError("entities").context
    assert EmptyInputError("entities", "no rows").context["reason"] == "no rows"


def test_conflict_message():
    assert str(PublicationConflictError("ergi_mat_view")) == (
        "A refresh of ergi_mat_view is already in progress (Context: view_name=ergi_mat_view)"
    )
