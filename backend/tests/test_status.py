"""
WriterID Portal Backend — Processing Status Tests
==================================================

What we test:
    ✅ Forward transitions are allowed, including skipping Processing
    ✅ Re-asserting the current status is allowed
    ✅ Backward transitions and leaving a terminal status are rejected
    ✅ ensure_transition raises a 400-class error carrying both statuses
"""

import uuid

import pytest

from writerid_portal.exceptions import InvalidStatusTransitionError, ValidationError
from writerid_portal.models import ProcessingStatus, can_transition, ensure_transition

CREATED = ProcessingStatus.CREATED
PROCESSING = ProcessingStatus.PROCESSING
COMPLETED = ProcessingStatus.COMPLETED
FAILED = ProcessingStatus.FAILED


class TestCanTransition:

    @pytest.mark.parametrize(
        "current,target",
        [
            (CREATED, PROCESSING),
            (CREATED, COMPLETED),
            (CREATED, FAILED),
            (PROCESSING, COMPLETED),
            (PROCESSING, FAILED),
        ],
    )
    def test_forward_moves_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("status", list(ProcessingStatus))
    def test_same_status_allowed(self, status):
        """Repeated executor callbacks must be harmless."""
        assert can_transition(status, status)

    @pytest.mark.parametrize(
        "current,target",
        [
            (PROCESSING, CREATED),
            (COMPLETED, PROCESSING),
            (COMPLETED, CREATED),
            (COMPLETED, FAILED),
            (FAILED, COMPLETED),
            (FAILED, PROCESSING),
        ],
    )
    def test_backward_or_terminal_moves_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_flags(self):
        assert COMPLETED.is_terminal
        assert FAILED.is_terminal
        assert not CREATED.is_terminal
        assert not PROCESSING.is_terminal

    def test_values_are_display_names(self):
        assert [s.value for s in ProcessingStatus] == ["Created", "Processing", "Completed", "Failed"]


class TestEnsureTransition:

    def test_legal_transition_returns_none(self):
        assert ensure_transition("Dataset", uuid.uuid4(), CREATED, PROCESSING) is None

    def test_illegal_transition_raises(self):
        resource_id = uuid.uuid4()
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_transition("Dataset", resource_id, COMPLETED, PROCESSING)

        exc = exc_info.value
        assert isinstance(exc, ValidationError)
        assert exc.context["current_status"] == "Completed"
        assert exc.context["requested_status"] == "Processing"
        assert exc.context["resource_id"] == str(resource_id)
        assert "Completed" in exc.message and "Processing" in exc.message
