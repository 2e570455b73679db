"""State machine validation for user-driven functional requirement status changes.

Users may move a functional requirement between any of the working states
(forward or back). DEPLOYED is terminal: once a user marks an FR deployed it
cannot be moved again. The automatic task-driven sync in ``status_sync`` does
not go through this matrix, but it also never touches a deployed FR.
"""
import logging

from .models import FRStatus

logger = logging.getLogger("pms-core.state_machine")


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        message: str,
        current_status: FRStatus,
        requested_status: FRStatus,
        allowed_transitions: list[FRStatus]
    ):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_transitions = allowed_transitions


_WORKING_STATES = [
    FRStatus.DRAFT,
    FRStatus.REVIEW,
    FRStatus.APPROVED,
    FRStatus.IMPLEMENTED,
    FRStatus.TESTED,
]

# State machine transition matrix
# Maps current status → list of allowed next statuses
TRANSITION_MATRIX: dict[FRStatus, list[FRStatus]] = {
    **{status: _WORKING_STATES + [FRStatus.DEPLOYED] for status in _WORKING_STATES},
    FRStatus.DEPLOYED: [
        FRStatus.DEPLOYED,  # No-op only; deployed requirements are immutable records
    ],
}

def is_transition_valid(current_status: FRStatus, new_status: FRStatus) -> bool:
    """
    Check if a status transition is valid.

    Args:
        current_status: Current FR status
        new_status: Requested new FR status

    Returns:
        True if transition is allowed, False otherwise
    """
    return FRStatus(new_status) in TRANSITION_MATRIX.get(FRStatus(current_status), [])


def validate_transition(current_status: FRStatus, new_status: FRStatus) -> None:
    """
    Validate a status transition and raise exception if invalid.

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    current_status = FRStatus(current_status)
    new_status = FRStatus(new_status)

    if current_status == new_status:
        logger.debug(f"No-op transition: {current_status.value} → {new_status.value}")
        return

    if not is_transition_valid(current_status, new_status):
        allowed_transitions = TRANSITION_MATRIX.get(current_status, [])
        error_msg = (
            f"Invalid status transition: {current_status.value} → {new_status.value}."
        )
        if current_status == FRStatus.DEPLOYED:
            error_msg += " Deployed requirements are immutable. Create a new requirement for additional work."

        logger.warning(f"Blocked transition: {error_msg}")
        raise StateTransitionError(
            message=error_msg,
            current_status=current_status,
            requested_status=new_status,
            allowed_transitions=allowed_transitions
        )

    logger.debug(f"Valid transition: {current_status.value} → {new_status.value}")


def get_allowed_transitions(current_status: FRStatus) -> list[FRStatus]:
    """
    Get list of allowed transitions from current status (excluding no-op same status).
    """
    current_status = FRStatus(current_status)
    return [s for s in TRANSITION_MATRIX.get(current_status, []) if s != current_status]


# Status sort order for list queries
# Lower number = shown first; active work first, finished work last
STATUS_SORT_ORDER: dict[FRStatus, int] = {
    FRStatus.IMPLEMENTED: 1,
    FRStatus.APPROVED: 2,
    FRStatus.REVIEW: 3,
    FRStatus.TESTED: 4,
    FRStatus.DRAFT: 5,
    FRStatus.DEPLOYED: 6,
}
