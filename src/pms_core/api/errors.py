"""Translation of domain errors into HTTP responses."""
import logging
from math import ceil

from fastapi import HTTPException

from ..crud import ChildrenExistError
from ..state_machine import StateTransitionError
from ..store import DocumentNotFoundError, HierarchyIdCollisionError, StoreError

logger = logging.getLogger("pms-core.api")

# Exceptions the crud layer raises for expected failures
DOMAIN_ERRORS = (StoreError, ValueError, StateTransitionError)


def to_http_exception(error: Exception, action: str) -> HTTPException:
    """
    Map an exception raised by the crud layer to an HTTPException.

    Args:
        error: The exception raised while performing ``action``
        action: Short description used in log messages (e.g. "update task abc")
    """
    if isinstance(error, DocumentNotFoundError):
        return HTTPException(status_code=404, detail=str(error))

    if isinstance(error, HierarchyIdCollisionError):
        logger.warning(f"Hierarchy id collision during {action}: {error}")
        return HTTPException(
            status_code=409,
            detail={"error": "hierarchy_id_collision", "message": str(error)},
        )

    if isinstance(error, StateTransitionError):
        logger.warning(f"Blocked status change during {action}: {error}")
        return HTTPException(
            status_code=400,
            detail={
                "error": "invalid_status_transition",
                "message": str(error),
                "allowed_transitions": [s.value for s in error.allowed_transitions],
            },
        )

    if isinstance(error, ChildrenExistError):
        logger.warning(f"Delete blocked during {action}: {error}")
        return HTTPException(
            status_code=400,
            detail={"error": "children_exist", "message": str(error)},
        )

    if isinstance(error, ValueError):
        logger.warning(f"Validation error during {action}: {error}")
        return HTTPException(status_code=400, detail=str(error))

    logger.error(f"Unexpected error during {action}: {error}", exc_info=error)
    return HTTPException(status_code=500, detail="Storage error")


def paginate(items: list, page: int, page_size: int) -> dict:
    """Slice ``items`` into one page and return it with the page metadata."""
    total = len(items)
    skip = (page - 1) * page_size
    return {
        "items": items[skip:skip + page_size],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": ceil(total / page_size) if total > 0 else 0,
    }
