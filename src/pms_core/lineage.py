"""Parent-chain resolution and hierarchy id allocation.

Helpers shared by entity creation and by the status synchronisation rules:
they look up the ancestors an identifier is built from, pick the ancestry
variant that matches what was found, and create documents under a freshly
allocated sequence number, retrying when the resulting id collides.
"""
import logging
from typing import Callable, Optional

from . import hierarchy_ids
from .config import get_settings
from .models import Collection
from .store import DocumentStore, DocumentNotFoundError, HierarchyIdCollisionError

logger = logging.getLogger("pms-core.lineage")


def find_document(store: DocumentStore, collection: Collection, document_id: Optional[str]) -> Optional[dict]:
    """Get a document, returning None when the id is empty or the document is gone."""
    if not document_id:
        return None
    try:
        return store.get(collection, document_id)
    except DocumentNotFoundError:
        logger.warning(f"{collection.value}/{document_id} not found")
        return None


def project_code_of(project: dict) -> str:
    return hierarchy_ids.resolve_project_code(project.get("code") or "", project.get("name") or "")


def resolve_fr_ancestry(
    store: DocumentStore,
    project: dict,
    epic_id: Optional[str],
    client_requirement_id: Optional[str] = None,
) -> hierarchy_ids.FRAncestry:
    """
    Pick the FR ancestry variant from the ancestors that actually exist.

    The client requirement comes from the epic's own link, or from
    ``client_requirement_id`` when the epic has none. A missing epic degrades
    to standalone and a missing requirement to epic-only.
    """
    code = project.get("code") or ""
    name = project.get("name") or ""

    epic = find_document(store, Collection.EPICS, epic_id)
    if epic is None:
        return hierarchy_ids.StandaloneAncestry(code, name)

    requirement_id = epic.get("client_requirement_id") or client_requirement_id
    requirement = find_document(store, Collection.CLIENT_REQUIREMENTS, requirement_id)
    if requirement is None:
        return hierarchy_ids.EpicOnlyAncestry(code, name, epic.get("name") or "")

    return hierarchy_ids.FullChainAncestry(
        code, name, requirement.get("title") or "", epic.get("name") or ""
    )


def resolve_task_ancestry(
    store: DocumentStore,
    project: dict,
    functional_requirement: Optional[dict],
    sprint_id: Optional[str],
) -> hierarchy_ids.TaskAncestry:
    """
    Pick the task ancestry variant.

    FR + sprint gives the FR-extended id, a sprint alone gives the project
    sprint id, and anything else (including a failed lookup) the bare id.
    """
    code = project.get("code") or ""
    name = project.get("name") or ""
    bare = hierarchy_ids.BareTaskAncestry(code, name)

    if not sprint_id:
        return bare

    sprint = find_document(store, Collection.SPRINTS, sprint_id)
    if sprint is None:
        return bare

    if functional_requirement is not None:
        if not functional_requirement.get("hierarchy_id"):
            return bare
        return hierarchy_ids.FRSprintTaskAncestry(
            functional_requirement["hierarchy_id"], sprint.get("name") or ""
        )

    return hierarchy_ids.SprintTaskAncestry(code, name, sprint.get("name") or "")


def create_with_hierarchy_id(
    store: DocumentStore,
    collection: Collection,
    fields: dict,
    scope: str,
    sibling_count: int,
    make_id: Callable[[int], str],
    max_retries: Optional[int] = None,
) -> dict:
    """
    Create a document whose hierarchy id embeds a sequence number.

    The number comes from the store's atomic counter for ``scope``, never
    lower than ``sibling_count + 1``. On a collision a new number is
    allocated, up to ``max_retries`` attempts.

    Raises:
        HierarchyIdCollisionError: If every attempt collided
    """
    if max_retries is None:
        max_retries = get_settings().hierarchy_id_max_retries
    max_retries = max(max_retries, 1)

    floor = sibling_count + 1
    for attempt in range(1, max_retries + 1):
        number = store.next_sequence(scope, floor)
        hierarchy_id = make_id(number)
        try:
            return store.create(collection, {**fields, "hierarchy_id": hierarchy_id})
        except HierarchyIdCollisionError:
            if attempt == max_retries:
                logger.error(f"Giving up on {scope} after {attempt} colliding hierarchy ids")
                raise
            logger.warning(f"{hierarchy_id} collided (attempt {attempt}); allocating another number")
            floor = number + 1
