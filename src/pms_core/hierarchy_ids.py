"""Hierarchy identifier generation.

Hierarchy ids are human-readable identifiers that encode where an entity sits
in the containment tree Project → Client Requirement → Epic → Functional
Requirement → Task. Each ancestor contributes a short token derived from its
name, followed by a zero-padded sequence number:

    PTES-RAU-EAU-FRL-01      FR under client requirement and epic
    PTES-EAU-FRL-01          FR under an epic only
    PTES-FRL-01              standalone FR
    PTES-FRL-01-S1-LOG-04    task for that FR in sprint 1
    PTES-S1-LOG-04           task in sprint 1 without an FR
    PTES-T04                 plain project task
    PTES-T04.01              first subtask of PTES-T04

Tokens are cosmetic; uniqueness comes from the sequence number. Every
function in this module is pure.
"""
import re
from dataclasses import dataclass
from typing import Union

TOKEN_WIDTH = 3
PROJECT_CODE_WIDTH = 4
SEQUENCE_WIDTH = 2
SEPARATOR = "-"
CHILD_SEPARATOR = "."

_NON_ALPHA = re.compile(r"[^A-Za-z]")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_DIGITS = re.compile(r"\d+")


def extract_token(text: str, width: int = TOKEN_WIDTH) -> str:
    """First ``width`` ASCII letters of ``text``, uppercased."""
    if not text:
        return ""
    return _NON_ALPHA.sub("", text)[:width].upper()


def format_sequence(number: int, width: int = SEQUENCE_WIDTH) -> str:
    return str(number).zfill(width)


def generate_project_code(project_name: str) -> str:
    """Suggest a short code for a new project, e.g. "Test Project" -> "TE"."""
    return extract_token(project_name, 2)


def resolve_project_code(project_code: str, project_name: str) -> str:
    """Stored short code, or the first letters of the project name."""
    return project_code or extract_token(project_name, PROJECT_CODE_WIDTH)


def sprint_token(sprint_name: str) -> str:
    """
    Sprint token: "S" plus the digits of the sprint name.

    "Sprint 1" -> "S1", "Sprint 12 (hardening)" -> "S12", "Alpha" -> "SALP".
    """
    digits = _DIGITS.findall(sprint_name or "")
    if digits:
        return "S" + "".join(digits)
    return "S" + extract_token(sprint_name)


def _join(*parts: str) -> str:
    return SEPARATOR.join(part for part in parts if part)


def generate_sprint_label(project_code: str, project_name: str, sprint_name: str) -> str:
    """Display label for a sprint, e.g. PTES-SSPRINT1."""
    code = resolve_project_code(project_code, project_name)
    return f"{code}{SEPARATOR}S{_NON_ALNUM.sub('', sprint_name or '').upper()}"


def generate_client_requirement_id(
    project_code: str,
    project_name: str,
    requirement_title: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-{ReqCode}-{NN}, e.g. PTES-RAU-01."""
    return _join(
        resolve_project_code(project_code, project_name),
        extract_token(requirement_title),
        format_sequence(sequence_number),
    )


def generate_epic_id(
    project_code: str,
    project_name: str,
    requirement_title: str,
    epic_name: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-{ReqCode}-{EpicCode}-{NN}; the requirement part is omitted when empty."""
    return _join(
        resolve_project_code(project_code, project_name),
        extract_token(requirement_title),
        extract_token(epic_name),
        format_sequence(sequence_number),
    )


def child_id(parent_hierarchy_id: str, child_number: int) -> str:
    """Identifier of the ``child_number``-th child of a parent, e.g. PTES-T04.02."""
    return f"{parent_hierarchy_id}{CHILD_SEPARATOR}{format_sequence(child_number)}"


# ---------------------------------------------------------------------------
# Functional requirement ancestry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StandaloneAncestry:
    """FR with no epic and no client requirement."""

    project_code: str
    project_name: str


@dataclass(frozen=True)
class EpicOnlyAncestry:
    """FR under an epic that is not linked to a client requirement."""

    project_code: str
    project_name: str
    epic_name: str


@dataclass(frozen=True)
class FullChainAncestry:
    """FR under an epic that belongs to a client requirement."""

    project_code: str
    project_name: str
    requirement_title: str
    epic_name: str


FRAncestry = Union[StandaloneAncestry, EpicOnlyAncestry, FullChainAncestry]


def generate_fr_id(
    project_code: str,
    project_name: str,
    requirement_title: str,
    epic_name: str,
    fr_title: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-{ReqCode}-{EpicCode}-{FRCode}-{NN}, e.g. PTES-RAU-EAU-FRL-01."""
    return SEPARATOR.join([
        resolve_project_code(project_code, project_name),
        extract_token(requirement_title),
        extract_token(epic_name),
        extract_token(fr_title),
        format_sequence(sequence_number),
    ])


def generate_fr_id_with_epic_only(
    project_code: str,
    project_name: str,
    epic_name: str,
    fr_title: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-{EpicCode}-{FRCode}-{NN}, e.g. PTES-EAU-FRL-01."""
    return SEPARATOR.join([
        resolve_project_code(project_code, project_name),
        extract_token(epic_name),
        extract_token(fr_title),
        format_sequence(sequence_number),
    ])


def generate_fr_id_standalone(
    project_code: str,
    project_name: str,
    fr_title: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-{FRCode}-{NN}, e.g. PTES-FRL-01."""
    return SEPARATOR.join([
        resolve_project_code(project_code, project_name),
        extract_token(fr_title),
        format_sequence(sequence_number),
    ])


def format_fr_id(ancestry: FRAncestry, fr_title: str, sequence_number: int) -> str:
    """Build an FR hierarchy id for whichever ancestry variant is given."""
    if isinstance(ancestry, FullChainAncestry):
        return generate_fr_id(
            ancestry.project_code,
            ancestry.project_name,
            ancestry.requirement_title,
            ancestry.epic_name,
            fr_title,
            sequence_number,
        )
    if isinstance(ancestry, EpicOnlyAncestry):
        return generate_fr_id_with_epic_only(
            ancestry.project_code,
            ancestry.project_name,
            ancestry.epic_name,
            fr_title,
            sequence_number,
        )
    if isinstance(ancestry, StandaloneAncestry):
        return generate_fr_id_standalone(
            ancestry.project_code,
            ancestry.project_name,
            fr_title,
            sequence_number,
        )
    raise TypeError(f"Unknown FR ancestry: {type(ancestry).__name__}")


# ---------------------------------------------------------------------------
# Task ancestry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BareTaskAncestry:
    """Task linked to neither an FR nor a sprint."""

    project_code: str
    project_name: str = ""


@dataclass(frozen=True)
class SprintTaskAncestry:
    """Task in a sprint without an FR."""

    project_code: str
    project_name: str
    sprint_name: str


@dataclass(frozen=True)
class FRSprintTaskAncestry:
    """Task for an FR, scheduled in a sprint."""

    fr_hierarchy_id: str
    sprint_name: str


TaskAncestry = Union[BareTaskAncestry, SprintTaskAncestry, FRSprintTaskAncestry]


def _task_token(task_title: str, sequence_number: int) -> str:
    return extract_token(task_title) or format_sequence(sequence_number)


def generate_task_id(
    fr_hierarchy_id: str,
    sprint_name: str,
    task_title: str,
    sequence_number: int,
) -> str:
    """{FRId}-S{Sprint}-{TaskCode}-{NN}, e.g. PTES-RAU-EAU-FRL-01-S1-LOG-01."""
    return SEPARATOR.join([
        fr_hierarchy_id,
        sprint_token(sprint_name),
        _task_token(task_title, sequence_number),
        format_sequence(sequence_number),
    ])


def generate_task_id_without_fr(
    project_code: str,
    project_name: str,
    sprint_name: str,
    task_title: str,
    sequence_number: int,
) -> str:
    """{ProjectCode}-S{Sprint}-{TaskCode}-{NN}, e.g. PTES-S1-LOG-01."""
    return SEPARATOR.join([
        resolve_project_code(project_code, project_name),
        sprint_token(sprint_name),
        _task_token(task_title, sequence_number),
        format_sequence(sequence_number),
    ])


def generate_simple_task_id(project_code: str, project_name: str, sequence_number: int) -> str:
    """{ProjectCode}-T{NN}, e.g. PTES-T01. Also the fallback for any failed lookup."""
    code = resolve_project_code(project_code, project_name)
    return f"{code}{SEPARATOR}T{format_sequence(sequence_number)}"


def format_task_id(ancestry: TaskAncestry, task_title: str, sequence_number: int) -> str:
    """Build a top-level task hierarchy id for whichever ancestry variant is given."""
    if isinstance(ancestry, FRSprintTaskAncestry):
        return generate_task_id(
            ancestry.fr_hierarchy_id,
            ancestry.sprint_name,
            task_title,
            sequence_number,
        )
    if isinstance(ancestry, SprintTaskAncestry):
        return generate_task_id_without_fr(
            ancestry.project_code,
            ancestry.project_name,
            ancestry.sprint_name,
            task_title,
            sequence_number,
        )
    if isinstance(ancestry, BareTaskAncestry):
        return generate_simple_task_id(ancestry.project_code, ancestry.project_name, sequence_number)
    raise TypeError(f"Unknown task ancestry: {type(ancestry).__name__}")
