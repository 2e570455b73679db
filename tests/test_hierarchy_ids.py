"""Tests for hierarchy identifier generation."""
import pytest

from pms_core.hierarchy_ids import (
    BareTaskAncestry,
    EpicOnlyAncestry,
    FRSprintTaskAncestry,
    FullChainAncestry,
    SprintTaskAncestry,
    StandaloneAncestry,
    child_id,
    extract_token,
    format_fr_id,
    format_sequence,
    format_task_id,
    generate_client_requirement_id,
    generate_epic_id,
    generate_fr_id,
    generate_fr_id_standalone,
    generate_fr_id_with_epic_only,
    generate_project_code,
    generate_simple_task_id,
    generate_sprint_label,
    generate_task_id,
    generate_task_id_without_fr,
    resolve_project_code,
    sprint_token,
)


class TestTokens:
    """Test name → token normalisation."""

    def test_token_is_first_three_letters_uppercased(self):
        assert extract_token("Reporting") == "REP"
        assert extract_token("export csv") == "EXP"

    def test_token_drops_digits_and_punctuation(self):
        assert extract_token("3D printing") == "DPR"
        assert extract_token("e-mail") == "EMA"

    def test_token_of_short_or_empty_name(self):
        assert extract_token("Ux") == "UX"
        assert extract_token("") == ""
        assert extract_token("123 !!") == ""

    def test_sequence_is_zero_padded_not_truncated(self):
        assert format_sequence(3) == "03"
        assert format_sequence(42) == "42"
        assert format_sequence(123) == "123"

    def test_project_code_falls_back_to_name(self):
        """Stored code wins; otherwise the first four letters of the name."""
        assert resolve_project_code("PTES", "Payment Test System") == "PTES"
        assert resolve_project_code("", "Payment Test System") == "PAYM"

    def test_generated_project_code(self):
        assert generate_project_code("Test Project") == "TE"

    def test_sprint_token(self):
        assert sprint_token("Sprint 1") == "S1"
        assert sprint_token("Sprint 12 (hardening)") == "S12"
        assert sprint_token("Alpha") == "SALP"

    def test_sprint_label(self):
        assert generate_sprint_label("PTES", "", "Sprint 1") == "PTES-SSPRINT1"


class TestRequirementAndEpicIds:
    """Test client requirement and epic identifiers."""

    def test_client_requirement_id(self):
        assert generate_client_requirement_id("PTES", "", "Refund Automation", 1) == "PTES-REF-01"

    def test_epic_id_with_requirement(self):
        assert generate_epic_id("PTES", "", "Refund Automation", "Authentication", 2) == "PTES-REF-AUT-02"

    def test_epic_id_without_requirement(self):
        assert generate_epic_id("PTES", "", "", "Authentication", 2) == "PTES-AUT-02"


class TestFunctionalRequirementIds:
    """Test the three FR ancestry shapes."""

    def test_full_chain(self):
        fr_id = generate_fr_id("PTES", "", "Refund Automation", "Authentication", "Login flow", 1)
        assert fr_id == "PTES-REF-AUT-LOG-01"

    def test_epic_only(self):
        assert generate_fr_id_with_epic_only("PTE", "", "Reporting", "Export CSV", 3) == "PTE-REP-EXP-03"

    def test_standalone(self):
        assert generate_fr_id_standalone("PTES", "", "Login flow", 1) == "PTES-LOG-01"

    def test_shapes_are_distinguishable(self):
        """Token count tells the ancestry apart."""
        full = generate_fr_id("PTES", "", "Refund Automation", "Authentication", "Login flow", 1)
        epic_only = generate_fr_id_with_epic_only("PTES", "", "Authentication", "Login flow", 1)
        standalone = generate_fr_id_standalone("PTES", "", "Login flow", 1)

        assert len(full.split("-")) == 5
        assert len(epic_only.split("-")) == 4
        assert len(standalone.split("-")) == 3

    def test_deterministic(self):
        """Same inputs, same id."""
        first = generate_fr_id_with_epic_only("PTE", "", "Reporting", "Export CSV", 3)
        second = generate_fr_id_with_epic_only("PTE", "", "Reporting", "Export CSV", 3)
        assert first == second

    def test_format_dispatches_on_ancestry(self):
        assert format_fr_id(
            FullChainAncestry("PTES", "", "Refund Automation", "Authentication"), "Login flow", 1
        ) == "PTES-REF-AUT-LOG-01"
        assert format_fr_id(EpicOnlyAncestry("PTE", "", "Reporting"), "Export CSV", 3) == "PTE-REP-EXP-03"
        assert format_fr_id(StandaloneAncestry("PTES", ""), "Login flow", 1) == "PTES-LOG-01"

    def test_format_uses_project_name_without_code(self):
        assert format_fr_id(StandaloneAncestry("", "Payment Test System"), "Login flow", 1) == "PAYM-LOG-01"

    def test_format_rejects_unknown_ancestry(self):
        with pytest.raises(TypeError):
            format_fr_id(BareTaskAncestry("PTES"), "Login flow", 1)

    def test_child_requirement_id(self):
        assert child_id("PTES-LOG-01", 1) == "PTES-LOG-01.01"


class TestTaskIds:
    """Test the task ancestry shapes."""

    def test_fr_and_sprint(self):
        task_id = generate_task_id("PTES-REF-AUT-LOG-01", "Sprint 1", "Login form", 4)
        assert task_id == "PTES-REF-AUT-LOG-01-S1-LOG-04"
        assert task_id.startswith("PTES-REF-AUT-LOG-01-")

    def test_sprint_without_fr(self):
        assert generate_task_id_without_fr("PTES", "", "Sprint 1", "Login form", 4) == "PTES-S1-LOG-04"

    def test_empty_task_token_falls_back_to_sequence(self):
        assert generate_task_id_without_fr("PTES", "", "Sprint 2", "123", 5) == "PTES-S2-05-05"

    def test_simple_task(self):
        assert generate_simple_task_id("PTES", "", 4) == "PTES-T04"
        assert generate_simple_task_id("", "Payment Test System", 4) == "PAYM-T04"

    def test_subtasks_extend_any_parent(self):
        for parent in ("PTES-T04", "PTES-S1-LOG-04", "PTES-REF-AUT-LOG-01-S1-LOG-04"):
            assert [child_id(parent, n) for n in (1, 2, 3)] == [
                f"{parent}.01",
                f"{parent}.02",
                f"{parent}.03",
            ]

    def test_format_dispatches_on_ancestry(self):
        assert format_task_id(
            FRSprintTaskAncestry("PTES-LOG-01", "Sprint 3"), "Write tests", 2
        ) == "PTES-LOG-01-S3-WRI-02"
        assert format_task_id(SprintTaskAncestry("PTES", "", "Sprint 3"), "Write tests", 2) == "PTES-S3-WRI-02"
        assert format_task_id(BareTaskAncestry("PTES"), "Write tests", 2) == "PTES-T02"

    def test_format_rejects_unknown_ancestry(self):
        with pytest.raises(TypeError):
            format_task_id(StandaloneAncestry("PTES", ""), "Write tests", 1)
