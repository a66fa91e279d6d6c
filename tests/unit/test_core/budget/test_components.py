"""Tests for role component tables and phase file discovery."""

from pathlib import Path

from context_budget.core.budget.components import (
    COMPONENT_KEYS,
    SECTION_SPECS,
    components_for_role,
    find_first_phase_dir,
    find_phase_file,
)
from context_budget.core.budget.models import ComponentKind, Role


class TestComponentTables:
    """The per-role component sets are fixed."""

    def test_executor_keys(self):
        assert COMPONENT_KEYS[Role.EXECUTOR] == ("plan", "state", "config")

    def test_planner_keys(self):
        assert COMPONENT_KEYS[Role.PLANNER] == (
            "state",
            "roadmap",
            "requirements",
            "context",
            "research",
        )

    def test_every_component_has_a_section_spec(self):
        for role, keys in COMPONENT_KEYS.items():
            for key in keys:
                assert (role, key) in SECTION_SPECS

    def test_state_sections_per_role(self):
        executor = [r.marker for r in SECTION_SPECS[(Role.EXECUTOR, "state")].sections]
        planner = [r.marker for r in SECTION_SPECS[(Role.PLANNER, "state")].sections]
        assert executor == ["Current Position", "Decisions Made"]
        assert planner == ["Current Position", "Decisions Made", "Pending Todos"]

    def test_plan_uses_plan_kind(self):
        assert SECTION_SPECS[(Role.EXECUTOR, "plan")].kind is ComponentKind.PLAN

    def test_config_restricted_to_profile_keys(self):
        spec = SECTION_SPECS[(Role.EXECUTOR, "config")]
        assert spec.field_keys == ('"model_profile"', '"mode"')
        assert spec.field_scan_lines == 20


class TestComponentsForRole:
    """Tests for components_for_role()."""

    def test_executor_components(self, planning_project):
        components = components_for_role(
            Role.EXECUTOR, planning_project["root"], phase_dir=planning_project["phase_dir"]
        )
        assert [c.key for c in components] == ["plan", "state", "config"]
        by_key = {c.key: c for c in components}
        assert by_key["plan"].source_path == planning_project["plan"]
        assert by_key["state"].source_path == planning_project["state"]
        assert by_key["config"].source_path == planning_project["config"]
        assert all(c.role is Role.EXECUTOR for c in components)

    def test_planner_components(self, planning_project):
        components = components_for_role(
            "planner", planning_project["root"], phase_dir=planning_project["phase_dir"]
        )
        by_key = {c.key: c.source_path for c in components}
        assert by_key["roadmap"] == planning_project["roadmap"]
        assert by_key["requirements"] == planning_project["requirements"]
        assert by_key["context"] == planning_project["context"]
        assert by_key["research"] == planning_project["research"]

    def test_relative_phase_dir_resolved_against_root(self, planning_project):
        components = components_for_role(
            Role.EXECUTOR,
            planning_project["root"],
            phase_dir=Path(".planning/phases/01-setup"),
        )
        assert components[0].source_path == planning_project["plan"]

    def test_without_phase_dir_phase_documents_unresolved(self, planning_project):
        components = components_for_role(Role.PLANNER, planning_project["root"])
        by_key = {c.key: c.source_path for c in components}
        assert by_key["context"] is None
        assert by_key["research"] is None
        assert by_key["state"] == planning_project["state"]

    def test_empty_project_still_lists_every_component(self, tmp_path):
        components = components_for_role(Role.EXECUTOR, tmp_path, phase_dir=tmp_path / "nope")
        assert [c.key for c in components] == ["plan", "state", "config"]
        assert components[0].source_path is None
        assert not components[1].source_path.exists()

    def test_custom_planning_dir(self, tmp_path):
        components = components_for_role(Role.EXECUTOR, tmp_path, planning_dir="docs/planning")
        by_key = {c.key: c.source_path for c in components}
        assert by_key["state"] == tmp_path / "docs" / "planning" / "STATE.md"


class TestPhaseDiscovery:
    """Tests for find_first_phase_dir() and find_phase_file()."""

    def test_first_numbered_phase_dir(self, tmp_path):
        for name in ("02-core", "01-setup", "notes", "1-bad"):
            (tmp_path / name).mkdir()
        assert find_first_phase_dir(tmp_path) == tmp_path / "01-setup"

    def test_no_phase_dirs(self, tmp_path):
        (tmp_path / "notes").mkdir()
        assert find_first_phase_dir(tmp_path) is None
        assert find_first_phase_dir(tmp_path / "missing") is None

    def test_first_matching_file_sorted(self, tmp_path):
        (tmp_path / "01-02-PLAN.md").write_text("b")
        (tmp_path / "01-01-PLAN.md").write_text("a")
        (tmp_path / "01-01-SUMMARY.md").write_text("s")
        assert find_phase_file(tmp_path, "-PLAN.md") == tmp_path / "01-01-PLAN.md"

    def test_no_matching_file(self, tmp_path):
        assert find_phase_file(tmp_path, "-PLAN.md") is None
        assert find_phase_file(None, "-PLAN.md") is None
