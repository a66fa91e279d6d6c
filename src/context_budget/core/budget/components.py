"""Component tables for each delegation role.

The set of components a role consumes is fixed configuration, not computed:

    executor: plan, state, config
    planner:  state, roadmap, requirements, context, research

Project-level documents live in the planning directory (``.planning`` by
default); per-phase documents live in the phase directory
(``.planning/phases/NN-name``) and are matched by filename suffix.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from context_budget.core.budget.models import (
    Component,
    ComponentKind,
    Role,
    SectionRule,
    SectionSpec,
)

logger = logging.getLogger(__name__)

COMPONENT_SCHEMA_VERSION = "1"

DEFAULT_PLANNING_DIR = ".planning"
DEFAULT_PHASES_SUBDIR = "phases"

STATE_FILE = "STATE.md"
ROADMAP_FILE = "ROADMAP.md"
REQUIREMENTS_FILE = "REQUIREMENTS.md"
CONFIG_FILE = "config.json"

PLAN_SUFFIX = "-PLAN.md"
CONTEXT_SUFFIX = "-CONTEXT.md"
RESEARCH_SUFFIX = "-RESEARCH.md"

_PHASE_DIR_RE = re.compile(r"^\d{2}-.+")

COMPONENT_KEYS: Dict[Role, Tuple[str, ...]] = {
    Role.EXECUTOR: ("plan", "state", "config"),
    Role.PLANNER: ("state", "roadmap", "requirements", "context", "research"),
}

_STATE_POSITION = SectionRule("Current Position", max_lines=10)
_STATE_DECISIONS = SectionRule("Decisions Made", max_lines=20)
_STATE_TODOS = SectionRule("Pending Todos", max_lines=10)

SECTION_SPECS: Dict[Tuple[Role, str], SectionSpec] = {
    (Role.EXECUTOR, "plan"): SectionSpec(kind=ComponentKind.PLAN),
    (Role.EXECUTOR, "state"): SectionSpec(
        kind=ComponentKind.STATE,
        sections=(_STATE_POSITION, _STATE_DECISIONS),
    ),
    (Role.EXECUTOR, "config"): SectionSpec(
        kind=ComponentKind.CONFIG,
        field_keys=('"model_profile"', '"mode"'),
        field_scan_lines=20,
    ),
    (Role.PLANNER, "state"): SectionSpec(
        kind=ComponentKind.STATE,
        sections=(_STATE_POSITION, _STATE_DECISIONS, _STATE_TODOS),
    ),
    (Role.PLANNER, "roadmap"): SectionSpec(
        sections=(SectionRule("Phase", max_lines=20),),
    ),
    (Role.PLANNER, "requirements"): SectionSpec(
        sections=(SectionRule("v1 Requirements", max_lines=20),),
    ),
    (Role.PLANNER, "context"): SectionSpec(
        sections=(SectionRule("Decisions", max_lines=20),),
    ),
    (Role.PLANNER, "research"): SectionSpec(
        sections=(SectionRule("Summary", max_lines=20),),
    ),
}


def find_phase_file(phase_dir: Optional[Path], suffix: str) -> Optional[Path]:
    """Return the first file in ``phase_dir`` ending with ``suffix`` (sorted)."""
    if phase_dir is None or not phase_dir.is_dir():
        return None
    matches = sorted(p for p in phase_dir.iterdir() if p.name.endswith(suffix) and p.is_file())
    return matches[0] if matches else None


def find_first_phase_dir(phases_dir: Path) -> Optional[Path]:
    """Return the first ``NN-name`` directory under ``phases_dir``, if any."""
    if not phases_dir.is_dir():
        return None
    candidates = sorted(
        p for p in phases_dir.iterdir() if p.is_dir() and _PHASE_DIR_RE.match(p.name)
    )
    return candidates[0] if candidates else None


def _source_paths(
    planning_dir: Path, phase_dir: Optional[Path]
) -> Dict[str, Optional[Path]]:
    return {
        "plan": find_phase_file(phase_dir, PLAN_SUFFIX),
        "state": planning_dir / STATE_FILE,
        "config": planning_dir / CONFIG_FILE,
        "roadmap": planning_dir / ROADMAP_FILE,
        "requirements": planning_dir / REQUIREMENTS_FILE,
        "context": find_phase_file(phase_dir, CONTEXT_SUFFIX),
        "research": find_phase_file(phase_dir, RESEARCH_SUFFIX),
    }


def components_for_role(
    role: Role,
    project_root: Path,
    phase_dir: Optional[Path] = None,
    planning_dir: str = DEFAULT_PLANNING_DIR,
) -> List[Component]:
    """Build the component list for a role.

    Args:
        role: Delegation role
        project_root: Directory containing the planning directory
        phase_dir: Phase directory for per-phase documents (relative paths
            are resolved against ``project_root``)
        planning_dir: Planning directory name or path relative to the root

    Returns:
        One Component per key in COMPONENT_KEYS[role], in order. Per-phase
        components without a matching file get ``source_path=None``.
    """
    role = Role(role)
    root = Path(project_root)
    planning = root / planning_dir
    phase = None
    if phase_dir is not None:
        phase = Path(phase_dir)
        if not phase.is_absolute():
            phase = root / phase

    paths = _source_paths(planning, phase)
    components = [
        Component(
            role=role,
            key=key,
            source_path=paths[key],
            section_spec=SECTION_SPECS[(role, key)],
        )
        for key in COMPONENT_KEYS[role]
    ]
    logger.debug(
        "Resolved %d %s components under %s (phase_dir=%s)",
        len(components),
        role.value,
        planning,
        phase,
    )
    return components
