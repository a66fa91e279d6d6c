"""
Root pytest configuration and shared fixtures.

Provides a sample planning project and resets process-wide state
(profile registry, CLI context, metrics) between tests.
"""

import json
import logging
from pathlib import Path
from typing import Dict

import pytest

from context_budget.cli.registry import set_context
from context_budget.core.budget.profiles import reset_registry
from context_budget.core.context import correlation_id_var
from context_budget.core.observability import get_metrics

# Environment variables read by the configuration layer and the CLI
BUDGET_ENV_VARS = (
    "CONTEXT_BUDGET_CONFIG_FILE",
    "CONTEXT_BUDGET_LOG_LEVEL",
    "CONTEXT_BUDGET_CHARS_PER_TOKEN",
    "CONTEXT_BUDGET_FRONTMATTER_LINES",
    "CONTEXT_BUDGET_PLANNING_DIR",
    "CONTEXT_BUDGET_DEFAULT_PROFILE",
    "CONTEXT_BUDGET_MODEL",
    "CONTEXT_BUDGET_PROFILE",
    "CONTEXT_BUDGET_PROJECT_ROOT",
)

STATE_MD = """\
# Project State

## Project Reference
See: .planning/PROJECT.md

## Current Position
Phase: 1 of 3 (Setup)
Plan: 1 of 2 in current phase
Status: In progress

## Decisions Made
- Use click for the CLI
- Keep estimates heuristic

## Pending Todos
- Write the README

## Session Continuity
Last session: setup
"""

CONFIG_JSON = {
    "mode": "yolo",
    "depth": "standard",
    "model_profile": "balanced",
    "parallelization": {"enabled": True},
}

ROADMAP_MD = """\
# Roadmap

## Phase 1: Setup
Goal: scaffold the package

## Phase 2: Core
Goal: implement the calculator
"""

REQUIREMENTS_MD = """\
# Requirements

## v1 Requirements
- REQ-01: estimate tokens
- REQ-02: validate budgets

## v2 Requirements
- REQ-10: exact tokenizers
"""

PLAN_MD = """\
---
phase: 01-setup
plan: 01
type: execute
---

# Plan 01: Scaffold package

<tasks>
<task type="auto">
<name>Create package layout</name>
<action>Add src/ layout and pyproject.toml</action>
<verify>pip install -e . succeeds</verify>
</task>
</tasks>
"""

CONTEXT_MD = """\
# Phase 1 Context

## Decisions
- src layout

## Deferred
- docs site
"""

RESEARCH_MD = """\
# Phase 1 Research

## Summary
Hatchling is enough.

## Sources
- packaging guide
"""


def write_planning_project(root: Path) -> Dict[str, Path]:
    """Write a complete planning project under ``root`` and return its paths."""
    planning = root / ".planning"
    phase = planning / "phases" / "01-setup"
    phase.mkdir(parents=True)

    paths = {
        "state": planning / "STATE.md",
        "config": planning / "config.json",
        "roadmap": planning / "ROADMAP.md",
        "requirements": planning / "REQUIREMENTS.md",
        "plan": phase / "01-01-PLAN.md",
        "context": phase / "01-CONTEXT.md",
        "research": phase / "01-RESEARCH.md",
        "phase_dir": phase,
    }
    paths["state"].write_text(STATE_MD, encoding="utf-8")
    paths["config"].write_text(json.dumps(CONFIG_JSON, indent=2), encoding="utf-8")
    paths["roadmap"].write_text(ROADMAP_MD, encoding="utf-8")
    paths["requirements"].write_text(REQUIREMENTS_MD, encoding="utf-8")
    paths["plan"].write_text(PLAN_MD, encoding="utf-8")
    paths["context"].write_text(CONTEXT_MD, encoding="utf-8")
    paths["research"].write_text(RESEARCH_MD, encoding="utf-8")
    return paths


@pytest.fixture(autouse=True)
def _isolate_budget_state(monkeypatch):
    """Clear budget env vars and reset process-wide state around each test."""
    package_logger = logging.getLogger("context_budget")
    for name in BUDGET_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_registry()
    set_context(None)
    get_metrics().reset()
    correlation_token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(correlation_token)
    reset_registry()
    set_context(None)
    get_metrics().reset()
    # CLI runs attach a stream handler bound to the runner's stderr
    for handler in list(package_logger.handlers):
        if handler.get_name() == "context_budget":
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def planning_project(tmp_path) -> Dict[str, Path]:
    """A project root with a full .planning tree (one phase)."""
    paths = write_planning_project(tmp_path)
    paths["root"] = tmp_path
    return paths
