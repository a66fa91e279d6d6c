"""Tests for configuration loading (TOML + environment)."""

import logging

import pytest

from context_budget.config import (
    BudgetConfig,
    DetectionConfig,
    EstimationConfig,
    WorkspaceConfig,
)
from context_budget.core.budget.errors import InvalidProfileDefinitionError
from context_budget.core.budget.profiles import get_registry

FULL_TOML = """
[logging]
level = "debug"
structured = true

[estimation]
chars_per_token = 3
frontmatter_lines = 12
max_workers = 4

[workspace]
planning_dir = "docs/planning"

[detection]
default_profile = "budget"

[[detection.rules]]
pattern = "my-local-model"
profile = "tiny"

[profiles.budget]
target_percent = 20

[profiles.huge]
capacity_tokens = 1000000
target_percent = 10
strategy = "full"
"""


class TestDefaults:
    def test_defaults(self, tmp_path):
        config = BudgetConfig.from_env(search_root=tmp_path)
        assert config.estimation.chars_per_token == 4
        assert config.estimation.frontmatter_lines == 30
        assert config.workspace.planning_dir == ".planning"
        assert config.detection.default_profile == "balanced"
        assert config.profiles == {}
        assert config.config_file is None

    def test_default_phases_path(self, tmp_path):
        assert WorkspaceConfig().phases_path(tmp_path) == tmp_path / ".planning" / "phases"

    def test_explicit_phases_path(self, tmp_path):
        workspace = WorkspaceConfig(phases_dir="work/phases")
        assert workspace.phases_path(tmp_path) == tmp_path / "work" / "phases"


class TestTomlLoading:
    """Tests for TOML config files."""

    def test_full_file(self, tmp_path):
        path = tmp_path / "context-budget.toml"
        path.write_text(FULL_TOML)
        config = BudgetConfig.from_env(config_file=str(path))

        assert config.config_file == path
        assert config.log_level == "DEBUG"
        assert config.structured_logging is True
        assert config.estimation == EstimationConfig(3, 12, 4)
        assert config.workspace.planning_dir == "docs/planning"
        assert config.detection.default_profile == "budget"
        assert [r.pattern for r in config.detection.rules] == ["my-local-model"]
        assert config.profiles["huge"]["capacity_tokens"] == 1_000_000

    @pytest.mark.parametrize(
        "name", ["context-budget.toml", ".context-budget.toml", ".planning/context-budget.toml"]
    )
    def test_default_locations(self, tmp_path, name):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text('[estimation]\nchars_per_token = 5\n')
        config = BudgetConfig.from_env(search_root=tmp_path)
        assert config.estimation.chars_per_token == 5
        assert config.config_file == path

    def test_env_config_file(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere.toml"
        path.write_text('[detection]\ndefault_profile = "tiny"\n')
        monkeypatch.setenv("CONTEXT_BUDGET_CONFIG_FILE", str(path))
        assert BudgetConfig.from_env(search_root=tmp_path).detection.default_profile == "tiny"

    def test_missing_file_keeps_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="context_budget.config"):
            config = BudgetConfig.from_env(config_file=str(tmp_path / "nope.toml"))
        assert config.estimation.chars_per_token == 4
        assert "Config file not found" in caplog.text

    def test_malformed_toml_keeps_defaults(self, tmp_path, caplog):
        path = tmp_path / "bad.toml"
        path.write_text("[estimation\nchars_per_token = ")
        with caplog.at_level(logging.ERROR, logger="context_budget.config"):
            config = BudgetConfig.from_env(config_file=str(path))
        assert config.config_file is None
        assert "Error loading config file" in caplog.text

    def test_invalid_estimation_section_ignored(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text("[estimation]\nchars_per_token = 0\n")
        config = BudgetConfig.from_env(config_file=str(path))
        assert config.estimation.chars_per_token == 4

    def test_malformed_detection_rule_skipped(self):
        detection = DetectionConfig.from_toml_dict(
            {"rules": [{"pattern": "x"}, {"pattern": "y", "profile": "tiny"}]}
        )
        assert [r.pattern for r in detection.rules] == ["y"]

    def test_detection_rules_must_be_an_array(self, caplog):
        with caplog.at_level(logging.WARNING, logger="context_budget.config"):
            detection = DetectionConfig.from_toml_dict({"rules": "opus"})
        assert detection.rules == []
        assert "expected an array of tables" in caplog.text

    def test_scalar_profiles_value_ignored(self, tmp_path, caplog):
        path = tmp_path / "c.toml"
        path.write_text("profiles = 3\n\n[estimation]\nchars_per_token = 5\n")
        with caplog.at_level(logging.ERROR, logger="context_budget.config"):
            config = BudgetConfig.from_env(config_file=str(path))
        assert config.profiles == {}
        assert config.estimation.chars_per_token == 5
        assert "Invalid [profiles] section" in caplog.text

    def test_non_table_profile_entry_skipped(self, tmp_path, caplog):
        path = tmp_path / "c.toml"
        path.write_text('[profiles]\nbroken = "yes"\n\n[profiles.huge]\ncapacity_tokens = 1000\ntarget_percent = 10\n')
        with caplog.at_level(logging.WARNING, logger="context_budget.config"):
            config = BudgetConfig.from_env(config_file=str(path))
        assert list(config.profiles) == ["huge"]
        assert "Ignoring [profiles] entry 'broken'" in caplog.text

    def test_scalar_detection_section_ignored(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text('detection = "tiny"\n')
        config = BudgetConfig.from_env(config_file=str(path))
        assert config.detection.rules == []
        assert config.detection.default_profile == "balanced"


class TestEnvironmentOverrides:
    """Environment variables take precedence over TOML."""

    def test_env_beats_toml(self, tmp_path, monkeypatch):
        path = tmp_path / "context-budget.toml"
        path.write_text(FULL_TOML)
        monkeypatch.setenv("CONTEXT_BUDGET_CHARS_PER_TOKEN", "6")
        monkeypatch.setenv("CONTEXT_BUDGET_FRONTMATTER_LINES", "7")
        monkeypatch.setenv("CONTEXT_BUDGET_PLANNING_DIR", "plans")
        monkeypatch.setenv("CONTEXT_BUDGET_DEFAULT_PROFILE", "quality")
        monkeypatch.setenv("CONTEXT_BUDGET_LOG_LEVEL", "error")

        config = BudgetConfig.from_env(search_root=tmp_path)
        assert config.estimation.chars_per_token == 6
        assert config.estimation.frontmatter_lines == 7
        assert config.workspace.planning_dir == "plans"
        assert config.detection.default_profile == "quality"
        assert config.log_level == "ERROR"

    @pytest.mark.parametrize("value", ["four", "0", "-2"])
    def test_invalid_chars_per_token_ignored(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("CONTEXT_BUDGET_CHARS_PER_TOKEN", value)
        assert BudgetConfig.from_env(search_root=tmp_path).estimation.chars_per_token == 4

    def test_invalid_frontmatter_lines_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONTEXT_BUDGET_FRONTMATTER_LINES", "lots")
        assert BudgetConfig.from_env(search_root=tmp_path).estimation.frontmatter_lines == 30


class TestRegistryAndDetector:
    """Profiles and detection rules built from configuration."""

    def test_build_registry_applies_overrides(self, tmp_path):
        path = tmp_path / "context-budget.toml"
        path.write_text(FULL_TOML)
        registry = BudgetConfig.from_env(search_root=tmp_path).build_registry()
        assert registry.resolve("budget").budget_tokens == 6_400
        assert registry.resolve("huge").budget_tokens == 100_000
        # the process-wide registry is untouched
        assert "huge" not in get_registry()

    def test_build_registry_rejects_invalid_profiles(self):
        config = BudgetConfig(profiles={"bad": {"capacity_tokens": 100, "target_percent": 500}})
        with pytest.raises(InvalidProfileDefinitionError):
            config.build_registry()

    def test_configured_rules_tried_first(self, tmp_path):
        path = tmp_path / "context-budget.toml"
        path.write_text(FULL_TOML)
        config = BudgetConfig.from_env(search_root=tmp_path)
        detector = config.build_detector(config.build_registry())
        assert detector.detect("my-local-model-opus") == "tiny"
        assert detector.detect("claude-3-opus") == "quality"
        assert detector.detect("unknown") == "budget"


class TestLoggingSetup:
    def test_setup_logging_replaces_handler(self):
        config = BudgetConfig(log_level="DEBUG")
        config.setup_logging()
        config.setup_logging()
        logger = logging.getLogger("context_budget")
        handlers = [h for h in logger.handlers if h.get_name() == "context_budget"]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
        logger.removeHandler(handlers[0])
        logger.setLevel(logging.NOTSET)
