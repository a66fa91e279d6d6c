"""
Configuration for context-budget.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (context-budget.toml)
3. Default values (lowest priority)

Environment variables:
- CONTEXT_BUDGET_CONFIG_FILE: Path to TOML config file
- CONTEXT_BUDGET_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- CONTEXT_BUDGET_CHARS_PER_TOKEN: Characters assumed per token (default: 4)
- CONTEXT_BUDGET_FRONTMATTER_LINES: Frontmatter region size in lines (default: 30)
- CONTEXT_BUDGET_PLANNING_DIR: Planning directory relative to the project root
- CONTEXT_BUDGET_DEFAULT_PROFILE: Profile used when detection finds no match

Profile tables and extra detection rules can only be set in TOML:

    [profiles.budget]
    capacity_tokens = 32000
    target_percent = 20

    [[detection.rules]]
    pattern = "my-local-model"
    profile = "tiny"
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from context_budget.core.budget.components import (
    DEFAULT_PHASES_SUBDIR,
    DEFAULT_PLANNING_DIR,
)
from context_budget.core.budget.detection import (
    DEFAULT_DETECTION_RULES,
    DetectionRule,
    ProfileDetector,
)
from context_budget.core.budget.estimation import CHARS_PER_TOKEN
from context_budget.core.budget.profiles import (
    DEFAULT_PROFILE_NAME,
    ProfileRegistry,
    apply_profile_overrides,
)
from context_budget.core.budget.sparsify import DEFAULT_FRONTMATTER_LINES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = (
    "context-budget.toml",
    ".context-budget.toml",
    f"{DEFAULT_PLANNING_DIR}/context-budget.toml",
)

_HANDLER_NAME = "context_budget"


@dataclass
class EstimationConfig:
    """Token estimation settings.

    Attributes:
        chars_per_token: Characters assumed per token
        frontmatter_lines: Leading lines kept by the sparse strategies
        max_workers: Read component files on a thread pool when > 1
    """

    chars_per_token: int = CHARS_PER_TOKEN
    frontmatter_lines: int = DEFAULT_FRONTMATTER_LINES
    max_workers: int = 1

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "EstimationConfig":
        """Create config from TOML dict (typically [estimation] section)."""
        config = cls(
            chars_per_token=int(data.get("chars_per_token", CHARS_PER_TOKEN)),
            frontmatter_lines=int(data.get("frontmatter_lines", DEFAULT_FRONTMATTER_LINES)),
            max_workers=int(data.get("max_workers", 1)),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.chars_per_token <= 0:
            raise ValueError(f"chars_per_token must be positive, got {self.chars_per_token}")
        if self.frontmatter_lines < 0:
            raise ValueError(
                f"frontmatter_lines must be non-negative, got {self.frontmatter_lines}"
            )


@dataclass
class WorkspaceConfig:
    """Where planning documents live, relative to the project root."""

    planning_dir: str = DEFAULT_PLANNING_DIR
    phases_dir: Optional[str] = None

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "WorkspaceConfig":
        phases = data.get("phases_dir")
        return cls(
            planning_dir=str(data.get("planning_dir", DEFAULT_PLANNING_DIR)),
            phases_dir=str(phases) if phases else None,
        )

    def planning_path(self, project_root: Path) -> Path:
        return Path(project_root) / self.planning_dir

    def phases_path(self, project_root: Path) -> Path:
        """Phases directory; defaults to ``<planning_dir>/phases``."""
        if self.phases_dir:
            return Path(project_root) / self.phases_dir
        return self.planning_path(project_root) / DEFAULT_PHASES_SUBDIR


@dataclass
class DetectionConfig:
    """Profile detection settings.

    Attributes:
        default_profile: Profile used when no rule matches
        rules: Extra rules tried before the built-in ones
    """

    default_profile: str = DEFAULT_PROFILE_NAME
    rules: List[DetectionRule] = field(default_factory=list)

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "DetectionConfig":
        raw_rules = data.get("rules", [])
        if not isinstance(raw_rules, list):
            logger.warning("Ignoring detection.rules: expected an array of tables, got %r", raw_rules)
            raw_rules = []
        rules = []
        for entry in raw_rules:
            if not isinstance(entry, dict) or "pattern" not in entry or "profile" not in entry:
                logger.warning("Ignoring malformed detection rule: %r", entry)
                continue
            rules.append(DetectionRule(str(entry["pattern"]), str(entry["profile"])))
        return cls(
            default_profile=str(data.get("default_profile", DEFAULT_PROFILE_NAME)),
            rules=rules,
        )

    def all_rules(self) -> List[DetectionRule]:
        """Configured rules followed by the built-in rules."""
        return [*self.rules, *DEFAULT_DETECTION_RULES]


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return None


@dataclass
class BudgetConfig:
    """Budget manager configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "WARNING"
    structured_logging: bool = False

    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)

    # Raw [profiles.NAME] tables; validated when the registry is built
    profiles: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    config_file: Optional[Path] = None

    @classmethod
    def from_env(
        cls,
        config_file: Optional[str] = None,
        search_root: Optional[Path] = None,
    ) -> "BudgetConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values

        Args:
            config_file: Explicit TOML path
            search_root: Directory searched for the default config files
                (defaults to the current directory)
        """
        config = cls()

        toml_path = config_file or os.environ.get("CONTEXT_BUDGET_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            base = Path(search_root) if search_root is not None else Path.cwd()
            for default_path in DEFAULT_CONFIG_FILES:
                candidate = base / default_path
                if candidate.exists():
                    config._load_toml(candidate)
                    break

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        self.config_file = path

        for section in ("logging", "estimation", "workspace", "detection", "profiles"):
            if section in data and not isinstance(data[section], dict):
                logger.error(f"Invalid [{section}] section in {path}: expected a table")
                del data[section]

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        if "estimation" in data:
            try:
                self.estimation = EstimationConfig.from_toml_dict(data["estimation"])
            except (TypeError, ValueError) as e:
                logger.error(f"Invalid [estimation] section in {path}: {e}")

        if "workspace" in data:
            self.workspace = WorkspaceConfig.from_toml_dict(data["workspace"])

        if "detection" in data:
            self.detection = DetectionConfig.from_toml_dict(data["detection"])

        if "profiles" in data:
            self.profiles = {}
            for name, table in data["profiles"].items():
                if not isinstance(table, dict):
                    logger.warning(f"Ignoring [profiles] entry {name!r} in {path}: expected a table")
                    continue
                self.profiles[str(name)] = dict(table)

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.environ.get("CONTEXT_BUDGET_LOG_LEVEL"):
            self.log_level = level.upper()

        chars = _env_int("CONTEXT_BUDGET_CHARS_PER_TOKEN")
        if chars is not None:
            if chars > 0:
                self.estimation.chars_per_token = chars
            else:
                logger.warning("Ignoring CONTEXT_BUDGET_CHARS_PER_TOKEN=%d: must be positive", chars)

        lines = _env_int("CONTEXT_BUDGET_FRONTMATTER_LINES")
        if lines is not None:
            if lines >= 0:
                self.estimation.frontmatter_lines = lines
            else:
                logger.warning(
                    "Ignoring CONTEXT_BUDGET_FRONTMATTER_LINES=%d: must be non-negative", lines
                )

        if planning := os.environ.get("CONTEXT_BUDGET_PLANNING_DIR"):
            self.workspace.planning_dir = planning

        if default_profile := os.environ.get("CONTEXT_BUDGET_DEFAULT_PROFILE"):
            self.detection.default_profile = default_profile

    def build_registry(self) -> ProfileRegistry:
        """Create a registry holding the built-in profiles plus [profiles] overrides.

        Raises:
            InvalidProfileDefinitionError: If an override table is invalid
        """
        registry = ProfileRegistry()
        if self.profiles:
            applied = apply_profile_overrides(registry, self.profiles)
            logger.debug("Applied profile overrides: %s", ", ".join(applied))
        return registry

    def build_detector(self, registry: Optional[ProfileRegistry] = None) -> ProfileDetector:
        return ProfileDetector(
            rules=self.detection.all_rules(),
            default=self.detection.default_profile,
            registry=registry,
        )

    def setup_logging(self) -> None:
        """Configure the ``context_budget`` logger based on settings."""
        level = getattr(logging, self.log_level, logging.WARNING)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
                '"logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")

        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("context_budget")
        for existing in list(root_logger.handlers):
            if existing.get_name() == _HANDLER_NAME:
                root_logger.removeHandler(existing)
        root_logger.setLevel(level)
        root_logger.addHandler(handler)
