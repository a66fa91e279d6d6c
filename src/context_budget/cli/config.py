"""CLI configuration and project resolution.

Holds the effective configuration for a CLI command, including any
overrides from command-line options.
"""

from pathlib import Path
from typing import Optional

from context_budget.config import BudgetConfig
from context_budget.core.budget.detection import ProfileDetector
from context_budget.core.budget.profiles import ProfileRegistry


class CLIContext:
    """CLI execution context with resolved configuration."""

    def __init__(
        self,
        project_root: Optional[str] = None,
        config: Optional[BudgetConfig] = None,
    ):
        """Initialize CLI context.

        Args:
            project_root: Project root override from --project-root
                (defaults to the current directory).
            config: Budget configuration (loaded from env/TOML if not provided).
        """
        self.project_root = Path(project_root).resolve() if project_root else Path.cwd()
        self._config = config or BudgetConfig.from_env(search_root=self.project_root)
        self._registry: Optional[ProfileRegistry] = None

    @property
    def config(self) -> BudgetConfig:
        return self._config

    @property
    def planning_dir(self) -> Path:
        return self._config.workspace.planning_path(self.project_root)

    @property
    def phases_dir(self) -> Path:
        return self._config.workspace.phases_path(self.project_root)

    @property
    def registry(self) -> ProfileRegistry:
        """Profile registry with configured overrides applied (built on first use).

        Raises:
            InvalidProfileDefinitionError: If a configured profile is invalid
        """
        if self._registry is None:
            self._registry = self._config.build_registry()
        return self._registry

    def detector(self) -> ProfileDetector:
        return self._config.build_detector(self.registry)


def create_context(
    project_root: Optional[str] = None,
    config_file: Optional[str] = None,
) -> CLIContext:
    """Create a CLI context with optional overrides.

    Args:
        project_root: Optional project root override.
        config_file: Optional TOML config path (takes precedence over
            CONTEXT_BUDGET_CONFIG_FILE and the default locations).
    """
    root = Path(project_root).resolve() if project_root else Path.cwd()
    config = BudgetConfig.from_env(config_file=config_file, search_root=root)
    return CLIContext(project_root=str(root), config=config)
