"""Context budget manager.

Classifies a model into a capacity profile, estimates how many tokens the
planning context for a delegated role would consume under the profile's
sparsification strategy, and accepts or rejects the delegation.

Usage:
    from pathlib import Path
    from context_budget.core.budget import (
        Role,
        calculate,
        components_for_role,
        detect,
        get_registry,
        validate,
    )

    profile = get_registry().resolve(detect("claude-3-haiku"))
    components = components_for_role(Role.EXECUTOR, Path("."), phase_dir=".planning/phases/01-setup")
    estimate = validate(calculate(Role.EXECUTOR, profile, components), profile)
    estimate.within_budget
"""

from context_budget.core.budget.calculator import calculate, read_component_text
from context_budget.core.budget.components import (
    COMPONENT_KEYS,
    COMPONENT_SCHEMA_VERSION,
    SECTION_SPECS,
    components_for_role,
    find_first_phase_dir,
    find_phase_file,
)
from context_budget.core.budget.detection import (
    DEFAULT_DETECTION_RULES,
    DetectionRule,
    ProfileDetector,
    detect,
    resolve_profile_name,
)
from context_budget.core.budget.errors import (
    BudgetError,
    InvalidProfileDefinitionError,
    IOReadError,
    UnknownProfileError,
)
from context_budget.core.budget.estimation import (
    CHARS_PER_TOKEN,
    estimate_text_tokens,
    estimate_tokens,
)
from context_budget.core.budget.models import (
    BudgetEstimate,
    Component,
    ComponentKind,
    Profile,
    Role,
    SectionRule,
    SectionSpec,
    SparsificationResult,
    Strategy,
)
from context_budget.core.budget.profiles import (
    DEFAULT_PROFILE_NAME,
    DEFAULT_PROFILES,
    ProfileRegistry,
    apply_profile_overrides,
    get_registry,
    profile_from_mapping,
    reset_registry,
)
from context_budget.core.budget.report import (
    format_header,
    format_report,
    suggest_remediation,
    summary_lines,
)
from context_budget.core.budget.sparsify import (
    DEFAULT_FRONTMATTER_LINES,
    extract_frontmatter,
    extract_section,
)
from context_budget.core.budget.validator import validate

__all__ = [
    # Models
    "BudgetEstimate",
    "Component",
    "ComponentKind",
    "Profile",
    "Role",
    "SectionRule",
    "SectionSpec",
    "SparsificationResult",
    "Strategy",
    # Errors
    "BudgetError",
    "InvalidProfileDefinitionError",
    "IOReadError",
    "UnknownProfileError",
    # Registry
    "DEFAULT_PROFILE_NAME",
    "DEFAULT_PROFILES",
    "ProfileRegistry",
    "apply_profile_overrides",
    "get_registry",
    "profile_from_mapping",
    "reset_registry",
    # Estimation
    "CHARS_PER_TOKEN",
    "estimate_text_tokens",
    "estimate_tokens",
    # Sparsification
    "DEFAULT_FRONTMATTER_LINES",
    "extract_frontmatter",
    "extract_section",
    # Components
    "COMPONENT_KEYS",
    "COMPONENT_SCHEMA_VERSION",
    "SECTION_SPECS",
    "components_for_role",
    "find_first_phase_dir",
    "find_phase_file",
    # Calculation and validation
    "calculate",
    "read_component_text",
    "validate",
    # Detection
    "DEFAULT_DETECTION_RULES",
    "DetectionRule",
    "ProfileDetector",
    "detect",
    "resolve_profile_name",
    # Reporting
    "format_header",
    "format_report",
    "suggest_remediation",
    "summary_lines",
]
