"""Strategy-driven content sparsification.

Reduces a component's document to the subset a delegated role needs:
the whole file, frontmatter plus named sections, frontmatter only, or
(almost) nothing.

Provides:
    - apply(): Apply a strategy to raw content
    - extract_frontmatter(): Leading lines (or key lines) of a document
    - extract_section(): A heading-delimited section, capped in lines
    - extract_plan_fields(): Title/action lines of a plan document
"""

import re
from typing import List, Sequence

from context_budget.core.budget.models import (
    ComponentKind,
    SectionSpec,
    SparsificationResult,
    Strategy,
)

# Leading lines treated as the document's frontmatter region
DEFAULT_FRONTMATTER_LINES = 30

# Named sections honored per component under sparse_balanced
MAX_SECTIONS = 3

_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s")

_PLAN_FIELD_RE = re.compile(
    r"^\s*(?:[-*]\s+)?(?:title|name|objective|action)\s*:"
    r"|<(?:name|action)>"
    r"|^#\s+\S",
    re.IGNORECASE,
)


def _is_heading(line: str) -> bool:
    return bool(_HEADING_RE.match(line))


def _join(parts: Sequence[str]) -> str:
    """Concatenate text blocks, keeping each block on its own lines."""
    out = ""
    for part in parts:
        if not part:
            continue
        if out and not out.endswith("\n"):
            out += "\n"
        out += part
    return out


def extract_frontmatter(
    content: str,
    lines: int = DEFAULT_FRONTMATTER_LINES,
    spec: SectionSpec | None = None,
) -> str:
    """Return the frontmatter region of a document.

    By default this is the first ``lines`` lines. When the section spec names
    ``field_keys`` (structured config files), it is instead every line
    within the first ``spec.field_scan_lines`` lines that mentions one
    of the keys.
    """
    all_lines = content.splitlines(keepends=True)
    if spec is not None and spec.field_keys:
        window = all_lines[: spec.field_scan_lines]
        return "".join(
            line for line in window if any(key in line for key in spec.field_keys)
        )
    return "".join(all_lines[:lines])


def extract_section(content: str, marker: str, max_lines: int) -> str:
    """Return the section whose heading contains ``marker``.

    Captures the heading line and the lines after it, stopping at the
    next heading or after ``max_lines`` lines in total, whichever comes
    first. A missing marker yields an empty string.
    """
    if not marker or max_lines <= 0:
        return ""
    all_lines = content.splitlines(keepends=True)
    for index, line in enumerate(all_lines):
        if _is_heading(line) and marker in line:
            captured = [line]
            for following in all_lines[index + 1 :]:
                if len(captured) >= max_lines or _is_heading(following):
                    break
                captured.append(following)
            return "".join(captured)
    return ""


def extract_plan_fields(content: str) -> str:
    """Return only the title/action lines of a plan document."""
    return "".join(
        line
        for line in content.splitlines(keepends=True)
        if _PLAN_FIELD_RE.search(line)
    )


def apply(
    strategy: Strategy,
    raw_content: str,
    section_spec: SectionSpec | None = None,
    *,
    frontmatter_lines: int = DEFAULT_FRONTMATTER_LINES,
) -> SparsificationResult:
    """Apply a sparsification strategy to a component's raw content.

    Args:
        strategy: Strategy to apply
        raw_content: Full document text (empty for missing files)
        section_spec: Component-specific sections/fields
        frontmatter_lines: Size of the frontmatter region in lines

    Returns:
        SparsificationResult with the extracted text
    """
    strategy = Strategy(strategy)
    spec = section_spec or SectionSpec()

    if not raw_content:
        return SparsificationResult("")

    if strategy is Strategy.FULL:
        return SparsificationResult(raw_content)

    if strategy is Strategy.MINIMAL:
        if spec.kind is ComponentKind.PLAN:
            return SparsificationResult(extract_plan_fields(raw_content))
        return SparsificationResult("")

    frontmatter = extract_frontmatter(raw_content, frontmatter_lines, spec)
    if strategy is Strategy.SPARSE_AGGRESSIVE:
        return SparsificationResult(frontmatter)

    parts: List[str] = [frontmatter]
    for rule in spec.sections[:MAX_SECTIONS]:
        parts.append(extract_section(raw_content, rule.marker, rule.max_lines))
    return SparsificationResult(_join(parts))
