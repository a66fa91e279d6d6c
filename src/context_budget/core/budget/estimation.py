"""Character-count based token estimation.

Uses the common approximation of ~4 characters per token. This is a fixed
heuristic, not a tokenizer: results are order-of-magnitude estimates and
should not be treated as billing-accurate counts.
"""

CHARS_PER_TOKEN = 4


def estimate_tokens(char_count: int, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Estimate the token count for a character count.

    Computes ``ceil(char_count / chars_per_token)`` with integer arithmetic.

    Args:
        char_count: Number of characters (must be >= 0)
        chars_per_token: Characters assumed per token (must be > 0)

    Returns:
        Estimated token count (0 for empty content)

    Raises:
        ValueError: If char_count is negative or chars_per_token is not positive

    Example:
        estimate_tokens(0)     # 0
        estimate_tokens(9)     # 3
    """
    if char_count < 0:
        raise ValueError(f"char_count must be non-negative, got {char_count}")
    if chars_per_token <= 0:
        raise ValueError(f"chars_per_token must be positive, got {chars_per_token}")
    return -(-char_count // chars_per_token)


def estimate_text_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Estimate tokens for a string of text."""
    return estimate_tokens(len(text), chars_per_token)
