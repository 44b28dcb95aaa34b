"""
Wildcard matching for bucket names.

Patterns support two wildcards:
- "*" matches any sequence of characters (including none)
- "?" matches exactly one character

Every other character, regex metacharacters included, is matched literally
and the whole name must match.
"""
import re
from functools import lru_cache
from typing import Pattern

from app.core.logging import get_logger

logger = get_logger(__name__)

MATCH_ALL = "*"


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Translate a wildcard pattern into a compiled regular expression.

    The pattern is escaped first so that only the wildcards carry meaning.
    """
    escaped = re.escape(pattern)
    translated = escaped.replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(translated, re.DOTALL)


def matches(name: str, pattern: str) -> bool:
    """
    Check whether a name matches a wildcard pattern.

    An empty pattern or "*" matches everything. Evaluation errors count as
    a non-match.
    """
    if not pattern or pattern == MATCH_ALL:
        return True

    try:
        return compile_pattern(pattern).fullmatch(name) is not None
    except (re.error, TypeError) as e:
        logger.debug(
            "pattern_match_failed",
            pattern=pattern,
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
