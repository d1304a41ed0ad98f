"""Lexical query safety gate.

Only read-intent statements pass: the query must lead with ``select``,
``with`` or ``show`` and must not mention any mutation keyword. This is a
pre-filter, not a SQL parser.

Two interchangeable implementations sit behind the QueryValidator
protocol:

    SubstringQueryValidator: denied keywords match anywhere in the text,
        so a column named ``updated_at`` is rejected. This is the default.
    TokenBoundaryQueryValidator: denied keywords match whole words only.

Example:
    >>> validator = create_query_validator()
    >>> validator.validate("  SELECT id FROM users ")
    'SELECT id FROM users'
    >>> validator.validate("SELECT * FROM users WHERE status = 'updated'")
    Traceback (most recent call last):
        ...
    querygate.core.exceptions.UnsafeQueryError: UNSAFE_QUERY: Query contains ...
"""

import re
from abc import ABC, abstractmethod
from typing import Iterable, Pattern, Protocol, Tuple, runtime_checkable

from ..core.exceptions import ConfigurationError, ErrorCodes, UnsafeQueryError

ALLOWED_LEADING_KEYWORDS: Tuple[str, ...] = ("select", "with", "show")
DENIED_KEYWORDS: Tuple[str, ...] = (
    "drop",
    "delete",
    "insert",
    "update",
    "alter",
    "create",
    "truncate",
)

RULE_EMPTY_QUERY = "empty_query"
RULE_LEADING_KEYWORD = "leading_keyword"
RULE_DENIED_KEYWORD = "denied_keyword"
RULE_RESTRICTED_STATEMENT = "restricted_statement"

_LEADING_WORD = re.compile(r"^([a-z_]+)")


@runtime_checkable
class QueryValidator(Protocol):
    """Interface for query safety validators."""

    def validate(self, raw_query: str) -> str:
        """Return the trimmed query or raise UnsafeQueryError."""
        ...


def _statement_pattern(statement: str) -> Pattern[str]:
    words = r"\s+".join(re.escape(word) for word in statement.lower().split())
    return re.compile(rf"(?:^|;)\s*{words}\b")


class _LexicalQueryValidator(ABC):
    """Shared rule sequence; subclasses decide how keywords match."""

    def __init__(self, extra_denied: Iterable[str] = ()) -> None:
        self.restricted_statements = tuple(s.lower() for s in extra_denied)
        self._restricted_patterns = [
            (statement, _statement_pattern(statement)) for statement in self.restricted_statements
        ]

    def validate(self, raw_query: str) -> str:
        query = (raw_query or "").strip()
        if not query:
            raise UnsafeQueryError(
                "Query cannot be empty",
                rule=RULE_EMPTY_QUERY,
                code=ErrorCodes.UNSAFE_QUERY,
            )

        normalized = query.lower()

        if not self._has_allowed_leading_keyword(normalized):
            raise UnsafeQueryError(
                "Only SELECT, WITH and SHOW queries are allowed",
                rule=RULE_LEADING_KEYWORD,
                code=ErrorCodes.UNSAFE_QUERY,
                context={"allowed": list(ALLOWED_LEADING_KEYWORDS)},
            )

        for keyword in DENIED_KEYWORDS:
            if self._contains_keyword(normalized, keyword):
                raise UnsafeQueryError(
                    "Query contains potentially dangerous keywords. Only read operations are allowed.",
                    rule=RULE_DENIED_KEYWORD,
                    code=ErrorCodes.UNSAFE_QUERY,
                    context={"keyword": keyword},
                )

        for statement, pattern in self._restricted_patterns:
            if pattern.search(normalized):
                raise UnsafeQueryError(
                    f"{statement.upper()} statements are not allowed for this database",
                    rule=RULE_RESTRICTED_STATEMENT,
                    code=ErrorCodes.UNSAFE_QUERY,
                    context={"statement": statement},
                )

        return query

    @abstractmethod
    def _has_allowed_leading_keyword(self, normalized: str) -> bool:
        """Whether the query opens with an allowed keyword."""

    @abstractmethod
    def _contains_keyword(self, normalized: str, keyword: str) -> bool:
        """Whether a denied keyword occurs in the query."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(restricted={list(self.restricted_statements)})"


class SubstringQueryValidator(_LexicalQueryValidator):
    """Denylist matched as plain substrings.

    Over-approximates: ``status = 'updated'`` and ``created_at`` are both
    rejected.
    """

    mode = "substring"

    def _has_allowed_leading_keyword(self, normalized: str) -> bool:
        return normalized.startswith(ALLOWED_LEADING_KEYWORDS)

    def _contains_keyword(self, normalized: str, keyword: str) -> bool:
        return keyword in normalized


class TokenBoundaryQueryValidator(_LexicalQueryValidator):
    """Denylist matched on word boundaries."""

    mode = "token"

    _KEYWORD_PATTERNS = {keyword: re.compile(rf"\b{keyword}\b") for keyword in DENIED_KEYWORDS}

    def _has_allowed_leading_keyword(self, normalized: str) -> bool:
        match = _LEADING_WORD.match(normalized)
        return bool(match) and match.group(1) in ALLOWED_LEADING_KEYWORDS

    def _contains_keyword(self, normalized: str, keyword: str) -> bool:
        return bool(self._KEYWORD_PATTERNS[keyword].search(normalized))


_VALIDATORS = {
    SubstringQueryValidator.mode: SubstringQueryValidator,
    TokenBoundaryQueryValidator.mode: TokenBoundaryQueryValidator,
}


def create_query_validator(mode: str = "substring", extra_denied: Iterable[str] = ()) -> QueryValidator:
    """Build a validator for ``mode`` ("substring" or "token").

    Args:
        mode: Keyword matching strategy
        extra_denied: Dialect-specific statements to deny (e.g. ``copy into``)

    Raises:
        ConfigurationError: If ``mode`` is unknown
    """
    try:
        validator_class = _VALIDATORS[mode.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown query validation mode: {mode}",
            code=ErrorCodes.CONFIG_INVALID,
            context={"supported": sorted(_VALIDATORS)},
        ) from None
    return validator_class(extra_denied)
