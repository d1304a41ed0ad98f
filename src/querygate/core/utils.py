"""Utility functions for QueryGate operations.

This module provides small helpers shared across the package: identifier
validation, credential masking for log output and SQL text helpers.

Classes:
    ValidationUtils: Identifier validation
    StringUtils: String helpers (credential masking, truncation, keywords)

Example:
    >>> StringUtils.mask_credentials("postgresql://app:secret@db/prod")
    'postgresql://***:***@db/prod'
"""

import re
from typing import Optional


class ValidationUtils:
    """Utility class for validation operations."""

    # Common regex patterns
    IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
    SQL_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

    @classmethod
    def validate_identifier(cls, identifier: str, *, allow_empty: bool = False) -> bool:
        """Validate a Python-style identifier string.

        Args:
            identifier: String to validate as identifier
            allow_empty: Whether to allow empty strings

        Returns:
            True if identifier is valid

        Example:
            >>> ValidationUtils.validate_identifier("prod_db")
            True
            >>> ValidationUtils.validate_identifier("123_invalid")
            False
        """
        if not identifier:
            return allow_empty

        return bool(cls.IDENTIFIER_PATTERN.match(identifier))

    @classmethod
    def validate_sql_identifier(cls, identifier: Optional[str]) -> bool:
        """Validate a SQL identifier against the strict allow-list.

        Only letters, digits and underscores are accepted. This is the check
        applied before any identifier is concatenated into SQL text.

        Args:
            identifier: String to validate as SQL identifier

        Returns:
            True if SQL identifier is valid
        """
        if not identifier:
            return False

        return bool(cls.SQL_IDENTIFIER_PATTERN.match(identifier))


class StringUtils:
    """Utility class for string operations."""

    CREDENTIALS_PATTERN = re.compile(r"://([^/@\s]+)@")
    LEADING_WORD_PATTERN = re.compile(r"^\s*([A-Za-z]+)")

    @classmethod
    def mask_credentials(cls, text: str) -> str:
        """Mask ``user:password@`` credentials embedded in URLs.

        Args:
            text: Text that may contain connection strings

        Returns:
            Text with credentials replaced by ``***:***``
        """
        if not text:
            return text
        return cls.CREDENTIALS_PATTERN.sub("://***:***@", text)

    @staticmethod
    def truncate_string(text: str, max_length: int, *, suffix: str = "...") -> str:
        """Truncate string to maximum length.

        Args:
            text: String to truncate
            max_length: Maximum length including suffix
            suffix: Suffix to add when truncating

        Returns:
            Truncated string
        """
        if len(text) <= max_length:
            return text

        if max_length <= len(suffix):
            return suffix[:max_length]

        return text[:max_length - len(suffix)] + suffix

    @classmethod
    def first_keyword(cls, sql: str) -> str:
        """Return the upper-cased leading keyword of a SQL statement.

        Example:
            >>> StringUtils.first_keyword("  select 1")
            'SELECT'
        """
        match = cls.LEADING_WORD_PATTERN.match(sql or "")
        return match.group(1).upper() if match else ""
