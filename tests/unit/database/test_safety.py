"""Unit tests for the lexical query safety gate."""

import pytest

from querygate.core.exceptions import ConfigurationError, ErrorCodes, UnsafeQueryError
from querygate.database.safety import (
    RULE_DENIED_KEYWORD,
    RULE_EMPTY_QUERY,
    RULE_LEADING_KEYWORD,
    RULE_RESTRICTED_STATEMENT,
    QueryValidator,
    SubstringQueryValidator,
    TokenBoundaryQueryValidator,
    _LexicalQueryValidator,
    create_query_validator,
)


@pytest.fixture(params=["substring", "token"])
def validator(request):
    """Each validation mode in turn."""
    return create_query_validator(request.param)


class TestSharedRules:
    """Rules both modes enforce identically."""

    @pytest.mark.parametrize(
        "query",
        [
            "SELECT id, email FROM users",
            "  select count(*) from orders  ",
            "WITH recent AS (SELECT * FROM orders) SELECT * FROM recent",
            "show tables",
            "SELECT\n  name\nFROM users",
        ],
    )
    def test_read_queries_pass(self, validator, query):
        assert validator.validate(query) == query.strip()

    @pytest.mark.parametrize("query", ["", "   ", "\n\t", None])
    def test_empty_rejected(self, validator, query):
        with pytest.raises(UnsafeQueryError) as exc_info:
            validator.validate(query)

        assert exc_info.value.rule == RULE_EMPTY_QUERY
        assert exc_info.value.message == "Query cannot be empty"

    @pytest.mark.parametrize(
        "query",
        [
            "EXPLAIN SELECT 1",
            "PRAGMA table_info(users)",
            "DESCRIBE users",
            "(SELECT 1)",
            "VALUES (1)",
        ],
    )
    def test_other_leading_keywords_rejected(self, validator, query):
        with pytest.raises(UnsafeQueryError) as exc_info:
            validator.validate(query)

        assert exc_info.value.rule == RULE_LEADING_KEYWORD
        assert exc_info.value.code == ErrorCodes.UNSAFE_QUERY

    @pytest.mark.parametrize(
        "query, keyword",
        [
            ("SELECT 1; DROP TABLE users", "drop"),
            ("select * from users; delete from users", "delete"),
            ("WITH x AS (INSERT INTO t VALUES (1) RETURNING *) SELECT * FROM x", "insert"),
            ("SELECT 1; UPDATE users SET name = 'x'", "update"),
            ("select 1; alter table users add column y int", "alter"),
            ("SELECT 1; CREATE TABLE t (id int)", "create"),
            ("select 1; TRUNCATE orders", "truncate"),
        ],
    )
    def test_mutations_rejected(self, validator, query, keyword):
        with pytest.raises(UnsafeQueryError) as exc_info:
            validator.validate(query)

        assert exc_info.value.rule == RULE_DENIED_KEYWORD
        assert exc_info.value.context == {"keyword": keyword}
        assert "Only read operations are allowed" in exc_info.value.message

    def test_denied_keyword_case_insensitive(self, validator):
        with pytest.raises(UnsafeQueryError):
            validator.validate("SeLeCt 1; DrOp TaBlE users")

    def test_validator_satisfies_protocol(self, validator):
        assert isinstance(validator, QueryValidator)


class TestSubstringMode:
    """Default mode over-approximates the denylist."""

    @pytest.mark.parametrize(
        "query",
        [
            "SELECT created_at FROM orders",
            "SELECT * FROM users WHERE status = 'updated'",
            "SELECT dropped_count FROM stats",
            "SELECT * FROM undeleted_items",
        ],
    )
    def test_keyword_inside_identifier_rejected(self, query):
        with pytest.raises(UnsafeQueryError) as exc_info:
            SubstringQueryValidator().validate(query)

        assert exc_info.value.rule == RULE_DENIED_KEYWORD

    def test_leading_prefix_match(self):
        validator = SubstringQueryValidator()

        assert validator.validate("selection_is_not_a_keyword") == "selection_is_not_a_keyword"

    def test_is_default(self):
        assert isinstance(create_query_validator(), SubstringQueryValidator)


class TestTokenMode:
    """Opt-in mode matches whole words only."""

    @pytest.mark.parametrize(
        "query",
        [
            "SELECT created_at FROM orders",
            "SELECT * FROM users WHERE status = 'updated'",
            "SELECT dropped_count FROM stats",
        ],
    )
    def test_keyword_inside_identifier_allowed(self, query):
        assert TokenBoundaryQueryValidator().validate(query) == query

    def test_quoted_keyword_still_rejected(self):
        with pytest.raises(UnsafeQueryError):
            TokenBoundaryQueryValidator().validate("SELECT * FROM logs WHERE action = 'delete'")

    def test_leading_word_must_match_exactly(self):
        with pytest.raises(UnsafeQueryError) as exc_info:
            TokenBoundaryQueryValidator().validate("selection FROM t")

        assert exc_info.value.rule == RULE_LEADING_KEYWORD


class TestRestrictedStatements:
    """Dialect-specific statements denied at statement start."""

    @pytest.mark.parametrize("mode", ["substring", "token"])
    @pytest.mark.parametrize(
        "query, statement",
        [
            ("SELECT 1; PUT file:///tmp/data.csv @stage", "put"),
            ("select 1;get @stage/data.csv file:///tmp", "get"),
            ("SELECT 1; COPY   INTO users FROM @stage", "copy into"),
        ],
    )
    def test_restricted_rejected(self, mode, query, statement):
        validator = create_query_validator(mode, extra_denied=("PUT", "GET", "COPY INTO"))

        with pytest.raises(UnsafeQueryError) as exc_info:
            validator.validate(query)

        assert exc_info.value.rule == RULE_RESTRICTED_STATEMENT
        assert exc_info.value.context == {"statement": statement}
        assert exc_info.value.message == f"{statement.upper()} statements are not allowed for this database"

    def test_words_inside_query_allowed(self):
        validator = create_query_validator(extra_denied=("put", "get", "copy into"))

        assert validator.validate("SELECT budget, output FROM projects")

    def test_repr_lists_restricted(self):
        validator = create_query_validator("token", extra_denied=("COPY INTO",))

        assert repr(validator) == "TokenBoundaryQueryValidator(restricted=['copy into'])"


class TestValidatorHierarchy:
    """Matching hooks are supplied by concrete validators."""

    def test_shared_base_not_instantiable(self):
        with pytest.raises(TypeError):
            _LexicalQueryValidator()

    def test_concrete_validators_instantiable(self):
        assert SubstringQueryValidator().validate("SELECT 1") == "SELECT 1"
        assert TokenBoundaryQueryValidator().validate("SELECT 1") == "SELECT 1"


class TestCreateQueryValidator:
    """Factory function."""

    def test_mode_case_insensitive(self):
        assert isinstance(create_query_validator("TOKEN"), TokenBoundaryQueryValidator)

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_query_validator("regex")

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID
        assert exc_info.value.context == {"supported": ["substring", "token"]}
