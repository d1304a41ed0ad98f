"""End-to-end session operations against a real SQLite file."""

import json

import pytest

from querygate.config.models import Settings
from querygate.database.session import DatabaseSession


@pytest.fixture
async def session(sqlite_db):
    async with DatabaseSession.from_connection_string(str(sqlite_db), settings=Settings()) as session:
        yield session


async def test_execute_query(session):
    envelope = await session.execute_query(
        "SELECT name FROM users WHERE status = ? ORDER BY id", ["active"]
    )
    payload = json.loads(envelope.to_json())

    assert payload["success"] is True
    assert payload["databaseType"] == "sqlite"
    assert payload["data"]["rows"] == [{"name": "Ada"}, {"name": "Grace"}, {"name": None}]
    assert payload["data"]["rowCount"] == 3
    assert payload["data"]["fields"] == [{"name": "name", "dataType": None}]


async def test_with_query(session):
    envelope = await session.execute_query(
        "WITH totals AS (SELECT user_id, SUM(total) AS spent FROM orders GROUP BY user_id) "
        "SELECT user_id FROM totals ORDER BY spent DESC LIMIT 1"
    )

    assert envelope.data["rows"] == [{"user_id": 2}]


async def test_truncation(sqlite_db):
    settings = Settings(max_rows=2)
    async with DatabaseSession.from_connection_string(str(sqlite_db), settings=settings) as session:
        envelope = await session.execute_query("SELECT id FROM orders ORDER BY id")

    assert envelope.data["rows"] == [{"id": 1}, {"id": 2}]
    assert envelope.data["truncated"] is True
    assert envelope.data["message"] == "Results truncated to 2 rows (5 total rows)"


async def test_rejected_statement_leaves_data_intact(session):
    rejected = await session.execute_query("DELETE FROM orders")
    remaining = await session.execute_query("SELECT COUNT(*) AS n FROM orders")

    assert rejected.error == "Only SELECT, WITH and SHOW queries are allowed"
    assert remaining.data["rows"] == [{"n": 5}]


async def test_driver_error_envelope(session):
    envelope = await session.execute_query("SELECT * FROM ghosts")

    assert envelope.success is False
    assert envelope.error == "no such table: ghosts"


async def test_explain(session):
    envelope = await session.explain_query("SELECT * FROM orders WHERE user_id = 1")

    assert envelope.success is True
    assert envelope.data["analyzed"] is False
    assert envelope.data["summary"]["steps"] >= 1
    assert any("idx_orders_user_id" in step["detail"] for step in envelope.data["execution_plan"])


async def test_catalog(session):
    tables = await session.list_tables()
    schemas = await session.list_schemas()
    described = await session.describe_table("orders")
    missing = await session.describe_table("ghosts")

    assert [t["table_name"] for t in tables.data["tables"]] == ["active_users", "orders", "users"]
    assert "main" in [s["schema_name"] for s in schemas.data["schemas"]]
    assert [c["column_name"] for c in described.data["columns"]] == ["id", "user_id", "total", "placed_on"]
    assert described.data["columns"][3]["is_nullable"] == "YES"
    assert missing.error == "Table 'ghosts' not found"


async def test_indexes(session):
    all_indexes = await session.list_indexes()
    order_indexes = await session.list_indexes("orders")

    names = {index["index_name"] for index in all_indexes.data["indexes"]}
    assert "idx_orders_user_id" in names
    assert order_indexes.data["indexes"][0]["is_unique"] is False
    assert len(order_indexes.data["indexes"]) == 1


async def test_unsupported_catalog_operations(session):
    foreign_keys = await session.get_foreign_keys("orders")
    functions = await session.list_functions()

    assert foreign_keys.data == {"foreign_keys": [], "message": "not supported for this dialect"}
    assert functions.data == {"functions": [], "message": "not supported for this dialect"}


async def test_analyze_column(session):
    envelope = await session.analyze_column("orders", "user_id", limit=1)

    assert envelope.data["statistics"] == {
        "total_rows": 5,
        "non_null_count": 5,
        "null_count": 0,
        "distinct_count": 3,
        "min_value": 1,
        "max_value": 4,
    }
    assert envelope.data["most_common_values"] == [{"value": 1, "frequency": 3}]


async def test_analyze_nullable_column(session):
    envelope = await session.analyze_column("users", "name")

    assert envelope.data["statistics"]["null_count"] == 1


async def test_analyze_missing_column(session):
    envelope = await session.analyze_column("users", "nope")

    assert envelope.success is False
    assert envelope.error == "Column 'nope' not found in table 'users'"


async def test_analyze_column_name_case_insensitive(session):
    envelope = await session.analyze_column("users", "STATUS")

    assert envelope.data["column_info"]["column_name"] == "status"
    assert envelope.data["statistics"]["distinct_count"] == 2


async def test_table_stats(session):
    envelope = await session.get_table_stats()

    assert envelope.data == {
        "schema": None,
        "table_sizes": [
            {"schema_name": "main", "table_name": "orders", "size_bytes": None, "row_count": 5},
            {"schema_name": "main", "table_name": "users", "size_bytes": None, "row_count": 4},
        ],
        "column_statistics": [],
    }


async def test_table_stats_other_schema(session):
    main = await session.get_table_stats("main")
    temp = await session.get_table_stats("temp")

    assert [t["table_name"] for t in main.data["table_sizes"]] == ["orders", "users"]
    assert temp.data["table_sizes"] == []


async def test_database_info(session):
    envelope = await session.get_database_info()

    assert envelope.data["connection"]["dialect"] == "sqlite"
    assert envelope.data["version"] == envelope.data["connection"]["server_version"]
    assert envelope.data["size"] > 0
    assert isinstance(envelope.data["settings"], list)
