"""Unit tests for result envelope formatting."""

import ipaddress
import json
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import UUID

import pytest

from querygate.core.exceptions import ErrorCodes, ObjectNotFoundError
from querygate.database.formatting import (
    Envelope,
    ResultFormatter,
    format_error,
    format_exception,
    format_explain_result,
    format_query_result,
    format_column_not_found,
    format_success,
    format_table_not_found,
    format_validation_error,
    json_default,
)
from querygate.database.models import DialectKind, FieldDescriptor, QueryResult


def _result(count: int) -> QueryResult:
    rows = [{"id": i} for i in range(count)]
    return QueryResult(rows=rows, row_count=count, fields=[FieldDescriptor("id", "int4")])


class TestEnvelope:
    """Envelope wire shape."""

    def test_success_shape(self):
        envelope = format_success({"tables": []}, "postgresql")

        assert envelope.to_dict() == {
            "success": True,
            "data": {"tables": []},
            "databaseType": "postgresql",
        }

    def test_error_shape(self):
        envelope = format_error("Database not connected", DialectKind.MYSQL)

        assert envelope.to_dict() == {
            "success": False,
            "error": "Database not connected",
            "databaseType": "mysql",
        }

    def test_unknown_dialect_omitted(self):
        assert format_error("boom").to_dict() == {"success": False, "error": "boom"}
        assert "databaseType" not in format_success([]).to_dict()

    def test_table_not_found(self):
        assert format_table_not_found("ghosts", "sqlite").error == "Table 'ghosts' not found"

    def test_column_not_found(self):
        envelope = format_column_not_found("nope", "users", "sqlite")

        assert envelope.error == "Column 'nope' not found in table 'users'"
        assert envelope.database_type == "sqlite"

    def test_validation_error(self):
        assert format_validation_error("bad name").error == "Validation error: bad name"

    def test_exception_message_without_code(self):
        exc = ObjectNotFoundError("Table 'ghosts' not found", code=ErrorCodes.OBJECT_NOT_FOUND)

        envelope = format_exception(exc, "sqlite")

        assert envelope.error == "Table 'ghosts' not found"

    def test_plain_exception_message(self):
        assert format_exception(RuntimeError("driver gone")).error == "driver gone"

    def test_to_json_serializes_driver_types(self):
        envelope = Envelope(
            success=True,
            data={"total": Decimal("19.90"), "placed_on": date(2024, 5, 1)},
            database_type="postgresql",
        )

        decoded = json.loads(envelope.to_json(indent=None))

        assert decoded["data"] == {"total": "19.90", "placed_on": "2024-05-01"}

    def test_to_json_serializes_network_types(self):
        envelope = format_success(
            {
                "rows": [
                    {"ip": ipaddress.ip_address("10.0.0.1"), "subnet": ipaddress.ip_network("10.0.0.0/24")},
                    {"ip": ipaddress.ip_address("::1"), "subnet": ipaddress.ip_network("fd00::/8")},
                ]
            },
            "postgresql",
        )

        decoded = json.loads(envelope.to_json(indent=None))

        assert decoded["data"]["rows"] == [
            {"ip": "10.0.0.1", "subnet": "10.0.0.0/24"},
            {"ip": "::1", "subnet": "fd00::/8"},
        ]


class TestJsonDefault:
    """Fallback serialization of driver value types."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (datetime(2024, 5, 1, 12, 30), "2024-05-01T12:30:00"),
            (date(2024, 5, 1), "2024-05-01"),
            (time(8, 15), "08:15:00"),
            (timedelta(minutes=2), 120.0),
            (Decimal("1.50"), "1.50"),
            (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
            (b"\x01\xff", "01ff"),
            (memoryview(b"\x0a"), "0a"),
            ({"b", "a"}, ["a", "b"]),
            (ipaddress.ip_interface("192.168.1.5/24"), "192.168.1.5/24"),
        ],
    )
    def test_supported(self, value, expected):
        assert json_default(value) == expected

    def test_unsupported(self):
        with pytest.raises(TypeError, match="not JSON serializable"):
            json_default(object())


class TestQueryResultFormatting:
    """Row cap and metadata."""

    def test_under_cap(self):
        envelope = format_query_result(_result(3), 4.56789, "postgresql")
        data = envelope.data

        assert envelope.success
        assert data["rowCount"] == 3
        assert len(data["rows"]) == 3
        assert data["truncated"] is False
        assert "message" not in data
        assert data["executionTimeMs"] == 4.568
        assert data["databaseType"] == "postgresql"
        assert data["fields"] == [{"name": "id", "dataType": "int4"}]
        assert data["command"] == "SELECT"

    def test_truncated(self):
        envelope = format_query_result(_result(1500), 12.5, "postgresql")
        data = envelope.data

        assert data["rowCount"] == 1500
        assert len(data["rows"]) == 1000
        assert data["rows"][-1] == {"id": 999}
        assert data["truncated"] is True
        assert data["message"] == "Results truncated to 1000 rows (1500 total rows)"

    def test_exactly_at_cap(self):
        data = format_query_result(_result(5), 1.0, "sqlite", max_rows=5).data

        assert data["truncated"] is False
        assert len(data["rows"]) == 5

    def test_no_fields(self):
        result = QueryResult(rows=[], row_count=0)

        assert format_query_result(result, 0.0, "mysql").data["fields"] is None

    def test_explain_result(self):
        envelope = format_explain_result(
            "SELECT 1", [{"detail": "SCAN users"}], False, "sqlite", {"steps": 1}
        )

        assert envelope.data == {
            "query": "SELECT 1",
            "execution_plan": [{"detail": "SCAN users"}],
            "summary": {"steps": 1},
            "analyzed": False,
            "databaseType": "sqlite",
        }


class TestResultFormatter:
    """Formatter bound to a dialect."""

    def test_binds_dialect_and_cap(self):
        formatter = ResultFormatter("mysql", max_rows=2)

        envelope = formatter.query_result(_result(4), 1.0)

        assert envelope.database_type == "mysql"
        assert len(envelope.data["rows"]) == 2
        assert formatter.table_not_found("ghosts").to_dict()["databaseType"] == "mysql"
        assert formatter.validation_error("x").error == "Validation error: x"
        assert formatter.column_not_found("id", "ghosts").error == "Column 'id' not found in table 'ghosts'"
        assert formatter.success([1]).data == [1]
        assert formatter.error("e").success is False

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            ResultFormatter("sqlite", max_rows=0)
