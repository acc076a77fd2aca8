"""Tests for ResultAssembler."""

import pytest
from unittest.mock import MagicMock

from soqlbulk.bulk.assembler import ResultAssembler
from soqlbulk.errors import RemoteServiceError


def _records(prefix, count):
    return [{"Id": f"{prefix}-{i}"} for i in range(count)]


class TestResultAssembler:
    """Tests for ordered concatenation of result parts."""

    def test_no_parts(self, make_connection):
        connection = make_connection(parts={})
        assert ResultAssembler(connection).assemble("750J", "751B", []) == []
        assert connection.called("get_query_result_stream") == []

    def test_single_part(self, make_connection):
        connection = make_connection(parts={"752R1": _records("a", 3)})
        records = ResultAssembler(connection).assemble("750J", "751B", ["752R1"])
        assert records == _records("a", 3)

    def test_order_follows_result_list_not_fetch_completion(self, make_connection):
        """The first part finishes last but its records still come first."""
        connection = make_connection(
            parts={
                "752R1": _records("a", 2),
                "752R2": _records("b", 1),
                "752R3": _records("c", 3),
            },
            delays={"752R1": 0.2, "752R2": 0.1},
        )

        records = ResultAssembler(connection, max_workers=3).assemble(
            "750J", "751B", ["752R1", "752R2", "752R3"]
        )

        assert connection.fetched == ["752R3", "752R2", "752R1"]
        assert records == _records("a", 2) + _records("b", 1) + _records("c", 3)

    def test_sequential_fetch(self, make_connection):
        connection = make_connection(parts={"752R1": _records("a", 1), "752R2": _records("b", 2)})
        records = ResultAssembler(connection, max_workers=1).assemble("750J", "751B", ["752R1", "752R2"])
        assert [r["Id"] for r in records] == ["a-0", "b-0", "b-1"]

    def test_empty_parts_contribute_nothing(self, make_connection):
        connection = make_connection(parts={"752R1": [], "752R2": _records("b", 2), "752R3": []})
        records = ResultAssembler(connection).assemble("750J", "751B", ["752R1", "752R2", "752R3"])
        assert records == _records("b", 2)

    def test_unparseable_part_fails_assembly(self, make_connection):
        connection = make_connection(parts={"752R1": _records("a", 1), "752R2": b"[{\"Id\": "})
        with pytest.raises(RemoteServiceError, match="Could not read result 752R2"):
            ResultAssembler(connection).assemble("750J", "751B", ["752R1", "752R2"])

    def test_part_must_be_array(self, make_connection):
        connection = make_connection(parts={"752R1": {"Id": "001A"}})
        with pytest.raises(RemoteServiceError, match="not a JSON array"):
            ResultAssembler(connection).fetch_part("750J", "751B", "752R1")

    def test_stream_is_closed(self):
        stream = MagicMock()
        stream.read.return_value = b"[]"
        connection = MagicMock()
        connection.get_query_result_stream.return_value = stream

        assert ResultAssembler(connection).fetch_part("750J", "751B", "752R1") == []
        stream.close.assert_called_once()

    def test_open_failure_propagates(self):
        connection = MagicMock()
        connection.get_query_result_stream.side_effect = RemoteServiceError("HTTP 404")
        with pytest.raises(RemoteServiceError, match="HTTP 404"):
            ResultAssembler(connection).assemble("750J", "751B", ["752R1"])
