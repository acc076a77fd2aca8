"""Tests for ForceClient.query and run_query."""

import pytest
from unittest.mock import MagicMock, patch

from soqlbulk.bulk.client import ForceClient, run_query
from soqlbulk.errors import ConfigurationError, InterruptedExecution, RemoteServiceError
from soqlbulk.records import ColumnarPageBuilder, Schema
from soqlbulk.schemas import BatchState

FAST = {"poll_initial_delay": 0.01, "poll_interval": 0.01, "wait_interval": 0.01}


def _client(connection, **kwargs):
    return ForceClient(connection, **{**FAST, **kwargs})


class TestForceClientQuery:
    """Tests for the full query lifecycle."""

    def test_returns_records_of_all_parts_in_order(self, make_connection):
        connection = make_connection(
            states=[BatchState.IN_PROGRESS, BatchState.COMPLETED],
            parts={
                "752R1": [{"Id": "001A"}, {"Id": "001B"}],
                "752R2": [{"Id": "001C"}],
            },
        )

        records = _client(connection).query("Account", "SELECT Id FROM Account")

        assert [r["Id"] for r in records] == ["001A", "001B", "001C"]
        assert connection.closed_jobs == ["750J0001"]

    def test_lifecycle_order(self, make_connection):
        connection = make_connection(parts={"752R1": []})
        _client(connection).query("Account", "SELECT Id FROM Account")

        names = [call[0] for call in connection.calls]
        assert names[:2] == ["create_job", "create_batch"]
        assert names[-1] == "close_job"
        assert names.index("get_query_result_list") > names.index("get_batch_info")

    def test_failed_batch_closes_job_once(self, make_connection):
        connection = make_connection(states=[BatchState.FAILED], state_message="row limit exceeded")

        with pytest.raises(ConfigurationError, match="row limit exceeded"):
            _client(connection).query("Account", "SELECT Id FROM Account")

        assert connection.closed_jobs == ["750J0001"]

    def test_interrupted_query_closes_job_once(self, make_connection):
        connection = make_connection(states=[BatchState.IN_PROGRESS])

        def interrupting_sleep(seconds):
            raise KeyboardInterrupt

        client = _client(connection, sleep=interrupting_sleep, logger=MagicMock())
        with pytest.raises(InterruptedExecution):
            client.query("Account", "SELECT Id FROM Account")

        assert connection.closed_jobs == ["750J0001"]
        assert connection.called("get_query_result_stream") == []

    def test_batch_rejected_still_closes_job(self, make_connection):
        connection = make_connection()
        connection.create_batch = MagicMock(side_effect=RemoteServiceError("InvalidBatch"))

        with pytest.raises(RemoteServiceError, match="InvalidBatch"):
            _client(connection).query("Account", "SELEC Id FROM Account")

        assert connection.closed_jobs == ["750J0001"]

    def test_job_rejected_nothing_to_close(self, make_connection):
        connection = make_connection()
        connection.create_job = MagicMock(side_effect=RemoteServiceError("InvalidEntity"))

        with pytest.raises(RemoteServiceError):
            _client(connection).query("NotAnObject", "SELECT Id FROM NotAnObject")

        assert connection.closed_jobs == []

    def test_fetch_failure_closes_job(self, make_connection):
        connection = make_connection(parts={"752R1": b"not json"})

        with pytest.raises(RemoteServiceError):
            _client(connection).query("Account", "SELECT Id FROM Account")

        assert connection.closed_jobs == ["750J0001"]

    def test_close_failure_does_not_fail_query(self, make_connection):
        connection = make_connection(parts={"752R1": [{"Id": "001A"}]}, close_error="InvalidJobState")

        records = _client(connection).query("Account", "SELECT Id FROM Account")

        assert records == [{"Id": "001A"}]
        assert connection.closed_jobs == ["750J0001"]


class TestFromConfig:
    """Tests for building a client from configuration."""

    def test_from_config(self, test_config):
        with patch("soqlbulk.bulk.client.BulkConnection") as mock_connection:
            client = ForceClient.from_config(test_config)

        mock_connection.assert_called_once_with(
            "https://test.my.salesforce.com/services/async/48.0",
            "test-session",
            timeout=60.0,
        )
        assert client.poller.initial_delay == 0.01
        assert client.poller.period == 0.01
        assert client.poller.wait_interval == 0.01
        assert client.assembler.max_workers == 4

    def test_from_config_without_session(self, test_config, monkeypatch):
        monkeypatch.delenv("SOQLBULK_SESSION_ID", raising=False)
        test_config.session_id = None
        with pytest.raises(ConfigurationError, match="No session id"):
            ForceClient.from_config(test_config)


class TestRunQuery:
    """Tests for query-then-emit."""

    def test_emits_every_record_across_parts(self, make_connection):
        parts = {f"752R{k}": [{"Id": f"{k}-{i}"} for i in range(k)] for k in (1, 2, 3)}
        connection = make_connection(parts=parts)
        schema = Schema.from_config([{"name": "Id", "type": "string"}])
        page_builder = ColumnarPageBuilder(schema)

        count = run_query(_client(connection), "Account", "SELECT Id FROM Account", schema, page_builder)

        assert count == 6
        assert page_builder.columns()["Id"] == ["1-0", "2-0", "2-1", "3-0", "3-1", "3-2"]
