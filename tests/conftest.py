import io
import json
import threading
import time
from unittest.mock import patch

import pytest

from soqlbulk.config import SoqlBulkConfig
from soqlbulk.errors import RemoteServiceError
from soqlbulk.schemas import BatchInfo, BatchState, JobInfo


@pytest.fixture
def test_config():
    return SoqlBulkConfig(
        instance_url="https://test.my.salesforce.com",
        project="test-project",
        dataset="test_dataset",
        session_id="test-session",
        poll_initial_delay=0.01,
        poll_interval=0.01,
        wait_interval=0.01,
        log_level="WARNING",
    )


@pytest.fixture
def mock_load_config(test_config):
    with patch("soqlbulk.config.load_config", return_value=test_config):
        yield test_config


class FakeConnection:
    """Scripted stand-in for BulkConnection.

    Batch status polls return `states` in order, repeating the last one.
    Result parts are served from `parts` (result_id -> list or raw bytes),
    optionally after a per-part delay.
    """

    def __init__(
        self,
        states=(BatchState.COMPLETED,),
        state_message=None,
        parts=None,
        delays=None,
        close_error=None,
    ):
        self.states = list(states)
        self.state_message = state_message
        self.parts = parts if parts is not None else {}
        self.delays = delays or {}
        self.close_error = close_error
        self.calls = []
        self.status_calls = 0
        self.closed_jobs = []
        self.fetched = []
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name, *args))

    def create_job(self, job):
        self._record("create_job", job.object)
        return JobInfo(object=job.object, id="750J0001", state="Open")

    def create_batch(self, job, soql):
        self._record("create_batch", job.id, soql)
        return BatchInfo(id="751B0001", job_id=job.id, state=BatchState.QUEUED)

    def get_batch_info(self, job_id, batch_id):
        with self._lock:
            index = min(self.status_calls, len(self.states) - 1)
            self.status_calls += 1
        self._record("get_batch_info", job_id, batch_id)
        state = self.states[index]
        return BatchInfo(
            id=batch_id,
            job_id=job_id,
            state=state,
            state_message=self.state_message if state.is_terminal else None,
        )

    def get_query_result_list(self, job_id, batch_id):
        self._record("get_query_result_list", job_id, batch_id)
        return list(self.parts.keys())

    def get_query_result_stream(self, job_id, batch_id, result_id):
        self._record("get_query_result_stream", job_id, batch_id, result_id)
        delay = self.delays.get(result_id)
        if delay:
            time.sleep(delay)
        with self._lock:
            self.fetched.append(result_id)
        body = self.parts[result_id]
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        return io.BytesIO(body)

    def close_job(self, job_id):
        self._record("close_job", job_id)
        self.closed_jobs.append(job_id)
        if self.close_error:
            raise RemoteServiceError(self.close_error)
        return JobInfo(object="", id=job_id, state="Closed")

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_connection():
    return FakeConnection(parts={"752R0001": [{"Id": "001A"}]})


@pytest.fixture
def make_connection():
    return FakeConnection
