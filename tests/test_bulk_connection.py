"""Tests for the Bulk API connection (HTTP boundary)."""

import pytest
import requests
from unittest.mock import MagicMock

from soqlbulk.errors import RemoteServiceError
from soqlbulk.schemas import BatchState, JobInfo
from soqlbulk.stack_clients.bulk_connection import (
    BulkConnection,
    rest_endpoint_from_service_endpoint,
)

ENDPOINT = "https://acme.my.salesforce.com/services/async/48.0"


def _response(body=None, ok=True, status_code=200, text=""):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def connection(session):
    return BulkConnection(ENDPOINT + "/", "00Dsession", session=session, timeout=30)


class TestRestEndpoint:
    """Tests for SOAP -> async endpoint derivation."""

    def test_derives_async_endpoint(self):
        soap = "https://acme.my.salesforce.com/services/Soap/u/48.0/00D000000000001"
        assert rest_endpoint_from_service_endpoint(soap, "48.0") == ENDPOINT

    def test_rejects_non_soap_endpoint(self):
        with pytest.raises(ValueError, match="Not a SOAP service endpoint"):
            rest_endpoint_from_service_endpoint("https://acme.my.salesforce.com/", "48.0")


class TestBulkConnection:
    """Tests for request building and response parsing."""

    def test_session_headers(self, connection, session):
        """Session id and gzip are sent on every request."""
        assert session.headers["X-SFDC-Session"] == "00Dsession"
        assert session.headers["Accept-Encoding"] == "gzip"
        assert connection.rest_endpoint == ENDPOINT

    def test_create_job(self, connection, session):
        session.request.return_value = _response(
            {"id": "750J", "object": "Account", "operation": "query", "state": "Open"}
        )

        job = connection.create_job(JobInfo(object="Account"))

        assert job.id == "750J"
        assert job.state == "Open"
        session.request.assert_called_once_with(
            "POST",
            f"{ENDPOINT}/job",
            timeout=30,
            json={
                "operation": "query",
                "object": "Account",
                "concurrencyMode": "Parallel",
                "contentType": "JSON",
            },
        )

    def test_create_batch_sends_soql_body(self, connection, session):
        session.request.return_value = _response({"id": "751B", "jobId": "750J", "state": "Queued"})

        batch = connection.create_batch(JobInfo(object="Account", id="750J"), "SELECT Id FROM Account")

        assert batch.id == "751B"
        assert batch.state is BatchState.QUEUED
        args, kwargs = session.request.call_args
        assert args == ("POST", f"{ENDPOINT}/job/750J/batch")
        assert kwargs["data"] == b"SELECT Id FROM Account"

    def test_get_batch_info(self, connection, session):
        session.request.return_value = _response({
            "id": "751B",
            "jobId": "750J",
            "state": "Failed",
            "stateMessage": "InvalidBatch : row limit exceeded",
            "numberRecordsProcessed": 0,
        })

        info = connection.get_batch_info("750J", "751B")

        assert info.state is BatchState.FAILED
        assert info.state_message == "InvalidBatch : row limit exceeded"
        assert session.request.call_args[0] == ("GET", f"{ENDPOINT}/job/750J/batch/751B")

    def test_unexpected_batch_info(self, connection, session):
        """Unknown state or missing keys raise RemoteServiceError."""
        session.request.return_value = _response({"id": "751B", "jobId": "750J", "state": "Exploded"})
        with pytest.raises(RemoteServiceError, match="Unexpected batch info"):
            connection.get_batch_info("750J", "751B")

    def test_get_query_result_list(self, connection, session):
        session.request.return_value = _response(["752R1", "752R2"])
        assert connection.get_query_result_list("750J", "751B") == ["752R1", "752R2"]
        assert session.request.call_args[0] == ("GET", f"{ENDPOINT}/job/750J/batch/751B/result")

    def test_result_list_must_be_array(self, connection, session):
        session.request.return_value = _response({"result": []})
        with pytest.raises(RemoteServiceError, match="not a JSON array"):
            connection.get_query_result_list("750J", "751B")

    def test_get_query_result_stream(self, connection, session):
        response = _response()
        session.request.return_value = response

        stream = connection.get_query_result_stream("750J", "751B", "752R1")

        assert stream is response.raw
        assert stream.decode_content is True
        args, kwargs = session.request.call_args
        assert args == ("GET", f"{ENDPOINT}/job/750J/batch/751B/result/752R1")
        assert kwargs["stream"] is True

    def test_close_job(self, connection, session):
        session.request.return_value = _response({"id": "750J", "state": "Closed"})

        job = connection.close_job("750J")

        assert job.state == "Closed"
        args, kwargs = session.request.call_args
        assert args == ("POST", f"{ENDPOINT}/job/750J")
        assert kwargs["json"] == {"state": "Closed"}


class TestBulkConnectionErrors:
    """Tests for error classification."""

    def test_http_error_with_service_body(self, connection, session):
        session.request.return_value = _response(
            {"exceptionCode": "InvalidSessionId", "exceptionMessage": "Invalid session id"},
            ok=False,
            status_code=400,
        )

        with pytest.raises(RemoteServiceError) as exc_info:
            connection.create_job(JobInfo(object="Account"))

        error = exc_info.value
        assert error.status_code == 400
        assert error.exception_code == "InvalidSessionId"
        assert "Invalid session id" in str(error)

    def test_http_error_without_json_body(self, connection, session):
        session.request.return_value = _response(
            ValueError("no json"), ok=False, status_code=503, text="Service Unavailable"
        )

        with pytest.raises(RemoteServiceError, match="HTTP 503: Service Unavailable") as exc_info:
            connection.get_batch_info("750J", "751B")
        assert exc_info.value.exception_code is None

    def test_transport_error(self, connection, session):
        session.request.side_effect = requests.ConnectionError("connection reset")
        with pytest.raises(RemoteServiceError, match="connection reset"):
            connection.get_batch_info("750J", "751B")

    def test_non_json_success_body(self, connection, session):
        session.request.return_value = _response(ValueError("no json"))
        with pytest.raises(RemoteServiceError, match="non-JSON body"):
            connection.close_job("750J")
