"""
Bulk API connection - IO boundary for the Salesforce Bulk API (1.0, JSON).

This module is the single place soqlbulk talks HTTP. Everything above it
(JobManager, BatchStatusPoller, ResultAssembler) works with JobInfo/BatchInfo
and plain Python values.

The connection is handed an already-issued session id; it never logs in.
One connection (and its requests.Session) is shared by all components of a
query. It is only used for stateless request/response calls.

Endpoints used, relative to {instance_url}/services/async/{api_version}:
    POST /job                                   create job
    POST /job/{job_id}                          close job ({"state": "Closed"})
    POST /job/{job_id}/batch                    create batch (SOQL body)
    GET  /job/{job_id}/batch/{batch_id}         batch info
    GET  /job/{job_id}/batch/{batch_id}/result  result id list
    GET  /job/{job_id}/batch/{batch_id}/result/{result_id}   result part

Error classification:
- requests.RequestException -> RemoteServiceError
- Non-2xx response -> RemoteServiceError (with exceptionCode/exceptionMessage)
- Unreadable response body -> RemoteServiceError
"""

import logging
from typing import Any, BinaryIO

import requests

from soqlbulk.errors import RemoteServiceError
from soqlbulk.schemas import BatchInfo, JobInfo

logger = logging.getLogger(__name__)


def rest_endpoint_from_service_endpoint(service_endpoint: str, api_version: str) -> str:
    """Derive the async REST endpoint from a SOAP service endpoint.

    Example:
        >>> rest_endpoint_from_service_endpoint(
        ...     "https://na1.salesforce.com/services/Soap/u/48.0/00D...", "48.0")
        'https://na1.salesforce.com/services/async/48.0'
    """
    marker = service_endpoint.find("Soap/")
    if marker < 0:
        raise ValueError(f"Not a SOAP service endpoint: {service_endpoint}")
    return f"{service_endpoint[:marker]}async/{api_version}"


class BulkConnection:
    """Authenticated handle to the Bulk API.

    Args:
        rest_endpoint: Async endpoint, e.g. https://na1.salesforce.com/services/async/48.0
        session_id: Session id issued by a prior login
        session: Optional requests.Session (created if not provided)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        rest_endpoint: str,
        session_id: str,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ):
        self.rest_endpoint = rest_endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "X-SFDC-Session": session_id,
            "Content-Type": "application/json; charset=UTF-8",
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
        })

    def _url(self, *parts: str) -> str:
        return "/".join([self.rest_endpoint, *parts])

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug(f"Bulk API {method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteServiceError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise _error_from_response(method, url, response)
        return response

    def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self._request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"{method} {url} returned a non-JSON body", status_code=response.status_code
            ) from e

    def create_job(self, job: JobInfo) -> JobInfo:
        """Create a job and return it with its remote-assigned id."""
        data = self._request_json("POST", self._url("job"), json=job.to_request())
        return _parse(JobInfo.from_response, data, "job")

    def create_batch(self, job: JobInfo, soql: str) -> BatchInfo:
        """Submit the SOQL text as the job's batch."""
        data = self._request_json("POST", self._url("job", job.id, "batch"), data=soql.encode("utf-8"))
        return _parse(BatchInfo.from_response, data, "batch")

    def get_batch_info(self, job_id: str, batch_id: str) -> BatchInfo:
        """Fetch the current state of a batch."""
        data = self._request_json("GET", self._url("job", job_id, "batch", batch_id))
        return _parse(BatchInfo.from_response, data, "batch")

    def get_query_result_list(self, job_id: str, batch_id: str) -> list[str]:
        """List result part ids of a completed batch, in concatenation order."""
        data = self._request_json("GET", self._url("job", job_id, "batch", batch_id, "result"))
        if not isinstance(data, list):
            raise RemoteServiceError(f"Result list for batch {batch_id} is not a JSON array")
        return [str(result_id) for result_id in data]

    def get_query_result_stream(self, job_id: str, batch_id: str, result_id: str) -> BinaryIO:
        """Open one result part as a binary stream. Caller closes it."""
        url = self._url("job", job_id, "batch", batch_id, "result", result_id)
        response = self._request("GET", url, stream=True)
        response.raw.decode_content = True
        return response.raw

    def close_job(self, job_id: str) -> JobInfo:
        """Mark a job Closed."""
        data = self._request_json("POST", self._url("job", job_id), json={"state": "Closed"})
        return _parse(JobInfo.from_response, data, "job")


def _parse(factory, data: Any, kind: str):
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError) as e:
        raise RemoteServiceError(f"Unexpected {kind} info from Bulk API: {data!r}") from e


def _error_from_response(method: str, url: str, response: requests.Response) -> RemoteServiceError:
    exception_code = None
    detail = response.text[:500]
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        exception_code = body.get("exceptionCode")
        detail = body.get("exceptionMessage") or detail

    message = f"{method} {url} returned HTTP {response.status_code}"
    if exception_code:
        message += f" ({exception_code})"
    if detail:
        message += f": {detail}"
    return RemoteServiceError(message, status_code=response.status_code, exception_code=exception_code)
