"""
Error classes for soqlbulk execution.

Every failure of a bulk query aborts the whole query:
- RemoteServiceError: The Bulk API rejected a request or returned unreadable data
- ConfigurationError: User-fixable problem (bad SOQL, unsupported object, bad config)
- InterruptedExecution: The blocking wait for a batch was interrupted
- RecordConversionError: A JSON value could not be written to its column

None of these are retried internally. Retry, if wanted, belongs to the caller.
"""


class SoqlBulkError(Exception):
    """Base exception for soqlbulk."""
    pass


class RemoteServiceError(SoqlBulkError):
    """
    The remote Bulk API failed a request.

    Examples:
    - Job or batch creation rejected (bad object name, expired session, quota)
    - Batch status or result list could not be read
    - A result part could not be opened or parsed as a JSON array

    Attributes:
        status_code: HTTP status code, if a response was received
        exception_code: Bulk API exceptionCode from the error body, if any
    """

    def __init__(self, message: str, status_code: int | None = None, exception_code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.exception_code = exception_code


class ConfigurationError(SoqlBulkError):
    """
    User-fixable configuration problem.

    Raised when a batch ends in a terminal state other than Completed
    (malformed SOQL, unsupported object, missing permission), and when
    configuration or job definitions are invalid. For batch failures the
    batch/job identifiers and the terminal state are attached.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_id: str | None = None,
        job_id: str | None = None,
        state: str | None = None,
        state_message: str | None = None,
    ):
        super().__init__(message)
        self.batch_id = batch_id
        self.job_id = job_id
        self.state = state
        self.state_message = state_message


class InterruptedExecution(SoqlBulkError):
    """The caller's wait for batch completion was interrupted."""
    pass


class RecordConversionError(SoqlBulkError):
    """A JSON field value could not be converted to its column type."""

    def __init__(self, message: str, column: str | None = None, value=None):
        super().__init__(message)
        self.column = column
        self.value = value
