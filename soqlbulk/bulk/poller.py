"""
BatchStatusPoller - watch a batch until it reaches a terminal state.

Two loops run per query and only meet at a resolve-once handle:

    polling thread                         calling thread
    ──────────────                         ──────────────
    wait initial_delay                     sleep wait_interval
    get_batch_info ─┐                      pending.done()? ──no──┐
    terminal? ──no──┤ wait period              │yes              │
       │yes         └─────────────┘            ▼                 │
    resolve(PendingBatch) ───────────────► outcome()   ◄─────────┘
    stop

The polling thread is the only writer of batch observations. It stops as
soon as it resolves the handle, and it is cancelled when the caller gives
up (interruption or any other exit from the wait).
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable

from soqlbulk.errors import ConfigurationError, InterruptedExecution
from soqlbulk.schemas import BatchInfo, BatchOutcome, BatchState, JobInfo
from soqlbulk.stack_clients.bulk_connection import BulkConnection

INITIAL_DELAY = 1.0
PERIOD = 5.0
BATCH_STATUS_CHECK_INTERVAL = 10.0
# Upper bound on joining the polling thread; a status request may be in flight
CANCEL_TIMEOUT = 1.0


class PendingBatch:
    """Resolve-once handle for the outcome of one batch.

    The first call to resolve() or fail() settles the handle and stops the
    polling thread. Later calls are no-ops and return False.
    """

    def __init__(self, job: JobInfo, batch: BatchInfo):
        self.job = job
        self.batch = batch
        self.poll_count = 0
        self.last_info: BatchInfo | None = None
        self._future: Future = Future()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def resolve(self, outcome: BatchOutcome) -> bool:
        return self._settle(self._future.set_result, outcome)

    def fail(self, error: BaseException) -> bool:
        return self._settle(self._future.set_exception, error)

    def _settle(self, setter: Callable, value) -> bool:
        with self._lock:
            if self._future.done():
                return False
            setter(value)
        self._stop.set()
        return True

    def done(self) -> bool:
        return self._future.done()

    def outcome(self) -> BatchOutcome:
        """Return the resolved outcome, re-raising a polling error."""
        return self._future.result(timeout=0)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def cancel(self, timeout: float | None = None) -> None:
        """Stop polling and wait for the polling thread to exit."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


class BatchStatusPoller:
    """
    Polls a batch on a fixed schedule until it is Completed, Failed or NotProcessed.

    Args:
        connection: Bulk API connection
        initial_delay: Seconds before the first status check
        period: Seconds between status checks
        wait_interval: Seconds between the caller's checks of the handle
        cancel_timeout: Seconds to wait for the polling thread when giving up
        sleep: Sleep function used by the caller's wait loop
        logger: Logger (defaults to the module logger)
    """

    def __init__(
        self,
        connection: BulkConnection,
        *,
        initial_delay: float = INITIAL_DELAY,
        period: float = PERIOD,
        wait_interval: float = BATCH_STATUS_CHECK_INTERVAL,
        cancel_timeout: float = CANCEL_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ):
        self.connection = connection
        self.initial_delay = initial_delay
        self.period = period
        self.wait_interval = wait_interval
        self.cancel_timeout = cancel_timeout
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def start(self, job: JobInfo, batch: BatchInfo) -> PendingBatch:
        """Start the polling thread for a batch and return its handle."""
        pending = PendingBatch(job, batch)
        thread = threading.Thread(
            target=self._run,
            args=(pending,),
            name=f"batch-status-{batch.id}",
            daemon=True,
        )
        pending._thread = thread
        thread.start()
        return pending

    def _run(self, pending: PendingBatch) -> None:
        delay = self.initial_delay
        while not pending._stop.wait(delay):
            self.check(pending)
            delay = self.period

    def check(self, pending: PendingBatch) -> None:
        """Run one status check and resolve the handle on a terminal state."""
        if pending.done():
            return

        job, batch = pending.job, pending.batch
        pending.poll_count += 1
        try:
            info = self.connection.get_batch_info(job.id, batch.id)
            pending.last_info = info
            self.logger.debug(f"batch {batch.id} state: {info.state.value}")

            if info.state is BatchState.COMPLETED:
                result_ids = self.connection.get_query_result_list(job.id, batch.id)
                pending.resolve(BatchOutcome(info.state, info.state_message, result_ids))
            elif info.state.is_terminal:
                pending.resolve(BatchOutcome(info.state, info.state_message))
        except Exception as e:
            # The caller is blocked on the handle; hand the error to it.
            self.logger.error(f"Status check failed for batch {batch.id}: {e}")
            pending.fail(e)

    def wait(self, pending: PendingBatch) -> BatchOutcome:
        """Block until the handle resolves.

        Raises:
            InterruptedExecution: If the wait is interrupted
            RemoteServiceError: If polling failed
        """
        try:
            while not pending.done():
                self._sleep(self.wait_interval)
        except KeyboardInterrupt as e:
            try:
                pending.cancel(self.cancel_timeout)
            except KeyboardInterrupt:
                # Repeated interrupt while joining; the thread is a daemon
                self.logger.warning(f"Interrupted again while stopping polling for batch {pending.batch.id}")
            self.logger.error(f"Interrupted while waiting for batch {pending.batch.id}", exc_info=True)
            raise InterruptedExecution(
                f"Interrupted while waiting for batch {pending.batch.id} (job {pending.job.id})"
            ) from e
        return pending.outcome()

    def await_completion(self, job: JobInfo, batch: BatchInfo) -> list[str]:
        """Poll a batch to completion and return its result part ids.

        Raises:
            ConfigurationError: If the batch ended Failed or NotProcessed
            InterruptedExecution: If the wait is interrupted
            RemoteServiceError: If the service could not be polled
        """
        pending = self.start(job, batch)
        try:
            outcome = self.wait(pending)
        finally:
            pending.cancel(self.cancel_timeout)

        if not outcome.completed:
            # Report the service's current view, not the polled snapshot.
            info = self.connection.get_batch_info(batch.job_id, batch.id)
            msg = (
                f"soql batch not completed. batch_id={info.id}. job_id={job.id}. "
                f"batch_state={info.state.value}. batch_state_message={info.state_message}."
            )
            self.logger.error(msg)
            raise ConfigurationError(
                msg,
                batch_id=info.id,
                job_id=job.id,
                state=info.state.value,
                state_message=info.state_message,
            )

        self.logger.info(f"batch {batch.id} completed with {len(outcome.result_ids)} result part(s)")
        return outcome.result_ids
