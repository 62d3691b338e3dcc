import asyncio
import logging
from enum import Enum
from typing import Awaitable, TypeVar

T = TypeVar("T")


class SessionPhase(Enum):
    ACTIVE = "active"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class ShutdownReason(Enum):
    END_OF_INPUT = "end_of_input"
    INTERRUPT = "interrupt"
    SERVER_DISCONNECT = "server_disconnect"
    TRANSPORT_ERROR = "transport_error"

    @property
    def is_local(self) -> bool:
        """Whether the user ended the session rather than the server or network."""
        return self in (ShutdownReason.END_OF_INPUT, ShutdownReason.INTERRUPT)

    @property
    def sends_logout(self) -> bool:
        """Whether the connection may still carry a LOGOUT frame."""
        return self is not ShutdownReason.TRANSPORT_ERROR


class SessionInterrupted(Exception):
    """Raised when a blocking operation is abandoned because the session ended."""


class ShutdownCoordinator:
    """
    Cancellation signal shared by the receiver and sender tasks.

    The signal can be raised once. Raising it wakes every operation awaited
    through `interruptible`, so neither task stays blocked on a read after
    the other one (or a signal handler) ended the session.
    """

    def __init__(self, logger_name: str = "chat_client"):
        self.logger = logging.getLogger(logger_name)
        self._event = asyncio.Event()
        self._phase = SessionPhase.ACTIVE
        self._reason: ShutdownReason | None = None

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def reason(self) -> ShutdownReason | None:
        return self._reason

    @property
    def running(self) -> bool:
        return self._phase is SessionPhase.ACTIVE

    def is_set(self) -> bool:
        return self._event.is_set()

    def request(self, reason: ShutdownReason) -> bool:
        """
        Raises the shutdown signal.

        Returns:
            True if this call ended the session, False if it was already ending.
        """
        if self._event.is_set():
            self.logger.debug(f"Shutdown already requested, ignoring {reason.value}")
            return False

        self._reason = reason
        self._phase = SessionPhase.SHUTTING_DOWN
        self._event.set()
        self.logger.info(f"Shutdown requested: {reason.value}")
        return True

    def mark_stopped(self):
        if self._phase is SessionPhase.ACTIVE:
            raise RuntimeError("Cannot stop a session that was never shut down")
        self._phase = SessionPhase.STOPPED
        self.logger.info("Session stopped")

    async def interruptible(self, operation: Awaitable[T]) -> T:
        """
        Awaits an operation unless the shutdown signal is raised first.

        Raises:
            SessionInterrupted: The signal was raised before the operation
                finished. The operation has been cancelled.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(operation):
                operation.close()
            raise SessionInterrupted()

        task = asyncio.ensure_future(operation)
        stop = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, stop}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            stop.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise SessionInterrupted()
