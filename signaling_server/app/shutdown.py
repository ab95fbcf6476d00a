"""
Shutdown handling for the signaling server.

Normal shutdown runs from the FastAPI lifespan when uvicorn receives SIGTERM
or SIGINT. Unhandled faults on the event loop take the emergency path:
notify every client, ask uvicorn to stop, and force the process down if that
has not happened within the shutdown timeout.
"""

import asyncio
import os
import signal
import threading
import time
from collections.abc import Callable
from typing import Any

from ..realtime.coordinator import SignalingCoordinator
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

DISABLE_PROCESS_EXIT_ENV = "SIGNALING_DISABLE_PROCESS_EXIT"


async def shutdown_signaling(coordinator: SignalingCoordinator, timeout: float) -> bool:
    """
    Stop probing, tell every client the server is going away and wait for the
    close frames to be written.

    Returns:
        True if every connection closed within ``timeout`` seconds
    """
    await coordinator.liveness.stop()
    connections = [connection for connection in coordinator.registry.connections() if connection.is_open]
    coordinator.broadcast_shutdown()

    if not connections:
        return True

    results = await asyncio.gather(*(connection.wait_closed(timeout) for connection in connections))
    pending = results.count(False)
    if pending:
        logger.warning("Connections still open after shutdown timeout", pending=pending, timeout=timeout)
        return False
    logger.info("All client connections closed", closed=len(connections))
    return True


def schedule_forced_exit(delay_seconds: float, exit_code: int = 1) -> threading.Thread | None:
    """
    Exit the process after ``delay_seconds`` no matter what the loop is doing.

    Runs on a daemon thread so a blocked event loop cannot prevent it.
    Disabled when SIGNALING_DISABLE_PROCESS_EXIT=1 (used by tests).
    """
    if os.environ.get(DISABLE_PROCESS_EXIT_ENV) == "1":
        logger.info("Forced exit disabled by environment variable")
        return None

    def _terminator() -> None:
        time.sleep(delay_seconds)
        logger.critical("Shutdown did not complete in time, forcing exit", delay_seconds=delay_seconds)
        os._exit(exit_code)

    thread = threading.Thread(target=_terminator, name="signaling-forced-exit", daemon=True)
    thread.start()
    return thread


def request_process_shutdown() -> None:
    """Ask uvicorn to run its graceful shutdown (and therefore the lifespan exit)."""
    if os.environ.get(DISABLE_PROCESS_EXIT_ENV) == "1":
        logger.info("Process shutdown request disabled by environment variable")
        return
    try:
        os.kill(os.getpid(), signal.SIGTERM)
    except OSError as e:
        logger.error("Failed to signal process shutdown", error=str(e))


class EmergencyShutdown:
    """
    One-shot emergency shutdown triggered by an unhandled loop fault.

    The collaborators are injectable so the sequence can be exercised without
    killing the test process.
    """

    def __init__(
        self,
        coordinator: SignalingCoordinator,
        timeout: float,
        request_shutdown: Callable[[], None] = request_process_shutdown,
        force_exit: Callable[[float], Any] = schedule_forced_exit,
    ):
        self.coordinator = coordinator
        self.timeout = timeout
        self.request_shutdown = request_shutdown
        self.force_exit = force_exit
        self.triggered = False

    def trigger(self, reason: str, error: BaseException | None = None) -> bool:
        if self.triggered:
            return False
        self.triggered = True

        logger.critical(
            "Unhandled fault, shutting down",
            reason=reason,
            error=str(error) if error else None,
            error_type=type(error).__name__ if error else None,
            exc_info=error,
        )
        try:
            self.coordinator.broadcast_shutdown()
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Best effort; the forced exit below still applies
            logger.error("Failed to broadcast shutdown notice", error=str(e))

        self.force_exit(self.timeout)
        self.request_shutdown()
        return True

    def handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        """asyncio exception handler; faults without an exception object go to the default handler."""
        exception = context.get("exception")
        if exception is None:
            loop.default_exception_handler(context)
            return
        self.trigger(context.get("message", "Unhandled exception in event loop"), exception)


def install_fault_handler(
    loop: asyncio.AbstractEventLoop, coordinator: SignalingCoordinator, timeout: float
) -> EmergencyShutdown:
    emergency = EmergencyShutdown(coordinator, timeout)
    loop.set_exception_handler(emergency.handle_loop_exception)
    logger.debug("Loop fault handler installed", timeout=timeout)
    return emergency
