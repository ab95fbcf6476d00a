"""
Per-connection outbound channel.

The coordinator mutates state synchronously and never awaits while doing so;
every frame it produces is enqueued here and written to the socket by a
dedicated writer task. Frames therefore leave in the order they were
enqueued, and a slow peer cannot stall anybody else.
"""

import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import WebSocket

from ..error_types import CLOSE_GOING_AWAY
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

CLOSE_NORMAL = 1000
DEFAULT_MAX_PENDING_FRAMES = 256


class ConnectionState(Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True)
class _CloseFrame:
    code: int
    reason: str


class ClientConnection:
    """
    A live WebSocket plus its outbound queue and liveness flag.

    Instances are hashed by identity and used as keys in the connection
    registry.
    """

    def __init__(
        self,
        websocket: WebSocket,
        connection_id: str | None = None,
        max_pending_frames: int = DEFAULT_MAX_PENDING_FRAMES,
    ):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.max_pending_frames = max_pending_frames
        self.is_alive = True
        self.close_code: int | None = None
        self._state = ConnectionState.OPEN
        # Unbounded so a close frame always fits; send_json enforces max_pending_frames
        self._outbound: asyncio.Queue[dict[str, Any] | _CloseFrame] = asyncio.Queue()
        self._closed = asyncio.Event()
        self._writer_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def closed(self) -> asyncio.Event:
        """Set once the close frame has been written or the transport failed."""
        return self._closed

    def start(self) -> asyncio.Task:
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(self._write_loop(), name=f"ws-writer-{self.connection_id}")
        return self._writer_task

    def mark_alive(self) -> None:
        self.is_alive = True

    def send_json(self, message: dict[str, Any]) -> bool:
        """
        Enqueue a frame for delivery.

        Returns:
            False when the connection is no longer open and the frame was dropped,
            or when the peer has fallen max_pending_frames behind and was terminated
        """
        if not self.is_open:
            logger.debug(
                "Dropping frame for closed connection",
                connection_id=self.connection_id,
                message_type=message.get("type"),
            )
            return False
        if self._outbound.qsize() >= self.max_pending_frames:
            logger.warning(
                "Outbound queue full, terminating slow connection",
                connection_id=self.connection_id,
                pending_frames=self._outbound.qsize(),
                message_type=message.get("type"),
            )
            self.terminate()
            return False
        self._outbound.put_nowait(message)
        return True

    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        """Close after every frame already queued has been written."""
        if not self.is_open:
            return
        self._state = ConnectionState.CLOSING
        self.close_code = code
        self._outbound.put_nowait(_CloseFrame(code, reason))

    def terminate(self) -> None:
        """Close immediately, discarding anything still queued."""
        if self._state is ConnectionState.CLOSED:
            return
        while not self._outbound.empty():
            self._outbound.get_nowait()
        self._state = ConnectionState.CLOSING
        self.close_code = CLOSE_GOING_AWAY
        self._outbound.put_nowait(_CloseFrame(CLOSE_GOING_AWAY, "Connection unresponsive"))

    async def wait_closed(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._closed.wait(), timeout)
        except TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        """Cancel the writer task (used once the socket is already gone)."""
        self._state = ConnectionState.CLOSED
        self._closed.set()
        if self._writer_task is not None and not self._writer_task.done():
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass

    async def _write_loop(self) -> None:
        while True:
            item = await self._outbound.get()
            try:
                if isinstance(item, _CloseFrame):
                    await self.websocket.close(code=item.code, reason=item.reason or None)
                    break
                await self.websocket.send_json(item)
            except Exception as e:  # pylint: disable=broad-exception-caught
                # Transport gone; the receive loop observes the disconnect and cleans up
                logger.debug(
                    "Outbound write failed",
                    connection_id=self.connection_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                break
        self._state = ConnectionState.CLOSED
        self._closed.set()
