"""
Reconnection controller — linear backoff with a capped number of retries.

  IDLE --connect()--> CONNECTING --ok--> CONNECTED
                      CONNECTING --error--> IDLE (caller sees the failure)
  CONNECTED --unsolicited close--> RECONNECTING(1)
  RECONNECTING(n) --after base_delay * n--> retry
      ok    -> CONNECTED (attempt reset)
      error -> RECONNECTING(n + 1) while n < max_attempts, else FAILED
  FAILED stays put until an explicit connect().
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

logger = logging.getLogger("lan_bridge.reconnect")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0  # seconds


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


class Cancellable(Protocol):
    def cancel(self) -> object: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], Awaitable[None]]) -> Cancellable: ...


class AsyncioScheduler:
    """Runs the delay and the callback inside one task, so cancel() also aborts an in-flight retry."""

    def schedule(self, delay: float, callback: Callable[[], Awaitable[None]]) -> asyncio.Task:
        async def _delayed() -> None:
            await asyncio.sleep(delay)
            await callback()

        return asyncio.get_running_loop().create_task(_delayed())


class ReconnectionController:
    def __init__(
        self,
        connect: Callable[[], Awaitable[None]],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        scheduler: Optional[Scheduler] = None,
    ):
        self._connect = connect
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._scheduler = scheduler or AsyncioScheduler()
        self._state = ConnectionState.IDLE
        self._attempt = 0
        self._pending: Optional[Cancellable] = None
        self._listeners: list[Callable[[ConnectionState, int], None]] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def attempt(self) -> int:
        return self._attempt

    def add_listener(self, listener: Callable[[ConnectionState, int], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _set_state(self, state: ConnectionState) -> None:
        # RECONNECTING repeats with a new attempt number; listeners still want it
        if state is self._state and state is not ConnectionState.RECONNECTING:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state, self._attempt)
            except Exception:
                logger.exception(f"State listener failed on {state.value}")

    async def connect(self) -> None:
        """Explicit connect. Errors propagate to the caller and never start a retry cycle."""
        self._cancel_pending()
        self._attempt = 0
        self._set_state(ConnectionState.CONNECTING)
        try:
            await self._connect()
        except BaseException:
            self._set_state(ConnectionState.IDLE)
            raise
        self._set_state(ConnectionState.CONNECTED)

    def connection_lost(self) -> None:
        """Unsolicited close reported by the transport."""
        if self._state is not ConnectionState.CONNECTED:
            return
        if self._attempt < self.max_attempts:
            self._attempt += 1
            self._set_state(ConnectionState.RECONNECTING)
            self._schedule_retry()
        else:
            logger.error("Max reconnection attempts reached")
            self._set_state(ConnectionState.FAILED)

    def cancel(self) -> None:
        """Explicit disconnect: drop any pending retry and go idle."""
        self._cancel_pending()
        self._set_state(ConnectionState.IDLE)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_retry(self) -> None:
        delay = self.base_delay * self._attempt
        logger.info(f"Attempting to reconnect in {delay:g}s ({self._attempt}/{self.max_attempts})")
        self._pending = self._scheduler.schedule(delay, self._retry)

    async def _retry(self) -> None:
        if self._state is not ConnectionState.RECONNECTING:
            return
        try:
            await self._connect()
        except Exception as e:
            logger.info(f"Reconnect attempt {self._attempt} failed: {e}")
            if self._attempt < self.max_attempts:
                self._attempt += 1
                self._set_state(ConnectionState.RECONNECTING)
                self._schedule_retry()
            else:
                self._pending = None
                logger.error("Max reconnection attempts reached")
                self._set_state(ConnectionState.FAILED)
            return
        self._pending = None
        self._attempt = 0
        logger.info("Reconnected")
        self._set_state(ConnectionState.CONNECTED)
