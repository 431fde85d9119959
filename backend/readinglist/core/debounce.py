"""Value debouncing on top of a cancellable timer.

``Debouncer`` holds an observed value that trails the most recent pushed
value: each push restarts the delay window, and only the value that survives
a full quiet window is published. Timers come from a ``TimerScheduler`` so
the event loop can be swapped for a manual clock.
"""

import asyncio
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    """Anything that can run a callback once after ``delay`` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    @property
    def pending_count(self) -> int: ...


class CancelToken:
    """Handle returned by ``Debouncer.start``; cancelling it is idempotent."""

    def __init__(self, handle: TimerHandle):
        self._handle = handle
        self._done = False

    @property
    def active(self) -> bool:
        return not self._done

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        self._handle.cancel()

    def _fired(self) -> None:
        self._done = True


class AsyncioScheduler:
    """Timer scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._handles: set[asyncio.TimerHandle] = set()

    @property
    def pending_count(self) -> int:
        return len(self._handles)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def run() -> None:
            self._handles.discard(handle)
            callback()

        handle = loop.call_later(delay, run)
        self._handles.add(handle)
        return _AsyncioTimer(handle, self._handles)


class _AsyncioTimer:
    def __init__(self, handle: asyncio.TimerHandle, registry: set[Any]):
        self._handle = handle
        self._registry = registry

    def cancel(self) -> None:
        self._handle.cancel()
        self._registry.discard(self._handle)


class Debouncer(Generic[T]):
    """Publishes a value only after it has been stable for ``delay`` seconds.

    The initial value is observable immediately. ``on_change`` is called with
    the new observed value each time a settled value differs from the current
    one.
    """

    def __init__(
        self,
        initial: T,
        delay: float,
        on_change: Callable[[T], None] | None = None,
        scheduler: TimerScheduler | None = None,
    ):
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._value = initial
        self._delay = delay
        self._on_change = on_change
        self._scheduler = scheduler or AsyncioScheduler()
        self._token: CancelToken | None = None
        self._pending_value: T = initial
        self._closed = False

    @property
    def value(self) -> T:
        """The current observed (debounced) value."""
        return self._value

    @property
    def pending(self) -> bool:
        return self._token is not None and self._token.active

    @property
    def delay(self) -> float:
        return self._delay

    @delay.setter
    def delay(self, delay: float) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._delay = delay
        if self.pending:
            self.push(self._pending_value)

    @property
    def scheduler(self) -> TimerScheduler:
        return self._scheduler

    def start(self, value: T, delay: float, on_fire: Callable[[T], None]) -> CancelToken:
        """Schedule ``on_fire(value)`` after ``delay`` seconds.

        Low-level primitive: nothing else is cancelled, the caller owns the token.
        """
        token: CancelToken | None = None

        def fire() -> None:
            token._fired()
            on_fire(value)

        handle = self._scheduler.call_later(delay, fire)
        token = CancelToken(handle)
        return token

    def push(self, value: T, delay: float | None = None) -> None:
        """Record a new source value and restart the delay window."""
        if self._closed:
            raise RuntimeError("Debouncer is closed")
        if delay is not None:
            if delay < 0:
                raise ValueError("delay must not be negative")
            self._delay = delay

        self._pending_value = value
        # Atomic swap: detach the old timer before cancelling it
        old_token = self._token
        self._token = None
        if old_token is not None:
            old_token.cancel()
        self._token = self.start(value, self._delay, self._settle)

    def flush(self) -> None:
        """Publish the pending value now instead of waiting for the timer."""
        token = self._token
        self._token = None
        if token is None or not token.active:
            return
        token.cancel()
        self._settle(self._pending_value)

    def cancel(self) -> None:
        """Drop the pending value, keeping the current observed value."""
        token = self._token
        self._token = None
        if token is not None:
            token.cancel()
        self._pending_value = self._value

    def reset(self, value: T) -> None:
        """Cancel any pending value and set the observed value immediately."""
        self.cancel()
        self._pending_value = value
        self._apply(value)

    def close(self) -> None:
        """Cancel the pending timer for good. No callback fires afterwards."""
        self.cancel()
        self._closed = True

    def _settle(self, value: T) -> None:
        self._token = None
        if self._closed:
            return
        self._apply(value)

    def _apply(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        if self._on_change is not None:
            self._on_change(value)
