"""
Debounced per-channel batching.

Callers enqueue items on a channel and return immediately. Each enqueue
restarts the channel's timer; when the timer finally expires the buffer is
swapped out under the lock and handed to the flush callback on the timer
thread. An item therefore lands in exactly one flush.

Survives across warm Lambda invocations; the handler shell calls `flush()`
before returning so nothing is left behind when the environment freezes.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

FlushCallback = Callable[[Hashable, List[T]], None]
TimerFactory = Callable[[float, Callable[[], None]], "threading.Timer"]


def default_timer_factory(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    """Non-daemon timer so the interpreter waits for pending flushes on exit."""
    return threading.Timer(delay_seconds, callback)


@dataclass
class _Channel(Generic[T]):
    items: List[T] = field(default_factory=list)
    timer: Optional[threading.Timer] = None
    generation: int = 0
    first_enqueued_at: float = 0.0


class BatchCoalescer(Generic[T]):
    """Buffer homogeneous items per channel and flush them after a quiet window."""

    def __init__(
        self,
        name: str,
        on_flush: FlushCallback,
        delay_ms: int = 300,
        max_wait_ms: int = 0,
        timer_factory: Optional[TimerFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.delay_ms = delay_ms
        self.max_wait_ms = max_wait_ms
        self._on_flush = on_flush
        self._timer_factory = timer_factory or default_timer_factory
        self._clock = clock
        self._channels: Dict[Hashable, _Channel[T]] = {}
        self._lock = threading.Lock()

    def enqueue(self, channel: Hashable, item: T) -> None:
        """Append to the channel buffer and restart its debounce timer."""
        with self._lock:
            state = self._channels.get(channel)
            if state is None:
                state = self._channels[channel] = _Channel()
            if not state.items:
                state.first_enqueued_at = self._clock()
            state.items.append(item)

            if state.timer is not None:
                state.timer.cancel()
            state.generation += 1
            state.timer = self._timer_factory(
                self._next_delay(state) / 1000.0,
                partial(self._expire, channel, state.generation),
            )
            state.timer.start()

    def pending(self, channel: Hashable) -> List[T]:
        """Copy of the items still buffered on `channel`, oldest first."""
        with self._lock:
            state = self._channels.get(channel)
            return list(state.items) if state else []

    def channels(self) -> List[Hashable]:
        """Channels that currently hold buffered items."""
        with self._lock:
            return [channel for channel, state in self._channels.items() if state.items]

    def flush(self, channel: Optional[Hashable] = None) -> int:
        """
        Cancel outstanding timers and flush synchronously on the calling thread.

        Every non-empty channel is delivered even if an earlier one fails; the
        first failure is re-raised afterwards. Returns the number of items
        handed to the flush callback.
        """
        with self._lock:
            targets = [channel] if channel is not None else list(self._channels)
            snapshots = []
            for target in targets:
                items = self._take_locked(target)
                if items:
                    snapshots.append((target, items))

        first_error: Optional[Exception] = None
        flushed = 0
        for target, items in snapshots:
            flushed += len(items)
            try:
                self._on_flush(target, items)
            except Exception as exc:
                logger.exception(
                    "Flush failed",
                    extra={"coalescer": self.name, "channel": str(target), "count": len(items)},
                )
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return flushed

    def _next_delay(self, state: _Channel[T]) -> float:
        """Debounce delay, clipped so a busy channel still flushes within max_wait_ms."""
        if self.max_wait_ms <= 0:
            return float(self.delay_ms)
        waited_ms = (self._clock() - state.first_enqueued_at) * 1000.0
        return max(0.0, min(float(self.delay_ms), self.max_wait_ms - waited_ms))

    def _take_locked(self, channel: Hashable) -> List[T]:
        """Swap out the channel buffer. Caller must hold self._lock."""
        state = self._channels.get(channel)
        if state is None:
            return []
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None
        state.generation += 1
        items, state.items = state.items, []
        return items

    def _expire(self, channel: Hashable, generation: int) -> None:
        with self._lock:
            state = self._channels.get(channel)
            # A newer enqueue or an explicit flush superseded this timer.
            if state is None or state.generation != generation:
                return
            items = self._take_locked(channel)
        if not items:
            return
        try:
            self._on_flush(channel, items)
        except Exception:
            logger.exception(
                "Scheduled flush failed",
                extra={"coalescer": self.name, "channel": str(channel), "count": len(items)},
            )
