# handoff.py
"""Bounded queue carrying finished frames to the presenter."""
from __future__ import annotations

import threading
import time
from collections import deque
from contextlib import nullcontext
from typing import Callable, ContextManager, Deque, Optional

from eye_tracking.common import Frame, HandoffFailure


class HandoffQueue:
    """
    Capacity-bounded FIFO.  Producers block in :meth:`push` while full,
    which throttles the whole pipeline to the consumer's pace; consumers
    poll with :meth:`try_pop`.

    ``on_push`` is called under the (re-entrant) lock after every successful
    push so a presenter can schedule a repaint.
    """
    def __init__(
        self,
        capacity: int = 2,
        on_push: Optional[Callable[[], None]] = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.on_push = on_push
        self._items: Deque[Frame] = deque()
        self._cond = threading.Condition()
        self.high_watermark = 0

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    # ---------------- Producer side ----------------
    def offer(self, frame: Frame) -> bool:
        """
        Non-blocking push; False when full.  A failing ``on_push`` takes the
        frame back out before :class:`HandoffFailure` propagates, so the
        consumer never sees it.
        """
        with self._cond:
            if len(self._items) >= self.capacity:
                return False
            self._items.append(frame)
            try:
                self._notify()
            except HandoffFailure:
                self._items.pop()
                raise
            self.high_watermark = max(self.high_watermark, len(self._items))
            self._cond.notify_all()
        return True

    def wait_for_space(self, timeout: float) -> bool:
        with self._cond:
            return self._cond.wait_for(
                lambda: len(self._items) < self.capacity, timeout=timeout
            )

    def push(
        self,
        frame: Frame,
        should_abort: Optional[Callable[[], bool]] = None,
        poll_s: float = 0.05,
        gate: Optional[ContextManager] = None,
    ) -> bool:
        """
        Blocking push.  Returns False without queuing if ``should_abort``
        turns true while waiting for space.  When ``gate`` is given the
        abort check and the enqueue happen under it, so whoever flips the
        abort condition under the same gate never sees a late push.
        """
        gate = gate if gate is not None else nullcontext()
        while True:
            with gate:
                if should_abort is not None and should_abort():
                    return False
                if self.offer(frame):
                    return True
            self.wait_for_space(poll_s)

    def _notify(self) -> None:
        if self.on_push is None:
            return
        try:
            self.on_push()
        except Exception as exc:
            raise HandoffFailure(f"frame-ready callback failed: {exc}") from exc

    # ---------------- Consumer side ----------------
    def try_pop(self) -> Optional[Frame]:
        with self._cond:
            if not self._items:
                return None
            frame = self._items.popleft()
            self._cond.notify_all()
            return frame

    def pop(self, timeout: float) -> Optional[Frame]:
        """Wait up to ``timeout`` seconds for a frame."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while not self._items:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)
            frame = self._items.popleft()
            self._cond.notify_all()
            return frame

    def clear(self) -> int:
        with self._cond:
            n = len(self._items)
            self._items.clear()
            self._cond.notify_all()
            return n
