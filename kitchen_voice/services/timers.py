"""
Timer Manager

A bounded set of named countdown timers for one cooking session.

Each timer gets its own clock: an asyncio task on the running event loop
that calls tick() once per second. Everything happens on that one loop,
so the registry needs no locking; removing a timer and cancelling its
clock happen in the same synchronous step, which means no tick or
completion callback can fire for a timer once it is stopped.

Without a running event loop (scripts, unit tests) timers are created
without a clock and the owner calls tick() itself.

The cap on concurrent timers keeps the alert surface usable during
hands-free cooking: once five non-expired timers exist, create_timer()
returns None until one is dismissed or expires.
"""

import asyncio
import logging
import uuid
from typing import Callable, Optional

from kitchen_voice.models.entities import DEFAULT_TIMER_NAME, Timer

logger = logging.getLogger(__name__)


MAX_TIMERS = 5

TimerListCallback = Callable[[list[Timer]], None]
TimerCallback = Callable[[Timer], None]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TimerManager:
    """
    Registry of cooking timers keyed by id.

    Attributes:
        max_timers: Cap on non-expired timers
        tick_seconds: Seconds between clock ticks
        on_update: Called with the full timer list after every change
        on_complete: Called once with a timer when it reaches zero
    """

    def __init__(
        self,
        on_update: Optional[TimerListCallback] = None,
        on_complete: Optional[TimerCallback] = None,
        max_timers: int = MAX_TIMERS,
        tick_seconds: float = 1.0,
    ):
        self.on_update = on_update
        self.on_complete = on_complete
        self.max_timers = max_timers
        self.tick_seconds = tick_seconds
        self._timers: dict[str, Timer] = {}
        self._clocks: dict[str, asyncio.Task] = {}

    # Lifecycle
    def create_timer(self, name: str, minutes: int) -> Optional[Timer]:
        """
        Create and start a timer.

        Args:
            name: Display name ("Pasta", "Step 3")
            minutes: Whole minutes, must be positive

        Returns:
            The new Timer, or None when max_timers are already active
        """
        if minutes <= 0:
            raise ValueError(f"Timer minutes must be positive, got {minutes}")

        active_count = sum(1 for t in self._timers.values() if not t.is_expired)
        if active_count >= self.max_timers:
            logger.info(f"Refusing timer {name!r}: {active_count} timers already active")
            return None

        seconds = int(minutes) * 60
        timer = Timer(
            id=f"timer-{uuid.uuid4().hex[:12]}",
            name=name or DEFAULT_TIMER_NAME,
            duration_seconds=seconds,
            remaining_seconds=seconds,
        )
        self._timers[timer.id] = timer
        self._start_clock(timer.id)
        logger.info(f"Timer {timer.id} started: {timer.name!r} for {minutes} min")
        self._notify_update()
        return timer

    def tick(self, timer_id: str) -> bool:
        """
        Advance one timer by one second.

        Fires on_complete exactly once, when the timer reaches zero, then
        tears its clock down.

        Returns:
            True while the timer's clock should keep running
        """
        timer = self._timers.get(timer_id)
        if timer is None or timer.is_expired:
            self._clear_clock(timer_id)
            return False

        if timer.is_running and timer.remaining_seconds > 0:
            timer.remaining_seconds -= 1
            self._notify_update()

            if timer.remaining_seconds == 0:
                timer.is_expired = True
                timer.is_running = False
                logger.info(f"Timer {timer.id} ({timer.name!r}) expired")
                if self.on_complete:
                    self.on_complete(timer)
                self._clear_clock(timer_id)
                self._notify_update()
                return False

        return True

    def pause_timer(self, timer_id: str):
        """Pause a running timer. Expired timers are left alone."""
        timer = self._timers.get(timer_id)
        if timer and not timer.is_expired:
            timer.is_running = False
            self._notify_update()

    def resume_timer(self, timer_id: str):
        """Resume a paused timer that still has time left."""
        timer = self._timers.get(timer_id)
        if timer and timer.remaining_seconds > 0 and not timer.is_expired:
            timer.is_running = True
            self._notify_update()

    def dismiss_timer(self, timer_id: str):
        """Dismiss a timer (normally an expired one) and remove it."""
        self._remove(timer_id)

    def stop_timer(self, timer_id: str):
        """Cancel a timer (normally a running one) and remove it."""
        self._remove(timer_id)

    def stop_all_timers(self):
        """Cancel every timer."""
        for timer_id in list(self._clocks):
            self._clear_clock(timer_id)
        self._timers.clear()
        self._notify_update()

    def dismiss_all_expired(self) -> list[Timer]:
        """Dismiss every expired timer and return the ones removed."""
        expired = self.get_expired_timers()
        for timer in expired:
            self.dismiss_timer(timer.id)
        return expired

    def destroy(self):
        """Tear down every clock and forget all timers, without notifying."""
        for timer_id in list(self._clocks):
            self._clear_clock(timer_id)
        self._timers.clear()

    # Queries
    def get_timer(self, timer_id: str) -> Optional[Timer]:
        return self._timers.get(timer_id)

    def get_timers(self) -> list[Timer]:
        """All timers in creation order."""
        return list(self._timers.values())

    def get_expired_timers(self) -> list[Timer]:
        return [t for t in self._timers.values() if t.is_expired]

    def get_active_timer(self) -> Optional[Timer]:
        """The first running, non-expired timer."""
        return next((t for t in self._timers.values() if t.is_running and not t.is_expired), None)

    def find_timer_by_name(self, name: str) -> Optional[Timer]:
        """
        Find a timer by spoken name.

        Case-insensitive substring match in both directions, so "the lamb"
        finds "Lamb" and "pasta" finds "Pasta timer".
        """
        lower_name = name.lower().strip()
        if not lower_name:
            return None
        return next(
            (
                t for t in self._timers.values()
                if lower_name in t.name.lower() or t.name.lower() in lower_name
            ),
            None,
        )

    def stop_timer_by_name(self, name: str) -> Optional[Timer]:
        """Stop the timer matching name and return it, if there is one."""
        timer = self.find_timer_by_name(name)
        if timer:
            self.stop_timer(timer.id)
        return timer

    # Clock handling
    def _start_clock(self, timer_id: str):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; timer {timer_id} is ticked manually")
            return
        self._clocks[timer_id] = loop.create_task(self._run_clock(timer_id))

    async def _run_clock(self, timer_id: str):
        while True:
            await asyncio.sleep(self.tick_seconds)
            if not self.tick(timer_id):
                break

    def _clear_clock(self, timer_id: str):
        clock = self._clocks.pop(timer_id, None)
        # A clock finishing its own final tick exits on its own
        if clock is not None and clock is not _current_task():
            clock.cancel()

    def _remove(self, timer_id: str):
        self._clear_clock(timer_id)
        removed = self._timers.pop(timer_id, None)
        if removed:
            logger.info(f"Timer {timer_id} ({removed.name!r}) removed")
        self._notify_update()

    def _notify_update(self):
        if self.on_update:
            self.on_update(self.get_timers())


def format_timer_display(seconds: int) -> str:
    """Format seconds as m:ss for a timer readout."""
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins}:{secs:02d}"


def describe_remaining(seconds: int) -> str:
    """Spoken form of time left: "3 minutes and 5 seconds"."""
    mins, secs = divmod(max(0, seconds), 60)
    return (
        f"{mins} minute{'s' if mins != 1 else ''} "
        f"and {secs} second{'s' if secs != 1 else ''}"
    )
