"""Recurring Billing Trigger.

A fixed-period timer thread plus a monthly gate. The timer can only
fire every ``period``; the gate turns those fires into at most one
billing run per calendar month, on the configured day of the month.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecurringTrigger:
    """Fires a callback on a fixed-rate grid from a background thread.

    Fire times are ``first_fire_at + k * period``, so slow callbacks do
    not make the schedule drift. Grid points missed while a callback was
    still running are skipped, never fired back to back. A callback
    that raises is logged and the schedule carries on.

    Example:
        trigger = RecurringTrigger()
        trigger.schedule_recurring(run_billing, first_fire_at=now, period=timedelta(days=1))
        # ... later
        trigger.stop()
    """

    def __init__(
        self,
        now: Callable[[], datetime] = utc_now,
        name: str = "billing-trigger",
    ) -> None:
        self._now = now
        self._name = name
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._fire_count = 0
        self._error_count = 0
        self._next_fire_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def fire_count(self) -> int:
        return self._fire_count

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def next_fire_at(self) -> Optional[datetime]:
        return self._next_fire_at

    def schedule_recurring(
        self,
        on_fire: Callable[[], None],
        first_fire_at: datetime,
        period: timedelta,
    ) -> None:
        """Arm the trigger.

        Args:
            on_fire: Callback run on every fire.
            first_fire_at: First fire time; a time in the past fires now.
            period: Interval between fires.

        Raises:
            RuntimeError: the trigger is already armed.
            ValueError: period is not positive.
        """
        if period <= timedelta(0):
            raise ValueError("period must be positive")
        if self.is_running:
            raise RuntimeError("Trigger is already scheduled")

        delay = max(first_fire_at - self._now(), timedelta(0))
        logger.info(
            "Billing trigger armed: first fire in %.0fs, then every %s",
            delay.total_seconds(),
            period,
        )

        # Each arm gets its own event so a stopped loop can never be revived.
        self._stop_event = threading.Event()
        self._next_fire_at = first_fire_at
        self._thread = threading.Thread(
            target=self._loop,
            args=(on_fire, first_fire_at, period, self._stop_event),
            daemon=True,
            name=self._name,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop firing. An in-progress callback is not interrupted.

        If the callback outlives ``timeout`` the trigger stays running
        until it returns, so it cannot be re-armed in the meantime.
        """
        if self._stop_event is not None:
            self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._next_fire_at = None
        if thread is not None and thread.is_alive():
            logger.warning("Billing trigger stopping, waiting for the running job to finish")
            return
        self._thread = None
        logger.info("Billing trigger stopped")

    def _loop(
        self,
        on_fire: Callable[[], None],
        fire_at: datetime,
        period: timedelta,
        stop_event: threading.Event,
    ) -> None:
        while not stop_event.is_set():
            wait = (fire_at - self._now()).total_seconds()
            if wait > 0 and stop_event.wait(wait):
                break

            self._fire(on_fire)
            if stop_event.is_set():
                break

            fire_at += period
            now = self._now()
            if fire_at <= now:
                missed = (now - fire_at) // period + 1
                logger.warning("Billing trigger overran %d scheduled fire(s), skipping", missed)
                fire_at += period * missed
            self._next_fire_at = fire_at

    def _fire(self, on_fire: Callable[[], None]) -> None:
        self._fire_count += 1
        try:
            on_fire()
        except Exception:
            self._error_count += 1
            logger.exception("Scheduled billing job failed; next fire is still scheduled")


class MonthlyGate:
    """Runs a job only on the billing day, at most once per month.

    The gate is idempotent: extra fires on the billing day, or a period
    shorter than a day, never cause a second run in the same month. A
    process that is down on the billing day skips that month.
    """

    def __init__(
        self,
        job: Callable[[], object],
        day_of_month: int = 1,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if not 1 <= day_of_month <= 28:
            raise ValueError("day_of_month must be between 1 and 28")
        self._job = job
        self._day = day_of_month
        self._now = now
        self._last_period: Optional[Tuple[int, int]] = None

    @property
    def last_period(self) -> Optional[Tuple[int, int]]:
        """(year, month) of the last run, if any."""
        return self._last_period

    def is_due(self, at: Optional[datetime] = None) -> bool:
        at = at or self._now()
        return at.day == self._day and (at.year, at.month) != self._last_period

    def __call__(self) -> bool:
        """Run the job if it is due. Returns whether it ran."""
        now = self._now()
        if not self.is_due(now):
            logger.debug("Billing gate closed on %s", now.date())
            return False
        # Mark before running so a failing run is not retried the same month.
        self._last_period = (now.year, now.month)
        logger.info("Billing gate open on %s, starting billing run", now.date())
        self._job()
        return True
