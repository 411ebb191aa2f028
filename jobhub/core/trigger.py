#!/usr/bin/env python3
"""
Triggers: bind a time specification to a callback.

Two kinds:
- OneShotTrigger fires once after a delay (used for "run now")
- CronTrigger evaluates a cron expression and re-arms after every fire

Each fire runs on its own thread, so fires of different jobs run
concurrently with each other and with the submitting caller.
"""

import itertools
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Set

from croniter import CroniterError, croniter
from decologr import Logger as log, log_exception

from jobhub.errors import InvalidCronExpressionError, SchedulerStopped

_trigger_ids = itertools.count(1)


class Trigger:
    """Base class: a cancellable timer owned by a :class:`TriggerScheduler`."""

    def __init__(self, scheduler: "TriggerScheduler", callback: Callable[[], None], name: str):
        self.id = next(_trigger_ids)
        self.name = name
        self.scheduler = scheduler
        self.callback = callback
        self.fire_count = 0
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False

    def _arm(self, delay: float) -> None:
        timer = threading.Timer(max(delay, 0.0), self._fire)
        timer.daemon = True
        timer.name = f"jobhub-trigger-{self.id}"
        self._timer = timer
        timer.start()

    def _fire(self) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        """Stop future fires; a fire already running is not interrupted."""
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class OneShotTrigger(Trigger):
    """Fires exactly once, ``delay`` seconds after arming."""

    def __init__(self, scheduler, callback, name: str, delay: float):
        super().__init__(scheduler, callback, name)
        self.delay = delay

    def start(self) -> None:
        self._arm(self.delay)

    def _fire(self) -> None:
        if not self.scheduler._begin_fire(self, final=True):
            return
        self.fire_count += 1
        self.scheduler._run(self)


class CronTrigger(Trigger):
    """Fires at every occurrence of a cron expression (evaluated in UTC)."""

    def __init__(self, scheduler, callback, name: str, expression: str):
        super().__init__(scheduler, callback, name)
        self.expression = expression
        self._iter = croniter(expression, datetime.now(timezone.utc))
        # Raises for expressions that parse but never match a date (0 0 30 2 *)
        self.next_fire: datetime = self._next_occurrence()

    def _next_occurrence(self) -> datetime:
        now = datetime.now(timezone.utc)
        next_fire = self._iter.get_next(datetime)
        # Skip occurrences missed while a fire was being dispatched
        while next_fire < now:
            next_fire = self._iter.get_next(datetime)
        return next_fire

    def _arm_at(self, fire_at: datetime) -> None:
        self._arm((fire_at - datetime.now(timezone.utc)).total_seconds())

    def start(self) -> None:
        self._arm_at(self.next_fire)

    def _schedule_next(self) -> None:
        if self._cancelled:
            return
        self.next_fire = self._next_occurrence()
        self._arm_at(self.next_fire)

    def _fire(self) -> None:
        if not self.scheduler._begin_fire(self, final=False):
            return
        self.fire_count += 1
        try:
            self._schedule_next()
        except Exception as ex:
            log_exception(ex, f"Cannot re-arm cron trigger {self.id} ({self.name}) '{self.expression}'")
            self.scheduler._discard(self)
        self.scheduler._run(self)


class TriggerScheduler:
    """
    Registry of armed triggers plus the threads executing their fires.

    - once(): arm a one-shot timer
    - recurring(): arm a cron trigger
    - stop(): cancel everything armed and optionally wait for running fires
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._triggers: Set[Trigger] = set()
        self._running: Set[threading.Thread] = set()
        self._stopped = False

    @staticmethod
    def validate(expression: str) -> None:
        """
        Check a cron expression (5 fields, or 6 with trailing seconds).

        :raises InvalidCronExpressionError: expression cannot be parsed
        """
        if not isinstance(expression, str) or not expression.strip():
            raise InvalidCronExpressionError(str(expression))
        try:
            valid = croniter.is_valid(expression)
        except Exception:
            valid = False
        if not valid:
            raise InvalidCronExpressionError(expression)

    def once(self, callback: Callable[[], None], delay: float, name: str = "") -> OneShotTrigger:
        """
        Fire ``callback`` once after ``delay`` seconds.

        :param callback: Zero-argument callable
        :param delay: Seconds from now
        :param name: Label used in logs
        :return: The armed trigger
        """
        trigger = OneShotTrigger(self, callback, name, delay)
        self._add(trigger)
        log.debug(f"Armed one-shot trigger {trigger.id} ({name}) in {delay:.3f}s")
        return trigger

    def recurring(self, callback: Callable[[], None], expression: str, name: str = "") -> CronTrigger:
        """
        Fire ``callback`` at every occurrence of ``expression``.

        :raises InvalidCronExpressionError: expression cannot be parsed
        """
        self.validate(expression)
        try:
            trigger = CronTrigger(self, callback, name, expression)
        except (CroniterError, ValueError, KeyError) as ex:
            raise InvalidCronExpressionError(expression) from ex
        self._add(trigger)
        log.debug(f"Armed cron trigger {trigger.id} ({name}) '{expression}' next at {trigger.next_fire}")
        return trigger

    def _add(self, trigger: Trigger) -> None:
        with self._lock:
            if self._stopped:
                raise SchedulerStopped("jobhub: scheduler is stopped")
            trigger.start()
            self._triggers.add(trigger)

    def _discard(self, trigger: Trigger) -> None:
        with self._lock:
            self._triggers.discard(trigger)

    def _begin_fire(self, trigger: Trigger, final: bool) -> bool:
        """Register the current thread as running; False once stopped or cancelled."""
        with self._lock:
            if self._stopped or trigger.cancelled:
                return False
            if final:
                self._triggers.discard(trigger)
            self._running.add(threading.current_thread())
            return True

    def _run(self, trigger: Trigger) -> None:
        # A cron trigger has already re-armed on a fresh timer thread, so the
        # callback can run inline on this one.
        current = threading.current_thread()
        try:
            trigger.callback()
        except Exception as ex:
            log_exception(ex, f"Trigger {trigger.id} ({trigger.name}) callback failed")
        finally:
            with self._lock:
                self._running.discard(current)

    def pending(self) -> int:
        """Number of triggers still armed."""
        with self._lock:
            return len(self._triggers)

    def active(self) -> int:
        """Number of fires currently executing."""
        with self._lock:
            return len(self._running)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Cancel all armed triggers.

        :param wait: Join fires that are already running
        :param timeout: Maximum seconds to wait in total (None = forever)
        :return: True if no fire is still running
        """
        with self._lock:
            self._stopped = True
            triggers = list(self._triggers)
            self._triggers.clear()
        for trigger in triggers:
            trigger.cancel()
        if triggers:
            log.info(f"Cancelled {len(triggers)} armed trigger(s)")

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            with self._lock:
                running = list(self._running)
            for thread in running:
                if thread is threading.current_thread():
                    continue
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
                thread.join(remaining)

        with self._lock:
            still_running = [t for t in self._running if t is not threading.current_thread()]
        if still_running:
            log.warning(f"{len(still_running)} job execution(s) still running after stop")
        return not still_running
