"""
Idle-Triggered Insight Scheduler - strict state machine for when insights run.

STATES:
  ACTIVE        default; any tracked interaction lands here and cancels timers
  IDLE          user idle, but analysis is not possible (no user location)
  PENDING_IDLE  idle threshold elapsed; waiting the analysis delay
  ANALYZING     detectors running once against the current snapshot
  DISPLAYING    one pattern on screen until timeout, dismiss, tap or interaction

GUARANTEES:
- At most one insight is being computed or displayed at a time
- Analysis never fires after the user resumed interacting: every transition
  cancels the timer handle registered by the previous state
- dispose() cancels everything; later callbacks and calls are no-ops
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Protocol
import logging

from radar.core.engine_config import InsightConfig, get_insight_config
from radar.models.insights import IdlePhase, TrendPattern
from radar.services.presentation_queue import PresentationQueue
from radar.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


class InteractionKind(str, Enum):
    """Gestures the hosting UI reports."""
    PAN = "pan"
    ZOOM = "zoom"
    TAP = "tap"
    CATEGORY_TOGGLE = "category_toggle"
    REPORT_CREATED = "report_created"
    GESTURE = "gesture"


class Clock(Protocol):
    def now(self) -> datetime: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerPort(Protocol):
    """Scheduling port: run `callback` after `delay` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class SystemClock:
    def now(self) -> datetime:
        return utc_now()


class AsyncioTimerPort:
    """TimerPort backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class IdleInsightScheduler:
    """
    Gates pattern detection on user inactivity.

    `analyze` runs the detectors against the then-current snapshot and
    returns the selected pattern or None. `can_analyze` reports whether
    analysis is possible at all (e.g. a user location is known).
    """

    def __init__(
        self,
        analyze: Callable[[], Optional[TrendPattern]],
        queue: PresentationQueue,
        timers: TimerPort,
        clock: Optional[Clock] = None,
        config: Optional[InsightConfig] = None,
        can_analyze: Optional[Callable[[], bool]] = None,
    ):
        self.config = config or get_insight_config()
        self.queue = queue
        self._analyze = analyze
        self._can_analyze = can_analyze or (lambda: True)
        self._timers = timers
        self._clock = clock or SystemClock()
        self._timer: Optional[TimerHandle] = None
        self._disposed = False

        self.phase = IdlePhase.ACTIVE
        self.last_interaction: datetime = self._clock.now()
        self.has_shown_trend = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        """Arm the first idle timer."""
        if self._disposed:
            return
        self._enter_active(rearm=True)

    def track_interaction(self, kind: InteractionKind = InteractionKind.GESTURE) -> None:
        """Any tracked interaction returns the session to ACTIVE."""
        if self._disposed:
            return
        logger.debug(f"Interaction '{kind.value}' in phase {self.phase.value}")
        self.last_interaction = self._clock.now()

        if self.phase == IdlePhase.DISPLAYING:
            # superseded by the user
            self.queue.dismiss()

        self.queue.clear_history()
        self._enter_active(rearm=True)

    def dismiss(self) -> Optional[TrendPattern]:
        """User closed the displayed insight."""
        return self._end_display()

    def tap(self) -> Optional[TrendPattern]:
        """User tapped the displayed insight; caller highlights its reports."""
        return self._end_display()

    def dispose(self) -> None:
        """Cancel all timers; the scheduler is dead afterwards."""
        if self._disposed:
            return
        self._cancel_timer()
        self.queue.dismiss()
        self._disposed = True
        logger.debug("Idle scheduler disposed")

    # ------------------------------------------------------------------
    # transitions

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._cancel_timer()
        self._timer = self._timers.call_later(delay, callback)

    def _set_phase(self, phase: IdlePhase) -> None:
        if phase != self.phase:
            logger.debug(f"Idle scheduler: {self.phase.value} -> {phase.value}")
        self.phase = phase

    def _enter_active(self, rearm: bool) -> None:
        self._cancel_timer()
        self._set_phase(IdlePhase.ACTIVE)
        if not rearm:
            return
        if self.has_shown_trend and not self.config.repeat_insights:
            return
        self._schedule(self.config.idle_threshold_seconds, self._on_idle_threshold)

    def _on_idle_threshold(self) -> None:
        self._timer = None
        if self._disposed or self.phase != IdlePhase.ACTIVE:
            return

        if not self._can_analyze():
            self._set_phase(IdlePhase.IDLE)
            return

        self._set_phase(IdlePhase.PENDING_IDLE)
        self._schedule(self.config.analysis_delay_seconds, self._on_analysis_due)

    def _on_analysis_due(self) -> None:
        self._timer = None
        if self._disposed or self.phase != IdlePhase.PENDING_IDLE:
            return

        self._set_phase(IdlePhase.ANALYZING)
        try:
            pattern = self._analyze()
        except Exception as e:
            logger.error(f"Trend analysis failed: {e}", exc_info=True)
            pattern = None

        if pattern is None or not self.queue.offer(pattern):
            # nothing to show; wait for the next interaction
            self._enter_active(rearm=False)
            return

        logger.info(f"Displaying insight {pattern.key} (confidence={pattern.confidence:.2f})")
        self.has_shown_trend = True
        self._set_phase(IdlePhase.DISPLAYING)
        self._schedule(self.config.display_duration_seconds, self._on_display_expired)

    def _on_display_expired(self) -> None:
        self._timer = None
        if self._disposed or self.phase != IdlePhase.DISPLAYING:
            return
        self.queue.expire()
        self._enter_active(rearm=False)

    def _end_display(self) -> Optional[TrendPattern]:
        if self._disposed or self.phase != IdlePhase.DISPLAYING:
            return None
        pattern = self.queue.dismiss()
        self.last_interaction = self._clock.now()
        self._enter_active(rearm=True)
        return pattern
