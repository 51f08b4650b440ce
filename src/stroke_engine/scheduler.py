# ABOUTME: Decides per stroke-update event whether to analyze, throttle, or suspend.
# ABOUTME: Owns the per-session scheduler state and the classifier worker pool.

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

from src.common.config import EngineConfig, SchedulerConfig
from src.common.schemas import GuideReference, SchedulerState, Stroke, UserLevel

from .classifier import ClassifierLike
from .outcomes import AnalysisOutcome, OutcomeStatus
from .pipeline import StrokePipeline

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SchedulerPhase(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    THROTTLED = "throttled"
    SUSPENDED = "suspended"


class AnalysisScheduler:
    """
    Throttle/suspend state machine for one drawing session.

    ``admit`` is checked once per event: memory pressure at or above the
    critical level suspends analysis, an event inside ``min_interval_ms`` of
    the last analysis (or while one is still running) is throttled, anything
    else is admitted and must be followed by ``complete``.
    """

    def __init__(self, config: SchedulerConfig = SchedulerConfig()):
        self.config = config
        self.state = SchedulerState(min_interval_ms=config.min_interval_ms)
        self.phase = SchedulerPhase.IDLE
        self._lock = threading.Lock()

    def admit(self, memory_pressure_level: int, now_ms: float) -> Optional[OutcomeStatus]:
        """Return the skip status, or ``None`` when the pipeline may run."""
        with self._lock:
            self.state.memory_pressure_level = int(memory_pressure_level)
            if self.state.memory_pressure_level >= self.config.critical_pressure_level:
                if self.phase is not SchedulerPhase.ANALYZING:
                    self.phase = SchedulerPhase.SUSPENDED
                return OutcomeStatus.SUSPENDED
            if self.phase is SchedulerPhase.ANALYZING:
                return OutcomeStatus.THROTTLED
            last = self.state.last_analysis_timestamp
            if last is not None and now_ms - last < self.state.min_interval_ms:
                self.phase = SchedulerPhase.THROTTLED
                return OutcomeStatus.THROTTLED
            self.phase = SchedulerPhase.ANALYZING
            return None

    def complete(self, now_ms: float, analyzed: bool) -> None:
        with self._lock:
            if analyzed:
                self.state.last_analysis_timestamp = now_ms
            self.phase = SchedulerPhase.IDLE

    def reset(self) -> None:
        with self._lock:
            self.state = SchedulerState(min_interval_ms=self.config.min_interval_ms)
            self.phase = SchedulerPhase.IDLE


class DrawingSession:
    """
    Context object tying scheduler state to one drawing session.

    Replaces a process-wide analysis service: each session owns its
    scheduler and classifier worker, and ``end`` tears both down.
    """

    def __init__(
        self,
        classifier: Optional[ClassifierLike] = None,
        config: Optional[EngineConfig] = None,
        clock: Clock = monotonic_ms,
        max_workers: int = 2,
    ):
        self.config = config or EngineConfig()
        self.clock = clock
        self.scheduler = AnalysisScheduler(self.config.scheduler)
        self._executor: Optional[ThreadPoolExecutor] = None
        if classifier is not None:
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stroke-classifier")
        self.pipeline = StrokePipeline(classifier, self.config, self._executor)
        self.ended = False

    def analyze(
        self,
        stroke: Stroke,
        guide: Optional[GuideReference],
        user_level: UserLevel = UserLevel.BEGINNER,
        memory_pressure_level: int = 0,
        now_ms: Optional[float] = None,
    ) -> AnalysisOutcome:
        if self.ended:
            raise RuntimeError("Drawing session has ended.")
        now = self.clock() if now_ms is None else float(now_ms)

        skip = self.scheduler.admit(memory_pressure_level, now)
        if skip is not None:
            logger.debug("Stroke update %s at %.1fms (pressure=%d)", skip.value, now, memory_pressure_level)
            return AnalysisOutcome.skipped(skip)

        outcome = None
        try:
            outcome = self.pipeline.run(stroke, guide, user_level)
            return outcome
        finally:
            self.scheduler.complete(now, analyzed=outcome is not None and outcome.analyzed)

    def end(self) -> None:
        if self.ended:
            return
        self.ended = True
        self.scheduler.reset()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "DrawingSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()
