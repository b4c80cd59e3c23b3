"""
Cooperative scheduler for the flight logger.

Runs two periodic tasks on one thread:
1. Coarse poll (~1 Hz): flight state machine and teleport detector
2. Fine poll (~40 Hz): terrain-calibrated vertical speed

The scheduler owns the FlightSession and carries out the effects returned by
each tick. Report delivery is the only work handed to another thread.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from flightlog import config
from flightlog.flight_state import (
    ClearSession,
    Effect,
    FlightStateMachine,
    Notify,
    NotifyTermination,
    Persist,
    ResetUI,
    StopPolling,
    Warn,
)
from flightlog.metrics import TICKS_PROCESSED, TICKS_SKIPPED
from flightlog.models import FlightPhase, FlightSession
from flightlog.notifier import WebhookNotifier
from flightlog.session_store import SessionStore
from flightlog.telemetry import TelemetrySource

logger = logging.getLogger(__name__)


class FlightLogger:
    """Owns the active session and the collaborators around the state machine."""

    def __init__(
        self,
        machine: FlightStateMachine,
        telemetry: TelemetrySource,
        store: SessionStore,
        notifier: WebhookNotifier,
        on_warning: Optional[Callable[[str], None]] = None,
        on_reset: Optional[Callable[[], None]] = None,
        poll_interval: float = config.POLL_INTERVAL_SECONDS,
        vs_interval: float = config.VS_SAMPLE_INTERVAL_MS / 1000.0,
        deliver_async: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.machine = machine
        self.telemetry = telemetry
        self.store = store
        self.notifier = notifier
        self.on_warning = on_warning or (lambda message: logger.warning(message))
        self.on_reset = on_reset or (lambda: None)
        self.poll_interval = poll_interval
        self.vs_interval = vs_interval
        self.clock = clock

        self.session: FlightSession = machine.new_session()
        self.last_outcome: Optional[FlightPhase] = None
        self.polling = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notifier") if deliver_async else None

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def start_logging(self, callsign: str):
        """Arm the logger; the flight begins when a departure is detected."""
        self.session = self.machine.new_session(callsign)
        self.machine.estimator.reset()
        self.polling = True
        logger.info(f"Flight logger activated for {self.session.pilot_callsign}")

    def resume_last_flight(self) -> bool:
        """Resume the persisted flight, if any. Returns whether one was found."""
        snapshot = self.store.load()
        if snapshot is None:
            logger.info("No resumable session")
            return False
        # Grace is measured on the telemetry clock when one is available
        sample = self.telemetry.read()
        now = sample.timestamp if sample is not None else self.clock()
        self.session = self.machine.resume(snapshot, now)
        self.polling = True
        logger.info("Resumed flight session.")
        return True

    def stop(self):
        """Stop polling and wait for outstanding deliveries."""
        self._stop_polling()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Periodic tasks
    # ------------------------------------------------------------------

    def poll_once(self):
        """Coarse tick: run the state machine on the current sample."""
        if not self.polling:
            return
        sample = self.telemetry.read()
        if sample is None:
            TICKS_SKIPPED.labels(reason="no_sample").inc()
            logger.debug("Telemetry unavailable, skipping tick")
            return
        if not sample.has_position:
            TICKS_SKIPPED.labels(reason="no_position").inc()
            return

        result = self.machine.tick(self.session, sample)
        TICKS_PROCESSED.inc()
        self.session = result.session
        self._apply(result.effects)

    def sample_vertical_speed(self):
        """Fine tick: update the calibrated vertical speed."""
        if not self.polling:
            return
        self.machine.estimator.update(self.telemetry.read())

    def run(self, max_seconds: Optional[float] = None, until: Optional[Callable[[], bool]] = None):
        """
        Interleave both periodic tasks until polling stops.

        ``max_seconds`` bounds the run; ``until`` is an extra stop condition
        checked every fine tick.
        """
        started = time.monotonic()
        next_poll = next_vs = started
        while self.polling:
            now = time.monotonic()
            if max_seconds is not None and now - started >= max_seconds:
                break
            if until is not None and until():
                break
            if now >= next_vs:
                self.sample_vertical_speed()
                next_vs = now + self.vs_interval
            if now >= next_poll:
                self.poll_once()
                next_poll = now + self.poll_interval
            time.sleep(max(0.0, min(next_vs, next_poll) - time.monotonic()))

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _apply(self, effects: List[Effect]):
        for effect in effects:
            if isinstance(effect, Persist):
                self.store.save(effect.snapshot)
            elif isinstance(effect, Notify):
                self._deliver(self.notifier.send, effect.report)
            elif isinstance(effect, NotifyTermination):
                self._deliver(self.notifier.send_termination, effect.notice)
            elif isinstance(effect, Warn):
                self.on_warning(effect.message)
            elif isinstance(effect, ClearSession):
                self.store.clear()
            elif isinstance(effect, ResetUI):
                self._reset()
            elif isinstance(effect, StopPolling):
                self._stop_polling()

    def _deliver(self, send: Callable, record):
        if self.session.report_sent:
            logger.warning("Report already sent for this flight, skipping duplicate")
            return
        self.session.report_sent = True

        if self._executor is None:
            self._safe_send(send, record)
            return
        self._executor.submit(self._safe_send, send, record)

    @staticmethod
    def _safe_send(send: Callable, record) -> bool:
        try:
            return send(record)
        except Exception as e:
            logger.error(f"Notifier failed: {e}", exc_info=True)
            return False

    def _reset(self):
        """Remember how the flight ended and fall back to a fresh idle session."""
        self.last_outcome = self.session.phase
        callsign = self.session.pilot_callsign
        self.session = self.machine.new_session(callsign)
        self.machine.estimator.reset()
        self.on_reset()

    def _stop_polling(self):
        if self.polling:
            self.polling = False
            logger.info("Polling stopped")
