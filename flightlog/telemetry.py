"""
Telemetry sources and user prompts.

Modes:
- live: an adapter around the running simulator implements TelemetrySource
- replay: samples are read from a JSONL fixture and released on a wall clock
"""

import json
import logging
import time
from typing import Callable, List, Optional

from flightlog.models import TelemetrySample

logger = logging.getLogger(__name__)


class TelemetrySource:
    """Non-blocking simulator read. Returns None while the simulator is not ready."""

    def read(self) -> Optional[TelemetrySample]:
        raise NotImplementedError


class ReplayTelemetrySource(TelemetrySource):
    """
    Replays recorded samples as if polling a live simulator.

    Each read returns the latest sample whose offset from the first sample
    has elapsed (scaled by ``speed``), so several reads between two recorded
    samples return the same one.
    """

    def __init__(self, path: str, speed: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.speed = speed
        self.clock = clock
        self.samples = self._load(path)
        self._index = -1
        self._started_at: Optional[float] = None
        logger.info(f"Loaded {len(self.samples)} telemetry samples from {path}")

    @staticmethod
    def _load(path: str) -> List[TelemetrySample]:
        samples = []
        with open(path) as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    samples.append(TelemetrySample.from_dict(json.loads(line)))
                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping line {line_no} of {path}: {e}")
        samples.sort(key=lambda s: s.timestamp)
        return samples

    @property
    def finished(self) -> bool:
        return self._index >= len(self.samples) - 1

    def read(self) -> Optional[TelemetrySample]:
        if not self.samples:
            return None
        now = self.clock()
        if self._started_at is None:
            self._started_at = now

        replay_time = self.samples[0].timestamp + (now - self._started_at) * self.speed
        while self._index + 1 < len(self.samples) and self.samples[self._index + 1].timestamp <= replay_time:
            self._index += 1

        if self._index < 0:
            return None
        return self.samples[self._index]


class UserPrompt:
    """Asks the user for free text; None when declined."""

    def ask_text(self, message: str) -> Optional[str]:
        raise NotImplementedError


class ConsolePrompt(UserPrompt):
    def ask_text(self, message: str) -> Optional[str]:
        try:
            answer = input(f"{message}\n> ")
        except EOFError:
            return None
        return answer or None


class NoPrompt(UserPrompt):
    """For unattended runs: every question is declined."""

    def ask_text(self, message: str) -> Optional[str]:
        logger.info(f"Prompt declined (unattended): {message.splitlines()[0]}")
        return None
