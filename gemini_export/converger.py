"""Scroll-driven history materialization.

Gemini only keeps the visible part of a conversation in the page. Scrolling
the chat history to the top makes it prepend older turns, but it also moves
the scroll offset back down so the viewport does not jump, so one
"scroll to top" never reaches the real top. The converger keeps scrolling
up and stops once the turn count has not changed for ``stable_rounds``
consecutive probes, or after ``max_attempts`` probes.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum

from .errors import ContainerNotFound
from .log import log_debug, log_info, log_warn
from .progress import SCROLLING_UP, STARTING


class State(str, Enum):
    STARTING = "starting"
    PERTURBING = "perturbing"
    STABLE = "stable"
    EXHAUSTED = "exhausted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ConvergenceResult:
    outcome: State
    probes: int
    initial: int
    collected: int
    counts: list = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.outcome is State.EXHAUSTED


class HistoryConverger:
    def __init__(self, host, settle_interval=0.6, final_settle=0.3, stable_rounds=3,
                 max_attempts=100, sleep=None, progress=None):
        self.host = host
        self.settle_interval = settle_interval
        self.final_settle = final_settle
        self.stable_rounds = stable_rounds
        self.max_attempts = max_attempts
        self.progress = progress
        self._sleep = sleep or asyncio.sleep
        self._saved_offset = None
        self.state = None
        self.result = None

    @classmethod
    def from_settings(cls, host, settings, sleep=None, progress=None) -> "HistoryConverger":
        opts = settings.converge
        return cls(
            host,
            settle_interval=float(opts.get("settle_interval", 0.6)),
            final_settle=float(opts.get("final_settle", 0.3)),
            stable_rounds=int(opts.get("stable_rounds", 3)),
            max_attempts=int(opts.get("max_attempts", 100)),
            sleep=sleep,
            progress=progress,
        )

    def _emit(self, phase, collected):
        if self.progress is not None:
            self.progress.emit(phase, collected)

    async def converge(self) -> ConvergenceResult:
        self.state = State.STARTING
        try:
            await self.host.locate()
        except ContainerNotFound:
            self.state = State.FAILED
            raise

        self._saved_offset = await self.host.get_scroll_offset()
        initial = await self.host.count_turns()
        log_info(f"Starting scroll-to-top. Initial containers: {initial}")
        self._emit(STARTING, initial)

        self.state = State.PERTURBING
        collected = previous = initial
        stable = 0
        counts = []
        outcome = State.EXHAUSTED

        for attempt in range(1, self.max_attempts + 1):
            await self.host.scroll_to_top()
            await self._sleep(self.settle_interval)
            n = await self.host.count_turns()
            counts.append(n)

            # Any change, including a dip, means the page is still loading
            if n != previous:
                log_debug(f"Container count changed: {previous} -> {n}")
                stable = 0
            else:
                stable += 1
            previous = n
            # High-water mark for progress
            collected = max(collected, n)
            self._emit(SCROLLING_UP, collected)

            if stable >= self.stable_rounds:
                outcome = State.STABLE
                break

        self.state = outcome
        if outcome is State.EXHAUSTED:
            log_warn(f"History still growing after {self.max_attempts} attempts; exporting what is loaded")

        # One more nudge for a prepend that landed after the last probe
        await self.host.scroll_to_top()
        await self._sleep(self.final_settle)

        self.state = State.DONE
        self.result = ConvergenceResult(outcome, len(counts), initial, collected, counts)
        log_info(f"Scroll complete after {len(counts)} probes ({outcome.value}). Containers: {collected}")
        return self.result

    async def restore(self):
        """Put the scroll position back where it was before converging."""
        if self._saved_offset is None:
            return
        try:
            await self.host.set_scroll_offset(self._saved_offset)
        except Exception as e:
            log_warn(f"Could not restore scroll position: {e}")

    @asynccontextmanager
    async def materialized(self):
        result = await self.converge()
        try:
            yield result
        finally:
            await self.restore()
