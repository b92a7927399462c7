import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from data.models import TIMEOUT_RESPONSE, PhaseSpec, TrialDefinition
from game.hooks import TrialHooks
from game.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


ResolvedCallback = Callable[[str, float, TrialDefinition], None]


@dataclass
class TrialRunState:
    """Mutable state of the one trial that is currently running."""

    trial: TrialDefinition
    trial_index: int
    block: str
    phase_index: int = 0
    phase_started_at_ms: Optional[int] = None
    # frame on which the first response-accepting phase went up, RT is
    # measured from here
    response_started_at_ms: Optional[int] = None
    resolved: bool = False
    timers: List[TimerHandle] = field(default_factory=list)

    def cancel_timers(self, scheduler: Scheduler) -> None:
        for handle in self.timers:
            scheduler.cancel(handle)
        self.timers = []


class PhaseStateMachine:
    """
    Runs one trial through an ordered list of PhaseSpecs and resolves it.

    Idea:
    - begin(run) starts phase 0
    - each phase either ends on a timer (duration_ms) or waits for the
      resolver (response-accepting phase with duration_ms=None)
    - the last phase, if it accepts responses, also arms the response timeout;
      its own duration running out only ends the phase, the timeout resolves
    - resolve() wins exactly once per trial: it sets run.resolved, cancels
      every timer the trial owns and reports (response, rt, trial)
    """

    def __init__(
        self,
        phases: Sequence[PhaseSpec],
        scheduler: Scheduler,
        response_timeout_ms: int,
        on_resolved: ResolvedCallback,
        hooks: Optional[TrialHooks] = None,
    ) -> None:
        if not phases:
            raise ValueError("A trial needs at least one phase")
        self.phases = list(phases)
        self.scheduler = scheduler
        self.response_timeout_ms = response_timeout_ms
        self.on_resolved = on_resolved
        self.hooks = hooks or TrialHooks()

        self.run: Optional[TrialRunState] = None
        self.show_stimulus: bool = False
        self.awaiting_response: bool = False

    @property
    def current_phase_name(self) -> Optional[str]:
        if self.run is None or self.run.resolved:
            return None
        return self.phases[self.run.phase_index].name

    def begin(self, run: TrialRunState) -> None:
        self.run = run
        self.start_phase(0)

    def start_phase(self, index: int) -> None:
        run = self.run
        if run is None or run.resolved:
            return
        if index < 0 or index >= len(self.phases):
            raise ValueError(f"Unknown phase index: {index}")

        spec = self.phases[index]
        now_ms = self.scheduler.now_ms
        run.phase_index = index
        run.phase_started_at_ms = now_ms
        self.show_stimulus = spec.show_stimulus
        self.awaiting_response = spec.accepts_responses
        if spec.accepts_responses and run.response_started_at_ms is None:
            run.response_started_at_ms = max(now_ms, self.scheduler.frame_ms)
        logger.debug("Trial %d phase %d (%s) at %d ms", run.trial_index + 1, index, spec.name, now_ms)

        override = self.hooks.call("on_phase_start", spec.name, index, run.trial, run.block)
        if run.resolved:
            # the hook itself resolved the trial
            return

        duration = spec.duration_ms
        if isinstance(override, (int, float)) and not isinstance(override, bool) and override >= 0:
            duration = int(override)

        is_last = index == len(self.phases) - 1

        if spec.accepts_responses:
            if spec.show_stimulus and spec.stimulus_duration_ms is not None:
                run.timers.append(self.scheduler.call_later(spec.stimulus_duration_ms, self._hide_stimulus))
            if is_last and self.response_timeout_ms > 0:
                run.timers.append(self.scheduler.call_later(self.response_timeout_ms, self._on_timeout))

        if duration is not None:
            if duration < 0:
                raise ValueError(f"Phase {spec.name} has a negative duration")
            run.timers.append(self.scheduler.call_later(duration, lambda: self._end_phase(index)))
        elif not spec.accepts_responses:
            # nothing to wait for: move on at the next tick
            run.timers.append(self.scheduler.call_later(0, lambda: self._end_phase(index)))

    def resolve(
        self,
        response: str,
        timestamp_ms: float,
        trial_override: Optional[TrialDefinition] = None,
        onset_ms: Optional[float] = None,
    ) -> bool:
        """
        External response event.

        Silently ignored when no response-accepting phase is active or the
        trial has already been resolved (the race loser).
        """
        run = self.run
        if run is None or run.resolved or not self.awaiting_response:
            return False

        # manual-control callers own the onset, the engine only subtracts
        reference = onset_ms if onset_ms is not None else run.response_started_at_ms
        self._finish(response, timestamp_ms - reference, trial_override or run.trial)
        return True

    def reset(self) -> None:
        if self.run is not None:
            self.run.cancel_timers(self.scheduler)
        self.run = None
        self.show_stimulus = False
        self.awaiting_response = False

    def _finish(self, response: str, reaction_time: float, trial: TrialDefinition) -> None:
        run = self.run
        run.resolved = True
        run.cancel_timers(self.scheduler)
        self.show_stimulus = False
        self.awaiting_response = False
        logger.debug("Trial %d resolved: %s (%.0f ms)", run.trial_index + 1, response, reaction_time)
        self.on_resolved(response, reaction_time, trial)

    def _on_timeout(self) -> None:
        if self.run is None or self.run.resolved:
            return
        self._finish(TIMEOUT_RESPONSE, self.response_timeout_ms, self.run.trial)

    def _hide_stimulus(self) -> None:
        if self.run is not None and not self.run.resolved:
            self.show_stimulus = False

    def _end_phase(self, index: int) -> None:
        run = self.run
        if run is None or run.resolved or run.phase_index != index:
            return
        spec = self.phases[index]
        self.hooks.call("on_phase_end", spec.name, index, run.trial, run.block)
        if run.resolved:
            return
        if index < len(self.phases) - 1:
            self.start_phase(index + 1)
        elif not (self.awaiting_response and self.response_timeout_ms > 0):
            # no response timeout armed: the final phase ran out unanswered
            onset = run.response_started_at_ms
            if onset is None:
                onset = run.phase_started_at_ms
            elapsed = max(0, self.scheduler.frame_ms - onset)
            self._finish(TIMEOUT_RESPONSE, elapsed, run.trial)
