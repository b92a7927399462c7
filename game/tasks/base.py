from __future__ import annotations

import dataclasses
import random
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from data.models import BLOCK_PRACTICE, BLOCK_TASK, PhaseSpec, SessionContext, TrialDefinition, TrialResult
from game.hooks import TrialHooks
from game.scheduler import Scheduler
from game.trial_manager import TrialManager


class Glyph(NamedTuple):
    """One drawable piece of a stimulus line."""

    text: str
    color: Optional[str] = None
    angle: int = 0
    mirrored: bool = False


StimulusLines = List[List[Glyph]]

FIXATION = "+"


class TaskBase:
    task_id: str = "base"
    label: str = "Base task"
    instructions: Tuple[str, ...] = ()

    practice_trials: int = 10
    main_trials: int = 40
    response_timeout_ms: int = 2000
    # per-block inter-trial delay, "default" covers missing blocks
    iti_ms: Dict[str, int] = {"default": 500}
    phases: Tuple[PhaseSpec, ...] = (PhaseSpec("stimulus", accepts_responses=True),)
    # pygame key name -> response value
    response_keys: Dict[str, str] = {}

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    # -- trial catalog -------------------------------------------------

    def generate_trials(self, n: int, rng: random.Random) -> List[TrialDefinition]:
        raise NotImplementedError

    # -- engine wiring -------------------------------------------------

    def inter_trial_delay(self, block: str) -> int:
        return self.iti_ms.get(block, self.iti_ms.get("default", 500))

    def on_phase_start(self, name: str, index: int, trial: TrialDefinition, block: str) -> Optional[int]:
        return None

    def on_trial_end(self, result: TrialResult, trial: TrialDefinition, index: int, block: str) -> Optional[TrialResult]:
        return None

    def hooks(self, **extra: Callable[..., Any]) -> TrialHooks:
        """
        The task's own hooks plus the caller's.

        A caller hook with the same name runs after the task's instead of
        replacing it: on_trial_end sees the task-processed result, and an
        on_phase_start override from the caller wins over the task's.
        """
        phase_start = extra.pop("on_phase_start", None)
        trial_end = extra.pop("on_trial_end", None)
        hooks = TrialHooks(
            on_phase_start=_chain_phase_start(self.on_phase_start, phase_start),
            on_trial_end=_chain_trial_end(self.on_trial_end, trial_end),
        )
        return dataclasses.replace(hooks, **extra)

    def trial_counts(self) -> Dict[str, int]:
        return {BLOCK_PRACTICE: self.practice_trials, BLOCK_TASK: self.main_trials}

    def build_manager(
        self,
        scheduler: Scheduler,
        session: Optional[SessionContext] = None,
        settle_delay_ms: int = 100,
        **hooks: Callable[..., Any],
    ) -> TrialManager:
        return TrialManager(
            practice_trials=self.generate_trials(self.practice_trials, self.rng),
            main_trials=self.generate_trials(self.main_trials, self.rng),
            phases=self.phases,
            scheduler=scheduler,
            response_timeout_ms=self.response_timeout_ms,
            inter_trial_delay=self.inter_trial_delay,
            settle_delay_ms=settle_delay_ms,
            hooks=self.hooks(**hooks),
            session=session,
            trial_counts=self.trial_counts(),
            stats_calculator=self.summarize,
        )

    # -- input / output ------------------------------------------------

    def map_key(self, key_name: str) -> Optional[str]:
        return self.response_keys.get(key_name.lower())

    def summarize(self, results: Sequence[TrialResult]) -> Dict[str, Any]:
        raise NotImplementedError

    def stimulus_text(self, trial: TrialDefinition, phase: str) -> str:
        return FIXATION if phase == "fixation" else ""

    def stimulus_color(self, trial: TrialDefinition, phase: str) -> Optional[str]:
        return None

    def stimulus_lines(self, trial: TrialDefinition, phase: str) -> StimulusLines:
        color = self.stimulus_color(trial, phase)
        return [[Glyph(line, color)] for line in self.stimulus_text(trial, phase).split("\n") if line]

    def feedback(self, result: TrialResult) -> str:
        if result.is_correct:
            return "Correct!"
        if result.is_timeout:
            return "Too slow!"
        return "Incorrect"


def _chain_phase_start(own: Callable[..., Any], extra: Optional[Callable[..., Any]]) -> Callable[..., Any]:
    if extra is None:
        return own

    def on_phase_start(name, index, trial, block):
        override = own(name, index, trial, block)
        chained = extra(name, index, trial, block)
        return chained if chained is not None else override

    return on_phase_start


def _chain_trial_end(own: Callable[..., Any], extra: Optional[Callable[..., Any]]) -> Callable[..., Any]:
    if extra is None:
        return own

    def on_trial_end(result, trial, index, block):
        processed = own(result, trial, index, block)
        if isinstance(processed, TrialResult):
            result = processed
        chained = extra(result, trial, index, block)
        return chained if isinstance(chained, TrialResult) else result

    return on_trial_end
