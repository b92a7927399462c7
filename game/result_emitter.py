import logging
from typing import Callable, Dict, Optional, Union

from data.models import BlockState, SessionContext, TrialDefinition, TrialResult, utc_now_iso
from game.hooks import TrialHooks

logger = logging.getLogger(__name__)


InterTrialDelay = Union[int, Dict[str, int], Callable[[str], float]]


def resolve_inter_trial_delay(delay: InterTrialDelay, block: str, default: int = 500) -> int:
    """
    Inter-trial delay for a block.

    Accepts a fixed number, a mapping keyed by block name (with an optional
    "default" key) or a callable taking the block name.
    """
    if callable(delay):
        value = delay(block)
    elif isinstance(delay, dict):
        value = delay.get(block, delay.get("default", default))
    else:
        value = delay
    return max(0, int(value))


class ResultEmitter:
    def __init__(
        self,
        hooks: Optional[TrialHooks] = None,
        session: Optional[SessionContext] = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.hooks = hooks or TrialHooks()
        self.session = session
        self.clock = clock

    def build(
        self,
        response: str,
        reaction_time: float,
        trial: TrialDefinition,
        trial_index: int,
        block: str,
    ) -> TrialResult:
        return TrialResult(
            trial_number=trial_index + 1,
            block=block,
            task_id=trial.task_id,
            response=response,
            reaction_time=reaction_time,
            is_correct=trial.score(response),
            timestamp=self.clock(),
            trial_fields=trial.as_fields(),
            extra=self.session.enrich({}) if self.session is not None else {},
        )

    def emit(
        self,
        state: BlockState,
        response: str,
        reaction_time: float,
        trial: TrialDefinition,
        trial_index: int,
        block: str,
    ) -> TrialResult:
        result = self.build(response, reaction_time, trial, trial_index, block)
        processed = self.hooks.call("on_trial_end", result, trial, trial_index, block)
        if isinstance(processed, TrialResult):
            result = processed
        elif processed is not None:
            logger.warning("on_trial_end returned %s, keeping the engine result", type(processed).__name__)
        state.results_for(block).append(result)
        return result
