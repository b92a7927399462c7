import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class TrialHooks:
    """
    Optional task callbacks, all called synchronously from the engine.

    on_trial_start(trial, index, block)
    on_trial_end(result, trial, index, block) -> TrialResult | None
    on_phase_start(name, index, trial, block) -> duration override | None
    on_phase_end(name, index, trial, block)
    on_phase_complete(block, results)
    on_experiment_complete(main_results, practice_results)
    """

    on_trial_start: Optional[Callable[..., Any]] = None
    on_trial_end: Optional[Callable[..., Any]] = None
    on_phase_start: Optional[Callable[..., Any]] = None
    on_phase_end: Optional[Callable[..., Any]] = None
    on_phase_complete: Optional[Callable[..., Any]] = None
    on_experiment_complete: Optional[Callable[..., Any]] = None

    def call(self, name: str, *args: Any) -> Any:
        # errors are logged and swallowed, the engine keeps advancing
        hook = getattr(self, name)
        if hook is None:
            return None
        try:
            return hook(*args)
        except Exception:
            logger.exception("Hook %s failed", name)
            return None
