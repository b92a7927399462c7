import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from data.models import (
    BLOCK_COMPLETE,
    BLOCK_PRACTICE,
    BLOCK_PRACTICE_COMPLETE,
    BLOCK_SETUP,
    BLOCK_TASK,
    RUNNING_BLOCKS,
    BlockState,
    PhaseSpec,
    SessionContext,
    TrialDefinition,
    TrialResult,
)
from game.hooks import TrialHooks
from game.result_emitter import InterTrialDelay, ResultEmitter, resolve_inter_trial_delay
from game.scheduler import Scheduler, TimerHandle
from game.state_machine import PhaseStateMachine, TrialRunState

logger = logging.getLogger(__name__)


StatsCalculator = Callable[[List[TrialResult]], Dict[str, Any]]


class TrialManager:
    """
    Block/experiment controller: the public surface of the engine.

    setup -> practice -> practice_complete -> task -> complete

    Everything goes through advance(), which starts the trial at
    current_trial_index unless a trial is running (running) or the
    inter-trial gap is in flight (busy). Resolved trials come back through
    _on_resolved, get filed by the ResultEmitter, and after the inter-trial
    delay the index moves on and advance() is scheduled again.
    """

    def __init__(
        self,
        practice_trials: Sequence[TrialDefinition],
        main_trials: Sequence[TrialDefinition],
        phases: Sequence[PhaseSpec],
        scheduler: Scheduler,
        response_timeout_ms: int = 5000,
        inter_trial_delay: InterTrialDelay = 500,
        settle_delay_ms: int = 100,
        hooks: Optional[TrialHooks] = None,
        session: Optional[SessionContext] = None,
        trial_counts: Optional[Dict[str, int]] = None,
        stats_calculator: Optional[StatsCalculator] = None,
    ) -> None:
        self.practice_trials = list(practice_trials)
        self.main_trials = list(main_trials)
        self.scheduler = scheduler
        self.response_timeout_ms = response_timeout_ms
        self.inter_trial_delay = inter_trial_delay
        self.settle_delay_ms = settle_delay_ms
        self.hooks = hooks or TrialHooks()
        self.session = session or SessionContext()
        self.trial_counts = dict(trial_counts or {})
        self.stats_calculator = stats_calculator

        self.state = BlockState()
        self.emitter = ResultEmitter(self.hooks, self.session)
        self.machine = PhaseStateMachine(
            phases=phases,
            scheduler=scheduler,
            response_timeout_ms=response_timeout_ms,
            on_resolved=self._on_resolved,
            hooks=self.hooks,
        )

        self.practice_stats: Optional[Dict[str, Any]] = None
        self.task_stats: Optional[Dict[str, Any]] = None

        self._running = False
        self._busy = False
        self._pending: List[TimerHandle] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def block_phase(self) -> str:
        return self.state.block_phase

    @property
    def current_trial_index(self) -> int:
        return self.state.current_trial_index

    @property
    def results(self) -> List[TrialResult]:
        return self.state.results

    @property
    def practice_results(self) -> List[TrialResult]:
        return self.state.practice_results

    @property
    def show_stimulus(self) -> bool:
        return self.machine.show_stimulus

    @property
    def awaiting_response(self) -> bool:
        return self.machine.awaiting_response

    @property
    def current_phase_name(self) -> Optional[str]:
        return self.machine.current_phase_name

    @property
    def is_running_trial(self) -> bool:
        return self._running

    @property
    def in_inter_trial_delay(self) -> bool:
        return self._busy

    @property
    def total_trials(self) -> int:
        return self._block_length(self.block_phase)

    @property
    def is_complete(self) -> bool:
        return self.block_phase == BLOCK_COMPLETE

    def get_current_sequence(self) -> List[TrialDefinition]:
        return self.practice_trials if self.block_phase == BLOCK_PRACTICE else self.main_trials

    def get_current_trial(self) -> Optional[TrialDefinition]:
        if self.block_phase not in RUNNING_BLOCKS:
            return None
        sequence = self.get_current_sequence()
        index = self.current_trial_index
        if index >= self._block_length(self.block_phase):
            return None
        return sequence[index]

    # ------------------------------------------------------------------
    # Block transitions
    # ------------------------------------------------------------------

    def start_practice(self) -> bool:
        if self.block_phase != BLOCK_SETUP:
            logger.warning("start_practice ignored in block phase %s", self.block_phase)
            return False
        self._enter_block(BLOCK_PRACTICE)
        return True

    def start_main_task(self) -> bool:
        if self.block_phase not in (BLOCK_SETUP, BLOCK_PRACTICE_COMPLETE):
            logger.warning("start_main_task ignored in block phase %s", self.block_phase)
            return False
        self._enter_block(BLOCK_TASK)
        return True

    def handle_response(
        self,
        response: str,
        timestamp_ms: float,
        trial_override: Optional[TrialDefinition] = None,
        onset_ms: Optional[float] = None,
    ) -> bool:
        """
        The only input event. Safe to call at any time: outside a
        response-accepting phase, or after the trial resolved, it is a no-op.
        """
        if self.block_phase not in RUNNING_BLOCKS or not self._running:
            return False
        return self.machine.resolve(response, timestamp_ms, trial_override, onset_ms)

    def advance(self) -> None:
        if self.block_phase not in RUNNING_BLOCKS:
            return
        if self._running or self._busy:
            return

        block = self.block_phase
        index = self.current_trial_index
        if index >= self._block_length(block):
            self._complete_block()
            return

        trial = self.get_current_sequence()[index]
        if trial is None:
            logger.error("No trial definition at index %d of the %s block", index, block)
            return

        self._running = True
        logger.debug("Starting %s trial %d/%d", block, index + 1, self._block_length(block))
        self.hooks.call("on_trial_start", trial, index, block)
        self.machine.begin(TrialRunState(trial=trial, trial_index=index, block=block))

    def cleanup(self) -> None:
        for handle in self._pending:
            self.scheduler.cancel(handle)
        self._pending = []
        self.machine.reset()
        self._running = False
        self._busy = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _block_length(self, block: str) -> int:
        sequence = self.practice_trials if block == BLOCK_PRACTICE else self.main_trials
        configured = self.trial_counts.get(block)
        if configured is None:
            return len(sequence)
        # a short definition list ends the block early
        return min(configured, len(sequence))

    def _enter_block(self, block: str) -> None:
        self.cleanup()
        self.state.block_phase = block
        self.state.current_trial_index = 0
        logger.info("Entering %s block (%d trials)", block, self._block_length(block))
        self._schedule(self.settle_delay_ms, self.advance)

    def _schedule(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self._pending = [h for h in self._pending if h.pending]
        self._pending.append(self.scheduler.call_later(delay_ms, callback))

    def _on_resolved(self, response: str, reaction_time: float, trial: TrialDefinition) -> None:
        block = self.block_phase
        index = self.current_trial_index
        self._running = False
        self._busy = True
        self.emitter.emit(self.state, response, reaction_time, trial, index, block)
        delay = resolve_inter_trial_delay(self.inter_trial_delay, block)
        self._schedule(delay, self._after_inter_trial)

    def _after_inter_trial(self) -> None:
        next_index = self.current_trial_index + 1
        if next_index >= self._block_length(self.block_phase):
            self._busy = False
            self._complete_block()
            return
        self.state.current_trial_index = next_index
        self._busy = False
        self._schedule(self.settle_delay_ms, self.advance)

    def _complete_block(self) -> None:
        block = self.block_phase
        if block not in RUNNING_BLOCKS:
            return
        self.machine.reset()
        self._running = False
        self._busy = False

        if block == BLOCK_PRACTICE:
            self.state.block_phase = BLOCK_PRACTICE_COMPLETE
            self.practice_stats = self._calculate_stats(self.practice_results)
            logger.info("Practice block complete: %d results", len(self.practice_results))
            self.hooks.call("on_phase_complete", BLOCK_PRACTICE, list(self.practice_results))
        else:
            self.state.block_phase = BLOCK_COMPLETE
            self.task_stats = self._calculate_stats(self.results)
            logger.info("Main block complete: %d results", len(self.results))
            self.hooks.call("on_phase_complete", BLOCK_TASK, list(self.results))
            self.hooks.call("on_experiment_complete", list(self.results), list(self.practice_results))

    def _calculate_stats(self, results: List[TrialResult]) -> Optional[Dict[str, Any]]:
        if self.stats_calculator is None:
            return None
        try:
            return self.stats_calculator(list(results))
        except Exception:
            logger.exception("Statistics calculation failed")
            return None
