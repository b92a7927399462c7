import logging
from typing import List, Optional

import pygame

from config.settings import AppSettings
from data.models import (
    BLOCK_COMPLETE,
    BLOCK_PRACTICE,
    BLOCK_PRACTICE_COMPLETE,
    BLOCK_SETUP,
    RUNNING_BLOCKS,
    SessionContext,
    TrialResult,
)
from data.results_store import ResultsStore
from game.input import InputManager
from game.renderer import Renderer, format_stats
from game.scheduler import Scheduler
from game.tasks.base import TaskBase

logger = logging.getLogger(__name__)

SUMMARY_KEYS = (
    "total_trials",
    "accuracy",
    "mean_rt",
    "flanker_effect",
    "stroop_effect",
    "hit_rate",
    "false_alarm_rate",
    "validity_effect",
    "capacity",
    "search_slope",
    "rotation_slope",
)


class ExperimentApp:
    """
    pygame host for one task run.

    Every frame: read events (responses are timestamped as they are read),
    fire due timers on the scheduler, draw. The engine itself never touches
    pygame.
    """

    def __init__(
        self,
        task: TaskBase,
        settings: AppSettings,
        session: Optional[SessionContext] = None,
        skip_practice: bool = False,
    ) -> None:
        pygame.init()
        window = settings.window
        self.screen = pygame.display.set_mode((window.width, window.height))
        pygame.display.set_caption(f"{window.title}: {task.label}")
        self.clock = pygame.time.Clock()
        self.renderer = Renderer(self.screen)
        self.settings = settings
        self.task = task
        self.session = session or SessionContext()
        self.skip_practice = skip_practice

        self.store = ResultsStore(settings.storage)
        flushed = self.store.flush_pending()
        if flushed:
            logger.info("Recovered %d blocks saved while storage was unavailable", flushed)

        self.input = InputManager(task.response_keys)
        self.scheduler = Scheduler(now_ms=pygame.time.get_ticks())
        self.manager = task.build_manager(
            self.scheduler,
            session=self.session,
            settle_delay_ms=settings.engine.settle_delay_ms,
            on_phase_complete=self._on_block_complete,
        )

        self.running = True
        self.save_errors: List[str] = []
        self._seen_practice = 0
        self._feedback: Optional[TrialResult] = None
        self._feedback_until_ms = 0

    def run(self) -> None:
        while self.running:
            self.clock.tick(self.settings.window.fps)
            for event in pygame.event.get():
                self._handle_event(event)
            self.scheduler.run_due(pygame.time.get_ticks())
            self._track_feedback()
            self._render()

        self.manager.cleanup()
        pygame.quit()

    def _handle_event(self, event) -> None:
        if InputManager.is_quit(event):
            self.running = False
            return

        phase = self.manager.block_phase
        if phase in RUNNING_BLOCKS:
            key = self.input.map_event(event)
            if key is not None:
                self.manager.handle_response(key.response, key.timestamp_ms)
            return

        if not InputManager.is_continue(event):
            return
        if phase == BLOCK_SETUP:
            if self.skip_practice:
                self.manager.start_main_task()
            else:
                self.manager.start_practice()
        elif phase == BLOCK_PRACTICE_COMPLETE:
            self.manager.start_main_task()
        elif phase == BLOCK_COMPLETE:
            self.running = False

    def _on_block_complete(self, block: str, results: List[TrialResult]) -> None:
        outcome = self.store.save_block(self.task.task_id, block, results, self.session)
        if not outcome.success:
            where = f"kept in {outcome.path}" if outcome.fallback else "not saved"
            self.save_errors.append(f"{block} results {where}: {outcome.error}")

    def _track_feedback(self) -> None:
        practice = self.manager.practice_results
        if len(practice) > self._seen_practice:
            self._seen_practice = len(practice)
            self._feedback = practice[-1]
            self._feedback_until_ms = pygame.time.get_ticks() + self.settings.engine.practice_feedback_ms

    def _render(self) -> None:
        r = self.renderer
        r.clear()
        phase = self.manager.block_phase

        if phase == BLOCK_SETUP:
            r.draw_text_screen(self.task.label, self.task.instructions, "Press SPACE to start")
        elif phase in RUNNING_BLOCKS:
            label = "Practice" if phase == BLOCK_PRACTICE else "Trial"
            r.draw_progress(label, min(self.manager.current_trial_index + 1, self.manager.total_trials), self.manager.total_trials)
            trial = self.manager.get_current_trial()
            phase_name = self.manager.current_phase_name
            if trial is not None and phase_name is not None and self.manager.show_stimulus:
                r.draw_stimulus(self.task.stimulus_lines(trial, phase_name))
            if (
                phase == BLOCK_PRACTICE
                and self._feedback is not None
                and pygame.time.get_ticks() < self._feedback_until_ms
            ):
                r.draw_feedback(self.task.feedback(self._feedback), bool(self._feedback.is_correct))
        elif phase == BLOCK_PRACTICE_COMPLETE:
            lines = format_stats(self.manager.practice_stats, SUMMARY_KEYS) + list(self.save_errors)
            r.draw_text_screen("Practice complete", lines, "Press SPACE to start the task")
        else:
            lines = format_stats(self.manager.task_stats, SUMMARY_KEYS) + list(self.save_errors)
            r.draw_text_screen("Task complete", lines, "Press SPACE or ESC to exit")

        r.present()
