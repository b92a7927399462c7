import random
from typing import List

from analytics import change_detection as change_stats
from data.models import ChangeDetectionTrial, PhaseSpec
from game.tasks.base import FIXATION, Glyph, StimulusLines, TaskBase

COLORS = ("red", "blue", "green", "yellow", "purple", "orange", "pink", "cyan")
SET_SIZES = (4, 8)
GRID_SIZE = 6

SQUARE = "#"
EMPTY = "."


def make_trial(set_size: int, rng: random.Random, grid_size: int = GRID_SIZE) -> ChangeDetectionTrial:
    positions = rng.sample(range(grid_size * grid_size), set_size)
    memory_array = tuple((position, rng.choice(COLORS)) for position in positions)
    has_change = rng.random() < 0.5
    probe_position, original_color = rng.choice(memory_array)
    probe_color = original_color
    if has_change:
        probe_color = rng.choice([c for c in COLORS if c != original_color])
    return ChangeDetectionTrial(
        set_size=set_size,
        memory_array=memory_array,
        probe_position=probe_position,
        probe_color=probe_color,
        correct_color=original_color,
        has_change=has_change,
        correct_response="change" if has_change else "same",
        grid_size=grid_size,
    )


class ChangeDetectionTask(TaskBase):
    task_id = "change_detection"
    label = "Change detection"
    instructions = (
        "Remember the colored squares.",
        "One square comes back: S if its color is the same, D if it changed.",
    )

    practice_trials = 8
    main_trials = 40
    response_timeout_ms = 5000
    iti_ms = {"default": 1000}
    phases = (
        PhaseSpec("fixation", duration_ms=300),
        PhaseSpec("memory", duration_ms=200),
        PhaseSpec("retention", duration_ms=900, show_stimulus=False),
        PhaseSpec("test", accepts_responses=True),
    )
    response_keys = {"s": "same", "d": "change"}

    def generate_trials(self, n: int, rng: random.Random) -> List[ChangeDetectionTrial]:
        return [make_trial(rng.choice(SET_SIZES), rng) for _ in range(n)]

    def summarize(self, results):
        return change_stats.summarize(results)

    def _cells(self, trial: ChangeDetectionTrial, phase: str) -> dict:
        if phase == "memory":
            return dict(trial.memory_array)
        if phase == "test":
            return {trial.probe_position: trial.probe_color}
        return {}

    def stimulus_text(self, trial: ChangeDetectionTrial, phase: str) -> str:
        if phase == "fixation":
            return FIXATION
        return "\n".join("".join(g.text for g in row) for row in self.stimulus_lines(trial, phase))

    def stimulus_lines(self, trial: ChangeDetectionTrial, phase: str) -> StimulusLines:
        if phase == "fixation":
            return [[Glyph(FIXATION)]]
        cells = self._cells(trial, phase)
        size = trial.grid_size
        return [
            [
                Glyph(SQUARE, cells[pos]) if pos in cells else Glyph(EMPTY)
                for pos in range(row * size, (row + 1) * size)
            ]
            for row in range(size)
        ]
