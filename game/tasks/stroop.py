import random
from typing import List, Optional

from analytics import stroop as stroop_stats
from data.models import PhaseSpec, StroopTrial
from game.tasks.base import FIXATION, TaskBase

COLOR_KEYS = {"blue": "b", "red": "r", "green": "g", "yellow": "y"}

STIMULI = tuple(
    StroopTrial(
        word=word.upper(),
        color=color,
        stimulus_type="congruent" if word == color else "incongruent",
        correct_response=key,
    )
    for word in COLOR_KEYS
    for color, key in COLOR_KEYS.items()
)

FIXATION_RANGE_MS = (500, 1500)


class StroopTask(TaskBase):
    task_id = "stroop"
    label = "Stroop"
    instructions = (
        "Name the INK COLOR of the word, not the word itself.",
        "B = blue, R = red, G = green, Y = yellow.",
    )

    practice_trials = 10
    main_trials = 40
    response_timeout_ms = 3000
    iti_ms = {"default": 1000}
    phases = (
        PhaseSpec("fixation", duration_ms=FIXATION_RANGE_MS[0]),
        PhaseSpec("stimulus", accepts_responses=True),
    )
    response_keys = {key: key for key in COLOR_KEYS.values()}

    def generate_trials(self, n: int, rng: random.Random) -> List[StroopTrial]:
        return [rng.choice(STIMULI) for _ in range(n)]

    def on_phase_start(self, name, index, trial, block) -> Optional[int]:
        if name == "fixation":
            return self.rng.randint(*FIXATION_RANGE_MS)
        return None

    def summarize(self, results):
        return stroop_stats.summarize(results)

    def stimulus_text(self, trial: StroopTrial, phase: str) -> str:
        if phase == "fixation":
            return FIXATION
        return trial.word

    def stimulus_color(self, trial: StroopTrial, phase: str) -> Optional[str]:
        return trial.color if phase == "stimulus" else None
