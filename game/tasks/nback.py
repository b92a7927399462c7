import dataclasses
import random
from typing import List, Optional

from analytics import nback as nback_stats
from data.models import NO_RESPONSE, NBackTrial, PhaseSpec, TrialResult
from game.tasks.base import TaskBase

LETTERS = ("F", "H", "K", "L")
N_BACK_LEVEL = 2
TARGET_SHARE = 0.25
# per-position chance of placing a target until the quota is met
TARGET_CHANCE = 0.3
FLASH_MS = 500


def build_sequence(n: int, level: int, rng: random.Random) -> List[str]:
    sequence = [rng.choice(LETTERS) for _ in range(min(n, level))]
    quota = int((n - level) * TARGET_SHARE) if n > level else 0
    placed = 0
    for i in range(level, n):
        previous = sequence[i - level]
        if placed < quota and rng.random() < TARGET_CHANCE:
            sequence.append(previous)
            placed += 1
        else:
            sequence.append(rng.choice([l for l in LETTERS if l != previous]))
    return sequence


class NBackTask(TaskBase):
    task_id = "nback"
    label = "2-back"
    instructions = (
        "Letters flash one at a time.",
        "Press SPACE when the letter matches the one 2 steps back.",
    )

    practice_trials = 15
    main_trials = 60
    response_timeout_ms = 2500
    iti_ms = {"practice": 1500, "task": 2000, "default": 2000}
    phases = (PhaseSpec("stimulus", accepts_responses=True, stimulus_duration_ms=FLASH_MS),)
    response_keys = {"space": nback_stats.MATCH_RESPONSE}

    def __init__(self, rng: Optional[random.Random] = None, level: int = N_BACK_LEVEL) -> None:
        super().__init__(rng)
        self.level = level

    def generate_trials(self, n: int, rng: random.Random) -> List[NBackTrial]:
        sequence = build_sequence(n, self.level, rng)
        trials = []
        for i, letter in enumerate(sequence):
            previous = sequence[i - self.level] if i >= self.level else None
            is_target = previous is not None and letter == previous
            trials.append(
                NBackTrial(
                    letter=letter,
                    is_target=is_target,
                    n_back_level=self.level,
                    previous_letter=previous,
                    correct_response=nback_stats.MATCH_RESPONSE if is_target else NO_RESPONSE,
                )
            )
        return trials

    def on_trial_end(self, result: TrialResult, trial: NBackTrial, index, block) -> TrialResult:
        response_type = nback_stats.classify_response(trial.is_target, result.response)
        return dataclasses.replace(result, extra={**result.extra, "response_type": response_type})

    def summarize(self, results):
        return nback_stats.summarize(results)

    def stimulus_text(self, trial: NBackTrial, phase: str) -> str:
        return trial.letter
