import random
from typing import List

from analytics import flanker as flanker_stats
from data.models import FlankerTrial, PhaseSpec
from game.tasks.base import TaskBase

CONGRUENT = (
    FlankerTrial(display="<<<<<", stimulus_type="congruent", correct_response="left"),
    FlankerTrial(display=">>>>>", stimulus_type="congruent", correct_response="right"),
)
INCONGRUENT = (
    FlankerTrial(display="<<><<", stimulus_type="incongruent", correct_response="right"),
    FlankerTrial(display=">><>>", stimulus_type="incongruent", correct_response="left"),
)


class FlankerTask(TaskBase):
    task_id = "flanker"
    label = "Flanker"
    instructions = (
        "Press the arrow key matching the CENTER arrow.",
        "LEFT for <, RIGHT for >. Ignore the flanking arrows.",
    )

    practice_trials = 10
    main_trials = 40
    response_timeout_ms = 2000
    iti_ms = {"practice": 1200, "task": 500, "default": 500}
    phases = (PhaseSpec("stimulus", accepts_responses=True),)
    response_keys = {"left": "left", "right": "right"}

    def generate_trials(self, n: int, rng: random.Random) -> List[FlankerTrial]:
        # half congruent (rounded up), then shuffled
        trials = [rng.choice(CONGRUENT) for _ in range((n + 1) // 2)]
        trials += [rng.choice(INCONGRUENT) for _ in range(n // 2)]
        rng.shuffle(trials)
        return trials

    def summarize(self, results):
        return flanker_stats.summarize(results)

    def stimulus_text(self, trial: FlankerTrial, phase: str) -> str:
        return trial.display
