import random
from typing import List, Tuple

from analytics import visual_search as search_stats
from data.models import PhaseSpec, VisualSearchTrial
from game.tasks.base import FIXATION, Glyph, StimulusLines, TaskBase

Item = Tuple[str, str]  # (color, orientation)

# (condition, target, distractor pool)
CONDITIONS: Tuple[Tuple[str, Item, Tuple[Item, ...]], ...] = (
    ("color_popout", ("blue", "vertical"), (("orange", "vertical"),)),
    ("orientation_popout", ("blue", "vertical"), (("blue", "horizontal"),)),
    ("conjunction", ("blue", "vertical"), (("blue", "horizontal"), ("orange", "vertical"))),
    ("conjunction", ("orange", "horizontal"), (("orange", "vertical"), ("blue", "horizontal"))),
)
SET_SIZES = (4, 8, 16, 24)
ITEMS_PER_ROW = 6
BARS = {"vertical": "|", "horizontal": "-"}


def make_trial(condition: Tuple[str, Item, Tuple[Item, ...]], set_size: int, target_present: bool, rng: random.Random) -> VisualSearchTrial:
    name, target, distractors = condition
    stimuli = []
    if target_present:
        stimuli.append(("target", target[0], target[1]))
    while len(stimuli) < set_size:
        color, orientation = rng.choice(distractors)
        stimuli.append(("distractor", color, orientation))
    rng.shuffle(stimuli)
    return VisualSearchTrial(
        condition=name,
        set_size=set_size,
        target_present=target_present,
        stimuli=tuple(stimuli),
        correct_response="j" if target_present else "k",
    )


class VisualSearchTask(TaskBase):
    task_id = "visual_search"
    label = "Visual search"
    instructions = (
        "Look for the odd item out.",
        "J if the target is present, K if it is absent.",
    )

    practice_trials = 12
    main_trials = 80
    response_timeout_ms = 5000
    iti_ms = {"default": 1000}
    phases = (
        PhaseSpec("fixation", duration_ms=500),
        PhaseSpec("search", accepts_responses=True),
    )
    response_keys = {"j": "j", "k": "k"}

    def generate_trials(self, n: int, rng: random.Random) -> List[VisualSearchTrial]:
        per_condition = n // len(CONDITIONS)
        trials = [
            make_trial(condition, rng.choice(SET_SIZES), rng.random() < 0.5, rng)
            for condition in CONDITIONS
            for _ in range(per_condition)
        ]
        while len(trials) < n:
            trials.append(make_trial(rng.choice(CONDITIONS), rng.choice(SET_SIZES), rng.random() < 0.5, rng))
        rng.shuffle(trials)
        return trials

    def summarize(self, results):
        return search_stats.summarize(results)

    def stimulus_text(self, trial: VisualSearchTrial, phase: str) -> str:
        if phase == "fixation":
            return FIXATION
        return "\n".join(" ".join(g.text for g in row) for row in self.stimulus_lines(trial, phase))

    def stimulus_lines(self, trial: VisualSearchTrial, phase: str) -> StimulusLines:
        if phase == "fixation":
            return [[Glyph(FIXATION)]]
        glyphs = [Glyph(BARS[orientation], color) for _, color, orientation in trial.stimuli]
        return [glyphs[i : i + ITEMS_PER_ROW] for i in range(0, len(glyphs), ITEMS_PER_ROW)]
