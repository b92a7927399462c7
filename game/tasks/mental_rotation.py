import random
from typing import List

from analytics import mental_rotation as rotation_stats
from data.models import MentalRotationTrial, PhaseSpec
from game.tasks.base import FIXATION, Glyph, StimulusLines, TaskBase

SHAPES = ("F", "R", "P", "G")
MIRROR_SUFFIX = "_MIRROR"
ROTATION_STEP = 15
TRIALS_PER_PAIR = 8


def rotation_angle(rng: random.Random) -> int:
    return rng.randrange(360 // ROTATION_STEP) * ROTATION_STEP


def build_stimuli(rng: random.Random) -> List[MentalRotationTrial]:
    """Every shape against itself and against its mirror image, at random rotations."""
    stimuli = []
    for base in SHAPES:
        mirror = base + MIRROR_SUFFIX
        for _ in range(TRIALS_PER_PAIR):
            stimuli.append(
                MentalRotationTrial(
                    shape_type=base,
                    right_shape_type=base,
                    left_rotation=rotation_angle(rng),
                    right_rotation=rotation_angle(rng),
                    trial_type="same",
                    correct_response="s",
                )
            )
        for _ in range(TRIALS_PER_PAIR):
            left, right = (base, mirror) if rng.random() < 0.5 else (mirror, base)
            stimuli.append(
                MentalRotationTrial(
                    shape_type=left,
                    right_shape_type=right,
                    left_rotation=rotation_angle(rng),
                    right_rotation=rotation_angle(rng),
                    trial_type="different",
                    correct_response="d",
                )
            )
    return stimuli


def shape_glyph(shape_type: str, angle: int) -> Glyph:
    mirrored = shape_type.endswith(MIRROR_SUFFIX)
    return Glyph(shape_type[: -len(MIRROR_SUFFIX)] if mirrored else shape_type, angle=angle, mirrored=mirrored)


class MentalRotationTask(TaskBase):
    task_id = "mental_rotation"
    label = "Mental rotation"
    instructions = (
        "Two letters appear, each rotated.",
        "S if they are the same shape, D if one is a mirror image.",
    )

    practice_trials = 12
    main_trials = 48
    response_timeout_ms = 5000
    iti_ms = {"practice": 1500, "task": 800, "default": 800}
    phases = (
        PhaseSpec("fixation", duration_ms=800),
        PhaseSpec("stimulus", accepts_responses=True),
    )
    response_keys = {"s": "s", "d": "d"}

    def generate_trials(self, n: int, rng: random.Random) -> List[MentalRotationTrial]:
        stimuli = build_stimuli(rng)
        rng.shuffle(stimuli)
        return [stimuli[i % len(stimuli)] for i in range(n)]

    def summarize(self, results):
        return rotation_stats.summarize(results)

    def stimulus_text(self, trial: MentalRotationTrial, phase: str) -> str:
        if phase == "fixation":
            return FIXATION
        return f"{trial.shape_type}@{trial.left_rotation}  {trial.right_shape_type}@{trial.right_rotation}"

    def stimulus_lines(self, trial: MentalRotationTrial, phase: str) -> StimulusLines:
        if phase == "fixation":
            return [[Glyph(FIXATION)]]
        return [[shape_glyph(trial.shape_type, trial.left_rotation), shape_glyph(trial.right_shape_type, trial.right_rotation)]]
