import random
from typing import List, Optional

from analytics import posner as posner_stats
from data.models import PhaseSpec, PosnerTrial
from game.tasks.base import FIXATION, Glyph, StimulusLines, TaskBase

SOA_VALUES = (50, 150, 300, 500)
CUE_TYPES = ("endogenous", "exogenous")
LOCATIONS = ("left", "right")
CUE_MS = 200
ENDOGENOUS_VALIDITY = 0.8
ITI_RANGE_MS = (800, 1200)


def make_trial(cue_type: str, soa: int, rng: random.Random) -> PosnerTrial:
    cue_location = rng.choice(LOCATIONS)
    if cue_type == "endogenous":
        if rng.random() < ENDOGENOUS_VALIDITY:
            target_location = cue_location
        else:
            target_location = "right" if cue_location == "left" else "left"
    else:
        # exogenous cues do not predict the target side
        target_location = rng.choice(LOCATIONS)
    return PosnerTrial(
        cue_type=cue_type,
        cue_location=cue_location,
        target_location=target_location,
        target_present=True,
        soa=soa,
        cue_validity="valid" if cue_location == target_location else "invalid",
    )


class PosnerTask(TaskBase):
    task_id = "posner"
    label = "Posner cueing"
    instructions = (
        "Keep your eyes on the central cross.",
        "Press SPACE as soon as the target X appears in either box.",
    )

    practice_trials = 16
    main_trials = 100
    response_timeout_ms = 2000
    phases = (
        PhaseSpec("fixation", duration_ms=500),
        PhaseSpec("cue", duration_ms=CUE_MS),
        # cue-to-target gap, set per trial from the SOA
        PhaseSpec("delay", duration_ms=0),
        PhaseSpec("target", accepts_responses=True),
    )
    response_keys = {"space": "space"}

    def generate_trials(self, n: int, rng: random.Random) -> List[PosnerTrial]:
        per_condition = n // (len(CUE_TYPES) * len(SOA_VALUES))
        trials = [
            make_trial(cue_type, soa, rng)
            for cue_type in CUE_TYPES
            for soa in SOA_VALUES
            for _ in range(per_condition)
        ]
        while len(trials) < n:
            if trials:
                template = rng.choice(trials)
                trials.append(make_trial(template.cue_type, template.soa, rng))
            else:
                trials.append(make_trial(rng.choice(CUE_TYPES), rng.choice(SOA_VALUES), rng))
        rng.shuffle(trials)
        return trials

    def inter_trial_delay(self, block: str) -> int:
        return self.rng.randint(*ITI_RANGE_MS)

    def on_phase_start(self, name, index, trial: PosnerTrial, block) -> Optional[int]:
        if name == "delay":
            # SOAs shorter than the cue leave no gap
            return max(0, trial.soa - CUE_MS)
        return None

    def summarize(self, results):
        return posner_stats.summarize(results)

    def stimulus_text(self, trial: PosnerTrial, phase: str) -> str:
        return "  ".join(g.text for g in self.stimulus_lines(trial, phase)[0])

    def stimulus_lines(self, trial: PosnerTrial, phase: str) -> StimulusLines:
        left, right = Glyph("[   ]"), Glyph("[   ]")
        center = Glyph(FIXATION)
        if phase == "cue":
            if trial.cue_type == "endogenous":
                center = Glyph("<" if trial.cue_location == "left" else ">", "yellow")
            elif trial.cue_location == "left":
                left = Glyph("[   ]", "yellow")
            else:
                right = Glyph("[   ]", "yellow")
        elif phase == "target" and trial.target_present:
            if trial.target_location == "left":
                left = Glyph("[ X ]")
            else:
                right = Glyph("[ X ]")
        return [[left, center, right]]
