import random

import pytest

from data.models import BLOCK_PRACTICE_COMPLETE, TIMEOUT_RESPONSE, PhaseSpec, PosnerTrial, TrialResult
from game.scheduler import Scheduler
from game.tasks import TASKS, get_task
from game.tasks.change_detection import ChangeDetectionTask
from game.tasks.flanker import FlankerTask
from game.tasks.mental_rotation import MentalRotationTask
from game.tasks.nback import NBackTask
from game.tasks.posner import SOA_VALUES, PosnerTask
from game.tasks.stroop import StroopTask
from game.tasks.visual_search import VisualSearchTask
from game.trial_manager import TrialManager


def _result(trial, response):
    return TrialResult(
        trial_number=1,
        block="task",
        task_id=trial.task_id,
        response=response,
        reaction_time=300,
        is_correct=trial.score(response),
        timestamp="",
        trial_fields=trial.as_fields(),
    )


class TestRegistry:
    def test_all_tasks_registered(self):
        assert set(TASKS) == {
            "flanker",
            "stroop",
            "nback",
            "posner",
            "change_detection",
            "visual_search",
            "mental_rotation",
        }

    def test_unknown_task(self):
        with pytest.raises(ValueError):
            get_task("tower_of_hanoi")

    @pytest.mark.parametrize("task_id", sorted(TASKS))
    def test_generates_requested_count(self, task_id):
        task = TASKS[task_id](rng=random.Random(1))
        for n in (0, 5, task.main_trials):
            trials = task.generate_trials(n, random.Random(7))
            assert len(trials) == n
            assert all(t.task_id == task_id for t in trials)

    @pytest.mark.parametrize("task_id", sorted(TASKS))
    def test_same_seed_same_trials(self, task_id):
        task = TASKS[task_id](rng=random.Random(1))
        assert task.generate_trials(20, random.Random(3)) == task.generate_trials(20, random.Random(3))

    @pytest.mark.parametrize("task_id", sorted(TASKS))
    def test_response_keys_cover_correct_responses(self, task_id):
        task = TASKS[task_id]()
        responses = set(task.response_keys.values())
        for trial in task.generate_trials(30, random.Random(2)):
            expected = trial.expected_response()
            assert expected in responses or expected == "no_response"

    @pytest.mark.parametrize("task_id", sorted(TASKS))
    def test_practice_block_runs_to_completion(self, task_id):
        task = TASKS[task_id](rng=random.Random(5))
        scheduler = Scheduler()
        manager = task.build_manager(scheduler)
        manager.start_practice()
        scheduler.advance(10_000_000)
        assert manager.block_phase == BLOCK_PRACTICE_COMPLETE
        assert len(manager.practice_results) == task.practice_trials
        assert manager.practice_stats["total_trials"] == task.practice_trials


class TestFlanker:
    def test_half_congruent(self):
        trials = FlankerTask().generate_trials(10, random.Random(1))
        assert sum(t.stimulus_type == "congruent" for t in trials) == 5

    def test_odd_count_rounds_congruent_up(self):
        trials = FlankerTask().generate_trials(7, random.Random(1))
        assert sum(t.stimulus_type == "congruent" for t in trials) == 4

    def test_correct_key_follows_center_arrow(self):
        for trial in FlankerTask().generate_trials(20, random.Random(2)):
            center = trial.display[2]
            assert trial.correct_response == ("left" if center == "<" else "right")

    def test_stimulus_text(self):
        trial = FlankerTask().generate_trials(1, random.Random(1))[0]
        assert FlankerTask().stimulus_text(trial, "stimulus") == trial.display


class TestStroop:
    def test_key_matches_ink_color(self):
        for trial in StroopTask().generate_trials(30, random.Random(4)):
            assert trial.correct_response == trial.color[0]
            assert (trial.word.lower() == trial.color) == (trial.stimulus_type == "congruent")

    def test_fixation_is_jittered(self):
        task = StroopTask(rng=random.Random(9))
        trial = task.generate_trials(1, random.Random(1))[0]
        durations = {task.on_phase_start("fixation", 0, trial, "task") for _ in range(50)}
        assert all(500 <= d <= 1500 for d in durations)
        assert len(durations) > 1
        assert task.on_phase_start("stimulus", 1, trial, "task") is None


class TestNBack:
    def test_targets_match_two_back(self):
        trials = NBackTask().generate_trials(60, random.Random(11))
        letters = [t.letter for t in trials]
        for i, trial in enumerate(trials):
            assert trial.is_target == (i >= 2 and letters[i] == letters[i - 2])
            assert trial.previous_letter == (letters[i - 2] if i >= 2 else None)

    def test_target_quota(self):
        for seed in range(10):
            trials = NBackTask().generate_trials(60, random.Random(seed))
            assert sum(t.is_target for t in trials) <= int(58 * 0.25)
            assert not any(t.is_target for t in trials[:2])

    def test_response_type_is_attached(self):
        task = NBackTask()
        target = next(t for t in task.generate_trials(60, random.Random(3)) if t.is_target)
        result = task.on_trial_end(_result(target, TIMEOUT_RESPONSE), target, 0, "task")
        assert result.get("response_type") == "miss"
        assert result.is_correct is False

    def test_caller_trial_end_hook_runs_after_classification(self):
        task = NBackTask()
        target = next(t for t in task.generate_trials(60, random.Random(3)) if t.is_target)
        seen = []
        hooks = task.hooks(on_trial_end=lambda result, *_: seen.append(result.get("response_type")))
        result = hooks.call("on_trial_end", _result(target, "match"), target, 0, "task")
        assert seen == ["hit"]
        assert result.get("response_type") == "hit"

    def test_silence_on_non_target_is_correct(self):
        task = NBackTask()
        lure = task.generate_trials(3, random.Random(3))[0]
        assert lure.score(TIMEOUT_RESPONSE) is True
        assert lure.score("match") is False

    def test_stimulus_flashes(self):
        phase = NBackTask.phases[0]
        assert phase.accepts_responses
        assert phase.stimulus_duration_ms == 500


class TestPosner:
    def test_balanced_over_cue_type_and_soa(self):
        trials = PosnerTask().generate_trials(16, random.Random(1))
        for cue_type in ("endogenous", "exogenous"):
            for soa in SOA_VALUES:
                assert sum(t.cue_type == cue_type and t.soa == soa for t in trials) == 2

    def test_validity_matches_locations(self):
        for trial in PosnerTask().generate_trials(100, random.Random(2)):
            assert (trial.cue_validity == "valid") == (trial.cue_location == trial.target_location)
            assert trial.correct_response == "space"

    def test_delay_fills_the_soa(self):
        task = PosnerTask()
        long_soa = PosnerTrial("endogenous", "left", "left", True, 500, "valid")
        short_soa = PosnerTrial("endogenous", "left", "left", True, 50, "valid")
        assert task.on_phase_start("delay", 2, long_soa, "task") == 300
        assert task.on_phase_start("delay", 2, short_soa, "task") == 0
        assert task.on_phase_start("cue", 1, long_soa, "task") is None

    def test_caller_phase_start_hook_keeps_soa_override(self):
        task = PosnerTask()
        trial = PosnerTrial("endogenous", "left", "left", True, 500, "valid")
        started = []
        hooks = task.hooks(on_phase_start=lambda name, *_: started.append(name))
        assert hooks.call("on_phase_start", "delay", 2, trial, "task") == 300
        assert started == ["delay"]

    def test_caller_phase_start_override_wins(self):
        task = PosnerTask()
        trial = PosnerTrial("endogenous", "left", "left", True, 500, "valid")
        hooks = task.hooks(on_phase_start=lambda *_: 50)
        assert hooks.call("on_phase_start", "delay", 2, trial, "task") == 50

    def test_inter_trial_delay_range(self):
        task = PosnerTask(rng=random.Random(3))
        assert all(800 <= task.inter_trial_delay("task") <= 1200 for _ in range(50))

    @pytest.mark.parametrize("soa, onset", [(500, 1100), (300, 900), (150, 800), (50, 800)])
    def test_rt_measured_from_target_onset(self, soa, onset):
        task = PosnerTask()
        trial = PosnerTrial("exogenous", "right", "right", True, soa, "valid")
        scheduler = Scheduler()
        manager = TrialManager([], [trial], task.phases, scheduler, task.response_timeout_ms, hooks=task.hooks())
        manager.start_main_task()
        scheduler.run_due(onset - 1)
        assert not manager.awaiting_response
        scheduler.run_due(onset)
        assert manager.current_phase_name == "target"
        manager.handle_response("space", onset + 250)
        assert manager.results[0].reaction_time == 250
        assert manager.results[0].is_correct is True

    def test_cue_display(self):
        task = PosnerTask()
        trial = PosnerTrial("endogenous", "left", "right", True, 300, "invalid")
        assert "<" in task.stimulus_text(trial, "cue")
        assert "X" in task.stimulus_text(trial, "target")
        assert "X" not in task.stimulus_text(trial, "fixation")


class TestChangeDetection:
    def test_probe_comes_from_memory_array(self):
        for trial in ChangeDetectionTask().generate_trials(40, random.Random(6)):
            memory = dict(trial.memory_array)
            assert len(memory) == trial.set_size
            assert trial.set_size in (4, 8)
            assert memory[trial.probe_position] == trial.correct_color
            assert trial.has_change == (trial.probe_color != trial.correct_color)
            assert trial.correct_response == ("change" if trial.has_change else "same")

    def test_grid_text(self):
        task = ChangeDetectionTask()
        trial = task.generate_trials(1, random.Random(1))[0]
        memory_rows = task.stimulus_text(trial, "memory").split("\n")
        assert len(memory_rows) == 6
        assert "".join(memory_rows).count("#") == trial.set_size
        assert task.stimulus_text(trial, "test").count("#") == 1

    def test_retention_is_blank(self):
        retention = next(p for p in ChangeDetectionTask.phases if p.name == "retention")
        assert retention == PhaseSpec("retention", duration_ms=900, show_stimulus=False)


class TestVisualSearch:
    def test_target_presence(self):
        for trial in VisualSearchTask().generate_trials(40, random.Random(8)):
            assert len(trial.stimuli) == trial.set_size
            targets = [s for s in trial.stimuli if s[0] == "target"]
            assert len(targets) == (1 if trial.target_present else 0)
            assert trial.correct_response == ("j" if trial.target_present else "k")

    def test_conditions_balanced(self):
        trials = VisualSearchTask().generate_trials(80, random.Random(8))
        assert sum(t.condition == "color_popout" for t in trials) == 20
        assert sum(t.condition == "conjunction" for t in trials) == 40

    def test_layout_rows(self):
        task = VisualSearchTask()
        trial = next(t for t in task.generate_trials(40, random.Random(2)) if t.set_size == 16)
        rows = task.stimulus_lines(trial, "search")
        assert [len(r) for r in rows] == [6, 6, 4]


class TestMentalRotation:
    def test_rotations_step_by_fifteen(self):
        for trial in MentalRotationTask().generate_trials(64, random.Random(1)):
            assert trial.left_rotation % 15 == 0
            assert 0 <= trial.right_rotation < 360
            assert 0 <= trial.angular_disparity <= 180

    def test_same_and_different_pairs(self):
        trials = MentalRotationTask().generate_trials(64, random.Random(1))
        same = [t for t in trials if t.trial_type == "same"]
        assert len(same) == 32
        assert all(t.shape_type == t.right_shape_type and t.correct_response == "s" for t in same)
        different = [t for t in trials if t.trial_type == "different"]
        assert all(t.shape_type != t.right_shape_type and t.correct_response == "d" for t in different)

    def test_mirror_glyph(self):
        task = MentalRotationTask()
        trial = next(t for t in task.generate_trials(64, random.Random(1)) if t.shape_type.endswith("_MIRROR"))
        left = task.stimulus_lines(trial, "stimulus")[0][0]
        assert left.mirrored
        assert left.text == trial.shape_type[0]
        assert left.angle == trial.left_rotation


class TestFeedback:
    def test_feedback_messages(self):
        task = FlankerTask()
        trial = task.generate_trials(1, random.Random(1))[0]
        assert task.feedback(_result(trial, trial.correct_response)) == "Correct!"
        assert task.feedback(_result(trial, TIMEOUT_RESPONSE)) == "Too slow!"
        wrong = "left" if trial.correct_response == "right" else "right"
        assert task.feedback(_result(trial, wrong)) == "Incorrect"
