import pytest

from analytics import change_detection, flanker, mental_rotation, nback, posner, stroop, visual_search
from data.models import TIMEOUT_RESPONSE, TrialResult


def _result(response="x", rt=500, correct=True, **fields):
    return TrialResult(
        trial_number=1,
        block="task",
        task_id="test",
        response=response,
        reaction_time=rt,
        is_correct=correct,
        timestamp="",
        trial_fields=fields,
    )


def _timeout(**fields):
    return _result(TIMEOUT_RESPONSE, 2000, False, **fields)


class TestFlankerStats:
    def test_flanker_effect(self):
        results = [
            _result(rt=400, stimulus_type="congruent"),
            _result(rt=400, stimulus_type="congruent"),
            _result(rt=470, stimulus_type="incongruent"),
            _result(rt=470, stimulus_type="incongruent"),
            _result(rt=100, correct=False, stimulus_type="incongruent"),
        ]
        summary = flanker.summarize(results)
        assert summary["flanker_effect"] == pytest.approx(70)
        assert summary["congruent_rt"] == 400
        assert summary["incongruent_rt"] == 470

    def test_timeouts_count_against_accuracy(self):
        results = [_result(stimulus_type="congruent"), _timeout(stimulus_type="congruent")]
        summary = flanker.summarize(results)
        assert summary["accuracy"] == 50
        assert summary["timeouts"] == 1
        assert summary["mean_rt"] == 500

    def test_empty(self):
        summary = flanker.summarize([])
        assert summary["accuracy"] is None
        assert summary["flanker_effect"] is None


class TestStroopStats:
    def test_stroop_effect(self):
        results = [
            _result(rt=600, stimulus_type="congruent"),
            _result(rt=750, stimulus_type="incongruent"),
            _timeout(stimulus_type="incongruent"),
        ]
        summary = stroop.summarize(results)
        assert summary["stroop_effect"] == 150
        assert summary["incongruent_accuracy"] == 50


class TestNBackStats:
    def test_classification(self):
        assert nback.classify_response(True, "match") == nback.HIT
        assert nback.classify_response(True, TIMEOUT_RESPONSE) == nback.MISS
        assert nback.classify_response(False, "match") == nback.FALSE_ALARM
        assert nback.classify_response(False, TIMEOUT_RESPONSE) == nback.CORRECT_REJECTION

    def test_rates(self):
        results = [
            _result("match", 450, True, is_target=True),
            _result("match", 550, True, is_target=True),
            _result(TIMEOUT_RESPONSE, 2500, False, is_target=True),
            _result("match", 300, False, is_target=False),
            _result(TIMEOUT_RESPONSE, 2500, True, is_target=False),
            _result(TIMEOUT_RESPONSE, 2500, True, is_target=False),
            _result(TIMEOUT_RESPONSE, 2500, True, is_target=False),
        ]
        summary = nback.summarize(results)
        assert (summary["hits"], summary["misses"]) == (2, 1)
        assert (summary["false_alarms"], summary["correct_rejections"]) == (1, 3)
        assert summary["hit_rate"] == pytest.approx(2 / 3)
        assert summary["false_alarm_rate"] == pytest.approx(0.25)
        assert summary["accuracy"] == pytest.approx(5 / 7 * 100)
        assert summary["mean_rt"] == 500
        assert summary["d_prime"] > 0

    def test_stored_response_type_wins(self):
        result = _result("match", 400, True, is_target=False)
        result.extra["response_type"] = nback.HIT
        assert nback.classify_result(result) == nback.HIT

    def test_no_targets(self):
        summary = nback.summarize([_result(TIMEOUT_RESPONSE, 2500, True, is_target=False)])
        assert summary["hit_rate"] is None
        assert summary["d_prime"] is None

    def test_empty(self):
        summary = nback.summarize([])
        assert summary["accuracy"] is None
        assert summary["mean_rt"] is None


def _cd(response, has_change, set_size=4):
    correct = response == ("change" if has_change else "same")
    return _result(response, 700, correct, has_change=has_change, set_size=set_size)


class TestChangeDetectionStats:
    def _block(self, set_size, hits, misses, crs, fas):
        return (
            [_cd("change", True, set_size)] * hits
            + [_cd("same", True, set_size)] * misses
            + [_cd("same", False, set_size)] * crs
            + [_cd("change", False, set_size)] * fas
        )

    def test_cowans_k(self):
        results = self._block(4, hits=4, misses=1, crs=3, fas=2)
        stats = change_detection.summarize(results)["by_set_size"][4]
        assert stats["hit_rate"] == pytest.approx(0.8)
        assert stats["correct_rejection_rate"] == pytest.approx(0.6)
        assert stats["cowans_k"] == pytest.approx(1.6)

    def test_k_is_clamped_at_zero(self):
        assert change_detection.cowans_k(8, 0.3, 0.4) == 0.0

    def test_capacity_averages_set_sizes(self):
        results = self._block(4, 4, 1, 3, 2) + self._block(8, 5, 0, 4, 1)
        summary = change_detection.summarize(results)
        # K(4) = 1.6, K(8) = 8 * (1.0 + 0.8 - 1) = 6.4
        assert summary["capacity"] == pytest.approx(4.0)

    def test_timeouts_left_out(self):
        results = self._block(4, 4, 1, 3, 2) + [_timeout(has_change=True, set_size=4)]
        summary = change_detection.summarize(results)
        assert summary["by_set_size"][4]["cowans_k"] == pytest.approx(1.6)
        assert summary["accuracy"] == pytest.approx(70)
        assert summary["timeouts"] == 1

    def test_empty(self):
        summary = change_detection.summarize([])
        assert summary["capacity"] is None
        assert summary["accuracy"] is None


class TestPosnerStats:
    def test_validity_effect(self):
        results = [
            _result("space", 300, cue_validity="valid", cue_type="endogenous", soa=300),
            _result("space", 340, cue_validity="invalid", cue_type="endogenous", soa=300),
            _result("space", 320, cue_validity="valid", cue_type="exogenous", soa=50),
            _result("space", 330, cue_validity="invalid", cue_type="exogenous", soa=50),
            _timeout(cue_validity="invalid", cue_type="exogenous", soa=50),
        ]
        summary = posner.summarize(results)
        assert summary["validity_effect"] == pytest.approx(25)
        assert summary["validity_effect_by_cue_type"] == {
            "endogenous": pytest.approx(40),
            "exogenous": pytest.approx(10),
        }
        assert summary["accuracy"] == 80
        assert summary["rt_by_soa"] == {50: 325, 300: 320}


class TestVisualSearchStats:
    def test_search_slope(self):
        results = [
            _result("j", 500 + 10 * size, target_present=True, set_size=size, condition="conjunction")
            for size in (4, 8, 16, 24)
        ]
        results.append(_result("k", 900, target_present=False, set_size=24, condition="conjunction"))
        summary = visual_search.summarize(results)
        assert summary["search_slope"] == pytest.approx(10)
        assert summary["target_absent_rt"] == 900
        assert summary["search_slope_by_condition"]["conjunction"] == pytest.approx(10)

    def test_flat_slope_for_popout(self):
        results = [_result("j", 450, target_present=True, set_size=size) for size in (4, 8, 16)]
        assert visual_search.search_slope(results) == pytest.approx(0)

    def test_single_set_size_has_no_slope(self):
        assert visual_search.search_slope([_result("j", 450, target_present=True, set_size=4)]) is None


class TestMentalRotationStats:
    def test_disparity_wraps(self):
        assert mental_rotation.angular_disparity(_result(left_rotation=0, right_rotation=270)) == 90
        assert mental_rotation.angular_disparity(_result(left_rotation=30, right_rotation=30)) == 0

    def test_rt_grows_with_disparity(self):
        results = [
            _result("s", 600, trial_type="same", left_rotation=0, right_rotation=0),
            _result("s", 900, trial_type="same", left_rotation=0, right_rotation=90),
            _result("s", 1200, trial_type="same", left_rotation=0, right_rotation=180),
            _result("d", 1000, trial_type="different", left_rotation=0, right_rotation=45),
        ]
        summary = mental_rotation.summarize(results)
        assert summary["rt_by_disparity"] == {0: 600, 90: 900, 180: 1200}
        assert summary["rotation_slope"] == pytest.approx(10 / 3)
        assert summary["different_rt"] == 1000
