import json

from analytics import report
from data.models import TrialResult


def _write(path, records):
    with path.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")


def _record(session, task, phase="task", rt=400, correct=True, **fields):
    record = {
        "trial_number": 1,
        "phase": phase,
        "task_type": task,
        "response": "left",
        "reaction_time": rt,
        "is_correct": correct,
        "timestamp": "2026-01-01T00:00:00Z",
        "session_id": session,
    }
    record.update(fields)
    return record


class TestReport:
    def test_loads_directory(self, tmp_path):
        _write(tmp_path / "flanker_results.jsonl", [_record("s1", "flanker", stimulus_type="congruent")])
        _write(tmp_path / "stroop_results.jsonl", [_record("s1", "stroop", stimulus_type="congruent")])
        results = report.load_results(tmp_path)
        assert {r.task_id for r in results} == {"flanker", "stroop"}
        assert all(isinstance(r, TrialResult) for r in results)

    def test_missing_file(self, tmp_path, capsys):
        assert report.load_results(tmp_path / "nope.jsonl") == []
        assert "No results file" in capsys.readouterr().out

    def test_split_skips_practice(self, tmp_path):
        results = [
            TrialResult.from_record(_record("s1", "flanker")),
            TrialResult.from_record(_record("s1", "flanker", phase="practice")),
            TrialResult.from_record(_record("s2", "flanker")),
        ]
        runs = report.split_runs(results)
        assert {key: len(items) for key, items in runs.items()} == {("s1", "flanker"): 1, ("s2", "flanker"): 1}

    def test_unknown_task_gets_basic_summary(self):
        results = [TrialResult.from_record(_record("s1", "mystery"))]
        assert report.summarize_run("mystery", results)["total_trials"] == 1

    def test_main_prints_runs(self, tmp_path, capsys):
        records = [
            _record("s1", "flanker", rt=400, stimulus_type="congruent"),
            _record("s1", "flanker", rt=470, stimulus_type="incongruent"),
        ]
        _write(tmp_path / "flanker_results.jsonl", records)
        report.main([str(tmp_path)])
        out = capsys.readouterr().out
        assert "s1 [flanker]" in out
        assert "flanker_effect: 70.00" in out

    def test_no_runs(self, tmp_path, capsys):
        report.main([str(tmp_path)])
        assert "No runs found." in capsys.readouterr().out
