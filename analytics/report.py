import argparse
import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Tuple

from analytics import change_detection, flanker, mental_rotation, nback, posner, stroop, visual_search
from analytics.metrics import basic_summary
from config.settings import load_settings
from data.logger import JsonlLogger
from data.models import BLOCK_PRACTICE, BLOCK_TASK, TrialResult

Summarizer = Callable[[Sequence[TrialResult]], Dict[str, Any]]

SUMMARIZERS: Dict[str, Summarizer] = {
    "flanker": flanker.summarize,
    "stroop": stroop.summarize,
    "nback": nback.summarize,
    "posner": posner.summarize,
    "change_detection": change_detection.summarize,
    "visual_search": visual_search.summarize,
    "mental_rotation": mental_rotation.summarize,
}


def load_results(path: Path) -> List[TrialResult]:
    files = sorted(path.glob("*.jsonl")) if path.is_dir() else [path]
    results = []
    for file in files:
        if not file.exists():
            print(f"No results file found at {file}")
            continue
        results.extend(TrialResult.from_record(record) for record in JsonlLogger(file).read())
    return results


def split_runs(results: Sequence[TrialResult], block: str = BLOCK_TASK) -> Dict[Tuple[str, str], List[TrialResult]]:
    runs: Dict[Tuple[str, str], List[TrialResult]] = defaultdict(list)
    for r in results:
        if r.block != block:
            continue
        runs[(str(r.get("session_id") or "unknown"), r.task_id)].append(r)
    return dict(runs)


def summarize_run(task_id: str, results: Sequence[TrialResult]) -> Dict[str, Any]:
    summarizer = SUMMARIZERS.get(task_id, basic_summary)
    return summarizer(results)


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, dict):
        return json.dumps({str(k): v for k, v in value.items()}, default=str)
    return str(value)


def print_report(summaries: Dict[Tuple[str, str], Dict[str, Any]]) -> None:
    if not summaries:
        print("No runs found.")
        return
    for (session_id, task_id), summary in sorted(summaries.items()):
        print(f"- {session_id} [{task_id}]")
        for key, value in summary.items():
            if value is None:
                continue
            print(f"    {key}: {_format_value(value)}")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Summarize saved task results.")
    parser.add_argument("path", nargs="?", default=None, help="results file or directory")
    parser.add_argument("--practice", action="store_true", help="report practice blocks instead")
    args = parser.parse_args(argv)

    path = Path(args.path) if args.path else load_settings().storage.data_dir
    block = BLOCK_PRACTICE if args.practice else BLOCK_TASK
    runs = split_runs(load_results(path), block)
    print_report({key: summarize_run(key[1], items) for key, items in runs.items()})


if __name__ == "__main__":
    main()
