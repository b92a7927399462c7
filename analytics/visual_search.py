"""
Visual search statistics.

Timeouts count as attempts. The search slope is the least-squares fit of
mean correct target-present RT against set size, in ms per item.
"""
from typing import Any, Dict, Optional, Sequence

from analytics.metrics import accuracy, basic_summary, group_by, least_squares_slope, mean_rt, rt_by
from data.models import TrialResult


def search_slope(results: Sequence[TrialResult]) -> Optional[float]:
    present = [r for r in results if r.get("target_present")]
    points = [(float(size), rt) for size, rt in rt_by(present, "set_size").items() if size is not None and rt is not None]
    return least_squares_slope(points)


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    present = [r for r in results if r.get("target_present")]
    absent = [r for r in results if not r.get("target_present")]
    summary = basic_summary(results)
    summary.update(
        {
            "target_present_accuracy": accuracy(present),
            "target_absent_accuracy": accuracy(absent),
            "target_present_rt": mean_rt(present),
            "target_absent_rt": mean_rt(absent),
            "rt_by_set_size": rt_by(present, "set_size"),
            "search_slope": search_slope(results),
            "search_slope_by_condition": {
                condition: search_slope(items)
                for condition, items in sorted(group_by(results, "condition").items(), key=lambda kv: str(kv[0]))
            },
        }
    )
    return summary
