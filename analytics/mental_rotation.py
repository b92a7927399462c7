"""Mental rotation statistics. Timeouts count as attempts."""
from typing import Any, Dict, Optional, Sequence

from analytics.metrics import accuracy, basic_summary, group_by, least_squares_slope, mean_rt
from data.models import TrialResult


def angular_disparity(result: TrialResult) -> Optional[int]:
    left = result.get("left_rotation")
    right = result.get("right_rotation")
    if left is None or right is None:
        return None
    diff = abs(int(left) - int(right)) % 360
    return min(diff, 360 - diff)


def rt_by_disparity(results: Sequence[TrialResult]) -> Dict[int, Optional[float]]:
    groups: Dict[int, list] = {}
    for r in results:
        disparity = angular_disparity(r)
        if disparity is not None:
            groups.setdefault(disparity, []).append(r)
    return {d: mean_rt(items) for d, items in sorted(groups.items())}


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    by_type = group_by(results, "trial_type")
    same = by_type.get("same", [])
    different = by_type.get("different", [])
    by_disparity = rt_by_disparity(same)
    points = [(float(d), rt) for d, rt in by_disparity.items() if rt is not None]
    summary = basic_summary(results)
    summary.update(
        {
            "same_accuracy": accuracy(same),
            "different_accuracy": accuracy(different),
            "same_rt": mean_rt(same),
            "different_rt": mean_rt(different),
            "rt_by_disparity": by_disparity,
            # ms per degree over "same" pairs
            "rotation_slope": least_squares_slope(points),
        }
    )
    return summary
