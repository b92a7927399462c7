from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from data.models import TrialResult


def group_by(results: Iterable[TrialResult], key: str) -> Dict[Any, List[TrialResult]]:
    groups: Dict[Any, List[TrialResult]] = defaultdict(list)
    for r in results:
        groups[r.get(key)].append(r)
    return dict(groups)


def accuracy(results: Sequence[TrialResult], exclude_timeouts: bool = False) -> Optional[float]:
    """Percent correct; None when nothing is left to count."""
    pool = [r for r in results if not (exclude_timeouts and r.is_timeout)]
    if not pool:
        return None
    correct = sum(1 for r in pool if r.is_correct)
    return correct / len(pool) * 100


def mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def mean_rt(results: Sequence[TrialResult]) -> Optional[float]:
    """Mean RT over correct trials that ended with a keypress."""
    return mean([r.reaction_time for r in results if r.is_correct and not r.is_timeout])


def mean_rt_where(results: Sequence[TrialResult], predicate: Callable[[TrialResult], bool]) -> Optional[float]:
    return mean_rt([r for r in results if predicate(r)])


def condition_effect(
    results: Sequence[TrialResult],
    key: str,
    baseline: Any,
    comparison: Any,
) -> Optional[float]:
    """Mean RT of the comparison condition minus the baseline condition."""
    base_rt = mean_rt_where(results, lambda r: r.get(key) == baseline)
    comp_rt = mean_rt_where(results, lambda r: r.get(key) == comparison)
    if base_rt is None or comp_rt is None:
        return None
    return comp_rt - base_rt


def least_squares_slope(points: Sequence[Tuple[float, float]]) -> Optional[float]:
    if len(points) < 2:
        return None
    n = len(points)
    mean_x = sum(x for x, _ in points) / n
    mean_y = sum(y for _, y in points) / n
    num = sum((x - mean_x) * (y - mean_y) for x, y in points)
    den = sum((x - mean_x) ** 2 for x, _ in points)
    if den == 0:
        return None
    return num / den


def rt_by(results: Sequence[TrialResult], key: str) -> Dict[Any, Optional[float]]:
    return {value: mean_rt(items) for value, items in sorted(group_by(results, key).items(), key=_sort_key)}


def basic_summary(results: Sequence[TrialResult], exclude_timeouts: bool = False) -> Dict[str, Any]:
    return {
        "total_trials": len(results),
        "correct_trials": sum(1 for r in results if r.is_correct),
        "timeouts": sum(1 for r in results if r.is_timeout),
        "accuracy": accuracy(results, exclude_timeouts=exclude_timeouts),
        "mean_rt": mean_rt(results),
    }


def _sort_key(item: Tuple[Any, Any]) -> Tuple[int, Any]:
    # numbers before strings, None last
    value = item[0]
    if value is None:
        return (2, "")
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value))
