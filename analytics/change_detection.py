"""
Change detection capacity.

Timeouts are left out of every denominator here: a trial without an answer
says nothing about whether the change was seen.

Cowan's K = N * (H + CR - 1) per set size N, clamped at 0; the capacity
estimate is the mean K over set sizes.
"""
from typing import Any, Dict, Optional, Sequence

from analytics.metrics import accuracy, group_by, mean, mean_rt
from data.models import TrialResult


def cowans_k(set_size: int, hit_rate: float, correct_rejection_rate: float) -> float:
    return max(0.0, set_size * (hit_rate + correct_rejection_rate - 1))


def _rate(trials: Sequence[TrialResult], response: str) -> Optional[float]:
    if not trials:
        return None
    return sum(1 for r in trials if r.response == response) / len(trials)


def set_size_stats(results: Sequence[TrialResult], set_size: int) -> Dict[str, Any]:
    answered = [r for r in results if not r.is_timeout]
    change = [r for r in answered if r.get("has_change")]
    same = [r for r in answered if not r.get("has_change")]
    hit_rate = _rate(change, "change")
    cr_rate = _rate(same, "same")
    k = None
    if hit_rate is not None and cr_rate is not None:
        k = cowans_k(set_size, hit_rate, cr_rate)
    return {
        "trials": len(results),
        "accuracy": accuracy(results, exclude_timeouts=True),
        "hit_rate": hit_rate,
        "correct_rejection_rate": cr_rate,
        "cowans_k": k,
    }


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    by_size = {}
    for size, items in sorted(group_by(results, "set_size").items(), key=lambda kv: kv[0] or 0):
        if size is None:
            continue
        by_size[int(size)] = set_size_stats(items, int(size))

    ks = [s["cowans_k"] for s in by_size.values() if s["cowans_k"] is not None]
    answered = [r for r in results if not r.is_timeout]
    return {
        "total_trials": len(results),
        "timeouts": len(results) - len(answered),
        "accuracy": accuracy(results, exclude_timeouts=True),
        "mean_rt": mean_rt(results),
        "hit_rate": _rate([r for r in answered if r.get("has_change")], "change"),
        "correct_rejection_rate": _rate([r for r in answered if not r.get("has_change")], "same"),
        "by_set_size": by_size,
        "capacity": mean(ks),
    }
