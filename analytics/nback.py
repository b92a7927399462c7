"""
N-back signal detection.

Every trial is classified as a hit, miss, false alarm or correct rejection.
A timeout on a non-target is a correct rejection, so accuracy is
(hits + correct rejections) / all trials, timeouts included.
"""
from statistics import NormalDist
from typing import Any, Dict, Optional, Sequence

from analytics.metrics import mean
from data.models import TrialResult

HIT = "hit"
MISS = "miss"
FALSE_ALARM = "false_alarm"
CORRECT_REJECTION = "correct_rejection"

MATCH_RESPONSE = "match"


def classify_response(is_target: bool, response: str) -> str:
    pressed = response == MATCH_RESPONSE
    if is_target:
        return HIT if pressed else MISS
    return FALSE_ALARM if pressed else CORRECT_REJECTION


def classify_result(result: TrialResult) -> str:
    stored = result.get("response_type")
    if stored in (HIT, MISS, FALSE_ALARM, CORRECT_REJECTION):
        return stored
    return classify_response(bool(result.get("is_target")), result.response)


def _rate(numerator: int, denominator: int) -> Optional[float]:
    if denominator == 0:
        return None
    return numerator / denominator


def d_prime(hits: int, misses: int, false_alarms: int, correct_rejections: int) -> Optional[float]:
    """d' with rates pulled in by 1/(2N) so that 0 and 1 stay finite."""
    targets = hits + misses
    lures = false_alarms + correct_rejections
    if targets == 0 or lures == 0:
        return None
    hit_rate = min(max(hits / targets, 1 / (2 * targets)), 1 - 1 / (2 * targets))
    fa_rate = min(max(false_alarms / lures, 1 / (2 * lures)), 1 - 1 / (2 * lures))
    z = NormalDist().inv_cdf
    return z(hit_rate) - z(fa_rate)


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    counts = {HIT: 0, MISS: 0, FALSE_ALARM: 0, CORRECT_REJECTION: 0}
    hit_rts = []
    for r in results:
        kind = classify_result(r)
        counts[kind] += 1
        if kind == HIT:
            hit_rts.append(r.reaction_time)

    total = len(results)
    return {
        "total_trials": total,
        "hits": counts[HIT],
        "misses": counts[MISS],
        "false_alarms": counts[FALSE_ALARM],
        "correct_rejections": counts[CORRECT_REJECTION],
        "hit_rate": _rate(counts[HIT], counts[HIT] + counts[MISS]),
        "false_alarm_rate": _rate(counts[FALSE_ALARM], counts[FALSE_ALARM] + counts[CORRECT_REJECTION]),
        "accuracy": _rate(counts[HIT] + counts[CORRECT_REJECTION], total) * 100 if total else None,
        "mean_rt": mean(hit_rts),
        "d_prime": d_prime(counts[HIT], counts[MISS], counts[FALSE_ALARM], counts[CORRECT_REJECTION]),
    }
