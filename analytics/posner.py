"""
Posner cueing statistics.

Every trial expects the same keypress, so correctness is "answered in time":
timeouts count as attempts and are the only errors. RTs are measured from
target onset.
"""
from typing import Any, Dict, Sequence

from analytics.metrics import accuracy, basic_summary, condition_effect, group_by, mean_rt, rt_by
from data.models import TrialResult


def validity_effect(results: Sequence[TrialResult]):
    """Invalid minus valid mean RT; positive means the cue helped."""
    return condition_effect(results, "cue_validity", "valid", "invalid")


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    valid = [r for r in results if r.get("cue_validity") == "valid"]
    invalid = [r for r in results if r.get("cue_validity") == "invalid"]
    summary = basic_summary(results)
    summary.update(
        {
            "valid_accuracy": accuracy(valid),
            "invalid_accuracy": accuracy(invalid),
            "valid_rt": mean_rt(valid),
            "invalid_rt": mean_rt(invalid),
            "validity_effect": validity_effect(results),
            "validity_effect_by_cue_type": {
                cue_type: validity_effect(items)
                for cue_type, items in sorted(group_by(results, "cue_type").items(), key=lambda kv: str(kv[0]))
            },
            "rt_by_soa": rt_by(results, "soa"),
        }
    )
    return summary
