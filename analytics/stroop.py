"""Stroop statistics. Timeouts count as attempts in every accuracy figure."""
from typing import Any, Dict, Sequence

from analytics.metrics import accuracy, basic_summary, condition_effect, mean_rt
from data.models import TrialResult


def summarize(results: Sequence[TrialResult]) -> Dict[str, Any]:
    congruent = [r for r in results if r.get("stimulus_type") == "congruent"]
    incongruent = [r for r in results if r.get("stimulus_type") == "incongruent"]
    summary = basic_summary(results)
    summary.update(
        {
            "congruent_accuracy": accuracy(congruent),
            "incongruent_accuracy": accuracy(incongruent),
            "congruent_rt": mean_rt(congruent),
            "incongruent_rt": mean_rt(incongruent),
            "stroop_effect": condition_effect(results, "stimulus_type", "congruent", "incongruent"),
        }
    )
    return summary
