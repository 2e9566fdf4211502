"""Metric computation for the visual Stroop task."""
import statistics


def _mean_rt(trials) -> float:
    rts = [t["reaction_time_ms"] for t in trials if t.get("reaction_time_ms") is not None]
    return statistics.mean(rts) if rts else 0


def compute_stroop_summary(trials):
    """
    Compute Stroop summary metrics from a list of trial dicts.

    Only scored trials (phase == "main") are used. Each trial dict is expected to have:
      condition (str)             — "control" or "experimental"
      stimulus.congruent (bool)   — position matches direction (experimental only)
      correct (bool)
      reaction_time_ms (float)

    Returns dict with:
      totalTrials, correctTrials,
      accuracy       — correct / total * 100
      averageRT      — mean RT over all scored trials (ms)
      congruentRT    — mean RT on congruent experimental trials (0 if none)
      incongruentRT  — mean RT on incongruent experimental trials (0 if none)
      stroopEffect   — incongruentRT - congruentRT (0 if either subset is empty)
    All floats are rounded to 2 decimals.
    """
    scored = [t for t in trials if t.get("phase") == "main"]
    if not scored:
        return {
            "totalTrials": 0,
            "correctTrials": 0,
            "accuracy": 0,
            "averageRT": 0,
            "congruentRT": 0,
            "incongruentRT": 0,
            "stroopEffect": 0,
        }

    experimental = [t for t in scored if t.get("condition") == "experimental"]
    congruent = [t for t in experimental if (t.get("stimulus") or {}).get("congruent")]
    incongruent = [t for t in experimental if not (t.get("stimulus") or {}).get("congruent")]

    correct_trials = sum(1 for t in scored if t.get("correct", False))
    congruent_rt = _mean_rt(congruent)
    incongruent_rt = _mean_rt(incongruent)
    stroop_effect = (incongruent_rt - congruent_rt) if (congruent and incongruent) else 0

    return {
        "totalTrials": len(scored),
        "correctTrials": correct_trials,
        "accuracy": round(correct_trials / len(scored) * 100, 2),
        "averageRT": round(_mean_rt(scored), 2),
        "congruentRT": round(congruent_rt, 2),
        "incongruentRT": round(incongruent_rt, 2),
        "stroopEffect": round(stroop_effect, 2),
    }
