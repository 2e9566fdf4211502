"""Metric computation for the Corsi Blocks test."""


def _max_span(trials) -> int:
    return max((t["stimulus"]["span"] for t in trials if t.get("correct")), default=0)


def _percent(trials) -> int:
    if not trials:
        return 0
    return round(sum(1 for t in trials if t.get("correct")) / len(trials) * 100)


def compute_corsi_summary(trials):
    """
    Compute Corsi Blocks summary metrics from a list of trial dicts.

    Each trial dict is expected to have:
      condition (str)       — "forward" or "backward"
      stimulus.span (int)   — number of blocks in the sequence
      correct (bool)

    Returns dict with:
      forwardSpan, backwardSpan  — largest correctly reproduced span (0 if none)
      totalSpan                  — forwardSpan + backwardSpan
      accuracy                   — correct / total * 100 over both directions
      forwardAccuracy, backwardAccuracy
      totalTrials, totalCorrect
    Percentages are rounded to whole numbers.
    """
    scored = [t for t in trials if t.get("phase") == "main"]
    forward = [t for t in scored if t.get("condition") == "forward"]
    backward = [t for t in scored if t.get("condition") == "backward"]

    forward_span = _max_span(forward)
    backward_span = _max_span(backward)

    return {
        "forwardSpan": forward_span,
        "backwardSpan": backward_span,
        "totalSpan": forward_span + backward_span,
        "accuracy": _percent(scored),
        "forwardAccuracy": _percent(forward),
        "backwardAccuracy": _percent(backward),
        "totalTrials": len(scored),
        "totalCorrect": sum(1 for t in scored if t.get("correct")),
    }
