"""Metric computation for the Trail-Making Test."""


def _scored_pass(trials, part):
    for t in trials:
        if t.get("phase") == "main" and t.get("condition") == part:
            response = t.get("response") or {}
            elapsed = response.get("time")
            return {
                "time": round(elapsed, 3) if elapsed is not None else None,
                "errors": response.get("errors", 0),
            }
    return None


def compute_trail_making_summary(trials):
    """
    Compute Trail-Making summary metrics from a list of trial dicts.

    Only the scored passes (phase == "main", condition "A" or "B") count;
    the two samples stay in the raw trial log. Each scored trial's
    response dict is expected to have:
      time (float | None)  — seconds from first node hit to final node
      errors (int)         — clicks on a node other than the current target

    Returns dict with:
      trialA   — {"time": seconds, "errors": count}, or None if the pass is missing
      trialB   — {"time": seconds, "errors": count}, or None if the pass is missing
      bMinusA  — trialB.time - trialA.time rounded to 2 decimals, or None
    """
    trial_a = _scored_pass(trials, "A")
    trial_b = _scored_pass(trials, "B")

    b_minus_a = None
    if trial_a and trial_b and trial_a["time"] is not None and trial_b["time"] is not None:
        b_minus_a = round(trial_b["time"] - trial_a["time"], 2)

    return {
        "trialA": trial_a,
        "trialB": trial_b,
        "bMinusA": b_minus_a,
    }
