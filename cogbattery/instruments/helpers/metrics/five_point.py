"""Metric computation for the Five-Point test."""


def compute_five_point_summary(trials):
    """
    Compute Five-Point summary metrics from a list of trial dicts.

    Only scored squares (phase == "main") are used. Each trial's response
    dict is expected to have:
      design (dict | None)  — DesignRecord, None for empty or timed-out squares
      mistakes (int)        — rejected edges drawn in the square

    Returns dict with:
      newDesigns    — designs whose canonical form had not been seen before
      repetitions   — designs matching an earlier canonical form
      mistakes      — rejected edges over all squares, timed-out square included
      totalDesigns  — newDesigns + repetitions
      designs       — the DesignRecords, in square order
    """
    scored = [t for t in trials if t.get("phase") == "main"]
    designs = []
    mistakes = 0
    for t in scored:
        response = t.get("response") or {}
        mistakes += response.get("mistakes", 0)
        if response.get("design"):
            designs.append(response["design"])

    repetitions = sum(1 for d in designs if d.get("repeated"))
    return {
        "newDesigns": len(designs) - repetitions,
        "repetitions": repetitions,
        "mistakes": mistakes,
        "totalDesigns": len(designs),
        "designs": designs,
    }
