# Registry of the cognitive instruments administered by the engine.
# Each entry holds display metadata plus the fixed trial counts the phase
# controller relies on when deciding that a session is complete.

INSTRUMENT_REGISTRY: dict[str, dict] = {
    "stroop": {
        "label": "Visual Stroop Test",
        "duration_display": "5-7 min",
        "has_practice": True,
        "practice_trials": {"control": 4, "experimental": 4},
        "main_trials": {"control": 20, "experimental": 40},
        "time_limit_s": None,
        "instructions": (
            "An arrow appears on the screen. Press the arrow key that matches the direction "
            "the arrow points, regardless of where on the screen it appears. "
            "Respond as quickly and accurately as you can."
        ),
    },
    "trail_making": {
        "label": "Trail-Making Test",
        "duration_display": "3-5 min",
        "has_practice": True,
        "practice_trials": {"A": 1, "B": 1},
        "main_trials": {"A": 1, "B": 1},
        "time_limit_s": None,
        "instructions": (
            "Connect the circles in order as quickly as possible. "
            "Part A uses numbers (1-2-3...), Part B alternates numbers and letters (1-A-2-B...). "
            "Each part starts with a short sample."
        ),
    },
    "corsi_blocks": {
        "label": "Corsi Blocks Test",
        "duration_display": "5-8 min",
        "has_practice": False,
        "practice_trials": {},
        "main_trials": {"forward": 7, "backward": 7},
        "time_limit_s": None,
        "instructions": (
            "Blocks light up one after another. Click them in the same order "
            "(forward), then in reverse order (backward). "
            "Sequences grow from 2 to 8 blocks."
        ),
    },
    "five_point": {
        "label": "Five-Point Test",
        "duration_display": "~4 min",
        "has_practice": True,
        "practice_trials": {"square": 3},
        "main_trials": {"square": 40},
        "time_limit_s": 180,
        "instructions": (
            "Each square shows five dots. Connect dots with straight lines to make "
            "as many different designs as you can in 3 minutes. "
            "Diagonals must pass through the middle dot."
        ),
    },
}


def required_main_trials(instrument_id: str) -> int:
    """Return the number of scored trials that completes a session of *instrument_id*."""
    return sum(INSTRUMENT_REGISTRY[instrument_id]["main_trials"].values())
