"""
Dot layout, edge validation and design novelty for the Five-Point test.

A square shows five dots. The participant joins dots two clicks at a time
and ends the square with ``complete``. Each finished square is reduced to a
canonical form (sorted, undirected edges) so two drawings of the same
figure compare equal regardless of direction or draw order.
"""

import logging
import math

from django.db.models import TextChoices

from cogbattery.instruments.base import MAIN
from cogbattery.instruments.base import PRACTICE
from cogbattery.instruments.base import InstrumentEngine
from cogbattery.instruments.helpers.metrics.five_point import compute_five_point_summary
from cogbattery.instruments.registry import INSTRUMENT_REGISTRY

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 200
CANVAS_HEIGHT = 200
DOT_RADIUS = 8
HIT_TOLERANCE = 5

DOTS = (
    {"id": 0, "x": 50, "y": 50},
    {"id": 1, "x": 150, "y": 50},
    {"id": 2, "x": 100, "y": 100},
    {"id": 3, "x": 50, "y": 150},
    {"id": 4, "x": 150, "y": 150},
)
CENTER_DOT = 2
DIAGONALS = (frozenset((0, 4)), frozenset((1, 3)))

SQUARE = "square"
COMPLETE = "complete"
CLEAR = "clear"
ACCEPTED_INPUTS = ("click", COMPLETE, CLEAR)


class EdgeOutcome(TextChoices):
    ACCEPTED = "accepted", "Accepted"
    DUPLICATE = "duplicate", "Line already exists"
    BACKWARDS = "backwards", "Backwards move"
    NEEDS_CENTER = "needs_center", "Diagonal without the centre"


FEEDBACK = {
    EdgeOutcome.DUPLICATE: "This line already exists!",
    EdgeOutcome.BACKWARDS: "You can't go backwards!",
    EdgeOutcome.NEEDS_CENTER: "This is a mistake, you need to use the middle dot!",
    "repeated": "This is a repeated design, try to make new designs instead!",
    "new": "Great! New design created.",
}


def resolve_dot(value):
    """Resolve a click (dot id, ``(x, y)`` or ``{"x", "y"}``) to a dot id, or None."""
    if isinstance(value, bool) or isinstance(value, str):
        return None
    if isinstance(value, int):
        return value if 0 <= value < len(DOTS) else None
    if isinstance(value, dict):
        value = (value.get("x"), value.get("y"))
    try:
        x, y = (float(v) for v in value)
    except (TypeError, ValueError):
        return None
    for dot in DOTS:
        if math.hypot(x - dot["x"], y - dot["y"]) <= DOT_RADIUS + HIT_TOLERANCE:
            return dot["id"]
    return None


def canonical_form(edges) -> tuple:
    return tuple(sorted(tuple(sorted(edge)) for edge in edges))


class DesignBuilder:
    """The directed edges drawn so far in one square."""

    def __init__(self):
        self.edges = []

    def connected(self, a, b) -> bool:
        return (a, b) in self.edges or (b, a) in self.edges

    def add_edge(self, start, end) -> EdgeOutcome:
        if (start, end) in self.edges:
            return EdgeOutcome.DUPLICATE
        if (end, start) in self.edges:
            return EdgeOutcome.BACKWARDS
        if frozenset((start, end)) in DIAGONALS and not (
            self.connected(CENTER_DOT, start) and self.connected(CENTER_DOT, end)
        ):
            return EdgeOutcome.NEEDS_CENTER
        self.edges.append((start, end))
        return EdgeOutcome.ACCEPTED

    def clear(self):
        self.edges = []

    @property
    def is_empty(self) -> bool:
        return not self.edges

    @property
    def canonical_form(self) -> tuple:
        return canonical_form(self.edges)


class DesignHistory:
    """Canonical forms completed so far in one phase."""

    def __init__(self):
        self.seen = set()

    def record(self, form) -> bool:
        """Remember *form* and return whether it had been seen before."""
        repeated = form in self.seen
        self.seen.add(form)
        return repeated


class FivePointEngine(InstrumentEngine):
    instrument_id = "five_point"

    def __init__(self, rng):
        super().__init__(rng)
        # Practice designs never count as repeats of main designs.
        self.histories = {PRACTICE: DesignHistory(), MAIN: DesignHistory()}

    def trial_specs(self):
        meta = INSTRUMENT_REGISTRY[self.instrument_id]
        for phase, counts in ((PRACTICE, meta["practice_trials"]), (MAIN, meta["main_trials"])):
            for number in range(1, counts.get(SQUARE, 0) + 1):
                stimulus = {
                    "square": number,
                    "width": CANVAS_WIDTH,
                    "height": CANVAS_HEIGHT,
                    "dot_radius": DOT_RADIUS,
                    "dots": [dict(dot) for dot in DOTS],
                }
                yield self._spec(phase, SQUARE, number, stimulus)

    def administer(self, spec, port, deadline=None):
        builder = DesignBuilder()
        selected = None
        moves = []
        mistakes = 0
        timed_out = False
        onset = port.present(spec)
        end = None

        while True:
            response = port.await_response(ACCEPTED_INPUTS, deadline)
            if response is None:
                timed_out = True
                break
            if response.value == COMPLETE:
                end = response.timestamp
                break
            if response.value == CLEAR:
                builder.clear()
                selected = None
                continue
            dot = resolve_dot(response.value)
            if dot is None:
                continue
            if selected is None:
                selected = dot
                continue
            if selected == dot:
                selected = None
                continue

            outcome = builder.add_edge(selected, dot)
            moves.append({"from": selected, "to": dot, "outcome": outcome.value, "timestamp": response.timestamp})
            selected = None
            if outcome != EdgeOutcome.ACCEPTED:
                if spec.is_practice:
                    port.feedback(FEEDBACK[outcome])
                else:
                    mistakes += 1

        design = None
        if not timed_out and not builder.is_empty:
            form = builder.canonical_form
            repeated = self.histories[spec.phase].record(form)
            design = {
                "square_number": spec.number,
                "edges": [list(edge) for edge in builder.edges],
                "canonical_form": [list(edge) for edge in form],
                "repeated": repeated,
            }
            if spec.is_practice:
                port.feedback(FEEDBACK["repeated" if repeated else "new"])
        elif timed_out:
            logger.debug("Five-Point square %s timed out with %d edges", spec.number, len(builder.edges))

        return self._trial(
            spec,
            {
                "moves": moves,
                "design": design,
                "mistakes": mistakes,
                "timed_out": timed_out,
            },
            design is not None and not design["repeated"],
            (end - onset) * 1000 if end is not None else None,
            onset,
            end if end is not None else port.now(),
        )

    def reduce(self, trials):
        return compute_five_point_summary(trials)
