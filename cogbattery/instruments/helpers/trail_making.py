"""Node layout generation and click validation for the Trail-Making Test."""

import math
import string

from cogbattery.instruments.base import MAIN
from cogbattery.instruments.base import PRACTICE
from cogbattery.instruments.base import InstrumentEngine
from cogbattery.instruments.exceptions import StimulusLoadFailure
from cogbattery.instruments.helpers.metrics.trail_making import compute_trail_making_summary

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
PADDING = 50
GRID_SIZE = 6
NODE_RADIUS = 20

# (pass name, phase, part, node count) in presentation order
PASSES = (
    ("sample_a", PRACTICE, "A", 8),
    ("trial_a", MAIN, "A", 25),
    ("sample_b", PRACTICE, "B", 5),
    ("trial_b", MAIN, "B", 25),
)

ACCEPTED_INPUTS = ("click",)

CORRECT = "correct"
ERROR = "error"
MISS = "miss"


def trail_sequence(part: str, count: int) -> list[str]:
    """
    Return the first *count* labels of the target sequence for *part*.

    Part A counts 1, 2, 3 ...; part B alternates numbers and letters:
    1, A, 2, B, 3, C ...
    """
    if part == "A":
        return [str(i + 1) for i in range(count)]
    return [str(i // 2 + 1) if i % 2 == 0 else string.ascii_uppercase[i // 2] for i in range(count)]


def grid_positions(width=CANVAS_WIDTH, height=CANVAS_HEIGHT, padding=PADDING, grid_size=GRID_SIZE):
    """Return the centres of a *grid_size* x *grid_size* grid inside the padded canvas."""
    cell_width = (width - padding * 2) / grid_size
    cell_height = (height - padding * 2) / grid_size
    return [
        (padding + cell_width * col + cell_width / 2, padding + cell_height * row + cell_height / 2)
        for col in range(grid_size)
        for row in range(grid_size)
    ]


def generate_trail_layout(part: str, count: int, rng, width=CANVAS_WIDTH, height=CANVAS_HEIGHT) -> list[dict]:
    """
    Place *count* nodes on shuffled grid cells and assign them the target sequence in order.

    Raises StimulusLoadFailure when the grid has fewer cells than nodes.
    """
    positions = grid_positions(width, height)
    if count > len(positions):
        raise StimulusLoadFailure(f"{count} nodes do not fit on a {GRID_SIZE}x{GRID_SIZE} grid")
    rng.shuffle(positions)
    return [
        {
            "label": label,
            "kind": "number" if label.isdigit() else "letter",
            "target_index": index,
            "x": round(x, 2),
            "y": round(y, 2),
            "radius": NODE_RADIUS,
        }
        for index, (label, (x, y)) in enumerate(zip(trail_sequence(part, count), positions))
    ]


class TrailValidator:
    """
    Tracks the cursor, error count and timer of one Trail-Making pass.

    The timer starts on the first click that lands on any node and stops
    the instant the final node is reached.
    """

    def __init__(self, nodes):
        self.nodes = sorted(nodes, key=lambda n: n["target_index"])
        self.cursor = 0
        self.errors = 0
        self.started_at = None
        self.finished_at = None

    @property
    def finished(self) -> bool:
        return self.cursor >= len(self.nodes)

    @property
    def elapsed_s(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def node_at(self, x, y):
        for node in self.nodes:
            if math.hypot(x - node["x"], y - node["y"]) <= node["radius"]:
                return node
        return None

    def click(self, x, y, timestamp) -> str:
        if self.finished:
            return MISS
        node = self.node_at(x, y)
        if node is None:
            return MISS
        if self.started_at is None:
            self.started_at = timestamp
        if node["target_index"] != self.cursor:
            self.errors += 1
            return ERROR
        self.cursor += 1
        if self.finished:
            self.finished_at = timestamp
        return CORRECT


def _as_point(value):
    if isinstance(value, str):
        return None
    if isinstance(value, dict):
        value = (value.get("x"), value.get("y"))
    try:
        x, y = value
        return float(x), float(y)
    except (TypeError, ValueError):
        return None


class TrailMakingEngine(InstrumentEngine):
    instrument_id = "trail_making"

    def trial_specs(self):
        for pass_name, phase, part, count in PASSES:
            nodes = generate_trail_layout(part, count, self.rng)
            stimulus = {
                "pass": pass_name,
                "part": part,
                "width": CANVAS_WIDTH,
                "height": CANVAS_HEIGHT,
                "nodes": nodes,
            }
            yield self._spec(phase, part, 1, stimulus)

    def administer(self, spec, port, deadline=None):
        validator = TrailValidator(spec.stimulus["nodes"])
        onset = port.present(spec)
        clicks = []
        while not validator.finished:
            response = port.await_response(ACCEPTED_INPUTS, deadline)
            if response is None:
                break
            point = _as_point(response.value)
            if point is None:
                continue
            outcome = validator.click(point[0], point[1], response.timestamp)
            clicks.append(
                {"x": point[0], "y": point[1], "timestamp": response.timestamp, "outcome": outcome}
            )

        elapsed = validator.elapsed_s
        return self._trial(
            spec,
            {
                "clicks": clicks,
                "errors": validator.errors,
                "time": elapsed,
                "completed": validator.finished,
            },
            validator.finished and validator.errors == 0,
            elapsed * 1000 if elapsed is not None else None,
            onset,
            validator.finished_at if validator.finished else port.now(),
        )

    def reduce(self, trials):
        return compute_trail_making_summary(trials)
