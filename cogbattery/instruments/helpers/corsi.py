"""Block layout, sequence generation and response scoring for the Corsi Blocks test."""

import logging
import math

from cogbattery.instruments.base import MAIN
from cogbattery.instruments.base import InstrumentEngine
from cogbattery.instruments.exceptions import StimulusLoadFailure
from cogbattery.instruments.helpers.metrics.corsi import compute_corsi_summary

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
BLOCK_WIDTH = 80
BLOCK_HEIGHT = 60
PADDING = 60
NUM_BLOCKS = 8
MIN_DISTANCE = 120
MAX_ATTEMPTS = 1000
GRID_COLS = 4
GRID_ROWS = 3

FORWARD = "forward"
BACKWARD = "backward"
STARTING_SPAN = 2
TRIALS_PER_DIRECTION = 7

LEAD_IN_MS = 1000
LIGHT_MS = 800
GAP_MS = 200
TAIL_MS = 500

ACCEPTED_INPUTS = ("click",)


def _too_close(point, placed, min_distance) -> bool:
    return any(math.hypot(point[0] - p[0], point[1] - p[1]) < min_distance for p in placed)


def _cell_size(width, height):
    return (width - 2 * PADDING) / GRID_COLS, (height - 2 * PADDING) / GRID_ROWS


def _grid_cell(cell, rng, width, height, min_distance):
    """Return a jittered top-left corner for grid *cell*.

    Jitter stays strictly inside (pitch - min_distance) / 2 on each axis, so
    two jittered cells of a grid are never closer than *min_distance*.
    """
    cell_w, cell_h = _cell_size(width, height)
    col = cell % GRID_COLS
    row = cell // GRID_COLS
    base_x = PADDING + col * cell_w + (cell_w - BLOCK_WIDTH) / 2
    base_y = PADDING + row * cell_h + (cell_h - BLOCK_HEIGHT) / 2
    jitter_x = max(0.0, (cell_w - min_distance) / 2 - 1)
    jitter_y = max(0.0, (cell_h - min_distance) / 2 - 1)
    return (
        round(base_x + rng.uniform(-jitter_x, jitter_x), 2),
        round(base_y + rng.uniform(-jitter_y, jitter_y), 2),
    )


def _grid_layout(rng, num_blocks, width, height, min_distance):
    cell_w, cell_h = _cell_size(width, height)
    if num_blocks > GRID_COLS * GRID_ROWS or min(cell_w, cell_h) < min_distance:
        raise StimulusLoadFailure(
            f"Cannot place {num_blocks} blocks {min_distance}px apart on a {width}x{height} canvas"
        )
    return [_grid_cell(cell, rng, width, height, min_distance) for cell in range(num_blocks)]


def _sample_point(rng, placed, width, height, min_distance, max_attempts):
    span_x = width - BLOCK_WIDTH - 2 * PADDING
    span_y = height - BLOCK_HEIGHT - 2 * PADDING
    for _ in range(max_attempts):
        point = (round(PADDING + rng.random() * span_x, 2), round(PADDING + rng.random() * span_y, 2))
        if not _too_close(point, placed, min_distance):
            return point
    return None


def _fallback_point(index, rng, placed, width, height, min_distance):
    cells = GRID_COLS * GRID_ROWS
    for offset in range(cells):
        point = _grid_cell((index + offset) % cells, rng, width, height, min_distance)
        if not _too_close(point, placed, min_distance):
            return point
    return None


def generate_block_positions(
    rng,
    num_blocks=NUM_BLOCKS,
    width=CANVAS_WIDTH,
    height=CANVAS_HEIGHT,
    min_distance=MIN_DISTANCE,
    max_attempts=MAX_ATTEMPTS,
) -> list[dict]:
    """
    Place *num_blocks* blocks so that every pair of corners is at least *min_distance* apart.

    Each block is rejection-sampled up to *max_attempts* times, then falls back
    to the first jittered grid cell that keeps its distance. If no cell works
    the whole layout is rebuilt as a jittered grid.

    Raises StimulusLoadFailure when even the grid cannot hold the blocks.
    """
    placed = []
    for index in range(num_blocks):
        point = _sample_point(rng, placed, width, height, min_distance, max_attempts)
        if point is None:
            logger.warning("Corsi block %d fell back to a grid cell", index)
            point = _fallback_point(index, rng, placed, width, height, min_distance)
        if point is None:
            logger.warning("Corsi layout rebuilt as a jittered grid")
            placed = _grid_layout(rng, num_blocks, width, height, min_distance)
            break
        placed.append(point)

    return [
        {"index": index, "x": x, "y": y, "width": BLOCK_WIDTH, "height": BLOCK_HEIGHT}
        for index, (x, y) in enumerate(placed)
    ]


def draw_sequence(span: int, rng, num_blocks=NUM_BLOCKS) -> list[int]:
    """Draw *span* distinct block indices in presentation order."""
    if span > num_blocks:
        raise StimulusLoadFailure(f"Span {span} exceeds the {num_blocks} available blocks")
    return rng.sample(range(num_blocks), span)


def expected_sequence(sequence, direction: str) -> list[int]:
    if direction == BACKWARD:
        return list(reversed(sequence))
    return list(sequence)


def score_corsi_response(sequence, responses, direction: str) -> bool:
    """Return True iff *responses* reproduce *sequence* in the order *direction* asks for."""
    return list(responses) == expected_sequence(sequence, direction)


def lighting_schedule(sequence) -> list[dict]:
    """Return on/off offsets in ms, relative to presentation onset, for each lit block."""
    schedule = []
    for order, block in enumerate(sequence):
        on_ms = LEAD_IN_MS + order * (LIGHT_MS + GAP_MS)
        schedule.append({"block": block, "order": order + 1, "on_ms": on_ms, "off_ms": on_ms + LIGHT_MS})
    return schedule


def presentation_ms(span: int) -> int:
    return LEAD_IN_MS + span * (LIGHT_MS + GAP_MS) + TAIL_MS


def block_at(blocks, value):
    """Resolve a click to a block index, or None when it hits nothing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value < len(blocks) else None
    if isinstance(value, dict):
        value = (value.get("x"), value.get("y"))
    try:
        x, y = (float(v) for v in value)
    except (TypeError, ValueError):
        return None
    for block in blocks:
        if block["x"] <= x <= block["x"] + block["width"] and block["y"] <= y <= block["y"] + block["height"]:
            return block["index"]
    return None


class CorsiEngine(InstrumentEngine):
    instrument_id = "corsi_blocks"

    def trial_specs(self):
        for direction in (FORWARD, BACKWARD):
            for number in range(1, TRIALS_PER_DIRECTION + 1):
                span = STARTING_SPAN + number - 1
                blocks = generate_block_positions(self.rng)
                sequence = draw_sequence(span, self.rng)
                stimulus = {
                    "direction": direction,
                    "span": span,
                    "width": CANVAS_WIDTH,
                    "height": CANVAS_HEIGHT,
                    "blocks": blocks,
                    "sequence": sequence,
                    "schedule": lighting_schedule(sequence),
                    "presentation_ms": presentation_ms(span),
                }
                yield self._spec(MAIN, direction, number, stimulus)

    def administer(self, spec, port, deadline=None):
        stimulus = spec.stimulus
        onset = port.present(spec)
        window_start = onset + stimulus["presentation_ms"] / 1000
        clicks = []
        last_click = None
        while len(clicks) < stimulus["span"]:
            response = port.await_response(ACCEPTED_INPUTS, deadline)
            if response is None:
                break
            # Input during the lighting sequence is not listened for.
            if response.timestamp < window_start:
                continue
            block = block_at(stimulus["blocks"], response.value)
            if block is None or block in clicks:
                continue
            clicks.append(block)
            last_click = response.timestamp

        correct = len(clicks) == stimulus["span"] and score_corsi_response(
            stimulus["sequence"], clicks, stimulus["direction"]
        )
        return self._trial(
            spec,
            {"clicks": clicks, "expected": expected_sequence(stimulus["sequence"], stimulus["direction"])},
            correct,
            (last_click - window_start) * 1000 if last_click is not None else None,
            onset,
            last_click if last_click is not None else port.now(),
        )

    def reduce(self, trials):
        return compute_corsi_summary(trials)
