import itertools
import logging
import math
import random

import pytest

from cogbattery.instruments.exceptions import StimulusLoadFailure
from cogbattery.instruments.helpers.corsi import BACKWARD
from cogbattery.instruments.helpers.corsi import BLOCK_HEIGHT
from cogbattery.instruments.helpers.corsi import BLOCK_WIDTH
from cogbattery.instruments.helpers.corsi import CANVAS_HEIGHT
from cogbattery.instruments.helpers.corsi import CANVAS_WIDTH
from cogbattery.instruments.helpers.corsi import FORWARD
from cogbattery.instruments.helpers.corsi import MIN_DISTANCE
from cogbattery.instruments.helpers.corsi import PADDING
from cogbattery.instruments.helpers.corsi import CorsiEngine
from cogbattery.instruments.helpers.corsi import block_at
from cogbattery.instruments.helpers.corsi import draw_sequence
from cogbattery.instruments.helpers.corsi import generate_block_positions
from cogbattery.instruments.helpers.corsi import lighting_schedule
from cogbattery.instruments.helpers.corsi import presentation_ms
from cogbattery.instruments.helpers.corsi import score_corsi_response
from cogbattery.instruments.session import TrialPhase
from cogbattery.instruments.tests.ports import ScriptedPort
from cogbattery.instruments.tests.ports import corsi_responder


def _min_pair_distance(blocks):
    return min(
        math.hypot(a["x"] - b["x"], a["y"] - b["y"]) for a, b in itertools.combinations(blocks, 2)
    )


class TestGenerateBlockPositions:
    def test_pairs_keep_minimum_distance_over_many_seeds(self):
        for seed in range(200):
            blocks = generate_block_positions(random.Random(seed))
            assert len(blocks) == 8
            assert _min_pair_distance(blocks) >= MIN_DISTANCE

    def test_blocks_stay_inside_padded_canvas(self):
        for seed in range(50):
            for b in generate_block_positions(random.Random(seed)):
                assert PADDING <= b["x"] <= CANVAS_WIDTH - BLOCK_WIDTH - PADDING
                assert PADDING <= b["y"] <= CANVAS_HEIGHT - BLOCK_HEIGHT - PADDING

    def test_grid_fallback_keeps_minimum_distance(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cogbattery.instruments.helpers.corsi"):
            blocks = generate_block_positions(random.Random("fallback"), max_attempts=0)
        assert _min_pair_distance(blocks) >= MIN_DISTANCE
        assert "fell back to a grid cell" in caplog.text

    def test_full_grid_holds_twelve_blocks(self):
        blocks = generate_block_positions(random.Random("twelve"), num_blocks=12, max_attempts=0)
        assert len(blocks) == 12
        assert _min_pair_distance(blocks) >= MIN_DISTANCE

    def test_impossible_configuration_raises(self):
        with pytest.raises(StimulusLoadFailure):
            generate_block_positions(random.Random("crowded"), num_blocks=13, max_attempts=0)


class TestDrawSequence:
    def test_indices_are_distinct(self):
        sequence = draw_sequence(8, random.Random("all"))
        assert sorted(sequence) == list(range(8))

    def test_length_matches_span(self):
        assert len(draw_sequence(3, random.Random("three"))) == 3

    def test_span_larger_than_blocks_raises(self):
        with pytest.raises(StimulusLoadFailure):
            draw_sequence(9, random.Random("nine"))


class TestScoreCorsiResponse:
    def test_forward_match(self):
        assert score_corsi_response([3, 1, 6], [3, 1, 6], FORWARD) is True

    def test_backward_match_is_reversed(self):
        assert score_corsi_response([3, 1, 6], [6, 1, 3], BACKWARD) is True
        assert score_corsi_response([3, 1, 6], [3, 1, 6], BACKWARD) is False

    def test_single_wrong_click_is_incorrect(self):
        assert score_corsi_response([3, 1, 6], [3, 2, 6], FORWARD) is False


class TestLightingSchedule:
    def test_lead_in_then_lit_blocks_with_gaps(self):
        assert lighting_schedule([5, 2]) == [
            {"block": 5, "order": 1, "on_ms": 1000, "off_ms": 1800},
            {"block": 2, "order": 2, "on_ms": 2000, "off_ms": 2800},
        ]

    def test_presentation_length(self):
        assert presentation_ms(2) == 3500
        assert presentation_ms(8) == 9500


class TestBlockAt:
    blocks = [
        {"index": 0, "x": 100, "y": 100, "width": 80, "height": 60},
        {"index": 1, "x": 300, "y": 100, "width": 80, "height": 60},
    ]

    def test_index_input(self):
        assert block_at(self.blocks, 1) == 1
        assert block_at(self.blocks, 5) is None

    def test_point_input(self):
        assert block_at(self.blocks, (340, 130)) == 1
        assert block_at(self.blocks, {"x": 120, "y": 150}) == 0
        assert block_at(self.blocks, (250, 130)) is None

    def test_booleans_are_not_indices(self):
        assert block_at(self.blocks, True) is None


class TestCorsiEngine:
    def test_spans_run_forward_then_backward(self):
        specs = list(CorsiEngine(random.Random("spans")).trial_specs())
        assert [(s.condition, s.stimulus["span"]) for s in specs] == [
            (FORWARD, span) for span in range(2, 9)
        ] + [(BACKWARD, span) for span in range(2, 9)]
        assert all(s.phase == TrialPhase.MAIN for s in specs)

    def test_correct_reproduction(self):
        engine = CorsiEngine(random.Random("correct"))
        spec = next(engine.trial_specs())
        trial = engine.administer(spec, ScriptedPort(corsi_responder))
        assert trial.correct is True
        assert trial.reaction_time_ms == pytest.approx(1000)

    def test_repeated_and_unknown_clicks_are_ignored(self):
        engine = CorsiEngine(random.Random("ignored"))
        spec = next(engine.trial_specs())
        first, second = spec.stimulus["sequence"]
        trial = engine.administer(spec, ScriptedPort(lambda s: [first, 42, first, second]))
        assert trial.response["clicks"] == [first, second]
        assert trial.correct is True

    def test_clicks_during_presentation_are_ignored(self):
        engine = CorsiEngine(random.Random("early"))
        spec = next(engine.trial_specs())
        trial = engine.administer(spec, ScriptedPort(corsi_responder, play_presentation=False))
        assert trial.response["clicks"] == []
        assert trial.correct is False
        assert trial.reaction_time_ms is None
