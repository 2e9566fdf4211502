import random

from cogbattery.instruments.helpers.corsi import CorsiEngine
from cogbattery.instruments.helpers.five_point import FivePointEngine
from cogbattery.instruments.helpers.stroop import StroopEngine
from cogbattery.instruments.helpers.trail_making import TrailMakingEngine
from cogbattery.instruments.registry import INSTRUMENT_REGISTRY

ENGINES = {
    engine.instrument_id: engine
    for engine in (StroopEngine, TrailMakingEngine, CorsiEngine, FivePointEngine)
}


def get_engine(instrument_id: str, rng: random.Random):
    """Return a fresh engine for *instrument_id* drawing from *rng*.

    Raises KeyError for ids absent from INSTRUMENT_REGISTRY.
    """
    if instrument_id not in INSTRUMENT_REGISTRY:
        raise KeyError(f"Unknown instrument: {instrument_id!r}")
    return ENGINES[instrument_id](rng)
