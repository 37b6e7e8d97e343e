from __future__ import annotations

import random

from tbg.contracts import RandomSource


class PythonRandomSource(RandomSource):
    """Uniform ``[0, 1)`` draws for balancing runs; a fixed seed replays a run."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def rand(self) -> float:
        return self._rng.random()


def default_random() -> PythonRandomSource:
    return PythonRandomSource(seed=None)


def seeded_random(seed: int) -> PythonRandomSource:
    return PythonRandomSource(seed=seed)
