from __future__ import annotations

import math
import random

from pygame.math import Vector3


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_vector(self, low: float, high: float) -> Vector3:
        return Vector3(self.next_range(low, high), self.next_range(low, high), self.next_range(low, high))

    def next_unit_sphere(self) -> Vector3:
        theta = self._random.uniform(0.0, 2.0 * math.pi)
        r = math.sqrt(self._random.random())
        z = math.sqrt(1.0 - r * r)
        if self._random.random() > 0.5:
            z = -z
        return Vector3(r * math.cos(theta), r * math.sin(theta), z)
