from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Tuple

from pygame.math import Vector3

if TYPE_CHECKING:
    from .agent import Boid

CellKey = Tuple[int, int, int]

_BLOCK_OFFSETS: Tuple[CellKey, ...] = tuple(
    (dx, dy, dz) for dx in (-1, 0, 1) for dy in (-1, 0, 1) for dz in (-1, 0, 1)
)


class SpatialGrid:
    """Uniform grid of boid buckets, rebuilt from scratch every step.

    Keys truncate `position / cell_size` toward zero on each axis, so the cell
    straddling the origin is twice as wide as the others. With `cell_size`
    equal to the perception radius, the 3x3x3 block around a boid's cell still
    covers every boid within that radius.
    """

    def __init__(self, cell_size: float = 1.0) -> None:
        self._cell_size = cell_size
        self._cells: Dict[CellKey, List["Boid"]] = {}
        self._active_keys: List[CellKey] = []

    @property
    def cell_size(self) -> float:
        return self._cell_size

    @property
    def occupied_cells(self) -> int:
        return len(self._active_keys)

    @property
    def max_occupancy(self) -> int:
        return max((len(self._cells[key]) for key in self._active_keys), default=0)

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()

    def rebuild(self, boids: Iterable["Boid"], cell_size: float) -> None:
        self.clear()
        if cell_size != self._cell_size:
            # Keys from the old size are meaningless; drop the empty buckets too.
            self._cells.clear()
            self._cell_size = cell_size
        for boid in boids:
            self.insert(boid)

    def insert(self, boid: "Boid") -> None:
        key = self.cell_key(boid.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket survived the last clear; mark it active again.
            self._active_keys.append(key)
        bucket.append(boid)

    def bucket(self, key: CellKey) -> List["Boid"]:
        return list(self._cells.get(key, ()))

    def cells_around(self, key: CellKey) -> Iterator["Boid"]:
        cells = self._cells
        kx, ky, kz = key
        for dx, dy, dz in _BLOCK_OFFSETS:
            bucket = cells.get((kx + dx, ky + dy, kz + dz))
            if bucket:
                yield from bucket

    def cell_key(self, position: Vector3) -> CellKey:
        size = self._cell_size
        return (int(position.x / size), int(position.y / size), int(position.z / size))
