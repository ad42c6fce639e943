"""Tile grid schema and pure grid helpers.

The grid itself is produced by external map generation; this module only
describes its shape and offers lookups used by the engines. Tiles hold a
building *id*, never the building record: the canonical owner of a building
is ``WorldState.buildings``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Mapping, Sequence


class Terrain(str, Enum):
    PLAINS = "plains"
    RIVER = "river"
    BAMBOO = "bamboo"
    MOUNTAIN = "mountain"
    FOREST = "forest"


BUILDABLE_TERRAIN = Terrain.PLAINS

# 8-connected neighbourhood, cardinal first.
NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = (
    (0, -1),
    (0, 1),
    (-1, 0),
    (1, 0),
    (-1, -1),
    (-1, 1),
    (1, -1),
    (1, 1),
)

TERRAIN_SYMBOLS: Mapping[str, Terrain] = {
    ".": Terrain.PLAINS,
    "~": Terrain.RIVER,
    "b": Terrain.BAMBOO,
    "^": Terrain.MOUNTAIN,
    "f": Terrain.FOREST,
}

DEFAULT_RESOURCE_AMOUNTS: Mapping[Terrain, float] = {
    Terrain.RIVER: 120.0,
    Terrain.BAMBOO: 100.0,
    Terrain.MOUNTAIN: 80.0,
    Terrain.FOREST: 90.0,
}


@dataclass(slots=True)
class Tile:
    x: int
    y: int
    terrain: Terrain = Terrain.PLAINS
    resource_amount: float | None = None
    building_id: str | None = None
    is_starting_area: bool = False

    @property
    def has_resource(self) -> bool:
        return (self.resource_amount or 0.0) > 0.0

    def clear_resource(self) -> None:
        """Revert the tile to buildable terrain without a resource."""

        self.terrain = BUILDABLE_TERRAIN
        self.resource_amount = None


Grid = List[List[Tile]]


def coerce_terrain(raw: object) -> Terrain:
    if isinstance(raw, Terrain):
        return raw
    if isinstance(raw, str):
        if raw in TERRAIN_SYMBOLS:
            return TERRAIN_SYMBOLS[raw]
        try:
            return Terrain(raw.lower())
        except ValueError:
            pass
    raise ValueError(f"Unknown terrain: {raw!r}")


def grid_from_rows(rows: Sequence[str], *, resource_amounts: Mapping[Terrain, float] | None = None) -> Grid:
    """Build a tile grid from one string per row, one symbol per tile.

    Symbols: ``.`` plains, ``~`` river, ``b`` bamboo, ``^`` mountain,
    ``f`` forest. Non-plains tiles receive their default resource amount.
    """

    amounts = dict(DEFAULT_RESOURCE_AMOUNTS if resource_amounts is None else resource_amounts)
    widths = {len(row) for row in rows}
    if len(widths) > 1:
        raise ValueError("All map rows must have the same width")
    grid: Grid = []
    for y, row in enumerate(rows):
        line: List[Tile] = []
        for x, symbol in enumerate(row):
            terrain = coerce_terrain(symbol)
            line.append(Tile(x=x, y=y, terrain=terrain, resource_amount=amounts.get(terrain)))
        grid.append(line)
    return grid


def dimensions(grid: Grid) -> tuple[int, int]:
    height = len(grid)
    width = len(grid[0]) if height else 0
    return width, height


def in_bounds(grid: Grid, x: int, y: int) -> bool:
    return 0 <= y < len(grid) and 0 <= x < len(grid[y])


def tile_at(grid: Grid, x: int, y: int) -> Tile | None:
    if not in_bounds(grid, x, y):
        return None
    return grid[y][x]


def adjacent_tiles(grid: Grid, x: int, y: int) -> list[Tile]:
    neighbours: list[Tile] = []
    for dx, dy in NEIGHBOUR_OFFSETS:
        tile = tile_at(grid, x + dx, y + dy)
        if tile is not None:
            neighbours.append(tile)
    return neighbours


def iter_tiles(grid: Grid) -> Iterator[Tile]:
    for row in grid:
        yield from row


def coord_key(x: int, y: int) -> str:
    return f"{x},{y}"


def parse_coord_key(key: str) -> tuple[int, int]:
    raw_x, _, raw_y = key.partition(",")
    return int(raw_x), int(raw_y)


def blank_visibility(grid: Grid) -> list[list[bool]]:
    return [[False for _ in row] for row in grid]


def rect_coords(x0: int, y0: int, x1: int, y1: int) -> Iterable[tuple[int, int]]:
    """Inclusive rectangle of coordinates, row-major."""

    for y in range(y0, y1 + 1):
        for x in range(x0, x1 + 1):
            yield x, y


__all__ = [
    "BUILDABLE_TERRAIN",
    "DEFAULT_RESOURCE_AMOUNTS",
    "Grid",
    "NEIGHBOUR_OFFSETS",
    "TERRAIN_SYMBOLS",
    "Terrain",
    "Tile",
    "adjacent_tiles",
    "blank_visibility",
    "coerce_terrain",
    "coord_key",
    "dimensions",
    "grid_from_rows",
    "in_bounds",
    "iter_tiles",
    "parse_coord_key",
    "rect_coords",
    "tile_at",
]
