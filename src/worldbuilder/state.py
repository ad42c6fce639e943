"""World State for the settlement simulation.

``WorldState`` is the single mutable aggregate every engine and action reads
and writes. Buildings are owned by ``WorldState.buildings`` (keyed by id);
tiles only carry the id as an index, so demolition cannot leave a dangling
record behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .runtime import config
from .runtime.capacity import recompute_capacities
from .runtime.population import PopulationConfig
from .runtime.production import ProductionConfig
from .runtime.telemetry import DebugConfig, EventRing, Metrics
from .runtime.tick import TickConfig
from .runtime.timebase import Season
from .world.buildings import Building, get_building_def
from .world.quests import Quest, starting_quests
from .world.resources import BASE_STORAGE, STARTING_RESOURCES, STARTING_ROLES
from .world.terrain import (
    BUILDABLE_TERRAIN,
    Grid,
    Tile,
    blank_visibility,
    coord_key,
    dimensions,
    in_bounds,
    parse_coord_key,
    rect_coords,
    tile_at,
)


class InvariantViolation(RuntimeError):
    """Raised when World State breaks a capacity or headcount invariant."""


@dataclass(slots=True)
class WorldState:
    grid: Grid = field(default_factory=list)
    resources: Dict[str, float] = field(default_factory=lambda: dict(STARTING_RESOURCES))
    max_resources: Dict[str, float] = field(default_factory=lambda: dict(BASE_STORAGE))
    population: float = 5.0
    max_population: float = float(config.BASE_HOUSING)
    population_types: Dict[str, int] = field(default_factory=lambda: dict(STARTING_ROLES))
    workers: int = 5
    used_workers: int = 0
    buildings: Dict[str, Building] = field(default_factory=dict)
    quests: List[Quest] = field(default_factory=list)
    completed_quests: List[str] = field(default_factory=list)
    settlement_level: int = 1
    last_settlement_level: int = 1
    premium_currency: int = 10
    season: Season = Season.SPRING
    day_time: float = 0.5
    day_count: int = 0
    total_play_time: float = 0.0
    last_update: float = 0.0
    explored_areas: set[str] = field(default_factory=set)
    visibility_grid: List[List[bool]] = field(default_factory=list)
    discovered_territories: Dict[str, Any] = field(default_factory=dict)
    map_seed: int = 0
    tutorial_step: int = 1
    bonus_housing: float = 0.0
    next_building_seq: int = 0
    prod_cfg: ProductionConfig = field(default_factory=ProductionConfig)
    pop_cfg: PopulationConfig = field(default_factory=PopulationConfig)
    tick_cfg: TickConfig = field(default_factory=TickConfig)
    metrics: Metrics = field(default_factory=Metrics)
    event_ring: EventRing = field(default_factory=EventRing)
    debug_cfg: DebugConfig = field(default_factory=DebugConfig)

    # ------------------------------------------------------------------
    # Grid and building lookups
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return dimensions(self.grid)[0]

    @property
    def height(self) -> int:
        return dimensions(self.grid)[1]

    def tile(self, x: int, y: int) -> Tile | None:
        return tile_at(self.grid, x, y)

    def building_at(self, x: int, y: int) -> Building | None:
        tile = self.tile(x, y)
        if tile is None or tile.building_id is None:
            return None
        return self.buildings.get(tile.building_id)

    def buildings_of_type(self, building_type: str) -> List[Building]:
        return [b for b in self.buildings.values() if b.type == building_type]

    def has_building_type(self, building_type: str) -> bool:
        return any(b.type == building_type for b in self.buildings.values())

    def distinct_building_types(self) -> set[str]:
        return {b.type for b in self.buildings.values()}

    @property
    def available_workers(self) -> int:
        return self.workers - self.used_workers

    # ------------------------------------------------------------------
    # Ownership edges
    # ------------------------------------------------------------------
    def new_building_id(self) -> str:
        seq = self.next_building_seq
        self.next_building_seq = seq + 1
        return f"building:{seq}"

    def link_building(self, building: Building) -> None:
        tile = self.tile(building.x, building.y)
        if tile is None:
            raise ValueError(f"Building {building.building_id} outside the map at {building.x},{building.y}")
        if tile.building_id is not None:
            raise ValueError(f"Tile {building.x},{building.y} already holds {tile.building_id}")
        self.buildings[building.building_id] = building
        tile.building_id = building.building_id

    def unlink_building(self, building_id: str) -> Building:
        building = self.buildings.pop(building_id)
        tile = self.tile(building.x, building.y)
        if tile is not None and tile.building_id == building_id:
            tile.building_id = None
        return building

    # ------------------------------------------------------------------
    # Population bookkeeping
    # ------------------------------------------------------------------
    def sync_workers(self) -> None:
        self.workers = int(math.floor(self.population))

    # ------------------------------------------------------------------
    # Fog of war
    # ------------------------------------------------------------------
    def reveal(self, coords: Iterable[tuple[int, int]]) -> int:
        """Mark in-bounds ``coords`` explored and visible; return newly explored count."""

        revealed = 0
        for x, y in coords:
            if not in_bounds(self.grid, x, y):
                continue
            key = coord_key(x, y)
            if key not in self.explored_areas:
                self.explored_areas.add(key)
                revealed += 1
            if y < len(self.visibility_grid) and x < len(self.visibility_grid[y]):
                self.visibility_grid[y][x] = True
        return revealed

    def explored_bounds(self) -> tuple[int, int, int, int] | None:
        """Inclusive (x0, y0, x1, y1) bounding box of explored tiles."""

        if not self.explored_areas:
            return None
        xs: list[int] = []
        ys: list[int] = []
        for key in self.explored_areas:
            x, y = parse_coord_key(key)
            xs.append(x)
            ys.append(y)
        return min(xs), min(ys), max(xs), max(ys)


def check_invariants(world: WorldState, *, eps: float = 1e-9) -> None:
    """Raise :class:`InvariantViolation` if World State is inconsistent."""

    for resource, amount in world.resources.items():
        cap = world.max_resources.get(resource, 0.0)
        if amount < -eps or amount > cap + eps:
            raise InvariantViolation(f"{resource}={amount} outside [0, {cap}]")
    if world.population < config.MIN_POPULATION - eps:
        raise InvariantViolation(f"population {world.population} below {config.MIN_POPULATION}")
    if world.workers != int(math.floor(world.population)):
        raise InvariantViolation(f"workers {world.workers} != floor(population {world.population})")
    if not 0 <= world.used_workers <= world.workers:
        raise InvariantViolation(f"used_workers {world.used_workers} outside [0, {world.workers}]")
    staffed = 0
    for building_id, building in world.buildings.items():
        required = get_building_def(building.type).workers
        if not 0 <= building.workers <= required:
            raise InvariantViolation(f"{building_id} staffed {building.workers} of {required}")
        staffed += building.workers
        tile = world.tile(building.x, building.y)
        if tile is None or tile.building_id != building_id:
            raise InvariantViolation(f"{building_id} missing from its tile back-reference")
    if staffed != world.used_workers:
        raise InvariantViolation(f"used_workers {world.used_workers} != staffed total {staffed}")


def _place_starting_building(world: WorldState, building_type: str, x: int, y: int) -> None:
    if not in_bounds(world.grid, x, y):
        return
    get_building_def(building_type)
    world.link_building(
        Building(
            building_id=world.new_building_id(),
            type=building_type,
            x=x,
            y=y,
            is_starting_building=True,
        )
    )


def create_initial_state(
    grid: Grid,
    *,
    seed: int = 0,
    now_ms: float = 0.0,
    visibility: Optional[Sequence[Sequence[bool]]] = None,
    quests: Optional[List[Quest]] = None,
) -> WorldState:
    """Build the opening World State around a pre-generated tile grid.

    A 5x5 plaza around the map centre is cleared to plains, a castle (town
    hall) is placed at the centre with a house two tiles west, and the
    window around the centre starts explored and visible.
    """

    width, height = dimensions(grid)
    if width == 0 or height == 0:
        raise ValueError("Cannot create a settlement on an empty map")

    world = WorldState(
        grid=grid,
        last_update=float(now_ms),
        map_seed=int(seed),
        quests=starting_quests() if quests is None else quests,
    )
    if visibility is None:
        world.visibility_grid = blank_visibility(grid)
    else:
        world.visibility_grid = [list(row) for row in visibility]

    cx, cy = width // 2, height // 2
    radius = config.STARTING_PLAZA_RADIUS
    for x, y in rect_coords(cx - radius, cy - radius, cx + radius, cy + radius):
        tile = world.tile(x, y)
        if tile is None:
            continue
        tile.terrain = BUILDABLE_TERRAIN
        tile.resource_amount = None
        tile.is_starting_area = True

    _place_starting_building(world, "castle", cx, cy)
    _place_starting_building(world, "house", cx - 2, cy)

    x0 = cx - config.INITIAL_VISIBLE_WIDTH // 2
    y0 = cy - config.INITIAL_VISIBLE_HEIGHT // 2
    world.reveal(
        rect_coords(x0, y0, x0 + config.INITIAL_VISIBLE_WIDTH - 1, y0 + config.INITIAL_VISIBLE_HEIGHT - 1)
    )

    recompute_capacities(world)
    world.sync_workers()
    return world


__all__ = [
    "InvariantViolation",
    "WorldState",
    "check_invariants",
    "create_initial_state",
]
