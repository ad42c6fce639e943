from __future__ import annotations

import gzip
import importlib
import json
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from hashlib import sha256
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

from worldbuilder.world.terrain import iter_tiles

SNAPSHOT_SCHEMA_VERSION = "worldbuilder_snapshot_v1"


@dataclass(slots=True)
class WorldSnapshotV1:
    schema_version: str
    map_seed: int
    t_ms: float
    world: Mapping[str, Any]


def _resolve_type(path: str):
    module_path, _, attr = path.rpartition(".")
    module = importlib.import_module(module_path)
    return getattr(module, attr)


def to_snapshot_dict(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        payload = {field.name: to_snapshot_dict(getattr(obj, field.name)) for field in fields(obj)}
        return {"__type__": f"{obj.__class__.__module__}.{obj.__class__.__qualname__}", "data": payload}

    if isinstance(obj, Enum):
        return {"__enum__": f"{obj.__class__.__module__}.{obj.__class__.__qualname__}", "value": obj.value}

    if isinstance(obj, (set, frozenset)):
        return {"__set__": [to_snapshot_dict(item) for item in sorted(obj, key=lambda itm: str(itm))]}

    if isinstance(obj, Mapping):
        return {str(k): to_snapshot_dict(v) for k, v in sorted(obj.items(), key=lambda item: str(item[0]))}

    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return [to_snapshot_dict(item) for item in obj]

    return obj


def from_snapshot_dict(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        if "__enum__" in obj:
            enum_cls = _resolve_type(obj["__enum__"])
            return enum_cls(obj["value"])

        if "__set__" in obj:
            return set(from_snapshot_dict(item) for item in obj.get("__set__", []))

        if "__type__" in obj and "data" in obj:
            cls = _resolve_type(obj["__type__"])
            if is_dataclass(cls):
                kwargs: MutableMapping[str, Any] = {}
                for field in fields(cls):
                    if field.name in obj["data"]:
                        kwargs[field.name] = from_snapshot_dict(obj["data"][field.name])
                return cls(**kwargs)

        return {key: from_snapshot_dict(value) for key, value in obj.items()}

    if isinstance(obj, list):
        return [from_snapshot_dict(item) for item in obj]

    return obj


def snapshot_world(world: Any) -> WorldSnapshotV1:
    return WorldSnapshotV1(
        schema_version=SNAPSHOT_SCHEMA_VERSION,
        map_seed=int(getattr(world, "map_seed", 0)),
        t_ms=float(getattr(world, "last_update", 0.0)),
        world=to_snapshot_dict(world),
    )


def restore_world(snapshot: WorldSnapshotV1):
    world = from_snapshot_dict(snapshot.world)
    # Tiles only hold building ids; drop any that no longer resolve.
    buildings = getattr(world, "buildings", {})
    for tile in iter_tiles(getattr(world, "grid", [])):
        if tile.building_id is not None and tile.building_id not in buildings:
            tile.building_id = None
    return world


def _canonical_dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def save_snapshot(snapshot: WorldSnapshotV1, path: Path, *, gzip_output: bool = True) -> str:
    snapshot_dict = {
        "schema_version": snapshot.schema_version,
        "map_seed": snapshot.map_seed,
        "t_ms": snapshot.t_ms,
        "world": snapshot.world,
    }

    payload = _canonical_dumps(snapshot_dict).encode("utf-8")
    digest = sha256(payload).hexdigest()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if gzip_output:
        with gzip.open(path, "wb") as fp:
            fp.write(payload)
    else:
        with open(path, "wb") as fp:
            fp.write(payload)

    return digest


def load_snapshot(path: Path) -> WorldSnapshotV1:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    raw: bytes
    if path.suffix.endswith("gz"):
        with gzip.open(path, "rb") as fp:
            raw = fp.read()
    else:
        with open(path, "rb") as fp:
            raw = fp.read()

    data = json.loads(raw.decode("utf-8"))
    return WorldSnapshotV1(
        schema_version=data.get("schema_version", SNAPSHOT_SCHEMA_VERSION),
        map_seed=data.get("map_seed", 0),
        t_ms=data.get("t_ms", 0.0),
        world=data["world"],
    )


def save_world(world: Any, path: Path) -> str:
    """Persist ``world``; gzip is chosen from a ``.gz`` suffix."""

    path = Path(path)
    return save_snapshot(snapshot_world(world), path, gzip_output=path.suffix.endswith("gz"))


def load_world(path: Path):
    """Return the saved world at ``path`` or ``None`` when there is no save."""

    path = Path(path)
    if not path.exists():
        return None
    return restore_world(load_snapshot(path))


def world_signature(world: Any) -> str:
    buildings_summary = [
        {
            "id": building_id,
            "type": building.type,
            "pos": [building.x, building.y],
            "workers": building.workers,
        }
        for building_id, building in sorted(getattr(world, "buildings", {}).items())
    ]
    quests_summary = [
        {"id": quest.quest_id, "status": quest.status.value, "progress": round(quest.progress, 6)}
        for quest in sorted(getattr(world, "quests", []), key=lambda q: q.quest_id)
    ]
    depleting = [
        [tile.x, tile.y, tile.terrain.value, round(tile.resource_amount or 0.0, 6)]
        for tile in iter_tiles(getattr(world, "grid", []))
        if tile.resource_amount is not None
    ]

    canonical = {
        "t_ms": getattr(world, "last_update", 0.0),
        "seed": getattr(world, "map_seed", 0),
        "resources": {k: round(v, 6) for k, v in sorted(getattr(world, "resources", {}).items())},
        "population": round(getattr(world, "population", 0.0), 6),
        "workers": [getattr(world, "workers", 0), getattr(world, "used_workers", 0)],
        "level": [getattr(world, "settlement_level", 1), getattr(world, "last_settlement_level", 1)],
        "buildings": buildings_summary,
        "quests": quests_summary,
        "explored": len(getattr(world, "explored_areas", ())),
        "terrain": depleting,
    }
    return sha256(_canonical_dumps(canonical).encode("utf-8")).hexdigest()


__all__ = [
    "SNAPSHOT_SCHEMA_VERSION",
    "WorldSnapshotV1",
    "from_snapshot_dict",
    "load_snapshot",
    "load_world",
    "restore_world",
    "save_snapshot",
    "save_world",
    "snapshot_world",
    "to_snapshot_dict",
    "world_signature",
]
