from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Mapping


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def counter(self, path: str) -> float:
        return self.counters.get(path, 0.0)

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: _to_jsonable(v) for k, v in sorted(self.gauges.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"))


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(k): _to_jsonable(v) for k, v in sorted(value.items(), key=lambda itm: str(itm[0]))}
    if isinstance(value, (list, tuple, set)):
        return [_to_jsonable(v) for v in value]
    return str(value)


@dataclass(slots=True)
class EventRing:
    capacity: int = 200
    events: list[dict[str, object]] = field(default_factory=list)

    def append(self, event: Mapping[str, object]) -> None:
        self.events.append(dict(event))
        if len(self.events) > max(1, int(self.capacity)):
            self.events = self.events[-int(self.capacity) :]

    def tail(self, n: int = 10) -> list[dict[str, object]]:
        return list(self.events[-max(0, int(n)) :])

    def of_type(self, event_type: str) -> list[dict[str, object]]:
        return [event for event in self.events if event.get("type") == event_type]


@dataclass(slots=True)
class DebugConfig:
    level: str = "standard"

    def has_event_ring(self) -> bool:
        return self.level in {"standard", "verbose"}


def ensure_metrics(world: Any) -> Metrics:
    metrics = getattr(world, "metrics", None)
    if isinstance(metrics, Metrics):
        return metrics
    metrics = Metrics()
    world.metrics = metrics
    return metrics


def ensure_event_ring(world: Any) -> EventRing:
    cfg = getattr(world, "debug_cfg", None)
    if not isinstance(cfg, DebugConfig):
        cfg = DebugConfig()
        world.debug_cfg = cfg
    ring = getattr(world, "event_ring", None)
    if cfg.has_event_ring():
        if not isinstance(ring, EventRing):
            ring = EventRing()
            world.event_ring = ring
        return ring
    return ring if isinstance(ring, EventRing) else EventRing(capacity=0)


def record_event(world: Any, event: Mapping[str, object]) -> None:
    ring = ensure_event_ring(world)
    if ring.capacity <= 0 or not getattr(world, "debug_cfg", DebugConfig()).has_event_ring():
        return
    payload = dict(event)
    payload.setdefault("t_ms", getattr(world, "last_update", 0))
    ring.append(payload)


__all__ = [
    "DebugConfig",
    "EventRing",
    "Metrics",
    "ensure_event_ring",
    "ensure_metrics",
    "record_event",
]
