"""Resource kinds, population roles and base storage tables."""

from __future__ import annotations

from enum import Enum
from typing import Mapping


class ResourceKind(str, Enum):
    RICE = "rice"
    TEA = "tea"
    SILK = "silk"
    JADE = "jade"
    IRON = "iron"
    BAMBOO = "bamboo"
    GOLD = "gold"


FOOD = ResourceKind.RICE.value
CURRENCY = ResourceKind.GOLD.value

RESOURCE_KEYS: tuple[str, ...] = tuple(kind.value for kind in ResourceKind)

STARTING_RESOURCES: Mapping[str, float] = {
    "rice": 80.0,
    "tea": 50.0,
    "silk": 0.0,
    "jade": 0.0,
    "iron": 0.0,
    "bamboo": 50.0,
    "gold": 150.0,
}

BASE_STORAGE: Mapping[str, float] = {
    "rice": 300.0,
    "tea": 200.0,
    "silk": 100.0,
    "jade": 150.0,
    "iron": 200.0,
    "bamboo": 300.0,
    "gold": 500.0,
}

STARTING_ROLES: Mapping[str, int] = {
    "farmer": 3,
    "merchant": 1,
    "warrior": 1,
    "monk": 0,
    "fisherman": 0,
}


def resource_key(raw: object) -> str | None:
    """Normalise ``raw`` to a resource key, or ``None`` if unknown."""

    if isinstance(raw, ResourceKind):
        return raw.value
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in RESOURCE_KEYS:
            return lowered
    return None


__all__ = [
    "BASE_STORAGE",
    "CURRENCY",
    "FOOD",
    "RESOURCE_KEYS",
    "ResourceKind",
    "STARTING_RESOURCES",
    "STARTING_ROLES",
    "resource_key",
]
