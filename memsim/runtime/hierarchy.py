from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

from ..config import SimConfig
from .levels import CacheLevel, MainMemory, MemoryLevel
from .policies import make_policy, available_policies


@dataclass
class _CacheSpec:
    name: str
    num_sets: int
    num_ways: int
    block_size: int
    hit_latency: int
    policy: str
    policy_params: Dict[str, Any] = field(default_factory=dict)


class HierarchyBuilder:
    """
    Assembles a linear chain of cache levels over a single main memory.

    Levels are added top first. `build` constructs them bottom-up so every
    cache is handed the level below it and is that level's only owner.
    All parameters are checked here, so a built hierarchy cannot be malformed.
    """

    def __init__(self):
        self._caches: List[_CacheSpec] = []

    def add_cache(self, name: str, num_sets: int, num_ways: int, block_size: int,
                  hit_latency: int = 1, policy: str = "lru", **policy_params) -> HierarchyBuilder:
        """Appends a cache below the ones already added."""
        spec = _CacheSpec(name, num_sets, num_ways, block_size, hit_latency, policy, policy_params)
        self._validate(spec)
        self._caches.append(spec)
        return self

    def _validate(self, spec: _CacheSpec):
        if not isinstance(spec.name, str) or not spec.name:
            raise ValueError("Cache level name must be a non-empty string.")
        if spec.name in {c.name for c in self._caches}:
            raise ValueError(f"Duplicate level name in hierarchy: {spec.name}")
        for attr in ("num_sets", "num_ways", "block_size", "hit_latency"):
            value = getattr(spec, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"[{spec.name}] {attr} must be an integer, got {value!r}.")
        if spec.num_sets < 1:
            raise ValueError(f"[{spec.name}] Number of sets must be positive.")
        if spec.num_ways < 1:
            raise ValueError(f"[{spec.name}] Number of ways must be positive.")
        if spec.block_size < 1:
            raise ValueError(f"[{spec.name}] Block size must be positive.")
        if spec.hit_latency < 0:
            raise ValueError(f"[{spec.name}] Hit latency must not be negative.")
        if not isinstance(spec.policy, str) or spec.policy.lower() not in available_policies():
            raise ValueError(f"[{spec.name}] Unknown replacement policy: {spec.policy}")
        try:
            make_policy(spec.policy, 1, 1, **spec.policy_params)
        except TypeError as e:
            raise ValueError(f"[{spec.name}] Invalid parameters for policy '{spec.policy}': {e}") from e

    @property
    def level_names(self) -> List[str]:
        return [c.name for c in self._caches]

    def build(self, memory_name: str = "MainMemory", memory_latency: int = 100) -> MemoryLevel:
        """Returns the top of the hierarchy (main memory itself if no caches were added)."""
        if not isinstance(memory_name, str) or not memory_name:
            raise ValueError("Main memory name must be a non-empty string.")
        if memory_name in self.level_names:
            raise ValueError(f"Main memory name clashes with a cache level: {memory_name}")
        if isinstance(memory_latency, bool) or not isinstance(memory_latency, int) or memory_latency < 0:
            raise ValueError(f"Main memory latency must be a non-negative integer, got {memory_latency!r}.")

        level: MemoryLevel = MainMemory(memory_name, memory_latency)
        for spec in reversed(self._caches):
            policy = make_policy(spec.policy, spec.num_sets, spec.num_ways, **spec.policy_params)
            level = CacheLevel(spec.name, level, spec.num_sets, spec.num_ways,
                               spec.block_size, policy, spec.hit_latency)
        return level

    @classmethod
    def from_config(cls, config: SimConfig) -> HierarchyBuilder:
        builder = cls()
        for lvl in config.levels:
            builder.add_cache(lvl.name, lvl.num_sets, lvl.num_ways, lvl.block_size,
                              lvl.hit_latency, lvl.policy, **lvl.policy_params)
        return builder


def build_hierarchy(config: SimConfig) -> MemoryLevel:
    """Builds the full chain described by a SimConfig."""
    return HierarchyBuilder.from_config(config).build(config.memory_name, config.memory_latency)


def iter_levels(top: MemoryLevel) -> Iterator[MemoryLevel]:
    """Walks the chain from `top` down to main memory."""
    level = top
    while level is not None:
        yield level
        level = level.next_level


def level_names(top: MemoryLevel) -> List[str]:
    return [level.name for level in iter_levels(top)]
