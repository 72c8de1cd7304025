from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from ..config import SimConfig
from .hierarchy import build_hierarchy, iter_levels
from .levels import AccessResult, AccessType, CacheLevel, MemoryLevel


class AccessSimulator:
    """
    Drives a stream of (address, access type) pairs through a hierarchy.

    Results accumulate in `results` across calls. The hierarchy keeps its
    state too, so a second run continues where the first stopped unless
    `reset` is called in between.
    """

    def __init__(self, top_level: MemoryLevel):
        self.top_level = top_level
        self.levels: List[MemoryLevel] = list(iter_levels(top_level))
        self.results: List[AccessResult] = []

    @property
    def level_names(self) -> List[str]:
        """Configured level names, top to bottom."""
        return [level.name for level in self.levels]

    @property
    def caches(self) -> List[CacheLevel]:
        return [level for level in self.levels if isinstance(level, CacheLevel)]

    def step(self, address: int, access_type: AccessType | str) -> AccessResult:
        if not isinstance(access_type, AccessType):
            access_type = AccessType.parse(access_type)
        result = self.top_level.access(address, access_type)
        self.results.append(result)
        return result

    def load(self, address: int) -> AccessResult:
        return self.step(address, AccessType.LOAD)

    def store(self, address: int) -> AccessResult:
        return self.step(address, AccessType.STORE)

    def iter_run(self, accesses: Iterable[Tuple[int, AccessType]]) -> Iterator[AccessResult]:
        """Lazily simulates `accesses`, one result per access."""
        for address, access_type in accesses:
            yield self.step(address, access_type)

    def run(self, accesses: Iterable[Tuple[int, AccessType]]) -> List[AccessResult]:
        """Simulates every access and returns the results of this call."""
        return list(self.iter_run(accesses))

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Raw counters of every cache level, keyed by level name."""
        return {cache.name: cache.get_stats() for cache in self.caches}

    def reset(self):
        self.results = []
        self.top_level.reset()


def run(accesses: Iterable[Tuple[int, AccessType]], config: SimConfig) -> Tuple[List[AccessResult], Dict[str, Any]]:
    """
    Runs the simulation for a sequence of accesses and a configuration.

    This is the main entry point for the runtime simulation. It builds the
    hierarchy described by `config`, drives every access through it and
    returns the per-access results together with a stats dictionary.
    """
    accesses = list(accesses)
    simulator = AccessSimulator(build_hierarchy(config))
    results = simulator.run(accesses)

    loads = sum(1 for _, access_type in accesses if AccessType.parse(str(access_type)) == AccessType.LOAD)
    stats: Dict[str, Any] = {
        "hierarchy": simulator.level_names,
        "levels": simulator.get_stats(),
        "num_accesses": len(results),
        "loads": loads,
        "stores": len(results) - loads,
        "total_cycles": sum(r.total_cycles for r in results),
    }
    return results, stats
