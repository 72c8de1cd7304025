from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .policies import ReplacementPolicy
from ..utils.logging import get_logger

logger = get_logger(__name__)


class AccessType(str, Enum):
    """Kind of memory access in a trace."""

    LOAD = "L"
    STORE = "S"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> AccessType:
        """Parses 'L'/'R'/'LOAD'/'READ' or 'S'/'W'/'STORE'/'WRITE'."""
        key = token.strip().upper()
        if key in ("L", "R", "LOAD", "READ"):
            return cls.LOAD
        if key in ("S", "W", "STORE", "WRITE"):
            return cls.STORE
        raise ValueError(f"Unknown access type: {token!r}")


@dataclass
class AccessResult:
    """Which level serviced an access and the cycles it took to get there."""
    hit_level: str
    total_cycles: int


class CacheLine:
    """Represents a single line in a cache set."""
    __slots__ = ("valid", "dirty", "tag")

    def __init__(self):
        self.valid = False
        self.dirty = False
        self.tag = 0

    def __repr__(self) -> str:
        return f"CacheLine(valid={self.valid}, dirty={self.dirty}, tag={self.tag:#x})"


class MemoryLevel(ABC):
    """One node of the hierarchy. Every level answers load and store."""

    def __init__(self, name: str, next_level: MemoryLevel | None = None):
        self.name = name
        self.next_level = next_level

    @abstractmethod
    def load(self, address: int) -> AccessResult:
        raise NotImplementedError

    @abstractmethod
    def store(self, address: int) -> AccessResult:
        raise NotImplementedError

    def access(self, address: int, access_type: AccessType) -> AccessResult:
        if access_type == AccessType.STORE:
            return self.store(address)
        return self.load(address)

    def reset(self):
        if self.next_level is not None:
            self.next_level.reset()


class MainMemory(MemoryLevel):
    """The bottom of the hierarchy. Always hits and holds no state."""

    def __init__(self, name: str = "MainMemory", latency: int = 100):
        super().__init__(name)
        self.latency = latency

    def load(self, address: int) -> AccessResult:
        return AccessResult(self.name, self.latency)

    def store(self, address: int) -> AccessResult:
        return AccessResult(self.name, self.latency)

    def __repr__(self) -> str:
        return f"MainMemory(name={self.name!r}, latency={self.latency})"


class CacheLevel(MemoryLevel):
    """
    A set-associative, write-back, write-allocate cache.

    The level owns the next level of the hierarchy: misses are forwarded to it
    as loads and dirty victims are written back to it as stores. Replacement
    decisions are delegated to the policy object.
    """

    def __init__(self, name: str, next_level: MemoryLevel, num_sets: int, num_ways: int,
                 block_size: int, policy: ReplacementPolicy, hit_latency: int = 1):
        super().__init__(name, next_level)
        self.num_sets = num_sets
        self.num_ways = num_ways
        self.block_size = block_size
        self.hit_latency = hit_latency
        self.policy = policy
        self.sets: List[List[CacheLine]] = [[CacheLine() for _ in range(num_ways)] for _ in range(num_sets)]

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._replacements = 0

    # --- Stats (read-only) ---
    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def evictions(self) -> int:
        """Dirty lines written back to the next level."""
        return self._evictions

    @property
    def replacements(self) -> int:
        """Valid lines overwritten by a fill, clean or dirty."""
        return self._replacements

    def get_stats(self) -> Dict[str, Any]:
        """Returns a dictionary of cache statistics."""
        total_accesses = self._hits + self._misses
        hit_rate = self._hits / total_accesses if total_accesses else 0.0
        miss_rate = self._misses / total_accesses if total_accesses else 0.0
        return {
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "replacements": self._replacements,
            "hit_rate": hit_rate,
            "miss_rate": miss_rate,
        }

    # --- Address decomposition ---
    def decompose(self, address: int) -> tuple[int, int]:
        """Splits an address into (set_index, tag)."""
        block = address // self.block_size
        return block % self.num_sets, block // self.num_sets

    def block_address(self, tag: int, set_index: int) -> int:
        """Inverse of `decompose`: the first address of the block."""
        return (tag * self.num_sets + set_index) * self.block_size

    def _find_way(self, set_index: int, tag: int) -> int | None:
        for way, line in enumerate(self.sets[set_index]):
            if line.valid and line.tag == tag:
                return way
        return None

    # --- Accesses ---
    def load(self, address: int) -> AccessResult:
        set_index, tag = self.decompose(address)
        way = self._find_way(set_index, tag)
        if way is not None:
            self._hits += 1
            self.policy.on_hit(set_index, way)
            return AccessResult(self.name, self.hit_latency)

        self._misses += 1
        result = self.next_level.load(address)
        result.total_cycles += self.hit_latency
        self.fill(set_index, tag)
        return result

    def store(self, address: int) -> AccessResult:
        set_index, tag = self.decompose(address)
        way = self._find_way(set_index, tag)
        if way is not None:
            self._hits += 1
            self.sets[set_index][way].dirty = True
            self.policy.on_hit(set_index, way)
            return AccessResult(self.name, self.hit_latency)

        # Write miss: allocate the whole block, then dirty it.
        self._misses += 1
        result = self.next_level.load(address)
        result.total_cycles += self.hit_latency
        way = self.fill(set_index, tag)
        self.sets[set_index][way].dirty = True
        return result

    def fill(self, set_index: int, tag: int) -> int:
        """Installs `tag` in the set, writing back a dirty victim. Returns the way used."""
        lines = self.sets[set_index]
        way = next((i for i, line in enumerate(lines) if not line.valid), None)

        if way is None:
            way = self.policy.get_victim(set_index)
            victim = lines[way]
            self._replacements += 1
            if victim.valid and victim.dirty:
                victim_address = self.block_address(victim.tag, set_index)
                logger.debug("%s: write-back of block %#x from set %d way %d",
                             self.name, victim_address, set_index, way)
                self.next_level.store(victim_address)
                self._evictions += 1

        line = lines[way]
        line.valid = True
        line.tag = tag
        line.dirty = False
        self.policy.on_fill(set_index, way)
        return way

    # --- Inspection ---
    def contains(self, address: int) -> bool:
        """True if the block holding `address` is resident. No side effects."""
        set_index, tag = self.decompose(address)
        return self._find_way(set_index, tag) is not None

    def is_dirty(self, address: int) -> bool:
        set_index, tag = self.decompose(address)
        way = self._find_way(set_index, tag)
        return way is not None and self.sets[set_index][way].dirty

    def reset(self):
        """Invalidates every line and clears counters and policy state, down the chain."""
        for lines in self.sets:
            for line in lines:
                line.valid = False
                line.dirty = False
                line.tag = 0
        self.policy.reset()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._replacements = 0
        super().reset()

    def __repr__(self) -> str:
        return (f"CacheLevel(name={self.name!r}, sets={self.num_sets}, ways={self.num_ways}, "
                f"block_size={self.block_size}, hit_latency={self.hit_latency}, "
                f"policy={type(self.policy).__name__})")
