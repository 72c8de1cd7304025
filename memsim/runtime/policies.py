from __future__ import annotations
from abc import ABC, abstractmethod
from collections import OrderedDict, deque
from typing import Dict, List, Type

import numpy as np


class ReplacementPolicy(ABC):
    """Per-set victim selection state for one cache level.

    A policy only ever sees (set, way) indices. It never looks at tags or
    line contents, and the cache level never looks at the policy's state.
    """

    def __init__(self, num_sets: int, num_ways: int):
        self.num_sets = num_sets
        self.num_ways = num_ways
        self.reset()

    @abstractmethod
    def reset(self):
        """Returns every set to its initial state."""

    @abstractmethod
    def on_hit(self, set_index: int, way: int):
        pass

    @abstractmethod
    def on_fill(self, set_index: int, way: int):
        pass

    @abstractmethod
    def get_victim(self, set_index: int) -> int:
        """Picks the way to replace. Only called when every way is valid."""


class LRUPolicy(ReplacementPolicy):
    """Least recently used replacement."""

    def reset(self):
        # Use OrderedDict to maintain LRU order. The first item is the LRU.
        self.order: List[OrderedDict] = [
            OrderedDict((way, None) for way in range(self.num_ways)) for _ in range(self.num_sets)
        ]

    def _touch(self, set_index: int, way: int):
        self.order[set_index].move_to_end(way)

    def on_hit(self, set_index: int, way: int):
        self._touch(set_index, way)

    def on_fill(self, set_index: int, way: int):
        self._touch(set_index, way)

    def get_victim(self, set_index: int) -> int:
        return next(iter(self.order[set_index]))


class FIFOPolicy(ReplacementPolicy):
    """Evicts the way that was filled longest ago. Hits do not reorder."""

    def reset(self):
        self.queues: List[deque] = [deque(range(self.num_ways)) for _ in range(self.num_sets)]

    def on_hit(self, set_index: int, way: int):
        pass

    def on_fill(self, set_index: int, way: int):
        queue = self.queues[set_index]
        queue.remove(way)
        queue.append(way)

    def get_victim(self, set_index: int) -> int:
        return self.queues[set_index][0]


class RandomPolicy(ReplacementPolicy):
    """Uniformly random victim, reproducible through `seed`."""

    def __init__(self, num_sets: int, num_ways: int, seed: int | None = None):
        self.seed = seed
        super().__init__(num_sets, num_ways)

    def reset(self):
        self.rng = np.random.default_rng(self.seed)

    def on_hit(self, set_index: int, way: int):
        pass

    def on_fill(self, set_index: int, way: int):
        pass

    def get_victim(self, set_index: int) -> int:
        return int(self.rng.integers(0, self.num_ways))


class LFUPolicy(ReplacementPolicy):
    """Least frequently used. Ties go to the lowest way index."""

    def reset(self):
        self.counts: List[List[int]] = [[0] * self.num_ways for _ in range(self.num_sets)]

    def on_hit(self, set_index: int, way: int):
        self.counts[set_index][way] += 1

    def on_fill(self, set_index: int, way: int):
        self.counts[set_index][way] = 1

    def get_victim(self, set_index: int) -> int:
        counts = self.counts[set_index]
        return min(range(self.num_ways), key=lambda way: counts[way])


_POLICIES: Dict[str, Type[ReplacementPolicy]] = {
    "lru": LRUPolicy,
    "fifo": FIFOPolicy,
    "random": RandomPolicy,
    "lfu": LFUPolicy,
}


def register_policy(name: str, policy_cls: Type[ReplacementPolicy]):
    """Makes a policy class available to `make_policy` under `name`."""
    if not issubclass(policy_cls, ReplacementPolicy):
        raise TypeError(f"{policy_cls!r} is not a ReplacementPolicy")
    _POLICIES[name.lower()] = policy_cls


def available_policies() -> List[str]:
    return sorted(_POLICIES)


def make_policy(name: str, num_sets: int, num_ways: int, **params) -> ReplacementPolicy:
    """Builds a policy by its registered name."""
    policy_cls = _POLICIES.get(name.lower())
    if policy_cls is None:
        raise ValueError(f"Unknown replacement policy: {name} (choose from {', '.join(available_policies())})")
    return policy_cls(num_sets, num_ways, **params)
