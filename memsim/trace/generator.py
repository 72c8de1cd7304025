from __future__ import annotations
from typing import List

import numpy as np

from ..runtime.levels import AccessType
from .loader import Access, MAX_ADDRESS

PATTERNS = ("sequential", "strided", "random")


def generate_trace(pattern: str, count: int, base_address: int = 0, stride: int = 64,
                   footprint: int = 64 * 1024, store_ratio: float = 0.0,
                   seed: int | None = None) -> List[Access]:
    """
    Creates a synthetic access stream.

    - sequential: base, base+1, base+2, ... (byte granularity)
    - strided:    base, base+stride, base+2*stride, ...
    - random:     uniform addresses in [base, base+footprint)

    `store_ratio` is the probability that an access is a store.
    """
    if pattern not in PATTERNS:
        raise ValueError(f"Unknown trace pattern: {pattern} (choose from {', '.join(PATTERNS)})")
    if count < 0:
        raise ValueError("Access count must not be negative.")
    if not 0.0 <= store_ratio <= 1.0:
        raise ValueError("Store ratio must be between 0 and 1.")

    rng = np.random.default_rng(seed)
    steps = np.arange(count, dtype=np.uint64)
    if pattern == "sequential":
        offsets = steps
    elif pattern == "strided":
        if stride < 1:
            raise ValueError("Stride must be positive.")
        offsets = steps * np.uint64(stride)
    else:
        if footprint < 1:
            raise ValueError("Footprint must be positive.")
        offsets = rng.integers(0, footprint, size=count, dtype=np.uint64)

    is_store = rng.random(count) < store_ratio
    accesses = []
    for offset, store in zip(offsets.tolist(), is_store.tolist()):
        address = (base_address + offset) & MAX_ADDRESS
        accesses.append(Access(address, AccessType.STORE if store else AccessType.LOAD))
    return accesses
