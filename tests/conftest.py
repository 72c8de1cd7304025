import sys
import os
from typing import List, Tuple

import pytest

# Add the repository root to the Python path so the 'memsim' namespace
# package resolves without an install.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from memsim.runtime.levels import AccessResult, MainMemory


class RecordingMemory(MainMemory):
    """Main memory that remembers every request it receives, in order."""
    def __init__(self, name: str = "MainMemory", latency: int = 100):
        super().__init__(name, latency)
        self.calls: List[Tuple[str, int]] = []

    def load(self, address: int) -> AccessResult:
        self.calls.append(("load", address))
        return super().load(address)

    def store(self, address: int) -> AccessResult:
        self.calls.append(("store", address))
        return super().store(address)


@pytest.fixture
def recording_memory():
    return RecordingMemory(latency=100)
