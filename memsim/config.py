from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List
import yaml
from pathlib import Path

from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LevelConfig:
    """Geometry and timing of one cache level."""
    name: str
    num_sets: int = 64
    num_ways: int = 8
    block_size: int = 64
    hit_latency: int = 1
    policy: str = "lru"
    policy_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Cache level name must be a non-empty string.")
        for attr in ("num_sets", "num_ways", "block_size", "hit_latency"):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"[{self.name}] {attr} must be an integer, got {value!r}.")
        if self.num_sets < 1:
            raise ValueError(f"[{self.name}] Number of sets must be positive.")
        if self.num_ways < 1:
            raise ValueError(f"[{self.name}] Number of ways must be positive.")
        if self.block_size < 1:
            raise ValueError(f"[{self.name}] Block size must be positive.")
        if self.hit_latency < 0:
            raise ValueError(f"[{self.name}] Hit latency must not be negative.")

    @property
    def size_bytes(self) -> int:
        return self.num_sets * self.num_ways * self.block_size

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LevelConfig:
        """Builds a level from a YAML mapping. `sets`/`ways` are accepted as short keys."""
        data = dict(data)
        if "name" not in data:
            raise ValueError(f"Cache level entry is missing a name: {data}")
        for short, full in (("sets", "num_sets"), ("ways", "num_ways")):
            if short in data:
                data[full] = data.pop(short)
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown cache level keys: {', '.join(sorted(unknown))}")
        return cls(**data)


def _default_levels() -> List[LevelConfig]:
    return [
        LevelConfig(name="L1", num_sets=64, num_ways=8, block_size=64, hit_latency=1),
        LevelConfig(name="L2", num_sets=512, num_ways=8, block_size=64, hit_latency=10),
    ]


@dataclass
class SimConfig:
    """Memory hierarchy simulator configuration."""
    # Hierarchy, top level first
    levels: List[LevelConfig] = field(default_factory=_default_levels)
    memory_name: str = "MainMemory"
    memory_latency: int = 100

    # Input trace
    trace: str = ""

    # Config file
    config_file: str = ""

    # Reporting
    report_dir: str = "out/default_run"
    access_log: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        self.levels = [lvl if isinstance(lvl, LevelConfig) else LevelConfig.from_dict(lvl)
                       for lvl in self.levels]
        self.validate()

    def validate(self):
        if not isinstance(self.memory_name, str) or not self.memory_name.strip():
            raise ValueError("Main memory name must be a non-empty string.")
        if isinstance(self.memory_latency, bool) or not isinstance(self.memory_latency, int):
            raise ValueError(f"Main memory latency must be an integer, got {self.memory_latency!r}.")
        if self.memory_latency < 0:
            raise ValueError("Main memory latency must not be negative.")
        seen = {self.memory_name}
        for lvl in self.levels:
            if lvl.name in seen:
                raise ValueError(f"Duplicate level name in hierarchy: {lvl.name}")
            seen.add(lvl.name)

    @property
    def level_names(self) -> List[str]:
        """Names of every level, top to bottom, ending with main memory."""
        return [lvl.name for lvl in self.levels] + [self.memory_name]

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        with open(yaml_path, 'r') as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"{yaml_path}: invalid YAML: {e}") from e
        if not isinstance(yaml_config, dict):
            raise ValueError(f"{yaml_path}: top level must be a mapping of config keys.")
        for key, value in yaml_config.items():
            if key == "levels":
                if not isinstance(value, list) or not all(isinstance(lvl, dict) for lvl in value):
                    raise ValueError(f"{yaml_path}: 'levels' must be a list of mappings.")
                self.levels = [LevelConfig.from_dict(lvl) for lvl in value]
            elif key == "memory":
                if not isinstance(value, dict):
                    raise ValueError(f"{yaml_path}: 'memory' must be a mapping with 'name' and/or 'latency'.")
                self.memory_name = value.get("name", self.memory_name)
                self.memory_latency = value.get("latency", self.memory_latency)
            elif hasattr(self, key):
                setattr(self, key, value)
            else:
                logger.warning("Ignoring unknown config key '%s' in %s", key, yaml_path)
        self.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if hasattr(args, 'config') and args.config:
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                logger.warning("Config file %s not found, using defaults.", config.config_file)

        # 2. Override with command-line arguments
        arg_dict = vars(args)
        for key, value in arg_dict.items():
            if key in ("config", "levels"):
                continue
            if value is not None and hasattr(config, key):
                setattr(config, key, value)

        config.validate()
        return config

    def __str__(self) -> str:
        lines = []
        for lvl in self.levels:
            lines.append(
                f"{lvl.name}: {lvl.num_sets} sets x {lvl.num_ways} ways x {lvl.block_size} B "
                f"({lvl.size_bytes} B), hit latency {lvl.hit_latency} cyc, policy {lvl.policy}"
            )
        lines.append(f"{self.memory_name}: latency {self.memory_latency} cyc")
        return "\n".join(lines)
