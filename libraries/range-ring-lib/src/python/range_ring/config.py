"""Configuration model and YAML helpers for building rings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import InvalidConfigurationError
from .hashing import MAX_SEED
from .partitioning.stream_allocator import DEFAULT_DRAW_LIMIT_FACTOR

logger = logging.getLogger(__name__)

# Default number of ranges (similar to Hazelcast's 271 partitions)
DEFAULT_RANGE_COUNT = 271


class RingConfig(BaseModel):
    """Everything two parties must agree on to build identical rings."""

    ids: list[str] = Field(..., min_length=1, description="Node ids; order does not matter.")
    ranges: int = Field(default=DEFAULT_RANGE_COUNT, ge=1, description="Number of ranges (Q).")
    seed: int = Field(default=0, ge=0, le=MAX_SEED, description="32-bit hash and stream seed.")
    draw_limit_factor: int = Field(
        default=DEFAULT_DRAW_LIMIT_FACTOR,
        ge=1,
        description="Per-range draw budget as a multiple of Q * N.",
    )

    @field_validator("ids")
    @classmethod
    def _unique_ids(cls, value: list[str]) -> list[str]:
        duplicates = sorted({node_id for node_id in value if value.count(node_id) > 1})
        if duplicates:
            raise ValueError(f"duplicate node ids: {', '.join(duplicates)}")
        return value


def load_config(path: Path) -> RingConfig:
    """Load a RingConfig from a YAML file.

    The settings may sit at the top level or under a ``ring`` key.
    """
    resolved = Path(path).expanduser().resolve()
    data = _read_yaml(resolved)
    if "ring" in data:
        data = data["ring"]

    try:
        config = RingConfig.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "config"
        raise InvalidConfigurationError(field, first.get("input"), first["msg"]) from exc

    logger.info(
        "Loaded ring config from %s (%d nodes, %d ranges)",
        resolved,
        len(config.ids),
        config.ranges,
    )
    return config


def dump_config(config: RingConfig, path: Path) -> None:
    """Persist a RingConfig to disk."""
    payload = config.model_dump(mode="json")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise InvalidConfigurationError("path", str(path), "config file not found")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError("path", str(path), "config must be a mapping")
    return data
