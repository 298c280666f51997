"""
Progression curve loader.

Purpose
-------
Build a `RankScale` from the YAML progression file
(`config/progression.yaml` by default). The file lists the ranks in order
and one rank -> value mapping per table:

    ranks: [F, E, D, C, B, A, S]
    xp_per_sublevel: {F: 100, E: 200, ...}
    cumulative_xp_to_rank: {F: 0, E: 1000, ...}
    xp_per_tier: {F: 25, E: 50, ...}
    labels: {F: Foundation, ...}        # optional

Design Notes
------------
- A missing or unparseable file raises `ConfigInitializationError`.
- A file that parses but has the wrong shape raises `ConfigValidationError`
  naming the offending table and rank.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ascent.core.config import Config, ConfigInitializationError, ConfigValidationError
from ascent.core.logging.logger import get_logger
from ascent.domain.models.base import DomainValidationError
from ascent.domain.models.rank import Rank, RankScale

logger = get_logger(__name__)

REQUIRED_TABLES = ("xp_per_sublevel", "cumulative_xp_to_rank", "xp_per_tier")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ConfigInitializationError(f"Progression config not found: {path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigInitializationError(
            f"Failed to read progression config {path}: {exc}"
        ) from exc

    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Progression config root must be a mapping, got {type(data).__name__}"
        )
    return data


def _validate_rank_order(raw: Any) -> None:
    expected = [rank.symbol for rank in Rank]
    if raw is None:
        return
    if not isinstance(raw, list) or [str(r) for r in raw] != expected:
        raise ConfigValidationError(
            f"'ranks' must list {expected} in ascending order, got {raw!r}"
        )


def _int_table(data: Dict[str, Any], name: str) -> List[int]:
    table = data.get(name)
    if not isinstance(table, dict):
        raise ConfigValidationError(f"'{name}' must be a mapping of rank to integer")

    values: List[int] = []
    for rank in Rank:
        if rank.symbol not in table:
            raise ConfigValidationError(f"'{name}' is missing rank {rank.symbol}")
        value = table[rank.symbol]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(
                f"'{name}.{rank.symbol}' must be an integer, got {value!r}"
            )
        values.append(value)
    return values


def _label_table(data: Dict[str, Any]) -> Optional[List[str]]:
    table = data.get("labels")
    if table is None:
        return None
    if not isinstance(table, dict):
        raise ConfigValidationError("'labels' must be a mapping of rank to string")
    labels: List[str] = []
    for rank in Rank:
        if rank.symbol not in table:
            raise ConfigValidationError(f"'labels' is missing rank {rank.symbol}")
        labels.append(str(table[rank.symbol]))
    return labels


def load_rank_scale(path: Optional[Union[str, Path]] = None) -> RankScale:
    """
    Load and validate the progression curve.

    Args:
        path: YAML file; defaults to `Config.PROGRESSION_CONFIG_PATH`

    Raises:
        ConfigInitializationError: File missing or not valid YAML
        ConfigValidationError: Tables missing, incomplete or inconsistent
    """
    resolved = Path(path) if path is not None else Path(Config.PROGRESSION_CONFIG_PATH)
    data = _read_yaml(resolved)

    _validate_rank_order(data.get("ranks"))
    tables = {name: _int_table(data, name) for name in REQUIRED_TABLES}
    labels = _label_table(data)

    try:
        scale = RankScale.from_tables(
            xp_per_sublevel=tables["xp_per_sublevel"],
            cumulative_xp=tables["cumulative_xp_to_rank"],
            xp_per_tier=tables["xp_per_tier"],
            labels=labels,
        )
    except DomainValidationError as exc:
        raise ConfigValidationError(f"Invalid progression curve: {exc}") from exc

    logger.info(
        "Progression curve loaded",
        extra={
            "path": str(resolved),
            "top_rank_cap_xp": scale.rank_cap_xp(Rank.top()),
        },
    )
    return scale
