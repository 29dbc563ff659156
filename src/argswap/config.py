from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
import math
from pathlib import Path
from typing import Iterable, TypeAlias
import tomllib

from argswap.exceptions import ConfigError
from argswap.naming import term_key

DEFAULT_CONFIG_NAME = "argswap.toml"
DEFAULT_BETA = 0.667

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

NamePair: TypeAlias = frozenset[str]

# Generic antonym pairs that are swapped on purpose more often than by mistake.
DEFAULT_DISALLOWED_PAIRS: frozenset[NamePair] = frozenset(
    frozenset(pair)
    for pair in (
        ("to", "from"),
        ("index", "value"),
        ("key", "value"),
        ("min", "max"),
        ("start", "end"),
        ("begin", "end"),
        ("first", "last"),
        ("left", "right"),
        ("lower", "upper"),
        ("x", "y"),
    )
)


@dataclass(frozen=True)
class DetectorConfig:
    beta: float = DEFAULT_BETA
    disallowed_pairs: frozenset[NamePair] = DEFAULT_DISALLOWED_PAIRS
    exclude: tuple[str, ...] = ()
    warnings: tuple[str, ...] = field(default=(), compare=False)


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def swap_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("swap", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def parse_pair(value: object) -> NamePair | None:
    """Normalize ``"to:from"`` or ``["to", "from"]`` into a name pair."""
    parts: list[str]
    if isinstance(value, str):
        parts = value.split(":")
    elif isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        parts = list(value)
    else:
        return None
    keys = [term_key(part) for part in parts]
    if len(keys) != 2 or not all(keys) or keys[0] == keys[1]:
        return None
    return frozenset(keys)


def _pair_list(value: TomlValue, warnings: list[str], key: str) -> list[NamePair] | None:
    if value is None:
        return None
    raw_items: list[object]
    if isinstance(value, str):
        raw_items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, list):
        raw_items = list(value)
    else:
        warnings.append(f"Ignoring [swap] {key}: expected a list of name pairs.")
        return None
    pairs: list[NamePair] = []
    for item in raw_items:
        pair = parse_pair(item)
        if pair is None:
            warnings.append(f"Ignoring malformed [swap] {key} entry: {item!r}")
            continue
        pairs.append(pair)
    return pairs


def _valid_beta(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    beta = float(value)
    if math.isnan(beta) or beta < 0:
        return None
    return beta


def detector_config(
    section: TomlTable | None = None,
    *,
    beta: float | None = None,
    extra_pairs: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> DetectorConfig:
    """Build a DetectorConfig from a ``[swap]`` section plus explicit overrides.

    Explicit arguments win over the file. Invalid explicit values raise
    ConfigError; invalid file values fall back to defaults with a warning.
    """
    if section is None or not isinstance(section, dict):
        section = {}
    warnings: list[str] = []

    resolved_beta = DEFAULT_BETA
    if beta is not None:
        checked = _valid_beta(beta)
        if checked is None:
            raise ConfigError(f"beta must be a non-negative number, got {beta!r}")
        resolved_beta = checked
    elif "beta" in section:
        checked = _valid_beta(section["beta"])
        if checked is None:
            warnings.append(
                f"Ignoring [swap] beta={section['beta']!r}; using {DEFAULT_BETA}."
            )
        else:
            resolved_beta = checked

    pairs = set(DEFAULT_DISALLOWED_PAIRS)
    replaced = _pair_list(section.get("disallowed_pairs"), warnings, "disallowed_pairs")
    if replaced is not None:
        pairs = set(replaced)
    extended = _pair_list(
        section.get("extend_disallowed_pairs"), warnings, "extend_disallowed_pairs"
    )
    if extended:
        pairs.update(extended)
    for item in extra_pairs:
        pair = parse_pair(item)
        if pair is None:
            raise ConfigError(f"disallowed pair must look like 'first:second', got {item!r}")
        pairs.add(pair)

    excluded = _normalize_name_list(section.get("exclude"))
    excluded.extend(name for name in exclude if name)

    return DetectorConfig(
        beta=resolved_beta,
        disallowed_pairs=frozenset(pairs),
        exclude=tuple(excluded),
        warnings=tuple(warnings),
    )
