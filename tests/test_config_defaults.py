from __future__ import annotations

import math
from pathlib import Path
import textwrap

import pytest

from argswap.config import (
    DEFAULT_BETA,
    DEFAULT_DISALLOWED_PAIRS,
    detector_config,
    parse_pair,
    swap_defaults,
)
from argswap.exceptions import ConfigError


def _write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / "argswap.toml"
    config_path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return config_path


def test_swap_defaults_reads_toml(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [swap]
        beta = 0.5
        exclude = ["build", "vendor"]
        extend_disallowed_pairs = ["src:dst"]
        """,
    )
    defaults = swap_defaults(root=tmp_path)
    assert defaults["beta"] == 0.5
    assert defaults["exclude"] == ["build", "vendor"]
    config = detector_config(defaults)
    assert config.beta == 0.5
    assert config.exclude == ("build", "vendor")
    assert frozenset({"src", "dst"}) in config.disallowed_pairs
    assert DEFAULT_DISALLOWED_PAIRS <= config.disallowed_pairs
    assert config.warnings == ()


def test_missing_or_broken_config_yields_defaults(tmp_path: Path) -> None:
    assert swap_defaults(root=tmp_path) == {}
    broken = _write_config(tmp_path, "[swap\nbeta = ")
    assert swap_defaults(config_path=broken) == {}
    config = detector_config(None)
    assert config.beta == DEFAULT_BETA
    assert config.disallowed_pairs == DEFAULT_DISALLOWED_PAIRS


def test_non_table_swap_section_is_ignored(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, 'swap = "loose"')
    assert swap_defaults(config_path=config_path) == {}


def test_explicit_values_win_over_file() -> None:
    config = detector_config(
        {"beta": 0.5, "exclude": "build"},
        beta=0.9,
        extra_pairs=["source:sink"],
        exclude=["dist"],
    )
    assert config.beta == 0.9
    assert config.exclude == ("build", "dist")
    assert frozenset({"source", "sink"}) in config.disallowed_pairs


@pytest.mark.parametrize("beta", [-0.1, math.nan])
def test_invalid_explicit_beta_raises(beta: float) -> None:
    with pytest.raises(ConfigError):
        detector_config({}, beta=beta)


def test_invalid_explicit_pair_raises() -> None:
    with pytest.raises(ConfigError):
        detector_config({}, extra_pairs=["lonely"])


@pytest.mark.parametrize("value", ["high", True, -1])
def test_invalid_file_beta_warns_and_uses_default(value: object) -> None:
    config = detector_config({"beta": value})
    assert config.beta == DEFAULT_BETA
    assert len(config.warnings) == 1
    assert "beta" in config.warnings[0]


def test_infinite_beta_is_accepted() -> None:
    assert detector_config({}, beta=math.inf).beta == math.inf


def test_disallowed_pairs_replace_defaults() -> None:
    config = detector_config({"disallowed_pairs": [["src", "dst"]]})
    assert config.disallowed_pairs == frozenset({frozenset({"src", "dst"})})


def test_empty_disallowed_pairs_clears_defaults() -> None:
    assert detector_config({"disallowed_pairs": []}).disallowed_pairs == frozenset()


def test_malformed_pairs_warn_and_are_skipped() -> None:
    config = detector_config(
        {"extend_disallowed_pairs": ["src:dst", "a:b:c", 3], "disallowed_pairs": 7}
    )
    assert frozenset({"src", "dst"}) in config.disallowed_pairs
    assert DEFAULT_DISALLOWED_PAIRS <= config.disallowed_pairs
    assert len(config.warnings) == 3


def test_parse_pair_normalizes_spelling() -> None:
    assert parse_pair("fromIndex:TO_INDEX") == frozenset({"from_index", "to_index"})
    assert parse_pair(["to", "from"]) == frozenset({"to", "from"})
    assert parse_pair("same:same") is None
    assert parse_pair(":x") is None
    assert parse_pair(["a"]) is None
