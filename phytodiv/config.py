"""
Run configuration.

Every tunable of the pipeline lives on ``PipelineConfig`` and is passed
explicitly into each stage. Values come from the defaults in
``constants``, optionally a JSON file, and finally command-line flags.
"""

import json
import re
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

import numpy as np

from .constants import (
    ALPHA_MIN_DEPTH,
    DISTANCE_THRESHOLD_M,
    FILL_VALUE_INT,
    GAMMA_MIN_DEPTH,
    MEASUREMENT_TYPE,
    SURFACE_DEPTH_M,
)
from .errors import ConfigError


@dataclass(frozen=True)
class PipelineConfig:
    years: Optional[Tuple[int, ...]] = None
    distance_threshold_m: float = DISTANCE_THRESHOLD_M
    alpha_min_depth: int = ALPHA_MIN_DEPTH
    gamma_min_depth: int = GAMMA_MIN_DEPTH
    measurement_type: str = MEASUREMENT_TYPE
    surface_depth: float = SURFACE_DEPTH_M
    fill_value: int = int(FILL_VALUE_INT)
    seed: Optional[int] = None
    global_attrs: dict = field(default_factory=dict)

    def updated(self, **overrides):
        """Return a copy with every non-None override applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if "years" in overrides:
            overrides["years"] = _coerce_years(overrides["years"])
        return replace(self, **overrides)

    def make_rng(self):
        return np.random.default_rng(self.seed)


def parse_years(text):
    """
    Parse a year selection such as ``"2000-2010"`` or ``"2000,2003,2005-2007"``.

    Returns
    -------
    tuple of int
        Sorted, de-duplicated calendar years.
    """
    if text is None:
        return None

    years = set()
    for part in str(text).split(","):
        part = part.strip().replace("–", "-").replace("—", "-")
        if not part:
            continue
        m = re.fullmatch(r"(\d{4})\s*(?:-\s*(\d{4}))?", part)
        if m is None:
            raise ConfigError(f"Cannot parse year selection: {part!r}")
        start = int(m.group(1))
        end = int(m.group(2)) if m.group(2) else start
        if end < start:
            raise ConfigError(f"Inverted year range: {part!r}")
        years.update(range(start, end + 1))

    if not years:
        raise ConfigError(f"Empty year selection: {text!r}")
    return tuple(sorted(years))


def _coerce_years(value):
    if value is None:
        return None
    if isinstance(value, str):
        return parse_years(value)
    try:
        return tuple(sorted({int(v) for v in value}))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid years value: {value!r}") from e


def load_config(path, base=None):
    """Load a JSON configuration file on top of ``base`` (or the defaults)."""
    base = base or PipelineConfig()
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")

    known = {f.name for f in fields(PipelineConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys in {path}: {', '.join(sorted(unknown))}"
        )
    return base.updated(**data)
