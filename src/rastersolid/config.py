"""Pipeline options.

Every recognized option lives on :class:`PipelineOptions` with its default.
Options can be built from keyword arguments, from a mapping, or loaded from a
YAML file.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from rastersolid.errors import ConfigurationError


@dataclass(frozen=True)
class PipelineOptions:
    """User-tunable parameters for one pipeline run.

    threshold
        Luminance cut-off (0-255); pixels darker than this are ink.
    simplification_level
        0-10; higher levels simplify more aggressively.
    depth
        Extrusion depth in millimeters.
    scale
        Millimeters per pixel.
    target_width_mm
        When set, overrides ``scale`` so the model is this wide.
    min_area
        Shapes (and holes) smaller than this many px² are dropped as noise.
    corner_smoothing
        Chaikin cut ratio in [0, 0.5]; 0 disables corner smoothing.
    preserve_holes
        When false, holes are filled instead of cut out.
    blur_radius
        Box blur radius in pixels applied before thresholding.
    smooth
        Remove isolated ink pixels and fill pin holes after thresholding.
    tracer
        Registered boundary tracer name.
    frame_area_ratio, frame_margin
        Scan-frame rejection: bbox area ratio and border distance in px.
    """

    threshold: int = 128
    simplification_level: int = 5
    depth: float = 10.0
    scale: float = 1.0
    target_width_mm: Optional[float] = None
    min_area: float = 10.0
    corner_smoothing: float = 0.0
    preserve_holes: bool = True
    blur_radius: int = 0
    smooth: bool = False
    tracer: str = "moore"
    frame_area_ratio: float = 0.9
    frame_margin: float = 5.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if any option is out of range."""

        if not 0 <= self.threshold <= 255:
            raise ConfigurationError(f"threshold must be in 0..255, got {self.threshold}")
        if not 0 <= self.simplification_level <= 10:
            raise ConfigurationError(
                f"simplification_level must be in 0..10, got {self.simplification_level}")
        if self.depth <= 0:
            raise ConfigurationError(f"depth must be positive, got {self.depth}")
        if self.scale <= 0:
            raise ConfigurationError(f"scale must be positive, got {self.scale}")
        if self.target_width_mm is not None and self.target_width_mm <= 0:
            raise ConfigurationError(
                f"target_width_mm must be positive, got {self.target_width_mm}")
        if self.min_area < 0:
            raise ConfigurationError(f"min_area must be non-negative, got {self.min_area}")
        if not 0 <= self.corner_smoothing <= 0.5:
            raise ConfigurationError(
                f"corner_smoothing must be in 0..0.5, got {self.corner_smoothing}")
        if self.blur_radius < 0:
            raise ConfigurationError(f"blur_radius must be non-negative, got {self.blur_radius}")
        if not 0 < self.frame_area_ratio <= 1:
            raise ConfigurationError(
                f"frame_area_ratio must be in (0, 1], got {self.frame_area_ratio}")
        if self.frame_margin < 0:
            raise ConfigurationError(f"frame_margin must be non-negative, got {self.frame_margin}")
        if not self.tracer:
            raise ConfigurationError("tracer name must not be empty")

    def replace(self, **changes: Any) -> "PipelineOptions":
        """Return a copy with ``changes`` applied, ignoring ``None`` values."""

        changes = {k: v for k, v in changes.items() if v is not None}
        return self.from_mapping({**dataclasses.asdict(self), **changes})

    def effective_scale(self, width_px: int) -> float:
        """Millimeters per pixel for an image ``width_px`` wide."""

        if self.target_width_mm is None:
            return self.scale
        if width_px <= 0:
            raise ConfigurationError("image width must be positive to derive a scale")
        return self.target_width_mm / width_px

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineOptions":
        known = {f.name: f for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigurationError(f"unknown option(s): {', '.join(unknown)}")
        try:
            return cls(**{key: _coerce(known[key].type, key, value)
                          for key, value in data.items()})
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc


_COERCE = {
    "int": int,
    "float": float,
    "bool": bool,
    "str": str,
    "Optional[float]": float,
}


def _coerce(type_name: Any, key: str, value: Any) -> Any:
    if value is None:
        return None
    caster = _COERCE.get(str(type_name))
    if caster is None:
        return value
    if caster is bool and not isinstance(value, bool):
        raise ConfigurationError(f"option {key} expects true/false, got {value!r}")
    if caster in (int, float) and isinstance(value, bool):
        raise ConfigurationError(f"option {key} expects a number, got {value!r}")
    if caster is int and isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(f"option {key} expects an integer, got {value!r}")
    try:
        return caster(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"option {key}: cannot convert {value!r}") from exc


def load_options(path: Union[str, Path]) -> PipelineOptions:
    """Read :class:`PipelineOptions` from a YAML file.

    The file holds a flat mapping of option names to values; an empty file
    yields the defaults.
    """

    import yaml

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except OSError as exc:
        raise ConfigurationError(f"cannot read options file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"options file {path} must contain a mapping")
    return PipelineOptions.from_mapping(data)


__all__ = ["PipelineOptions", "load_options"]
