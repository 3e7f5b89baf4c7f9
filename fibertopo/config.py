"""Configuration management for the topology engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from fibertopo.log_config import get_logger
from fibertopo.model import (
    ConnectorType,
    FiberStandard,
    FiberType,
    FiberUsage,
    PolishingType,
    parse_enum,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ServiceAreaConfig:
    """Rectangular service area used for placement validation.

    Bounds are inclusive and expressed in WGS84 degrees. Defaults cover the
    Dominican Republic deployment the dashboard was built for.
    """

    min_lat: float = 17.5
    max_lat: float = 19.9
    min_lon: float = -72.0
    max_lon: float = -68.3

    def __post_init__(self) -> None:
        """Reject non-finite or inverted bounds."""
        for name in ("min_lat", "max_lat", "min_lon", "max_lon"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Service area bound '{name}' must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Service area bound '{name}' must be finite, got {value!r}")
        if self.min_lat > self.max_lat:
            raise ValueError(
                f"Service area min_lat {self.min_lat} exceeds max_lat {self.max_lat}"
            )
        if self.min_lon > self.max_lon:
            raise ValueError(
                f"Service area min_lon {self.min_lon} exceeds max_lon {self.max_lon}"
            )

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Return ``(min_lon, min_lat, max_lon, max_lat)``."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)


@dataclass(frozen=True)
class ProjectionConfig:
    """Topology projector settings.

    Attributes:
        scale: Upper bound of the normalized coordinate range (100 or 1 are typical).
        length_scale: Factor applied to planar edge lengths.
        fallback_seed: Seed mixed into the placeholder coordinates of
            elements without a position.
        invert_y: Map higher latitudes to smaller y (screen space).
        fit_to_service_area: Normalize against the service area instead of the
            extent of the positioned elements.
        edges_for_fallback_nodes: Also emit edges whose endpoints only have
            placeholder coordinates.
    """

    scale: float = 100.0
    length_scale: float = 1.0
    fallback_seed: int = 0
    invert_y: bool = True
    fit_to_service_area: bool = False
    edges_for_fallback_nodes: bool = False

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise ValueError(f"Projection scale must be positive, got {self.scale!r}")
        if not self.length_scale > 0:
            raise ValueError(
                f"Projection length_scale must be positive, got {self.length_scale!r}"
            )


@dataclass(frozen=True)
class FiberDefaultsConfig:
    """Values applied by the normalizer when a fiber field is absent."""

    usage_type: str = FiberUsage.DISTRIBUTION.value
    fiber_type: str = FiberType.SINGLE_MODE.value
    connector_type: str = ConnectorType.SC.value
    polishing_type: str = PolishingType.APC.value
    standard: str = FiberStandard.ITU_T_G_652.value
    insertion_loss: float = 0.0  # dB
    return_loss: float = 0.0  # dB
    wavelength: float = 1310.0  # nm
    bandwidth: float = 0.0  # MHz*km

    def __post_init__(self) -> None:
        for name, enum_cls in _DEFAULT_ENUMS.items():
            if parse_enum(enum_cls, getattr(self, name)) is None:
                allowed = [m.value for m in enum_cls]
                raise ValueError(
                    f"Invalid default {name}={getattr(self, name)!r}. Allowed: {allowed}"
                )

    def values(self) -> dict[str, Any]:
        """Return defaults keyed by specification attribute, enums resolved."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            enum_cls = _DEFAULT_ENUMS.get(f.name)
            out[f.name] = parse_enum(enum_cls, value) if enum_cls else float(value)
        return out


_DEFAULT_ENUMS = {
    "usage_type": FiberUsage,
    "fiber_type": FiberType,
    "connector_type": ConnectorType,
    "polishing_type": PolishingType,
    "standard": FiberStandard,
}


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration.

    Every section is optional in YAML; missing sections keep their defaults.
    """

    service_area: ServiceAreaConfig = field(default_factory=ServiceAreaConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    fiber_defaults: FiberDefaultsConfig = field(default_factory=FiberDefaultsConfig)

    @classmethod
    def from_yaml(cls, config_path: Path) -> EngineConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Parsed configuration object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            ValueError: If configuration is invalid.
        """
        config_path = Path(config_path)
        logger.info(f"Loading configuration from: {config_path}")

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise

        return cls._from_dict(raw_config or {})

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> EngineConfig:
        """Create configuration from dictionary.

        Args:
            config_dict: Raw configuration dictionary.

        Returns:
            Parsed configuration object.

        Raises:
            ValueError: On unknown sections or keys, or invalid values.
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration root must be a mapping")

        sections = {
            "service_area": ServiceAreaConfig,
            "projection": ProjectionConfig,
            "fiber_defaults": FiberDefaultsConfig,
        }
        unknown = sorted(set(config_dict) - set(sections))
        if unknown:
            raise ValueError(f"Unknown configuration sections: {unknown}")

        parsed: dict[str, Any] = {}
        for name, section_cls in sections.items():
            raw = config_dict.get(name)
            if raw is None:
                continue
            parsed[name] = _build_section(section_cls, raw, name)
        return cls(**parsed)


def _build_section(section_cls: type, raw: Any, name: str) -> Any:
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")
    allowed = {f.name for f in fields(section_cls)}
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ValueError(
            f"Unknown keys in '{name}' configuration: {unknown}. Allowed: {sorted(allowed)}"
        )
    try:
        return section_cls(**raw)
    except TypeError as exc:
        raise ValueError(f"Invalid '{name}' configuration: {exc}") from exc
