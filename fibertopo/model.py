"""Element, connection and fiber specification records.

Plain frozen dataclasses shared by every engine module. Records are read-only
snapshots supplied by the inventory layer; nothing in the package mutates
them. Each record serializes to and from the persisted camelCase shape
(``sourceElementId``, ``insertionLoss``, ``strands.inUse`` ...), which other
collaborators key their forms on, so those names are treated as a stable
contract.

Enumerations accept lenient spellings on lookup: ``ConnectionKind("fiber")``,
``FiberType("single-mode")`` and ``FiberStandard("ITU_T_G_652")`` all resolve
to their members. Unknown kind and status strings are kept verbatim on the
records instead of being rejected.
"""

from __future__ import annotations

import math
import numbers
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, TypeVar

from fibertopo.log_config import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)
R = TypeVar("R", bound="_Record")


def _token(value: str) -> str:
    return re.sub(r"[^A-Z0-9]+", "_", value.upper()).strip("_")


class _LenientEnum(str, Enum):
    """String enum whose lookup ignores case and separator differences."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if not isinstance(value, str):
            return None
        key = _token(value)
        for member in cls:
            if _token(member.value) == key or member.name == key:
                return member
        return None


class ElementKind(_LenientEnum):
    """Category of network hardware."""

    ODF = "ODF"
    OLT = "OLT"
    ONT = "ONT"
    SPLITTER = "SPLITTER"
    EDFA = "EDFA"
    MANGA = "MANGA"
    TERMINAL_BOX = "TERMINAL_BOX"
    FIBER_THREAD = "FIBER_THREAD"
    DROP_CABLE = "DROP_CABLE"
    DISTRIBUTION_CABLE = "DISTRIBUTION_CABLE"
    FEEDER_CABLE = "FEEDER_CABLE"
    BACKBONE_CABLE = "BACKBONE_CABLE"
    MSAN = "MSAN"
    ROUTER = "ROUTER"
    RACK = "RACK"
    NETWORK_GRAPH = "NETWORK_GRAPH"
    WDM_FILTER = "WDM_FILTER"
    COHERENT_TRANSPONDER = "COHERENT_TRANSPONDER"
    WAVELENGTH_ROUTER = "WAVELENGTH_ROUTER"
    OPTICAL_SWITCH = "OPTICAL_SWITCH"
    ROADM = "ROADM"
    OPTICAL_AMPLIFIER = "OPTICAL_AMPLIFIER"
    FIBER_CONNECTION = "FIBER_CONNECTION"
    FIBER_SPLICE = "FIBER_SPLICE"
    FIBER_CABLE = "FIBER_CABLE"
    FIBER_STRAND = "FIBER_STRAND"
    FDP = "FDP"


class ElementStatus(_LenientEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"
    FAULT = "FAULT"
    PLANNED = "PLANNED"
    BUILDING = "BUILDING"
    RESERVED = "RESERVED"
    DECOMMISSIONED = "DECOMMISSIONED"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


class ConnectionKind(_LenientEnum):
    FIBER = "FIBER"
    COPPER = "COPPER"
    WIRELESS = "WIRELESS"
    LOGICAL = "LOGICAL"


class ConnectionStatus(_LenientEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DEGRADED = "DEGRADED"
    FAILED = "FAILED"
    PLANNED = "PLANNED"


class FiberUsage(_LenientEnum):
    """Role of a fiber link within the network."""

    BACKBONE = "BACKBONE"
    DISTRIBUTION = "DISTRIBUTION"
    DROP = "DROP"
    JUMPER = "JUMPER"
    PATCH = "PATCH"
    FEEDER = "FEEDER"
    ACCESS = "ACCESS"
    INTERCONNECTION = "INTERCONNECTION"


class FiberType(_LenientEnum):
    SINGLE_MODE = "SINGLE_MODE"
    MULTI_MODE = "MULTI_MODE"


class ConnectorType(_LenientEnum):
    SC = "SC"
    LC = "LC"
    FC = "FC"
    ST = "ST"
    MTP = "MTP"
    MPO = "MPO"


class PolishingType(_LenientEnum):
    PC = "PC"
    UPC = "UPC"
    APC = "APC"


class FiberStandard(_LenientEnum):
    ITU_T_G_652 = "ITU-T G.652"
    ITU_T_G_655 = "ITU-T G.655"
    ITU_T_G_657 = "ITU-T G.657"
    ISO_IEC_11801 = "ISO/IEC 11801"
    TIA_568 = "TIA-568"


def parse_enum(enum_cls: type[E], value: Any, default: Any = None) -> E | Any:
    """Return ``value`` as a member of ``enum_cls`` or ``default``.

    Args:
        enum_cls: Target enumeration.
        value: Member, value or lenient spelling of a value.
        default: Returned when ``value`` does not resolve.

    Returns:
        The resolved member, or ``default``.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return default


def camel_case(name: str) -> str:
    """Convert a snake_case attribute name to the persisted camelCase key."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snake_case(key: str) -> str:
    """Convert a camelCase key to snake_case (snake_case passes through)."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", key).lower()


def is_number(value: Any) -> bool:
    """Return True for real numbers, excluding booleans."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _count(value: Any) -> Any:
    return value if is_number(value) else 0


def is_valid_point(value: Any) -> bool:
    """Return True if ``value`` is a ``(lon, lat)`` pair of finite real numbers."""
    if isinstance(value, (str, bytes)) or not hasattr(value, "__len__"):
        return False
    try:
        if len(value) != 2:
            return False
        items = list(value)
    except TypeError:
        return False
    for item in items:
        if not is_number(item) or not math.isfinite(item):
            return False
    return True


def coerce_point(value: Any) -> tuple[float, float] | None:
    """Return a ``(lon, lat)`` float tuple from the accepted position shapes.

    Accepts a plain pair, a GeoJSON-like mapping with ``coordinates`` or a
    mapping with ``lng``/``lon`` and ``lat`` keys.

    Returns:
        Normalized tuple, or None when the value is missing or malformed.
    """
    if isinstance(value, Mapping):
        if "coordinates" in value:
            value = value["coordinates"]
        else:
            lon = value.get("lng", value.get("lon"))
            value = (lon, value.get("lat"))
    if not is_valid_point(value):
        return None
    lon, lat = value
    return (float(lon), float(lat))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, _Record):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _parse_date(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        logger.warning(f"Keeping unparseable date value verbatim: {value!r}")
        return value


class _Record:
    """Shared camelCase (de)serialization for the dataclass records.

    Subclasses declare ``_nested`` (attribute -> record class), ``_enums``
    (attribute -> enum class) and ``_dates`` for attributes needing coercion.
    An ``extra`` attribute, when declared, collects unmapped keys verbatim.
    """

    _nested: ClassVar[dict[str, type[_Record]]] = {}
    _enums: ClassVar[dict[str, type[Enum]]] = {}
    _dates: ClassVar[frozenset[str]] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted camelCase shape, omitting unset (None) fields."""
        out: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            out[camel_case(f.name)] = _plain(value)
        for key, value in (getattr(self, "extra", None) or {}).items():
            out.setdefault(key, _plain(value))
        return out

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "extra")  # type: ignore[arg-type]

    @classmethod
    def coerce_value(cls, name: str, value: Any) -> Any:
        """Coerce a raw value for attribute ``name`` to its record type."""
        if value is None:
            return None
        if name in cls._nested:
            nested = cls._nested[name]
            if isinstance(value, nested):
                return value
            if isinstance(value, Mapping):
                return nested.from_dict(value)
            return value
        if name in cls._enums:
            return parse_enum(cls._enums[name], value, default=value)
        if name in cls._dates:
            return _parse_date(value)
        if isinstance(value, list):
            return tuple(value)
        return value

    @classmethod
    def split_keys(cls, data: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Split ``data`` into known attributes (snake_case) and unmapped keys."""
        names = set(cls.field_names())
        known: dict[str, Any] = {}
        unknown: dict[str, Any] = {}
        for key, value in data.items():
            name = key if key in names else snake_case(str(key))
            if name in names:
                known[name] = value
            else:
                unknown[key] = value
        return known, unknown

    @classmethod
    def from_dict(cls: type[R], data: Mapping[str, Any]) -> R:
        """Build a record from its persisted camelCase (or snake_case) shape.

        Unmapped keys are kept in ``extra`` when the record declares it and are
        otherwise dropped with a debug log.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__}.from_dict expects a mapping, got {type(data).__name__}")
        known, unknown = cls.split_keys(data)
        kwargs = {name: cls.coerce_value(name, value) for name, value in known.items()}
        if "extra" in {f.name for f in fields(cls)}:  # type: ignore[arg-type]
            kwargs["extra"] = dict(unknown)
        elif unknown:
            logger.debug(f"{cls.__name__}: ignoring unmapped keys {sorted(unknown)}")
        return cls(**kwargs)


@dataclass(frozen=True)
class NetworkElement(_Record):
    """Physical or logical network node.

    ``position`` is an optional ``(lon, lat)`` pair. ``kind`` and ``status``
    are parsed into their enums when possible and kept as raw strings
    otherwise.
    """

    id: str
    kind: ElementKind | str
    name: str = ""
    status: ElementStatus | str = ElementStatus.UNKNOWN
    position: tuple[float, float] | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    _enums: ClassVar[dict[str, type[Enum]]] = {
        "kind": ElementKind,
        "status": ElementStatus,
    }

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", parse_enum(ElementKind, self.kind, self.kind))
        object.__setattr__(
            self, "status", parse_enum(ElementStatus, self.status, self.status)
        )

    @property
    def has_valid_position(self) -> bool:
        return is_valid_point(self.position)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NetworkElement:
        """Build an element, accepting the legacy ``type`` key for ``kind``.

        Keys outside the record are folded into ``properties``. A malformed
        position is dropped with a warning.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"NetworkElement.from_dict expects a mapping, got {type(data).__name__}")
        data = dict(data)
        if "kind" not in data and "type" in data:
            data["kind"] = data.pop("type")
        known, unknown = cls.split_keys(data)
        properties = dict(known.pop("properties", None) or {})
        for key, value in unknown.items():
            properties.setdefault(key, value)
        raw_position = known.pop("position", None)
        position = coerce_point(raw_position)
        if raw_position is not None and position is None:
            logger.warning(
                f"Element {known.get('id')!r}: dropping malformed position {raw_position!r}"
            )
        return cls(
            id=str(known.get("id") or ""),
            kind=known.get("kind", ""),
            name=str(known.get("name") or ""),
            status=known.get("status") or ElementStatus.UNKNOWN,
            position=position,
            properties=properties,
        )


_CONNECTION_ALIASES = {
    "sourceId": "sourceElementId",
    "source": "sourceElementId",
    "targetId": "targetElementId",
    "target": "targetElementId",
    "type": "kind",
    "detailedFiberConnectionId": "detailedSpecId",
}


@dataclass(frozen=True)
class NetworkConnection(_Record):
    """Generic wire-level edge between two elements."""

    id: str
    source_element_id: str
    target_element_id: str
    kind: ConnectionKind | str = ConnectionKind.FIBER
    status: ConnectionStatus | str = ConnectionStatus.ACTIVE
    name: str = ""
    capacity: float | None = None
    utilization: float | None = None
    latency: float | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    detailed_spec_id: str | None = None

    _enums: ClassVar[dict[str, type[Enum]]] = {
        "kind": ConnectionKind,
        "status": ConnectionStatus,
    }

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "kind", parse_enum(ConnectionKind, self.kind, self.kind)
        )
        object.__setattr__(
            self, "status", parse_enum(ConnectionStatus, self.status, self.status)
        )

    @property
    def endpoints(self) -> tuple[str, str]:
        return (self.source_element_id, self.target_element_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NetworkConnection:
        """Build a connection, accepting legacy endpoint and kind keys.

        Missing endpoint ids become empty strings; resolving them is the
        normalizer's and the caller's concern.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"NetworkConnection.from_dict expects a mapping, got {type(data).__name__}")
        renamed: dict[str, Any] = {}
        for key, value in data.items():
            target = _CONNECTION_ALIASES.get(key, key)
            if target in renamed and target != key:
                continue
            renamed[target] = value
        known, unknown = cls.split_keys(renamed)
        properties = dict(known.pop("properties", None) or {})
        for key, value in unknown.items():
            properties.setdefault(key, value)
        return cls(
            id=str(known.get("id") or ""),
            source_element_id=str(known.get("source_element_id") or ""),
            target_element_id=str(known.get("target_element_id") or ""),
            kind=known.get("kind") or ConnectionKind.FIBER,
            status=known.get("status") or ConnectionStatus.ACTIVE,
            name=str(known.get("name") or ""),
            capacity=known.get("capacity"),
            utilization=known.get("utilization"),
            latency=known.get("latency"),
            properties=properties,
            detailed_spec_id=known.get("detailed_spec_id"),
        )


@dataclass(frozen=True)
class TemperatureRange(_Record):
    """Operating temperature limits in degrees Celsius."""

    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class StrandCounts(_Record):
    """Aggregate strand accounting for a cable."""

    total: int = 0
    available: int = 0
    in_use: int = 0
    reserved: int = 0
    damaged: int = 0

    @property
    def allocated(self) -> int:
        """Sum of the allocated counts; missing or non-numeric counts add nothing."""
        return sum(
            _count(getattr(self, name)) for name in ("available", "in_use", "reserved", "damaged")
        )

    def is_consistent(self) -> bool:
        """Return True when allocated strands do not exceed the total.

        A total that is missing or not a number cannot be checked and counts
        as consistent.
        """
        if not is_number(self.total):
            return True
        return self.allocated <= self.total


@dataclass(frozen=True)
class StrandConfiguration(_Record):
    total_strands: int | None = None
    strands_per_tube: int | None = None
    tubes_per_cable: int | None = None
    buffer_tubes: int | None = None
    central_strength_member: bool | None = None


@dataclass(frozen=True)
class DistanceMetrics(_Record):
    """Surveyed link metrics.

    ``total_loss`` is authoritative survey input and is never re-derived from
    ``splice_points * max_splice_loss``.
    """

    total_length: float | None = None  # meters
    splice_points: int | None = None
    max_splice_loss: float | None = None  # dB
    total_loss: float | None = None  # dB


@dataclass(frozen=True)
class NetworkInfo(_Record):
    network_segment: str | None = None
    network_level: str | None = None
    redundancy: bool | None = None
    backup_path: str | None = None
    max_distance: float | None = None
    installation_type: str | None = None
    protection_level: str | None = None
    distance_metrics: DistanceMetrics | None = None

    _nested: ClassVar[dict[str, type[_Record]]] = {"distance_metrics": DistanceMetrics}


@dataclass(frozen=True)
class FiberSpecification(_Record):
    """Physical and optical characterization of a fiber link.

    Attached 0..1 to a fiber-kind :class:`NetworkConnection` through
    ``NetworkConnection.detailed_spec_id``. Defaults match the values the
    normalizer applies when creating a specification from sparse input.
    """

    id: str = ""
    name: str = ""
    description: str | None = None

    usage_type: FiberUsage | str = FiberUsage.DISTRIBUTION
    fiber_type: FiberType | str = FiberType.SINGLE_MODE
    connector_type: ConnectorType | str = ConnectorType.SC
    polishing_type: PolishingType | str = PolishingType.APC
    standard: FiberStandard | str = FiberStandard.ITU_T_G_652

    insertion_loss: float = 0.0  # dB
    return_loss: float = 0.0  # dB
    wavelength: float = 1310.0  # nm
    bandwidth: float = 0.0  # MHz*km

    core_diameter: float | None = None  # um
    cladding_diameter: float | None = None  # um
    outer_diameter: float | None = None  # mm

    operating_temperature: TemperatureRange | None = None
    tensile_strength: float | None = None  # N

    manufacturer: str | None = None
    model_number: str | None = None
    manufacturing_date: date | str | None = None
    certifications: tuple[str, ...] = ()

    strands: StrandCounts = field(default_factory=StrandCounts)
    strand_configuration: StrandConfiguration | None = None
    network_info: NetworkInfo = field(default_factory=NetworkInfo)

    metadata: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    _nested: ClassVar[dict[str, type[_Record]]] = {
        "operating_temperature": TemperatureRange,
        "strands": StrandCounts,
        "strand_configuration": StrandConfiguration,
        "network_info": NetworkInfo,
    }
    _enums: ClassVar[dict[str, type[Enum]]] = {
        "usage_type": FiberUsage,
        "fiber_type": FiberType,
        "connector_type": ConnectorType,
        "polishing_type": PolishingType,
        "standard": FiberStandard,
    }
    _dates: ClassVar[frozenset[str]] = frozenset({"manufacturing_date"})

    def __post_init__(self) -> None:
        for name, enum_cls in self._enums.items():
            value = getattr(self, name)
            object.__setattr__(self, name, parse_enum(enum_cls, value, value))
        if isinstance(self.certifications, str):
            object.__setattr__(self, "certifications", (self.certifications,))
        elif isinstance(self.certifications, list):
            object.__setattr__(self, "certifications", tuple(self.certifications))

    @property
    def distance_metrics(self) -> DistanceMetrics | None:
        return self.network_info.distance_metrics if self.network_info else None
