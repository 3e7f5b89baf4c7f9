"""Mapping between generic connections and detailed fiber specifications.

Two directions are supported:

1. ``to_connection``: a :class:`FiberSpecification` (or a partial
   :class:`FiberSpecPatch`) plus the link data the specification does not
   carry (:class:`LinkMetadata`) becomes a generic :class:`NetworkConnection`.
   Every specification field, plus any unmapped key, lands in the
   connection's ``properties`` bag under its persisted camelCase name.
2. ``to_fiber_spec_payload``: the inverse. Fiber fields are read back out of
   ``properties`` into a :class:`FiberSpecPatch`; absent defaulted fields are
   filled from the attached specification when editing, or from the
   configured defaults when creating.

Merge rule for updates (``merge_fiber_spec``): a field present in the patch
overwrites, a field absent from the patch keeps the existing value. Nested
groups (``strands``, ``networkInfo.distanceMetrics`` ...) follow the same rule
key by key. ``None`` at the top level of a patch means "absent".

Missing endpoint ids never raise. They are replaced with ``UNKNOWN_SOURCE`` /
``UNKNOWN_TARGET`` and logged so the caller can surface a data-quality
warning.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

from fibertopo.config import FiberDefaultsConfig
from fibertopo.log_config import get_logger
from fibertopo.model import (
    ConnectionKind,
    ConnectionStatus,
    FiberSpecification,
    NetworkConnection,
    _plain,
    _Record,
    camel_case,
    parse_enum,
    snake_case,
)

logger = get_logger(__name__)

UNKNOWN_SOURCE = "UNKNOWN_SOURCE"
UNKNOWN_TARGET = "UNKNOWN_TARGET"

# Fields the normalizer always fills when creating a specification.
DEFAULTED_FIELDS = (
    "usage_type",
    "fiber_type",
    "connector_type",
    "polishing_type",
    "standard",
    "insertion_loss",
    "return_loss",
    "wavelength",
    "bandwidth",
)


@dataclass(frozen=True)
class LinkMetadata:
    """Link-level data a fiber specification does not carry."""

    source_element_id: str | None
    target_element_id: str | None
    kind: ConnectionKind | str = ConnectionKind.FIBER
    status: ConnectionStatus | str = ConnectionStatus.ACTIVE
    connection_id: str | None = None
    capacity: float | None = None
    utilization: float | None = None
    latency: float | None = None

    @classmethod
    def from_connection(cls, connection: NetworkConnection) -> LinkMetadata:
        """Capture the link-level fields of an existing connection."""
        return cls(
            source_element_id=connection.source_element_id,
            target_element_id=connection.target_element_id,
            kind=connection.kind,
            status=connection.status,
            connection_id=connection.id,
            capacity=connection.capacity,
            utilization=connection.utilization,
            latency=connection.latency,
        )


def _normalize_group(record_cls: type[_Record], data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a partial group mapping with snake_case keys and coerced values.

    Unknown keys are kept verbatim so they survive a round trip.
    """
    names = set(record_cls.field_names())
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = key if key in names else snake_case(str(key))
        if name not in names:
            out[key] = value
            continue
        nested = record_cls._nested.get(name)
        if nested is not None and isinstance(value, Mapping):
            out[name] = _normalize_group(nested, value)
        else:
            out[name] = record_cls.coerce_value(name, value)
    return out


def _group_to_dict(record_cls: type[_Record], data: Mapping[str, Any]) -> dict[str, Any]:
    names = set(record_cls.field_names())
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key not in names:
            out.setdefault(key, _plain(value))
            continue
        nested = record_cls._nested.get(key)
        if nested is not None and isinstance(value, Mapping):
            out[camel_case(key)] = _group_to_dict(nested, value)
        else:
            out[camel_case(key)] = _plain(value)
    return out


@dataclass(frozen=True)
class FiberSpecPatch:
    """Partial fiber specification used for create and update payloads.

    Every attribute is optional; ``None`` marks a field as absent. Nested
    groups are partial mappings with snake_case keys. ``extra`` holds keys
    that do not belong to the specification and are carried verbatim.
    """

    id: str | None = None
    name: str | None = None
    description: str | None = None
    usage_type: Any = None
    fiber_type: Any = None
    connector_type: Any = None
    polishing_type: Any = None
    standard: Any = None
    insertion_loss: float | None = None
    return_loss: float | None = None
    wavelength: float | None = None
    bandwidth: float | None = None
    core_diameter: float | None = None
    cladding_diameter: float | None = None
    outer_diameter: float | None = None
    operating_temperature: Mapping[str, Any] | None = None
    tensile_strength: float | None = None
    manufacturer: str | None = None
    model_number: str | None = None
    manufacturing_date: Any = None
    certifications: tuple[str, ...] | None = None
    strands: Mapping[str, Any] | None = None
    strand_configuration: Mapping[str, Any] | None = None
    network_info: Mapping[str, Any] | None = None
    metadata: Mapping[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def present_fields(self) -> frozenset[str]:
        """Return the names of fields carried by this patch."""
        return frozenset(
            f.name for f in fields(self) if f.name != "extra" and getattr(self, f.name) is not None
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FiberSpecPatch:
        """Parse a camelCase (or snake_case) partial specification.

        Enum values that do not resolve are logged and kept verbatim on the
        field, so they still count as present and are never defaulted.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"FiberSpecPatch.from_dict expects a mapping, got {type(data).__name__}")
        known, extra = FiberSpecification.split_keys(data)
        values: dict[str, Any] = {}
        for name, raw in known.items():
            if raw is None:
                continue
            nested = FiberSpecification._nested.get(name)
            if nested is not None:
                if isinstance(raw, Mapping):
                    values[name] = _normalize_group(nested, raw)
                elif isinstance(raw, nested):
                    values[name] = _normalize_group(nested, raw.to_dict())
                else:
                    logger.warning(f"Fiber field '{camel_case(name)}' is not a mapping: {raw!r}")
                    extra[camel_case(name)] = raw
                continue
            enum_cls = FiberSpecification._enums.get(name)
            if enum_cls is not None:
                member = parse_enum(enum_cls, raw)
                if member is None:
                    logger.warning(
                        f"Unrecognized {camel_case(name)} value {raw!r}; keeping it verbatim"
                    )
                    member = raw
                values[name] = member
                continue
            if name == "metadata" and isinstance(raw, Mapping):
                values[name] = dict(raw)
                continue
            values[name] = FiberSpecification.coerce_value(name, raw)
        return cls(**values, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        """Return the present fields in persisted camelCase form, then extras."""
        out: dict[str, Any] = {}
        for name in sorted(self.present_fields(), key=_FIELD_ORDER.__getitem__):
            value = getattr(self, name)
            nested = FiberSpecification._nested.get(name)
            if nested is not None and isinstance(value, Mapping):
                out[camel_case(name)] = _group_to_dict(nested, value)
            else:
                out[camel_case(name)] = _plain(value)
        for key, value in self.extra.items():
            out.setdefault(key, _plain(value))
        return out


_FIELD_ORDER = {f.name: i for i, f in enumerate(fields(FiberSpecPatch))}


def to_connection(
    spec: FiberSpecification | FiberSpecPatch, link: LinkMetadata
) -> NetworkConnection:
    """Project a fiber specification and link metadata into a generic connection.

    Args:
        spec: Full specification or partial payload.
        link: Endpoints, kind, status and optional link-level metrics.

    Returns:
        New connection. ``detailed_spec_id`` is the specification id (None when
        it has none); the connection id comes from ``link.connection_id`` and
        falls back to the specification id.

    Raises:
        TypeError: If ``spec`` or ``link`` is None.
    """
    if spec is None or link is None:
        raise TypeError("to_connection requires a specification and link metadata")

    properties = spec.to_dict()
    spec_id = properties.pop("id", None) or None
    name = properties.pop("name", None) or ""

    source = link.source_element_id
    if not source:
        logger.warning(
            f"Fiber spec {spec_id!r}: missing source element id, using {UNKNOWN_SOURCE}"
        )
        source = UNKNOWN_SOURCE
    target = link.target_element_id
    if not target:
        logger.warning(
            f"Fiber spec {spec_id!r}: missing target element id, using {UNKNOWN_TARGET}"
        )
        target = UNKNOWN_TARGET

    return NetworkConnection(
        id=link.connection_id or spec_id or "",
        source_element_id=source,
        target_element_id=target,
        kind=link.kind or ConnectionKind.FIBER,
        status=link.status or ConnectionStatus.ACTIVE,
        name=name,
        capacity=link.capacity,
        utilization=link.utilization,
        latency=link.latency,
        properties=properties,
        detailed_spec_id=spec_id,
    )


def to_fiber_spec_payload(
    connection: NetworkConnection,
    existing: FiberSpecification | None = None,
    defaults: FiberDefaultsConfig | None = None,
) -> FiberSpecPatch:
    """Extract a create/update payload from a generic connection.

    Fiber fields are read from ``connection.properties``. Defaulted fields
    (usage, fiber type, connector, polishing, standard, losses, wavelength,
    bandwidth) that are absent take the attached specification's value when
    ``existing`` is given, and the configured defaults otherwise, so an
    update never zeroes a stored value.

    Args:
        connection: Source connection.
        existing: Specification currently attached to the connection, if editing.
        defaults: Default values; ``FiberDefaultsConfig()`` when omitted.

    Returns:
        Patch suitable for :func:`build_fiber_spec` or :func:`merge_fiber_spec`.

    Raises:
        TypeError: If ``connection`` is None.
    """
    if connection is None:
        raise TypeError("to_fiber_spec_payload requires a connection")

    patch = FiberSpecPatch.from_dict(connection.properties or {})
    present = patch.present_fields()
    fill: dict[str, Any] = {}

    if "id" not in present:
        spec_id = connection.detailed_spec_id or (existing.id if existing else None)
        if spec_id:
            fill["id"] = spec_id
    if "name" not in present:
        spec_name = connection.name or (existing.name if existing else None)
        if spec_name:
            fill["name"] = spec_name

    default_values = (defaults or FiberDefaultsConfig()).values()
    for name in DEFAULTED_FIELDS:
        if name in present:
            continue
        fill[name] = getattr(existing, name) if existing is not None else default_values[name]

    return replace(patch, **fill) if fill else patch


def _merge_group(record_cls: type[_Record], current: Any, partial: Any) -> Any:
    if isinstance(partial, record_cls):
        return partial
    if not isinstance(partial, Mapping):
        raise TypeError(
            f"{record_cls.__name__} patch must be a mapping, got {type(partial).__name__}"
        )
    names = set(record_cls.field_names())
    values: dict[str, Any] = {}
    for key, value in partial.items():
        name = key if key in names else snake_case(str(key))
        if name not in names:
            logger.debug(f"{record_cls.__name__}: ignoring unknown key {key!r} in patch")
            continue
        nested = record_cls._nested.get(name)
        if nested is not None and isinstance(value, Mapping):
            inner = getattr(current, name) if current is not None else None
            values[name] = _merge_group(nested, inner, value)
        else:
            values[name] = record_cls.coerce_value(name, value)
    if current is None:
        return record_cls(**values)
    return replace(current, **values)


def merge_fiber_spec(existing: FiberSpecification, patch: FiberSpecPatch) -> FiberSpecification:
    """Apply a patch to an existing specification.

    Present fields overwrite, absent fields are preserved, nested groups merge
    key by key, and ``metadata``/``extra`` are dict-merged. The existing record
    is left untouched.

    Raises:
        TypeError: If either argument is None.
    """
    if existing is None or patch is None:
        raise TypeError("merge_fiber_spec requires an existing specification and a patch")

    updates: dict[str, Any] = {}
    for name in patch.present_fields():
        value = getattr(patch, name)
        nested = FiberSpecification._nested.get(name)
        if nested is not None:
            updates[name] = _merge_group(nested, getattr(existing, name), value)
        elif name == "metadata":
            updates[name] = {**existing.metadata, **value}
        elif name == "certifications":
            updates[name] = (value,) if isinstance(value, str) else tuple(value)
        else:
            updates[name] = value
    if patch.extra:
        updates["extra"] = {**existing.extra, **patch.extra}
    return replace(existing, **updates)


def build_fiber_spec(
    patch: FiberSpecPatch, defaults: FiberDefaultsConfig | None = None
) -> FiberSpecification:
    """Create a specification from a payload, defaults first then the patch."""
    base = FiberSpecification(**(defaults or FiberDefaultsConfig()).values())
    return merge_fiber_spec(base, patch)
