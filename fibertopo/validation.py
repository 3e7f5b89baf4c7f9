"""Data-quality audits over inventory snapshots.

Every check returns a list of human-readable issue strings; an empty list
means no issues were found. Audits report problems in the data and never
raise for them.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Iterable, Mapping

from fibertopo.compatibility import CompatibilityMatrix, default_matrix
from fibertopo.config import ServiceAreaConfig
from fibertopo.geo_utils import validate_position
from fibertopo.log_config import get_logger
from fibertopo.model import (
    FiberSpecification,
    NetworkConnection,
    NetworkElement,
    StrandCounts,
    is_number,
)
from fibertopo.normalizer import UNKNOWN_SOURCE, UNKNOWN_TARGET

logger = get_logger(__name__)


def _kind_name(kind: object) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)


def _numeric(value: object, issues: list[str], message: str) -> bool:
    """Return True when ``value`` can be compared; record ``message`` when it cannot."""
    if value is None:
        return False
    if not is_number(value):
        issues.append(f"{message} {value!r}")
        return False
    return True


def check_connection(
    connection: NetworkConnection,
    elements_by_id: Mapping[str, NetworkElement] | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> list[str]:
    """Audit one connection.

    Args:
        connection: Connection to check.
        elements_by_id: When given, endpoints must resolve and their kinds
            must be compatible.
        matrix: Compatibility rules; the built-in matrix when omitted.

    Returns:
        Issue strings for this connection.
    """
    issues: list[str] = []
    label = connection.id or "<no id>"

    if not connection.id:
        issues.append("connection without id")
    source = connection.source_element_id
    target = connection.target_element_id
    if not source or source == UNKNOWN_SOURCE:
        issues.append(f"connection {label}: missing source element")
    if not target or target == UNKNOWN_TARGET:
        issues.append(f"connection {label}: missing target element")
    if source and source == target:
        issues.append(f"connection {label}: source and target are the same element ({source})")

    for name in ("capacity", "latency"):
        value = getattr(connection, name)
        if _numeric(value, issues, f"connection {label}: non-numeric {name}") and value < 0:
            issues.append(f"connection {label}: negative {name} {value}")

    if elements_by_id is None:
        return issues

    src = elements_by_id.get(source) if source else None
    dst = elements_by_id.get(target) if target else None
    for end, eid, element in (("source", source, src), ("target", target, dst)):
        if eid and eid not in (UNKNOWN_SOURCE, UNKNOWN_TARGET) and element is None:
            issues.append(f"connection {label}: {end} element {eid} not found")
    if src is not None and dst is not None and src is not dst:
        rules = matrix or default_matrix()
        if not rules.is_compatible(src.kind, dst.kind):
            issues.append(
                f"connection {label}: incompatible kinds "
                f"{_kind_name(src.kind)} -> {_kind_name(dst.kind)}"
            )
    return issues


def check_strand_accounting(strands: StrandCounts, label: str = "strands") -> list[str]:
    """Check strand counts are non-negative and fit within the total."""
    issues: list[str] = []
    for name in ("total", "available", "in_use", "reserved", "damaged"):
        value = getattr(strands, name)
        if _numeric(value, issues, f"{label}: non-numeric {name} count") and value < 0:
            issues.append(f"{label}: negative {name} count {value}")
    if not strands.is_consistent():
        issues.append(
            f"{label}: allocated strands {strands.allocated} exceed total {strands.total}"
        )
    return issues


def check_fiber_spec(spec: FiberSpecification) -> list[str]:
    """Audit a fiber specification for out-of-range or unresolved values."""
    issues: list[str] = []
    label = f"fiber spec {spec.id or '<no id>'}"

    for name, enum_cls in FiberSpecification._enums.items():
        value = getattr(spec, name)
        if not isinstance(value, enum_cls):
            issues.append(f"{label}: unrecognized {name} {value!r}")

    for name in ("insertion_loss", "return_loss", "bandwidth", "tensile_strength"):
        value = getattr(spec, name)
        if _numeric(value, issues, f"{label}: non-numeric {name}") and value < 0:
            issues.append(f"{label}: negative {name} {value}")
    wavelength = spec.wavelength
    if _numeric(wavelength, issues, f"{label}: non-numeric wavelength") and wavelength <= 0:
        issues.append(f"{label}: wavelength must be positive, got {spec.wavelength}")

    core, cladding = spec.core_diameter, spec.cladding_diameter
    core_ok = _numeric(core, issues, f"{label}: non-numeric core_diameter")
    cladding_ok = _numeric(cladding, issues, f"{label}: non-numeric cladding_diameter")
    if core_ok and cladding_ok and core > cladding:
        issues.append(f"{label}: core diameter {core} exceeds cladding {cladding}")

    temp = spec.operating_temperature
    if temp is not None:
        min_ok = _numeric(temp.min, issues, f"{label}: non-numeric operating temperature min")
        max_ok = _numeric(temp.max, issues, f"{label}: non-numeric operating temperature max")
        if min_ok and max_ok and temp.min > temp.max:
            issues.append(f"{label}: operating temperature min {temp.min} above max {temp.max}")

    if spec.strands is not None:
        issues.extend(check_strand_accounting(spec.strands, f"{label} strands"))

    metrics = spec.distance_metrics
    if metrics is not None:
        for name in ("total_length", "splice_points", "max_splice_loss", "total_loss"):
            value = getattr(metrics, name)
            if _numeric(value, issues, f"{label}: non-numeric distance metric {name}") and value < 0:
                issues.append(f"{label}: negative distance metric {name} {value}")
    return issues


def check_element_placement(
    element: NetworkElement, area: ServiceAreaConfig | None = None
) -> list[str]:
    """Report missing or out-of-area element positions."""
    if element.position is None:
        return [f"element {element.id}: no position"]
    if not element.has_valid_position:
        return [f"element {element.id}: malformed position {element.position!r}"]
    if not validate_position(element.position, area):
        lon, lat = element.position
        return [f"element {element.id}: position ({lon}, {lat}) outside service area"]
    return []


def validate_inventory(
    elements: Iterable[NetworkElement],
    connections: Iterable[NetworkConnection],
    specs: Mapping[str, FiberSpecification] | None = None,
    area: ServiceAreaConfig | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> list[str]:
    """Run every audit over an inventory snapshot.

    Covers duplicate ids, element placement, per-connection checks (dangling
    references and kind compatibility included), attached specification
    audits and references to specifications that are not supplied.

    Returns:
        A list of human-readable issue strings. Empty when no issues found.
    """
    element_list = list(elements)
    connection_list = list(connections)
    specs = specs or {}
    issues: list[str] = []

    for eid, count in sorted(Counter(e.id for e in element_list).items()):
        if count > 1:
            issues.append(f"duplicate element id {eid} ({count} occurrences)")
    for cid, count in sorted(Counter(c.id for c in connection_list).items()):
        if cid and count > 1:
            issues.append(f"duplicate connection id {cid} ({count} occurrences)")

    elements_by_id: dict[str, NetworkElement] = {}
    for element in element_list:
        elements_by_id.setdefault(element.id, element)
        issues.extend(check_element_placement(element, area))

    rules = matrix or default_matrix()
    audited: set[str] = set()
    for conn in connection_list:
        issues.extend(check_connection(conn, elements_by_id, rules))
        if conn.detailed_spec_id:
            spec = specs.get(conn.detailed_spec_id)
            if spec is None:
                if specs:
                    issues.append(
                        f"connection {conn.id}: fiber spec {conn.detailed_spec_id} not found"
                    )
                continue
            if conn.detailed_spec_id not in audited:
                audited.add(conn.detailed_spec_id)
                issues.extend(check_fiber_spec(spec))

    if issues:
        logger.info(f"Inventory validation found {len(issues)} issue(s)")
    return issues
