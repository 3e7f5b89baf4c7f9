"""Connection listing helpers: filtering, per-element lookups and counts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from fibertopo.log_config import get_logger
from fibertopo.model import (
    ConnectionStatus,
    ElementStatus,
    NetworkConnection,
    NetworkElement,
    parse_enum,
)

logger = get_logger(__name__)

_FAULT_STATUSES = frozenset({ElementStatus.FAULT, ElementStatus.CRITICAL})


def _value(status: Any) -> str:
    return status.value if isinstance(status, Enum) else str(status)


def filter_connections(
    connections: Iterable[NetworkConnection],
    status: ConnectionStatus | str | None = None,
    search: str | None = None,
) -> list[NetworkConnection]:
    """Filter connections by status and free-text search.

    Args:
        connections: Connections to filter.
        status: Keep only this status (lenient spelling accepted).
        search: Case-insensitive substring matched against the connection id
            and both endpoint ids. Blank means no text filter.

    Returns:
        Matching connections in input order.
    """
    wanted = parse_enum(ConnectionStatus, status, default=status) if status is not None else None
    needle = (search or "").strip().lower()
    result: list[NetworkConnection] = []
    for conn in connections:
        if wanted is not None and _value(conn.status).upper() != _value(wanted).upper():
            continue
        if needle:
            haystack = (conn.id, conn.source_element_id, conn.target_element_id)
            if not any(needle in (value or "").lower() for value in haystack):
                continue
        result.append(conn)
    return result


def connections_for_element(
    connections: Iterable[NetworkConnection], element_id: str
) -> list[NetworkConnection]:
    """Return connections with ``element_id`` at either end."""
    return [c for c in connections if element_id in c.endpoints]


@dataclass(frozen=True)
class ConnectionStats:
    """Connection counts, one per known status plus anything unrecognized."""

    total: int
    by_status: dict[str, int] = field(default_factory=dict)

    def count(self, status: ConnectionStatus | str) -> int:
        member = parse_enum(ConnectionStatus, status, default=status)
        return self.by_status.get(_value(member), 0)

    def to_dict(self) -> dict[str, int]:
        out = {"total": self.total}
        out.update({key.lower(): value for key, value in self.by_status.items()})
        return out


def connection_stats(connections: Iterable[NetworkConnection]) -> ConnectionStats:
    counts = {member.value: 0 for member in ConnectionStatus}
    total = 0
    for conn in connections:
        total += 1
        key = _value(conn.status)
        counts[key] = counts.get(key, 0) + 1
    return ConnectionStats(total=total, by_status=counts)


@dataclass(frozen=True)
class NetworkSummary:
    element_count: int
    connection_count: int
    faulted_element_count: int


def network_summary(
    elements: Iterable[NetworkElement], connections: Iterable[NetworkConnection]
) -> NetworkSummary:
    """Summarize an inventory snapshot.

    FAULT and CRITICAL elements count as faulted.
    """
    element_list = list(elements)
    faulted = sum(1 for e in element_list if e.status in _FAULT_STATUSES)
    summary = NetworkSummary(
        element_count=len(element_list),
        connection_count=sum(1 for _ in connections),
        faulted_element_count=faulted,
    )
    logger.debug(
        f"Inventory summary: {summary.element_count} elements, "
        f"{summary.connection_count} connections, {summary.faulted_element_count} faulted"
    )
    return summary
