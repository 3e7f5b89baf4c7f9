"""Render-ready topology projection.

Turns element and connection snapshots into normalized node coordinates and
edge layout hints for preview widgets. The projection is ephemeral; it holds
no identity beyond the records it was built from.

Coordinates live in ``[0, scale]`` on both axes. ``y`` grows downwards by
default (screen space), so higher latitudes land nearer the top. Elements
without a usable position get a deterministic placeholder coordinate; this is
not a layout algorithm.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

import numpy as np

from fibertopo.config import ProjectionConfig, ServiceAreaConfig
from fibertopo.kinds import STATUS_COLORS, kind_color
from fibertopo.log_config import get_logger
from fibertopo.model import (
    ConnectionStatus,
    ElementKind,
    ElementStatus,
    NetworkConnection,
    NetworkElement,
    _token,
)

logger = get_logger(__name__)


class StatusHint(str, Enum):
    """Aggregate status bucket used for styling."""

    ERROR = "error"
    WARNING = "warning"
    ACTIVE = "active"
    INACTIVE = "inactive"
    NEUTRAL = "neutral"


# First match wins. Status strings are compared as upper-case tokens so that
# values outside ElementStatus (e.g. "ERROR") still map.
_NODE_STATUS_RULES: tuple[tuple[frozenset[str], StatusHint], ...] = (
    (frozenset({"FAULT", "CRITICAL", "ERROR"}), StatusHint.ERROR),
    (frozenset({"WARNING", "MAINTENANCE"}), StatusHint.WARNING),
    (frozenset({"ACTIVE"}), StatusHint.ACTIVE),
)

_EDGE_STATUS_HINTS: dict[ConnectionStatus, StatusHint] = {
    ConnectionStatus.FAILED: StatusHint.ERROR,
    ConnectionStatus.DEGRADED: StatusHint.WARNING,
    ConnectionStatus.ACTIVE: StatusHint.ACTIVE,
}

_HINT_COLORS: dict[StatusHint, str] = {
    StatusHint.ERROR: STATUS_COLORS[ElementStatus.FAULT],
    StatusHint.WARNING: STATUS_COLORS[ElementStatus.WARNING],
    StatusHint.ACTIVE: STATUS_COLORS[ElementStatus.ACTIVE],
}


@dataclass(frozen=True)
class TopologyNode:
    id: str
    normalized_x: float
    normalized_y: float
    color_hint: str
    status_hint: StatusHint
    kind: ElementKind | str
    placeholder: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "normalizedX": self.normalized_x,
            "normalizedY": self.normalized_y,
            "colorHint": self.color_hint,
            "statusHint": self.status_hint.value,
            "kind": self.kind.value if isinstance(self.kind, Enum) else self.kind,
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True)
class TopologyEdge:
    """Edge layout hint anchored at the source node.

    ``length_hint`` is the planar distance between the projected endpoints
    times the configured length scale. ``rotation_degrees`` is the angle of
    the source-to-target vector in projected space.
    """

    source_id: str
    target_id: str
    normalized_x: float
    normalized_y: float
    length_hint: float
    rotation_degrees: float
    status_hint: StatusHint
    connection_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "normalizedX": self.normalized_x,
            "normalizedY": self.normalized_y,
            "lengthHint": self.length_hint,
            "rotationDegrees": self.rotation_degrees,
            "statusHint": self.status_hint.value,
            "connectionId": self.connection_id,
        }


@dataclass(frozen=True)
class TopologyProjection:
    nodes: tuple[TopologyNode, ...]
    edges: tuple[TopologyEdge, ...]

    def node(self, node_id: str) -> TopologyNode | None:
        """Return the first node with ``node_id``, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


def _status_token(status: Any) -> str:
    if isinstance(status, Enum):
        status = status.value
    return _token(str(status)) if status is not None else ""


def node_status_hint(status: Any) -> StatusHint:
    """Return the styling bucket for an element status."""
    token = _status_token(status)
    for members, hint in _NODE_STATUS_RULES:
        if token in members:
            return hint
    return StatusHint.NEUTRAL


def node_color_hint(status: Any, kind: Any) -> str:
    """Return the status color, or the kind color when the status is neutral."""
    hint = node_status_hint(status)
    return _HINT_COLORS.get(hint) or kind_color(kind)


def edge_status_hint(status: Any) -> StatusHint:
    """Return the styling bucket for a connection status."""
    token = _status_token(status)
    for member, hint in _EDGE_STATUS_HINTS.items():
        if token == member.value:
            return hint
    return StatusHint.INACTIVE


def fallback_coordinate(element_id: str, seed: int = 0, scale: float = 100.0) -> tuple[float, float]:
    """Deterministic placeholder coordinate for an element without a position.

    The generator is seeded from ``seed`` and the element id, so the same
    element lands in the same spot on every pass.
    """
    digest = hashlib.sha256(f"{seed}:{element_id}".encode("utf-8")).digest()
    rng = np.random.default_rng(int.from_bytes(digest[:8], "big"))
    x, y = rng.uniform(0.0, scale, size=2)
    return (float(x), float(y))


def _normalize(
    positions: np.ndarray,
    lo: np.ndarray,
    hi: np.ndarray,
    scale: float,
    invert_y: bool,
) -> np.ndarray:
    """Map lon/lat rows into ``[0, scale]``; zero spans map to the middle."""
    span = hi - lo
    out = np.full(positions.shape, scale / 2.0, dtype=float)
    varying = span > 0
    if np.any(varying):
        out[:, varying] = (positions[:, varying] - lo[varying]) / span[varying] * scale
    out = np.clip(out, 0.0, scale)
    if invert_y:
        out[:, 1] = scale - out[:, 1]
    return out


def project(
    elements: Iterable[NetworkElement],
    connections: Iterable[NetworkConnection],
    config: ProjectionConfig | None = None,
    bounds: ServiceAreaConfig | None = None,
) -> TopologyProjection:
    """Project elements and connections into a render-ready topology.

    Args:
        elements: Element snapshots; one node is emitted per element, in order.
        connections: Connection snapshots; one edge per connection whose two
            endpoints resolve to positioned nodes.
        config: Projection settings; defaults when omitted.
        bounds: Normalize against this area instead of the data extent.

    Returns:
        Projection with ``len(nodes) == len(elements)`` and
        ``len(edges) <= len(connections)``.

    Raises:
        TypeError: If ``elements`` or ``connections`` is None.
    """
    if elements is None or connections is None:
        raise TypeError("project requires element and connection collections, got None")
    cfg = config or ProjectionConfig()
    element_list = list(elements)
    connection_list = list(connections)

    if bounds is None and cfg.fit_to_service_area:
        bounds = ServiceAreaConfig()

    positioned = [i for i, e in enumerate(element_list) if e.has_valid_position]
    coords: dict[int, tuple[float, float]] = {}
    if positioned:
        raw = np.array([element_list[i].position for i in positioned], dtype=float)
        if bounds is not None:
            lo = np.array([bounds.min_lon, bounds.min_lat], dtype=float)
            hi = np.array([bounds.max_lon, bounds.max_lat], dtype=float)
        else:
            lo = raw.min(axis=0)
            hi = raw.max(axis=0)
        normalized = _normalize(raw, lo, hi, cfg.scale, cfg.invert_y)
        for row, idx in enumerate(positioned):
            coords[idx] = (float(normalized[row, 0]), float(normalized[row, 1]))

    nodes: list[TopologyNode] = []
    for idx, element in enumerate(element_list):
        placeholder = idx not in coords
        if placeholder:
            x, y = fallback_coordinate(element.id, cfg.fallback_seed, cfg.scale)
        else:
            x, y = coords[idx]
        nodes.append(
            TopologyNode(
                id=element.id,
                normalized_x=x,
                normalized_y=y,
                color_hint=node_color_hint(element.status, element.kind),
                status_hint=node_status_hint(element.status),
                kind=element.kind,
                placeholder=placeholder,
            )
        )
    if len(coords) < len(nodes):
        logger.debug(f"{len(nodes) - len(coords)} element(s) placed at fallback coordinates")

    by_id: dict[str, TopologyNode] = {}
    for node in nodes:
        by_id.setdefault(node.id, node)

    edges: list[TopologyEdge] = []
    dropped = 0
    for conn in connection_list:
        source = by_id.get(conn.source_element_id)
        target = by_id.get(conn.target_element_id)
        if source is None or target is None:
            dropped += 1
            continue
        if (source.placeholder or target.placeholder) and not cfg.edges_for_fallback_nodes:
            dropped += 1
            continue
        dx = target.normalized_x - source.normalized_x
        dy = target.normalized_y - source.normalized_y
        edges.append(
            TopologyEdge(
                source_id=source.id,
                target_id=target.id,
                normalized_x=source.normalized_x,
                normalized_y=source.normalized_y,
                length_hint=math.hypot(dx, dy) * cfg.length_scale,
                rotation_degrees=math.degrees(math.atan2(dy, dx)),
                status_hint=edge_status_hint(conn.status),
                connection_id=conn.id,
            )
        )
    if dropped:
        logger.debug(f"Dropped {dropped} connection(s) with unresolved or unpositioned endpoints")

    return TopologyProjection(nodes=tuple(nodes), edges=tuple(edges))
