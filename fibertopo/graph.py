"""NetworkX view of an inventory snapshot.

Elements become nodes and connections become edges of a
:class:`networkx.MultiGraph` keyed by connection id, so parallel fibers
between the same pair of elements are kept apart. Each edge carries a
geodesic ``length_km`` (None when a position is missing) and a ``loss_db``
taken from the attached fiber specification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import networkx as nx

from fibertopo.geo_utils import connection_length_km
from fibertopo.log_config import get_logger
from fibertopo.model import (
    ConnectionStatus,
    FiberSpecification,
    NetworkConnection,
    NetworkElement,
    parse_enum,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class LossBudget:
    """Aggregated loss along the minimum-loss path between two elements.

    Attributes:
        path: Element ids from source to target.
        connection_ids: Connection chosen for each hop.
        total_loss_db: Sum of per-hop losses.
        total_length_km: Sum of the hop lengths that are known.
        unmeasured_hops: Hops whose length could not be computed.
    """

    path: tuple[str, ...]
    connection_ids: tuple[str, ...]
    total_loss_db: float
    total_length_km: float
    unmeasured_hops: int = 0

    @property
    def hops(self) -> int:
        return len(self.connection_ids)


def link_loss_db(spec: FiberSpecification | None) -> float:
    """Return the loss to budget for one link.

    The surveyed ``networkInfo.distanceMetrics.totalLoss`` wins when present;
    otherwise the connector ``insertion_loss`` is used. No spec means 0 dB.
    """
    if spec is None:
        return 0.0
    metrics = spec.distance_metrics
    if metrics is not None and metrics.total_loss is not None:
        return float(metrics.total_loss)
    return float(spec.insertion_loss or 0.0)


def build_network_graph(
    elements: Iterable[NetworkElement],
    connections: Iterable[NetworkConnection],
    specs: Mapping[str, FiberSpecification] | None = None,
) -> nx.MultiGraph:
    """Build a multigraph from element and connection snapshots.

    Args:
        elements: Nodes; attributes ``kind``, ``status``, ``name``, ``position``.
        connections: Edges keyed by connection id. Connections with an
            endpoint outside ``elements`` are skipped.
        specs: Fiber specifications keyed by specification id, looked up
            through ``detailed_spec_id``.

    Returns:
        Undirected multigraph.
    """
    if elements is None or connections is None:
        raise TypeError("build_network_graph requires element and connection collections")
    specs = specs or {}
    graph = nx.MultiGraph()
    elements_by_id: dict[str, NetworkElement] = {}
    for element in elements:
        elements_by_id.setdefault(element.id, element)
        graph.add_node(
            element.id,
            kind=element.kind,
            status=element.status,
            name=element.name,
            position=element.position,
        )

    skipped = 0
    for conn in connections:
        if conn.source_element_id not in elements_by_id or conn.target_element_id not in elements_by_id:
            skipped += 1
            continue
        spec = specs.get(conn.detailed_spec_id) if conn.detailed_spec_id else None
        length_km = connection_length_km(conn, elements_by_id)
        if length_km is None and spec is not None:
            metrics = spec.distance_metrics
            if metrics is not None and metrics.total_length is not None:
                length_km = float(metrics.total_length) / 1000.0
        graph.add_edge(
            conn.source_element_id,
            conn.target_element_id,
            key=conn.id,
            kind=conn.kind,
            status=conn.status,
            length_km=length_km,
            loss_db=link_loss_db(spec),
        )

    if skipped:
        logger.debug(f"Skipped {skipped} connection(s) with unknown endpoints")
    logger.debug(
        f"Built network graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges"
    )
    return graph


def _usable(attrs: Mapping[str, Any], exclude_failed: bool) -> bool:
    if not exclude_failed:
        return True
    return parse_enum(ConnectionStatus, attrs.get("status")) is not ConnectionStatus.FAILED


def path_loss_budget(
    graph: nx.MultiGraph,
    source_id: str,
    target_id: str,
    exclude_failed: bool = True,
) -> LossBudget | None:
    """Find the minimum-loss path between two elements and total it up.

    Args:
        graph: Graph from :func:`build_network_graph`.
        source_id: Start element id.
        target_id: End element id.
        exclude_failed: Ignore connections whose status is FAILED.

    Returns:
        Loss budget, or None when either element is missing or no path exists.
    """
    if not graph.has_node(source_id) or not graph.has_node(target_id):
        return None

    def weight(u: str, v: str, keyed: Mapping[str, Mapping[str, Any]]) -> float | None:
        losses = [
            float(attrs.get("loss_db") or 0.0)
            for attrs in keyed.values()
            if _usable(attrs, exclude_failed)
        ]
        return min(losses) if losses else None

    try:
        path = nx.dijkstra_path(graph, source_id, target_id, weight=weight)
    except nx.NetworkXNoPath:
        logger.debug(f"No usable path between {source_id} and {target_id}")
        return None

    connection_ids: list[str] = []
    total_loss = 0.0
    total_length = 0.0
    unmeasured = 0
    for u, v in zip(path, path[1:]):
        candidates = [
            (float(attrs.get("loss_db") or 0.0), str(key), attrs)
            for key, attrs in graph[u][v].items()
            if _usable(attrs, exclude_failed)
        ]
        loss, key, attrs = min(candidates, key=lambda c: (c[0], c[1]))
        connection_ids.append(key)
        total_loss += loss
        if attrs.get("length_km") is None:
            unmeasured += 1
        else:
            total_length += float(attrs["length_km"])

    return LossBudget(
        path=tuple(path),
        connection_ids=tuple(connection_ids),
        total_loss_db=total_loss,
        total_length_km=total_length,
        unmeasured_hops=unmeasured,
    )


def find_unresolved_connections(
    elements: Iterable[NetworkElement],
    connections: Iterable[NetworkConnection],
    require_position: bool = False,
) -> list[NetworkConnection]:
    """Return connections the topology projector would drop.

    Args:
        elements: Known elements.
        connections: Connections to check.
        require_position: Also report connections whose endpoints exist but
            lack a valid position.

    Returns:
        Offending connections in input order.
    """
    if elements is None or connections is None:
        raise TypeError("find_unresolved_connections requires element and connection collections")
    by_id: dict[str, NetworkElement] = {}
    for element in elements:
        by_id.setdefault(element.id, element)
    unresolved: list[NetworkConnection] = []
    for conn in connections:
        endpoints = [by_id.get(conn.source_element_id), by_id.get(conn.target_element_id)]
        if any(e is None for e in endpoints):
            unresolved.append(conn)
        elif require_position and not all(e.has_valid_position for e in endpoints):
            unresolved.append(conn)
    return unresolved
