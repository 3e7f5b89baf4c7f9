"""Fiber-optic network topology and connection-compatibility engine.

Pure, synchronous helpers for a fiber inventory: kind compatibility rules,
geographic placement checks, connection/fiber-specification normalization and
render-ready topology projection.
"""

from .compatibility import CompatibilityMatrix, compatible_kinds, is_compatible
from .config import EngineConfig, FiberDefaultsConfig, ProjectionConfig, ServiceAreaConfig
from .geo_utils import distance_km, validate_position
from .model import (
    ConnectionKind,
    ConnectionStatus,
    ElementKind,
    ElementStatus,
    FiberSpecification,
    NetworkConnection,
    NetworkElement,
)
from .normalizer import (
    FiberSpecPatch,
    LinkMetadata,
    build_fiber_spec,
    merge_fiber_spec,
    to_connection,
    to_fiber_spec_payload,
)
from .topology import TopologyEdge, TopologyNode, TopologyProjection, project

__version__ = "0.1.0"

__all__ = [
    "CompatibilityMatrix",
    "ConnectionKind",
    "ConnectionStatus",
    "ElementKind",
    "ElementStatus",
    "EngineConfig",
    "FiberDefaultsConfig",
    "FiberSpecPatch",
    "FiberSpecification",
    "LinkMetadata",
    "NetworkConnection",
    "NetworkElement",
    "ProjectionConfig",
    "ServiceAreaConfig",
    "TopologyEdge",
    "TopologyNode",
    "TopologyProjection",
    "build_fiber_spec",
    "compatible_kinds",
    "distance_km",
    "is_compatible",
    "merge_fiber_spec",
    "project",
    "to_connection",
    "to_fiber_spec_payload",
    "validate_position",
]
