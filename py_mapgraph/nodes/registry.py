"""Node registry: maps node types to generator classes."""

from typing import Dict, List, Type

import structlog

from ..errors import UnknownNodeError
from .base import GeneratorNode

logger = structlog.get_logger()

# Category id -> display name, in palette order
NODE_CATEGORIES: Dict[str, str] = {
    "terrain": "Terrain",
    "watershed": "Watershed",
    "biome": "Biome",
    "settlement": "Settlement",
    "roads": "Roads",
    "city": "City",
    "output": "Output",
}

REGISTRY: Dict[str, Type[GeneratorNode]] = {}


def register_node(cls: Type[GeneratorNode]) -> Type[GeneratorNode]:
    """Register a node class under its type; usable as a class decorator."""
    if not cls.type:
        raise ValueError(f"{cls.__name__} has no node type")
    if cls.category not in NODE_CATEGORIES:
        raise ValueError(f"{cls.__name__} has unknown category {cls.category!r}")

    if cls.type in REGISTRY and REGISTRY[cls.type] is not cls:
        logger.warning("Replacing registered node", node=cls.type)
    REGISTRY[cls.type] = cls
    return cls


def get_node(node_type: str) -> GeneratorNode:
    """Instantiate the node registered under node_type."""
    try:
        return REGISTRY[node_type]()
    except KeyError:
        raise UnknownNodeError(node_type) from None


def all_nodes() -> List[GeneratorNode]:
    return [cls() for cls in REGISTRY.values()]


def nodes_by_category(category: str) -> List[GeneratorNode]:
    return [cls() for cls in REGISTRY.values() if cls.category == category]
