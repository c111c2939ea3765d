"""
Generator nodes: the execute(inputs, parameters) boundary of the kernel.

Importing this package registers every built-in node.
"""

from .types import DataType, ParameterDefinition, ParameterType, Port, PortValue, resolve_parameters
from .base import GeneratorNode
from .registry import NODE_CATEGORIES, REGISTRY, all_nodes, get_node, nodes_by_category, register_node
from .terrain import HeightmapInputNode, SlopeMapNode
from .watershed import FlowAccumulationNode, FlowDirectionNode, RiverExtractionNode, WatershedBasinsNode
from .city import CityBlueprintNode, CityGeneratorNode

__all__ = ['DataType', 'ParameterDefinition', 'ParameterType', 'Port', 'PortValue', 'resolve_parameters',
           'GeneratorNode', 'NODE_CATEGORIES', 'REGISTRY', 'all_nodes', 'get_node',
           'nodes_by_category', 'register_node',
           'HeightmapInputNode', 'SlopeMapNode',
           'FlowAccumulationNode', 'FlowDirectionNode', 'RiverExtractionNode', 'WatershedBasinsNode',
           'CityBlueprintNode', 'CityGeneratorNode']
