"""Watershed generator nodes (D8 hydrology)."""

from ..core.hydrology import (
    compute_flow_accumulation,
    compute_flow_directions,
    delineate_watersheds,
    extract_rivers,
    resolve_pits_and_flats,
)
from .base import GeneratorNode
from .registry import register_node
from .types import DataType, ParameterDefinition, ParameterType, Port

_FLOW_FIELD_IN = Port(id="flowField", name="Flow Field", data_type=DataType.FLOW_FIELD)


@register_node
class FlowDirectionNode(GeneratorNode):
    type = "flow-direction"
    category = "watershed"
    name = "D8 Flow Direction"
    description = "Compute flow directions using the D8 algorithm"
    inputs = [Port(id="heightmap", name="Heightmap", data_type=DataType.HEIGHTMAP)]
    outputs = [Port(id="flowField", name="Flow Field", data_type=DataType.FLOW_FIELD)]
    parameters = [
        ParameterDefinition(id="seaLevel", name="Sea Level", type=ParameterType.NUMBER,
                            default=0.1, min=0.0, max=0.5, step=0.01,
                            description="Height below which is considered sea"),
        ParameterDefinition(id="resolvePits", name="Resolve Pits", type=ParameterType.BOOLEAN,
                            default=True, description="Resolve depressions and flat areas"),
    ]

    def run(self, inputs, params, progress):
        heightmap = inputs["heightmap"]
        sea_level = params["seaLevel"]

        progress.report(0, "Computing flow directions")
        flow_field = compute_flow_directions(heightmap, sea_level)

        if params["resolvePits"]:
            progress.report(50, "Resolving pits and flats")
            flow_field = resolve_pits_and_flats(flow_field, heightmap)

        progress.report(100, "Done")
        return {"flowField": flow_field}


@register_node
class FlowAccumulationNode(GeneratorNode):
    type = "flow-accumulation"
    category = "watershed"
    name = "Flow Accumulation"
    description = "Count upstream cells draining through each cell"
    inputs = [_FLOW_FIELD_IN]
    outputs = [Port(id="flowField", name="Flow Field", data_type=DataType.FLOW_FIELD)]
    parameters = []

    def run(self, inputs, params, progress):
        progress.report(0, "Computing flow accumulation")
        result = compute_flow_accumulation(inputs["flowField"])
        progress.report(100, "Done")
        return {"flowField": result}


@register_node
class RiverExtractionNode(GeneratorNode):
    type = "river-extraction"
    category = "watershed"
    name = "River Extraction"
    description = "Trace rivers from cells with high flow accumulation"
    inputs = [_FLOW_FIELD_IN]
    outputs = [Port(id="rivers", name="Rivers", data_type=DataType.POLYLINES)]
    parameters = [
        ParameterDefinition(id="minAccumulation", name="Min Accumulation", type=ParameterType.NUMBER,
                            default=100, min=10, max=1000, step=10,
                            description="Minimum upstream cells to form a river"),
    ]

    def run(self, inputs, params, progress):
        progress.report(0, "Extracting rivers")
        rivers = extract_rivers(inputs["flowField"], params["minAccumulation"])
        progress.report(100, "Done")
        return {"rivers": rivers}


@register_node
class WatershedBasinsNode(GeneratorNode):
    type = "watershed-basins"
    category = "watershed"
    name = "Watershed Basins"
    description = "Label each cell with the drainage basin it belongs to"
    inputs = [_FLOW_FIELD_IN]
    outputs = [Port(id="basins", name="Basins", data_type=DataType.BASINS)]
    parameters = []

    def run(self, inputs, params, progress):
        progress.report(0, "Delineating watersheds")
        basins = delineate_watersheds(inputs["flowField"])
        progress.report(100, "Done")
        return {"basins": basins}
