"""City generator nodes."""

from ..core.city import CityBlueprint, CityGenerator
from .base import GeneratorNode
from .registry import register_node
from .types import DataType, ParameterDefinition, ParameterType, Port


def _flag(id_: str, name: str, description: str) -> ParameterDefinition:
    return ParameterDefinition(id=id_, name=name, type=ParameterType.BOOLEAN,
                               default=True, description=description)


@register_node
class CityBlueprintNode(GeneratorNode):
    type = "city-blueprint"
    category = "city"
    name = "City Blueprint"
    description = "Configure city generation parameters"
    inputs = []
    outputs = [Port(id="blueprint", name="Blueprint", data_type=DataType.BLUEPRINT)]
    parameters = [
        ParameterDefinition(id="seed", name="Seed", type=ParameterType.NUMBER,
                            default=12345, min=0, max=999999, step=1,
                            description="Random seed for generation"),
        ParameterDefinition(id="size", name="Size (patches)", type=ParameterType.NUMBER,
                            default=20, min=6, max=60, step=1,
                            description="Number of Voronoi patches"),
        _flag("walls", "Has Walls", "Generate city walls"),
        _flag("citadel", "Has Citadel", "Include a castle/citadel"),
        _flag("plaza", "Has Plaza", "Include a market plaza"),
        _flag("temple", "Has Temple", "Include a cathedral/temple"),
    ]

    def run(self, inputs, params, progress):
        return {"blueprint": CityBlueprint(**params)}


@register_node
class CityGeneratorNode(GeneratorNode):
    type = "city-generator"
    category = "city"
    name = "City Generator"
    description = "Generate a walled city layout from a blueprint"
    inputs = [Port(id="blueprint", name="Blueprint", data_type=DataType.BLUEPRINT)]
    outputs = [Port(id="city", name="City Layout", data_type=DataType.CITY_LAYOUT)]
    parameters = []

    def run(self, inputs, params, progress):
        generator = CityGenerator(inputs["blueprint"])
        return {"city": generator.build(progress)}
