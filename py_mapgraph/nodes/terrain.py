"""Terrain generator nodes."""

from ..core.noise import compute_slope_map, generate_heightmap
from .base import GeneratorNode
from .registry import register_node
from .types import DataType, ParameterDefinition, ParameterType, Port


@register_node
class HeightmapInputNode(GeneratorNode):
    type = "heightmap-input"
    category = "terrain"
    name = "Heightmap Input"
    description = "Generate an island heightmap from fractal noise"
    inputs = []
    outputs = [Port(id="heightmap", name="Heightmap", data_type=DataType.HEIGHTMAP)]
    parameters = [
        ParameterDefinition(id="width", name="Width", type=ParameterType.NUMBER,
                            default=256, min=64, max=1024, step=64),
        ParameterDefinition(id="height", name="Height", type=ParameterType.NUMBER,
                            default=256, min=64, max=1024, step=64),
        ParameterDefinition(id="seed", name="Seed", type=ParameterType.NUMBER,
                            default=12345, min=0, max=999999, step=1),
        ParameterDefinition(id="octaves", name="Octaves", type=ParameterType.NUMBER,
                            default=6, min=1, max=8, step=1,
                            description="Number of noise layers"),
        ParameterDefinition(id="persistence", name="Persistence", type=ParameterType.NUMBER,
                            default=0.5, min=0.1, max=0.9, step=0.05,
                            description="Amplitude falloff per octave"),
        ParameterDefinition(id="lacunarity", name="Lacunarity", type=ParameterType.NUMBER,
                            default=2.0, min=1.5, max=3.0, step=0.1,
                            description="Frequency multiplier per octave"),
        ParameterDefinition(id="scale", name="Scale", type=ParameterType.NUMBER,
                            default=0.01, min=0.001, max=0.05, step=0.001,
                            description="Base noise frequency"),
    ]

    def run(self, inputs, params, progress):
        heightmap = generate_heightmap(
            params["width"],
            params["height"],
            params["seed"],
            octaves=params["octaves"],
            persistence=params["persistence"],
            lacunarity=params["lacunarity"],
            scale=params["scale"],
            progress=progress,
        )
        return {"heightmap": heightmap}


@register_node
class SlopeMapNode(GeneratorNode):
    type = "slope-map"
    category = "terrain"
    name = "Slope Map"
    description = "Central-difference slope magnitude of a heightmap"
    inputs = [Port(id="heightmap", name="Heightmap", data_type=DataType.HEIGHTMAP)]
    outputs = [Port(id="slopes", name="Slopes", data_type=DataType.HEIGHTMAP)]
    parameters = []

    def run(self, inputs, params, progress):
        progress.report(0, "Computing slopes")
        slopes = compute_slope_map(inputs["heightmap"])
        progress.report(100, "Done")
        return {"slopes": slopes}
