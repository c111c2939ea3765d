"""
Typed values and schemas at the generator node boundary.

Every value crossing a node port is a PortValue: a data-type tag plus a
payload whose Python type is checked against the tag on construction.
Parameters are declared with ParameterDefinition and resolved against
caller-supplied values by resolve_parameters().
"""

from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict

from ..core.city import CityBlueprint, CityLayout
from ..core.hydrology import FlowField, River, WatershedBasins
from ..core.noise import Heightmap
from ..errors import ParameterError, PortTypeError

logger = structlog.get_logger()


class DataType(str, Enum):
    """Tags of the values that can flow between nodes."""
    HEIGHTMAP = "heightmap"
    FLOW_FIELD = "flowField"
    BLUEPRINT = "blueprint"
    CITY_LAYOUT = "cityLayout"
    POLYLINES = "polylines"
    BASINS = "basins"
    SCALAR = "scalar"
    BOOLEAN = "boolean"


_PAYLOAD_TYPES = {
    DataType.HEIGHTMAP: Heightmap,
    DataType.FLOW_FIELD: FlowField,
    DataType.BLUEPRINT: CityBlueprint,
    DataType.CITY_LAYOUT: CityLayout,
    DataType.BASINS: WatershedBasins,
}


def _is_polyline(item: Any) -> bool:
    if isinstance(item, River):
        return True
    return isinstance(item, (list, tuple)) and all(
        isinstance(p, (list, tuple)) and len(p) == 2 for p in item
    )


def payload_matches(data_type: DataType, value: Any) -> bool:
    """Whether a payload has the Python type its tag promises."""
    if data_type in _PAYLOAD_TYPES:
        return isinstance(value, _PAYLOAD_TYPES[data_type])
    if data_type == DataType.SCALAR:
        return isinstance(value, Real) and not isinstance(value, bool)
    if data_type == DataType.BOOLEAN:
        return isinstance(value, bool)
    if data_type == DataType.POLYLINES:
        return isinstance(value, (list, tuple)) and all(_is_polyline(item) for item in value)
    return False


@dataclass(frozen=True)
class PortValue:
    """Tagged value on a node port."""
    data_type: DataType
    value: Any

    def __post_init__(self):
        try:
            data_type = DataType(self.data_type)
        except ValueError:
            raise PortTypeError(f"Unknown data type: {self.data_type!r}") from None
        object.__setattr__(self, "data_type", data_type)

        if not payload_matches(data_type, self.value):
            raise PortTypeError(
                f"Payload of type {type(self.value).__name__} does not match data type {data_type.value}"
            )


class Port(BaseModel):
    """Named, typed input or output of a node."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    data_type: DataType
    required: bool = True


class ParameterType(str, Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    STRING = "string"
    VEC2 = "vec2"


class ParameterDefinition(BaseModel):
    """Schema entry for one node parameter."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ParameterType
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Optional[List[str]] = None
    description: str = ""

    @property
    def is_integer(self) -> bool:
        """Number parameters with an integral default and step take int values."""
        return (self.type == ParameterType.NUMBER
                and isinstance(self.default, int) and not isinstance(self.default, bool)
                and (self.step is None or float(self.step).is_integer()))


def _resolve_number(definition: ParameterDefinition, value: Any, node_type: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ParameterError(
            f"Parameter {definition.id} of {node_type} expects a number, got {type(value).__name__}"
        )

    resolved = float(value)
    if definition.min is not None and resolved < definition.min:
        logger.warning("Parameter below minimum, clamping", node=node_type,
                       parameter=definition.id, value=resolved, min=definition.min)
        resolved = float(definition.min)
    if definition.max is not None and resolved > definition.max:
        logger.warning("Parameter above maximum, clamping", node=node_type,
                       parameter=definition.id, value=resolved, max=definition.max)
        resolved = float(definition.max)

    if definition.is_integer:
        return int(round(resolved))
    return resolved


def _resolve_vec2(definition: ParameterDefinition, value: Any, node_type: str) -> Tuple[float, float]:
    if isinstance(value, Mapping):
        value = (value.get("x"), value.get("y"))
    if (not isinstance(value, Sequence) or isinstance(value, str) or len(value) != 2
            or not all(isinstance(v, Real) and not isinstance(v, bool) for v in value)):
        raise ParameterError(f"Parameter {definition.id} of {node_type} expects an (x, y) pair")
    return float(value[0]), float(value[1])


def resolve_parameter(definition: ParameterDefinition, value: Any, node_type: str = "") -> Any:
    """
    Validate and coerce one parameter value.

    Args:
        definition: Parameter schema
        value: Caller-supplied value (None means use the default)
        node_type: Owning node type, for messages

    Returns:
        Resolved value

    Raises:
        ParameterError: If the value has the wrong type or is not a valid option
    """
    if value is None:
        value = definition.default

    if definition.type == ParameterType.NUMBER:
        return _resolve_number(definition, value, node_type)

    if definition.type == ParameterType.BOOLEAN:
        if not isinstance(value, bool):
            raise ParameterError(
                f"Parameter {definition.id} of {node_type} expects a boolean, got {type(value).__name__}"
            )
        return value

    if definition.type == ParameterType.ENUM:
        options = definition.options or []
        if value not in options:
            raise ParameterError(
                f"Parameter {definition.id} of {node_type} must be one of {options}, got {value!r}"
            )
        return value

    if definition.type == ParameterType.STRING:
        if not isinstance(value, str):
            raise ParameterError(f"Parameter {definition.id} of {node_type} expects a string")
        return value

    return _resolve_vec2(definition, value, node_type)


def resolve_parameters(definitions: Sequence[ParameterDefinition],
                       values: Optional[Mapping[str, Any]] = None,
                       node_type: str = "") -> Dict[str, Any]:
    """
    Resolve a full parameter set against its schema.

    Missing values take their defaults, numbers are clamped into
    [min, max], unknown keys are ignored.

    Returns:
        Dict of parameter id -> resolved value
    """
    values = dict(values or {})
    resolved = {d.id: resolve_parameter(d, values.pop(d.id, None), node_type) for d in definitions}

    if values:
        logger.debug("Ignoring unknown parameters", node=node_type, parameters=sorted(values))

    return resolved
