"""
Generator node base class.

A node declares its ports and parameter schema as class attributes and
implements run(). execute() is the boundary the graph engine calls: it
checks inputs, resolves parameters, runs the node and tags the outputs.
"""

from typing import Any, Dict, List, Mapping, Optional

import structlog

from ..core.progress import ProgressSink, ensure_progress
from ..errors import MissingInputError, PortTypeError
from .types import ParameterDefinition, Port, PortValue, resolve_parameters

logger = structlog.get_logger()


class GeneratorNode:
    """Base class for all generator nodes."""

    type: str = ""
    category: str = ""
    name: str = ""
    description: str = ""
    inputs: List[Port] = []
    outputs: List[Port] = []
    parameters: List[ParameterDefinition] = []

    def run(self, inputs: Dict[str, Any], params: Dict[str, Any],
            progress: ProgressSink) -> Dict[str, Any]:
        """
        Produce output payloads.

        Args:
            inputs: Input payloads keyed by port id (optional ports may be absent)
            params: Resolved parameters keyed by id
            progress: Progress sink

        Returns:
            Output payloads keyed by output port id
        """
        raise NotImplementedError

    def execute(self, inputs: Optional[Mapping[str, PortValue]] = None,
                parameters: Optional[Mapping[str, Any]] = None,
                progress: Optional[ProgressSink] = None) -> Dict[str, PortValue]:
        """
        Run the node on tagged inputs.

        Args:
            inputs: PortValues keyed by input port id
            parameters: Raw parameter values keyed by id; missing ones take defaults
            progress: Optional progress sink

        Returns:
            PortValues keyed by output port id

        Raises:
            MissingInputError: If a required input is absent
            PortTypeError: If an input carries the wrong data type
            ParameterError: If a parameter value is malformed
        """
        inputs = inputs or {}
        payloads = {}

        for port in self.inputs:
            value = inputs.get(port.id)
            if value is None:
                if port.required:
                    raise MissingInputError(self.type, port.id, port.name)
                continue
            if not isinstance(value, PortValue):
                raise PortTypeError(f"Input {self.type}.{port.id} must be a PortValue, "
                                    f"got {type(value).__name__}")
            if value.data_type != port.data_type:
                raise PortTypeError(f"Input {self.type}.{port.id} expects {port.data_type.value}, "
                                    f"got {value.data_type.value}")
            payloads[port.id] = value.value

        params = resolve_parameters(self.parameters, parameters, node_type=self.type)

        logger.debug("Executing node", node=self.type, params=params)
        produced = self.run(payloads, params, ensure_progress(progress))

        outputs = {}
        for port in self.outputs:
            if port.id in produced:
                outputs[port.id] = PortValue(port.data_type, produced[port.id])
        return outputs

    @classmethod
    def describe(cls) -> Dict[str, Any]:
        """Static definition of the node, for editors and palettes."""
        return {
            "type": cls.type,
            "category": cls.category,
            "name": cls.name,
            "description": cls.description,
            "inputs": [p.model_dump(mode="json") for p in cls.inputs],
            "outputs": [p.model_dump(mode="json") for p in cls.outputs],
            "parameters": [p.model_dump(mode="json") for p in cls.parameters],
        }
