"""Exceptions raised at the generator node boundary."""


class MapGraphError(Exception):
    """Base error for the generation kernel."""


class MissingInputError(MapGraphError):
    """Raised when a required input port has no value."""

    def __init__(self, node_type: str, port_id: str, port_name: str):
        self.node_type = node_type
        self.port_id = port_id
        super().__init__(f"Missing required input: {port_name} ({node_type}.{port_id})")


class PortTypeError(MapGraphError, TypeError):
    """Raised when a port value does not carry the expected data type."""


class ParameterError(MapGraphError, ValueError):
    """Raised when a parameter value cannot be interpreted."""


class UnknownNodeError(MapGraphError, KeyError):
    """Raised when a node type is not registered."""
