class SelfConnectionError(Exception):
    """A spring or connection was asked to join a node to itself."""
    def __init__(self, message="Can't connect a node to itself."):
        super().__init__(message)

class NodeNotFoundError(Exception):
    """Node ID not found in the construction graph."""
    def __init__(self, message="Node ID not found in construction graph."):
        super().__init__(message)

class SpringNotFoundError(Exception):
    """Spring ID not found in the construction graph."""
    def __init__(self, message="Spring ID not found in construction graph."):
        super().__init__(message)

class LiteralPointError(Exception):
    """Literal point access on a spring whose endpoints are both nodes."""
    def __init__(self, message="Spring has no literal point endpoint."):
        super().__init__(message)

class ForeignNodeError(Exception):
    """Meta node built on a construction node owned by another graph."""
    def __init__(self, message="Construction node does not belong to this graph."):
        super().__init__(message)

class MetaNodeNotFoundError(Exception):
    """Meta node ID not found in the meta graph."""
    def __init__(self, message="Meta node ID not found in meta graph."):
        super().__init__(message)
