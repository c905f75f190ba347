from ..models.exceptions import SelfConnectionError


class ConstructionConnection:
    """A drawn line between two nodes. Visual bookkeeping only, exerts no force."""

    def __init__(self, node_a_id: int, node_b_id: int):
        if node_a_id == node_b_id:
            raise SelfConnectionError()
        self.node_a_id = node_a_id
        self.node_b_id = node_b_id

    def contains(self, node_id: int) -> bool:
        return node_id == self.node_a_id or node_id == self.node_b_id

    def __eq__(self, other):
        if not isinstance(other, ConstructionConnection):
            return NotImplemented
        return {self.node_a_id, self.node_b_id} == {other.node_a_id, other.node_b_id}

    def __hash__(self):
        return hash(frozenset((self.node_a_id, self.node_b_id)))

    def __repr__(self):
        return f"ConstructionConnection({self.node_a_id} <-> {self.node_b_id})"
