from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class NodeType(str, Enum):
    """Role of a node inside the pipe network."""
    COMMON = "common"    # plain junction / bend
    VALVE = "valve"      # can be closed manually and isolates what lies behind it
    SOURCE = "source"    # originates pressure (reservoir, main, pump)


@dataclass(slots=True)
class Node:
    """
    Canonical network node (core model).

    Notes:
    - id: positive integer, unique inside one Net (0 = not yet assigned)
    - neighbors: undirected adjacency, kept symmetric by Net.connect
    - downstream: neighbors that pressure was pushed to in the last flow run,
      always a subset of neighbors
    - pressure / downstream are only meaningful after a flow run
    """
    id: int = 0
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    neighbors: List[int] = field(default_factory=list)
    type: NodeType = NodeType.COMMON

    pressure: float = 0.0
    closed: bool = False

    downstream: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.type = NodeType(self.type)
        self.position = tuple(float(c) for c in self.position)  # type: ignore[assignment]

    @property
    def is_control(self) -> bool:
        return self.type != NodeType.COMMON

    def reset(self, include_valve_state: bool = False) -> None:
        """
        Clears the result of the last flow run.
        Sources keep their pressure; closed flags survive on valves/sources
        unless include_valve_state is set.
        """
        self.downstream = []
        if self.type != NodeType.SOURCE:
            self.pressure = 0.0
            if include_valve_state or self.type == NodeType.COMMON:
                self.closed = False
