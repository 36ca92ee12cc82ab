from __future__ import annotations

from typing import Iterable, Sequence, Tuple

import pytest

from pipenet.core.models.net import Net
from pipenet.core.models.node import Node, NodeType


def make_net(
    points: Sequence[Tuple[NodeType, Tuple[float, float, float]]],
    edges: Iterable[Tuple[int, int]],
    *,
    min_gap: float = 1.0,
) -> Net:
    """Nodes get ids 1..n in the given order."""
    net = Net(min_gap=min_gap)
    for node_type, pos in points:
        net.add_node(Node(position=pos, type=node_type))
    for a, b in edges:
        net.connect(a, b)
    return net


@pytest.fixture
def valve_chain() -> Net:
    """1:Source(0,0,0) - 2:Common(10,0,0) - 3:Valve(20,0,0) closed."""
    net = make_net(
        [
            (NodeType.SOURCE, (0.0, 0.0, 0.0)),
            (NodeType.COMMON, (10.0, 0.0, 0.0)),
            (NodeType.VALVE, (20.0, 0.0, 0.0)),
        ],
        [(1, 2), (2, 3)],
    )
    net.set_closed(3)
    return net


@pytest.fixture
def branched_net() -> Net:
    """
    1:S - 2 - 3:V - 4 - 5
              |
              6 - 7:V - 8
    """
    return make_net(
        [
            (NodeType.SOURCE, (0.0, 0.0, 0.0)),
            (NodeType.COMMON, (10.0, 0.0, 0.0)),
            (NodeType.VALVE, (20.0, 0.0, 0.0)),
            (NodeType.COMMON, (30.0, 0.0, 0.0)),
            (NodeType.COMMON, (40.0, 0.0, 0.0)),
            (NodeType.COMMON, (10.0, 0.0, 10.0)),
            (NodeType.VALVE, (10.0, 0.0, 20.0)),
            (NodeType.COMMON, (10.0, 0.0, 30.0)),
        ],
        [(1, 2), (2, 3), (3, 4), (4, 5), (2, 6), (6, 7), (7, 8)],
    )
