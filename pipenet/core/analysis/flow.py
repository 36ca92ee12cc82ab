# pipenet/core/analysis/flow.py
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Tuple

from pipenet.core.models.net import Net
from pipenet.core.models.node import Node, NodeType

logger = logging.getLogger(__name__)

# default pressure assigned to an open source that has none
SOURCE_PRESSURE = 100.0


def start_flow(net: Net, *, source_pressure: float = SOURCE_PRESSURE) -> List[Node]:
    """
    Pushes pressure from every source through the net.

    Open sources without pressure get source_pressure; each open source is
    then flooded in insertion order. Returns all source nodes (mesh roots).

    The net should be reset() beforehand, otherwise downstream sets and
    pressures of the previous run are kept.
    """
    sources = net.get_node_list(NodeType.SOURCE)
    for source in sources:
        if source.closed:
            # a shut source keeps whatever pressure it has but feeds nothing
            continue
        if source.pressure <= 0:
            source.pressure = float(source_pressure)
        _flow_from(net, source)

    logger.debug(
        "Flow run: %d source(s), %d/%d node(s) pressurized",
        len(sources),
        sum(1 for n in net.nodes.values() if n.pressure > 0),
        len(net),
    )
    return sources


def _flow_from(net: Net, start: Node) -> None:
    """
    Depth-first flood from start.

    A neighbor M of N is entered only if N has not pushed to M yet and
    N.pressure > M.pressure. M is recorded downstream of N; closed nodes
    stop there and keep their pressure.

    Explicit frame stack: a frame is resumed after its child returns, so
    the visiting order is the same as the recursive formulation.
    """
    stack: List[Tuple[Node, Iterator[int]]] = [(start, iter(list(start.neighbors)))]

    while stack:
        node, neighbors = stack[-1]
        for nid in neighbors:
            neighbor = net.get_node(nid)
            if neighbor is None:
                continue
            if nid in node.downstream or node.pressure <= neighbor.pressure:
                continue

            node.downstream.append(nid)
            if not neighbor.closed:
                neighbor.pressure = node.pressure
                stack.append((neighbor, iter(list(neighbor.neighbors))))
                break
        else:
            stack.pop()


def flow_forest(net: Net) -> Dict[int, List[int]]:
    """Snapshot of the directed downstream adjacency of the last run."""
    return {nid: list(n.downstream) for nid, n in net.nodes.items() if n.downstream}
