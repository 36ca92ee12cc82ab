from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from pipenet.core.analysis.flow import SOURCE_PRESSURE, start_flow
from pipenet.core.analysis.spatial import ON_NODE_GAP_FACTOR, locate
from pipenet.core.models.net import Net, NodeRef, node_id_of
from pipenet.core.models.node import Node

logger = logging.getLogger(__name__)


def analyse_closed(
    net: Net,
    closed_nodes: Iterable[Optional[NodeRef]],
    *,
    source_pressure: float = SOURCE_PRESSURE,
) -> List[Node]:
    """
    Closes the given nodes and returns every node left without pressure.

    Any node type can be closed here: valves for a shut-off, common nodes for
    a break. Flow results and common-node closures of earlier runs are cleared
    first; valve/source closed flags survive.
    """
    net.reset()

    for ref in closed_nodes:
        if ref is None:
            continue
        node = net.get_node(node_id_of(ref))
        if node is not None:
            node.closed = True

    start_flow(net, source_pressure=source_pressure)

    affected = blocked_nodes(net)
    logger.debug("Closure analysis: %d affected node(s)", len(affected))
    return affected


def blocked_nodes(net: Net) -> List[Node]:
    """Nodes whose pressure is exactly zero after the last flow run."""
    return [n for n in net.get_node_list() if n.pressure == 0]


def close_node_at(
    net: Net,
    position: Sequence[float],
    *,
    tolerance: Optional[float] = None,
    gap_factor: float = ON_NODE_GAP_FACTOR,
    source_pressure: float = SOURCE_PRESSURE,
) -> List[Node]:
    """
    Closes whatever lies at position (a node, or both ends of a segment)
    and returns the affected nodes. Nothing there means an unchanged flow run.
    """
    hit = locate(net, position, tolerance, gap_factor=gap_factor)
    if not hit:
        logger.debug("Nothing to close at %s", tuple(position))
    return analyse_closed(net, hit, source_pressure=source_pressure)
