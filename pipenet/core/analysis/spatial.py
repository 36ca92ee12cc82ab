from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from pipenet.core.models.net import Net
from pipenet.core.models.node import Node

# a point within ON_NODE_GAP_FACTOR * min_gap of a node is taken as "on" it
ON_NODE_GAP_FACTOR = 2.0


def locate(
    net: Net,
    position: Sequence[float],
    tolerance: Optional[float] = None,
    *,
    gap_factor: float = ON_NODE_GAP_FACTOR,
) -> List[Node]:
    """
    Maps a world position onto the net.

    Returns:
      - [node]            if position is near a node
      - [node, neighbor]  if position lies on the segment between them
      - []                otherwise

    Node hits win over segment hits; the first match in insertion order is
    returned, not the closest one.
    """
    if tolerance is None:
        tolerance = gap_factor * net.min_gap

    p = np.asarray(position, dtype=float)
    nodes = net.get_node_list()

    for node in nodes:
        if float(np.linalg.norm(np.asarray(node.position) - p)) < tolerance:
            return [node]

    for node in nodes:
        a = np.asarray(node.position, dtype=float)
        for nid in node.neighbors:
            neighbor = net.get_node(nid)
            if neighbor is None:
                continue

            b = np.asarray(neighbor.position, dtype=float)
            ab = b - a
            length = float(np.linalg.norm(ab))
            if length == 0:
                continue

            ac = p - a
            bc = p - b
            # projection falls between a and b
            if np.dot(ab, ac) >= 0 and np.dot(ab, bc) <= 0:
                dist = float(np.linalg.norm(np.cross(ab, ac))) / length
                if dist < net.min_gap:
                    return [node, neighbor]

    return []
