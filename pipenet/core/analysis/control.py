from __future__ import annotations

from typing import Iterator, List, Optional, Set, Tuple

from pipenet.core.models.net import Net, NodeRef, node_id_of
from pipenet.core.models.node import Node


def related_control_nodes(net: Net, *nodes: Optional[NodeRef]) -> List[Node]:
    """
    Finds the valves/sources that govern the given breakdown nodes.

    From each node the search spreads through common nodes and stops at the
    first open valve or source on every path. Closed control nodes are
    transparent. One visited set is shared by all start nodes.
    """
    visited: Set[int] = set()
    found: List[Node] = []

    for ref in nodes:
        if ref is None:
            continue
        start = net.get_node(node_id_of(ref))
        if start is None or start.id in visited:
            continue
        _track(net, start, visited, found)

    return found


def _track(net: Net, start: Node, visited: Set[int], found: List[Node]) -> None:
    stack: List[Tuple[Node, Iterator[int]]] = []

    def enter(node: Node) -> None:
        visited.add(node.id)
        if node.is_control and not node.closed:
            if all(f.id != node.id for f in found):
                found.append(node)
            return
        stack.append((node, iter(list(node.neighbors))))

    enter(start)
    while stack:
        _, neighbors = stack[-1]
        for nid in neighbors:
            if nid in visited:
                continue
            neighbor = net.get_node(nid)
            if neighbor is None:
                continue
            enter(neighbor)
            break
        else:
            stack.pop()
