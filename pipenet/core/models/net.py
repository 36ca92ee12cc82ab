from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pipenet.core.models.node import Node, NodeType

logger = logging.getLogger(__name__)

NodeRef = Union[Node, int]


def node_id_of(ref: NodeRef) -> int:
    return ref.id if isinstance(ref, Node) else int(ref)


class Net:
    """
    Pipe network container (graph store).

    Owns every Node by id. Nodes only reference each other through ids, so
    every operation that needs a sibling node receives the Net.

    Ids are positive integers. Removed ids go to a FIFO pool and are handed
    out again before new ones are minted.
    """

    def __init__(self, nodes: Optional[Iterable[Node]] = None, *, min_gap: float = 1.0):
        self.nodes: Dict[int, Node] = {}
        self.min_gap = float(min_gap)
        self._next_id = 1
        self._removed_ids: Deque[int] = deque()

        if nodes is not None:
            self.add_nodes(nodes)

    # ------------------------------------------------------------
    # container protocol
    # ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, Node):
            return ref.id in self.nodes
        return ref in self.nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self.nodes.values()))

    def __repr__(self) -> str:
        return f"Net(nodes={len(self.nodes)}, min_gap={self.min_gap})"

    # ------------------------------------------------------------
    # add / remove
    # ------------------------------------------------------------

    def add_node(self, node: Node, generate_id: bool = True) -> Node:
        """
        Inserts node into the net.
        - generate_id=True: node.id is overwritten with a recycled or new id
        - generate_id=False: node.id is kept (e.g. loaded from a file) and the
          id counter moves past it
        """
        if generate_id:
            node.id = self._generate_id()
        else:
            if node.id in self.nodes:
                raise ValueError(f"Duplicate node id {node.id} in net")
            self._next_id = max(self._next_id, node.id + 1)
            if node.id in self._removed_ids:
                self._removed_ids.remove(node.id)

        self.nodes[node.id] = node
        return node

    def add_nodes(self, nodes: Iterable[Node], generate_id: bool = True) -> List[Node]:
        return [self.add_node(n, generate_id) for n in nodes]

    def remove_nodes(self, *nodes: NodeRef) -> None:
        """
        Removes the given nodes (Node objects or ids) and every reference to
        them. Called without arguments, clears the whole net back to its
        initial empty state.
        """
        if not nodes:
            self.nodes = {}
            self._removed_ids = deque()
            self._next_id = 1
            return

        for ref in nodes:
            nid = node_id_of(ref)
            target = self.nodes.pop(nid, None)
            if target is None:
                continue

            for other in self.nodes.values():
                if nid in other.neighbors:
                    other.neighbors.remove(nid)
                if nid in other.downstream:
                    other.downstream.remove(nid)

            target.downstream = []
            if nid not in self._removed_ids:
                self._removed_ids.append(nid)

    # ------------------------------------------------------------
    # topology
    # ------------------------------------------------------------

    def connect(self, id1: int, id2: int) -> bool:
        """
        Connects two nodes both ways.
        Returns True only if the adjacency actually changed.
        """
        if id1 == id2:
            return False

        n1 = self.get_node(id1)
        n2 = self.get_node(id2)
        if n1 is None or n2 is None:
            return False

        dirty = False
        if id2 not in n1.neighbors:
            n1.neighbors.append(id2)
            dirty = True
        if id1 not in n2.neighbors:
            n2.neighbors.append(id1)
            dirty = True
        return dirty

    def disconnect(self, id1: int, id2: int) -> bool:
        n1 = self.get_node(id1)
        n2 = self.get_node(id2)
        if n1 is None or n2 is None:
            return False

        dirty = False
        for a, b in ((n1, n2), (n2, n1)):
            if b.id in a.neighbors:
                a.neighbors.remove(b.id)
                dirty = True
            if b.id in a.downstream:
                a.downstream.remove(b.id)
        return dirty

    def set_closed(self, node_id: int, closed: bool = True) -> bool:
        """Manual open/close. Only valves and sources can be operated."""
        node = self.get_node(node_id)
        if node is None or node.type == NodeType.COMMON:
            return False
        node.closed = bool(closed)
        return True

    def edges(self) -> List[Tuple[int, int]]:
        """Each undirected edge once, in insertion order of its first endpoint."""
        seen = set()
        out: List[Tuple[int, int]] = []
        for node in self.nodes.values():
            for nid in node.neighbors:
                if nid not in self.nodes:
                    continue
                key = (min(node.id, nid), max(node.id, nid))
                if key in seen:
                    continue
                seen.add(key)
                out.append((node.id, nid))
        return out

    # ------------------------------------------------------------
    # state
    # ------------------------------------------------------------

    def reset(self, just_search: bool = False, include_valve_state: bool = False) -> None:
        """
        Prepares the net for a new analysis pass.

        Search/visited state lives inside each traversal call, so
        just_search=True leaves the graph untouched. Otherwise flow results
        are cleared and neighbor ids pointing to missing nodes are pruned.
        """
        if just_search:
            return

        pruned = 0
        for node in self.nodes.values():
            node.reset(include_valve_state)
            kept = [nid for nid in node.neighbors if nid in self.nodes]
            pruned += len(node.neighbors) - len(kept)
            node.neighbors = kept

        if pruned:
            logger.warning("Pruned %d dangling neighbor reference(s) during reset", pruned)

    # ------------------------------------------------------------
    # queries
    # ------------------------------------------------------------

    def get_node(self, node_id: int) -> Optional[Node]:
        return self.nodes.get(node_id)

    def get_node_list(self, type: Optional[NodeType] = None) -> List[Node]:
        if type is None:
            return list(self.nodes.values())
        return [n for n in self.nodes.values() if n.type == type]

    def get_first_node(self) -> Optional[Node]:
        return next(iter(self.nodes.values()), None)

    def _generate_id(self) -> int:
        if self._removed_ids:
            return self._removed_ids.popleft()
        nid = self._next_id
        self._next_id += 1
        return nid
