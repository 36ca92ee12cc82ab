from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import numpy as np

from pipenet.core.analysis.flow import start_flow
from pipenet.core.build.config import ModelConfig
from pipenet.core.geometry.mesh import PipeMesh, generate_mesh
from pipenet.core.models.net import Net
from pipenet.core.models.node import Node

logger = logging.getLogger(__name__)

MAIN = "main"
BLOCK = "block"


@dataclass(frozen=True)
class NetMesh:
    """
    Combined mesh of the net: one shared vertex/uv buffer and one triangle
    array per submesh ("main" = pressurized pipes, "block" = blocked pipes).
    """
    vertices: np.ndarray                 # [nv, 3]
    uvs: np.ndarray                      # [nv, 2]
    submeshes: Dict[str, np.ndarray]     # name -> flat triangle indices into vertices

    @property
    def triangles(self) -> np.ndarray:
        parts = list(self.submeshes.values())
        if not parts:
            return np.zeros(0, dtype=np.int64)
        return np.concatenate(parts)


def select_block_roots(net: Net, sources: List[Node]) -> List[Node]:
    """
    Start nodes for the blocked-pipe mesh.

    Without sources every node is blocked; otherwise the zero-pressure ones.
    Nodes in the middle of a blocked run (more than one zero-pressure
    neighbor) are dropped so that runs are walked from their ends. A blocked
    group left without any end (a ring) starts from its first node.
    """
    nodes = net.get_node_list()
    if not sources:
        candidates = nodes
    else:
        candidates = [n for n in nodes if n.pressure == 0]

    root_ids: Set[int] = set()
    for node in candidates:
        zero_neighbors = 0
        for nid in node.neighbors:
            neighbor = net.get_node(nid)
            if neighbor is not None and neighbor.pressure == 0:
                zero_neighbors += 1
        if zero_neighbors <= 1:
            root_ids.add(node.id)

    candidate_ids = {n.id for n in candidates}
    seen: Set[int] = set()
    for node in candidates:
        if node.id in seen:
            continue
        group = _blocked_group(net, node, candidate_ids)
        seen |= group
        if not group & root_ids:
            root_ids.add(node.id)

    return [n for n in candidates if n.id in root_ids]


def _blocked_group(net: Net, start: Node, candidate_ids: Set[int]) -> Set[int]:
    """Ids connected to start through candidate nodes only."""
    group = {start.id}
    stack = [start]
    while stack:
        node = stack.pop()
        for nid in node.neighbors:
            if nid in candidate_ids and nid not in group:
                group.add(nid)
                stack.append(net.nodes[nid])
    return group


def combine_meshes(meshes: Dict[str, Optional[PipeMesh]]) -> Optional[NetMesh]:
    """Stacks the non-empty meshes into one buffer, keeping their triangles apart."""
    vertices: List[np.ndarray] = []
    uvs: List[np.ndarray] = []
    submeshes: Dict[str, np.ndarray] = {}

    offset = 0
    for name, mesh in meshes.items():
        if mesh is None:
            continue
        vertices.append(mesh.vertices)
        uvs.append(mesh.uvs)
        submeshes[name] = mesh.triangles + offset
        offset += mesh.vertices.shape[0]

    if not vertices:
        return None

    return NetMesh(
        vertices=np.vstack(vertices),
        uvs=np.vstack(uvs),
        submeshes=submeshes,
    )


def refresh_net_mesh(
    net: Net,
    config: Optional[ModelConfig] = None,
    *,
    include_valve_state: bool = False,
) -> Optional[NetMesh]:
    """
    Recomputes flow and rebuilds the whole net mesh.

    Must be called by editors after every topology change (nothing refreshes
    automatically). Returns None when the net has fewer than 2 nodes or no
    pipe could be emitted.
    """
    cfg = config or ModelConfig()

    net.reset(include_valve_state=include_valve_state)
    net.min_gap = cfg.mesh.min_gap

    if len(net) < 2:
        logger.debug("Not enough nodes for a mesh (%d)", len(net))
        return None

    sources = start_flow(net, source_pressure=cfg.flow.source_pressure)
    block_roots = select_block_roots(net, sources)

    main_mesh = generate_mesh(net, sources, block=False, config=cfg.mesh)
    block_mesh = generate_mesh(net, block_roots, block=True, config=cfg.mesh)

    return combine_meshes({MAIN: main_mesh, BLOCK: block_mesh})
