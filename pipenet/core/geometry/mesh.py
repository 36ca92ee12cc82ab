# pipenet/core/geometry/mesh.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

import numpy as np

from pipenet.core.build.config import MeshConfig
from pipenet.core.geometry.primitives import (
    angle_radian,
    average,
    intercept_point,
    rotate_around_point,
    to_xz,
)
from pipenet.core.models.net import Net
from pipenet.core.models.node import Node

logger = logging.getLogger(__name__)

# ribbon offsets before rotation (z axis = across the pipe when theta = 0)
_RIGHT = np.array([0.0, 0.0, 1.0])
_LEFT = np.array([0.0, 0.0, -1.0])


# ============================================================
# Buffers / Results
# ============================================================

@dataclass
class MeshData:
    """
    Mutable buffer filled while walking the net.
    Every edge adds one quad = 4 consecutive vertices:
      0: start right, 1: start left, 2: end right, 3: end left
    """
    vertices: List[np.ndarray] = field(default_factory=list)
    triangles: List[int] = field(default_factory=list)
    thetas: List[float] = field(default_factory=list)   # planar angle per quad
    uvs: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=float))

    @property
    def n_quads(self) -> int:
        return len(self.vertices) // 4

    def to_mesh(self) -> Optional["PipeMesh"]:
        if not self.vertices:
            return None
        return PipeMesh(
            vertices=np.vstack(self.vertices).astype(float),
            triangles=np.asarray(self.triangles, dtype=np.int64),
            uvs=np.asarray(self.uvs, dtype=float),
        )


@dataclass(frozen=True)
class PipeMesh:
    vertices: np.ndarray    # [nv, 3]
    triangles: np.ndarray   # [6 * n_quads] flat indices, two triangles per quad
    uvs: np.ndarray         # [nv, 2]

    @property
    def n_quads(self) -> int:
        return int(self.vertices.shape[0]) // 4

    @property
    def n_triangles(self) -> int:
        return int(self.triangles.shape[0]) // 3


# ============================================================
# Walk
# ============================================================

def generate_mesh(
    net: Net,
    roots: Iterable[Node],
    *,
    block: bool = False,
    config: Optional[MeshConfig] = None,
) -> Optional[PipeMesh]:
    """
    Builds the ribbon mesh reachable from roots.

    Modes:
    - live (block=False): follows the downstream sets of the last flow run,
      i.e. the pressurized pipes.
    - block (block=True): follows the full adjacency but only through nodes
      that are unpressurized or closed, i.e. the blocked pipes.

    Each pipe is emitted once per call, whichever direction reaches it first.
    A pipe into an already visited node is still emitted, but that node's
    own pipes are walked only the first time it is reached.

    Consecutive edges along a walk share mitered joint vertices. UVs are
    unwrapped along the same walk.

    Returns None if the net has fewer than 2 nodes or nothing was emitted.
    """
    cfg = config or MeshConfig()
    if len(net) < 2:
        return None

    data = MeshData()
    visited: Set[int] = set()
    emitted: Set[FrozenSet[int]] = set()
    for root in roots:
        node = net.get_node(root.id)
        if node is None or node.id in visited:
            continue
        _walk(net, node, data, block=block, visited=visited, emitted=emitted, width=cfg.line_width)

    if not data.vertices:
        return None

    calculate_uv(data, cfg)
    logger.debug("Mesh (%s): %d quad(s)", "block" if block else "live", data.n_quads)
    return data.to_mesh()


def _search_list(node: Node, block: bool) -> Iterator[int]:
    return iter(list(node.neighbors if block else node.downstream))


def _walk(
    net: Net,
    root: Node,
    data: MeshData,
    *,
    block: bool,
    visited: Set[int],
    emitted: Set[FrozenSet[int]],
    width: float,
) -> None:
    """
    Depth-first edge emission from root, explicit stack.
    A frame is (node, remaining next ids, index of the quad that led into node or -1).
    """
    visited.add(root.id)
    stack: List[Tuple[Node, Iterator[int], int]] = [(root, _search_list(root, block), -1)]

    while stack:
        node, nexts, incoming = stack[-1]
        for nid in nexts:
            nxt = net.get_node(nid)
            if nxt is None:
                continue
            if block and nxt.pressure != 0 and not nxt.closed:
                continue
            pipe = frozenset((node.id, nxt.id))
            if pipe in emitted:
                continue

            emitted.add(pipe)
            index = _add_quad(data, node, nxt, width)
            if incoming >= 0:
                _miter_joint(data.vertices, incoming, index)

            if nxt.id in visited:
                continue

            visited.add(nxt.id)
            stack.append((nxt, _search_list(nxt, block), index))
            break
        else:
            stack.pop()


def _add_quad(data: MeshData, a: Node, b: Node, width: float) -> int:
    """Appends the ribbon quad of edge a->b and its two triangles. Returns the first vertex index."""
    theta = angle_radian(to_xz(a.position), to_xz(b.position))
    data.thetas.append(theta)

    pa = np.asarray(a.position, dtype=float)
    pb = np.asarray(b.position, dtype=float)

    i = len(data.vertices)
    data.vertices.extend([
        rotate_around_point(pa + _RIGHT * width, pa, -theta),
        rotate_around_point(pa + _LEFT * width, pa, -theta),
        rotate_around_point(pb + _RIGHT * width, pb, -theta),
        rotate_around_point(pb + _LEFT * width, pb, -theta),
    ])
    data.triangles.extend([i + 2, i + 1, i + 0, i + 2, i + 3, i + 1])
    return i


def _miter_joint(v: List[np.ndarray], incoming: int, outgoing: int) -> None:
    """
    Replaces the shared corner of two consecutive quads by the intersection
    of their side lines (one per side). Parallel sides keep their vertices.
    """
    p0, p1, p2, p3 = incoming, incoming + 1, incoming + 2, incoming + 3
    p4, p5, p6, p7 = outgoing, outgoing + 1, outgoing + 2, outgoing + 3

    right_y = (v[p2][1] + v[p3][1]) / 2.0
    left_y = (v[p4][1] + v[p5][1]) / 2.0

    right = intercept_point(to_xz(v[p0]), to_xz(v[p2]), to_xz(v[p4]), to_xz(v[p6]))
    left = intercept_point(to_xz(v[p1]), to_xz(v[p3]), to_xz(v[p5]), to_xz(v[p7]))

    for hit, (end_i, start_i), y in ((right, (p2, p4), right_y), (left, (p3, p5), left_y)):
        if hit is None:
            if np.allclose(v[end_i], v[start_i]):
                logger.debug("Straight joint at quads %d/%d, no miter needed", incoming // 4, outgoing // 4)
            else:
                logger.warning(
                    "Parallel pipe lines at quads %d/%d, joint left un-mitered",
                    incoming // 4, outgoing // 4,
                )
            continue

        corner = np.array([hit[0], y, hit[1]], dtype=float)
        v[end_i] = corner
        v[start_i] = corner.copy()


# ============================================================
# UV
# ============================================================

def calculate_uv(data: MeshData, config: Optional[MeshConfig] = None) -> np.ndarray:
    """
    Unwraps the quads as one continuous strip in walk order.

    Each quad is turned into its local frame (theta + 90 deg about its
    centre) and shifted so its corner 0 sits on corner 2 of the previous
    quad. U is then normalised to the width of the first quad, and the
    optional swap / flips / offset / scale are applied.
    """
    cfg = config or MeshConfig()
    n = len(data.vertices)
    if n == 0:
        data.uvs = np.zeros((0, 2), dtype=float)
        return data.uvs

    uvs = np.zeros((n, 2), dtype=float)
    top_left = np.zeros(2, dtype=float)

    for q in range(data.n_quads):
        k = 4 * q
        quad = data.vertices[k:k + 4]
        center = average(quad)
        angle = data.thetas[q] + math.pi / 2.0

        local = np.vstack([to_xz(rotate_around_point(p, center, angle)) for p in quad])
        local += top_left - local[0]

        uvs[k:k + 4] = local
        top_left = uvs[k + 2].copy()

    # normalise U on the first quad, apply to both axes
    width = uvs[1, 0] - uvs[0, 0]
    if width != 0:
        uvs *= 1.0 / width
    else:
        logger.warning("Zero-width first quad, UVs left unnormalised")

    if cfg.swap_uv:
        uvs = uvs[:, ::-1].copy()
    if cfg.flip_u:
        uvs[:, 0] = -uvs[:, 0]
    if cfg.flip_v:
        uvs[:, 1] = -uvs[:, 1]

    uvs = (uvs + np.asarray(cfg.uv_offset, dtype=float)) * np.asarray(cfg.uv_scale, dtype=float)

    data.uvs = uvs
    return uvs
