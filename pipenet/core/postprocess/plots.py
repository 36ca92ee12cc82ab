from __future__ import annotations

from typing import Iterable, Optional
import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

from pipenet.core.geometry.net_mesh import NetMesh
from pipenet.core.models.net import Net
from pipenet.core.models.node import Node, NodeType

_MARKERS = {
    NodeType.COMMON: "o",
    NodeType.VALVE: "D",
    NodeType.SOURCE: "s",
}


def _edge_color(a: Node, b: Node) -> str:
    if b.id in a.downstream or a.id in b.downstream:
        return "tab:blue"
    return "tab:red"


def plot_net_state(
    net: Net,
    *,
    out_png: str,
    title: str = "Pipe net",
    highlight: Optional[Iterable[Node]] = None,
    mesh: Optional[NetMesh] = None,
) -> None:
    """
    Plan view (X/Z) of the net after a flow run.
    Pipes carrying flow in blue, blocked ones in red; closed nodes hollow;
    highlight (e.g. control nodes) ringed in green. If mesh is given its
    triangles are drawn underneath.
    """
    os.makedirs(os.path.dirname(out_png) or ".", exist_ok=True)
    fig, ax = plt.subplots()

    if mesh is not None:
        colors = {"main": "lightsteelblue", "block": "mistyrose"}
        for name, tris in mesh.submeshes.items():
            ax.tripcolor(
                mesh.vertices[:, 0], mesh.vertices[:, 2], tris.reshape(-1, 3),
                facecolors=np.zeros(len(tris) // 3),
                cmap=ListedColormap([colors.get(name, "lightgray")]),
                edgecolors="none",
            )

    for a_id, b_id in net.edges():
        a = net.nodes[a_id]
        b = net.nodes[b_id]
        ax.plot([a.position[0], b.position[0]], [a.position[2], b.position[2]], color=_edge_color(a, b), lw=1.5)

    for node in net.get_node_list():
        face = "none" if node.closed else ("tab:blue" if node.pressure > 0 else "tab:red")
        ax.scatter(
            [node.position[0]], [node.position[2]],
            marker=_MARKERS[node.type], s=40, facecolors=face, edgecolors="black", zorder=3,
        )
        ax.annotate(str(node.id), (node.position[0], node.position[2]), fontsize=7,
                    xytext=(3, 3), textcoords="offset points")

    if highlight:
        hl = list(highlight)
        ax.scatter(
            [n.position[0] for n in hl], [n.position[2] for n in hl],
            s=160, facecolors="none", edgecolors="tab:green", linewidths=2, zorder=4,
        )

    ax.set_xlabel("x")
    ax.set_ylabel("z")
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(title)
    ax.grid(True)
    fig.tight_layout()
    fig.savefig(out_png, dpi=150)
    plt.close(fig)
