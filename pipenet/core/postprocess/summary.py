from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import pandas as pd

from pipenet.core.models.net import Net
from pipenet.core.models.node import NodeType


@dataclass(frozen=True)
class FlowSummary:
    n_nodes: int
    n_edges: int
    n_sources: int
    pressurized_ids: List[int]
    blocked_ids: List[int]       # pressure == 0
    closed_ids: List[int]
    max_pressure: float
    meta: Dict[str, object]

    @property
    def n_blocked(self) -> int:
        return len(self.blocked_ids)


def summarize_flow(net: Net) -> FlowSummary:
    """
    Summary of the current flow state (run start_flow / analyse_closed first).
    """
    nodes = net.get_node_list()
    pressures = [n.pressure for n in nodes]
    return FlowSummary(
        n_nodes=len(nodes),
        n_edges=len(net.edges()),
        n_sources=len(net.get_node_list(NodeType.SOURCE)),
        pressurized_ids=[n.id for n in nodes if n.pressure > 0],
        blocked_ids=[n.id for n in nodes if n.pressure == 0],
        closed_ids=[n.id for n in nodes if n.closed],
        max_pressure=float(max(pressures)) if pressures else 0.0,
        meta={"min_gap": net.min_gap},
    )


def node_states_dataframe(net: Net) -> pd.DataFrame:
    """
    One row per node:
      node_id, type, x, y, z, pressure, closed, blocked, neighbors, downstream
    """
    rows = []
    for n in net.get_node_list():
        rows.append({
            "node_id": n.id,
            "type": n.type.value,
            "x": n.position[0],
            "y": n.position[1],
            "z": n.position[2],
            "pressure": float(n.pressure),
            "closed": bool(n.closed),
            "blocked": n.pressure == 0,
            "neighbors": ";".join(str(m) for m in n.neighbors),
            "downstream": ";".join(str(m) for m in n.downstream),
        })
    return pd.DataFrame(rows, columns=[
        "node_id", "type", "x", "y", "z", "pressure", "closed", "blocked", "neighbors", "downstream",
    ])
