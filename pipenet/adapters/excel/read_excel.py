from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from pipenet.core.models.net import Net
from pipenet.core.models.node import Node, NodeType

logger = logging.getLogger(__name__)


# -----------------------------
# Excel contract
# -----------------------------
SHEET_NODES = "nodes"
SHEET_CONFIG = "config"

# Required columns (snake_case)
REQ_NODES = {"node_id", "type", "x", "y", "z", "neighbors"}
REQ_CONFIG = {"key", "value"}

TYPE_MAP = {
    "common": NodeType.COMMON,
    "valve": NodeType.VALVE,
    "source": NodeType.SOURCE,
}


def _norm_str(x: Any) -> str:
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return ""
    return str(x).strip()


def _norm_lower(x: Any) -> str:
    return _norm_str(x).lower()


def _require_columns(df: pd.DataFrame, required: set[str], sheet: str) -> None:
    missing = sorted(list(required - set(df.columns)))
    if missing:
        raise ValueError(f"Sheet '{sheet}' is missing required columns: {missing}")


def _as_float(x: Any, field: str, sheet: str, row_hint: str) -> float:
    try:
        if x is None or (isinstance(x, float) and pd.isna(x)) or (isinstance(x, str) and x.strip() == ""):
            raise ValueError("empty")
        return float(x)
    except Exception as e:
        raise ValueError(f"Invalid numeric value for '{field}' in sheet '{sheet}' ({row_hint}): {x!r}") from e


def _as_id(x: Any, sheet: str, row_hint: str) -> int:
    s = _norm_str(x)
    try:
        value = float(s)
    except ValueError as e:
        raise ValueError(f"Invalid node id in sheet '{sheet}' ({row_hint}): {x!r}") from e
    if not value.is_integer() or value <= 0:
        raise ValueError(f"Node id must be a positive integer in sheet '{sheet}' ({row_hint}): {x!r}")
    return int(value)


def _parse_neighbors(cell: Any, sheet: str, row_hint: str) -> List[int]:
    """
    Neighbors column: "2;3;7" -> [2, 3, 7]. A single number is read as one id.
    """
    s = _norm_str(cell)
    if not s:
        return []
    out: List[int] = []
    for part in s.replace(",", ";").split(";"):
        part = part.strip()
        if not part:
            continue
        nid = _as_id(part, sheet, row_hint)
        if nid not in out:
            out.append(nid)
    return out


def _parse_bool(cell: Any) -> bool:
    if isinstance(cell, bool):
        return cell
    return _norm_lower(cell) in ("1", "1.0", "true", "yes", "y", "closed")


def nodes_from_dataframe(df: pd.DataFrame, sheet: str = SHEET_NODES) -> List[Node]:
    """Builds Node objects (ids as given) from a node table."""
    _require_columns(df, REQ_NODES, sheet)

    ids = [_norm_str(x) for x in df["node_id"].tolist() if _norm_str(x)]
    dups = sorted({x for x in ids if ids.count(x) > 1})
    if dups:
        raise ValueError(f"Duplicate node_id in sheet '{sheet}': {dups}")

    nodes: List[Node] = []
    for _, r in df.iterrows():
        if not _norm_str(r["node_id"]):
            continue  # allow blank rows
        nid = _as_id(r["node_id"], sheet, f"row node_id={r['node_id']!r}")
        hint = f"node_id={nid}"

        type_s = _norm_lower(r["type"]) or "common"
        if type_s not in TYPE_MAP:
            raise ValueError(
                f"Invalid type in '{sheet}' ({hint}): {type_s!r}. Allowed: {sorted(TYPE_MAP.keys())}"
            )

        node = Node(
            id=nid,
            position=(
                _as_float(r["x"], "x", sheet, hint),
                _as_float(r["y"], "y", sheet, hint),
                _as_float(r["z"], "z", sheet, hint),
            ),
            neighbors=_parse_neighbors(r["neighbors"], sheet, hint),
            type=TYPE_MAP[type_s],
            closed=_parse_bool(r.get("closed", False)),
        )
        nodes.append(node)
    return nodes


def net_from_dataframe(df: pd.DataFrame, *, min_gap: float = 1.0) -> Net:
    """
    Builds a Net keeping the ids of the table. Neighbor ids that do not
    exist in the table are pruned.
    """
    net = Net(min_gap=min_gap)
    net.add_nodes(nodes_from_dataframe(df), generate_id=False)
    net.reset()
    return net


def load_net_from_excel(path: str) -> Tuple[Net, Dict[str, Any]]:
    """
    Reads 'nodes' (and optional 'config') from an Excel file and returns:
      - Net with the workbook ids
      - config dict from 'config' sheet (keys normalized), {} if absent
    """
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    if SHEET_NODES not in sheets:
        raise ValueError(f"Workbook {path!r} has no '{SHEET_NODES}' sheet")

    config: Dict[str, Any] = {}
    df_config = sheets.get(SHEET_CONFIG)
    if df_config is not None:
        _require_columns(df_config, REQ_CONFIG, SHEET_CONFIG)
        for _, r in df_config.iterrows():
            key = _norm_lower(r["key"])
            if not key:
                continue
            val = r["value"]
            if isinstance(val, float) and pd.isna(val):
                continue
            if isinstance(val, str):
                v = val.strip()
                if v == "":
                    continue
                try:
                    config[key] = float(v)
                except ValueError:
                    config[key] = v
                continue
            config[key] = val

    net = net_from_dataframe(sheets[SHEET_NODES])
    logger.info("Loaded %d node(s) from %s", len(net), path)
    return net, config


def net_to_dataframe(net: Net) -> pd.DataFrame:
    rows = []
    for n in net.get_node_list():
        rows.append({
            "node_id": n.id,
            "type": n.type.value,
            "x": n.position[0],
            "y": n.position[1],
            "z": n.position[2],
            "neighbors": ";".join(str(m) for m in n.neighbors),
            "closed": bool(n.closed),
        })
    return pd.DataFrame(rows, columns=["node_id", "type", "x", "y", "z", "neighbors", "closed"])


def write_net_to_excel(net: Net, path: str, config: Optional[Dict[str, Any]] = None) -> None:
    """Writes the net (and optional config) using the same contract as load_net_from_excel."""
    df_nodes = net_to_dataframe(net)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df_nodes.to_excel(writer, sheet_name=SHEET_NODES, index=False)
        if config:
            df_cfg = pd.DataFrame({"key": list(config.keys()), "value": list(config.values())})
            df_cfg.to_excel(writer, sheet_name=SHEET_CONFIG, index=False)
