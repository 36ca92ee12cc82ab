from __future__ import annotations

import pandas as pd
import pytest

from pipenet.adapters.excel.read_excel import (
    load_net_from_excel,
    net_from_dataframe,
    net_to_dataframe,
    nodes_from_dataframe,
    write_net_to_excel,
)
from pipenet.core.build.config import ModelConfig
from pipenet.core.models.node import Node, NodeType


def _nodes_df(**overrides) -> pd.DataFrame:
    data = {
        "node_id": [1, 2, 4, None],
        "type": ["Source", "common", " VALVE ", None],
        "x": [0.0, 10.0, 20.0, None],
        "y": [0.0, 0.0, 0.0, None],
        "z": [0.0, 0.0, 0.0, None],
        "neighbors": ["2", "1;4", "2; 8", None],
        "closed": [None, "", "yes", None],
    }
    data.update(overrides)
    return pd.DataFrame(data)


def test_nodes_from_dataframe_parses_rows():
    nodes = nodes_from_dataframe(_nodes_df())

    assert [n.id for n in nodes] == [1, 2, 4]
    assert [n.type for n in nodes] == [NodeType.SOURCE, NodeType.COMMON, NodeType.VALVE]
    assert nodes[1].neighbors == [1, 4]
    assert nodes[2].neighbors == [2, 8]
    assert nodes[2].closed is True
    assert nodes[0].closed is False
    assert nodes[1].position == (10.0, 0.0, 0.0)


def test_net_from_dataframe_keeps_ids_and_prunes_dangling():
    net = net_from_dataframe(_nodes_df())

    assert sorted(net.nodes) == [1, 2, 4]
    assert net.get_node(4).neighbors == [2]
    # counter continues after the highest workbook id
    assert net.add_node(Node()).id == 5


def test_missing_columns_are_reported():
    df = _nodes_df().drop(columns=["neighbors"])
    with pytest.raises(ValueError, match="missing required columns"):
        nodes_from_dataframe(df)


def test_bad_type_is_rejected():
    with pytest.raises(ValueError, match="Invalid type"):
        nodes_from_dataframe(_nodes_df(type=["source", "pump", "valve", None]))


def test_duplicate_ids_are_rejected():
    with pytest.raises(ValueError, match="Duplicate node_id"):
        nodes_from_dataframe(_nodes_df(node_id=[1, 2, 2, None]))


def test_bad_numbers_are_rejected():
    with pytest.raises(ValueError, match="Invalid numeric value for 'x'"):
        nodes_from_dataframe(_nodes_df(x=[0.0, "ten", 20.0, None]))
    with pytest.raises(ValueError, match="positive integer"):
        nodes_from_dataframe(_nodes_df(neighbors=["2", "1;0", "2", None]))


def test_net_to_dataframe_lists_each_node():
    net = net_from_dataframe(_nodes_df())
    df = net_to_dataframe(net)

    assert df["node_id"].tolist() == [1, 2, 4]
    assert df["type"].tolist() == ["source", "common", "valve"]
    assert df["neighbors"].tolist() == ["2", "1;4", "2"]
    assert df["closed"].tolist() == [False, False, True]


def test_workbook_write_then_load(tmp_path, branched_net):
    branched_net.set_closed(3)
    path = tmp_path / "net.xlsx"

    write_net_to_excel(branched_net, str(path), config={"width": 0.25, "swap_uv": "no"})
    net, config = load_net_from_excel(str(path))

    assert net.edges() == branched_net.edges()
    assert [n.type for n in net] == [n.type for n in branched_net]
    assert net.get_node(3).closed is True
    assert net.get_node(6).position == (10.0, 0.0, 10.0)

    cfg = ModelConfig.from_dict(config)
    assert cfg.mesh.line_width == 0.25
    assert cfg.mesh.swap_uv is False


def test_workbook_without_nodes_sheet(tmp_path):
    path = tmp_path / "empty.xlsx"
    pd.DataFrame({"key": ["width"], "value": [1]}).to_excel(path, sheet_name="config", index=False)

    with pytest.raises(ValueError, match="no 'nodes' sheet"):
        load_net_from_excel(str(path))
