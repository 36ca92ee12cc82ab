# test_postprocess.py
from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pandas as pd

from pipenet.core.analysis.control import related_control_nodes
from pipenet.core.analysis.flow import start_flow
from pipenet.core.geometry.net_mesh import refresh_net_mesh
from pipenet.core.postprocess.export import (
    export_mesh_csv,
    export_mesh_excel,
    export_mesh_obj,
    export_node_states_csv,
    mesh_dataframes,
)
from pipenet.core.postprocess.plots import plot_net_state
from pipenet.core.postprocess.summary import node_states_dataframe, summarize_flow


# ============================================================
# SUMMARY
# ============================================================

def test_summarize_flow(valve_chain):
    start_flow(valve_chain)
    s = summarize_flow(valve_chain)

    assert (s.n_nodes, s.n_edges, s.n_sources) == (3, 2, 1)
    assert s.pressurized_ids == [1, 2]
    assert s.blocked_ids == [3]
    assert s.n_blocked == 1
    assert s.closed_ids == [3]
    assert s.max_pressure == 100.0
    assert s.meta["min_gap"] == 1.0


def test_node_states_dataframe(branched_net):
    branched_net.set_closed(3)
    start_flow(branched_net)
    df = node_states_dataframe(branched_net)

    assert len(df) == 8
    assert df.loc[df["node_id"] == 2, "downstream"].item() == "3;6"
    assert df.loc[df["blocked"], "node_id"].tolist() == [3, 4, 5]
    assert df.loc[df["closed"], "type"].tolist() == ["valve"]


# ============================================================
# EXPORT
# ============================================================

def test_mesh_dataframes_and_csv(tmp_path, valve_chain):
    mesh = refresh_net_mesh(valve_chain)
    df_v, df_t = mesh_dataframes(mesh)

    assert list(df_v.columns) == ["x", "y", "z", "u", "v"]
    assert len(df_v) == 8
    assert df_t["submesh"].unique().tolist() == ["main"]
    assert df_t.iloc[0][["i0", "i1", "i2"]].tolist() == [2, 1, 0]

    vcsv, tcsv = tmp_path / "v.csv", tmp_path / "t.csv"
    export_mesh_csv(mesh, str(vcsv), str(tcsv))
    assert len(pd.read_csv(vcsv)) == 8
    assert len(pd.read_csv(tcsv)) == 4


def test_export_mesh_obj_is_one_based(tmp_path, valve_chain):
    mesh = refresh_net_mesh(valve_chain)
    path = tmp_path / "net.obj"
    export_mesh_obj(mesh, str(path))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert sum(1 for ln in lines if ln.startswith("v ")) == 8
    assert sum(1 for ln in lines if ln.startswith("vt ")) == 8
    assert "g main" in lines
    faces = [ln for ln in lines if ln.startswith("f ")]
    assert len(faces) == 4
    assert faces[0] == "f 3/3 2/2 1/1"


def test_export_excel_and_node_states(tmp_path, branched_net):
    branched_net.set_closed(3)
    mesh = refresh_net_mesh(branched_net)

    xlsx = tmp_path / "mesh.xlsx"
    export_mesh_excel(mesh, str(xlsx))
    sheets = pd.read_excel(xlsx, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"vertices", "triangles"}
    assert sheets["triangles"]["submesh"].value_counts().to_dict() == {"main": 10, "block": 4}

    states = tmp_path / "states.csv"
    export_node_states_csv(branched_net, str(states))
    assert pd.read_csv(states)["pressure"].tolist() == [100.0, 100.0, 0.0, 0.0, 0.0, 100.0, 100.0, 100.0]


# ============================================================
# PLOTS
# ============================================================

def test_plot_net_state_writes_png(tmp_path, branched_net):
    branched_net.set_closed(3)
    mesh = refresh_net_mesh(branched_net)
    controls = related_control_nodes(branched_net, 4)

    out = tmp_path / "plots" / "net.png"
    plot_net_state(branched_net, out_png=str(out), title="closed valve 3", highlight=controls, mesh=mesh)

    assert out.exists()
    assert out.stat().st_size > 0
