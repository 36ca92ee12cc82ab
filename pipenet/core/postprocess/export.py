from __future__ import annotations

from typing import Tuple, Union

import pandas as pd

from pipenet.core.geometry.mesh import PipeMesh
from pipenet.core.geometry.net_mesh import NetMesh
from pipenet.core.models.net import Net
from pipenet.core.postprocess.summary import node_states_dataframe

AnyMesh = Union[PipeMesh, NetMesh]


def export_node_states_csv(net: Net, path_csv: str) -> None:
    """
    Export per-node flow state to CSV.
    Columns: see node_states_dataframe.
    """
    node_states_dataframe(net).to_csv(path_csv, index=False)


def mesh_dataframes(mesh: AnyMesh) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Returns (vertices, triangles):
      vertices:  x, y, z, u, v
      triangles: submesh, i0, i1, i2
    """
    df_v = pd.DataFrame({
        "x": mesh.vertices[:, 0],
        "y": mesh.vertices[:, 1],
        "z": mesh.vertices[:, 2],
        "u": mesh.uvs[:, 0],
        "v": mesh.uvs[:, 1],
    })

    if isinstance(mesh, NetMesh):
        parts = mesh.submeshes.items()
    else:
        parts = [("main", mesh.triangles)]

    rows = []
    for name, tris in parts:
        for k in range(0, len(tris), 3):
            rows.append({"submesh": name, "i0": int(tris[k]), "i1": int(tris[k + 1]), "i2": int(tris[k + 2])})
    df_t = pd.DataFrame(rows, columns=["submesh", "i0", "i1", "i2"])
    return df_v, df_t


def export_mesh_csv(mesh: AnyMesh, path_vertices_csv: str, path_triangles_csv: str) -> None:
    df_v, df_t = mesh_dataframes(mesh)
    df_v.to_csv(path_vertices_csv, index=False)
    df_t.to_csv(path_triangles_csv, index=False)


def export_mesh_excel(mesh: AnyMesh, path_xlsx: str) -> None:
    """
    Export mesh to Excel, sheets 'vertices' and 'triangles'.
    """
    df_v, df_t = mesh_dataframes(mesh)
    with pd.ExcelWriter(path_xlsx, engine="openpyxl") as writer:
        df_v.to_excel(writer, sheet_name="vertices", index=False)
        df_t.to_excel(writer, sheet_name="triangles", index=False)


def export_mesh_obj(mesh: AnyMesh, path_obj: str) -> None:
    """
    Wavefront OBJ with texture coordinates, one group per submesh.
    OBJ indices are 1-based.
    """
    df_v, df_t = mesh_dataframes(mesh)
    lines = ["# pipe net mesh"]
    for r in df_v.itertuples(index=False):
        lines.append(f"v {r.x:.6f} {r.y:.6f} {r.z:.6f}")
    for r in df_v.itertuples(index=False):
        lines.append(f"vt {r.u:.6f} {r.v:.6f}")

    for name, group in df_t.groupby("submesh", sort=False):
        lines.append(f"g {name}")
        for r in group.itertuples(index=False):
            a, b, c = r.i0 + 1, r.i1 + 1, r.i2 + 1
            lines.append(f"f {a}/{a} {b}/{b} {c}/{c}")

    with open(path_obj, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
