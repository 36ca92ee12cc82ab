import sys
import logging
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from pipenet.adapters.excel.read_excel import load_net_from_excel
from pipenet.core.build.config import ModelConfig
from pipenet.core.build.validate import validate_net, raise_on_errors
from pipenet.core.analysis.closure import analyse_closed, close_node_at
from pipenet.core.analysis.control import related_control_nodes
from pipenet.core.geometry.net_mesh import refresh_net_mesh
from pipenet.core.models.node import NodeType
from pipenet.core.postprocess.summary import summarize_flow
from pipenet.core.postprocess.export import export_node_states_csv, export_mesh_obj
from pipenet.core.postprocess.plots import plot_net_state

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

if len(sys.argv) < 2:
    print("usage: run_excel_debug.py <net.xlsx> [out_folder] [x y z]")
    sys.exit(1)

EXCEL_INPUT = sys.argv[1]
OUT = Path(sys.argv[2] if len(sys.argv) > 2 else "out")
OUT.mkdir(parents=True, exist_ok=True)

# 1) Load workbook
net, config = load_net_from_excel(EXCEL_INPUT)
for issue in validate_net(net):
    logger.log(logging.ERROR if issue.level == "error" else logging.WARNING, "%s", issue.message)
raise_on_errors(validate_net(net))

cfg = ModelConfig.from_dict(config)

# 2) Flow + mesh
mesh = refresh_net_mesh(net, cfg, include_valve_state=False)
summary = summarize_flow(net)
print("Nodes:", summary.n_nodes, "edges:", summary.n_edges, "sources:", summary.n_sources)
print("Pressurized:", summary.pressurized_ids)
print("Blocked:", summary.blocked_ids)
if mesh is not None:
    print("Mesh vertices:", mesh.vertices.shape[0], "submeshes:", {k: len(v) // 3 for k, v in mesh.submeshes.items()})
    export_mesh_obj(mesh, str(OUT / "net.obj"))

export_node_states_csv(net, str(OUT / "node_states.csv"))
plot_net_state(net, out_png=str(OUT / "net_state.png"), mesh=mesh)

# ==========================
# Closing every valve one at a time
# ==========================
print("\n----VALVE IMPACT----")
closed_in_file = [n.id for n in net.get_node_list() if n.closed]
for valve in net.get_node_list(NodeType.VALVE):
    # valve closures survive reset(), start each case from the workbook state
    net.reset(include_valve_state=True)
    for nid in closed_in_file:
        net.set_closed(nid)
    affected = analyse_closed(net, [valve], source_pressure=cfg.flow.source_pressure)
    print(f"valve {valve.id}: {len(affected)} node(s) without pressure -> {[n.id for n in affected]}")

net.reset(include_valve_state=True)
for nid in closed_in_file:
    net.set_closed(nid)

# ==========================
# Break at a point (optional: x y z after the output folder)
# ==========================
if len(sys.argv) >= 6:
    point = tuple(float(v) for v in sys.argv[3:6])
    affected = close_node_at(
        net, point,
        gap_factor=cfg.locate.on_node_gap_factor,
        source_pressure=cfg.flow.source_pressure,
    )
    print(f"\nbreak at {point}: {[n.id for n in affected]}")
    net.reset(include_valve_state=True)
    for nid in closed_in_file:
        net.set_closed(nid)

# ==========================
# Control nodes for every common node
# ==========================
print("\n----CONTROL NODES----")
for node in net.get_node_list(NodeType.COMMON):
    ctrl = related_control_nodes(net, node)
    print(f"node {node.id}: {[c.id for c in ctrl]}")
