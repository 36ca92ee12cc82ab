from __future__ import annotations

import pytest

from pipenet.conftest import make_net
from pipenet.core.build.config import FlowConfig, MeshConfig, ModelConfig
from pipenet.core.build.validate import NetValidationError, raise_on_errors, validate_net
from pipenet.core.models.net import Net
from pipenet.core.models.node import Node, NodeType


# ============================================================
# config
# ============================================================

def test_model_config_defaults():
    cfg = ModelConfig()
    assert cfg.flow.source_pressure == 100.0
    assert cfg.locate.on_node_gap_factor == 2.0
    assert cfg.mesh.line_width == 0.5
    assert cfg.mesh.min_gap == 1.0
    assert cfg.mesh.swap_uv is True
    assert cfg.mesh.uv_scale == (0.4, 1.0)


def test_model_config_from_sheet_like_dict():
    cfg = ModelConfig.from_dict({
        "Source_Pressure": "80",
        " width ": 0.25,
        "swap_uv": "no",
        "flip_v": "yes",
        "uv_scale": "0.5;2",
        "uv_offset": [1, 0],
        "gap_factor": 3,
        "version": 2,
    })

    assert cfg.flow.source_pressure == 80.0
    assert cfg.mesh.line_width == 0.25
    assert cfg.mesh.min_gap == 0.5
    assert cfg.mesh.swap_uv is False
    assert cfg.mesh.flip_v is True
    assert cfg.mesh.flip_u is False
    assert cfg.mesh.uv_scale == (0.5, 2.0)
    assert cfg.mesh.uv_offset == (1.0, 0.0)
    assert cfg.locate.on_node_gap_factor == 3.0
    assert cfg.version == 2


@pytest.mark.parametrize(
    "raw",
    [
        {"source_pressure": 0},
        {"line_width": -1},
        {"uv_scale": "1;2;3"},
        {"gap_factor": 0},
        {"version": 0},
    ],
)
def test_model_config_rejects_bad_values(raw):
    with pytest.raises(ValueError):
        ModelConfig.from_dict(raw)


def test_sub_configs_validate_directly():
    with pytest.raises(ValueError):
        FlowConfig(source_pressure=-5).validate()
    with pytest.raises(ValueError):
        MeshConfig(line_width=0).validate()


# ============================================================
# validate
# ============================================================

def _levels(issues):
    return sorted(i.level for i in issues)


def test_clean_net_has_no_issues(branched_net):
    assert validate_net(branched_net) == []


def test_empty_net_is_an_error():
    issues = validate_net(Net())
    assert _levels(issues) == ["error"]
    with pytest.raises(NetValidationError):
        raise_on_errors(issues)


def test_structural_errors_are_reported():
    net = Net()
    net.add_node(Node(id=1, type=NodeType.SOURCE, neighbors=[2, 1]), generate_id=False)
    net.add_node(Node(id=2, neighbors=[], downstream=[1]), generate_id=False)

    messages = [i.message for i in validate_net(net) if i.level == "error"]

    assert any("connected to itself" in m for m in messages)
    assert any("not symmetric" in m for m in messages)
    assert any("is not a neighbor" in m for m in messages)

    with pytest.raises(NetValidationError) as exc:
        raise_on_errors(validate_net(net))
    assert "not symmetric" in str(exc.value)


def test_warnings_do_not_raise():
    net = make_net(
        [(NodeType.COMMON, (0, 0, 0)), (NodeType.COMMON, (10, 0, 0)), (NodeType.COMMON, (50, 0, 0))],
        [(1, 2)],
    )
    net.get_node(2).neighbors.append(9)
    net.get_node(1).closed = True

    issues = validate_net(net)
    messages = " ".join(i.message for i in issues)

    assert {i.level for i in issues} == {"warning"}
    assert "unknown neighbor id=9" in messages
    assert "common node marked closed" in messages
    assert "no source node" in messages
    assert "2 disconnected components" in messages
    raise_on_errors(issues)


def test_negative_pressure_is_an_error(valve_chain):
    valve_chain.get_node(2).pressure = -1.0
    assert _levels(validate_net(valve_chain)) == ["error"]


def test_non_positive_id_is_a_warning():
    net = make_net([(NodeType.SOURCE, (0, 0, 0)), (NodeType.COMMON, (10, 0, 0))], [(1, 2)])
    net.add_node(Node(id=0, position=(20, 0, 0), neighbors=[2]), generate_id=False)
    net.get_node(2).neighbors.append(0)

    issues = validate_net(net)
    assert [i.message for i in issues] == ["Node(id=0) has a non-positive id."]
    raise_on_errors(issues)
