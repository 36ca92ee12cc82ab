# pipenet/core/build/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


def _as_bool(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "y", "on")
    return bool(x)


def _as_pair(x: Any, default: Tuple[float, float]) -> Tuple[float, float]:
    """Accepts (a, b), [a, b] or "a;b" / "a,b"."""
    if x is None:
        return default
    if isinstance(x, str):
        parts = [p.strip() for p in x.replace(",", ";").split(";") if p.strip()]
    else:
        parts = list(x)
    if len(parts) != 2:
        raise ValueError(f"Expected a pair of numbers, got {x!r}")
    return float(parts[0]), float(parts[1])


# ============================================================
# FlowConfig
# ============================================================

@dataclass(frozen=True)
class FlowConfig:
    """
    Pressure propagation settings.
    """
    source_pressure: float = 100.0

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "FlowConfig":
        p = cfg.get("source_pressure", cfg.get("pressure", 100.0))
        out = FlowConfig(source_pressure=float(p))
        out.validate()
        return out

    def validate(self) -> None:
        if self.source_pressure <= 0:
            raise ValueError(f"FlowConfig.source_pressure must be > 0 (got {self.source_pressure})")


# ============================================================
# LocateConfig
# ============================================================

@dataclass(frozen=True)
class LocateConfig:
    """
    Point-to-network query settings.
    A point closer than on_node_gap_factor * net.min_gap to a node is "on" it.
    """
    on_node_gap_factor: float = 2.0

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "LocateConfig":
        f = cfg.get("on_node_gap_factor", cfg.get("gap_factor", 2.0))
        out = LocateConfig(on_node_gap_factor=float(f))
        out.validate()
        return out

    def validate(self) -> None:
        if self.on_node_gap_factor <= 0:
            raise ValueError(f"LocateConfig.on_node_gap_factor must be > 0 (got {self.on_node_gap_factor})")


# ============================================================
# MeshConfig
# ============================================================

@dataclass(frozen=True)
class MeshConfig:
    """
    Ribbon mesh and UV layout.
    line_width is the half width of the ribbon (offset from the pipe axis).
    """
    line_width: float = 0.5

    swap_uv: bool = True
    flip_u: bool = False
    flip_v: bool = False
    uv_scale: Tuple[float, float] = (0.4, 1.0)
    uv_offset: Tuple[float, float] = (0.0, 0.0)

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "MeshConfig":
        out = MeshConfig(
            line_width=float(cfg.get("line_width", cfg.get("width", 0.5))),
            swap_uv=_as_bool(cfg.get("swap_uv", True)),
            flip_u=_as_bool(cfg.get("flip_u", False)),
            flip_v=_as_bool(cfg.get("flip_v", False)),
            uv_scale=_as_pair(cfg.get("uv_scale"), (0.4, 1.0)),
            uv_offset=_as_pair(cfg.get("uv_offset"), (0.0, 0.0)),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.line_width <= 0:
            raise ValueError(f"MeshConfig.line_width must be > 0 (got {self.line_width})")
        if len(self.uv_scale) != 2 or len(self.uv_offset) != 2:
            raise ValueError("MeshConfig.uv_scale / uv_offset must be pairs")

    @property
    def min_gap(self) -> float:
        """Net.min_gap derived from the ribbon width."""
        return self.line_width * 2.0


# ============================================================
# ModelConfig (aggregator)
# ============================================================

@dataclass(frozen=True)
class ModelConfig:
    flow: FlowConfig = field(default_factory=FlowConfig)
    locate: LocateConfig = field(default_factory=LocateConfig)
    mesh: MeshConfig = field(default_factory=MeshConfig)
    version: int = 1

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "ModelConfig":
        cfg = {str(k).strip().lower(): v for k, v in cfg.items()}
        out = ModelConfig(
            flow=FlowConfig.from_dict(cfg),
            locate=LocateConfig.from_dict(cfg),
            mesh=MeshConfig.from_dict(cfg),
            version=int(cfg.get("config_version", cfg.get("version", 1))),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.version <= 0:
            raise ValueError(f"ModelConfig.version must be > 0 (got {self.version})")

        self.flow.validate()
        self.locate.validate()
        self.mesh.validate()
