"""Named configuration sets for the spinning torus."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from .engine import TorusRenderer


@dataclass(frozen=True, slots=True)
class AnimationPreset:
    """Geometry, sampling, speed and pacing constants used together."""

    name: str
    width: int
    height: int
    theta_step: float
    phi_step: float
    major_offset: float
    viewer_distance: float
    scale_x: float
    scale_y: float
    delta_a: float
    delta_b: float
    frame_delay: float
    color_interval: Optional[float]

    def with_overrides(self, **changes: object) -> "AnimationPreset":
        return replace(self, **{key: value for key, value in changes.items() if value is not None})

    def build_renderer(self) -> TorusRenderer:
        return TorusRenderer(
            self.width,
            self.height,
            theta_step=self.theta_step,
            phi_step=self.phi_step,
            major_offset=self.major_offset,
            viewer_distance=self.viewer_distance,
            scale_x=self.scale_x,
            scale_y=self.scale_y,
        )


def classic_preset() -> AnimationPreset:
    """Small frame, short delay, colour cycling once per second."""
    return AnimationPreset(
        name="classic",
        width=40,
        height=20,
        theta_step=0.07,
        phi_step=0.02,
        major_offset=2.0,
        viewer_distance=5.0,
        scale_x=15.0,
        scale_y=7.0,
        delta_a=0.07,
        delta_b=0.03,
        frame_delay=0.05,
        color_interval=1.0,
    )


def wide_preset() -> AnimationPreset:
    """Full-width frame, slower spin, longer delay and a single colour."""
    return AnimationPreset(
        name="wide",
        width=80,
        height=22,
        theta_step=0.07,
        phi_step=0.02,
        major_offset=2.0,
        viewer_distance=5.0,
        scale_x=26.0,
        scale_y=13.0,
        delta_a=0.04,
        delta_b=0.02,
        frame_delay=0.08,
        color_interval=None,
    )


_PRESETS: Dict[str, Callable[[], AnimationPreset]] = {
    "classic": classic_preset,
    "wide": wide_preset,
}


def preset_names() -> List[str]:
    return list(_PRESETS)


def get_preset(name: str) -> AnimationPreset:
    try:
        factory = _PRESETS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown preset '{name}'") from exc
    return factory()
