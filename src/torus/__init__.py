"""ASCII rasterizer for a spinning torus."""

from .engine import (
    BLANK,
    LUMINANCE_PALETTE,
    FrameBuffers,
    ProjectedSample,
    Rotation,
    RotationTrig,
    TorusRenderer,
    glyph_for_luminance,
)
from .presets import AnimationPreset, classic_preset, get_preset, preset_names, wide_preset
from .terminal import COLOR_PALETTE, ColorCycler, TerminalController, compose_frame

__all__ = [
    "BLANK",
    "LUMINANCE_PALETTE",
    "FrameBuffers",
    "ProjectedSample",
    "Rotation",
    "RotationTrig",
    "TorusRenderer",
    "glyph_for_luminance",
    "AnimationPreset",
    "classic_preset",
    "wide_preset",
    "get_preset",
    "preset_names",
    "COLOR_PALETTE",
    "ColorCycler",
    "TerminalController",
    "compose_frame",
]
