"""Core sampling and rasterization for the spinning torus."""

from __future__ import annotations

import asyncio
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

LUMINANCE_PALETTE = ".,-~:;=!*#$@"
BLANK = " "


@dataclass(frozen=True, slots=True)
class Rotation:
    """Rotation of the torus about the X axis (a) and the Z axis (b), in radians."""

    a: float = 0.0
    b: float = 0.0

    def advanced(self, delta_a: float, delta_b: float) -> "Rotation":
        return Rotation(self.a + delta_a, self.b + delta_b)


@dataclass(frozen=True, slots=True)
class RotationTrig:
    sin_a: float
    cos_a: float
    sin_b: float
    cos_b: float

    @classmethod
    def from_rotation(cls, rotation: Rotation) -> "RotationTrig":
        return cls(
            math.sin(rotation.a),
            math.cos(rotation.a),
            math.sin(rotation.b),
            math.cos(rotation.b),
        )


@dataclass(frozen=True, slots=True)
class ProjectedSample:
    x: int
    y: int
    depth: float
    luminance: int


def glyph_for_luminance(luminance: int, palette: str = LUMINANCE_PALETTE) -> str:
    """Map a luminance index to a glyph; anything not lit maps to the darkest glyph."""
    if luminance > 0:
        return palette[luminance % len(palette)]
    return palette[0]


def sweep_angles(step: float) -> List[float]:
    if step <= 0:
        raise ValueError("Angular step must be positive")
    angles: List[float] = []
    angle = 0.0
    while angle < math.tau:
        angles.append(angle)
        angle += step
    return angles


class FrameBuffers:
    """Depth and glyph buffers for one frame, indexed by ``x + width * y``."""

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError("FrameBuffers requires width and height >= 1")
        self.width = width
        self.height = height
        self.depth: List[float] = []
        self.glyphs: List[str] = []
        self.reset()

    def reset(self) -> None:
        size = self.width * self.height
        self.depth = [0.0] * size
        self.glyphs = [BLANK] * size

    def plot(self, x: int, y: int, depth: float, glyph: str) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        index = x + self.width * y
        if depth <= self.depth[index]:
            return False
        self.depth[index] = depth
        self.glyphs[index] = glyph
        return True

    def merge(self, other: "FrameBuffers") -> None:
        """Fold ``other`` into these buffers; on equal depth the existing cell is kept."""
        if (other.width, other.height) != (self.width, self.height):
            raise ValueError("Cannot merge frame buffers of different sizes")
        depth = self.depth
        glyphs = self.glyphs
        for index, other_depth in enumerate(other.depth):
            if other_depth > depth[index]:
                depth[index] = other_depth
                glyphs[index] = other.glyphs[index]

    def glyph_at(self, x: int, y: int) -> str:
        return self.glyphs[x + self.width * y]

    def depth_at(self, x: int, y: int) -> float:
        return self.depth[x + self.width * y]

    def rows(self) -> List[str]:
        width = self.width
        return ["".join(self.glyphs[start : start + width]) for start in range(0, width * self.height, width)]

    def to_text(self) -> str:
        return "\n".join(self.rows())


class TorusRenderer:
    """Software rasterizer turning a rotation into a frame of luminance glyphs."""

    def __init__(
        self,
        width: int = 40,
        height: int = 20,
        *,
        theta_step: float = 0.07,
        phi_step: float = 0.02,
        major_offset: float = 2.0,
        viewer_distance: float = 5.0,
        scale_x: float = 15.0,
        scale_y: float = 7.0,
        palette: str = LUMINANCE_PALETTE,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError("TorusRenderer requires width and height >= 1")
        if not palette:
            raise ValueError("Luminance palette must not be empty")
        # |sinφ·h·sinA + sinθ·cosA| never exceeds hypot(h, 1) and |h| <= |major_offset| + 1.
        reach = math.hypot(abs(major_offset) + 1.0, 1.0)
        if viewer_distance <= reach:
            raise ValueError(
                f"viewer_distance must exceed {reach:.3f} to keep the torus in front of the viewer"
            )
        self.width = width
        self.height = height
        self.major_offset = major_offset
        self.viewer_distance = viewer_distance
        self.scale_x = scale_x
        self.scale_y = scale_y
        self.palette = palette
        self._center_x = width / 2
        self._center_y = height / 2
        self._thetas = self._trig_table(sweep_angles(theta_step))
        self._phis = self._trig_table(sweep_angles(phi_step))
        self._async_chunks = 4

    @staticmethod
    def _trig_table(angles: Sequence[float]) -> List[Tuple[float, float, float]]:
        return [(angle, math.sin(angle), math.cos(angle)) for angle in angles]

    @property
    def sample_count(self) -> int:
        return len(self._thetas) * len(self._phis)

    def new_buffers(self) -> FrameBuffers:
        return FrameBuffers(self.width, self.height)

    def project(self, theta: float, phi: float, trig: RotationTrig) -> ProjectedSample:
        return ProjectedSample(
            *self._project(math.sin(theta), math.cos(theta), math.sin(phi), math.cos(phi), trig)
        )

    def render(self, rotation: Rotation, buffers: Optional[FrameBuffers] = None) -> FrameBuffers:
        frame = self._checked_buffers(buffers)
        frame.reset()
        self._sweep(frame, self._thetas, RotationTrig.from_rotation(rotation))
        return frame

    async def render_async(
        self,
        rotation: Rotation,
        buffers: Optional[FrameBuffers] = None,
        *,
        executor: ThreadPoolExecutor | None = None,
        chunks: int | None = None,
    ) -> FrameBuffers:
        frame = self._checked_buffers(buffers)
        frame.reset()
        trig = RotationTrig.from_rotation(rotation)

        chunk_count = max(1, int(chunks if chunks is not None else self._async_chunks))
        chunk_size = max(1, math.ceil(len(self._thetas) / chunk_count))
        theta_chunks = [
            self._thetas[start : start + chunk_size] for start in range(0, len(self._thetas), chunk_size)
        ]

        loop = asyncio.get_running_loop()
        local_executor = executor
        created_executor = False
        if local_executor is None:
            local_executor = ThreadPoolExecutor(max_workers=len(theta_chunks))
            created_executor = True

        try:
            tasks = [
                loop.run_in_executor(local_executor, self._render_chunk, theta_chunk, trig)
                for theta_chunk in theta_chunks
            ]
            results = await asyncio.gather(*tasks)
        finally:
            if created_executor:
                local_executor.shutdown(wait=True)

        # Chunks are merged in sweep order so ties resolve exactly as in render().
        for chunk_frame in results:
            frame.merge(chunk_frame)
        return frame

    # Internal helpers -------------------------------------------------

    def _checked_buffers(self, buffers: Optional[FrameBuffers]) -> FrameBuffers:
        if buffers is None:
            return self.new_buffers()
        if (buffers.width, buffers.height) != (self.width, self.height):
            raise ValueError(
                f"Buffers are {buffers.width}x{buffers.height}, renderer is {self.width}x{self.height}"
            )
        return buffers

    def _render_chunk(
        self, thetas: Sequence[Tuple[float, float, float]], trig: RotationTrig
    ) -> FrameBuffers:
        frame = self.new_buffers()
        self._sweep(frame, thetas, trig)
        return frame

    def _sweep(
        self,
        frame: FrameBuffers,
        thetas: Sequence[Tuple[float, float, float]],
        trig: RotationTrig,
    ) -> None:
        project = self._project
        plot = frame.plot
        palette = self.palette
        phis = self._phis

        for _, sin_theta, cos_theta in thetas:
            for _, sin_phi, cos_phi in phis:
                x, y, depth, luminance = project(sin_theta, cos_theta, sin_phi, cos_phi, trig)
                plot(x, y, depth, glyph_for_luminance(luminance, palette))

    def _project(
        self,
        sin_theta: float,
        cos_theta: float,
        sin_phi: float,
        cos_phi: float,
        trig: RotationTrig,
    ) -> Tuple[int, int, float, int]:
        sin_a, cos_a, sin_b, cos_b = trig.sin_a, trig.cos_a, trig.sin_b, trig.cos_b

        h = cos_theta + self.major_offset
        depth = 1.0 / (sin_phi * h * sin_a + sin_theta * cos_a + self.viewer_distance)
        t = sin_phi * h * cos_a - sin_theta * sin_a

        x = int(self._center_x + self.scale_x * depth * (cos_phi * h * cos_b - t * sin_b))
        y = int(self._center_y + self.scale_y * depth * (cos_phi * h * sin_b + t * cos_b))

        luminance = math.floor(
            8
            * (
                (sin_theta * sin_a - sin_phi * cos_theta * cos_a) * cos_b
                - sin_phi * cos_theta * sin_a
                - sin_theta * cos_a
                - cos_phi * cos_theta * sin_b
            )
        )
        return x, y, depth, luminance
