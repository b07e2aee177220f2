"""Entry point for the spinning ASCII torus."""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional, Sequence, TextIO

from .torus.engine import FrameBuffers, Rotation, TorusRenderer
from .torus.presets import AnimationPreset, get_preset, preset_names
from .torus.terminal import ColorCycler, TerminalController, compose_frame


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spinning ASCII torus for your terminal")
    parser.add_argument(
        "--preset",
        type=str,
        default="classic",
        choices=preset_names(),
        help="Named set of size, speed and pacing constants (default: classic)",
    )
    parser.add_argument("--delay", type=float, default=None, help="Seconds to sleep between frames")
    parser.add_argument("--width", type=int, default=None, help="Frame width in characters")
    parser.add_argument("--height", type=int, default=None, help="Frame height in characters")
    parser.add_argument(
        "--frames",
        type=int,
        default=0,
        help="Run for a fixed number of frames (0 = infinite)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Print plain glyphs without ANSI colour codes",
    )
    parser.add_argument(
        "--async",
        dest="async_mode",
        action="store_true",
        help="Split the surface sweep across a thread pool",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size for --async (default: CPU count, at most 4)",
    )
    return parser.parse_args(argv)


@dataclass
class RuntimeConfig:
    preset: AnimationPreset
    renderer: TorusRenderer
    controller: TerminalController
    cycler: Optional[ColorCycler]
    frame_delay: float
    frames: int
    warnings: list[str]
    async_mode: bool
    async_workers: int


def _setup_runtime(args: argparse.Namespace, stream: Optional[TextIO] = None) -> RuntimeConfig:
    warnings: list[str] = []

    preset = get_preset(args.preset).with_overrides(width=args.width, height=args.height)
    renderer = preset.build_renderer()

    frame_delay = preset.frame_delay if args.delay is None else args.delay
    if frame_delay < 0:
        warnings.append(f"Negative delay {frame_delay} clamped to 0")
        frame_delay = 0.0

    cycler: Optional[ColorCycler] = None
    if not args.no_color:
        cycler = ColorCycler(interval=preset.color_interval)

    controller = TerminalController(stream=stream)
    if stream is None and not controller.fits(preset.width, preset.height):
        columns, lines = controller.size_tuple()
        warnings.append(
            f"Frame {preset.width}x{preset.height} is larger than the terminal ({columns}x{lines}); "
            "output will wrap"
        )

    frames = max(0, args.frames)

    async_mode = bool(getattr(args, "async_mode", False))
    cpu_count = os.cpu_count() or 2
    async_workers = args.workers if args.workers is not None else min(cpu_count, 4)
    if async_workers < 1:
        warnings.append(f"Worker count {async_workers} raised to 1")
        async_workers = 1
    if async_mode and async_workers == 1:
        warnings.append("Async mode with a single worker renders sequentially")

    return RuntimeConfig(
        preset=preset,
        renderer=renderer,
        controller=controller,
        cycler=cycler,
        frame_delay=frame_delay,
        frames=frames,
        warnings=warnings,
        async_mode=async_mode,
        async_workers=async_workers,
    )


def _emit_warnings(warnings: Sequence[str]) -> None:
    if not warnings:
        return
    for warning in warnings:
        sys.stderr.write(f"[donut] {warning}\n")
    sys.stderr.flush()


def _raise_interrupt(signum: int, frame: Any) -> None:
    raise KeyboardInterrupt


def _install_signal_handlers() -> Any:
    """Route SIGTERM through the KeyboardInterrupt path so the cursor gets restored."""
    return signal.signal(signal.SIGTERM, _raise_interrupt)


def _present(config: RuntimeConfig, frame: FrameBuffers) -> None:
    color = config.cycler.current() if config.cycler is not None else None
    config.controller.draw(compose_frame(frame.rows(), color))


def _say_goodbye(config: RuntimeConfig) -> None:
    config.controller.restore()
    out = config.controller.stream
    out.write("\nInterrupted. Bye!\n")
    out.flush()


def _run_sync_loop(config: RuntimeConfig) -> None:
    preset = config.preset
    renderer = config.renderer

    with config.controller:
        rotation = Rotation()
        buffers = renderer.new_buffers()
        frame_counter = 0

        try:
            while True:
                frame = renderer.render(rotation, buffers)
                _present(config, frame)
                rotation = rotation.advanced(preset.delta_a, preset.delta_b)

                frame_counter += 1
                if config.frames and frame_counter >= config.frames:
                    break

                if config.frame_delay > 0:
                    time.sleep(config.frame_delay)
        except KeyboardInterrupt:  # pragma: no cover - interactive loop
            _say_goodbye(config)


async def _run_async_loop(config: RuntimeConfig) -> None:
    preset = config.preset
    renderer = config.renderer

    try:
        with config.controller:
            rotation = Rotation()
            buffers = renderer.new_buffers()
            frame_counter = 0

            with ThreadPoolExecutor(max_workers=config.async_workers) as executor:
                while True:
                    frame = await renderer.render_async(
                        rotation,
                        buffers,
                        executor=executor,
                        chunks=config.async_workers,
                    )
                    _present(config, frame)
                    rotation = rotation.advanced(preset.delta_a, preset.delta_b)

                    frame_counter += 1
                    if config.frames and frame_counter >= config.frames:
                        break

                    if config.frame_delay > 0:
                        await asyncio.sleep(config.frame_delay)
    except (KeyboardInterrupt, asyncio.CancelledError):  # pragma: no cover - interactive loop
        _say_goodbye(config)


def run(argv: Optional[Sequence[str]] = None, stream: Optional[TextIO] = None) -> None:
    args = parse_arguments(argv)
    config = _setup_runtime(args, stream)
    _emit_warnings(config.warnings)

    previous_handler = _install_signal_handlers()
    try:
        if config.async_mode:
            try:
                asyncio.run(_run_async_loop(config))
            except KeyboardInterrupt:  # pragma: no cover - interrupt outside the task
                config.controller.restore()
        else:
            _run_sync_loop(config)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)


def main() -> None:
    run()


if __name__ == "__main__":
    main()
