#!/usr/bin/env python3
"""Render a preset or a JSON scene description to an image file.

Usage:
    python -m examples.render_scene [options]

Options:
    --preset NAME       Preset scene (default: all_objects_alt_camera)
    --scene FILE        JSON scene file; overrides --preset
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: width / 1.5)
    --samples SAMPLES   Samples per pixel (default: 100)
    --max-depth DEPTH   Maximum bounces per path (default: 50)
    --seed SEED         Random seed (default: 0)
    --output OUTPUT     Output file, .ppm or .png (default: render.ppm)
    --arch {cpu,gpu}    Taichi backend (default: cpu)
    --quiet             Suppress progress output
    --verbose           Enable debug logging

A JSON scene file holds the dictionary written by SceneManager.to_dict()
plus a "camera" object with the PinholeCamera fields (aspect_ratio may be
omitted) and an optional "render" object with RenderConfig fields, which the
command-line options override.

Example:
    python -m examples.render_scene --preset sphere --samples 20 --output sphere.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

import taichi as ti

# Default image aspect ratio, matching the presets
ASPECT_RATIO = 3.0 / 2.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset or JSON scene with the shape ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--preset",
        type=str,
        default="all_objects_alt_camera",
        help="Preset scene to render (default: all_objects_alt_camera)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file to render instead of a preset",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels")
    parser.add_argument("--samples", type=int, default=None, help="Samples per pixel")
    parser.add_argument(
        "--max-depth", type=int, default=None, help="Maximum bounces per path"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--output",
        type=str,
        default="render.ppm",
        help="Output file path, .ppm or .png (default: render.ppm)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, base: dict[str, Any] | None = None):
    """Merge render settings from a scene file with command-line overrides."""
    from src.tracer.core.config import RenderConfig

    settings: dict[str, Any] = dict(base or {})
    overrides = {
        "width": args.width,
        "height": args.height,
        "samples_per_pixel": args.samples,
        "max_depth": args.max_depth,
        "seed": args.seed,
    }
    for key, value in overrides.items():
        if value is not None:
            settings[key] = value

    settings.setdefault("width", 400)
    if "height" not in settings:
        settings["height"] = max(1, int(settings["width"] / ASPECT_RATIO))

    return RenderConfig.from_dict(settings)


def load_scene_file(path: str, args: argparse.Namespace):
    """Load a scene, camera and render config from a JSON file."""
    from src.tracer.camera.pinhole import PinholeCamera
    from src.tracer.scene.manager import SceneManager

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if "camera" not in data:
        raise ValueError(f"Scene file {path} has no 'camera' entry")

    config = build_config(args, data.get("render"))

    scene = SceneManager()
    scene.from_dict(data)

    camera_data = dict(data["camera"])
    camera_data.setdefault("aspect_ratio", config.aspect_ratio)
    try:
        camera = PinholeCamera(
            lookfrom=tuple(camera_data["lookfrom"]),
            lookat=tuple(camera_data["lookat"]),
            vup=tuple(camera_data.get("vup", (0.0, 1.0, 0.0))),
            vfov=float(camera_data["vfov"]),
            aspect_ratio=float(camera_data["aspect_ratio"]),
            aperture=float(camera_data.get("aperture", 0.0)),
            focus_dist=float(camera_data.get("focus_dist", 1.0)),
        )
    except KeyError as exc:
        raise ValueError(f"Scene camera is missing field {exc}") from exc
    return scene, camera, config


def render_scene(args: argparse.Namespace) -> Path:
    """Render the scene selected by args and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.tracer.core.integrator import render
    from src.tracer.preview.export import save_image
    from src.tracer.scene.presets import create_preset

    quiet = args.quiet

    if args.scene is not None:
        scene, camera, config = load_scene_file(args.scene, args)
        label = args.scene
    else:
        config = build_config(args)
        scene, camera = create_preset(args.preset, config.aspect_ratio)
        label = args.preset

    if not quiet:
        print(f"Rendering {label} ({config.width}x{config.height})...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    image = render(scene, camera, config, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    save_image(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Taichi falls back to the CPU by itself when no GPU backend is available
    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        render_scene(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
