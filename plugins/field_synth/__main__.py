"""
Field Synthesis Viewer - Entry Point

Usage:
    python -m field_synth [preset] [--seed N] [--window WxH]

Examples:
    python -m field_synth
    python -m field_synth dense
    python -m field_synth calm --seed 7 --window 1200x800
    python -m field_synth classic --snap 600 --size 512
    python -m field_synth full --print --seed 3

Options:
    --seed N        Seed the random source (reproducible trees)
    --window WxH    Viewer window size
    --snap N        Headless: run N frames at 60fps, save a PNG, exit
    --size N        Frame size for --snap
    --print         Print the first generation's shader sources and exit
    --list          List presets

Use --list to see all available presets.
"""

import logging
import os
import sys

from .generation import GenerationLoop
from .generator import BuildContext
from .presets import PRESET_ORDER, get_preset, list_presets
from .renderer import NumpyRenderer

FRAME_TIME = 1.0 / 60


def snap(preset_key, size, frames, seed=None):
    """Headless mode: run N frames through the numpy renderer, save PNG, exit."""
    from PIL import Image

    screenshots_dir = os.path.join(os.getcwd(), "screenshots")
    os.makedirs(screenshots_dir, exist_ok=True)

    presets_to_snap = [preset_key] if preset_key != "all" else PRESET_ORDER

    for pkey in presets_to_snap:
        p = get_preset(pkey)
        if not p:
            print(f"Unknown preset: {pkey}")
            continue

        renderer = NumpyRenderer(size, size, factor=2)
        loop = GenerationLoop.from_preset(renderer, p, BuildContext.from_seed(seed))

        print(f"  {pkey}: running {frames} frames...", end="", flush=True)
        for i in range(frames):
            loop.tick(i * FRAME_TIME)
        generation = loop.generation
        loop.close()

        img = Image.fromarray(renderer.frame)
        path = os.path.join(screenshots_dir, f"field_{pkey}.png")
        img.save(path)
        img.save(os.path.join(screenshots_dir, "latest.png"))
        print(f" generation {generation}, saved: {path}")


def print_sources(preset_key, seed=None):
    """Print the vertex and fragment sources of the first generation."""
    renderer = NumpyRenderer(64, 64)
    loop = GenerationLoop.from_preset(renderer, get_preset(preset_key), BuildContext.from_seed(seed))
    loop.tick(0.0)
    print(loop.program.vertex_source)
    print(loop.program.fragment_source)
    loop.close()


def main():
    preset = "classic"
    seed = None
    size = 512
    win_w, win_h = 900, 900
    snap_frames = 0
    dump = False

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            size = int(args[i + 1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--window" and i + 1 < len(args):
            parts = args[i + 1].split("x")
            win_w, win_h = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_frames = int(args[i + 1])
            i += 2
        elif arg == "--print":
            dump = True
            i += 1
        elif arg == "--list":
            print("\nAvailable presets:")
            for key, name, desc in list_presets():
                print(f"    {key:12s} {name:16s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER or arg == "all":
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return

    logging.basicConfig(level=logging.INFO)

    if dump:
        print_sources(preset if preset != "all" else "classic", seed)
        return

    if snap_frames > 0:
        print(f"Headless snap mode: {preset} @ {size}x{size}, {snap_frames} frames")
        snap(preset, size, snap_frames, seed)
        return

    if preset == "all":
        preset = "classic"

    from .viewer import Viewer

    print("Starting Field Synthesis Viewer")
    print(f"  Preset: {preset}")
    print(f"  Window: {win_w}x{win_h}")
    print()

    viewer = Viewer(width=win_w, height=win_h, preset=preset, seed=seed)
    viewer.run()


if __name__ == "__main__":
    main()
