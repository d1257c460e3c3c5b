#!/usr/bin/env python3
"""
Spectrace - A Python spectral path tracer

Main entry point for rendering scene files.
"""

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

from spectrace.exceptions import ConfigurationError, InvalidScene
from spectrace.renderer import Renderer
from spectrace.scene_parser import SceneParser

logger = logging.getLogger('spectrace')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Spectrace - A Python spectral path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py scenes/spheres.toml render.png
  python main.py scenes/spheres.toml hd_render.png --width 1920 --height 1080 --samples 500
  python main.py scenes/spheres.toml render.hdr --threads 8 --seed 42
        '''
    )

    parser.add_argument('scene', type=str, help='Scene file (TOML, YAML or JSON)')
    parser.add_argument('output', type=str, help='Output image; .hdr keeps linear radiance')
    # Unset options keep the value from the scene's [render] table
    parser.add_argument('--width', type=int, help='Image width (default: 800)')
    parser.add_argument('--height', type=int, help='Image height (default: 600)')
    parser.add_argument('--samples', type=int, help='Samples per pixel (default: 100)')
    parser.add_argument('--depth', type=int, help='Max path depth (default: 50)')
    parser.add_argument('--threads', type=int, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, help='Random seed (default: 0)')
    parser.add_argument('--gamma', type=float, help='Plain gamma instead of the sRGB curve')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug messages')
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    overrides = {
        'width': args.width,
        'height': args.height,
        'samples_per_pixel': args.samples,
        'max_depth': args.depth,
        'num_threads': args.threads,
        'seed': args.seed,
        'gamma': args.gamma,
    }

    try:
        scene_parser = SceneParser()
        scene = scene_parser.parse_file(args.scene)
        settings = dataclasses.replace(
            scene_parser.settings,
            **{name: value for name, value in overrides.items() if value is not None},
        )
    except (InvalidScene, ConfigurationError) as error:
        logger.error("%s", error)
        return 1

    logger.info("Scene %s: %d surfaces, %s", args.scene, len(scene), scene.camera)

    renderer = Renderer(settings)

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', file=sys.stderr, flush=True)

    renderer.set_progress_callback(progress_callback)

    start_time = time.time()
    image = renderer.render(scene)
    elapsed = time.time() - start_time
    print(file=sys.stderr)
    logger.info(
        "Paths per second: %.0f",
        settings.width * settings.height * settings.samples_per_pixel / max(elapsed, 1e-9),
    )

    # Ensure output directory exists
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    renderer.save_image(image, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
