#!/usr/bin/env python3
"""
AR Asset Scripts

Command-line driver for the build-time asset generators:

    arfruit-assets fruits   # one coloured sphere .glb per catalog fruit
    arfruit-assets images   # one textured plane .glb per image, plus js/images.js
    arfruit-assets scan     # rebuild js/images.js from assets/models

A failing item is reported and the batch continues; the exit status is 1 if
anything failed.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fruit_session import FRUITS, Fruit, load_catalog
from glb_container import GlbFormatError, IOFailure
from logging_config import setup_logging
from manifest_builder import (
    IMAGE_EXTENSIONS,
    ImageModelRecord,
    ManifestEntry,
    has_extension,
    list_directory,
    render_manifest_js,
    scan,
    write_manifest,
)
from model_builders import build_sphere, encode, read_image

logger = logging.getLogger(__name__)

DEFAULT_MODELS_DIR = os.path.join('assets', 'models')
DEFAULT_IMAGES_DIR = os.path.join('assets', 'img')
DEFAULT_MANIFEST = os.path.join('js', 'images.js')


@dataclass
class BatchResult:
    """Outcome of a generator run."""
    written: List[Tuple[str, int]] = field(default_factory=list)  # (path, size)
    failed: List[Tuple[str, str]] = field(default_factory=list)  # (item, error)

    @property
    def ok(self) -> bool:
        return not self.failed


def write_bytes(data: bytes, path: str) -> None:
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise IOFailure(f"Cannot write {path}: {e}") from e


def ensure_dir(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise IOFailure(f"Cannot create directory {path}: {e}") from e


def _kb(size: int) -> str:
    return f"{size / 1024:.1f} KB"


def create_fruit_models(output_dir: str, catalog: Sequence[Fruit] = FRUITS,
                        segments: int = 16, rings: int = 12, radius: float = 0.5) -> BatchResult:
    """Generate a sphere model for every fruit in the catalog."""
    ensure_dir(output_dir)
    result = BatchResult()

    for fruit in catalog:
        output_path = os.path.join(output_dir, f"{fruit.id}.glb")
        try:
            mesh = build_sphere(radius=radius, segments=segments, rings=rings, color=fruit.base_color)
            data = encode(mesh)
            write_bytes(data, output_path)
        except GlbFormatError as e:
            logger.error("Failed to create %s: %s", output_path, e)
            result.failed.append((fruit.id, str(e)))
            continue
        result.written.append((output_path, len(data)))
        print(f"✓ Created {fruit.id}.glb ({_kb(len(data))})")

    return result


def generate_image_models(images_dir: str, models_dir: str, manifest_path: str,
                          model_prefix: str = 'assets/models',
                          image_prefix: str = 'assets/img') -> BatchResult:
    """Generate a textured plane model for every image and write the image manifest."""
    result = BatchResult()
    if not os.path.isdir(images_dir):
        ensure_dir(images_dir)
        print(f"Created {images_dir}. Add images there and run this command again.")
        return result

    ensure_dir(models_dir)
    records = []
    try:
        names = sorted(os.listdir(images_dir))
    except OSError as e:
        raise IOFailure(f"Cannot list {images_dir}: {e}") from e
    for name in names:
        if not has_extension(name, IMAGE_EXTENSIONS):
            continue
        model_name = os.path.splitext(name)[0] + '.glb'
        output_path = os.path.join(models_dir, model_name)
        print(f"Processing: {name}")
        try:
            data = encode(read_image(os.path.join(images_dir, name)))
            write_bytes(data, output_path)
        except GlbFormatError as e:
            logger.error("Failed to convert %s: %s", name, e)
            result.failed.append((name, str(e)))
            continue
        result.written.append((output_path, len(data)))
        records.append(ImageModelRecord(
            name=name,
            path=f"{image_prefix}/{name}",
            model=f"{model_prefix}/{model_name}",
        ))
        print(f"  ✓ Created: {model_name}")

    write_manifest(manifest_path, render_manifest_js(records, title='image list with AR models'))
    print(f"Generated {len(records)} AR models, updated {manifest_path}")
    return result


def scan_models(models_dir: str, manifest_path: str,
                model_prefix: str = 'assets/models') -> List[ManifestEntry]:
    """Scan the models directory and rewrite the models manifest."""
    if not os.path.isdir(models_dir):
        ensure_dir(models_dir)
        logger.info("Created models directory %s", models_dir)

    models = scan(list_directory(models_dir), model_prefix=model_prefix)
    print(f"Found {len(models)} models:")
    for model in models:
        print(f"   - {model.name} ({_kb(model.size)})")

    write_manifest(manifest_path, render_manifest_js(models))
    return models


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='arfruit-assets',
                                     description="Generate GLB models and the model manifest")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    parser.add_argument('--log-file', help="Also write logs to this file")
    subparsers = parser.add_subparsers(dest='command', required=True)

    fruits = subparsers.add_parser('fruits', help="Create one sphere model per fruit")
    fruits.add_argument('--output-dir', default=DEFAULT_MODELS_DIR)
    fruits.add_argument('--catalog', help="JSON file with a custom fruit catalog")
    fruits.add_argument('--segments', type=int, default=16)
    fruits.add_argument('--rings', type=int, default=12)
    fruits.add_argument('--radius', type=float, default=0.5)

    images = subparsers.add_parser('images', help="Create one plane model per image")
    images.add_argument('--images-dir', default=DEFAULT_IMAGES_DIR)
    images.add_argument('--models-dir', default=DEFAULT_MODELS_DIR)
    images.add_argument('--manifest', default=DEFAULT_MANIFEST)

    scan_cmd = subparsers.add_parser('scan', help="Rebuild the manifest from the models directory")
    scan_cmd.add_argument('--models-dir', default=DEFAULT_MODELS_DIR)
    scan_cmd.add_argument('--manifest', default=DEFAULT_MANIFEST)
    scan_cmd.add_argument('--prefix', default='assets/models', help="Model path prefix used by the page")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        if args.command == 'fruits':
            catalog = load_catalog(args.catalog) if args.catalog else FRUITS
            result = create_fruit_models(args.output_dir, catalog, segments=args.segments,
                                         rings=args.rings, radius=args.radius)
            print(f"Generated {len(result.written)} fruit models in {args.output_dir}")
            return 0 if result.ok else 1
        if args.command == 'images':
            result = generate_image_models(args.images_dir, args.models_dir, args.manifest)
            return 0 if result.ok else 1
        scan_models(args.models_dir, args.manifest, model_prefix=args.prefix)
        return 0
    except GlbFormatError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
