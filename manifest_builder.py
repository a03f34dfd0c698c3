#!/usr/bin/env python3
"""
Manifest Builder

Scans a listing of model files and renders the JavaScript data file
(js/images.js) that the AR page reads its selectable models from.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Sequence, Union

import crcmod

from glb_container import IOFailure

logger = logging.getLogger(__name__)

MODEL_EXTENSIONS = ('.glb', '.gltf')
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp')

COLOR_PALETTE = [
    '#ff6b6b', '#ffd93d', '#ff9f43', '#ee5a5a', '#f8d56b',
    '#26de81', '#a55eea', '#c4e538', '#7bed9f', '#ffa502',
    '#45aaf2', '#fd79a8', '#6c5ce7', '#00cec9', '#e17055'
]

# CRC-32 (IEEE), matches zlib.crc32
_crc32 = crcmod.mkCrcFun(0x104C11DB7, initCrc=0, rev=True, xorOut=0xFFFFFFFF)

MANIFEST_TEMPLATE = """/**
 * Auto-generated {title}
 * Generated: {generated}
 * Run 'npm run scan' to regenerate
 */

const {variable} = {payload};

// Export for use
if (typeof module !== 'undefined') {{
    module.exports = {variable};
}}
"""


@dataclass(frozen=True)
class DirectoryEntry:
    """One file in a directory listing."""
    name: str
    size: int = 0


@dataclass
class ManifestEntry:
    """A selectable model on the page."""
    id: str
    name: str
    model: str
    color: str
    size: int = 0

    def to_record(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "model": self.model, "color": self.color}


@dataclass
class ImageModelRecord:
    """An image together with the plane model generated from it."""
    name: str
    path: str
    model: str

    def to_record(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path, "model": self.model}


def _stem(filename: str) -> str:
    return os.path.splitext(os.path.basename(filename))[0]


def format_display_name(filename: str) -> str:
    """
    Convert a file name to a display name.

    e.g., "delicious_shawarma.glb" -> "Delicious Shawarma"
    """
    spaced = re.sub(r'[-_]', ' ', _stem(filename))
    return re.sub(r'\b\w', lambda m: m.group(0).upper(), spaced)


def make_model_id(filename: str) -> str:
    """Lower-cased stem with dashes and whitespace replaced by underscores."""
    return re.sub(r'[-\s]', '_', _stem(filename).lower())


def pick_color(model_id: str, palette: Sequence[str] = COLOR_PALETTE) -> str:
    """Pick a card colour for a model, stable across scans."""
    if not palette:
        raise ValueError("palette must not be empty")
    return palette[_crc32(model_id.encode('utf-8')) % len(palette)]


def has_extension(filename: str, extensions: Iterable[str]) -> bool:
    return os.path.splitext(filename)[1].lower() in extensions


def scan(listing: Iterable[Union[DirectoryEntry, str]],
         model_prefix: str = 'assets/models') -> List[ManifestEntry]:
    """
    Build manifest entries from a directory listing.

    Args:
        listing: DirectoryEntry objects or bare file names
        model_prefix: Path prefix the page uses to load the models

    Returns:
        One entry per model file, sorted by file name
    """
    entries = [DirectoryEntry(item) if isinstance(item, str) else item for item in listing]
    models = []
    for entry in sorted(entries, key=lambda e: e.name):
        if not has_extension(entry.name, MODEL_EXTENSIONS):
            continue
        model_id = make_model_id(entry.name)
        models.append(ManifestEntry(
            id=model_id,
            name=format_display_name(entry.name),
            model=f"{model_prefix.rstrip('/')}/{entry.name}",
            color=pick_color(model_id),
            size=entry.size,
        ))
    return models


def list_directory(path: str) -> List[DirectoryEntry]:
    """List the regular files of a directory; a missing directory is empty."""
    if not os.path.isdir(path):
        return []
    try:
        with os.scandir(path) as it:
            return [DirectoryEntry(e.name, e.stat().st_size) for e in it if e.is_file()]
    except OSError as e:
        raise IOFailure(f"Cannot list {path}: {e}") from e


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2026-02-03T22:09:18.150Z"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def render_manifest_js(records: Iterable[Any], generated_at: datetime = None,
                       variable: str = 'IMAGES', title: str = 'models list') -> str:
    """
    Render the manifest as a JavaScript file.

    Args:
        records: ManifestEntry/ImageModelRecord objects or plain dicts
        generated_at: Timestamp for the header comment (defaults to now)
        variable: Name of the global constant
        title: Description in the header comment
    """
    if generated_at is None:
        generated_at = datetime.now(timezone.utc)
    payload = [r.to_record() if hasattr(r, 'to_record') else dict(r) for r in records]
    return MANIFEST_TEMPLATE.format(
        title=title,
        generated=format_timestamp(generated_at),
        variable=variable,
        payload=json.dumps(payload, indent=4, ensure_ascii=False),
    )


def write_manifest(path: str, content: str) -> None:
    """Write the manifest file, creating parent directories."""
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
    except OSError as e:
        raise IOFailure(f"Cannot write manifest {path}: {e}") from e
    logger.info("Wrote manifest %s", path)
