#!/usr/bin/env python3
"""
Model Builders

Builds the two placeholder model kinds used by the AR page and encodes them
as GLB containers:

- a coloured UV-sphere (one per fruit)
- a flat, double-sided quad textured with an embedded image
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import List, Tuple, Union

from glb_container import (
    ARRAY_BUFFER,
    ELEMENT_ARRAY_BUFFER,
    FLOAT,
    UNSIGNED_SHORT,
    BufferPacker,
    InvalidInput,
    IOFailure,
    UnsupportedAssetKind,
    encode_container,
)

logger = logging.getLogger(__name__)

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

# uint16 indices address at most this many vertices
MAX_VERTICES = 0xFFFF + 1

IMAGE_MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
}

# Sampler constants
LINEAR = 9729
LINEAR_MIPMAP_LINEAR = 9987
CLAMP_TO_EDGE = 33071

SPHERE_GENERATOR = "AR Fruits Generator"
PLANE_GENERATOR = "AR Image Viewer"


@dataclass
class MeshDescription:
    """Sphere variant: generation parameters plus the generated geometry."""
    radius: float
    segments: int
    rings: int
    base_color: Vec3
    positions: List[Vec3] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    name: str = "Fruit"


def _quad_positions() -> List[Vec3]:
    return [
        (-0.5, -0.5, 0.0),  # bottom-left
        (0.5, -0.5, 0.0),   # bottom-right
        (0.5, 0.5, 0.0),    # top-right
        (-0.5, 0.5, 0.0),   # top-left
    ]


def _quad_texcoords() -> List[Vec2]:
    # V is flipped so the image is upright
    return [(0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)]


@dataclass
class PlaneDescription:
    """Image variant: a unit quad facing +Z with the image as texture."""
    image_bytes: bytes
    image_mime_type: str
    positions: List[Vec3] = field(default_factory=_quad_positions)
    normals: List[Vec3] = field(default_factory=lambda: [(0.0, 0.0, 1.0)] * 4)
    texcoords: List[Vec2] = field(default_factory=_quad_texcoords)
    indices: List[int] = field(default_factory=lambda: [0, 1, 2, 0, 2, 3])
    name: str = "ImagePlane"


def extension_to_mime(ext: str) -> str:
    """
    Map an image file extension to its MIME type.

    Args:
        ext: Extension with or without the leading dot, any case

    Returns:
        The MIME type

    Raises:
        UnsupportedAssetKind: If the extension is not a known image type
    """
    key = ext.lower()
    if not key.startswith('.'):
        key = '.' + key
    try:
        return IMAGE_MIME_TYPES[key]
    except KeyError:
        raise UnsupportedAssetKind(f"Unsupported image extension: {ext!r}") from None


def build_sphere(radius: float = 0.5, segments: int = 16, rings: int = 12,
                 color: Vec3 = (1.0, 1.0, 1.0), name: str = "Fruit") -> MeshDescription:
    """
    Generate a UV-sphere.

    Rings sample the polar angle 0..pi and segments the azimuth 0..2*pi, both
    inclusive, so the poles and the seam are duplicated per segment.
    """
    if segments < 0 or rings < 0:
        raise InvalidInput(f"segments and rings must be >= 0, got {segments} and {rings}")
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidInput(f"radius must be a positive number, got {radius}")
    try:
        color = tuple(float(c) for c in color)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"color components must be numbers, got {color!r}") from e
    if len(color) != 3 or any(not 0.0 <= c <= 1.0 for c in color):
        raise InvalidInput(f"color must be three components in [0, 1], got {color}")

    vertex_count = (rings + 1) * (segments + 1)
    if vertex_count > MAX_VERTICES:
        raise InvalidInput(f"{vertex_count} vertices exceed the uint16 index range")

    positions: List[Vec3] = []
    normals: List[Vec3] = []
    for ring in range(rings + 1):
        theta = ring / rings * math.pi if rings else 0.0
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)

        for seg in range(segments + 1):
            phi = seg / segments * 2 * math.pi if segments else 0.0
            x = math.cos(phi) * sin_theta
            y = cos_theta
            z = math.sin(phi) * sin_theta

            positions.append((x * radius, y * radius, z * radius))
            normals.append((x, y, z))

    indices: List[int] = []
    for ring in range(rings):
        for seg in range(segments):
            first = ring * (segments + 1) + seg
            second = first + segments + 1

            # Counter-clockwise seen from outside
            indices.extend((first, first + 1, second))
            indices.extend((second, first + 1, second + 1))

    return MeshDescription(
        radius=radius,
        segments=segments,
        rings=rings,
        base_color=tuple(color),
        positions=positions,
        normals=normals,
        indices=indices,
        name=name,
    )


def build_plane(image_bytes: bytes, mime_type: str) -> PlaneDescription:
    """Describe a textured quad for the given image payload."""
    if not image_bytes:
        raise InvalidInput("image_bytes must not be empty")
    if mime_type not in IMAGE_MIME_TYPES.values():
        raise UnsupportedAssetKind(f"Unsupported image MIME type: {mime_type!r}")
    return PlaneDescription(image_bytes=bytes(image_bytes), image_mime_type=mime_type)


def read_image(path: str) -> PlaneDescription:
    """Read an image file and describe it as a textured quad."""
    mime_type = extension_to_mime(os.path.splitext(path)[1])
    try:
        with open(path, 'rb') as f:
            image_bytes = f.read()
    except OSError as e:
        raise IOFailure(f"Cannot read image {path}: {e}") from e
    logger.debug("Read %d bytes of %s from %s", len(image_bytes), mime_type, path)
    return build_plane(image_bytes, mime_type)


def _flatten(vectors) -> List[float]:
    return [component for vector in vectors for component in vector]


def _encode_sphere(mesh: MeshDescription) -> bytes:
    packer = BufferPacker()

    # Indices go first so that the only padding needed sits right after them
    index_accessor = packer.add_accessor(mesh.indices, UNSIGNED_SHORT, 'SCALAR',
                                         target=ELEMENT_ARRAY_BUFFER)
    packer.align(4)
    position_accessor = packer.add_accessor(_flatten(mesh.positions), FLOAT, 'VEC3',
                                            target=ARRAY_BUFFER, with_bounds=True)
    normal_accessor = packer.add_accessor(_flatten(mesh.normals), FLOAT, 'VEC3',
                                          target=ARRAY_BUFFER)

    document = {
        "asset": {"version": "2.0", "generator": SPHERE_GENERATOR},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0, "name": mesh.name}],
        "meshes": [{
            "primitives": [{
                "attributes": {
                    "POSITION": position_accessor,
                    "NORMAL": normal_accessor,
                },
                "indices": index_accessor,
                "material": 0,
            }]
        }],
        "materials": [{
            "pbrMetallicRoughness": {
                "baseColorFactor": [*mesh.base_color, 1.0],
                "metallicFactor": 0.0,
                "roughnessFactor": 0.7,
            },
            "name": "FruitMaterial",
        }],
        "accessors": packer.accessors,
        "bufferViews": packer.buffer_views,
        "buffers": packer.buffers(),
    }
    return encode_container(document, packer.getvalue())


def _encode_plane(plane: PlaneDescription) -> bytes:
    if not plane.image_bytes:
        raise InvalidInput("image_bytes must not be empty")
    if plane.image_mime_type not in IMAGE_MIME_TYPES.values():
        raise UnsupportedAssetKind(f"Unsupported image MIME type: {plane.image_mime_type!r}")

    packer = BufferPacker()
    position_accessor = packer.add_accessor(_flatten(plane.positions), FLOAT, 'VEC3',
                                            target=ARRAY_BUFFER, with_bounds=True)
    normal_accessor = packer.add_accessor(_flatten(plane.normals), FLOAT, 'VEC3',
                                          target=ARRAY_BUFFER)
    texcoord_accessor = packer.add_accessor(_flatten(plane.texcoords), FLOAT, 'VEC2',
                                            target=ARRAY_BUFFER)
    index_accessor = packer.add_accessor(plane.indices, UNSIGNED_SHORT, 'SCALAR',
                                         target=ELEMENT_ARRAY_BUFFER)
    image_view = packer.add_blob(plane.image_bytes)

    document = {
        "asset": {"version": "2.0", "generator": PLANE_GENERATOR},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0, "name": plane.name}],
        "meshes": [{
            "name": "Plane",
            "primitives": [{
                "attributes": {
                    "POSITION": position_accessor,
                    "NORMAL": normal_accessor,
                    "TEXCOORD_0": texcoord_accessor,
                },
                "indices": index_accessor,
                "material": 0,
            }]
        }],
        "accessors": packer.accessors,
        "bufferViews": packer.buffer_views,
        "buffers": packer.buffers(),
        "materials": [{
            "name": "ImageMaterial",
            "pbrMetallicRoughness": {
                "baseColorTexture": {"index": 0},
                "metallicFactor": 0.0,
                "roughnessFactor": 1.0,
            },
            "doubleSided": True,
        }],
        "textures": [{"source": 0, "sampler": 0}],
        "images": [{"bufferView": image_view, "mimeType": plane.image_mime_type}],
        "samplers": [{
            "magFilter": LINEAR,
            "minFilter": LINEAR_MIPMAP_LINEAR,
            "wrapS": CLAMP_TO_EDGE,
            "wrapT": CLAMP_TO_EDGE,
        }],
    }
    return encode_container(document, packer.getvalue())


def encode(description: Union[MeshDescription, PlaneDescription]) -> bytes:
    """
    Encode a sphere or plane description as a GLB file.

    Args:
        description: A MeshDescription or PlaneDescription

    Returns:
        The complete .glb file contents
    """
    if isinstance(description, MeshDescription):
        return _encode_sphere(description)
    if isinstance(description, PlaneDescription):
        return _encode_plane(description)
    raise InvalidInput(f"Cannot encode {type(description).__name__}")
