#!/usr/bin/env python3
"""
GLB Container Writer

This module writes glTF 2.0 binary containers (.glb) from a glTF JSON
document and a single binary buffer.

Supports:
- Declarative container layouts (header fields and chunks)
- Two-phase serialization with calculated fields (total file size)
- Chunk payload padding to 4-byte boundaries with a per-chunk pad byte
- Packing of accessor data (uint16, uint32, float32) into one binary buffer
"""

import io
import json
import struct
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
CHUNK_TYPE_JSON = 0x4E4F534A  # "JSON"
CHUNK_TYPE_BIN = 0x004E4942  # "BIN\0"

# glTF component types
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

# glTF buffer view targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

ELEMENT_SIZES = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
}

GLB_LAYOUT = {
    "endianness": "little",
    "description": "glTF 2.0 binary container",
    "fields": [
        {"name": "magic", "type": "uint32"},
        {"name": "version", "type": "uint32"},
        {"name": "length", "type": "uint32", "function": "file_size"},
        {"name": "json_chunk", "type": "chunk", "pad_byte": 0x20},
        {"name": "bin_chunk", "type": "chunk", "pad_byte": 0x00},
    ]
}


class GlbFormatError(Exception):
    """Base exception for container encoding errors."""
    pass


class InvalidInput(GlbFormatError):
    """Malformed geometry parameters or description."""
    pass


class UnsupportedAssetKind(GlbFormatError):
    """Asset kind (image extension or MIME type) that cannot be embedded."""
    pass


class IOFailure(GlbFormatError):
    """Reading an input or writing an output failed."""
    pass


@dataclass
class FieldDefinition:
    """Represents a field definition from a container layout."""
    name: str
    type: str
    function: str = None  # Calculated after phase 1 (e.g., "file_size")
    pad_byte: int = 0x00  # Chunk payload padding


@dataclass
class Chunk:
    """A typed chunk payload (unpadded)."""
    chunk_type: int
    payload: bytes


def padding_for(length: int, boundary: int = 4) -> int:
    """Number of bytes needed to bring length up to a multiple of boundary."""
    return (boundary - (length % boundary)) % boundary


class GlbWriter:
    """Serializes values into a container following a layout definition."""

    # Type mapping for struct format strings
    TYPE_MAP = {
        'uint8': 'B',
        'uint16': 'H',
        'uint32': 'I',
        'float32': 'f',
    }

    def __init__(self, layout: Dict[str, Any] = None):
        """
        Initialize the writer with a layout definition.

        Args:
            layout: Dictionary with an 'endianness' and a 'fields' list.
                Defaults to the GLB container layout.
        """
        self.layout = layout if layout is not None else GLB_LAYOUT
        if 'fields' not in self.layout:
            raise GlbFormatError("Layout definition must contain 'fields' key")
        self.endianness = self.layout.get('endianness', 'little')
        self.endian_char = '<' if self.endianness == 'little' else '>'
        self.fields = [self._parse_field_definition(f) for f in self.layout['fields']]
        self.calculated_fields: List[FieldDefinition] = []
        self.field_offsets: Dict[str, int] = {}
        self.field_sizes: Dict[str, int] = {}

    def _parse_field_definition(self, field_def: Dict[str, Any]) -> FieldDefinition:
        """Parse a field definition from the layout."""
        field = FieldDefinition(
            name=field_def['name'],
            type=field_def['type'],
            function=field_def.get('function'),
            pad_byte=field_def.get('pad_byte', 0x00),
        )
        if field.type not in self.TYPE_MAP and field.type != 'chunk':
            raise GlbFormatError(f"Unsupported field type: {field.type}")
        if field.function and field.type not in self.TYPE_MAP:
            raise GlbFormatError(f"Calculated field {field.name} must be numeric")
        return field

    def serialize(self, values: Dict[str, Any]) -> bytes:
        """
        Serialize values to container bytes.

        Args:
            values: Mapping of field name to value. Numeric fields take ints
                or floats, chunk fields take a Chunk. Calculated fields may be
                omitted or set to "auto".

        Returns:
            The serialized container
        """
        self.calculated_fields = []
        self.field_offsets = {}
        self.field_sizes = {}

        buffer = io.BytesIO()
        try:
            self._serialize_phase1(buffer, values)
            return self._serialize_phase2(buffer.getvalue())
        except struct.error as e:
            raise GlbFormatError(f"Serialization failed: {e}") from e

    def _serialize_phase1(self, f: io.BytesIO, values: Dict[str, Any]) -> None:
        """Phase 1: Serialize structure with placeholders."""
        for field in self.fields:
            start_offset = f.tell()
            self.field_offsets[field.name] = start_offset

            if field.function and values.get(field.name, "auto") == "auto":
                self.calculated_fields.append(field)
                format_str = self.endian_char + self.TYPE_MAP[field.type]
                f.write(struct.pack(format_str, 0))
            else:
                if field.name not in values:
                    raise GlbFormatError(f"Missing field in data: {field.name}")
                self._serialize_field(f, field, values[field.name])

            self.field_sizes[field.name] = f.tell() - start_offset

    def _serialize_phase2(self, data: bytes) -> bytes:
        """Phase 2: Calculate and update calculated fields."""
        data_array = bytearray(data)

        for field in self.calculated_fields:
            offset = self.field_offsets[field.name]
            value = self._calculate_function_value(field, data)
            format_str = self.endian_char + self.TYPE_MAP[field.type]
            struct.pack_into(format_str, data_array, offset, value)

        return bytes(data_array)

    def _calculate_function_value(self, field: FieldDefinition, data: bytes) -> int:
        if field.function == "file_size":
            return len(data)
        raise GlbFormatError(f"Unknown function: {field.function}")

    def _serialize_field(self, f: io.BytesIO, field: FieldDefinition, value: Any) -> None:
        """Serialize a single field to the stream."""
        if field.type in self.TYPE_MAP:
            format_str = self.endian_char + self.TYPE_MAP[field.type]
            f.write(struct.pack(format_str, value))
        elif field.type == 'chunk':
            if not isinstance(value, Chunk):
                raise GlbFormatError(f"Expected Chunk for field {field.name}")
            pad = padding_for(len(value.payload))
            length_format = self.endian_char + 'II'
            f.write(struct.pack(length_format, len(value.payload) + pad, value.chunk_type))
            f.write(value.payload)
            f.write(bytes([field.pad_byte]) * pad)


def encode_container(document: Dict[str, Any], binary: bytes) -> bytes:
    """
    Frame a glTF JSON document and its binary buffer as a GLB file.

    The JSON is written compactly as UTF-8 and padded with spaces, the
    binary buffer is padded with zero bytes.
    """
    try:
        json_bytes = json.dumps(document, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise GlbFormatError(f"Document is not JSON serializable: {e}") from e

    writer = GlbWriter()
    return writer.serialize({
        "magic": GLB_MAGIC,
        "version": GLB_VERSION,
        "json_chunk": Chunk(CHUNK_TYPE_JSON, json_bytes),
        "bin_chunk": Chunk(CHUNK_TYPE_BIN, bytes(binary)),
    })


class BufferPacker:
    """Packs accessor data and opaque blobs into a single binary buffer.

    Buffer view byte offsets are relative to the start of the buffer, which
    becomes the payload of the BIN chunk.
    """

    # glTF component type -> struct format character
    COMPONENT_FORMATS = {
        UNSIGNED_SHORT: 'H',
        UNSIGNED_INT: 'I',
        FLOAT: 'f',
    }

    def __init__(self, endian_char: str = '<'):
        self.endian_char = endian_char
        self._buffer = io.BytesIO()
        self.buffer_views: List[Dict[str, Any]] = []
        self.accessors: List[Dict[str, Any]] = []

    def add_view(self, data: bytes, target: Optional[int] = None) -> int:
        """Append bytes as a new buffer view and return its index."""
        view = {
            "buffer": 0,
            "byteOffset": self._buffer.tell(),
            "byteLength": len(data),
        }
        if target is not None:
            view["target"] = target
        self._buffer.write(data)
        self.buffer_views.append(view)
        return len(self.buffer_views) - 1

    def add_blob(self, data: bytes) -> int:
        """Append opaque bytes verbatim (e.g. an embedded image)."""
        return self.add_view(bytes(data))

    def add_accessor(self, values: Sequence[float], component_type: int, element_type: str,
                     target: Optional[int] = None, with_bounds: bool = False) -> int:
        """
        Pack flat numeric values and describe them with an accessor.

        Args:
            values: Flat sequence of components (e.g. x, y, z, x, y, z, ...)
            component_type: glTF component type (UNSIGNED_SHORT, UNSIGNED_INT, FLOAT)
            element_type: glTF accessor type ('SCALAR', 'VEC2', 'VEC3', 'VEC4')
            target: Optional buffer view target
            with_bounds: Record per-component min/max of the stored values

        Returns:
            Index of the new accessor
        """
        if component_type not in self.COMPONENT_FORMATS:
            raise GlbFormatError(f"Unsupported component type: {component_type}")
        if element_type not in ELEMENT_SIZES:
            raise GlbFormatError(f"Unsupported accessor type: {element_type}")

        width = ELEMENT_SIZES[element_type]
        if len(values) % width:
            raise InvalidInput(f"{len(values)} components do not form whole {element_type} elements")

        format_str = f"{self.endian_char}{len(values)}{self.COMPONENT_FORMATS[component_type]}"
        try:
            packed = struct.pack(format_str, *values)
        except struct.error as e:
            raise InvalidInput(f"Cannot pack accessor values: {e}") from e

        view_index = self.add_view(packed, target)
        accessor = {
            "bufferView": view_index,
            "componentType": component_type,
            "count": len(values) // width,
            "type": element_type,
        }
        if with_bounds and values:
            # Bounds must match the stored values, so read back the packed data
            stored = struct.unpack(format_str, packed)
            columns = [stored[i::width] for i in range(width)]
            accessor["min"] = [min(column) for column in columns]
            accessor["max"] = [max(column) for column in columns]

        self.accessors.append(accessor)
        return len(self.accessors) - 1

    def align(self, boundary: int = 4) -> int:
        """Pad the buffer with zero bytes; returns the number of bytes added."""
        pad = padding_for(self._buffer.tell(), boundary)
        self._buffer.write(b'\x00' * pad)
        return pad

    def buffers(self) -> List[Dict[str, int]]:
        return [{"byteLength": self._buffer.tell()}]

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()
