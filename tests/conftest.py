import json
import logging
import struct

import pytest


def read_glb(blob: bytes) -> dict:
    """Split a .glb file into its header fields, JSON document and BIN payload."""
    magic, version, length = struct.unpack_from('<III', blob, 0)
    json_length, json_type = struct.unpack_from('<II', blob, 12)
    json_start = 20
    json_payload = blob[json_start:json_start + json_length]
    bin_header = json_start + json_length
    bin_length, bin_type = struct.unpack_from('<II', blob, bin_header)
    bin_payload = blob[bin_header + 8:bin_header + 8 + bin_length]
    return {
        "magic": magic,
        "version": version,
        "length": length,
        "json_length": json_length,
        "json_type": json_type,
        "json_payload": json_payload,
        "document": json.loads(json_payload.decode('utf-8')),
        "bin_length": bin_length,
        "bin_type": bin_type,
        "bin": bin_payload,
    }


def read_accessor(glb: dict, index: int) -> list:
    """Unpack the values behind an accessor as a flat list."""
    document = glb["document"]
    accessor = document["accessors"][index]
    view = document["bufferViews"][accessor["bufferView"]]
    code = {5123: 'H', 5125: 'I', 5126: 'f'}[accessor["componentType"]]
    width = {'SCALAR': 1, 'VEC2': 2, 'VEC3': 3, 'VEC4': 4}[accessor["type"]]
    count = accessor["count"] * width
    return list(struct.unpack_from(f'<{count}{code}', glb["bin"], view["byteOffset"]))


@pytest.fixture
def parse_glb():
    return read_glb


@pytest.fixture
def accessor_values():
    return read_accessor


@pytest.fixture
def restore_logging():
    """Put the root logger back after a test that configures logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
