#!/usr/bin/env python3
"""Fruit Sphere Example"""

import os
import sys

# Add parent directory to Python path to import the model builders
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from glb_container import GlbFormatError
from model_builders import build_sphere, encode


def main():
    print("=== Fruit Sphere Example ===")

    script_dir = os.path.dirname(os.path.abspath(__file__))
    os.chdir(script_dir)

    try:
        mesh = build_sphere(radius=0.5, segments=16, rings=12, color=(0.8, 0.1, 0.1), name="Apple")
        print(f"Vertices: {len(mesh.positions)}, Triangles: {len(mesh.indices) // 3}")

        data = encode(mesh)
        with open('apple.glb', 'wb') as f:
            f.write(data)
        print(f"Generated apple.glb: {len(data)} bytes")

        if data[:4] == b'glTF' and int.from_bytes(data[8:12], 'little') == len(data):
            print("✓ Header length matches file size")
        else:
            print("✗ Header does not match file size!")

    except (GlbFormatError, OSError) as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
