#!/usr/bin/env python3
"""Image Plane Example

Usage: image_plane_example.py [IMAGE]

Without an argument a tiny placeholder PNG payload is embedded.
"""

import os
import sys

# Add parent directory to Python path to import the model builders
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from glb_container import GlbFormatError
from model_builders import build_plane, encode, read_image


def main():
    print("=== Image Plane Example ===")

    try:
        if len(sys.argv) > 1:
            plane = read_image(sys.argv[1])
            output = os.path.splitext(os.path.basename(sys.argv[1]))[0] + '.glb'
        else:
            plane = build_plane(b'\x89PNG\r\n\x1a\n\x00\x01', 'image/png')
            output = 'placeholder.glb'

        data = encode(plane)
        output_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), output)
        with open(output_path, 'wb') as f:
            f.write(data)

        print(f"Embedded {len(plane.image_bytes)} bytes of {plane.image_mime_type}")
        print(f"Generated {output}: {len(data)} bytes")

    except (GlbFormatError, OSError) as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
