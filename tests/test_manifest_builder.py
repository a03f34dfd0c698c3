#!/usr/bin/env python3
"""Test the model directory scan and the manifest file."""

import json
import zlib
from datetime import datetime, timedelta, timezone

import pytest

from glb_container import IOFailure
from manifest_builder import (
    COLOR_PALETTE,
    DirectoryEntry,
    ImageModelRecord,
    ManifestEntry,
    format_display_name,
    format_timestamp,
    list_directory,
    make_model_id,
    pick_color,
    render_manifest_js,
    scan,
    write_manifest,
)

GENERATED_AT = datetime(2026, 2, 3, 22, 9, 18, 150000, tzinfo=timezone.utc)


def manifest_payload(content: str) -> list:
    """Extract the JSON array from a rendered manifest."""
    start = content.index('= ') + 2
    end = content.index('];') + 1
    return json.loads(content[start:end])


class TestNames:

    @pytest.mark.parametrize("filename,expected", [
        ("delicious_shawarma.glb", "Delicious Shawarma"),
        ("apple.glb", "Apple"),
        ("logo-lt.glb", "Logo Lt"),
        ("red apple.gltf", "Red Apple"),
        ("assets/models/kiwi.glb", "Kiwi"),
        ("mIxEd_case.glb", "MIxEd Case"),
    ])
    def test_format_display_name(self, filename, expected):
        assert format_display_name(filename) == expected

    @pytest.mark.parametrize("filename,expected", [
        ("delicious_shawarma.glb", "delicious_shawarma"),
        ("Logo-LT.glb", "logo_lt"),
        ("Red Apple.gltf", "red_apple"),
    ])
    def test_make_model_id(self, filename, expected):
        assert make_model_id(filename) == expected


class TestPickColor:

    def test_matches_crc32(self):
        for model_id in ("apple", "banana", "delicious_shawarma"):
            expected = COLOR_PALETTE[zlib.crc32(model_id.encode('utf-8')) % len(COLOR_PALETTE)]
            assert pick_color(model_id) == expected

    def test_known_value(self):
        # zlib.crc32(b"apple") == 0xa92ed050, 2838417488 % 15 == 8
        assert pick_color("apple") == "#7bed9f"

    def test_stable_and_from_palette(self):
        assert pick_color("mango") == pick_color("mango")
        assert pick_color("mango") in COLOR_PALETTE

    def test_custom_palette(self):
        assert pick_color("anything", ["#000000"]) == "#000000"
        with pytest.raises(ValueError):
            pick_color("anything", [])


class TestScan:

    def test_filters_and_sorts(self):
        listing = ["b.glb", "a.gltf", "readme.txt", "C.GLB", "photo.png", "noext"]
        entries = scan(listing)
        assert [e.model for e in entries] == [
            "assets/models/C.GLB",
            "assets/models/a.gltf",
            "assets/models/b.glb",
        ]
        assert [e.id for e in entries] == ["c", "a", "b"]

    def test_entry_fields(self):
        entries = scan([DirectoryEntry("delicious_shawarma.glb", 2048)])
        assert entries == [ManifestEntry(
            id="delicious_shawarma",
            name="Delicious Shawarma",
            model="assets/models/delicious_shawarma.glb",
            color=pick_color("delicious_shawarma"),
            size=2048,
        )]
        assert entries[0].to_record() == {
            "id": "delicious_shawarma",
            "name": "Delicious Shawarma",
            "model": "assets/models/delicious_shawarma.glb",
            "color": pick_color("delicious_shawarma"),
        }

    def test_model_prefix(self):
        entries = scan(["kiwi.glb"], model_prefix="static/models/")
        assert entries[0].model == "static/models/kiwi.glb"

    def test_empty_listing(self):
        assert scan([]) == []

    def test_scan_is_stable(self):
        listing = ["apple.glb", "pear.glb", "kiwi.glb"]
        assert scan(listing) == scan(list(reversed(listing)))


class TestListDirectory:

    def test_lists_files_only(self, tmp_path):
        (tmp_path / "apple.glb").write_bytes(b'x' * 10)
        (tmp_path / "nested").mkdir()
        entries = list_directory(str(tmp_path))
        assert entries == [DirectoryEntry("apple.glb", 10)]

    def test_missing_directory(self, tmp_path):
        assert list_directory(str(tmp_path / "missing")) == []


class TestRenderManifest:

    def test_timestamp_format(self):
        assert format_timestamp(GENERATED_AT) == "2026-02-03T22:09:18.150Z"
        local = GENERATED_AT.astimezone(timezone(timedelta(hours=2)))
        assert format_timestamp(local) == "2026-02-03T22:09:18.150Z"

    def test_models_manifest(self):
        entries = scan([DirectoryEntry("apple.glb", 100)])
        content = render_manifest_js(entries, generated_at=GENERATED_AT)
        assert content.startswith("/**\n * Auto-generated models list\n * Generated: 2026-02-03T22:09:18.150Z\n")
        assert "const IMAGES = [\n    {\n        \"id\": \"apple\",\n" in content
        assert "if (typeof module !== 'undefined') {\n    module.exports = IMAGES;\n}\n" in content
        assert manifest_payload(content) == [entries[0].to_record()]
        assert "size" not in content

    def test_image_records_and_dicts(self):
        records = [
            ImageModelRecord("cat.png", "assets/img/cat.png", "assets/models/cat.glb"),
            {"name": "dog.jpg", "path": "assets/img/dog.jpg", "model": "assets/models/dog.glb"},
        ]
        content = render_manifest_js(records, generated_at=GENERATED_AT)
        assert manifest_payload(content) == [
            {"name": "cat.png", "path": "assets/img/cat.png", "model": "assets/models/cat.glb"},
            {"name": "dog.jpg", "path": "assets/img/dog.jpg", "model": "assets/models/dog.glb"},
        ]

    def test_empty_manifest(self):
        content = render_manifest_js([], generated_at=GENERATED_AT, variable="MODELS")
        assert "const MODELS = [];" in content
        assert "module.exports = MODELS;" in content

    def test_non_ascii_kept(self):
        content = render_manifest_js([{"name": "Crème brûlée"}], generated_at=GENERATED_AT)
        assert "Crème brûlée" in content


class TestWriteManifest:

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "js" / "images.js"
        write_manifest(str(path), "const IMAGES = [];\n")
        assert path.read_text(encoding='utf-8') == "const IMAGES = [];\n"

    def test_write_failure(self, tmp_path):
        with pytest.raises(IOFailure):
            write_manifest(str(tmp_path), "content")
