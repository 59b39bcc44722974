import asyncio
import json

import httpx
import pytest

from photofolio.manifest import (ManifestBuilder, ManifestEntry, ThumbnailManifest, Variant,
                                 format_srcset, parse_srcset)


def entry(*widths, default=800):
    return ManifestEntry.from_variants([Variant(f"/thumbs/a-{w}.webp", w) for w in widths], default)


def test_srcset_sorted_ascending():
    variants = [Variant("/t/b.webp", 1200), Variant("/t/a.webp", 400)]
    assert format_srcset(variants) == "/t/a.webp 400w, /t/b.webp 1200w"


def test_parse_srcset_skips_garbage():
    parsed = parse_srcset("/t/x-800.webp 800w, nonsense, /t/x-400.webp 400w, /t/y.webp 2x")
    assert parsed == [Variant("/t/x-400.webp", 400), Variant("/t/x-800.webp", 800)]
    assert parse_srcset("") == []


def test_default_variant_prefers_mid_size_then_largest():
    assert entry(400, 800, 1200).default_url == "/thumbs/a-800.webp"
    assert entry(400, 1200).default_url == "/thumbs/a-1200.webp"
    with pytest.raises(ValueError):
        ManifestEntry.from_variants([], 800)


def test_builder_writes_parallel_srcset_keys(tmp_path):
    b = ManifestBuilder()
    b.add("/assets/a.jpg", entry(400, 800))
    path = tmp_path / "out" / "manifest.json"
    b.write(path)
    assert json.loads(path.read_text()) == {
        "/assets/a.jpg": "/thumbs/a-800.webp",
        "/assets/a.jpg__srcset": "/thumbs/a-400.webp 400w, /thumbs/a-800.webp 800w",
    }


def test_lookup_and_fallback():
    m = ThumbnailManifest({"/assets/a.jpg": "/thumbs/a-800.webp", "/assets/a.jpg__srcset": "/thumbs/a-800.webp 800w"})
    assert m.display_src("/assets/a.jpg") == "/thumbs/a-800.webp"
    assert m.display_src("/assets/missing.jpg") == "/assets/missing.jpg"
    assert m.srcset_for("/assets/a.jpg") == "/thumbs/a-800.webp 800w"
    assert m.srcset_for("/assets/missing.jpg") is None
    assert m.keys() == ["/assets/a.jpg"]


def test_load_missing_file_is_empty(tmp_path):
    m = ThumbnailManifest.load(tmp_path / "nope.json")
    assert len(m) == 0
    assert m.display_src("/assets/a.jpg") == "/assets/a.jpg"


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", '"text"'])
def test_load_malformed_file_is_empty(tmp_path, content):
    path = tmp_path / "manifest.json"
    path.write_text(content)
    assert len(ThumbnailManifest.load(path)) == 0


def test_non_string_values_are_dropped():
    m = ThumbnailManifest.from_mapping({"/assets/a.jpg": 5, "/assets/b.jpg": "/thumbs/b-800.webp"})
    assert m.keys() == ["/assets/b.jpg"]


def test_missing_files_reports_absent_thumbnails(tmp_path):
    thumbs_dir = tmp_path / "thumbs"
    thumbs_dir.mkdir()
    (thumbs_dir / "a-800.webp").write_bytes(b"x")
    m = ThumbnailManifest({
        "/assets/a.jpg": "/thumbs/a-800.webp",
        "/assets/a.jpg__srcset": "/thumbs/a-400.webp 400w, /thumbs/a-800.webp 800w",
        "/assets/b.jpg": "https://cdn.example/b.webp",
    })
    assert m.missing_files(thumbs_dir) == ["/thumbs/a-400.webp", "https://cdn.example/b.webp"]


def fetch_with(handler):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await ThumbnailManifest.fetch("http://site.test/generated/manifest.json", client)
    return asyncio.run(go())


def test_fetch_ok():
    m = fetch_with(lambda req: httpx.Response(200, json={"/assets/a.jpg": "/thumbs/a-800.webp"}))
    assert m.thumbnail_for("/assets/a.jpg") == "/thumbs/a-800.webp"


def test_fetch_http_error_is_empty():
    assert len(fetch_with(lambda req: httpx.Response(404))) == 0


def test_fetch_bad_body_is_empty():
    assert len(fetch_with(lambda req: httpx.Response(200, text="<html>"))) == 0


def test_fetch_transport_error_is_empty():
    def boom(req):
        raise httpx.ConnectError("refused", request=req)
    assert len(fetch_with(boom)) == 0
