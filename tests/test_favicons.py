import pytest
from PIL import Image

from photofolio import favicons


def test_generate_writes_full_icon_set(settings, make_image):
    make_image(settings.logo_path, (300, 120), color=(255, 255, 255, 255), mode="RGBA")
    written = favicons.generate(settings)

    names = sorted(p.name for p in written)
    assert names == sorted([
        "favicon-16.png", "favicon-32.png", "favicon-48.png", "favicon-64.png",
        "apple-touch-icon.png", "android-chrome-192x192.png", "android-chrome-512x512.png",
        "favicon.ico",
    ])
    with Image.open(settings.public_dir / "android-chrome-512x512.png") as im:
        assert im.size == (512, 512)
        assert im.mode == "RGBA"
        # wide logo is letterboxed onto a transparent square
        assert im.getpixel((0, 0))[3] == 0
        assert im.getpixel((256, 256))[3] == 255
    with Image.open(settings.public_dir / "favicon.ico") as ico:
        assert ico.format == "ICO"


def test_missing_logo(settings, monkeypatch):
    with pytest.raises(FileNotFoundError, match="logo"):
        favicons.generate(settings)

    monkeypatch.setenv("PORTFOLIO_ROOT", str(settings.root))
    assert favicons.main() == 1
