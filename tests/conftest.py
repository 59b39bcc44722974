from pathlib import Path

import pytest
from PIL import Image

from photofolio.config import Settings


def write_image(path: Path, size=(600, 400), color=(120, 60, 30), mode="RGB", exif=None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    im = Image.new(mode, size, color)
    kwargs = {}
    if exif is not None:
        kwargs["exif"] = exif.tobytes()
    im.save(path, **kwargs)
    return path


@pytest.fixture
def make_image():
    return write_image


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings.for_root(tmp_path)


@pytest.fixture
def gallery(settings, make_image) -> Settings:
    """Two categories and a banner under src/assets."""
    photos = settings.photos_dir
    make_image(photos / "event" / "img10.jpg", (1600, 1000))
    make_image(photos / "event" / "img2.jpg", (1000, 1500))
    make_image(photos / "event" / "img1.jpeg", (2400, 1200))
    make_image(photos / "sports_day" / "run.png", (900, 600))
    make_image(photos / "sports_day" / "jump.webp", (700, 700))
    make_image(settings.banner_dir / "hero.jpg", (2000, 800))
    (photos / "event" / "notes.txt").write_text("not a photo")
    return settings
