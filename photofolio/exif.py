import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from PIL import Image

logger = logging.getLogger(__name__)

EXIF_IFD = 0x8769
TAGS = {"ExposureTime": 33434, "FNumber": 33437, "ISOSpeedRatings": 34855, "FocalLength": 37386}
MISSING = "—"


@dataclass(frozen=True)
class ExifSummary:
    f_number: Optional[float] = None
    exposure_time: Optional[float] = None
    iso: Optional[int] = None
    focal_length: Optional[float] = None

    def to_dict(self) -> Dict:
        return asdict(self)


def _rat_to_float(v) -> Optional[float]:
    try:
        if isinstance(v, (list, tuple)):
            if len(v) == 2 and not isinstance(v[0], (list, tuple)):
                return float(v[0]) / float(v[1]) if v[1] else None
            v = v[0]
        x = float(v)
    except (TypeError, ValueError, ZeroDivisionError, IndexError):
        return None
    return x if math.isfinite(x) else None


def _js_round(x: float) -> int:
    return int(math.floor(x + 0.5))


def read_exif(path: Union[str, Path]) -> Optional[ExifSummary]:
    """The four lightbox fields, or None when the file has no readable EXIF."""
    try:
        with Image.open(path) as im:
            top = im.getexif()
            sub = top.get_ifd(EXIF_IFD)
    except (OSError, ValueError) as e:
        logger.debug("no EXIF for %s: %s", path, e)
        return None
    if not top and not sub:
        return None

    g = lambda name: sub.get(TAGS[name], top.get(TAGS[name]))
    iso = _rat_to_float(g("ISOSpeedRatings"))
    return ExifSummary(
        f_number=_rat_to_float(g("FNumber")),
        exposure_time=_rat_to_float(g("ExposureTime")),
        iso=int(iso) if iso is not None else None,
        focal_length=_rat_to_float(g("FocalLength")),
    )


def fmt_aperture(x: Optional[float]) -> str:
    return f"f/{x:.1f}" if x else MISSING


def fmt_exposure(x: Optional[float]) -> str:
    if x is None or x <= 0:
        return MISSING
    if x >= 1:
        return f"{_js_round(x)} sec"
    return f"1/{_js_round(1 / x)} sec"


def fmt_iso(x: Optional[int]) -> str:
    return f"ISO {x}" if x else MISSING


def fmt_focal(x: Optional[float]) -> str:
    return f"{_js_round(x)} mm" if x else MISSING


def format_exif(exif: Optional[ExifSummary]) -> Optional[Dict[str, str]]:
    if exif is None:
        return None
    return {
        "aperture": fmt_aperture(exif.f_number),
        "exposure": fmt_exposure(exif.exposure_time),
        "iso": fmt_iso(exif.iso),
        "focal": fmt_focal(exif.focal_length),
    }
