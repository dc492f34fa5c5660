"""Social media image presets rendered through Cloudinary delivery URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List

from cloudinary.utils import cloudinary_url

from services.errors import BadRequest


@dataclass(frozen=True)
class SocialFormat:
    width: int
    height: int
    aspect_ratio: str


SOCIAL_FORMATS: Dict[str, SocialFormat] = {
    "Instagram Square (1:1)": SocialFormat(1080, 1080, "1:1"),
    "Instagram Portrait (4:5)": SocialFormat(1080, 1350, "4:5"),
    "Twitter Post (16:9)": SocialFormat(1200, 675, "16:9"),
    "Twitter Header (3:1)": SocialFormat(1500, 500, "3:1"),
    "Facebook Cover (205:78)": SocialFormat(820, 312, "205:78"),
}

DEFAULT_SOCIAL_FORMAT = "Instagram Square (1:1)"


def download_filename(format_name: str) -> str:
    return re.sub(r"\s+", "_", format_name).lower() + ".png"


def social_image_url(public_id: str, format_name: str, cloud_name: str) -> str:
    preset = SOCIAL_FORMATS.get(format_name)
    if preset is None:
        raise BadRequest(f"Unknown social format: {format_name}")
    url, _ = cloudinary_url(
        public_id,
        width=preset.width,
        height=preset.height,
        aspect_ratio=preset.aspect_ratio,
        crop="fill",
        gravity="auto",
        format="png",
        secure=True,
        cloud_name=cloud_name,
    )
    return url


def render_social_formats(public_id: str, cloud_name: str) -> List[dict]:
    """Every preset for one uploaded image, in display order."""
    return [
        {
            "name": name,
            "width": preset.width,
            "height": preset.height,
            "aspect_ratio": preset.aspect_ratio,
            "url": social_image_url(public_id, name, cloud_name),
            "download_filename": download_filename(name),
        }
        for name, preset in SOCIAL_FORMATS.items()
    ]
