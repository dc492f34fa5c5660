from unittest.mock import patch

import pytest

from conftest import AUTH_HEADER
from services.social_formats import SOCIAL_FORMATS, download_filename, social_image_url
from services.errors import BadRequest


@pytest.mark.asyncio
async def test_image_upload_returns_public_id(api_client, fake_processor):
    response = await api_client.post(
        "/api/image-upload",
        files={"file": ("photo.png", b"\x89PNG-fake", "image/png")},
        headers=AUTH_HEADER,
    )
    assert response.status_code == 200
    assert response.json() == {"public_id": "image-uploads/fake-1"}
    assert fake_processor.image_calls == [len(b"\x89PNG-fake")]


@pytest.mark.asyncio
async def test_image_upload_rejects_non_image_files(api_client, fake_processor):
    response = await api_client.post(
        "/api/image-upload",
        files={"file": ("clip.mp4", b"fake-video", "video/mp4")},
        headers=AUTH_HEADER,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Please upload an image file"}
    assert fake_processor.image_calls == []


@pytest.mark.asyncio
async def test_image_upload_processor_failure(api_client, fake_processor):
    fake_processor.fail = True
    response = await api_client.post(
        "/api/image-upload",
        files={"file": ("photo.png", b"\x89PNG-fake", "image/png")},
        headers=AUTH_HEADER,
    )
    assert response.status_code == 500
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_image_formats_cover_every_preset(api_client):
    with (
        patch("config.settings.CLOUDINARY_CLOUD_NAME", "demo"),
        patch("config.settings.CLOUDINARY_API_KEY", "key"),
        patch("config.settings.CLOUDINARY_API_SECRET", "secret"),
    ):
        response = await api_client.get("/api/image-formats/image-uploads/fake-1", headers=AUTH_HEADER)

    assert response.status_code == 200
    formats = response.json()
    assert [item["name"] for item in formats] == list(SOCIAL_FORMATS)
    square = formats[0]
    assert (square["width"], square["height"]) == (1080, 1080)
    assert square["download_filename"] == "instagram_square_(1:1).png"
    assert "c_fill" in square["url"]
    assert "g_auto" in square["url"]
    assert square["url"].endswith("image-uploads/fake-1.png")


def test_download_filename_collapses_whitespace():
    assert download_filename("Facebook Cover (205:78)") == "facebook_cover_(205:78).png"


def test_unknown_social_format_is_rejected():
    with pytest.raises(BadRequest):
        social_image_url("image-uploads/fake-1", "Myspace Banner", "demo")
