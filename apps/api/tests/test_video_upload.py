from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.future import select

from conftest import AUTH_HEADER, UPLOAD_USER_ID, install_overrides
from main import create_app
from models.video import Video
from routers.video import get_media_processor, get_video_store
from services.access_policy import AccessPolicy
from services.errors import StoreError
from services.media_processor import ProcessingMode

MIB = 1024 * 1024


async def _all_videos(session_maker):
    async with session_maker() as session:
        result = await session.execute(select(Video))
        return list(result.scalars().all())


async def _upload(client, payload: bytes, **fields):
    data = {"title": "Demo", "description": "First cut", "originalSize": str(len(payload))}
    data.update(fields)
    return await client.post(
        "/api/video-upload",
        files={"file": ("demo.mp4", payload, "video/mp4")},
        data=data,
        headers=AUTH_HEADER,
    )


@pytest.mark.asyncio
async def test_small_upload_is_processed_inline_and_persisted(api_client, fake_processor, session_maker):
    started = datetime.now(timezone.utc)
    response = await _upload(api_client, b"\0" * (10 * MIB))

    assert response.status_code == 200
    payload = response.json()
    assert payload["title"] == "Demo"
    assert payload["description"] == "First cut"
    assert payload["original_size_bytes"] == 10485760
    assert payload["processed_size_bytes"] == fake_processor.processed_bytes
    assert payload["duration_seconds"] == pytest.approx(fake_processor.duration)
    assert payload["remote_asset_id"] == "video-uploads/fake-1"
    assert fake_processor.video_calls == [(10 * MIB, ProcessingMode.INLINE)]

    videos = await _all_videos(session_maker)
    assert len(videos) == 1
    video = videos[0]
    assert video.id == payload["id"]
    assert video.original_size == 10485760
    assert video.compressed_size == fake_processor.processed_bytes
    assert video.uploaded_by == UPLOAD_USER_ID
    assert video.created_at.replace(tzinfo=None) >= started.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_large_upload_is_processed_eagerly_with_immediate_descriptor(api_client, fake_processor, session_maker):
    fake_processor.processed_bytes = 52428800
    fake_processor.duration = 0.0
    response = await _upload(api_client, b"\0" * (50 * MIB), title="Long take")

    assert response.status_code == 200
    assert fake_processor.video_calls == [(50 * MIB, ProcessingMode.EAGER)]

    videos = await _all_videos(session_maker)
    assert len(videos) == 1
    assert videos[0].title == "Long take"
    assert videos[0].compressed_size == 52428800
    assert videos[0].duration == 0.0


@pytest.mark.asyncio
async def test_processor_failure_writes_no_record(api_client, fake_processor, session_maker):
    fake_processor.fail = True
    response = await _upload(api_client, b"fake-video-binary")

    assert response.status_code == 500
    assert response.json() == {"error": "Media processor upload failed"}
    assert await _all_videos(session_maker) == []


@pytest.mark.asyncio
async def test_missing_file_is_a_bad_request(api_client, fake_processor):
    response = await api_client.post(
        "/api/video-upload",
        data={"title": "Demo", "originalSize": "100"},
        headers=AUTH_HEADER,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "File not found"}
    assert fake_processor.video_calls == []


@pytest.mark.asyncio
async def test_blank_title_is_a_bad_request(api_client, fake_processor, session_maker):
    response = await _upload(api_client, b"fake-video-binary", title="   ")
    assert response.status_code == 400
    assert fake_processor.video_calls == []
    assert await _all_videos(session_maker) == []


@pytest.mark.asyncio
async def test_non_numeric_original_size_is_a_bad_request(api_client, fake_processor):
    response = await _upload(api_client, b"fake-video-binary", originalSize="ten megabytes")
    assert response.status_code == 400
    assert "originalSize" in response.json()["error"]
    assert fake_processor.video_calls == []


@pytest.mark.asyncio
async def test_omitted_original_size_defaults_to_received_bytes(api_client, session_maker):
    response = await api_client.post(
        "/api/video-upload",
        files={"file": ("demo.mp4", b"0123456789", "video/mp4")},
        data={"title": "Demo"},
        headers=AUTH_HEADER,
    )
    assert response.status_code == 200
    assert response.json()["original_size_bytes"] == 10
    assert response.json()["description"] is None


@pytest.mark.asyncio
async def test_missing_processor_configuration_fails_before_upload(api_client):
    from main import app

    app.dependency_overrides.pop(get_media_processor)
    with patch("config.settings.CLOUDINARY_CLOUD_NAME", ""):
        response = await _upload(api_client, b"fake-video-binary")

    assert response.status_code == 500
    assert response.json() == {"error": "Cloudinary credentials not found"}


@pytest.mark.asyncio
async def test_store_failure_is_reported(api_client, fake_processor):
    from main import app

    class _BrokenStore:
        async def create_record(self, fields):
            raise StoreError("Could not save video record")

        async def list_records(self):
            return []

    app.dependency_overrides[get_video_store] = lambda: _BrokenStore()
    response = await _upload(api_client, b"fake-video-binary")

    assert response.status_code == 500
    assert response.json() == {"error": "Could not save video record"}
    assert len(fake_processor.video_calls) == 1


@pytest.mark.asyncio
async def test_unexpected_failure_maps_to_generic_route_error(api_client, fake_processor, session_maker):
    async def _explode(data, mode):
        raise KeyError("bytes")

    fake_processor.process_video = _explode
    response = await _upload(api_client, b"fake-video-binary")

    assert response.status_code == 500
    assert response.json() == {"error": "Video upload route error"}
    assert await _all_videos(session_maker) == []


@pytest.mark.asyncio
async def test_handler_rejects_missing_session_when_gate_allows_path(session_maker, fake_processor):
    open_app = create_app(access_policy=AccessPolicy(public_api=("/api/video", "/api/video-upload")))
    install_overrides(open_app, session_maker, fake_processor)

    async with AsyncClient(transport=ASGITransport(app=open_app), base_url="http://test") as client:
        response = await client.post(
            "/api/video-upload",
            files={"file": ("demo.mp4", b"fake-video-binary", "video/mp4")},
            data={"title": "Demo", "originalSize": "17"},
        )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert fake_processor.video_calls == []
    assert await _all_videos(session_maker) == []
