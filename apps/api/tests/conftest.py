import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from routers.video import get_media_processor
from services.errors import UpstreamProcessingError
from services.media_processor import ProcessedAsset, ProcessingMode
from services.session_token import create_session_token


UPLOAD_USER_ID = "upload-user"
AUTH_HEADER = {"Authorization": f"Bearer {create_session_token(UPLOAD_USER_ID)['token']}"}


class FakeMediaProcessor:
    """Records every call and answers like the remote processor would."""

    def __init__(self, processed_bytes: int = 2048, duration: float = 12.5):
        self.processed_bytes = processed_bytes
        self.duration = duration
        self.fail = False
        self.video_calls = []
        self.image_calls = []

    async def process_video(self, data: bytes, mode: ProcessingMode) -> ProcessedAsset:
        self.video_calls.append((len(data), mode))
        if self.fail:
            raise UpstreamProcessingError("Media processor upload failed")
        return ProcessedAsset(
            public_id=f"video-uploads/fake-{len(self.video_calls)}",
            bytes=self.processed_bytes,
            duration=self.duration,
            eager_pending=mode is ProcessingMode.EAGER,
        )

    async def upload_image(self, data: bytes) -> ProcessedAsset:
        self.image_calls.append(len(data))
        if self.fail:
            raise UpstreamProcessingError("Media processor upload failed")
        return ProcessedAsset(
            public_id=f"image-uploads/fake-{len(self.image_calls)}",
            bytes=len(data),
            resource_type="image",
        )


@pytest.fixture
def fake_processor():
    return FakeMediaProcessor()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "media_gallery.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


def install_overrides(target_app, session_maker, processor):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    target_app.dependency_overrides[get_db] = override_get_db
    target_app.dependency_overrides[get_media_processor] = lambda: processor


@pytest_asyncio.fixture
async def api_client(session_maker, fake_processor):
    install_overrides(app, session_maker, fake_processor)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
