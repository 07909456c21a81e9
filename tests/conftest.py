import pytest
from rest_framework.test import APIClient

from access.tokens import AccessTokenService
from account.identity import issue_identity_token
from content.models import PackContent

from .fakes import FakeVideoWatermarker, InMemoryMediaStore

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123"


@pytest.fixture(autouse=True)
def _pack_settings(settings):
    settings.ACCESS_TOKEN_SECRET = ACCESS_SECRET
    settings.ACCESS_TOKEN_TTL_SECONDS = 120
    settings.WATERMARK_DOMAIN = "packs.test"
    settings.REPROCESS_IN_BACKGROUND = False
    settings.CATALOG_SERVICE_KEY = "catalog-service-key"
    settings.FFMPEG_BIN = "ffmpeg"


@pytest.fixture
def store():
    return InMemoryMediaStore()


@pytest.fixture
def video_wm():
    return FakeVideoWatermarker()


@pytest.fixture
def token_service():
    return AccessTokenService(ACCESS_SECRET, ttl=120)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def vendor_client():
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_identity_token('vendor-1', 'bob')}")
    return client


@pytest.fixture
def pack(db):
    return PackContent.objects.create(
        pack_id="p1",
        vendor_id="vendor-1",
        vendor_username="bob",
        title="Spring pack",
        content=[],
    )


@pytest.fixture
def use_store(monkeypatch, store):
    """Route every view's store construction to the in-memory fake."""
    monkeypatch.setattr("access.views.build_media_store", lambda: store)
    monkeypatch.setattr("content.views_uploads.build_media_store", lambda: store)
    return store


@pytest.fixture
def use_reprocessor(monkeypatch, store, video_wm):
    from content import reprocessor

    monkeypatch.setattr(reprocessor, "build_reprocessor",
                        lambda: reprocessor.VideoReprocessor(store, video_wm, max_workers=2))
    return video_wm
