import re

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from account.identity import issue_identity_token
from content.models import PackContent
from mediastore import TransientStoreError

pytestmark = pytest.mark.django_db


class TestUploadUrl:
    url = "/api/upload-url"

    def test_issues_presigned_put(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {
            "packId": "p1", "contentType": "video/mp4", "originalName": "My Clip.mp4", "expiresIn": 900,
        }, format="json")

        assert resp.status_code == 200
        body = resp.json()
        assert re.fullmatch(r"packs/p1/videos/\d{13}_My_Clip\.mp4", body["key"])
        assert body["uploadUrl"].startswith(f"https://store.test/{body['key']}")
        assert body["publicUrl"] == f"https://cdn.test/{body['key']}"
        assert body["expiresIn"] == 900
        assert body["packId"] == "p1"
        assert body["contentType"] == "video/mp4"
        assert body["originalName"] == "My Clip.mp4"

        op, key, ctype, meta, ttl = use_store.presigned[-1]
        assert (op, key, ctype, ttl) == ("put", body["key"], "video/mp4", 900)
        assert meta["packId"] == "p1"
        assert meta["vendorId"] == "vendor-1"
        assert meta["vendorUsername"] == "bob"
        assert meta["originalName"] == "My%20Clip.mp4"
        assert "uploadedAt" in meta

    def test_default_expiry(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {
            "packId": "p1", "contentType": "video/webm", "originalName": "a.webm",
        }, format="json")
        assert resp.json()["expiresIn"] == 3600

    def test_rejects_non_video(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {
            "packId": "p1", "contentType": "image/png", "originalName": "a.png",
        }, format="json")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"

    def test_other_vendors_pack_is_forbidden(self, pack, use_store):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_identity_token('vendor-2', 'mallory')}")
        resp = client.post(self.url, {"packId": "p1", "contentType": "video/mp4", "originalName": "a.mp4"}, format="json")
        assert resp.status_code == 403

    def test_requires_identity(self, api_client, pack):
        resp = api_client.post(self.url, {"packId": "p1"}, format="json")
        assert resp.status_code == 401
        assert resp.json()["error"] == "not_authenticated"

    def test_bad_identity_token(self, api_client, pack):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not.a.jwt")
        resp = api_client.post(self.url, {"packId": "p1"}, format="json")
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"

    def test_store_outage(self, vendor_client, pack, use_store):
        use_store.fail_with = TransientStoreError("boom")
        resp = vendor_client.post(self.url, {"packId": "p1", "contentType": "video/mp4", "originalName": "a.mp4"}, format="json")
        assert resp.status_code == 502


class TestConfirmUpload:
    url = "/api/confirm-upload"
    key = "packs/p1/videos/1700000000000_clip.mp4"

    def test_missing_object_is_404_and_index_untouched(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1", "key": self.key, "originalName": "clip.mp4"}, format="json")
        assert resp.status_code == 404
        assert resp.json()["error"] == "object_not_found"
        assert PackContent.objects.get(pk="p1").content == []

    def test_records_entry(self, vendor_client, pack, use_store):
        use_store.add(self.key, b"x" * 4096, "video/mp4")
        resp = vendor_client.post(self.url, {"packId": "p1", "key": self.key, "originalName": "clip.mp4"}, format="json")

        assert resp.status_code == 200
        assert resp.json() == {"key": self.key, "size": 4096, "type": "video/mp4", "name": "clip.mp4", "processed": False}
        [entry] = PackContent.objects.get(pk="p1").content
        assert entry["key"] == self.key
        assert entry["type"] == "video"
        assert entry["processed"] is False
        assert entry["vendorId"] == "vendor-1"
        assert entry["vendorUsername"] == "bob"
        assert entry["uploadedAt"]

    def test_confirm_is_idempotent(self, vendor_client, pack, use_store):
        use_store.add(self.key, b"x" * 10, "video/mp4")
        for _ in range(2):
            vendor_client.post(self.url, {"packId": "p1", "key": self.key}, format="json")
        assert len(PackContent.objects.get(pk="p1").content) == 1

    def test_reconfirm_keeps_bake_status(self, vendor_client, pack, use_store):
        use_store.add(self.key, b"x" * 10, "video/mp4")
        PackContent.objects.filter(pk="p1").update(content=[
            {"key": self.key, "type": "video", "processed": True, "lastProcessed": "2024-05-01T00:00:00+00:00"},
        ])
        resp = vendor_client.post(self.url, {"packId": "p1", "key": self.key}, format="json")
        assert resp.json()["processed"] is True

    def test_key_must_belong_to_pack(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1", "key": "packs/p2/videos/x.mp4"}, format="json")
        assert resp.status_code == 400
        assert resp.json()["error"] == "key_outside_pack"


class TestProxiedUpload:
    url = "/api/upload"

    def _file(self, data=b"\x00" * 2048, name="clip.mp4", ctype="video/mp4"):
        return SimpleUploadedFile(name, data, content_type=ctype)

    def test_stores_and_records(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1", "video": self._file()}, format="multipart")

        assert resp.status_code == 200
        body = resp.json()
        assert body["processed"] is False
        assert body["size"] == 2048
        assert body["type"] == "video/mp4"
        assert body["key"].startswith("packs/p1/videos/")
        assert use_store.data(body["key"]) == b"\x00" * 2048
        assert PackContent.objects.get(pk="p1").content[0]["key"] == body["key"]

    def test_explicit_key(self, vendor_client, pack, use_store):
        key = "packs/p1/videos/custom.mp4"
        resp = vendor_client.post(self.url, {"packId": "p1", "key": key, "video": self._file()}, format="multipart")
        assert resp.status_code == 200
        assert resp.json()["key"] == key

    def test_over_limit_is_413(self, vendor_client, pack, use_store, settings):
        settings.UPLOAD_MAX_BYTES = 1024
        resp = vendor_client.post(self.url, {"packId": "p1", "video": self._file()}, format="multipart")
        assert resp.status_code == 413
        assert resp.json()["error"] == "payload_too_large"
        assert use_store.objects == {}
        assert PackContent.objects.get(pk="p1").content == []

    def test_empty_file(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1", "video": self._file(b"")}, format="multipart")
        assert resp.status_code == 400
        assert use_store.objects == {}

    def test_missing_file(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1"}, format="multipart")
        assert resp.status_code == 400

    def test_non_video(self, vendor_client, pack, use_store):
        resp = vendor_client.post(self.url, {"packId": "p1", "video": self._file(name="a.png", ctype="image/png")}, format="multipart")
        assert resp.status_code == 400

    def test_existing_key_conflicts(self, vendor_client, pack, use_store):
        key = "packs/p1/videos/custom.mp4"
        PackContent.objects.filter(pk="p1").update(content=[{"key": key, "type": "video", "processed": True}])
        resp = vendor_client.post(self.url, {"packId": "p1", "key": key, "video": self._file()}, format="multipart")
        assert resp.status_code == 409
        assert use_store.objects == {}
