# content/views_uploads.py
import logging
import pathlib
import time
from urllib.parse import quote

from django.conf import settings
from django.utils import timezone
from django.utils.text import get_valid_filename
from rest_framework import permissions, status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from mediastore import ObjectNotFound, TransientStoreError, build_media_store

from .index import upsert_entry
from .models import PackContent
from .serializers import ConfirmUploadSerializer, ProxiedUploadSerializer, UploadUrlSerializer

logger = logging.getLogger(__name__)


def _safe_name(original: str) -> str:
    p = pathlib.Path(original or "")
    stem = get_valid_filename(p.stem) if p.stem else ""
    return f"{stem or 'video'}{p.suffix.lower() or '.mp4'}"


def _video_key(pack_id: str, original: str) -> str:
    return f"packs/{pack_id}/videos/{int(time.time() * 1000)}_{_safe_name(original)}"


def _in_pack(pack_id: str, key: str) -> bool:
    return key.startswith(f"packs/{pack_id}/") and ".." not in key


def _is_video_mimetype(mt: str | None) -> bool:
    return bool(mt and mt.startswith("video/"))


def owned_pack(request, pack_id: str):
    """(pack, None) for the caller's own pack, else (None, error response)."""
    pack = PackContent.objects.filter(pk=pack_id).first()
    if pack is None:
        return None, Response({"error": "pack_not_found"}, status=status.HTTP_404_NOT_FOUND)
    if str(pack.vendor_id) != str(request.user.id):
        return None, Response({"error": "forbidden"}, status=status.HTTP_403_FORBIDDEN)
    return pack, None


def _video_entry(request, key: str, name: str, mime: str, size: int) -> dict:
    return {
        "key": key,
        "name": name,
        "type": "video",
        "mimeType": mime,
        "size": int(size),
        "processed": False,
        "uploadedAt": timezone.now().isoformat(),
        "vendorId": str(request.user.id),
        "vendorUsername": request.user.username,
    }


def _entry_response(entry: dict) -> Response:
    return Response({
        "key": entry["key"],
        "size": entry.get("size", 0),
        "type": entry.get("mimeType") or "video/mp4",
        "name": entry.get("name", ""),
        "processed": bool(entry.get("processed", False)),
    }, status=status.HTTP_200_OK)


class UploadUrlView(APIView):
    """
    POST /api/upload-url
    JSON: {"packId", "contentType", "originalName", "expiresIn"?}
    Returns: {"uploadUrl", "key", "publicUrl", "contentType", "originalName",
              "expiresIn", "packId"}
    The caller PUTs the file to uploadUrl, then calls /api/confirm-upload.
    """
    permission_classes = [permissions.IsAuthenticated]
    media_store = None

    def post(self, request):
        ser = UploadUrlSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "invalid_input", "details": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        d = ser.validated_data

        pack, err = owned_pack(request, d["packId"])
        if err is not None:
            return err

        key = _video_key(pack.pk, d["originalName"])
        metadata = {
            "packId": pack.pk,
            "vendorId": request.user.id,
            "vendorUsername": quote(request.user.username),
            "originalName": quote(d["originalName"]),
            "uploadedAt": timezone.now().isoformat(),
        }
        store = self.media_store or build_media_store()
        try:
            upload_url = store.presign_put(key, d["contentType"], metadata=metadata, ttl=d["expiresIn"])
        except TransientStoreError as e:
            logger.error("presign failed for %s: %s", key, e)
            return Response({"error": "store_unavailable"}, status=status.HTTP_502_BAD_GATEWAY)

        logger.info("pack %s: issued upload url for %s", pack.pk, key)
        return Response({
            "uploadUrl": upload_url,
            "key": key,
            "publicUrl": store.object_url(key),
            "contentType": d["contentType"],
            "originalName": d["originalName"],
            "expiresIn": d["expiresIn"],
            "packId": pack.pk,
        }, status=status.HTTP_200_OK)


class ConfirmUploadView(APIView):
    """
    POST /api/confirm-upload
    JSON: {"packId", "key", "originalName"?}
    Verifies the object landed in the store, then records it in the index.
    Returns: {"key", "size", "type", "name", "processed"}; 404 if the object is missing.
    """
    permission_classes = [permissions.IsAuthenticated]
    media_store = None

    def post(self, request):
        ser = ConfirmUploadSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "invalid_input", "details": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        d = ser.validated_data

        pack, err = owned_pack(request, d["packId"])
        if err is not None:
            return err
        key = d["key"]
        if not _in_pack(pack.pk, key):
            return Response({"error": "key_outside_pack"}, status=status.HTTP_400_BAD_REQUEST)

        store = self.media_store or build_media_store()
        try:
            head = store.head(key)
        except ObjectNotFound:
            return Response({"error": "object_not_found"}, status=status.HTTP_404_NOT_FOUND)
        except TransientStoreError as e:
            logger.error("head failed for %s: %s", key, e)
            return Response({"error": "store_unavailable"}, status=status.HTTP_502_BAD_GATEWAY)

        name = d.get("originalName") or pathlib.PurePosixPath(key).name
        mime = head.content_type if _is_video_mimetype(head.content_type) else "video/mp4"
        entry = upsert_entry(pack, _video_entry(request, key, name, mime, head.size))
        logger.info("pack %s: confirmed %s (%d bytes)", pack.pk, key, head.size)
        return _entry_response(entry)


class ProxiedUploadView(APIView):
    """
    POST /api/upload
    multipart/form-data: video=<file>, packId=<id>, key=<optional key>
    Returns: {"key", "size", "type", "name", "processed"}; 413 over UPLOAD_MAX_BYTES.
    """
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]
    media_store = None

    def post(self, request):
        f = request.FILES.get("video")
        if not f:
            return Response({"error": "file required (multipart field 'video')"}, status=status.HTTP_400_BAD_REQUEST)

        ser = ProxiedUploadSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "invalid_input", "details": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        d = ser.validated_data

        if f.size > settings.UPLOAD_MAX_BYTES:
            return Response({"error": "payload_too_large", "limit": settings.UPLOAD_MAX_BYTES},
                            status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)
        if f.size == 0:
            return Response({"error": "empty_file"}, status=status.HTTP_400_BAD_REQUEST)

        mime = f.content_type or "video/mp4"
        if not _is_video_mimetype(mime):
            return Response({"error": f"unsupported type: {mime}"}, status=status.HTTP_400_BAD_REQUEST)

        pack, err = owned_pack(request, d["packId"])
        if err is not None:
            return err

        key = d.get("key") or _video_key(pack.pk, f.name)
        if not _in_pack(pack.pk, key):
            return Response({"error": "key_outside_pack"}, status=status.HTTP_400_BAD_REQUEST)
        if pack.find_item(key) is not None:
            return Response({"error": "key_exists"}, status=status.HTTP_409_CONFLICT)

        store = self.media_store or build_media_store()
        f.seek(0)
        try:
            store.put(key, f, mime, metadata={
                "packId": pack.pk,
                "vendorId": request.user.id,
                "originalName": quote(f.name),
            })
        except TransientStoreError as e:
            logger.error("upload to store failed for %s: %s", key, e)
            return Response({"error": "store_unavailable"}, status=status.HTTP_502_BAD_GATEWAY)

        entry = upsert_entry(pack, _video_entry(request, key, f.name, mime, f.size))
        logger.info("pack %s: uploaded %s (%d bytes)", pack.pk, key, f.size)
        return _entry_response(entry)
