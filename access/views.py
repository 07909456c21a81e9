# access/views.py
import hmac
import logging

from django.conf import settings
from django.http import HttpResponse
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from content.items import VideoItem, parse_item
from content.models import PackContent
from mediastore import ObjectNotFound, TransientStoreError, build_media_store
from watermark import build_image_watermarker, build_video_watermarker, is_animated
from watermark.exceptions import WatermarkError

from .serializers import ContentAccessSerializer, TokenIssueSerializer
from .tokens import InvalidInput, TokenError, build_token_service

logger = logging.getLogger(__name__)

_ANIMATED_SUFFIX = {
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/png": ".png",
}


def _bearer_token(request) -> str:
    header = request.META.get("HTTP_AUTHORIZATION", "")
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    # <img>/<video> elements cannot set headers
    return (request.query_params.get("token") or "").strip()


def _protected_response(data: bytes, content_type: str, watermark: str) -> HttpResponse:
    resp = HttpResponse(data, content_type=content_type)
    resp["Content-Length"] = str(len(data))
    resp["Cache-Control"] = "no-cache, no-store, must-revalidate"
    resp["Pragma"] = "no-cache"
    resp["Expires"] = "0"
    resp["X-Content-Type-Options"] = "nosniff"
    resp["X-Frame-Options"] = "DENY"
    resp["Content-Disposition"] = "inline"
    resp["X-Watermark"] = watermark
    return resp


class ContentAccessView(APIView):
    """
    POST /api/access
    Authorization: Bearer <access token>   (or ?token=<access token>)
    JSON: {"packId": "...", "contentKey": "..."}
    Returns:
      image -> watermarked bytes, content-type preserved, caching disabled
      video -> {"type": "video", "signedUrl": "...", "expiresIn": ..., ...}
    """
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    media_store = None
    token_service = None
    image_watermarker = None
    video_watermarker = None

    def post(self, request):
        token = _bearer_token(request)
        if not token:
            return Response({"error": "missing_token"}, status=status.HTTP_401_UNAUTHORIZED)

        tokens = self.token_service or build_token_service()
        try:
            claims = tokens.verify(token)
        except TokenError as e:
            return Response({"error": e.reason}, status=status.HTTP_401_UNAUTHORIZED)

        if not claims.key or not claims.buyer_username:
            return Response({"error": "incomplete_token"}, status=status.HTTP_400_BAD_REQUEST)

        ser = ContentAccessSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "invalid_input", "details": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        body_pack = ser.validated_data.get("packId") or None
        body_key = ser.validated_data.get("contentKey") or None

        pack_id = claims.pack_id or body_pack
        if not pack_id:
            return Response({"error": "missing_pack_id"}, status=status.HTTP_400_BAD_REQUEST)
        if (claims.pack_id and body_pack and body_pack != claims.pack_id) or (body_key and body_key != claims.key):
            return Response({"error": "token_scope_mismatch"}, status=status.HTTP_403_FORBIDDEN)

        pack = PackContent.objects.filter(pk=pack_id).first()
        if pack is None:
            return Response({"error": "pack_not_found"}, status=status.HTTP_404_NOT_FOUND)
        item = parse_item(pack.find_item(claims.key))
        if item is None:
            return Response({"error": "content_not_found"}, status=status.HTTP_404_NOT_FOUND)

        vendor = claims.vendor_username or pack.vendor_username or claims.vendor_id
        store = self.media_store or build_media_store()
        try:
            if isinstance(item, VideoItem):
                return self._serve_video(store, item, claims, vendor)
            return self._serve_image(store, item, claims, vendor)
        except ObjectNotFound:
            logger.warning("pack %s: %s is indexed but missing from the store", pack_id, item.key)
            return Response({"error": "object_not_found"}, status=status.HTTP_404_NOT_FOUND)
        except TransientStoreError as e:
            logger.error("pack %s: store failure for %s: %s", pack_id, item.key, e)
            return Response({"error": "store_unavailable"}, status=status.HTTP_502_BAD_GATEWAY)

    def _serve_video(self, store, item, claims, vendor):
        ttl = settings.SIGNED_VIDEO_URL_TTL_SECONDS
        url = store.presign_get(item.key, ttl=ttl)
        if not item.processed:
            logger.info("serving %s before its vendor bake finished", item.key)
        return Response({
            "type": "video",
            "signedUrl": url,
            "expiresIn": ttl,
            "contentType": item.mime_type or "video/mp4",
            "name": item.name,
            "size": item.size,
            "processed": item.processed,
            "watermark": {
                "buyer": claims.buyer_username,
                "vendor": vendor,
                "baked": item.processed,
            },
        }, status=status.HTTP_200_OK)

    def _serve_image(self, store, item, claims, vendor):
        data = store.get(item.key)

        if is_animated(data):
            video_wm = self.video_watermarker or build_video_watermarker()
            suffix = _ANIMATED_SUFFIX.get(item.mime_type, ".gif")
            try:
                out = video_wm.watermark_bytes(data, vendor=vendor, buyer=claims.buyer_username, suffix=suffix)
            except WatermarkError as e:
                logger.warning("animated watermark failed for %s, serving original: %s", item.key, e)
                return _protected_response(data, item.mime_type or "application/octet-stream", "none")
            return _protected_response(out, "video/mp4", claims.buyer_username)

        image_wm = self.image_watermarker or build_image_watermarker()
        result = image_wm.apply(data, claims.buyer_username, vendor, content_type=item.mime_type or None)
        return _protected_response(result.data, result.content_type, claims.buyer_username if result.applied else "none")


class AccessTokenIssueView(APIView):
    """
    POST /api/access/token
    X-Service-Key: <CATALOG_SERVICE_KEY>
    JSON: {"contentKey", "packId", "buyerId", "buyerUsername",
           "vendorId", "vendorUsername", "orderId", "ttl"?}
    Returns: {"token": "...", "expiresIn": <seconds>}
    Called by the catalog after its entitlement check passed.
    """
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    token_service = None

    def post(self, request):
        expected = settings.CATALOG_SERVICE_KEY
        given = request.META.get("HTTP_X_SERVICE_KEY", "")
        if not expected or not hmac.compare_digest(given.encode(), expected.encode()):
            return Response({"error": "forbidden"}, status=status.HTTP_403_FORBIDDEN)

        ser = TokenIssueSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "invalid_input", "details": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        d = ser.validated_data

        tokens = self.token_service or build_token_service()
        ttl = d.get("ttl") or tokens.ttl
        try:
            token = tokens.issue(
                d["contentKey"], d["buyerId"], d["buyerUsername"],
                d["vendorId"], d["vendorUsername"], d["orderId"],
                ttl=ttl, pack_id=d.get("packId") or None,
            )
        except InvalidInput as e:
            return Response({"error": e.reason, "details": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"token": token, "expiresIn": ttl}, status=status.HTTP_200_OK)
