# content/views_status.py
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .items import VideoItem, parse_items
from .views_uploads import owned_pack


def summarize(videos) -> dict:
    total = len(videos)
    processed = sum(1 for v in videos if v.processed)
    errors = sum(1 for v in videos if v.status == "error")
    return {
        "total": total,
        "processed": processed,
        "pending": total - processed - errors,
        "errors": errors,
        "isComplete": processed == total,
        "progress": round(processed / total * 100) if total else 100,
    }


class VideoStatusView(APIView):
    """
    GET /api/status?packId=<id>
    Returns: {"packId", "overallStatus": {...}, "videos": [...], "lastUpdated"}
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        pack_id = (request.query_params.get("packId") or "").strip()
        if not pack_id:
            return Response({"error": "packId required"}, status=status.HTTP_400_BAD_REQUEST)

        pack, err = owned_pack(request, pack_id)
        if err is not None:
            return err

        videos = [i for i in parse_items(pack.content) if isinstance(i, VideoItem)]
        return Response({
            "packId": pack.pk,
            "overallStatus": summarize(videos),
            "videos": [
                {
                    "key": v.key,
                    "name": v.name,
                    "size": v.size,
                    "type": v.mime_type or "video/mp4",
                    "processed": v.processed,
                    "processingError": v.processing_error,
                    "uploadedAt": v.uploaded_at,
                    "lastProcessed": v.last_processed,
                    "processingStartedAt": v.processing_started_at,
                    "status": v.status,
                }
                for v in videos
            ],
            "lastUpdated": pack.last_updated,
        }, status=status.HTTP_200_OK)
