from django.conf import settings

from .image import ImageWatermarker, WatermarkedImage, is_animated
from .video import VideoWatermarker


def build_image_watermarker() -> ImageWatermarker:
    return ImageWatermarker(settings.WATERMARK_DOMAIN)


def build_video_watermarker() -> VideoWatermarker:
    return VideoWatermarker(
        settings.WATERMARK_DOMAIN,
        timeout=settings.VIDEO_WATERMARK_TIMEOUT_SECONDS,
    )


__all__ = [
    "ImageWatermarker",
    "WatermarkedImage",
    "VideoWatermarker",
    "is_animated",
    "build_image_watermarker",
    "build_video_watermarker",
]
