from __future__ import annotations

import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Sequence

from django.conf import settings
from django.utils import timezone

from mediastore import MediaStoreError, build_media_store
from watermark import build_video_watermarker
from watermark.exceptions import WatermarkError

from .index import patch_items
from .items import VideoItem, parse_item

logger = logging.getLogger(__name__)


@dataclass
class BakeOutcome:
    key: str
    status: str  # "fulfilled" | "rejected"
    size: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"


def detect_video_insertions(before, after) -> List[VideoItem]:
    """
    Videos in `after` that need a vendor bake.

    Positional diff: an entry qualifies when its key differs from the key at
    the same index in `before`, the key is not elsewhere in `before` (a
    move, not an insertion), and the entry is not already processed.
    """
    before = list(before or [])
    before_keys = {e.get("key") for e in before if isinstance(e, dict)}

    candidates: List[VideoItem] = []
    seen = set()
    for i, entry in enumerate(after or []):
        item = parse_item(entry)
        if not isinstance(item, VideoItem):
            continue
        prev = before[i] if i < len(before) else None
        if isinstance(prev, dict) and prev.get("key") == item.key:
            continue
        if item.key in before_keys or item.key in seen:
            continue
        if item.processed:
            continue
        seen.add(item.key)
        candidates.append(item)
    return candidates


def _error_text(exc: Exception) -> str:
    # store and engine errors carry safe messages; anything else only its type
    if isinstance(exc, (WatermarkError, MediaStoreError)):
        return f"{exc.reason}: {exc}"
    return type(exc).__name__


def _suffix_for(item: VideoItem) -> str:
    ext = os.path.splitext(item.key)[1].lower()
    return ext if ext and len(ext) <= 5 else ".mp4"


class VideoReprocessor:
    """
    Bakes the vendor watermark into freshly uploaded videos in place.

    Each candidate is an independent task; every task runs to completion or
    failure and the stored object is replaced only after a successful bake.
    """

    def __init__(self, store, watermarker, max_workers: int = 4):
        self.store = store
        self.watermarker = watermarker
        self.max_workers = max(1, int(max_workers))

    def bake(self, item: VideoItem, vendor_username: str) -> int:
        data = self.store.get(item.key)
        workdir = tempfile.mkdtemp(prefix="rebake_")
        try:
            input_path = os.path.join(workdir, f"source{_suffix_for(item)}")
            output_path = os.path.join(workdir, "baked.mp4")
            with open(input_path, "wb") as f:
                f.write(data)

            self.watermarker.watermark_file(input_path, output_path, vendor=vendor_username)

            size = os.path.getsize(output_path)
            with open(output_path, "rb") as f:
                self.store.put(item.key, f, "video/mp4")
            return size
        finally:
            try:
                shutil.rmtree(workdir)
            except OSError:
                logger.warning("could not remove %s", workdir, exc_info=True)

    def _settle(self, pack_id: str, item: VideoItem, vendor_username: str) -> BakeOutcome:
        try:
            size = self.bake(item, vendor_username)
        except Exception as e:
            logger.error("pack %s: bake failed for %s: %s", pack_id, item.key, _error_text(e), exc_info=True)
            return BakeOutcome(item.key, "rejected", error=_error_text(e))
        logger.info("pack %s: baked %s (%d bytes)", pack_id, item.key, size)
        return BakeOutcome(item.key, "fulfilled", size=size)

    def process_pack(self, pack_id: str, candidates: Sequence[VideoItem], vendor_username: str) -> List[BakeOutcome]:
        if not candidates:
            return []

        logger.info("pack %s: baking %d video(s)", pack_id, len(candidates))
        started = timezone.now().isoformat()
        patch_items(pack_id, {item.key: {"processingStartedAt": started} for item in candidates})

        workers = min(self.max_workers, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bake") as pool:
            futures = [
                pool.submit(self._settle, pack_id, item, item.vendor_username or vendor_username)
                for item in candidates
            ]
            outcomes = [f.result() for f in futures]

        fulfilled = sum(1 for o in outcomes if o.ok)
        logger.info(
            "pack %s: %d fulfilled, %d rejected",
            pack_id, fulfilled, len(outcomes) - fulfilled,
        )
        self.record(pack_id, outcomes)
        return outcomes

    def record(self, pack_id: str, outcomes: Sequence[BakeOutcome]) -> int:
        now = timezone.now().isoformat()
        patches = {}
        for o in outcomes:
            if o.ok:
                patches[o.key] = {"processed": True, "size": o.size, "processingError": None, "lastProcessed": now,
                                  "processingStartedAt": None}
            else:
                patches[o.key] = {"processed": False, "processingError": o.error, "lastProcessed": now,
                                  "processingStartedAt": None}
        return patch_items(pack_id, patches)


def build_reprocessor() -> VideoReprocessor:
    return VideoReprocessor(
        build_media_store(),
        build_video_watermarker(),
        max_workers=settings.REPROCESS_MAX_WORKERS,
    )
