from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

# camelCase keys as stored in the index document
_COMMON = {
    "key": "key",
    "name": "name",
    "mime_type": "mimeType",
    "size": "size",
    "uploaded_at": "uploadedAt",
    "vendor_id": "vendorId",
}
_VIDEO = {
    "processed": "processed",
    "processing_error": "processingError",
    "last_processed": "lastProcessed",
    "processing_started_at": "processingStartedAt",
    "vendor_username": "vendorUsername",
}


@dataclass
class _BaseItem:
    key: str
    name: str | None = None
    mime_type: str | None = None
    size: int | None = None
    uploaded_at: str | None = None
    vendor_id: str | None = None
    # catalog-owned attributes carried through untouched
    extra: dict = field(default_factory=dict, repr=False)

    type: ClassVar[str] = ""
    _fields: ClassVar[dict] = _COMMON

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out["type"] = self.type
        for attr, name in self._fields.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[name] = value
        return out

    @property
    def is_sample(self) -> bool:
        return self.type == "sample" or bool(self.extra.get("isSample"))


@dataclass
class ImageItem(_BaseItem):
    type: ClassVar[str] = "image"


@dataclass
class SampleItem(_BaseItem):
    """Free image preview. Video samples parse as VideoItem."""

    type: ClassVar[str] = "sample"


@dataclass
class VideoItem(_BaseItem):
    processed: bool = False
    processing_error: str | None = None
    last_processed: str | None = None
    processing_started_at: str | None = None
    vendor_username: str | None = None

    type: ClassVar[str] = "video"
    _fields: ClassVar[dict] = {**_COMMON, **_VIDEO}

    @property
    def status(self) -> str:
        if self.processed:
            return "completed"
        if self.processing_started_at:
            return "processing"
        if self.processing_error:
            return "error"
        return "pending"


ContentItem = Union[ImageItem, VideoItem, SampleItem]

_VARIANTS = {cls.type: cls for cls in (ImageItem, VideoItem, SampleItem)}


def _discriminant(entry: dict) -> str | None:
    raw = str(entry.get("type") or "").lower()
    # legacy entries store the MIME type in "type"
    mime = raw if "/" in raw else str(entry.get("mimeType") or "").lower()
    # a video is always a video, sample or not
    if raw == "video" or mime.startswith("video/"):
        return "video"
    if entry.get("isSample") or raw == "sample":
        return "sample"
    if raw in _VARIANTS:
        return raw
    if mime.startswith("image/"):
        return "image"
    return None


def parse_item(entry) -> ContentItem | None:
    """Index entry dict -> tagged item, or None if it is not a media item."""
    if not isinstance(entry, dict) or not entry.get("key"):
        return None
    kind = _discriminant(entry)
    if kind is None:
        return None

    cls = _VARIANTS[kind]
    known = set(cls._fields.values()) | {"type"}
    kwargs = {attr: entry[name] for attr, name in cls._fields.items() if name in entry}
    if "/" in str(entry.get("type") or "") and "mime_type" not in kwargs:
        kwargs["mime_type"] = entry["type"]
    if "size" in kwargs:
        try:
            kwargs["size"] = int(kwargs["size"] or 0)
        except (TypeError, ValueError):
            kwargs["size"] = 0
    if cls is VideoItem:
        kwargs["processed"] = bool(kwargs.get("processed", False))
    kwargs["extra"] = {k: v for k, v in entry.items() if k not in known}
    if cls is not SampleItem and str(entry.get("type") or "").lower() == "sample":
        kwargs["extra"]["isSample"] = True
    return cls(**kwargs)


def parse_items(entries) -> list:
    """Parsed items in index order; non-media entries are skipped."""
    out = []
    for entry in entries or []:
        item = parse_item(entry)
        if item is not None:
            out.append(item)
    return out
