import logging

from django.db import transaction
from django.utils import timezone

from .models import PackContent

logger = logging.getLogger(__name__)


STATUS_FIELDS = ("processed", "processingError", "lastProcessed", "processingStartedAt")


def upsert_entry(pack: PackContent, entry: dict) -> dict:
    """
    Update the entry with the same key in place, or append it.

    Goes through save() so the change notification fires; an in-place
    update keeps its position and is therefore not a new insertion.
    Reprocessing status of an existing entry is kept as is.
    """
    with transaction.atomic():
        row = PackContent.objects.select_for_update().get(pk=pack.pk)
        content = list(row.content or [])
        for i, existing in enumerate(content):
            if isinstance(existing, dict) and existing.get("key") == entry["key"]:
                fresh = {k: v for k, v in entry.items() if k not in STATUS_FIELDS}
                merged = {**existing, **fresh}
                content[i] = merged
                break
        else:
            merged = dict(entry)
            content.append(merged)
        row.content = content
        row.save()
    return merged


def patch_items(pack_id: str, patches: dict) -> int:
    """
    Apply {key: {field: value}} to matching entries without firing signals.

    Order, keys and untouched fields are preserved; a None value removes the
    field. Returns how many entries changed.
    """
    if not patches:
        return 0
    with transaction.atomic():
        row = PackContent.objects.select_for_update().filter(pk=pack_id).first()
        if row is None:
            logger.warning("pack %s vanished before status update", pack_id)
            return 0

        content = list(row.content or [])
        changed = 0
        for i, entry in enumerate(content):
            if not isinstance(entry, dict):
                continue
            fields = patches.get(entry.get("key"))
            if not fields:
                continue
            patched = dict(entry)
            for name, value in fields.items():
                if value is None:
                    patched.pop(name, None)
                else:
                    patched[name] = value
            content[i] = patched
            changed += 1

        if changed:
            PackContent.objects.filter(pk=pack_id).update(content=content, last_updated=timezone.now())
    return changed
