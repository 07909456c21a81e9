import logging
import threading

from django.conf import settings
from django.db import close_old_connections, transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from . import reprocessor
from .models import PackContent

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=PackContent)
def capture_previous_content(sender, instance, raw=False, **kwargs):
    if raw:
        return
    previous = sender.objects.filter(pk=instance.pk).values_list("content", flat=True).first()
    instance._content_before = previous or []


@receiver(post_save, sender=PackContent)
def schedule_video_bake(sender, instance, raw=False, **kwargs):
    """Content index changed: bake vendor marks into newly inserted videos."""
    if raw:
        return
    before = getattr(instance, "_content_before", [])
    candidates = reprocessor.detect_video_insertions(before, instance.content)
    if not candidates:
        return

    pack_id = instance.pk
    vendor = instance.vendor_username or instance.vendor_id
    logger.info("pack %s: %d new video(s) queued for bake", pack_id, len(candidates))
    transaction.on_commit(lambda: dispatch_bake(pack_id, candidates, vendor))


def _run_bake_in_thread(pack_id, candidates, vendor):
    try:
        reprocessor.build_reprocessor().process_pack(pack_id, candidates, vendor)
    except Exception:
        logger.exception("pack %s: reprocessing run failed", pack_id)
    finally:
        close_old_connections()


def dispatch_bake(pack_id, candidates, vendor):
    if not settings.REPROCESS_IN_BACKGROUND:
        reprocessor.build_reprocessor().process_pack(pack_id, candidates, vendor)
        return
    threading.Thread(
        target=_run_bake_in_thread,
        args=(pack_id, candidates, vendor),
        name=f"bake-{pack_id}",
        daemon=True,
    ).start()
