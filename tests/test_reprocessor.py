import pytest
from django.db.models.signals import post_save

from content.index import patch_items
from content.models import PackContent
from content.reprocessor import VideoReprocessor, detect_video_insertions
from watermark.exceptions import TranscodeFailure, TranscodeTimeout

from .fakes import FakeVideoWatermarker

IMG = {"key": "packs/p1/images/cover.jpg", "type": "image", "mimeType": "image/jpeg"}


def _video(key, **extra):
    return {"key": key, "type": "video", "mimeType": "video/mp4", "name": key.rsplit("/", 1)[-1],
            "processed": False, "uploadedAt": "2024-05-01T10:00:00+00:00", **extra}


def test_single_insertion_schedules_one_task():
    v1 = _video("packs/p1/videos/1_a.mp4", processed=True)
    v2 = _video("packs/p1/videos/2_b.mp4")
    found = detect_video_insertions([IMG, v1], [IMG, v1, v2])
    assert [c.key for c in found] == [v2["key"]]


def test_unchanged_readd_schedules_nothing():
    v1 = _video("packs/p1/videos/1_a.mp4")
    assert detect_video_insertions([IMG, v1], [IMG, dict(v1)]) == []


def test_processed_entries_are_never_candidates():
    v2 = _video("packs/p1/videos/2_b.mp4", processed=True)
    assert detect_video_insertions([IMG], [IMG, v2]) == []


def test_moved_entries_are_not_insertions():
    v0 = _video("packs/p1/videos/0_new.mp4")
    v1 = _video("packs/p1/videos/1_a.mp4")
    found = detect_video_insertions([v1], [v0, v1])
    assert [c.key for c in found] == [v0["key"]]


def test_images_and_image_samples_are_ignored():
    after = [IMG, {"key": "s1", "type": "sample", "mimeType": "image/jpeg"}]
    assert detect_video_insertions([], after) == []


def test_video_samples_are_baked():
    sample = {"key": "packs/p1/videos/2_preview.mp4", "type": "video", "isSample": True, "processed": False}
    assert [c.key for c in detect_video_insertions([], [IMG, sample])] == [sample["key"]]


def test_legacy_mime_typed_video_entry():
    legacy = {"key": "packs/p1/videos/9_old.mov", "type": "video/quicktime", "processed": False}
    assert [c.key for c in detect_video_insertions(None, [legacy])] == [legacy["key"]]


def test_duplicate_keys_in_one_update_are_baked_once():
    v = _video("packs/p1/videos/3_c.mp4")
    assert len(detect_video_insertions([], [v, dict(v)])) == 1


@pytest.mark.django_db
def test_bake_replaces_object_in_place_and_marks_entry(store, pack):
    v1 = _video("packs/p1/videos/1_a.mp4")
    v2 = _video("packs/p1/videos/2_b.mp4")
    PackContent.objects.filter(pk="p1").update(content=[IMG, v1, v2])
    store.add(v1["key"], b"FRAMES-A", "video/mp4")
    store.add(v2["key"], b"FRAMES-B", "video/mp4")

    wm = FakeVideoWatermarker()
    outcomes = VideoReprocessor(store, wm, max_workers=2).process_pack("p1", detect_video_insertions([IMG], [IMG, v1, v2]), "bob")

    assert [o.status for o in outcomes] == ["fulfilled", "fulfilled"]
    assert store.data(v1["key"]) == b"BAKED[bob]:FRAMES-A"
    assert store.objects[v1["key"]][1] == "video/mp4"
    assert {c["vendor"] for c in wm.calls} == {"bob"}
    assert all(c["buyer"] is None for c in wm.calls)

    content = PackContent.objects.get(pk="p1").content
    assert [e["key"] for e in content] == [IMG["key"], v1["key"], v2["key"]]
    assert content[0] == IMG
    assert content[1]["processed"] is True
    assert content[1]["size"] == len(b"BAKED[bob]:FRAMES-A")
    assert "lastProcessed" in content[1]
    assert "processingError" not in content[1]
    assert content[1]["name"] == v1["name"]
    assert "processingStartedAt" not in content[1]


@pytest.mark.django_db
def test_bake_start_is_marked_before_transcoding(store, pack, monkeypatch):
    from content import reprocessor

    v = _video("packs/p1/videos/1_a.mp4")
    PackContent.objects.filter(pk="p1").update(content=[v])
    store.add(v["key"], b"FRAMES", "video/mp4")
    patches = []
    real_patch = reprocessor.patch_items

    def recording_patch(pack_id, fields):
        patches.append(fields)
        return real_patch(pack_id, fields)

    monkeypatch.setattr(reprocessor, "patch_items", recording_patch)
    VideoReprocessor(store, FakeVideoWatermarker()).process_pack("p1", detect_video_insertions([], [v]), "bob")

    assert list(patches[0][v["key"]]) == ["processingStartedAt"]
    assert patches[-1][v["key"]]["processingStartedAt"] is None
    assert "processingStartedAt" not in PackContent.objects.get(pk="p1").content[0]


@pytest.mark.django_db
def test_failed_item_is_isolated_and_left_untouched(store, pack):
    ok = _video("packs/p1/videos/1_ok.mp4")
    slow = _video("packs/p1/videos/2_slow.mp4")
    broken = _video("packs/p1/videos/3_broken.mp4")
    PackContent.objects.filter(pk="p1").update(content=[ok, slow, broken])
    store.add(ok["key"], b"OK-FRAMES", "video/mp4")
    store.add(slow["key"], b"SLOW-FRAMES", "video/mp4")
    store.add(broken["key"], b"BROKEN-FRAMES", "video/mp4")

    wm = FakeVideoWatermarker(fail={
        b"SLOW": TranscodeTimeout("ffmpeg exceeded 300s"),
        b"BROKEN": TranscodeFailure("ffmpeg exited with code 1"),
    })
    candidates = detect_video_insertions([], [ok, slow, broken])
    outcomes = VideoReprocessor(store, wm).process_pack("p1", candidates, "bob")

    by_key = {o.key: o for o in outcomes}
    assert by_key[ok["key"]].ok
    assert by_key[slow["key"]].status == "rejected"
    assert by_key[slow["key"]].error.startswith("transcode_timeout")
    assert by_key[broken["key"]].error.startswith("transcode_failed")

    # timed-out and failed objects are byte-identical to before
    assert store.data(slow["key"]) == b"SLOW-FRAMES"
    assert store.data(broken["key"]) == b"BROKEN-FRAMES"
    assert store.data(ok["key"]) == b"BAKED[bob]:OK-FRAMES"

    content = {e["key"]: e for e in PackContent.objects.get(pk="p1").content}
    assert content[slow["key"]]["processed"] is False
    assert content[slow["key"]]["processingError"].startswith("transcode_timeout")
    assert content[ok["key"]]["processed"] is True


@pytest.mark.django_db
def test_missing_object_is_rejected(store, pack):
    v = _video("packs/p1/videos/4_gone.mp4")
    PackContent.objects.filter(pk="p1").update(content=[v])
    outcomes = VideoReprocessor(store, FakeVideoWatermarker()).process_pack("p1", detect_video_insertions([], [v]), "bob")
    assert outcomes[0].status == "rejected"
    assert outcomes[0].error.startswith("object_not_found")


@pytest.mark.django_db
def test_status_patch_does_not_fire_change_notification(pack):
    v = _video("packs/p1/videos/1_a.mp4")
    PackContent.objects.filter(pk="p1").update(content=[v])
    fired = []

    def listener(sender, **kwargs):
        fired.append(kwargs["instance"].pk)

    post_save.connect(listener, sender=PackContent)
    try:
        changed = patch_items("p1", {v["key"]: {"processed": True, "processingError": None}})
    finally:
        post_save.disconnect(listener, sender=PackContent)

    assert changed == 1
    assert fired == []
    assert PackContent.objects.get(pk="p1").content[0]["processed"] is True


@pytest.mark.django_db
def test_patch_for_unknown_pack_is_a_noop():
    assert patch_items("nope", {"k": {"processed": True}}) == 0
