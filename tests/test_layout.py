import pytest

from watermark.layout import OPACITY, WatermarkSpec, grid_positions


@pytest.mark.parametrize("w,h,cell,spacing", [
    (400, 400, 50, 180),
    (1000, 800, 50, 180),
    (1600, 1200, 60, 210),
    (4000, 3000, 150, 525),
    (6000, 200, 50, 180),
])
def test_image_spec_sizes(w, h, cell, spacing):
    spec = WatermarkSpec.for_image(w, h, "packs.test", "alice", "bob")
    assert spec.cell_size == cell
    assert spec.spacing == spacing
    assert spec.opacity == OPACITY == 0.15


@pytest.mark.parametrize("w,h,cell,spacing", [
    (640, 360, 200, 400),
    (1920, 1080, 216, 432),
    (3840, 2160, 432, 864),
    (8000, 6000, 600, 1200),
])
def test_video_spec_sizes(w, h, cell, spacing):
    spec = WatermarkSpec.for_video(w, h, "packs.test", None, "bob")
    assert spec.cell_size == cell
    assert spec.spacing == spacing


def test_profile_urls():
    spec = WatermarkSpec.for_image(800, 600, "packs.test", "alice", "bob")
    assert spec.buyer_url == "https://packs.test/alice"
    assert spec.vendor_url == "https://packs.test/bob"
    assert WatermarkSpec.for_video(800, 600, "packs.test", None, "bob").buyer_url is None


@pytest.mark.parametrize("w,h", [(400, 400), (401, 239), (1000, 800), (181, 181), (49, 49), (1920, 1080), (4000, 3000)])
def test_tiles_stay_inside_the_image(w, h):
    spec = WatermarkSpec.for_image(w, h, "packs.test", "alice", "bob")
    for t in spec.tiles(w, h):
        assert t.x >= 0 and t.y >= 0
        assert t.x + spec.cell_size <= w
        assert t.y + spec.cell_size <= h


def test_tiles_alternate_buyer_and_vendor():
    tiles = grid_positions(1000, 1000, 100, 300)
    assert len(tiles) == 16
    for t in tiles:
        assert t.role == ("buyer" if (t.row + t.col) % 2 == 0 else "vendor")
    assert {t.role for t in tiles} == {"buyer", "vendor"}


def test_vendor_only_grid():
    tiles = grid_positions(1000, 1000, 100, 300, with_buyer=False)
    assert tiles and all(t.role == "vendor" for t in tiles)


def test_too_small_for_one_tile():
    assert grid_positions(40, 40, 50, 180) == []


def test_rejects_degenerate_grid():
    with pytest.raises(ValueError):
        grid_positions(100, 100, 0, 10)
