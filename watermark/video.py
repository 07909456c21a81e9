from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import List, Tuple

import ffmpeg
from qrcode.exceptions import DataOverflowError

from .exceptions import FFmpegNotFound, TranscodeFailure, TranscodeTimeout
from .ffmpegkit.binaries import resolve_ffmpeg_bin, resolve_ffprobe_bin
from .ffmpegkit.builder import build_watermark_cmd
from .layout import WatermarkSpec
from .qr import WHITE, qr_png

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = (1920, 1080)


@dataclass
class VideoResult:
    width: int
    height: int
    qr_applied: bool


def _cleanup(path: str) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("could not remove temp dir %s", path, exc_info=True)


class VideoWatermarker:
    """
    Bakes a QR grid and caption into a video with an ffmpeg subprocess.

    The one-time vendor bake passes only `vendor`; the request-time path for
    animated images passes both identities.
    """

    def __init__(self, domain: str, timeout: int = 300, ffmpeg_bin: str | None = None,
                 ffprobe_bin: str | None = None, runner=subprocess.run):
        self.domain = domain
        self.timeout = timeout
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.runner = runner

    def probe_dimensions(self, path: str) -> Tuple[int, int]:
        if not os.path.isfile(path):
            logger.warning("probe: %s does not exist, using %dx%d", path, *DEFAULT_DIMENSIONS)
            return DEFAULT_DIMENSIONS
        if os.path.getsize(path) == 0:
            logger.warning("probe: %s is empty, using %dx%d", path, *DEFAULT_DIMENSIONS)
            return DEFAULT_DIMENSIONS

        cmd = self.ffprobe_bin or resolve_ffprobe_bin() or "ffprobe"
        try:
            info = ffmpeg.probe(path, cmd=cmd)
        except (ffmpeg.Error, OSError, ValueError) as e:
            logger.warning("probe failed for %s, using defaults: %s", path, e)
            return DEFAULT_DIMENSIONS

        for stream in info.get("streams") or []:
            if stream.get("codec_type") == "video" and stream.get("width") and stream.get("height"):
                return int(stream["width"]), int(stream["height"])
        logger.warning("probe: no video stream in %s, using defaults", path)
        return DEFAULT_DIMENSIONS

    def _write_tiles(self, spec: WatermarkSpec, width: int, height: int, workdir: str):
        pngs = {"vendor": qr_png(spec.vendor_url, spec.cell_size, spec.opacity, WHITE)}
        if spec.buyer_url:
            pngs["buyer"] = qr_png(spec.buyer_url, spec.cell_size, spec.opacity, WHITE)

        paths: List[str] = []
        positions: List[Tuple[int, int]] = []
        for i, tile in enumerate(spec.tiles(width, height)):
            p = os.path.join(workdir, f"qr_{i:03d}_{tile.role}.png")
            with open(p, "wb") as f:
                f.write(pngs[tile.role])
            paths.append(p)
            positions.append((tile.x, tile.y))
        return paths, positions

    def _run(self, ffmpeg_bin: str, args: List[str], output_path: str) -> None:
        try:
            self.runner(
                [ffmpeg_bin, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            # run() has already killed the child
            raise TranscodeTimeout(f"ffmpeg exceeded {self.timeout}s")
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="ignore")
            raise TranscodeFailure(f"ffmpeg exited with code {e.returncode}", stderr=stderr[-2000:])
        except OSError as e:
            raise TranscodeFailure(f"ffmpeg could not start: {e.strerror or e}")

        if not os.path.isfile(output_path) or os.path.getsize(output_path) == 0:
            raise TranscodeFailure("ffmpeg produced no output")

    def watermark_file(self, input_path: str, output_path: str, vendor: str, buyer: str | None = None) -> VideoResult:
        ffmpeg_bin = self.ffmpeg_bin or resolve_ffmpeg_bin()
        if not ffmpeg_bin:
            raise FFmpegNotFound("ffmpeg not found. Configure FFMPEG_BIN or PATH.")

        width, height = self.probe_dimensions(input_path)
        spec = WatermarkSpec.for_video(width, height, self.domain, buyer, vendor)
        caption = [u for u in (spec.buyer_url, spec.vendor_url) if u]

        workdir = tempfile.mkdtemp(prefix="wm_tiles_")
        try:
            try:
                tile_paths, positions = self._write_tiles(spec, width, height, workdir)
            except (OSError, ValueError, DataOverflowError):
                logger.warning("QR tile generation failed, falling back to text-only", exc_info=True)
                tile_paths, positions = [], []

            if tile_paths:
                args = build_watermark_cmd(input_path, output_path, tile_paths, positions, caption, width, height)
                try:
                    self._run(ffmpeg_bin, args, output_path)
                    logger.info("baked %d QR tiles into %dx%d video", len(tile_paths), width, height)
                    return VideoResult(width, height, True)
                except TranscodeTimeout:
                    raise
                except TranscodeFailure as e:
                    logger.warning("QR overlay failed (%s), retrying text-only: %s", e, e.stderr[-300:])

            args = build_watermark_cmd(input_path, output_path, [], [], caption, width, height)
            self._run(ffmpeg_bin, args, output_path)
            logger.info("baked text-only watermark into %dx%d video", width, height)
            return VideoResult(width, height, False)
        finally:
            _cleanup(workdir)

    def watermark_bytes(self, data: bytes, vendor: str, buyer: str | None = None, suffix: str = ".mp4") -> bytes:
        workdir = tempfile.mkdtemp(prefix="wm_video_")
        try:
            input_path = os.path.join(workdir, f"input{suffix}")
            output_path = os.path.join(workdir, "output.mp4")
            with open(input_path, "wb") as f:
                f.write(data)
            self.watermark_file(input_path, output_path, vendor, buyer)
            with open(output_path, "rb") as f:
                return f.read()
        finally:
            _cleanup(workdir)
