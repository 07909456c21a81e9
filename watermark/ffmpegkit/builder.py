from __future__ import annotations

from typing import List, Sequence, Tuple

from .overlay import _tile_overlays
from .textdraw import _emit_caption

# Output stays within what browsers stream without a transcode step.
ENCODE_ARGS: List[str] = [
    "-c:v", "libx264",
    "-preset", "superfast",
    "-crf", "23",
    "-maxrate", "3M",
    "-bufsize", "6M",
    "-pix_fmt", "yuv420p",
    "-c:a", "aac",
    "-movflags", "+faststart",
]


EVEN_SCALE = "scale=trunc(iw/2)*2:trunc(ih/2)*2"


def _logging_flags() -> List[str]:
    return [
        "-nostdin",
        "-hide_banner",
        "-loglevel", "error",
    ]


def build_filtergraph(tile_positions: Sequence[Tuple[int, int]], caption: Sequence[str], width: int, height: int) -> Tuple[str, str]:
    """
    Input 0 is the source video; inputs 1..n are the QR tile PNGs in the
    same order as tile_positions. Returns (filter_complex, last_v).
    """
    filters: List[str] = []
    last_v = "[0:v]"
    vcount = 0

    tile_filters, last_v, vcount = _tile_overlays(tile_positions, 1, last_v, vcount)
    filters += tile_filters

    cap_filters, last_v, vcount = _emit_caption(caption, last_v, vcount, width, height)
    filters += cap_filters

    # yuv420p needs even dimensions; odd-sized GIF/WebP sources are trimmed by a pixel
    filters.append(f"{last_v}{EVEN_SCALE}[vout]")
    return ";".join(filters), "[vout]"


def build_watermark_cmd(
    input_path: str,
    output_path: str,
    tile_paths: Sequence[str],
    tile_positions: Sequence[Tuple[int, int]],
    caption: Sequence[str],
    width: int,
    height: int,
) -> List[str]:
    """
    ffmpeg arguments (without the binary) that overlay every tile and the
    caption onto input_path and write an mp4 to output_path.
    An empty tile list gives the text-only graph.
    """
    if len(tile_paths) != len(tile_positions):
        raise ValueError("tile_paths and tile_positions differ in length")

    filter_complex, last_v = build_filtergraph(tile_positions, caption, width, height)

    args: List[str] = _logging_flags()
    args += ["-i", str(input_path)]
    for p in tile_paths:
        args += ["-i", str(p)]

    args += ["-filter_complex", filter_complex]
    args += ["-map", last_v, "-map", "0:a?"]
    args += ENCODE_ARGS
    args += ["-y", str(output_path)]
    return args
