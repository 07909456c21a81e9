from typing import List, Sequence, Tuple

from .colors import _drawtext_font_opt, _esc_text, _ff_color

CAPTION_OPACITY = 0.3
CAPTION_MARGIN = 20


def caption_font_size(width: int, height: int) -> int:
    return max(12, min(width, height) // 60)


def _emit_caption(lines: Sequence[str], last_v: str, vcount: int, width: int, height: int) -> Tuple[List[str], str, int]:
    """
    One drawtext per caption line, stacked from the top-left corner.
    Returns (filters, last_v, vcount) like the other emitters.
    """
    filters: List[str] = []
    font_opt = _drawtext_font_opt()
    fs = caption_font_size(width, height)
    color = _ff_color("white", CAPTION_OPACITY)

    for i, line in enumerate(lines):
        if not line:
            continue
        vo = f"[vtxt{vcount}]"
        y = CAPTION_MARGIN + i * (fs + fs // 2)
        filters.append(
            f"{last_v}drawtext={font_opt}:text='{_esc_text(line)}'"
            f":fontsize={fs}:fontcolor={color}:x={CAPTION_MARGIN}:y={y}{vo}"
        )
        last_v = vo
        vcount += 1
    return filters, last_v, vcount
