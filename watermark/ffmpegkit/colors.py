import os

_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Arial.ttf",
    r"C:\Windows\Fonts\arial.ttf",
)

# drawtext text and filter-graph separators
_TEXT_SPECIALS = ("\\", ":", "[", "]", "=", ";", "'", '"', ",")


def _esc_text(s: str) -> str:
    s = s or ""
    for ch in _TEXT_SPECIALS:
        s = s.replace(ch, "\\" + ch)
    return s


def _esc_path(p: str) -> str:
    return p.replace("\\", "/").replace(":", r"\:").replace("'", r"\'")


def _ff_color(name: str, alpha: float | None = None) -> str:
    """'white' -> 'white', ('white', 0.3) -> 'white@0.300'"""
    c = (name or "white").strip()
    if alpha is None:
        return c
    a = max(0.0, min(1.0, float(alpha)))
    return f"{c}@{a:.3f}"


def font_path() -> str | None:
    for candidate in _FONT_CANDIDATES:
        if os.path.isfile(candidate):
            return candidate
    return None


def _drawtext_font_opt() -> str:
    path = font_path()
    if path:
        return f"fontfile='{_esc_path(path)}'"
    return "font='Sans'"
