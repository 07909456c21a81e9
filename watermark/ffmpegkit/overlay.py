from typing import List, Sequence, Tuple


def _tile_overlays(positions: Sequence[Tuple[int, int]], first_input: int, last_v: str, vcount: int) -> Tuple[List[str], str, int]:
    """
    Overlay input #(first_input + i) at positions[i] on top of last_v.

    Each tile is its own PNG input, already at final size with alpha baked in,
    so the chain is a plain overlay per tile.
    """
    filters: List[str] = []
    for i, (x, y) in enumerate(positions):
        vin = f"[{first_input + i}:v]"
        vo = f"[v{vcount}o]"
        filters.append(f"{last_v}{vin}overlay={int(x)}:{int(y)}:format=auto{vo}")
        last_v = vo
        vcount += 1
    return filters, last_v, vcount
