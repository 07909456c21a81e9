from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Literal

OPACITY = 0.15

Role = Literal["buyer", "vendor"]


def profile_url(domain: str, username: str) -> str:
    return f"https://{domain}/{username}"


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(v, hi))


@dataclass(frozen=True)
class Tile:
    x: int
    y: int
    row: int
    col: int
    role: Role


@dataclass(frozen=True)
class WatermarkSpec:
    cell_size: int
    spacing: int
    opacity: float
    buyer_url: str | None
    vendor_url: str

    @classmethod
    def for_image(cls, width: int, height: int, domain: str, buyer: str | None, vendor: str) -> "WatermarkSpec":
        cell = _clamp(math.floor(min(width, height) * 0.05), 50, 150)
        return cls(
            cell_size=cell,
            spacing=max(math.floor(cell * 3.5), 180),
            opacity=OPACITY,
            buyer_url=profile_url(domain, buyer) if buyer else None,
            vendor_url=profile_url(domain, vendor),
        )

    @classmethod
    def for_video(cls, width: int, height: int, domain: str, buyer: str | None, vendor: str) -> "WatermarkSpec":
        cell = _clamp(math.floor(min(width, height) * 0.20), 200, 600)
        return cls(
            cell_size=cell,
            spacing=max(cell * 2, 100),
            opacity=OPACITY,
            buyer_url=profile_url(domain, buyer) if buyer else None,
            vendor_url=profile_url(domain, vendor),
        )

    def tiles(self, width: int, height: int) -> List[Tile]:
        return grid_positions(width, height, self.cell_size, self.spacing, with_buyer=self.buyer_url is not None)


def grid_positions(width: int, height: int, cell: int, spacing: int, with_buyer: bool = True) -> List[Tile]:
    """
    Regular grid of QR tiles starting at the top-left corner.

    A tile is kept only if its whole box fits inside width x height.
    Roles alternate by (row + col) % 2; without a buyer every tile is vendor.
    """
    if cell <= 0 or spacing <= 0:
        raise ValueError("cell and spacing must be positive")

    tiles: List[Tile] = []
    row = 0
    y = 0
    while y + cell <= height:
        col = 0
        x = 0
        while x + cell <= width:
            if with_buyer:
                role: Role = "buyer" if (row + col) % 2 == 0 else "vendor"
            else:
                role = "vendor"
            tiles.append(Tile(x=x, y=y, row=row, col=col, role=role))
            col += 1
            x += spacing
        row += 1
        y += spacing
    return tiles
