import math
from dataclasses import dataclass
from typing import Generator, Optional
from typing_extensions import Self

from .bounds import Bounds
from .tile import TileIndex, check_level, encode


@dataclass(frozen=True)
class TileRange:
    """Half-open range of tile columns [x1, x2) and rows [y1, y2) at one
    level."""

    x1: int
    y1: int
    x2: int
    y2: int

    def coarsen(self, levels: int = 1) -> Self:
        """
        Range covering the same tiles ``levels`` zoom levels up. The low
        corner is floored and the last covered tile is floored, so a coarse
        tile is kept whenever any of its children is in range.

        :param levels: Number of levels to move up, defaults to 1
        :return: Coarser TileRange
        """
        return TileRange(
            self.x1 >> levels,
            self.y1 >> levels,
            ((self.x2 - 1) >> levels) + 1,
            ((self.y2 - 1) >> levels) + 1,
        )

    def __iter__(self):
        for x in range(self.x1, self.x2):
            for y in range(self.y1, self.y2):
                yield x, y

    def __len__(self):
        return (self.x2 - self.x1) * (self.y2 - self.y1)


@dataclass(frozen=True)
class SubPyramid:
    """A level range and a tile range, expressed at the deepest level, of the
    pyramid over ``mbr``."""

    mbr: Bounds
    """Bounds of the whole pyramid."""
    min_level: int
    """Shallowest level of interest, inclusive."""
    max_level: int
    """Deepest level of interest, inclusive."""
    c1: int
    """First tile column at max_level."""
    r1: int
    """First tile row at max_level."""
    c2: int
    """Tile column after the last one at max_level."""
    r2: int
    """Tile row after the last one at max_level."""

    def __post_init__(self) -> None:
        check_level(self.max_level)
        if not 0 <= self.min_level <= self.max_level:
            raise ValueError(
                f'Invalid level range {self.min_level}..{self.max_level}'
            )
        n = 1 << self.max_level
        if not (0 <= self.c1 < self.c2 <= n and 0 <= self.r1 < self.r2 <= n):
            raise ValueError(
                f'Tile range ({self.c1}, {self.r1}, {self.c2}, {self.r2}) is'
                f' outside level {self.max_level}'
            )

    @classmethod
    def full(cls, mbr: Bounds, min_level: int, max_level: int) -> Self:
        """SubPyramid holding every tile between min_level and max_level."""
        n = 1 << max_level
        return cls(mbr, min_level, max_level, 0, 0, n, n)

    @classmethod
    def for_tile(
        cls, mbr: Bounds, tile: TileIndex, max_level: int, levels: int
    ) -> Self:
        """
        SubPyramid rooted at ``tile`` spanning ``levels`` levels, or fewer if
        ``max_level`` comes first.

        :param mbr: Bounds of the whole pyramid.
        :param tile: Root tile of the sub-pyramid.
        :param max_level: Deepest level of the whole job.
        :param levels: Number of levels per sub-pyramid.
        :return: SubPyramid
        """
        deepest = min(max_level, tile.z + levels - 1)
        shift = deepest - tile.z
        return cls(
            mbr,
            tile.z,
            deepest,
            tile.x << shift,
            tile.y << shift,
            (tile.x + 1) << shift,
            (tile.y + 1) << shift,
        )

    def overlapping_tiles(self, rect: Bounds) -> Optional[TileRange]:
        """
        Tiles at max_level that rect intersects, clamped to this sub-pyramid.

        :param rect: Bounding box of a shape.
        :return: TileRange, or None if rect misses this sub-pyramid
        """
        n = 1 << self.max_level
        width = self.mbr.maxx - self.mbr.minx
        height = self.mbr.maxy - self.mbr.miny

        # normalize first so scaling to the level is an exact multiplication
        fx1 = (rect.minx - self.mbr.minx) / width * n
        fx2 = (rect.maxx - self.mbr.minx) / width * n
        fy1 = (rect.miny - self.mbr.miny) / height * n
        fy2 = (rect.maxy - self.mbr.miny) / height * n

        x1 = math.floor(fx1)
        y1 = math.floor(fy1)
        x2 = max(math.ceil(fx2), x1 + 1)
        y2 = max(math.ceil(fy2), y1 + 1)
        # shapes lying on the far edge of the pyramid belong to the last tile,
        # shapes reaching past it are outside
        if x1 == n and fx2 <= n:
            x1, x2 = n - 1, n
        if y1 == n and fy2 <= n:
            y1, y2 = n - 1, n

        x1 = max(x1, self.c1)
        y1 = max(y1, self.r1)
        x2 = min(x2, self.c2)
        y2 = min(y2, self.r2)
        if x1 >= x2 or y1 >= y2:
            return None
        return TileRange(x1, y1, x2, y2)

    def levels(
        self, rect: Bounds, step: int = 1
    ) -> Generator[tuple[int, TileRange], None, None]:
        """
        Walk from max_level up to min_level, ``step`` levels at a time,
        yielding the tiles rect overlaps at each visited level.

        :param rect: Bounding box of a shape.
        :param step: Levels between visited levels, defaults to 1
        :yield: Tuples of (level, TileRange)
        """
        overlaps = self.overlapping_tiles(rect)
        if overlaps is None:
            return
        z = self.max_level
        while z >= self.min_level:
            yield z, overlaps
            overlaps = overlaps.coarsen(step)
            z -= step

    def tiles(
        self, rect: Bounds, step: int = 1
    ) -> Generator[int, None, None]:
        """Identifiers of every tile rect overlaps at each visited level."""
        for z, overlaps in self.levels(rect, step):
            for x, y in overlaps:
                yield encode(z, x, y)
