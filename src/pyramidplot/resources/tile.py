from typing import NamedTuple

from .bounds import Bounds

MAX_LEVEL = 28
"""Deepest zoom level a tile identifier can represent."""

_COORD_BITS = 28
_LEVEL_SHIFT = 2 * _COORD_BITS
_COORD_MASK = (1 << _COORD_BITS) - 1


class TileIndexError(ValueError):
    """Tile level or coordinates outside the representable range."""


class TileIndex(NamedTuple):
    """Zoom level and column/row of one tile in the pyramid."""

    z: int
    x: int
    y: int

    def flipped(self) -> 'TileIndex':
        """Same tile with the row counted from the opposite edge."""
        return TileIndex(self.z, self.x, ((1 << self.z) - 1) - self.y)

    def bounds(self, mbr: Bounds) -> Bounds:
        return tile_rectangle(mbr, self.z, self.x, self.y)


def tile_rectangle(mbr: Bounds, z: int, x: int, y: int) -> Bounds:
    """
    Geographic rectangle covered by tile (z, x, y) of a pyramid spanning
    mbr. Callers must pass x and y in [0, 2^z).

    :param mbr: Bounds of the whole pyramid.
    :param z: Zoom level.
    :param x: Tile column.
    :param y: Tile row.
    :return: Bounds of the tile.
    """
    n = 1 << z
    w = mbr.maxx - mbr.minx
    h = mbr.maxy - mbr.miny
    return Bounds(
        mbr.minx + x * w / n,
        mbr.miny + y * h / n,
        mbr.minx + (x + 1) * w / n,
        mbr.miny + (y + 1) * h / n,
    )


def check_level(z: int) -> int:
    if z < 0 or z > MAX_LEVEL:
        raise TileIndexError(
            f'Invalid zoom level {z}, must be between 0 and {MAX_LEVEL}'
        )
    return z


def encode(z: int, x: int, y: int) -> int:
    """
    Pack a tile into one integer. The level takes the most significant bits,
    so sorting identifiers groups tiles by level.

    :raises TileIndexError: Level or coordinates out of range.
    :return: Tile identifier.
    """
    check_level(z)
    n = 1 << z
    if not (0 <= x < n and 0 <= y < n):
        raise TileIndexError(
            f'Tile ({z}, {x}, {y}) is outside the {n}x{n} grid of level {z}'
        )
    return (z << _LEVEL_SHIFT) | (x << _COORD_BITS) | y


def level(tile_id: int) -> int:
    """Zoom level of a tile identifier, without decoding the coordinates."""
    return tile_id >> _LEVEL_SHIFT


def decode(tile_id: int) -> TileIndex:
    """
    Unpack a tile identifier created by :func:`encode`.

    :raises TileIndexError: Identifier carries an invalid level.
    :return: TileIndex
    """
    z = check_level(level(tile_id))
    x = (tile_id >> _COORD_BITS) & _COORD_MASK
    y = tile_id & _COORD_MASK
    return TileIndex(z, x, y)
