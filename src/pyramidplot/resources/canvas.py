from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, TYPE_CHECKING

import numpy as np

from .bounds import Bounds
from .subpyramid import SubPyramid
from .tile import encode, tile_rectangle

if TYPE_CHECKING:
    from .plotter import Plotter


@dataclass(eq=False)
class Canvas:
    """Partially built raster of one tile."""

    width: int
    """Width in pixels."""
    height: int
    """Height in pixels."""
    bounds: Bounds
    """Geographic rectangle of the tile."""
    pixels: np.ndarray = field(default=None)
    """Coverage counts, one row per pixel row starting at bounds.miny."""

    def __post_init__(self) -> None:
        if self.pixels is None:
            self.pixels = np.zeros((self.height, self.width), dtype=np.uint32)

    def __eq__(self, other):
        return (
            isinstance(other, Canvas)
            and self.bounds == other.bounds
            and np.array_equal(self.pixels, other.pixels)
        )

    def is_empty(self) -> bool:
        return not self.pixels.any()


class TileStore:
    """
    Tile identifier to Canvas map for one job. It is filled by one writer,
    then frozen and handed to the output stage.
    """

    def __init__(self):
        self._tiles: dict[int, Any] = {}
        self._frozen: Optional[tuple[tuple[int, Any], ...]] = None

    def get_or_create(self, tile_id: int, factory: Callable[[], Any]):
        """
        Canvas of tile_id, creating it with factory on first use.

        :raises RuntimeError: The store has been frozen.
        """
        if self._frozen is not None:
            raise RuntimeError('TileStore is frozen and cannot be modified')
        c = self._tiles.get(tile_id)
        if c is None:
            c = factory()
            self._tiles[tile_id] = c
        return c

    def freeze(self) -> tuple[tuple[int, Any], ...]:
        """
        Stop accepting canvases and return every (tile_id, canvas) pair in
        tile identifier order. The mapping itself is released.
        """
        if self._frozen is None:
            self._frozen = tuple(sorted(self._tiles.items()))
            self._tiles = {}
        return self._frozen

    def items(self):
        if self._frozen is not None:
            return iter(self._frozen)
        return iter(self._tiles.items())

    def __contains__(self, tile_id: int) -> bool:
        if self._frozen is not None:
            return any(t == tile_id for t, _ in self._frozen)
        return tile_id in self._tiles

    def __len__(self) -> int:
        if self._frozen is not None:
            return len(self._frozen)
        return len(self._tiles)


def create_tiles(
    shapes: Iterable,
    subpyramid: SubPyramid,
    tile_width: int,
    tile_height: int,
    plotter: 'Plotter',
    tiles: TileStore,
    progress: Optional[Callable[[int], None]] = None,
) -> TileStore:
    """
    Plot every shape on every tile of the sub-pyramid it overlaps. Overlaps
    are computed once at the deepest level and coarsened level by level.

    :param shapes: Shapes to plot.
    :param subpyramid: Tiles of interest.
    :param tile_width: Width of each tile in pixels.
    :param tile_height: Height of each tile in pixels.
    :param plotter: Plotter creating and drawing on canvases.
    :param tiles: Store receiving canvases, may already hold some.
    :param progress: Called with the shape count every 256 shapes.
    :return: The tiles store.
    """
    mbr = subpyramid.mbr
    count = 0
    for shape in shapes:
        rect = plotter.shape_bounds(shape)
        if rect is None:
            continue

        for z, overlaps in subpyramid.levels(rect):
            for x, y in overlaps:
                c = tiles.get_or_create(
                    encode(z, x, y),
                    lambda: plotter.create_canvas(
                        tile_width, tile_height, tile_rectangle(mbr, z, x, y)
                    ),
                )
                plotter.plot(c, shape)

        count += 1
        if progress is not None and (count & 0xff) == 0:
            progress(count)
    return tiles
