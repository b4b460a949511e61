import logging
from functools import partial
from operator import itemgetter

import dask.bag as db

from ..resources.bounds import Bounds
from ..resources.canvas import Canvas, TileStore, create_tiles
from ..resources.config import ConfigurationError, PARTITION_TECHNIQUES
from ..resources.data import Data, Split
from ..resources.plotter import Plotter
from ..resources.subpyramid import SubPyramid
from ..resources.tile import decode

logger = logging.getLogger('pyramidplot')

TileCanvas = tuple[int, Canvas]


def heartbeat(count: int) -> None:
    logger.debug(f'Plotted {count} shapes.')


def split_bag(splits: list[Split]) -> db.Bag:
    """One bag partition per input split."""
    return db.from_sequence(splits, npartitions=max(len(splits), 1))


def flat_map(
    splits: list[Split],
    data: Data,
    subpyramid: SubPyramid,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> list[TileCanvas]:
    """
    Plot the shapes of one partition on every tile of the level range they
    overlap.

    :param splits: Splits making up this partition.
    :param data: :class:`pyramidplot.resources.data.Data` to read them with.
    :param subpyramid: Whole level range of the job.
    :param tile_width: Tile width in pixels.
    :param tile_height: Tile height in pixels.
    :param plotter: Plotter to draw with.
    :return: One (tile_id, canvas) pair per tile touched by this partition.
    """
    tiles = TileStore()
    for split in splits:
        shapes = data.read(split)
        if plotter.is_smooth:
            shapes = plotter.smooth(shapes)
        create_tiles(shapes, subpyramid, tile_width, tile_height, plotter,
                tiles, progress=heartbeat)
        logger.debug(f'Flat map of {split} holds {len(tiles)} tiles.')
    return list(tiles.freeze())


def flat_reduce(
    group: tuple[int, list[TileCanvas]],
    mbr: Bounds,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> TileCanvas:
    """
    Merge every partial canvas of one tile into a fresh canvas.

    :param group: Tile identifier and the (tile_id, canvas) pairs for it.
    :return: (tile_id, canvas) pair of the finished tile.
    """
    tile_id, partials = group
    tile = decode(tile_id)
    final = plotter.create_canvas(tile_width, tile_height, tile.bounds(mbr))
    for _, c in partials:
        plotter.merge(final, c)
    return tile_id, final


def boundary_max_level(min_level: int, max_level: int, fanout: int) -> int:
    """
    Deepest level a shape is replicated to, such that stepping up by fanout
    lands exactly on min_level.
    """
    return max_level - (max_level - min_level) % fanout


def pyramid_map(
    splits: list[Split],
    data: Data,
    subpyramid: SubPyramid,
    fanout: int,
    plotter: Plotter,
) -> list[tuple[int, object]]:
    """
    Replicate each shape to the tiles it overlaps on every fanout-th level,
    counting up from the deepest boundary level. Nothing is plotted here.

    :return: (boundary tile_id, shape) pairs.
    """
    out = []
    count = 0
    for split in splits:
        for shape in data.read(split):
            rect = plotter.shape_bounds(shape)
            if rect is None:
                continue
            out.extend(
                (tile_id, shape)
                for tile_id in subpyramid.tiles(rect, step=fanout)
            )
            count += 1
            if (count & 0xff) == 0:
                heartbeat(count)
    return out


def pyramid_reduce(
    group: tuple[int, list[tuple[int, object]]],
    mbr: Bounds,
    max_level: int,
    fanout: int,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> list[TileCanvas]:
    """
    Plot the shapes assigned to one boundary tile on every tile of the
    sub-pyramid below it.

    :param group: Boundary tile identifier and its (tile_id, shape) pairs.
    :param max_level: Deepest level of the job.
    :return: One (tile_id, canvas) pair per tile of the local sub-pyramid
        that any shape touches.
    """
    tile_id, pairs = group
    subpyramid = SubPyramid.for_tile(mbr, decode(tile_id), max_level, fanout)
    shapes = [shape for _, shape in pairs]
    if plotter.is_smooth:
        shapes = plotter.smooth(shapes)

    tiles = create_tiles(shapes, subpyramid, tile_width, tile_height, plotter,
            TileStore(), progress=heartbeat)
    logger.debug(f'Pyramid reduce of {decode(tile_id)} wrote {len(tiles)} '
            'tiles.')
    return list(tiles.freeze())


def flat_partition(
    data: Data,
    mbr: Bounds,
    min_level: int,
    max_level: int,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> db.Bag:
    """
    Flat partitioning. Every input partition computes all levels on its own
    and the partial canvases are merged per tile.

    :return: Bag of (tile_id, canvas) pairs, one per non-empty tile.
    """
    subpyramid = SubPyramid.full(mbr, min_level, max_level)
    mapper = partial(flat_map, data=data, subpyramid=subpyramid,
            tile_width=tile_width, tile_height=tile_height, plotter=plotter)
    reducer = partial(flat_reduce, mbr=mbr, tile_width=tile_width,
            tile_height=tile_height, plotter=plotter)

    return (
        split_bag(data.splits())
        .map_partitions(mapper)
        .groupby(itemgetter(0))
        .map(reducer)
    )


def pyramid_partition(
    data: Data,
    mbr: Bounds,
    min_level: int,
    max_level: int,
    fanout: int,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> db.Bag:
    """
    Pyramid partitioning. Shapes are replicated to boundary tiles every
    fanout levels, then each reducer plots the fanout levels below its tile.

    :return: Bag of (tile_id, canvas) pairs, one per non-empty tile.
    """
    boundary = boundary_max_level(min_level, max_level, fanout)
    subpyramid = SubPyramid.full(mbr, min_level, boundary)
    mapper = partial(pyramid_map, data=data, subpyramid=subpyramid,
            fanout=fanout, plotter=plotter)
    reducer = partial(pyramid_reduce, mbr=mbr, max_level=max_level,
            fanout=fanout, tile_width=tile_width, tile_height=tile_height,
            plotter=plotter)

    return (
        split_bag(data.splits())
        .map_partitions(mapper)
        .groupby(itemgetter(0))
        .map(reducer)
        .flatten()
    )


def partition(
    technique: str,
    data: Data,
    mbr: Bounds,
    min_level: int,
    max_level: int,
    fanout: int,
    tile_width: int,
    tile_height: int,
    plotter: Plotter,
) -> db.Bag:
    """
    Build the map/reduce plan of one partitioning technique.

    :param technique: 'flat' or 'pyramid'.
    :raises ConfigurationError: Unknown technique.
    :return: Bag of (tile_id, canvas) pairs.
    """
    technique = technique.lower()
    if technique not in PARTITION_TECHNIQUES:
        raise ConfigurationError(
            f"Unknown partitioning technique '{technique}'"
        )
    if technique == 'flat':
        return flat_partition(data, mbr, min_level, max_level, tile_width,
                tile_height, plotter)
    return pyramid_partition(data, mbr, min_level, max_level, fanout,
            tile_width, tile_height, plotter)
