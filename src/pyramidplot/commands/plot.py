import pathlib
from functools import partial
from typing import Optional

import dask
import numpy as np

from ..resources.bounds import Bounds
from ..resources.canvas import TileStore, create_tiles
from ..resources.config import PlotConfig
from ..resources.data import Data
from ..resources.plotter import Plotter, get_plotter
from ..resources.subpyramid import SubPyramid
from .output import write_tile, write_tiles, write_default_image
from .output import write_index, flatten_directory
from .partition import partition, heartbeat

Phase = tuple[str, int, int]


def resolve_bounds(config: PlotConfig, data: Data) -> Bounds:
    """
    Geographic extent of the pyramid: the configured bounds, or the bounds
    of every input shape, squared if the aspect ratio is kept.

    :raises ValueError: No bounds given and no shapes, or zero area.
    :return: Bounds of the pyramid.
    """
    mbr = config.bounds
    if mbr is None:
        config.log.debug('Scanning inputs for their bounds.')
        mbr = data.bounds()
    if mbr is None:
        raise ValueError(
            'Unable to determine bounds, the inputs hold no shapes.'
        )
    if config.keep_ratio:
        mbr = mbr.squared()
    if mbr.width <= 0 or mbr.height <= 0:
        raise ValueError(f'Bounds {mbr} cover no area.')
    return mbr


def make_plotter(config: PlotConfig) -> Plotter:
    return get_plotter(config.plotter, color=config.color,
            line_width=config.line_width)


def plan_phases(
    min_level: int,
    max_level: int,
    flat_threshold: int,
    technique: Optional[str] = None,
) -> list[Phase]:
    """
    Split a level range between flat partitioning, up to and including
    flat_threshold, and pyramid partitioning below it.

    :param technique: Use this technique for the whole range instead.
    :return: List of (technique, min_level, max_level)
    """
    if technique is not None:
        return [(technique, min_level, max_level)]

    phases = []
    if min_level <= flat_threshold:
        phases.append(('flat', min_level, min(flat_threshold, max_level)))
    if max_level > flat_threshold:
        phases.append(
            ('pyramid', max(min_level, flat_threshold + 1), max_level)
        )
    return phases


def write_parallel(items: tuple, config: PlotConfig, plotter: Plotter) -> int:
    """
    Write frozen tiles with a bounded pool of threads, each handed a
    disjoint slice of the items.

    :return: Number of tiles written.
    """
    if not items:
        return 0
    workers = min(config.parallel, len(items))
    edges = np.linspace(0, len(items), workers + 1, dtype=int)
    tasks = [
        dask.delayed(partial(write_tiles, items[i1:i2], config.out_dir,
                plotter, config.vflip, config.output))()
        for i1, i2 in zip(edges[:-1], edges[1:])
    ]
    counts = dask.compute(*tasks, scheduler='threads', num_workers=workers)
    return sum(counts)


def plot_local(
    config: PlotConfig, data: Data, mbr: Bounds, plotter: Plotter
) -> int:
    """
    Plot every level on this machine into one tile store, then write it.

    :return: Number of tiles written.
    """
    subpyramid = SubPyramid.full(mbr, config.min_level, config.max_level)
    tiles = TileStore()
    for split in data.splits():
        shapes = data.read(split)
        if plotter.is_smooth:
            shapes = plotter.smooth(shapes)
        create_tiles(shapes, subpyramid, config.tile_width,
                config.tile_height, plotter, tiles, progress=heartbeat)

    config.log.info(
        f'Done with plotting {len(tiles)} tiles. Now writing the output'
    )
    items = tiles.freeze()
    return write_parallel(items, config, plotter)


def plot_distributed(
    config: PlotConfig, data: Data, mbr: Bounds, plotter: Plotter
) -> int:
    """
    Run one map/reduce job per partitioning phase, each writing into its
    own sub directory, then move every tile into the output directory.

    :return: Number of tiles written.
    """
    phases = plan_phases(config.min_level, config.max_level,
            config.flat_threshold, config.partition)
    if not data.splits():
        config.log.warning('Inputs hold no shapes, no tiles to plot.')
        return 0

    count = 0
    for technique, min_level, max_level in phases:
        config.log.info(
            f'Using {technique} partitioning in levels {min_level}..{max_level}'
        )
        out_dir = pathlib.Path(config.out_dir) / technique
        out_dir.mkdir(parents=True, exist_ok=True)

        tiles = partition(technique, data, mbr, min_level, max_level,
                config.fanout, config.tile_width, config.tile_height, plotter)
        writer = partial(write_tile, out_dir=str(out_dir), plotter=plotter,
                vflip=config.vflip, output=config.output)
        written = tiles.map(writer).sum().compute()
        config.log.debug(f'{technique} partitioning wrote {written} tiles.')
        count += written

    flatten_directory(config.out_dir, [p[0] for p in phases])
    return count


def plot(config: PlotConfig) -> int:
    """
    Generate the tile pyramid described by config.

    :param config: :class:`pyramidplot.resources.config.PlotConfig`.
    :return: Number of tiles written.
    """
    pathlib.Path(config.out_dir).mkdir(parents=True, exist_ok=True)
    data = Data(config.filenames, config.split_size)
    config.log.debug(f'Plot Config: {config}')
    config.log.debug(f'Data: {data}')

    mbr = resolve_bounds(config, data)
    config.log.debug(f'Pyramid bounds: {mbr}')
    plotter = make_plotter(config)

    local = config.local
    if local is None:
        local = data.is_small(config.local_threshold)

    if local:
        config.log.info(
            f'Plotting levels {config.min_level}..{config.max_level} locally'
        )
        count = plot_local(config, data, mbr, plotter)
    else:
        count = plot_distributed(config, data, mbr, plotter)

    config.log.info('Writing default empty image')
    write_default_image(config.out_dir, config.tile_width, config.tile_height)
    config.log.info('Writing the HTML viewer file')
    write_index(config.out_dir, config.tile_width, config.tile_height,
            config.min_level, config.max_level)

    config.log.info(f'Wrote {count} tiles to {config.out_dir}')
    return count
