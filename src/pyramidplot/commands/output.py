import io
import logging
import pathlib
import shutil
from typing import Iterable, Union

import numpy as np
from PIL import Image

from ..resources.canvas import Canvas
from ..resources.plotter import Plotter
from ..resources.tile import TileIndex, decode

logger = logging.getLogger('pyramidplot')

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Multilevel Plot</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
  <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
  <style>html, body, #map { height: 100%; margin: 0; }</style>
</head>
<body>
  <div id="map"></div>
  <script>
    var map = L.map('map', {
      crs: L.CRS.Simple,
      minZoom: #{MIN_ZOOM},
      maxZoom: #{MAX_ZOOM}
    });
    L.GridLayer.Pyramid = L.TileLayer.extend({
      getTileUrl: function(coord) {
        var zoom = coord.z;
        return #{TILE_URL};
      }
    });
    new L.GridLayer.Pyramid('', {
      tileSize: L.point(#{TILE_WIDTH}, #{TILE_HEIGHT}),
      minZoom: #{MIN_ZOOM},
      maxZoom: #{MAX_ZOOM},
      noWrap: true,
      errorTileUrl: 'default.png'
    }).addTo(map);
    map.setView(map.unproject([#{TILE_WIDTH} / 2, #{TILE_HEIGHT} / 2], 0),
        #{MIN_ZOOM});
  </script>
</body>
</html>
"""

PathLike = Union[str, pathlib.Path]


def tile_path(
    out_dir: PathLike, tile: TileIndex, vflip: bool, extension: str = '.png'
) -> pathlib.Path:
    """
    File of one tile. With vflip rows are counted from the top edge.

    :return: Path in the form out_dir/tile-z-x-y.png
    """
    if vflip:
        tile = tile.flipped()
    return pathlib.Path(out_dir) / f'tile-{tile.z}-{tile.x}-{tile.y}{extension}'


def write_tile(
    item: tuple[int, Canvas],
    out_dir: PathLike,
    plotter: Plotter,
    vflip: bool,
    output: bool = True,
) -> int:
    """
    Encode one tile canvas as an image.

    :param item: (tile_id, canvas) pair.
    :param out_dir: Output directory.
    :param plotter: Plotter that created the canvas.
    :param vflip: Flip images and row numbers vertically.
    :param output: Write to disk, otherwise encode into memory and drop.
    :return: 1, the number of tiles written
    """
    tile_id, canvas = item
    if output:
        path = tile_path(out_dir, decode(tile_id), vflip)
        with open(path, 'wb') as out:
            plotter.write_image(canvas, out, vflip)
    else:
        plotter.write_image(canvas, io.BytesIO(), vflip)
    return 1


def write_tiles(
    items: Iterable[tuple[int, Canvas]],
    out_dir: PathLike,
    plotter: Plotter,
    vflip: bool,
    output: bool = True,
) -> int:
    """Write a run of tiles, returning how many were written."""
    return sum(write_tile(item, out_dir, plotter, vflip, output)
            for item in items)


def write_default_image(
    out_dir: PathLike, tile_width: int, tile_height: int
) -> pathlib.Path:
    """Transparent image shown for tiles that were not generated."""
    path = pathlib.Path(out_dir) / 'default.png'
    empty = np.zeros((tile_height, tile_width, 4), dtype=np.uint8)
    Image.fromarray(empty).save(path, format='PNG')
    return path


def write_index(
    out_dir: PathLike,
    tile_width: int,
    tile_height: int,
    min_level: int,
    max_level: int,
    extension: str = '.png',
) -> pathlib.Path:
    """
    HTML page browsing the pyramid.

    :return: Path of index.html
    """
    url = f"'tile-' + zoom + '-' + coord.x + '-' + coord.y + '{extension}'"
    html = (
        INDEX_TEMPLATE.replace('#{TILE_WIDTH}', str(tile_width))
        .replace('#{TILE_HEIGHT}', str(tile_height))
        .replace('#{MIN_ZOOM}', str(min_level))
        .replace('#{MAX_ZOOM}', str(max_level))
        .replace('#{TILE_URL}', url)
    )
    path = pathlib.Path(out_dir) / 'index.html'
    path.write_text(html)
    return path


def flatten_directory(out_dir: PathLike, names: Iterable[str]) -> int:
    """
    Move the files of the named sub directories into out_dir and remove the
    sub directories.

    :param out_dir: Output directory.
    :param names: Sub directory names, missing ones are ignored.
    :return: Number of files moved.
    """
    out_dir = pathlib.Path(out_dir)
    moved = 0
    for sub in (out_dir / n for n in names):
        if not sub.is_dir():
            continue
        for f in sorted(sub.rglob('*')):
            if f.is_file():
                shutil.move(str(f), str(out_dir / f.name))
                moved += 1
        shutil.rmtree(sub)
        logger.debug(f'Flattened {sub} into {out_dir}.')
    return moved
