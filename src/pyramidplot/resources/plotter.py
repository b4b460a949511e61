from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable, Optional

import numpy as np
import shapely
from PIL import Image, ImageColor, ImageDraw

from .bounds import Bounds
from .canvas import Canvas


class Plotter(ABC):
    """
    Turns shapes into pixels on tile canvases. The pyramid engine only ever
    talks to plotters through this interface.
    """

    name: str = None
    """Name used to select this plotter in configuration."""
    is_smooth: bool = False
    """Whether :meth:`smooth` should run over shapes before plotting."""

    def __init__(self, color: str = 'black', line_width: int = 1):
        self.color = ImageColor.getcolor(color, 'RGBA')
        self.line_width = line_width

    @staticmethod
    def shape_bounds(shape) -> Optional[Bounds]:
        """Bounding box of a shape, None if it has no geometry."""
        if shape is None or shape.is_empty:
            return None
        return Bounds(*shape.bounds)

    def create_canvas(self, width: int, height: int, bounds: Bounds) -> Canvas:
        return Canvas(width, height, bounds)

    @abstractmethod
    def plot(self, canvas: Canvas, shape) -> None:
        raise NotImplementedError

    def merge(self, final: Canvas, other: Canvas) -> Canvas:
        """
        Add the coverage of other into final. Addition keeps merging order
        independent.
        """
        final.pixels += other.pixels
        return final

    def smooth(self, shapes: Iterable) -> Iterable:
        return shapes

    def write_image(self, canvas: Canvas, out: BinaryIO, vflip: bool = True):
        """
        Encode canvas as a PNG image into out.

        :param canvas: Canvas to encode.
        :param out: Binary stream to write to.
        :param vflip: Put the canvas' maximum Y at the top of the image.
        """
        rgba = np.zeros((canvas.height, canvas.width, 4), dtype=np.uint8)
        rgba[canvas.pixels > 0] = self.color
        if vflip:
            rgba = np.flipud(rgba)
        Image.fromarray(np.ascontiguousarray(rgba)).save(out, format='PNG')

    def _transform(self, canvas: Canvas, coords) -> list[tuple[float, float]]:
        b = canvas.bounds
        sx = canvas.width / (b.maxx - b.minx)
        sy = canvas.height / (b.maxy - b.miny)
        return [((x - b.minx) * sx, (y - b.miny) * sy) for x, y, *_ in coords]

    def _pad(self, canvas: Canvas) -> tuple[float, float, float, float]:
        # one pixel margin so strokes on the tile edge are still drawn
        b = canvas.bounds
        px = (b.maxx - b.minx) / canvas.width
        py = (b.maxy - b.miny) / canvas.height
        return b.minx - px, b.miny - py, b.maxx + px, b.maxy + py

    def _stamp(self, canvas: Canvas, mask: Image.Image) -> None:
        canvas.pixels += np.asarray(mask, dtype=np.uint32)


class GeometryPlotter(Plotter):
    """Draws polygons filled, lines stroked and points as single pixels."""

    name = 'geometry'

    def plot(self, canvas: Canvas, shape) -> None:
        if shape is None or shape.is_empty:
            return
        clipped = shapely.clip_by_rect(shape, *self._pad(canvas))
        if clipped.is_empty:
            return

        mask = Image.new('L', (canvas.width, canvas.height), 0)
        draw = ImageDraw.Draw(mask)
        self._draw(canvas, draw, clipped)
        self._stamp(canvas, mask)

    def _draw(self, canvas: Canvas, draw: ImageDraw.ImageDraw, geom) -> None:
        kind = geom.geom_type
        if kind == 'Polygon':
            exterior = self._transform(canvas, geom.exterior.coords)
            if len(exterior) > 2:
                draw.polygon(exterior, fill=1, outline=1)
            for ring in geom.interiors:
                hole = self._transform(canvas, ring.coords)
                if len(hole) > 2:
                    draw.polygon(hole, fill=0, outline=1)
        elif kind in ('LineString', 'LinearRing'):
            line = self._transform(canvas, geom.coords)
            if len(line) > 1:
                draw.line(line, fill=1, width=self.line_width)
            elif line:
                draw.point(line, fill=1)
        elif kind == 'Point':
            draw.point(self._transform(canvas, geom.coords), fill=1)
        else:
            # Multi* and GeometryCollection
            for part in geom.geoms:
                self._draw(canvas, draw, part)


class MBRPlotter(Plotter):
    """Draws the outline of each shape's bounding rectangle."""

    name = 'mbr'

    def plot(self, canvas: Canvas, shape) -> None:
        rect = self.shape_bounds(shape)
        if rect is None:
            return
        minx, miny, maxx, maxy = self._pad(canvas)
        if rect.disjoint(Bounds(minx, miny, maxx, maxy)):
            return

        (x1, y1), (x2, y2) = self._transform(
            canvas, [(rect.minx, rect.miny), (rect.maxx, rect.maxy)]
        )
        # keep far away edges just outside the image
        x1, x2 = np.clip([x1, x2], -1, canvas.width)
        y1, y2 = np.clip([y1, y2], -1, canvas.height)

        mask = Image.new('L', (canvas.width, canvas.height), 0)
        ImageDraw.Draw(mask).rectangle(
            [x1, y1, x2, y2], outline=1, width=self.line_width
        )
        self._stamp(canvas, mask)


plotters: dict[str, type[Plotter]] = {
    GeometryPlotter.name: GeometryPlotter,
    MBRPlotter.name: MBRPlotter,
}
"""Plotters available by name."""


def get_plotter(name: str, **kwargs) -> Plotter:
    """
    Create the plotter registered under name.

    :param name: Registered plotter name.
    :raises KeyError: No plotter with that name.
    :return: Plotter instance
    """
    return plotters[name.lower()](**kwargs)
