import io

import numpy as np
import pytest
import shapely
from PIL import Image
from shapely.geometry import LineString, Point

from pyramidplot import Bounds, Canvas, GeometryPlotter, MBRPlotter
from pyramidplot import plotters, get_plotter


@pytest.fixture
def canvas() -> Canvas:
    yield Canvas(10, 10, Bounds(0, 0, 10, 10))


class Test_Plotter(object):

    def test_registry(self):
        assert set(plotters) == {'geometry', 'mbr'}
        p = get_plotter('MBR', color='red', line_width=3)
        assert isinstance(p, MBRPlotter)
        assert p.color == (255, 0, 0, 255)
        assert p.line_width == 3
        with pytest.raises(KeyError):
            get_plotter('heatmap')

    def test_shape_bounds(self):
        assert GeometryPlotter.shape_bounds(None) is None
        assert GeometryPlotter.shape_bounds(Point()) is None
        assert GeometryPlotter.shape_bounds(LineString([(1, 2), (3, 5)])) \
                == Bounds(1, 2, 3, 5)

    def test_create_canvas(self, any_plotter):
        c = any_plotter.create_canvas(7, 5, Bounds(0, 0, 1, 1))
        assert c.pixels.shape == (5, 7)
        assert c.is_empty()

    def test_smooth(self, any_plotter):
        shapes = [Point(1, 1)]
        assert not any_plotter.is_smooth
        assert any_plotter.smooth(shapes) == shapes


class Test_GeometryPlotter(object):

    def test_polygon(self, canvas, geometry_plotter):
        geometry_plotter.plot(canvas, shapely.box(2, 2, 8, 8))
        assert canvas.pixels[5, 5] == 1
        assert canvas.pixels[0, 0] == 0
        assert canvas.pixels[9, 9] == 0

    def test_hole(self, canvas, geometry_plotter):
        donut = shapely.box(0, 0, 10, 10).difference(shapely.box(3, 3, 7, 7))
        geometry_plotter.plot(canvas, donut)
        assert canvas.pixels[5, 5] == 0
        assert canvas.pixels[1, 1] == 1

    def test_line(self, canvas, geometry_plotter):
        geometry_plotter.plot(canvas, LineString([(0.2, 5.2), (9.2, 5.2)]))
        row = canvas.pixels[5]
        assert row.sum() >= 9
        assert canvas.pixels.sum() == row.sum()

    def test_point(self, canvas, geometry_plotter):
        geometry_plotter.plot(canvas, Point(4.5, 6.5))
        assert canvas.pixels.sum() == 1

    def test_multi(self, canvas, geometry_plotter):
        multi = shapely.MultiPoint([(1.5, 1.5), (8.5, 8.5)])
        geometry_plotter.plot(canvas, multi)
        assert canvas.pixels.sum() == 2

    def test_clipped(self, canvas, geometry_plotter):
        geometry_plotter.plot(canvas, shapely.box(50, 50, 60, 60))
        assert canvas.is_empty()

        geometry_plotter.plot(canvas, shapely.box(-100, -100, 100, 100))
        assert (canvas.pixels == 1).all()

    def test_counts(self, canvas, geometry_plotter):
        geometry_plotter.plot(canvas, shapely.box(2, 2, 8, 8))
        geometry_plotter.plot(canvas, shapely.box(2, 2, 8, 8))
        assert canvas.pixels[5, 5] == 2


class Test_MBRPlotter(object):

    def test_outline(self, canvas):
        p = MBRPlotter()
        p.plot(canvas, LineString([(2, 2), (8, 8)]))
        assert canvas.pixels[2, 2] == 1
        assert canvas.pixels[2, 5] == 1
        assert canvas.pixels[5, 5] == 0

    def test_disjoint(self, canvas):
        p = MBRPlotter()
        p.plot(canvas, shapely.box(30, 30, 40, 40))
        p.plot(canvas, None)
        assert canvas.is_empty()


class Test_WriteImage(object):

    def test_vflip(self, canvas, geometry_plotter):
        # shape in the northern half of the tile
        geometry_plotter.plot(canvas, shapely.box(0, 7, 10, 10))

        out = io.BytesIO()
        geometry_plotter.write_image(canvas, out, vflip=True)
        img = np.asarray(Image.open(io.BytesIO(out.getvalue())))
        assert img.shape == (10, 10, 4)
        assert img[0, 5, 3] == 255
        assert img[9, 5, 3] == 0
        assert tuple(img[0, 5]) == (0, 0, 0, 255)

        out = io.BytesIO()
        geometry_plotter.write_image(canvas, out, vflip=False)
        img = np.asarray(Image.open(io.BytesIO(out.getvalue())))
        assert img[0, 5, 3] == 0
        assert img[9, 5, 3] == 255

    def test_color(self, canvas, mbr_plotter):
        mbr_plotter.plot(canvas, shapely.box(2, 2, 8, 8))
        out = io.BytesIO()
        mbr_plotter.write_image(canvas, out)
        img = np.asarray(Image.open(io.BytesIO(out.getvalue())))
        assert tuple(img[2, 2]) == (255, 0, 0, 255)
        assert img[5, 5, 3] == 0
