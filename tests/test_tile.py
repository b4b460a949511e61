import pytest

from pyramidplot import Bounds, TileIndex, TileIndexError, MAX_LEVEL
from pyramidplot import encode, decode, level, tile_rectangle


class Test_Tile(object):

    def test_rectangle(self, mbr: Bounds):
        assert tile_rectangle(mbr, 0, 0, 0) == mbr
        assert tile_rectangle(mbr, 1, 1, 0) == Bounds(50, 0, 100, 50)
        assert tile_rectangle(mbr, 2, 1, 3) == Bounds(25, 75, 50, 100)
        assert TileIndex(2, 1, 3).bounds(mbr) == Bounds(25, 75, 50, 100)

    def test_rectangles_cover_level(self, mbr: Bounds):
        z = 3
        area = 0
        for x in range(1 << z):
            for y in range(1 << z):
                r = tile_rectangle(mbr, z, x, y)
                area += r.width * r.height
        assert area == pytest.approx(mbr.width * mbr.height)

    @pytest.mark.parametrize('z,x,y', [
        (0, 0, 0),
        (1, 1, 0),
        (5, 17, 30),
        (13, 4095, 8191),
        (MAX_LEVEL, (1 << MAX_LEVEL) - 1, 12345),
    ])
    def test_encode_decode(self, z, x, y):
        tile_id = encode(z, x, y)
        assert decode(tile_id) == TileIndex(z, x, y)
        assert level(tile_id) == z

    def test_unique_ids(self):
        ids = set()
        for z in range(4):
            for x in range(1 << z):
                for y in range(1 << z):
                    ids.add(encode(z, x, y))
        assert len(ids) == sum(4**z for z in range(4))

    def test_level_order(self):
        ids = [encode(3, 7, 7), encode(0, 0, 0), encode(2, 0, 3),
                encode(3, 0, 0), encode(1, 1, 1)]
        levels = [level(i) for i in sorted(ids)]
        assert levels == sorted(levels)
        assert encode(1, 1, 1) < encode(2, 0, 0)

    @pytest.mark.parametrize('z,x,y', [
        (-1, 0, 0),
        (MAX_LEVEL + 1, 0, 0),
        (2, 4, 0),
        (2, 0, -1),
        (0, 1, 0),
    ])
    def test_encode_errors(self, z, x, y):
        with pytest.raises(TileIndexError):
            encode(z, x, y)

    def test_decode_errors(self):
        with pytest.raises(TileIndexError):
            decode((MAX_LEVEL + 1) << 56)
        assert issubclass(TileIndexError, ValueError)

    def test_flipped(self):
        assert TileIndex(2, 1, 0).flipped() == TileIndex(2, 1, 3)
        assert TileIndex(0, 0, 0).flipped() == TileIndex(0, 0, 0)
        t = TileIndex(5, 3, 9)
        assert t.flipped().flipped() == t
