import numpy as np
import pytest

from pyramidplot import Bounds, SubPyramid, TileRange, TileIndex
from pyramidplot import encode, decode


def random_rects(count: int, seed: int = 7) -> list[Bounds]:
    rng = np.random.default_rng(seed)
    rects = []
    for _ in range(count):
        x, y = rng.uniform(-10, 100, 2)
        w, h = rng.uniform(0, 30, 2)
        rects.append(Bounds(x, y, x + w, y + h))
    # degenerate shapes on grid lines and on the far edges
    rects += [
        Bounds(50, 50, 50, 50),
        Bounds(25, 0, 25, 100),
        Bounds(100, 100, 100, 100),
        Bounds(0, 100, 100, 100),
        Bounds(100, 0, 200, 100),
    ]
    return rects


class Test_TileRange(object):

    def test_coarsen(self):
        r = TileRange(3, 4, 9, 5)
        assert r.coarsen() == TileRange(1, 2, 5, 3)
        assert r.coarsen(2) == TileRange(0, 1, 3, 2)
        assert r.coarsen(1).coarsen(1) == r.coarsen(2)

    def test_iter(self):
        r = TileRange(1, 2, 3, 4)
        assert list(r) == [(1, 2), (1, 3), (2, 2), (2, 3)]
        assert len(r) == 4


class Test_SubPyramid(object):

    def test_validation(self, mbr: Bounds):
        with pytest.raises(ValueError):
            SubPyramid(mbr, 3, 2, 0, 0, 1, 1)
        with pytest.raises(ValueError):
            SubPyramid(mbr, 0, 2, 0, 0, 5, 1)
        with pytest.raises(ValueError):
            SubPyramid(mbr, 0, 2, 1, 0, 1, 1)
        with pytest.raises(ValueError):
            SubPyramid(mbr, 0, 29, 0, 0, 1, 1)

    def test_example(self, mbr: Bounds):
        sp = SubPyramid.full(mbr, 0, 2)
        tiles = [decode(t) for t in sp.tiles(Bounds(10, 10, 20, 20))]
        assert tiles == [TileIndex(2, 0, 0), TileIndex(1, 0, 0),
                TileIndex(0, 0, 0)]

    def test_full_mbr(self, mbr: Bounds):
        sp = SubPyramid.full(mbr, 0, 6)
        levels = dict(sp.levels(mbr))
        assert len(levels[0]) == 1
        assert len(levels[1]) == 4
        assert len(levels[6]) == 4**6

    @pytest.mark.parametrize('rect', [
        Bounds(200, 200, 210, 210),
        Bounds(-20, 0, -10, 10),
        # touching an edge from outside, far and near sides of both axes
        Bounds(100, 0, 200, 100),
        Bounds(-100, 0, 0, 100),
        Bounds(0, 100, 100, 200),
        Bounds(0, -100, 100, 0),
        Bounds(100, 100, 150, 150),
    ])
    def test_outside(self, mbr: Bounds, rect: Bounds):
        for max_level in (0, 3, 6):
            sp = SubPyramid.full(mbr, 0, max_level)
            assert sp.overlapping_tiles(rect) is None
            assert list(sp.tiles(rect)) == []

    def test_degenerate(self, mbr: Bounds):
        sp = SubPyramid.full(mbr, 0, 2)
        assert sp.overlapping_tiles(Bounds(50, 50, 50, 50)) == \
                TileRange(2, 2, 3, 3)
        # the far corner belongs to the last tile
        assert sp.overlapping_tiles(Bounds(100, 100, 100, 100)) == \
                TileRange(3, 3, 4, 4)

    def test_halving(self, mbr: Bounds):
        """Coarsening the overlap at one level matches computing it directly
        at the coarser level."""
        deep = 12
        for rect in random_rects(200):
            fine = SubPyramid.full(mbr, 0, deep).overlapping_tiles(rect)
            for k in range(1, deep + 1):
                direct = SubPyramid.full(mbr, 0, deep - k)\
                    .overlapping_tiles(rect)
                if fine is None:
                    assert direct is None
                else:
                    assert fine.coarsen(k) == direct

    def test_step(self, mbr: Bounds):
        sp = SubPyramid.full(mbr, 1, 7)
        rect = Bounds(10, 10, 20, 20)
        assert [z for z, _ in sp.levels(rect, step=3)] == [7, 4, 1]
        assert [z for z, _ in sp.levels(rect)] == list(range(7, 0, -1))

    def test_for_tile(self, mbr: Bounds):
        sp = SubPyramid.for_tile(mbr, TileIndex(2, 1, 3), 9, 3)
        assert (sp.min_level, sp.max_level) == (2, 4)
        assert (sp.c1, sp.r1, sp.c2, sp.r2) == (4, 12, 8, 16)

        # cut short by the deepest level of the job
        sp = SubPyramid.for_tile(mbr, TileIndex(2, 1, 3), 3, 3)
        assert (sp.min_level, sp.max_level) == (2, 3)
        assert (sp.c1, sp.r1, sp.c2, sp.r2) == (2, 6, 4, 8)

    def test_for_tile_matches_full(self, mbr: Bounds):
        """A tile's local sub-pyramid sees the same tiles below it as the
        whole pyramid does."""
        full = SubPyramid.full(mbr, 0, 5)
        for rect in random_rects(50, seed=11):
            expected = set(full.tiles(rect))
            found = set()
            for z0 in (0, 3):
                # every root tile at level z0
                for x in range(1 << z0):
                    for y in range(1 << z0):
                        local = SubPyramid.for_tile(
                            mbr, TileIndex(z0, x, y), 5, 3)
                        found |= set(local.tiles(rect))
            assert found == expected

    def test_tiles(self, mbr: Bounds):
        sp = SubPyramid.full(mbr, 0, 1)
        ids = list(sp.tiles(Bounds(40, 40, 60, 60)))
        assert ids[:4] == [encode(1, 0, 0), encode(1, 0, 1),
                encode(1, 1, 0), encode(1, 1, 1)]
        assert ids[4:] == [encode(0, 0, 0)]
