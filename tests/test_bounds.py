import pytest

from pyramidplot import Bounds


class Test_Bounds(object):

    @pytest.mark.parametrize('text', [
        '[1,2,101,102]',
        '[1,2,3,101,102,103]',
        '{"minx": 1, "miny": 2, "maxx": 101, "maxy": 102}',
        '([1,101],[2,102])',
    ])
    def test_from_string(self, text):
        b = Bounds.from_string(text)
        assert b == Bounds(1, 2, 101, 102)
        assert b.width == 100
        assert b.height == 100

    def test_from_string_errors(self):
        with pytest.raises(ValueError):
            Bounds.from_string('[1,2,3]')
        with pytest.raises(ValueError):
            Bounds.from_string('not bounds')

    def test_squared(self):
        wide = Bounds(0, 0, 100, 50).squared()
        assert wide == Bounds(0, -25, 100, 75)

        tall = Bounds(10, 0, 20, 40).squared()
        assert tall == Bounds(-5, 0, 35, 40)

        square = Bounds(0, 0, 10, 10)
        assert square.squared() == square

    def test_union(self):
        a = Bounds(0, 0, 1, 1)
        b = Bounds(5, -2, 6, 0.5)
        assert Bounds.union(a, b) == Bounds(0, -2, 6, 1)
        assert Bounds.union(None, b) == b
        assert Bounds.union(a, None) == a
        assert Bounds.union(None, None) is None

    def test_disjoint(self):
        a = Bounds(0, 0, 10, 10)
        assert not a.disjoint(Bounds(5, 5, 20, 20))
        # touching edges are shared
        assert not a.disjoint(Bounds(10, 0, 20, 10))
        assert a.disjoint(Bounds(11, 11, 20, 20))
        assert a.disjoint(Bounds(-5, 11, -1, 20))

    def test_json(self, mbr: Bounds):
        assert mbr.to_json() == [0.0, 0.0, 100.0, 100.0]
        assert Bounds.from_string(str(mbr)) == mbr
