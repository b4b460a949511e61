import ast
import json
from typing import Optional


class Bounds(dict): #for JSON serializing
    """Axis aligned geographic rectangle. Used for the extent of a pyramid,
    for tile footprints and for shape bounding boxes."""

    def __init__(self, minx: float, miny: float, maxx: float, maxy: float):
        self.minx = float(minx)
        """West edge"""
        self.miny = float(miny)
        """South edge"""
        self.maxx = float(maxx)
        """East edge"""
        self.maxy = float(maxy)
        """North edge"""

    def __eq__(self, other):
        if not isinstance(other, Bounds):
            return False
        return self.get() == other.get()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __bool__(self):
        return True

    def __hash__(self):
        return hash(tuple(self.get()))

    def __repr__(self) -> str:
        return str(self.get())

    @staticmethod
    def from_string(text: str):
        """Parse Bounds from one of:

        "[minx, miny, maxx, maxy]"
        "[minx, miny, minz, maxx, maxy, maxz]", Z is dropped
        "{\"minx\": 1, \"miny\": 2, \"maxx\": 101, \"maxy\": 102}"
        "([minx, maxx], [miny, maxy])"

        :param text: Bounds string
        :raises ValueError: Unparseable string or wrong number of elements
        :return: Bounds object
        """
        try:
            parsed = json.loads(text)
        except json.decoder.JSONDecodeError as e:
            text = text.strip()
            if not text.startswith('('):
                raise ValueError(f"Unable to parse bounds '{text}': {e}") from e
            (minx, maxx), (miny, maxy) = ast.literal_eval(text)[:2]
            return Bounds(minx, miny, maxx, maxy)

        if isinstance(parsed, dict):
            return Bounds(parsed['minx'], parsed['miny'], parsed['maxx'],
                    parsed['maxy'])
        if len(parsed) == 4:
            return Bounds(*parsed)
        if len(parsed) == 6:
            return Bounds(parsed[0], parsed[1], parsed[3], parsed[4])
        raise ValueError(
            f'Bounds need 4 or 6 elements, got {len(parsed)}'
        )

    def get(self) -> list[float]:
        """
        :return: [minx, miny, maxx, maxy]
        """
        return [self.minx, self.miny, self.maxx, self.maxy]

    def to_json(self) -> list[float]:
        return self.get()

    @property
    def width(self) -> float:
        return self.maxx - self.minx

    @property
    def height(self) -> float:
        return self.maxy - self.miny

    def squared(self):
        """Grow the shorter side symmetrically about the center until it
        matches the longer one.

        :return: Square Bounds containing this one
        """
        side = max(self.width, self.height)
        dx = (side - self.width) / 2
        dy = (side - self.height) / 2
        return Bounds(self.minx - dx, self.miny - dy,
                self.minx - dx + side, self.miny - dy + side)

    def disjoint(self, other) -> bool:
        """True if the two rectangles share no point, edges included."""
        return (
            other.minx > self.maxx or other.maxx < self.minx
            or other.miny > self.maxy or other.maxy < self.miny
        )

    @staticmethod
    def union(first: Optional['Bounds'], second: Optional['Bounds']):
        """Smallest Bounds containing both inputs. Either may be None, which
        makes it usable as a fold over possibly empty inputs.

        :returns: Combined Bounds, or None if both are None
        """
        if first is None:
            return second
        if second is None:
            return first
        return Bounds(
            min(first.minx, second.minx),
            min(first.miny, second.miny),
            max(first.maxx, second.maxx),
            max(first.maxy, second.maxy),
        )
