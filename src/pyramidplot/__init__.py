__version__ = '0.1.0'

from .resources.bounds import Bounds
from .resources.tile import TileIndex, TileIndexError, MAX_LEVEL
from .resources.tile import encode, decode, level, tile_rectangle
from .resources.subpyramid import SubPyramid, TileRange
from .resources.canvas import Canvas, TileStore, create_tiles
from .resources.plotter import Plotter, GeometryPlotter, MBRPlotter
from .resources.plotter import plotters, get_plotter
from .resources.log import Log
from .resources.data import Data, Split
from .resources.config import PlotConfig, ApplicationConfig
from .resources.config import ConfigurationError, parse_levels

from .commands.partition import flat_partition, pyramid_partition, partition
from .commands.plot import plot
from .commands.mbr import mbr
