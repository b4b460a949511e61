from .bounds import Bounds
from .tile import TileIndex, TileIndexError, MAX_LEVEL
from .subpyramid import SubPyramid, TileRange
from .canvas import Canvas, TileStore, create_tiles
from .plotter import Plotter, GeometryPlotter, MBRPlotter, plotters, get_plotter
from .log import Log
from .data import Data, Split
from .config import PlotConfig, ApplicationConfig, ConfigurationError
