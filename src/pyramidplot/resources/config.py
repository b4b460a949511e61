import os
import json

from abc import ABC, abstractmethod
from typing_extensions import Optional, Union

from dataclasses import dataclass, field, fields

from .log import Log
from .bounds import Bounds
from .tile import MAX_LEVEL
from .plotter import plotters
from .. import __version__


PARTITION_TECHNIQUES = ('flat', 'pyramid')


class ConfigurationError(ValueError):
    """Invalid configuration, detected before any work starts."""


def parse_levels(levels: Union[str, int]) -> tuple[int, int]:
    """
    Parse a level range. "N" means the N levels 0..N-1 and "min..max" is an
    inclusive range.

    :param levels: Level string.
    :raises ConfigurationError: Malformed or out of range levels.
    :return: Tuple of (min_level, max_level)
    """
    parts = str(levels).strip().split('..')
    try:
        if len(parts) == 1:
            min_level = 0
            max_level = int(parts[0]) - 1
        elif len(parts) == 2:
            min_level = int(parts[0])
            max_level = int(parts[1])
        else:
            raise ValueError(levels)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid levels '{levels}', expected 'N' or 'min..max'"
        ) from e

    if min_level < 0 or max_level < min_level:
        raise ConfigurationError(f"Invalid level range '{levels}'")
    if max_level > MAX_LEVEL:
        raise ConfigurationError(
            f'Level {max_level} exceeds the maximum supported level {MAX_LEVEL}'
        )
    return min_level, max_level


@dataclass(kw_only=True)
class Config(ABC):
    """Settings shared by every pyramidplot command."""

    log: Log = field(default_factory=lambda: Log('INFO'))
    """Where messages go."""
    debug: bool = field(default=False)
    """Run with debug output."""

    def to_json(self):
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        if isinstance(d['log'], Log):
            d['log'] = d['log'].to_json()
        return d

    @classmethod
    def from_json(cls, data: dict):
        return cls.from_string(json.dumps(data))

    @classmethod
    @abstractmethod
    def from_string(cls, data: str):
        raise NotImplementedError

    def __repr__(self):
        return json.dumps(self.to_json())


@dataclass
class ApplicationConfig(Config):
    """How the command line runs dask."""

    dasktype: str = field(default='processes')
    """'processes' or 'threads', see
    https://docs.dask.org/en/stable/scheduling.html#local-threads """
    scheduler: str = field(default='local')
    """'distributed', 'local' or 'single-threaded', defaults to 'local'"""
    workers: int = field(default=12)
    """Dask worker count"""
    threads: int = field(default=4)
    """Threads in each dask worker"""
    watch: bool = field(default=False)
    """Show dask progress, or open the dashboard in a browser"""

    @classmethod
    def from_string(cls, data: str):
        x = json.loads(data)
        x['log'] = Log(**x['log'])
        return cls(**x)

    def __repr__(self):
        return json.dumps(self.to_json())


@dataclass
class PlotConfig(Config):
    """Config for generating a multilevel tile pyramid"""

    out_dir: str
    """Directory receiving tiles, default.png and index.html."""
    filenames: list[str]
    """Input files holding shapes."""
    levels: str = field(default='7')
    """Zoom levels, either "N" for levels 0..N-1 or "min..max", defaults
    to '7'"""
    bounds: Optional[Bounds] = field(default=None)
    """Geographic extent of the pyramid. Scanned from the input if None,
    defaults to None"""
    plotter: str = field(default='geometry')
    """Name of the plotter drawing shapes, defaults to 'geometry'"""
    color: str = field(default='black')
    """Color of plotted pixels, defaults to 'black'"""
    line_width: int = field(default=1)
    """Stroke width in pixels, defaults to 1"""
    partition: Optional[str] = field(default=None)
    """Force 'flat' or 'pyramid' partitioning for the whole level range.
    If None the range is split at flat_threshold, defaults to None"""
    fanout: int = field(default=3)
    """Levels handled by one pyramid partitioning reducer, defaults to 3"""
    flat_threshold: int = field(default=4)
    """Deepest level produced with flat partitioning, defaults to 4"""
    tile_width: int = field(default=256)
    """Tile width in pixels, defaults to 256"""
    tile_height: int = field(default=256)
    """Tile height in pixels, defaults to 256"""
    vflip: bool = field(default=True)
    """Put north at the top of images and count tile rows from the top,
    defaults to True"""
    keep_ratio: bool = field(default=True)
    """Square the bounds before subdividing, defaults to True"""
    local: Optional[bool] = field(default=None)
    """Run on this machine only. If None it is decided by input size,
    defaults to None"""
    local_threshold: int = field(default=64 * 1024**2)
    """Input size in bytes below which jobs run locally, defaults to 64MiB"""
    parallel: int = field(default_factory=lambda: os.cpu_count() or 1)
    """Number of threads writing tiles on the local path, defaults to the
    number of CPUs"""
    split_size: int = field(default=10000)
    """Shapes per input split, defaults to 10000"""
    output: bool = field(default=True)
    """Write tiles to disk. If False tiles are encoded and dropped,
    defaults to True"""
    version: str = field(default=__version__)
    """PyramidPlot version"""

    def __post_init__(self) -> None:
        if isinstance(self.filenames, str):
            self.filenames = [self.filenames]
        self.filenames = [str(f) for f in self.filenames]
        self.out_dir = str(self.out_dir)
        self.levels = str(self.levels)
        self.min_level, self.max_level = parse_levels(self.levels)

        if self.partition is not None:
            self.partition = self.partition.lower()
            if self.partition not in PARTITION_TECHNIQUES:
                raise ConfigurationError(
                    f"Unknown partitioning technique '{self.partition}'"
                )

        self.plotter = self.plotter.lower()
        if self.plotter not in plotters:
            raise ConfigurationError(
                f"Unknown plotter '{self.plotter}', options are"
                f' {list(plotters.keys())}'
            )

        if self.fanout < 1:
            raise ConfigurationError(f'Invalid fanout {self.fanout}')
        if self.tile_width < 1 or self.tile_height < 1:
            raise ConfigurationError(
                f'Invalid tile size {self.tile_width}x{self.tile_height}'
            )
        if self.split_size < 1:
            raise ConfigurationError(f'Invalid split size {self.split_size}')
        if self.parallel < 1:
            raise ConfigurationError(f'Invalid parallelism {self.parallel}')

    def to_json(self):
        d = super().to_json()
        d['bounds'] = self.bounds.to_json() if self.bounds is not None else None
        return d

    @classmethod
    def from_string(cls, data: str):
        x = json.loads(data)
        return cls.from_dict(x)

    @classmethod
    def from_dict(cls, data: dict):
        x = dict(data)
        if x.get('bounds') is not None:
            x['bounds'] = Bounds(*x['bounds'])
        if 'log' in x:
            x['log'] = Log(**x['log'])
        return cls(**x)

    def __repr__(self):
        return json.dumps(self.to_json())
