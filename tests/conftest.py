import pytest
from typing_extensions import Generator

from pyramidplot import Bounds, Log, PlotConfig, ApplicationConfig

# pull together fixtures
pytest_plugins = [
    'fixtures.dask_fixtures',
    'fixtures.data_fixtures',
    'fixtures.plot_fixtures',
    'fixtures.cli_fixtures',
]


@pytest.fixture(scope='session')
def mbr() -> Generator[Bounds, None, None]:
    yield Bounds(0, 0, 100, 100)


@pytest.fixture(scope='function')
def log() -> Generator[Log, None, None]:
    yield Log('INFO')


@pytest.fixture(scope='function')
def app_config(log: Log) -> Generator[ApplicationConfig, None, None]:
    yield ApplicationConfig(log=log, scheduler='single-threaded')


@pytest.fixture(scope='function')
def plot_config(
    tmp_path_factory: pytest.TempPathFactory, wkt_file: str, log: Log
) -> Generator[PlotConfig, None, None]:
    out = tmp_path_factory.mktemp('tiles')
    yield PlotConfig(
        log=log,
        out_dir=str(out),
        filenames=[wkt_file],
        levels='4',
        tile_width=64,
        tile_height=64,
        split_size=7,
        parallel=2,
    )
