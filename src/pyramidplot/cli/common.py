import click
import webbrowser

import dask
from dask.diagnostics import ProgressBar
from dask.distributed import Client, LocalCluster

from .. import Bounds, Log
from ..resources.config import ConfigurationError, parse_levels


class BoundsParamType(click.ParamType):
    """Bounds given on the command line, e.g. "[0,0,100,100]",
    "{\"minx\": 0, \"miny\": 0, \"maxx\": 100, \"maxy\": 100}" or
    "([0,100],[0,100])"."""

    name = 'Bounds'

    def convert(self, value, param, ctx):
        if isinstance(value, Bounds):
            return value
        try:
            return Bounds.from_string(value)
        except (ValueError, SyntaxError, KeyError, TypeError) as e:
            self.fail(f'{value!r} is not a bounds type: {e}', param, ctx)


class LevelsParamType(click.ParamType):
    """Zoom level range, either 'N' or 'min..max'."""

    name = 'Levels'

    def convert(self, value, param, ctx) -> str:
        try:
            parse_levels(value)
        except ConfigurationError as e:
            self.fail(str(e), param, ctx)
        return str(value)


def start_cluster(dasktype: str, workers: int, threads: int) -> Client:
    """
    Start a dask.distributed LocalCluster and connect a client to it.

    :param dasktype: 'processes' or 'threads' for the workers.
    :raises ValueError: Unknown dasktype.
    :return: Connected Client
    """
    if dasktype not in ('processes', 'threads'):
        raise ValueError(f"Invalid value for 'dasktype', {dasktype}")
    cluster = LocalCluster(processes=(dasktype == 'processes'),
            n_workers=workers, threads_per_worker=threads)
    client = Client(cluster)
    client.get_versions(check=True)
    return client


def dask_handle(
    dasktype: str,
    scheduler: str,
    workers: int,
    threads: int,
    watch: bool,
    log: Log = None,
) -> None:
    """
    Point dask at the scheduler picked on the command line.

    'local' runs dasktype's local scheduler, 'distributed' starts a
    LocalCluster and 'single-threaded' runs everything in this thread.
    """
    if scheduler == 'distributed':
        client = start_cluster(dasktype, workers, threads)
        if log is not None:
            log.info(f'Dask dashboard at {client.dashboard_link}')
        if watch:
            webbrowser.open(client.dashboard_link)
        dask.config.set({'scheduler': 'distributed',
                'distributed.client': client})
        return

    if scheduler == 'local':
        pool = workers if dasktype == 'processes' else threads
        dask.config.set({'scheduler': dasktype, 'num_workers': pool})
        if watch:
            ProgressBar().register()
        return

    dask.config.set({'scheduler': scheduler})


def close_dask() -> None:
    client = dask.config.get('distributed.client', None)
    if isinstance(client, Client):
        client.close()
