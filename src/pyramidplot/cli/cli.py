import click
import json
import logging


from .. import __version__
from .. import Log, plotters
from .. import PlotConfig, ApplicationConfig
from ..commands import plot, mbr
from .common import BoundsParamType, LevelsParamType
from .common import dask_handle, close_dask

@click.group()
@click.option("--debug", is_flag=True, default=False, help="Changes logging level from INFO to DEBUG.")
@click.option("--log-dir", default=None, help="Directory for log output", type=str)
@click.option("--workers", type=int, default=12, help="Number of workers for Dask")
@click.option("--threads", type=int, default=4, help="Number of threads per worker for Dask")
@click.option("--watch", is_flag=True, default=False, type=bool,
        help="Open dask diagnostic page in default web browser.")
@click.option("--dasktype", default='processes', type=click.Choice(['threads',
        'processes']), help="What Dask uses for parallelization. For more"
        "information see here https://docs.dask.org/en/stable/scheduling.html#local-threads")
@click.option("--scheduler", default='local', type=click.Choice(['distributed',
        'local', 'single-threaded']), help="Type of dask scheduler. Both are "
        "local, but are run with different dask libraries. See more here "
        "https://docs.dask.org/en/stable/scheduling.html.")
@click.version_option(__version__)
@click.pass_context
def cli(ctx, debug, log_dir, dasktype, scheduler, workers, threads, watch):

    # Set up logging
    if debug:
        log_level = 'DEBUG'
    else:
        log_level = 'INFO'

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    log = Log(log_level, log_dir)
    app = ApplicationConfig(log=log,
            debug=debug,
            scheduler=scheduler,
            dasktype=dasktype,
            workers=workers,
            threads=threads,
            watch=watch)
    ctx.obj = app
    ctx.call_on_close(close_dask)


@cli.command("mbr")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--split-size", type=int, default=10000,
        help="Number of shapes per input split.")
@click.pass_obj
def mbr_cmd(app, inputs, split_size):
    """Scan INPUTS and print the bounding rectangle of their shapes."""
    dask_handle(app.dasktype, app.scheduler, app.workers, app.threads,
            app.watch, app.log)
    bounds = mbr.mbr(list(inputs), split_size, log=app.log)
    click.echo(json.dumps(bounds.to_json() if bounds is not None else None))


@cli.command('plot')
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--outdir", "-o", type=click.Path(exists=False), required=True,
        help="Output directory.")
@click.option("--levels", type=LevelsParamType(), default='7',
        help="Zoom levels, either 'N' for levels 0..N-1 or 'min..max'.")
@click.option("--bounds", type=BoundsParamType(), default=None,
        help="Bounds of the pyramid. Scanned from the input if not given.")
@click.option("--plotter", type=click.Choice(sorted(plotters.keys()),
        case_sensitive=False), default='geometry', help="How shapes are drawn.")
@click.option("--color", type=str, default='black', help="Color of shapes.")
@click.option("--line-width", type=int, default=1, help="Stroke width in pixels.")
@click.option("--partition", type=click.Choice(['flat', 'pyramid'],
        case_sensitive=False), default=None,
        help="Force one partitioning technique for all levels.")
@click.option("--fanout", type=int, default=3,
        help="Levels per reducer with pyramid partitioning.")
@click.option("--flat-threshold", type=int, default=4,
        help="Deepest level generated with flat partitioning.")
@click.option("--tile-width", type=int, default=256, help="Tile width in pixels.")
@click.option("--tile-height", type=int, default=256, help="Tile height in pixels.")
@click.option("--vflip/--no-vflip", default=True,
        help="Put north at the top of tiles.")
@click.option("--keep-ratio/--no-keep-ratio", default=True,
        help="Square the bounds before dividing them into tiles.")
@click.option("--local/--distributed", default=None,
        help="Plot on this machine or with map/reduce jobs. Decided by"
        " input size if not given.")
@click.option("--parallel", type=int, default=None,
        help="Threads writing tiles when plotting locally.")
@click.option("--split-size", type=int, default=10000,
        help="Number of shapes per input split.")
@click.option("--output/--no-output", default=True,
        help="Write tiles to disk.")
@click.pass_obj
def plot_cmd(app, inputs, outdir, levels, bounds, plotter, color, line_width,
        partition, fanout, flat_threshold, tile_width, tile_height, vflip,
        keep_ratio, local, parallel, split_size, output):
    """Plot the shapes in INPUTS into a multilevel tile pyramid."""

    dask_handle(app.dasktype, app.scheduler, app.workers, app.threads,
            app.watch, app.log)

    kwargs = {}
    if parallel is not None:
        kwargs['parallel'] = parallel

    config = PlotConfig(log=app.log,
            debug=app.debug,
            out_dir=outdir,
            filenames=list(inputs),
            levels=levels,
            bounds=bounds,
            plotter=plotter,
            color=color,
            line_width=line_width,
            partition=partition,
            fanout=fanout,
            flat_threshold=flat_threshold,
            tile_width=tile_width,
            tile_height=tile_height,
            vflip=vflip,
            keep_ratio=keep_ratio,
            local=local,
            split_size=split_size,
            output=output,
            **kwargs)
    return plot.plot(config)

if __name__ == "__main__":
    cli()
