"""
Logging for pyramidplot. Every module logs through the 'pyramidplot' logger,
and :class:`Log` is the handle configs carry around and ship to workers.
"""

import logging
import pathlib
import sys

from typing_extensions import Optional, Union

LOGGER_NAME = 'pyramidplot'
LOG_FORMAT = ('%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:'
        '%(lineno)d - %(message)s')


def _handler(logdir: Optional[str], logfilename: str) -> logging.Handler:
    if not logdir:
        return logging.StreamHandler(stream=sys.stdout)
    path = pathlib.Path(logdir)
    path.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(str(path / logfilename))


class Log:
    """
    Handle on the pyramidplot logger. The first instance in a process
    installs a handler, later ones reuse it along with its level.

    :param log_level: Logging level name or number
    :param logdir: Directory for a log file, logs go to stdout if None
    :param logtype: 'stream' or 'file', forced to 'file' by logdir
    :param logfilename: Name of the log file inside logdir
    """

    def __init__(
        self,
        log_level: Union[int, str],
        logdir: Optional[str] = None,
        logtype: str = 'stream',
        logfilename: str = 'pyramidplot-log.txt',
    ):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logdir = logdir
        self.logtype = 'file' if logdir else logtype
        self.logfilename = logfilename

        if not self.logger.handlers:
            self.logger.setLevel(log_level)
            handler = _handler(logdir, logfilename)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)
        self.log_level = self.logger.level

    def to_json(self):
        return dict(
            log_level=self.log_level,
            logdir=self.logdir,
            logtype=self.logtype,
            logfilename=self.logfilename,
        )

    def __eq__(self, other):
        return isinstance(other, Log) and self.to_json() == other.to_json()

    def __getstate__(self):
        # handlers hold locks and streams, rebuild them in the new process
        return self.to_json()

    def __setstate__(self, state):
        self.__init__(**state)

    def debug(self, msg: str):
        self.logger.debug(msg, stacklevel=2)

    def info(self, msg: str):
        self.logger.info(msg, stacklevel=2)

    def warning(self, msg: str):
        self.logger.warning(msg, stacklevel=2)

    def error(self, msg: str):
        self.logger.error(msg, stacklevel=2)

    def __repr__(self):
        target = self.logfilename if self.logdir else 'stdout'
        return f"PyramidPlot logging {id(self)} @ '{target}'"
