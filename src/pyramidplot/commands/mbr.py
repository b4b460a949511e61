import json
import logging
from typing import Optional

from ..resources.bounds import Bounds
from ..resources.data import Data
from ..resources.log import Log


def mbr(filenames: list[str], split_size: int = 10000,
        log: Log = None) -> Optional[Bounds]:
    """
    Scan input files and report the bounding rectangle of their shapes.

    :param filenames: Input files.
    :param split_size: Shapes per split, defaults to 10000
    :return: Bounds of every shape, None if there are none.
    """
    if log is None:
        logger = logging.getLogger('pyramidplot')
    else:
        logger = log

    data = Data(filenames, split_size)
    splits = data.splits()
    logger.debug(f'Scanning {len(splits)} splits of {data.size()} bytes.')

    bounds = data.bounds()
    info = dict(
        mbr=bounds.to_json() if bounds is not None else None,
        files=data.filenames,
        splits=len(splits),
    )
    logger.info(json.dumps(info, indent=2))
    return bounds
