import itertools
import json
import math
import os
import pathlib
from dataclasses import dataclass
from typing import Optional

import dask.bag as db
import numpy as np
import pandas as pd
import shapely
import shapely.geometry

from .bounds import Bounds

CSV_SUFFIXES = ('.csv', '.tsv')
WKT_SUFFIXES = ('.wkt', '.txt')
GEOJSON_SUFFIXES = ('.geojson', '.json')


@dataclass(frozen=True)
class Split:
    """A contiguous range of shapes inside one input file."""

    filename: str
    """Input file."""
    start: int
    """Index of the first shape."""
    count: int
    """Maximum number of shapes."""


def geometry_bounds(shapes: list) -> Optional[Bounds]:
    """
    Bounding box of a list of shapes, skipping missing and empty ones.

    :param shapes: List of shapely geometries or None.
    :return: Bounds, or None if no shape has a bounding box
    """
    if not len(shapes):
        return None
    total = shapely.total_bounds(np.array(shapes, dtype=object))
    if np.isnan(total).any():
        return None
    return Bounds(*total)


class Data:
    """Represents a set of input files holding shapes, and splits them into
    units of work for the map phase."""

    def __init__(self, filenames: list[str], split_size: int = 10000):
        if isinstance(filenames, (str, pathlib.Path)):
            filenames = [filenames]
        self.filenames = [str(f) for f in filenames]
        """Input files, either CSV, WKT lines or GeoJSON"""
        self.split_size = split_size
        """Maximum number of shapes per split"""
        self._feature_cache = {}

        for f in self.filenames:
            if not os.path.exists(f):
                raise FileNotFoundError(f'Input file {f} does not exist')
            Data.file_type(f)

    def to_json(self):
        return dict(filenames=self.filenames, split_size=self.split_size)

    def __getstate__(self):
        # parsed features stay with the process that read them
        state = self.__dict__.copy()
        state['_feature_cache'] = {}
        return state

    def __repr__(self):
        return json.dumps(self.to_json(), indent=2)

    @staticmethod
    def file_type(filename: str) -> str:
        """
        Input format of a file derived from its suffix.

        :raises ValueError: Unsupported suffix.
        :return: One of 'csv', 'wkt' or 'geojson'
        """
        suffix = pathlib.Path(filename).suffix.lower()
        if suffix in CSV_SUFFIXES:
            return 'csv'
        if suffix in WKT_SUFFIXES:
            return 'wkt'
        if suffix in GEOJSON_SUFFIXES:
            return 'geojson'
        raise ValueError(
            f"Unsupported input file '{filename}', expected one of"
            f' {CSV_SUFFIXES + WKT_SUFFIXES + GEOJSON_SUFFIXES}'
        )

    def size(self) -> int:
        """Total size of the inputs in bytes."""
        return sum(os.path.getsize(f) for f in self.filenames)

    def is_small(self, threshold: int) -> bool:
        """Whether the inputs are small enough to plot on one machine."""
        return self.size() <= threshold

    def count(self, filename: str) -> int:
        """
        Upper bound of the number of shapes in a file. Blank lines are
        counted, reading drops them.
        """
        kind = Data.file_type(filename)
        if kind == 'geojson':
            return len(self._features(filename))
        with open(filename, 'rb') as f:
            lines = sum(1 for _ in f)
        if kind == 'csv':
            # header
            return max(lines - 1, 0)
        return lines

    def splits(self) -> list[Split]:
        """
        Cut every input into ranges of at most split_size shapes.

        :return: List of Splits
        """
        splits = []
        for f in self.filenames:
            n = self.count(f)
            for i in range(math.ceil(n / self.split_size)):
                start = i * self.split_size
                splits.append(
                    Split(f, start, min(self.split_size, n - start))
                )
        return splits

    def read(self, split: Split) -> list:
        """
        Load the shapes of one split.

        :param split: Split to read.
        :return: List of shapely geometries, None where a record has none
        """
        kind = Data.file_type(split.filename)
        if kind == 'csv':
            return self._read_csv(split)
        if kind == 'wkt':
            return self._read_wkt(split)
        return self._read_geojson(split)

    def shapes(self):
        """Iterate over every shape of every input, split by split."""
        for split in self.splits():
            yield from self.read(split)

    def bounds(self) -> Optional[Bounds]:
        """
        Scan every split once, in parallel, and combine the shape bounds.

        :return: Minimum bounding rectangle of all shapes, None if the inputs
            hold no shapes.
        """
        splits = self.splits()
        if not splits:
            return None
        bag = db.from_sequence(splits, npartitions=len(splits))
        return (
            bag.map(self.split_bounds)
            .fold(Bounds.union, Bounds.union, initial=None)
            .compute()
        )

    def split_bounds(self, split: Split) -> Optional[Bounds]:
        return geometry_bounds(self.read(split))

    def _read_csv(self, split: Split) -> list:
        sep = '\t' if split.filename.lower().endswith('.tsv') else ','
        df = pd.read_csv(
            split.filename,
            sep=sep,
            skiprows=range(1, split.start + 1),
            nrows=split.count,
            skip_blank_lines=False,
        ).dropna(how='all')
        columns = {c.lower(): c for c in df.columns}

        for name in ('geometry', 'wkt', 'geom'):
            if name in columns:
                wkt = [
                    w if isinstance(w, str) and w.strip() else None
                    for w in df[columns[name]]
                ]
                return list(shapely.from_wkt(np.array(wkt, dtype=object)))
        if 'x' in columns and 'y' in columns:
            xs = df[columns['x']].to_numpy(dtype=np.float64)
            ys = df[columns['y']].to_numpy(dtype=np.float64)
            return list(shapely.points(xs, ys))

        raise ValueError(
            f"CSV input '{split.filename}' needs a 'geometry' WKT column or"
            " 'x' and 'y' columns"
        )

    def _read_wkt(self, split: Split) -> list:
        with open(split.filename, 'r') as f:
            lines = itertools.islice(f, split.start, split.start + split.count)
            wkt = [line.strip() for line in lines if line.strip()]
        return list(shapely.from_wkt(np.array(wkt, dtype=object)))

    def _read_geojson(self, split: Split) -> list:
        features = self._features(split.filename)
        shapes = []
        for feat in features[split.start: split.start + split.count]:
            geom = feat.get('geometry') if feat.get('type') == 'Feature' else feat
            shapes.append(
                shapely.geometry.shape(geom) if geom is not None else None
            )
        return shapes

    def _features(self, filename: str) -> list:
        """Features of a GeoJSON file, parsed once per file."""
        if filename in self._feature_cache:
            return self._feature_cache[filename]
        with open(filename, 'r') as f:
            doc = json.load(f)
        if doc.get('type') == 'FeatureCollection':
            features = doc.get('features', [])
        else:
            features = [doc]
        self._feature_cache[filename] = features
        return features
