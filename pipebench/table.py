# -*- coding: utf-8 -*-
"""
The pipebench.table module contains the :class:`BenchmarkTable`, which
records the combinatorial application of methods to datasets, and the
operations that build and reshape it.

A benchmark table has one row per *pipeline*, i.e. per dataset and chain of
method choices. Its columns are:

* ``data`` – the name of the dataset the row originates from,
* one *stage* column per call to :func:`apply_methods`, in the order the
  stages were applied, containing the name of the method chosen at that
  stage,
* ``result`` – the output of the pipeline. This can be any object, including
  data frames or matrices, and it is never broadcast or vectorized.

A typical session::

    datasets = {'iris': iris, 'wine': wine}
    table = apply_methods(datasets, scalings)        # data, scaling, result
    table = apply_methods(table, clusterings)        # data, scaling, clustering, result
    table = table.map_results(lambda r: r.score)
    summary = collapse(table)                        # data, pipeline, result

Rows are ordered such that earlier stages vary slowest: all methods of the
latest stage appear, in the collection's order, for each row of the input
table in turn.
"""

import logging
from collections.abc import Mapping

import joblib
import numpy as np
import pandas as pd

from .config import get_config
from .util import BenchmarkError, get_name

logger = logging.getLogger(__name__)

DATA = 'data'
RESULT = 'result'
PIPELINE = 'pipeline'
RESERVED = (DATA, RESULT, PIPELINE)


class SchemaMismatchError(BenchmarkError, ValueError):
    """
    Raised when tables with different stage columns are concatenated.
    """

    def __init__(self, left, right):
        super().__init__("Cannot concatenate tables with stages {} and {}"
                         .format(left, right))
        self.left = left
        self.right = right

    def __reduce__(self):
        return (type(self), (self.left, self.right))


class DuplicateStageError(BenchmarkError, ValueError):
    """
    Raised when a stage name is already used by the benchmark table.
    """
    pass


class ApplicationError(BenchmarkError):
    """
    Raised when a method fails on a row's result. The original exception is
    available as ``__cause__``.

    Attributes:
        data (str): name of the dataset of the failing row
        stages (dict): stage name -> method name for the failing row's
            previous stages
        method (str): name of the failing method
    """

    def __init__(self, data, stages, method, stage=None):
        pipeline = ' / '.join(list(stages.values()) + [method])
        super().__init__("Method {} {}failed on dataset {} (pipeline {})"
                         .format(method,
                                 "of stage {} ".format(stage) if stage else "",
                                 data, pipeline))
        self.data = data
        self.stages = stages
        self.method = method
        self.stage = stage

    def __reduce__(self):
        return (type(self), (self.data, self.stages, self.method, self.stage))


class BenchmarkTable(pd.DataFrame):
    """
    A table recording methods applied to datasets.

    This is a :class:`pandas.DataFrame`, so all the usual operations for
    selecting rows and columns work and return benchmark tables. Create
    instances using :func:`benchmark_table` or :func:`apply_methods`.
    """

    @property
    def _constructor(self):
        return BenchmarkTable

    @property
    def stages(self):
        """
        List of stage column names, in the order they have been applied.
        """
        return [column for column in self.columns
                if column not in (DATA, RESULT)]

    def map_results(self, fn):
        """
        Returns a new table with each row's result replaced by ``fn(result)``.

        Unlike :func:`apply_methods`, this does not add a stage. Errors raised
        by `fn` propagate as :class:`ApplicationError`.
        """
        results = [_call(fn, row[RESULT], row, get_name(fn))
                   for row in self.to_dict('records')]
        table = self.copy()
        table[RESULT] = pd.Series(_objects(results), index=table.index, dtype=object)
        return table

    def save(self, filename, compress=3):
        """
        Saves this table, including the result objects, to a file.

        Args:
            filename (str): The target file.
            compress: compression setting, see :func:`joblib.dump`
        """
        logger.info("Saving %d × %s benchmark table to %s ...",
                    len(self), self.stages, filename)
        joblib.dump(pd.DataFrame(self), filename, compress=compress)

    @classmethod
    def load(cls, filename):
        """
        Loads a table saved using :meth:`save`.
        """
        return cls(joblib.load(filename))


def benchmark_table(datasets):
    """
    Creates the initial benchmark table from a collection of datasets.

    Args:
        datasets (Mapping): dataset name -> dataset object. The order of the
            mapping determines the order of the rows.

    Returns:
        BenchmarkTable: one row per dataset, columns ``data`` and ``result``.
    """
    if isinstance(datasets, pd.DataFrame):
        return as_table(datasets)
    if not isinstance(datasets, Mapping):
        raise TypeError("datasets must be a mapping from names to datasets, "
                        "not {}".format(type(datasets).__name__))
    table = BenchmarkTable({
        DATA: pd.Series([str(name) for name in datasets.keys()], dtype=object),
        RESULT: pd.Series(_objects(list(datasets.values())), dtype=object)})
    return table


def _objects(values):
    # element-wise, numpy would broadcast nested sequences
    array = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        array[i] = value
    return array


def as_table(table):
    """
    Returns `table` as a :class:`BenchmarkTable`.

    Data frames need ``data`` and ``result`` columns, mappings are passed to
    :func:`benchmark_table`.

    Raises:
        ValueError: for data frames without ``data`` or ``result`` column
    """
    if isinstance(table, pd.DataFrame):
        missing = [column for column in (DATA, RESULT)
                   if column not in table.columns]
        if missing:
            raise ValueError("Not a benchmark table, missing column(s) {}"
                             .format(', '.join(missing)))
        if isinstance(table, BenchmarkTable):
            return table
        return BenchmarkTable(table)
    return benchmark_table(table)


def _stage_name(methods, stage):
    if stage is None:
        stage = getattr(methods, 'name', None)
    if stage is None:
        raise ValueError("The stage has no name. Pass a MethodCollection "
                         "with a name, or the stage argument.")
    return str(stage)


def _call(method, value, row, method_name, stage=None):
    try:
        return method(value)
    except Exception as error:
        previous = {column: row[column] for column in row
                    if column not in (DATA, RESULT)}
        raise ApplicationError(row[DATA], previous, method_name, stage) \
                from error


def apply_methods(table, methods, stage=None, config=None):
    """
    Applies each method to the result of each row of the table.

    For every row of `table` and every method, the returned table contains
    one row. It copies the row's ``data`` and stage values, adds a new stage
    column with the method's name, and contains ``method(row.result)`` as
    result. For each input row, the methods appear in the collection's
    order. The input table is not modified.

    Args:
        table: a :class:`BenchmarkTable`, or a mapping dataset name ->
            dataset for the first stage
        methods (Mapping): method name -> function taking one argument.
        stage (str): name for the new stage column. Defaults to the
            `methods`' ``name`` attribute (see :class:`MethodCollection`).
        config (Config): Settings for parallel evaluation. Uses the
            process-wide default configuration if not given.

    Returns:
        BenchmarkTable: ``len(table) * len(methods)`` rows, the new stage
        column just before ``result``.

    Raises:
        DuplicateStageError: if the stage name is already used
        ApplicationError: if a method raises an exception. Evaluation stops
            and no table is returned. With several workers, the error is
            the first one that occurred, which need not be the first in row
            order.
    """
    config = get_config(config)
    table = as_table(table)
    if not isinstance(methods, Mapping):
        raise TypeError("methods must be a mapping from names to functions, "
                        "not {}".format(type(methods).__name__))
    stage = _stage_name(methods, stage)
    if stage in table.columns or stage in RESERVED:
        raise DuplicateStageError("Stage {} already exists in a table with "
                                  "columns {}".format(stage, list(table.columns)))

    names = [str(name) for name in methods.keys()]
    functions = list(methods.values())
    rows = table.to_dict('records')
    logger.info("Applying %d methods of stage %s to %d rows (%d workers)",
                len(functions), stage, len(rows), config.workers)

    if config.parallel and rows and functions:
        results = _apply_parallel(rows, names, functions, stage, config)
    else:
        results = [_call(function, row[RESULT], row, name, stage)
                   for row in rows
                   for name, function in zip(names, functions)]

    # earlier rows vary slowest: repeat each input row once per method
    positions = np.repeat(np.arange(len(rows)), len(functions))
    labels = table.drop(columns=[RESULT]).iloc[positions]
    labels = labels.reset_index(drop=True)
    labels[stage] = pd.Series(names * len(rows), dtype=object)
    labels[RESULT] = pd.Series(_objects(results), dtype=object)
    return BenchmarkTable(labels)


def _apply_parallel(rows, names, functions, stage, config):
    tasks = [(row, name, function)
             for row in rows
             for name, function in zip(names, functions)]
    # joblib stops dispatching once a task raises; results come back in
    # submission order
    return joblib.Parallel(n_jobs=config.workers, backend=config.backend,
                           verbose=config.verbose)(
        joblib.delayed(_call)(function, row[RESULT], row, name, stage)
        for row, name, function in tasks)


def concat(table, *tables):
    """
    Concatenates benchmark tables that have the same stages.

    This allows to add methods to a stage without recomputing the results
    that are already there: apply the new methods to the previous table and
    concatenate the result to the existing table.

    Args:
        table, *tables (BenchmarkTable): The tables to concatenate. They
            must have the same stage columns in the same order.

    Returns:
        BenchmarkTable: all rows of the first table, then all rows of the
        second and so on. Rows are not deduplicated.

    Raises:
        SchemaMismatchError: if the stage columns differ.
    """
    tables = [as_table(t) for t in (table,) + tables]
    stages = tables[0].stages
    for other in tables[1:]:
        if other.stages != stages:
            raise SchemaMismatchError(stages, other.stages)
    nonempty = [pd.DataFrame(t) for t in tables if len(t) > 0]
    if not nonempty:
        return BenchmarkTable(pd.DataFrame(tables[0]).reset_index(drop=True))
    return BenchmarkTable(pd.concat(nonempty, ignore_index=True))


def collapse(table, sep=None, config=None):
    """
    Replaces the stage columns by a single ``pipeline`` column.

    The pipeline column contains the method names of all stages, in stage
    order, joined by `sep`. ``data`` and ``result`` are retained, the number
    and order of the rows stays the same.

    Args:
        table (BenchmarkTable): The table to collapse
        sep (str): separator. Defaults to the configured ``separator``.

    Returns:
        BenchmarkTable: columns ``data``, ``pipeline``, ``result``
    """
    table = as_table(table)
    if sep is None:
        sep = get_config(config).separator
    stages = table.stages
    if stages:
        pipeline = pd.Series([sep.join(map(str, values)) for values in
                              table[stages].itertuples(index=False, name=None)],
                             index=table.index, dtype=object)
    else:
        pipeline = pd.Series('', index=table.index, dtype=object)
    collapsed = pd.DataFrame({DATA: table[DATA],
                              PIPELINE: pipeline.astype(object),
                              RESULT: table[RESULT]},
                             index=table.index)
    return BenchmarkTable(collapsed)


def _result_frame(result):
    if isinstance(result, pd.DataFrame):
        return result
    if isinstance(result, pd.Series):
        return result.to_frame().T.reset_index(drop=True)
    if isinstance(result, Mapping):
        return pd.DataFrame([result])
    if isinstance(result, (list, tuple)) \
            and all(isinstance(item, Mapping) for item in result):
        return pd.DataFrame(list(result))
    raise TypeError("Cannot unnest a result of type {}"
                    .format(type(result).__name__))


def unnest_results(table):
    """
    Expands tabular results into flat rows.

    Each row's result must be a data frame, a series (one row), a mapping
    (one row) or a list of mappings. The returned data frame contains the
    rows of all results, prefixed by the ``data`` and stage columns of the
    row they came from.

    Returns:
        pandas.DataFrame: label columns, then the results' columns
    """
    table = as_table(table)
    labels = [column for column in table.columns if column != RESULT]
    frames = []
    for row in table.to_dict('records'):
        frame = _result_frame(row[RESULT]).reset_index(drop=True)
        clashes = [column for column in labels if column in frame.columns]
        if clashes:
            raise ValueError("Result columns {} clash with the table's columns"
                             .format(clashes))
        for position, column in enumerate(labels):
            frame.insert(position, column, row[column])
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=labels)
    return pd.concat(frames, ignore_index=True)
