# -*- coding: utf-8 -*-

"""
pipebench library
-----------------

Benchmark tables for applying combinations of analysis methods to datasets
"""

__title__ = 'pipebench'
__version__ = '0.1.0'
__author__ = 'pipebench developers'

from warnings import warn

from pipebench.util import BenchmarkError
from pipebench.config import Config, get_config, set_config, \
        set_cache_root, set_workers
from pipebench.functions import MethodCollection, ArgumentError, fn_arg_seq
from pipebench.table import BenchmarkTable, benchmark_table, apply_methods, \
        as_table, concat, collapse, unnest_results, ApplicationError, \
        SchemaMismatchError, DuplicateStageError, DATA, RESULT, PIPELINE
from pipebench.cache import CachedMethod, cache_method, clear_cache

__all__ = ['BenchmarkError', 'Config', 'get_config', 'set_config',
           'set_cache_root', 'set_workers',
           'MethodCollection', 'ArgumentError', 'fn_arg_seq',
           'BenchmarkTable', 'benchmark_table', 'apply_methods', 'as_table', 'concat',
           'collapse', 'unnest_results', 'ApplicationError',
           'SchemaMismatchError', 'DuplicateStageError',
           'DATA', 'RESULT', 'PIPELINE',
           'CachedMethod', 'cache_method', 'clear_cache']

try:
        from pipebench.graphics import PipelinePlot
        __all__.append('PipelinePlot')
except ImportError:
        warn("PipelinePlot not available, matplotlib missing")
