"""
Method collections and parameter sweeps.

A *method collection* maps method names to unary functions. Its own
:attr:`MethodCollection.name` becomes the name of the stage column when the
collection is passed to :func:`pipebench.apply_methods`::

    normalization = MethodCollection('normalization')

    @normalization.register
    def z_score(df):
        return (df - df.mean()) / df.std()

    normalization['identity'] = lambda df: df

:func:`fn_arg_seq` creates a collection from a single function by binding
parameter values taken from a grid of candidate values.
"""

import functools
import inspect
import itertools
import logging
from collections import OrderedDict
from collections.abc import Iterable

from .util import BenchmarkError, get_name, label

logger = logging.getLogger(__name__)


class ArgumentError(BenchmarkError, TypeError):
    """
    Raised when parameter values are given for parameters a function does
    not have.
    """
    pass


class MethodCollection(OrderedDict):
    """
    An ordered mapping from method names to single-argument functions.

    Args:
        name (str): The stage name used for the collection's column in a
            benchmark table.
        methods: Initial contents, anything :class:`dict` accepts.
        comment (str): Optional human-readable description.
    """

    def __init__(self, name=None, methods=(), comment=""):
        super().__init__(methods)
        self.name = name
        self.comment = comment

    def register(self, func):
        """
        Registers the given function with this collection, using its name.
        Can be used as a decorator.
        """
        self[get_name(func)] = func
        return func

    def __repr__(self):
        return '{}({!r}, [{}])'.format(type(self).__name__, self.name,
                                       ', '.join(map(repr, self.keys())))


def _check_parameters(base_fn, names):
    try:
        params = inspect.signature(base_fn).parameters
    except (TypeError, ValueError):
        logger.warning("Cannot inspect signature of %s, not checking %s",
                       base_fn, names)
        return
    if any(p.kind == p.VAR_KEYWORD for p in params.values()):
        return
    accepted = {name for name, p in params.items()
                if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)}
    unknown = [name for name in names if name not in accepted]
    if unknown:
        raise ArgumentError("{}() has no parameter(s) {}".format(
            get_name(base_fn), ', '.join(unknown)))


def fn_arg_seq(base_fn, **sequences):
    """
    Creates a method collection that sweeps over parameter values.

    For each combination of values from the given sequences, the result
    contains a :func:`functools.partial` of `base_fn` with the corresponding
    keyword arguments bound. All other parameters stay open and must be
    supplied when calling the function. The first keyword varies slowest.

    Args:
        base_fn (callable): The function to specialize.
        **sequences: parameter name -> sequence of candidate values.

    Returns:
        MethodCollection: label -> specialized function. Labels look like
        ``y_1_z_3``. The collection is named after `base_fn`.

    Raises:
        ArgumentError: if `base_fn` does not have one of the parameters, or
            if no or no iterable sequences are given.

    Example:
        >>> def f(x, y, z): return x + y * z
        >>> fs = fn_arg_seq(f, y=[1, 2], z=[3, 4])
        >>> list(fs)
        ['y_1_z_3', 'y_1_z_4', 'y_2_z_3', 'y_2_z_4']
        >>> fs['y_2_z_4'](1)
        9
    """
    if not sequences:
        raise ArgumentError("fn_arg_seq() needs at least one sequence of "
                            "parameter values")
    _check_parameters(base_fn, sequences)
    for name, values in sequences.items():
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise ArgumentError("Values for {} must be a sequence, not {!r}"
                                .format(name, values))

    names = list(sequences)
    methods = MethodCollection(get_name(base_fn))
    for values in itertools.product(*(list(sequences[name]) for name in names)):
        bound = dict(zip(names, values))
        method = functools.partial(base_fn, **bound)
        functools.update_wrapper(method, base_fn)
        key = '_'.join(name + '_' + label(value) for name, value in bound.items())
        if key in methods:
            raise ArgumentError("Parameter values {} yield the ambiguous label {}"
                                .format(bound, key))
        methods[key] = method
    logger.debug("Created %d variants of %s", len(methods), methods.name)
    return methods
