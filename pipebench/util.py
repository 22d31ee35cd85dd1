# -*- coding: utf-8 -*-
"""
Contains utility classes and functions.
"""

import functools
import inspect

import joblib
import regex as re

LABEL_JUNK = re.compile(r'[^\p{L}\p{N}.\-]+')


class BenchmarkError(Exception):
    """
    Base class for all errors raised by pipebench.
    """
    pass


def get_name(f):
    """
    Returns a readable name for the callable `f`.

    >>> get_name(len)
    'len'
    >>> import functools
    >>> get_name(functools.partial(max, default=0))
    'max'
    """
    try:
        return f.__name__
    except AttributeError:
        if isinstance(f, functools.partial):
            return get_name(f.func)
        return type(f).__name__


def function_identity(f, _seen=()):
    """
    Returns a string that identifies the callable `f` across processes.

    This is module and qualified name of the function. For
    :func:`functools.partial` objects, the bound arguments are part of the
    identity, so two specializations of the same base function are
    different functions.

    Lambdas and functions defined inside other functions cannot be told apart
    by name, so their identity also contains a hash of their code, defaults
    and closure variables. For module-level functions, the code is *not* part
    of the identity.

    Raises:
        ValueError: if the closure of a local function cannot be hashed
    """
    if isinstance(f, functools.partial):
        bound = ', '.join([repr(arg) for arg in f.args] +
                          ['{}={!r}'.format(key, value)
                           for key, value in sorted(f.keywords.items())])
        return '{}({})'.format(function_identity(f.func, _seen), bound)
    module = getattr(f, '__module__', None) or type(f).__module__
    name = getattr(f, '__qualname__', None) or get_name(f)
    if '<' in name and hasattr(f, '__code__') and f not in _seen:
        name += '#' + _local_fingerprint(f, _seen + (f,))
    return module + '.' + name


def _code_fingerprint(code):
    consts = tuple(_code_fingerprint(c) if inspect.iscode(c) else c
                   for c in code.co_consts)
    return (code.co_code, code.co_names, consts)


def _cell_value(cell, seen):
    try:
        value = cell.cell_contents
    except ValueError:    # empty cell
        return None
    if callable(value) and not isinstance(value, type):
        return function_identity(value, seen)
    return value


def _local_fingerprint(f, seen):
    closure = tuple(_cell_value(cell, seen) for cell in (f.__closure__ or ()))
    try:
        return joblib.hash((_code_fingerprint(f.__code__), f.__defaults__,
                            f.__kwdefaults__, closure))
    except Exception as error:
        raise ValueError("Cannot identify {}: its defaults or closure variables "
                         "cannot be hashed".format(f.__qualname__)) from error


def label(value):
    """
    Converts a value to a string usable as part of a method label.

    Runs of characters that are neither letters, digits, dots nor dashes
    are replaced by a single ``-``.

    >>> label(3)
    '3'
    >>> label('a b')
    'a-b'
    >>> label(0.5)
    '0.5'
    """
    return LABEL_JUNK.sub('-', str(value))
