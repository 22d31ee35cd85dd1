# -*- coding: utf-8 -*-
"""
Configuration for method application and caching.

A :class:`Config` record holds the settings that influence how
:func:`pipebench.apply_methods` evaluates methods and where
:func:`pipebench.cache_method` persists its results. Every operation accepts
an explicit ``config`` argument. If it is omitted, the process-wide default
configuration is used, which can be initialized using :func:`set_cache_root`
and :func:`set_workers` or replaced using :func:`set_config`.

Configuration files use TOML, either with the settings at the top level or in
a ``[pipebench]`` table::

    [pipebench]
    workers = 4
    cache_root = "cache"
"""

import json
import logging
import tomllib
from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULTS = dict(workers=1, backend='loky', cache_root=None, separator='_',
                verbose=0)


class Config(Mapping):
    """
    A configuration record. Settings are simply attributes, and they can be
    used as such.

    Examples:
        >>> c = Config(workers=2)
        >>> c.workers
        2
        >>> Config(c, cache_root='cache').cache_root
        'cache'
    """

    def __init__(self, *args, **kwargs):
        self.__dict__.update(DEFAULTS)
        self.update(*args, **kwargs)

    def __getitem__(self, key):
        return self.__dict__[key]

    def __iter__(self):
        return iter(self.__dict__)

    def __len__(self):
        return len(self.__dict__)

    def update(self, *args, **kwargs):
        """
        Updates this record from the arguments. Arguments may be other
        :class:`Config` instances or mappings, or key-value pairs of settings.

        Raises:
            ValueError: for unknown settings or invalid values
        """
        new = {}
        for arg in args:
            new.update(arg)
        new.update(kwargs)
        unknown = set(new) - set(DEFAULTS)
        if unknown:
            raise ValueError('Unknown configuration setting(s): {}'
                             .format(', '.join(sorted(unknown))))
        if 'workers' in new:
            workers = new['workers']
            if isinstance(workers, bool) or not isinstance(workers, int) \
                    or not (workers >= 1 or workers == -1):
                raise ValueError('workers must be a positive integer or -1, '
                                 'not {!r}'.format(workers))
        self.__dict__.update(new)

    @classmethod
    def load(cls, filename):
        """
        Loads a configuration from the given TOML file.

        Args:
            filename (str): path to the file
        Returns:
            Config: defaults, updated from the file's settings
        """
        with open(filename, 'rb') as f:
            data = tomllib.load(f)
        if isinstance(data.get('pipebench'), dict):
            data = data['pipebench']
        logger.info('Loaded configuration from %s: %s', filename, data)
        return cls(data)

    @property
    def parallel(self):
        """``True`` if methods should be evaluated by more than one worker."""
        return self.workers != 1

    def __repr__(self):
        return type(self).__name__ + '(' + \
                ', '.join(str(key) + '=' + repr(self.__dict__[key])
                        for key in sorted(self.__dict__.keys())) + ')'

    def to_json(self, **kwargs):
        """
        Returns a JSON string containing this record's contents.

        Args:
            **kwargs: Arguments passed to :func:`json.dumps`
        """
        return json.dumps(self.__dict__, default=str, **kwargs)


_config = Config()


def get_config(config=None):
    """
    Returns `config` if given, the process-wide default configuration
    otherwise.
    """
    return _config if config is None else config


def set_config(config=None):
    """
    Replaces the process-wide default configuration. ``None`` resets it to
    the defaults.
    """
    global _config
    _config = Config() if config is None else Config(config)
    return _config


def set_cache_root(path):
    """
    Sets the cache root of the process-wide default configuration.

    There is no cache root until this has been called (or a configuration
    with a cache root has been passed to :func:`set_config`).
    """
    _config.update(cache_root=path)
    logger.info('Cache root set to %s', path)


def set_workers(workers):
    """Sets the number of parallel workers of the default configuration."""
    _config.update(workers=workers)
