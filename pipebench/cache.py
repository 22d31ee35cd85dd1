# -*- coding: utf-8 -*-
"""
Disk-backed memoisation for expensive methods.

:func:`cache_method` wraps a single-argument function so that its results are
persisted to files below a cache root directory. A call with an argument
that is equal to one seen before (by content, as determined by
:func:`joblib.hash`, not by identity) loads the stored result instead of
calling the function again.

Each entry is one file, ``<cache root>/<function name>/<key>.pkl``, where the
key is a hash of the function's identity (module, qualified name, and
arguments bound using :func:`functools.partial`) and the argument.

Warning:
    Please be aware of the following properties:

    * The *code* of a module-level function is not part of the key. If you
      change what such a function does, call :func:`clear_cache` or results
      computed by the old version will be returned. Lambdas and other local
      functions are told apart by a hash of their code and closure variables.
    * Non-deterministic functions (e.g., those using random numbers) will
      return the same value on each call once a result has been cached.
    * There is no locking. Entries are written to a temporary file first and
      then renamed, so concurrent writers of the same entry don't leave a
      corrupted file, but both will compute the result.
"""

import logging
import os
import tempfile
from functools import update_wrapper

import joblib
import regex as re

from .config import get_config
from .util import function_identity, get_name, label

logger = logging.getLogger(__name__)

SUFFIX = '.pkl'
TMP_SUFFIX = '.tmp'
ENTRY_PATTERN = re.compile(r'^[0-9a-f]{32}' + re.escape(SUFFIX) + '$')
TMP_PATTERN = re.compile(r'^tmp\w+' + re.escape(TMP_SUFFIX) + '$')


class CachedMethod:
    """
    A single-argument function whose results are cached on disk.

    Use :func:`cache_method` to create instances.

    Attributes:
        func: the wrapped function
        cache_root (str): the directory below which the entries are stored
        identity (str): the function's part of the cache keys
    """

    def __init__(self, func, cache_root):
        self.func = func
        self.cache_root = os.fspath(cache_root)
        self.identity = function_identity(func)
        update_wrapper(self, func)

    @property
    def directory(self):
        """The directory containing this function's entries."""
        return os.path.join(self.cache_root, label(get_name(self.func)))

    def key(self, arg):
        """Returns the cache key for calling this function with `arg`."""
        return joblib.hash((self.identity, arg))

    def filename(self, arg):
        return os.path.join(self.directory, self.key(arg) + SUFFIX)

    def __call__(self, arg):
        filename = self.filename(arg)
        if os.path.exists(filename):
            logger.debug("Loading cached result of %s from %s",
                         self.identity, filename)
            return joblib.load(filename)

        logger.debug("Cache miss for %s, computing %s", self.identity, filename)
        result = self.func(arg)
        self._store(filename, result)
        return result

    def _store(self, filename, result):
        os.makedirs(self.directory, exist_ok=True)
        fd, tmpname = tempfile.mkstemp(suffix=TMP_SUFFIX, dir=self.directory)
        os.close(fd)
        try:
            joblib.dump(result, tmpname)
            os.replace(tmpname, filename)
        except BaseException:
            os.unlink(tmpname)
            raise

    def clear(self):
        """
        Removes all cached results of this function.

        Returns:
            int: number of removed entries
        """
        return _remove_entries(self.directory)

    def __repr__(self):
        return '{}({}, cache_root={!r})'.format(type(self).__name__,
                                               self.identity, self.cache_root)


def cache_method(fn, cache_root=None, config=None):
    """
    Wraps a single-argument function with a disk cache.

    Args:
        fn (callable): The function to cache. Results must be picklable.
        cache_root (str): Directory to store the results in. Defaults to the
            configured ``cache_root`` (see
            :func:`pipebench.config.set_cache_root`).
        config (Config): The configuration to use instead of the
            process-wide default.

    Returns:
        CachedMethod: A callable that behaves like `fn`, but reads the
        results of previously seen arguments from disk.

    Raises:
        ValueError: if no cache root has been given or configured
    """
    if cache_root is None:
        cache_root = get_config(config).cache_root
    if cache_root is None:
        raise ValueError("No cache root configured. Pass cache_root or call "
                         "pipebench.set_cache_root() first.")
    if isinstance(fn, CachedMethod):
        fn = fn.func
    return CachedMethod(fn, cache_root)


def _remove_entries(directory):
    """
    Removes entry files and leftover temporary files from a function's
    directory, and the directory itself if nothing else is left in it.
    """
    if not os.path.isdir(directory):
        return 0
    count = 0
    for entry in os.scandir(directory):
        if not entry.is_file(follow_symlinks=False):
            continue
        if ENTRY_PATTERN.match(entry.name):
            os.unlink(entry.path)
            count += 1
        elif TMP_PATTERN.match(entry.name):
            os.unlink(entry.path)
    if not os.listdir(directory):
        os.rmdir(directory)
    return count


def clear_cache(cache_root=None, config=None):
    """
    Deletes all entries below the cache root.

    Only cache entries (and temporary files of interrupted writes) are
    removed. Other files below the cache root are left alone, and so are the
    directories containing them.

    Does nothing if no cache root is given or configured, or if it does not
    exist.

    Returns:
        int: number of deleted entries
    """
    if cache_root is None:
        cache_root = get_config(config).cache_root
    if cache_root is None or not os.path.isdir(cache_root):
        logger.debug("No cache at %s, nothing to clear", cache_root)
        return 0
    count = 0
    for entry in os.scandir(cache_root):
        if entry.is_dir(follow_symlinks=False):
            count += _remove_entries(entry.path)
    logger.info("Removed %d cached results from %s", count, cache_root)
    return count
