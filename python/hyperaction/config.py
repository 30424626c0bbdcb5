"""
Utilities for loading configuration data and setting up logging.

Configuration is a nested dictionary, typically read from a YAML or JSON file.  The logging
set-up reads the following parameters from it:

``logfile``
    the name of the file to write log messages to.  A relative path is taken to be relative to
    ``logdir``.
``logdir``
    the directory for log files (default: the current directory)
``loglevel``
    the minimum level of messages to record (a level name or number; default: ``INFO``)
``logformat``
    the :py:class:`logging.Formatter` format for messages
"""
import os, sys, json, logging
from collections.abc import Mapping
from copy import deepcopy
from urllib.parse import urlparse

import yaml

from .exceptions import ConfigurationException
from . import system_abbrev

__all__ = [ "load_from_file", "resolve_configuration", "merge_config", "configure_log",
            "ConfigurationException", "DEF_LOG_FORMAT" ]

DEF_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
global_logdir = None
global_logfile = None
_log_handler = None
_stderr_handler = None

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file and return it as a dictionary.  The file is parsed
    as JSON if its name ends in ".json" and as YAML otherwise.
    :raises ConfigurationException:  if the file can not be read or parsed
    """
    try:
        with open(configfile) as fd:
            if configfile.endswith('.json'):
                out = json.load(fd)
            else:
                out = yaml.safe_load(fd)
    except (OSError, ValueError, yaml.YAMLError) as ex:
        raise ConfigurationException("%s: unable to load configuration: %s" % (configfile, str(ex)))

    if out is None:
        out = {}
    if not isinstance(out, Mapping):
        raise ConfigurationException("%s: configuration data is not an object" % configfile)
    return out

def resolve_configuration(location: str) -> Mapping:
    """
    load the configuration from a location given either as a file path or as a ``file:`` URL
    """
    url = urlparse(location)
    if url.scheme == 'file':
        return load_from_file(url.path)
    if url.scheme and len(url.scheme) > 1:
        raise ConfigurationException("Unsupported configuration location: " + location)
    return load_from_file(location)

def merge_config(override: Mapping, defconf: Mapping) -> Mapping:
    """
    return a new configuration in which the values in `override` are merged onto those in
    `defconf`.  Nested dictionaries are merged recursively; all other values in `override`
    replace those in `defconf`.
    """
    out = deepcopy(defconf) if defconf else {}
    for key, val in (override or {}).items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def _level(value) -> int:
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    lev = logging.getLevelName(str(value).upper())
    if not isinstance(lev, int):
        raise ConfigurationException("loglevel: unrecognized log level: " + str(value))
    return lev

def configure_log(logfile: str=None, level=None, format: str=None, config: Mapping=None,
                  addstderr: bool=False) -> logging.Logger:
    """
    set up logging to a file for the hyperaction system.  Explicit arguments take precedence over
    the values in `config`.
    :param str logfile:   the file to write messages to
    :param level:         the minimum level of messages to record
    :param str format:    the format for messages
    :param dict config:   a configuration dictionary (see module documentation)
    :param bool addstderr:  if True, also send messages to standard error
    :return:  the root Logger of the hyperaction system
    """
    global global_logdir, global_logfile, _log_handler, _stderr_handler
    if config is None:
        config = {}
    if not logfile:
        logfile = config.get('logfile', system_abbrev + ".log")
    level = _level(level if level is not None else config.get('loglevel'))
    if not format:
        format = config.get('logformat', DEF_LOG_FORMAT)

    if not os.path.isabs(logfile):
        global_logdir = config.get('logdir', global_logdir or os.getcwd())
        logfile = os.path.join(global_logdir, logfile)
    else:
        global_logdir = os.path.dirname(logfile)
    global_logfile = logfile

    root = logging.getLogger()
    root.setLevel(min(level, root.level) if root.level else level)
    if _log_handler:
        root.removeHandler(_log_handler)
        _log_handler.close()
    _log_handler = logging.FileHandler(logfile)
    _log_handler.setLevel(level)
    _log_handler.setFormatter(logging.Formatter(format))
    root.addHandler(_log_handler)

    if _stderr_handler:
        root.removeHandler(_stderr_handler)
        _stderr_handler = None
    if addstderr:
        _stderr_handler = logging.StreamHandler(sys.stderr)
        _stderr_handler.setLevel(level)
        _stderr_handler.setFormatter(logging.Formatter(format))
        root.addHandler(_stderr_handler)

    log = logging.getLogger(system_abbrev)
    log.info("logging configured to %s", logfile)
    return log
