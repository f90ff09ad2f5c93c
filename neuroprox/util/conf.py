# -*- coding: utf-8 -*-
####################################################################################################
# neuroprox/util/conf.py
# Contains configuration code for setting up the environment.

import os, json, warnings, pimms

def loadrc(filename):
    """Loads a JSON-format file with the given filename or raises an error.

    `loadrc(filename)` returns a dict object decoded from the given `filename`,
    which must represent a JSON-format file. If the filename does not exist or
    does not contain a valid JSON dict, then an error is raised.

    Parameters
    ----------
    filename : str
        The name of the file to be loaded; may include variable and user
        expansion codes.

    Returns
    -------
    dict
        A dictionary of the JSON contents of the file.

    Raises
    ------
    ValueError
        If the given `filename` does not exist or does not contain a JSON dict.
    """
    filename = os.path.expanduser(os.path.expandvars(filename))
    if not os.path.isfile(filename): raise ValueError('Filename %s does not exist' % filename)
    with open(filename, 'r') as fl:
        dat = json.load(fl)
    if not isinstance(dat, dict):
        raise ValueError('Given file %s does not contain a dictionary' % filename)
    return dat
def saverc(filename, dat, overwrite=False):
    """Saves the given configuration object to a file in JSON format.

    `saverc(filename, dat)` saves the given configuration dictionary `dat` to
    the given `filename` in JSON format. If `dat` is not a dictionary or if
    `filename` already exists or cannot be created, an error is raised. This
    function does not create directories.

    Parameters
    ----------
    filename : str
        The path to the file that should be saved; may contain user or variable
        expansion codes.
    dat : JSON-compatible dict
        The configuration dictionary that is to be saved.
    overwrite : boolean, optional
        Whether to overwrite the file if it already exists (default: `False`).

    Returns
    -------
    str
        The full path of the file that was saved.

    Raises
    ------
    ValueError
        If the given `filename` already exists and `overwrite` is `False` or if
        the `dat` object is not a JSON-compatible dictionary.
    """
    filename = os.path.expanduser(os.path.expandvars(filename))
    if not overwrite and os.path.isfile(filename):
        raise ValueError('Given filename %s already exists' % filename)
    if not pimms.is_map(dat):
        try: dat = dict(dat)
        except Exception: raise ValueError('Given config data must be a dictionary')
    with open(filename, 'w') as fl:
        json.dump(dict(dat), fl, sort_keys=True)
    return filename

# the private class that handles all the details...
class ConfigMeta(type):
    def __getitem__(cls, name):
        return cls._getitem(cls, name)
    def __setitem__(cls, name, val):
        return cls._setitem(cls, name, val)
    def __len__(cls):
        return cls._len(cls)
    def __iter__(cls):
        return cls._iter(cls)
    def __repr__(cls):
        return 'config(' + repr({k:cls[k] for k in cls.keys()}) + ')'

class config(object, metaclass=ConfigMeta):
    """Configuration dictionary class for neuroprox.

    `neuroprox.util.conf.config` is a class that manages configuration items
    for neuroprox and the interfaces for those items. This class reads in the
    user's neuroprox-rc file on first access, which by default is in the user's
    home directory named `"~/.nproxrc"` (though it may be altered by setting
    the environment variable `NPROXRC`). Environment variables that are
    associated with configurable variables always override the values in the RC
    file, and any direct set action overrides any previous value.

    To declare a configurable variable in neuroprox, use `config.declare()`.
    """
    _rc = None
    @staticmethod
    def rc():
        """Returns the data imported from the neuroprox RC file, if any.

        Returns
        -------
        dict
            A dictionary object of the loaded RC data; if nothing could be
            loaded, the dictionary only contains bookkeeping entries.
        """
        if config._rc is None:
            nproxrc_path = os.path.expanduser('~/.nproxrc')
            if 'NPROXRC' in os.environ:
                nproxrc_path = os.path.expanduser(os.path.expandvars(os.environ['NPROXRC']))
            if os.path.isfile(nproxrc_path):
                try:
                    config._rc = loadrc(nproxrc_path)
                    config._rc['nproxrc_loaded'] = True
                except Exception as err:
                    warnings.warn('Could not load neuroprox RC file: %s' % nproxrc_path)
                    config._rc = {'nproxrc_loaded': False,
                                  'nproxrc_error': err}
            else:
                config._rc = {'nproxrc_loaded': False}
            config._rc['nproxrc'] = nproxrc_path
        return config._rc
    _vars = {}
    @staticmethod
    def declare(name, rc_name=None, environ_name=None, filter=None, merge=None, default_value=None):
        """Registers a neuroprox configuration variable with the given name.

        `config.declare(name)` registers a configurable variable with the given
        name to the neuroprox configuration system. This allows the variable to
        be looked up in the neuroprox RC-file and the neuroprox environment
        variables.

        By default, the variable will be assumed to have the identical name in
        the RC-file and the environment variable `'NPROX_' + name.upper()` is
        searched for in the environment. The environment variable always
        overwrites the RC-file value if both are provided. Inputs from the
        environment are parsed as JSON where possible.

        Parameters
        ----------
        name : str
            The name for the configuration variable that should be used to look
            up its value in the `config` dict.
        rc_name : str or None, optional
            The name that should be used in the RC file for the variable. The
            default value (`None`) indicates that `name.lower()` should be
            used.
        environ_name : str or None, optional
            The name of the environment variable that should represent the
            configuration variable. The default value (`None`) indicates that
            the environment name should be `'NPROX_' + name.upper()`.
        filter : function or None
            A function `f` that is passed the provided or loaded value of the
            configuration variable whenever the variable is changed; the new
            value that is then applied to the variable is `f(x)` instead of `x`.
        merge : function or None
            A function `f` such that `f(rc_value, environ_value)` returns the
            value that should be used when both sources define the variable. If
            `None` (the default), the environment value wins.
        default_value : object
            The default value that the configuration item should take if not
            provided in either the RC-file or the environment, or if the filter
            rejects the provided value.

        Raises
        ------
        ValueError
            If multiple configuration items with the same name are declared.
        """
        if rc_name is None: rc_name = name.lower()
        if environ_name is None: environ_name = 'NPROX_' + name.upper()
        if name in config._vars: raise ValueError('Multiple config items declared for %s' % name)
        if merge is False: merge = None
        config._vars[name] = (rc_name, environ_name, filter, default_value, merge)
        return True
    _vals = {}
    @staticmethod
    def _getitem(self, name):
        if name not in config._vars: raise KeyError(name)
        if name not in config._vals:
            (rcname, envname, fltfn, dval, merge) = config._vars[name]
            val = dval
            rcdat = config.rc()
            if envname in os.environ:
                val = os.environ[envname]
                try: val = json.loads(val)
                except ValueError: pass # it's a string if it can't be json'ed
                if merge is not None and rcname in rcdat: val = merge(rcdat[rcname], val)
            elif rcname in rcdat: val = rcdat[rcname]
            if fltfn is not None:
                try: val = fltfn(val)
                except Exception:
                    warnings.warn('Invalid value for config item %s; using default' % name)
                    val = dval
            config._vals[name] = val
        return config._vals[name]
    @staticmethod
    def _setitem(self, name, val):
        if name not in config._vars:
            raise ValueError('Configurable neuroprox key "%s" not declared' % name)
        (rcname, envname, fltfn, dval, merge) = config._vars[name]
        config._vals[name] = val if fltfn is None else fltfn(val)
    @staticmethod
    def _iter(self): return iter(config._vars.keys())
    @staticmethod
    def _len(self): return len(config._vars)
    @staticmethod
    def keys(): return config._vars.keys()
    @staticmethod
    def values(): return map(lambda k:config[k], config.keys())
    @staticmethod
    def items(): return map(lambda k:(k,config[k]), config.keys())
    @staticmethod
    def todict(): return {k:config[k] for k in config.keys()}
    @staticmethod
    def reset(name=None):
        """Forgets cached configuration values so that they are reloaded on next access.

        `config.reset()` clears all cached values and the cached RC-file data;
        `config.reset(name)` clears only the value of the given item.
        """
        if name is None:
            config._vals.clear()
            config._rc = None
        else:
            config._vals.pop(name, None)

# Filters for the items declared below #############################################################
def to_thread_count(n):
    """Converts a config value into a thread count or `None` (meaning the core count).

    Raises
    ------
    ValueError
        If the value cannot be interpreted as an integer.
    """
    if n is None: return None
    if pimms.is_str(n): n = n.strip()
    n = int(n)
    return None if n < 1 else n
def to_flag(b):
    """Converts a config value (bool, number or yes/no string) into a boolean."""
    if pimms.is_str(b):
        s = b.strip().lower()
        if s in ('yes', 'y', 'true', 't', 'on', '1'):  return True
        if s in ('no', 'n', 'false', 'f', 'off', '0', ''): return False
        raise ValueError('Could not interpret flag value: %s' % b)
    return bool(b)
radial_methods = ('kdtree', 'brute')
def to_radial_method(m):
    """Converts a config value into one of the supported radial-query methods."""
    if m is None: return 'kdtree'
    if not pimms.is_str(m): raise ValueError('radial method must be a string')
    m = m.strip().lower()
    if m not in radial_methods:
        raise ValueError('radial method must be one of %s' % (radial_methods,))
    return m

config.declare('split_threads',     filter=to_thread_count,  default_value=None)
config.declare('split_silent',      filter=to_flag,          default_value=False)
config.declare('radial_method',     filter=to_radial_method, default_value='kdtree')
config.declare('use_pre_exclusion', filter=to_flag,          default_value=True)
