####################################################################################################
# neuroprox/split/core.py
# Splitting of large inputs into contiguous subsets for sequential or multi-threaded processing.

import logging, warnings, pimms
import numpy as np

from ..util import (config, cpu_count, is_count, to_flag)

class SplitConfigError(ValueError):
    '''
    SplitConfigError is raised when a split configuration requests both splitting by a number of
    sets and splitting by a number of points per set.
    '''
    pass

class SingleSubsetWarning(UserWarning):
    '''
    SingleSubsetWarning is issued when multiple threads were requested for a split that results in
    a single subset; the split is then processed on a single thread.
    '''
    pass

def _to_int(name, n):
    if not pimms.is_int(n) and pimms.is_real(n) and np.isfinite(n) and float(n) == int(n):
        n = int(n)
    if not pimms.is_int(n) or isinstance(n, (bool, np.bool_)):
        raise ValueError('%s must be an integer' % name)
    return int(n)
def _to_count(name, n):
    return 0 if n is None else max(_to_int(name, n), 0)

@pimms.immutable
class SplitConfig(object):
    '''
    SplitConfig(num_sets=0, num_points=0, threads=None, silent=None) yields an immutable
    configuration for splitting up an input of datapoints into subsets.

    The parameters are:
      * num_sets: split the input into this many sets (0 means no splitting into sets).
      * num_points: split the input into sets of this many datapoints (0 means no splitting).
        Only one of num_sets and num_points may be given; requesting both raises a
        SplitConfigError.
      * threads: the number of threads to process the sets on; None (or any value below 1) uses the
        'split_threads' config item or, if that is unset, the number of logical cores of the host.
      * silent: if True, informational messages and warnings are suppressed (errors are still
        reported); None uses the 'split_silent' config item.
    Negative counts are treated as 0.
    '''
    def __init__(self, num_sets=0, num_points=0, threads=None, silent=None):
        self.num_sets = num_sets
        self.num_points = num_points
        self.threads = threads
        self.silent = silent

    @pimms.option(0)
    def num_sets(n):
        '''
        splitcfg.num_sets is the number of sets the input should be split into (0 = unset).
        '''
        return _to_count('num_sets', n)
    @pimms.option(0)
    def num_points(n):
        '''
        splitcfg.num_points is the number of datapoints per set (0 = unset).
        '''
        return _to_count('num_points', n)
    @pimms.option(None)
    def threads(t):
        '''
        splitcfg.threads is the number of threads that sets are processed on; always at least 1.
        '''
        if t is not None:
            t = _to_int('threads', t)
            if t >= 1: return t
        t = config['split_threads']
        return cpu_count() if t is None else t
    @pimms.option(None)
    def silent(s):
        '''
        splitcfg.silent is True if informational messages should be suppressed; yes/no strings
        are understood.
        '''
        return to_flag(config['split_silent'] if s is None else s)
    @pimms.require
    def validate_split_mode(num_sets, num_points):
        '''
        Only one of num_sets and num_points may be set.
        '''
        if num_sets > 0 and num_points > 0:
            raise SplitConfigError('only one of the two split methods may be selected: either'
                                   ' split into a number of sets (num_sets) or split by the'
                                   ' number of datapoints per set (num_points)')
        return True

    @pimms.value
    def split_by(num_sets, num_points):
        '''
        splitcfg.split_by is 'points' if the config splits by num_points, 'sets' if it splits by
        num_sets, and None if no splitting was requested.
        '''
        return 'points' if num_points > 0 else 'sets' if num_sets > 0 else None
    def __repr__(self):
        return 'SplitConfig(num_sets=%d, num_points=%d, threads=%d, silent=%s)' % (
            self.num_sets, self.num_points, self.threads, self.silent)

def is_split_config(obj):
    '''
    is_split_config(obj) yields True if obj is a SplitConfig object and False otherwise.
    '''
    return isinstance(obj, SplitConfig)
def to_split_config(*args, **kw):
    '''
    to_split_config(cfg) yields cfg if cfg is a SplitConfig object.
    to_split_config(None) and to_split_config() yield a default SplitConfig.
    to_split_config(mapping) yields a SplitConfig built from the keys 'num_sets', 'num_points',
      'threads', and 'silent' of the given mapping; the camel-case names 'numSets' and 'numPoints'
      are also understood, as are 'yes'/'no' strings for silent.
    to_split_config(..., key=value...) merges the given keywords into the configuration.

    Raises a SplitConfigError if the resulting configuration requests both split modes and a
    ValueError if the argument cannot be interpreted.
    '''
    if len(args) > 1: raise ValueError('to_split_config accepts at most one positional argument')
    arg = args[0] if len(args) == 1 else None
    if is_split_config(arg): items = list(kw.items())
    elif arg is None:        items = list(kw.items())
    elif pimms.is_map(arg):  items = list(arg.items()) + list(kw.items())
    else: raise ValueError('cannot interpret %s as a split configuration' % (type(arg).__name__,))
    aliases = {'numSets': 'num_sets', 'numPoints': 'num_points'}
    dat = {}
    for (k,v) in items:
        k = aliases.get(k, k)
        if k not in ('num_sets', 'num_points', 'threads', 'silent'):
            raise ValueError('unrecognized split configuration key: %s' % (k,))
        dat[k] = v
    if is_split_config(arg): return arg if len(dat) == 0 else arg.copy(**dat)
    return SplitConfig(**dat)

@pimms.immutable
class SplitPlan(object):
    '''
    SplitPlan(total, config) yields the partitioning of total datapoints according to the given
    SplitConfig; it is the object returned by prepare_split().

    The plan's ranges member is a read-only (num_sets x 2) integer array whose rows are the
    half-open index ranges [start, stop) of each subset. The ranges are contiguous, ascending, and
    cover the range [0, total) exactly once; only the last range may be shorter than set_size.
    The plan's config member is the effective configuration: its threads value is 1 whenever the
    plan contains fewer than two subsets.
    '''
    def __init__(self, total, config):
        self.total = total
        self.requested_config = config

    @pimms.param
    def total(t):
        '''
        plan.total is the total number of datapoints being split.
        '''
        if not is_count(t): raise ValueError('total must be a non-negative integer')
        return int(t)
    @pimms.param
    def requested_config(cfg):
        '''
        plan.requested_config is the SplitConfig the plan was requested with.
        '''
        return to_split_config(cfg)

    @pimms.value
    def set_size(total, requested_config):
        '''
        plan.set_size is the number of datapoints in each subset (the last subset may be smaller).
        '''
        if total == 0: return 0
        cfg = requested_config
        if cfg.num_points > 0: return cfg.num_points
        elif cfg.num_sets > 0: return -(-total // cfg.num_sets)
        else:                  return total
    @pimms.value
    def num_sets(total, set_size):
        '''
        plan.num_sets is the number of subsets the datapoints have been split into.
        '''
        return 0 if total == 0 else -(-total // set_size)
    @pimms.value
    def ranges(total, set_size, num_sets):
        '''
        plan.ranges is a read-only (num_sets x 2) array of the [start, stop) index ranges.
        '''
        starts = np.arange(num_sets, dtype=np.int64) * set_size
        stops = np.minimum(starts + set_size, total)
        return pimms.imm_array(np.transpose([starts, stops]).reshape((num_sets, 2)))
    @pimms.value
    def config(requested_config, num_sets):
        '''
        plan.config is the effective SplitConfig; threads is forced to 1 for fewer than 2 subsets.
        '''
        if num_sets > 1 or requested_config.threads == 1: return requested_config
        return requested_config.copy(threads=1)
    @pimms.value
    def threads(config):
        '''
        plan.threads is the effective number of threads the plan should be processed on.
        '''
        return config.threads
    @pimms.value
    def silent(config):
        '''
        plan.silent is True if the plan's informational messages are suppressed.
        '''
        return config.silent
    def __len__(self):
        return self.num_sets
    def __iter__(self):
        return iter([tuple(int(k) for k in r) for r in self.ranges])
    def __repr__(self):
        return 'SplitPlan(<%d datapoints>, <%d sets of %d>, <%d threads>)' % (
            self.total, self.num_sets, self.set_size, self.threads)

def prepare_split(total, config=None, **kw):
    '''
    prepare_split(total, config) partitions total datapoints into contiguous subsets according to
      the given split configuration and yields a SplitPlan object. The config may be a SplitConfig
      object, a mapping, or None; additional keywords are merged into the config (see
      to_split_config).

    Splitting by number of points (num_points) yields ceil(total / num_points) sets of num_points
    datapoints; splitting by number of sets (num_sets) yields sets of ceil(total / num_sets)
    datapoints, dropping sets that would be empty; if neither is given, a single set is used.
    When the split results in a single set, the plan's effective thread count is 1 and, if
    more threads had been requested, a SingleSubsetWarning is issued (unless silent).

    Raises a SplitConfigError if both num_sets and num_points are requested.
    '''
    plan = SplitPlan(total, to_split_config(config, **kw))
    if not plan.silent:
        logging.info('neuroprox: Processing %d datapoints, split into %d sets with a setsize of'
                     ' %d datapoints', plan.total, plan.num_sets, plan.set_size)
        if plan.num_sets == 1 and plan.requested_config.threads > 1:
            warnings.warn('Split resulted in just one single subset; reverting to single thread'
                          ' processing', SingleSubsetWarning, stacklevel=2)
    return plan
