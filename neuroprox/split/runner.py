####################################################################################################
# neuroprox/split/runner.py
# Running a per-range processing function over a split input and merging the partial results.

import logging, threading, time, pimms
import pyrsistent as pyr
from concurrent.futures import wait

from .core import (prepare_split, SplitConfigError)
from .pool import shared_pool

@pimms.immutable
class SplitResult(object):
    '''
    SplitResult(items, plan) yields the merged result of a split run: items is a persistent vector
    with one entry per datapoint, in the original datapoint order.

    If the split configuration was invalid, the result has success == False and no items; callers
    must check result.success before relying on the items.
    '''
    def __init__(self, items, plan=None, success=True, elapsed=0.0):
        self.items = items
        self.plan = plan
        self.success = success
        self.elapsed = elapsed

    @pimms.param
    def items(its):
        '''
        result.items is the persistent vector of merged per-datapoint results.
        '''
        return its if isinstance(its, pyr.PVector) else pyr.pvector(its)
    @pimms.option(None)
    def plan(p):
        '''
        result.plan is the SplitPlan the result was computed with (None on failure).
        '''
        return p
    @pimms.option(True)
    def success(s):
        '''
        result.success is True if the split run was performed and False otherwise.
        '''
        return bool(s)
    @pimms.option(0.0)
    def elapsed(t):
        '''
        result.elapsed is the wall time, in seconds, that processing took.
        '''
        return float(t)
    def __len__(self):
        return len(self.items)
    def __iter__(self):
        return iter(self.items)
    def __getitem__(self, k):
        return self.items[k]
    def __repr__(self):
        return 'SplitResult(<%d items>, success=%s)' % (len(self.items), self.success)

def _process_range(processor, start, stop):
    part = list(processor(start, stop))
    if len(part) != stop - start:
        raise ValueError('range processor returned %d results for range [%d, %d)'
                         % (len(part), start, stop))
    return part

# Marks the threads that are currently processing a range on behalf of a worker pool; split runs
# started from such a thread are processed sequentially on it.
_worker_state = threading.local()
def in_pool_worker():
    '''
    in_pool_worker() yields True if the calling thread is processing a split range on a worker
      pool and False otherwise.
    '''
    return getattr(_worker_state, 'active', False)
def _process_pooled_range(processor, start, stop):
    _worker_state.active = True
    try:
        return _process_range(processor, start, stop)
    finally:
        _worker_state.active = False

class SplitRunner(object):
    '''
    SplitRunner(pool) yields an object that runs range-processing functions over split inputs
    using the given WorkerPool for multi-threaded plans. If pool is None, the process-wide
    shared_pool() is used whenever a plan requires more than one thread.

    runner.run(total, config, processor) partitions total datapoints according to the split
    config (see prepare_split) and calls processor(start, stop) for each half-open range of the
    partition; the processor must return a sequence with one entry per datapoint of its range.
    With one thread the ranges are processed in ascending order on the calling thread; otherwise
    each range is one task on the pool. In both cases the partial results are merged back at
    exactly the position of their range, and a SplitResult is returned. A run started by a
    processor that is itself running on a pool worker processes its ranges sequentially on that
    worker, so nested split runs cannot wait on tasks queued behind them.

    An invalid split configuration is reported through logging and yields a SplitResult whose
    success is False. An exception raised while processing any range is re-raised once all ranges
    have settled; no partial result is returned in that case.
    '''
    def __init__(self, pool=None):
        self.pool = pool

    def run(self, total, config, processor, label='datapoints', **kw):
        try:
            plan = prepare_split(total, config, **kw)
        except SplitConfigError as e:
            logging.error('neuroprox: %s', e)
            return SplitResult([], success=False)
        t0 = time.perf_counter()
        ranges = list(plan)
        if plan.threads > 1 and not in_pool_worker():
            pool = self.pool if self.pool is not None else shared_pool()
            futs = pool.submit_all(plan.threads, _process_pooled_range,
                                   [(processor, a, b) for (a,b) in ranges],
                                   silent=plan.silent)
            wait(futs)
            parts = [f.result() for f in futs]
        else:
            parts = [_process_range(processor, a, b) for (a,b) in ranges]
        items = [None] * plan.total
        for ((a,b), part) in zip(ranges, parts):
            items[a:b] = part
        elapsed = time.perf_counter() - t0
        if not plan.silent:
            logging.info('neuroprox: Processed %d %s in %.4f seconds', plan.total, label, elapsed)
        return SplitResult(items, plan=plan, elapsed=elapsed)

def run_split(total, config, processor, pool=None, **kw):
    '''
    run_split(total, config, processor) is equivalent to SplitRunner().run(total, config,
      processor); the optional pool argument is passed to the SplitRunner and any additional
      keywords are passed along to SplitRunner.run.
    '''
    return SplitRunner(pool).run(total, config, processor, **kw)
