####################################################################################################
# neuroprox/split/pool.py
# The worker pool on which split subsets are processed.

import atexit, logging, threading
from concurrent.futures import ThreadPoolExecutor

class WorkerPool(object):
    '''
    WorkerPool() yields a lazily-created pool of worker threads of a fixed size.

    The pool does not start any threads until ensure_size(n) is called; ensure_size(n) reuses the
    running executor when it already has exactly n workers and otherwise shuts the running executor
    down (waiting for its queued work) and starts a new one with n workers. All lifecycle
    operations are serialized by a lock. Note that callers sharing a pool while requesting
    different sizes will cause the executor to be recreated on each change of size.
    '''
    def __init__(self, name='neuroprox'):
        self.name = name
        self._lock = threading.RLock()
        self._executor = None
        self._size = None

    def current_size(self):
        '''
        pool.current_size() yields the number of workers of the running executor or None if no
        executor is running.
        '''
        with self._lock:
            return self._size
    def ensure_size(self, n, silent=False):
        '''
        pool.ensure_size(n) makes sure that the pool is running with exactly n workers and yields
        the underlying concurrent.futures executor.
        '''
        n = int(n)
        if n < 1: raise ValueError('a worker pool requires at least 1 worker')
        with self._lock:
            if self._executor is not None and self._size == n: return self._executor
            if not silent:
                logging.info('neuroprox: No pool found or pool does not have the required number'
                             ' of workers (%d); starting a new pool', n)
            self._shutdown()
            self._executor = ThreadPoolExecutor(max_workers=n, thread_name_prefix=self.name)
            self._size = n
            return self._executor
    def submit_all(self, n, fn, arg_lists, silent=False):
        '''
        pool.submit_all(n, fn, arg_lists) ensures that the pool runs with n workers then submits
        fn(*args) for each args in arg_lists and yields the list of futures, in order. The size
        check and the submissions happen under the pool's lock, so another caller cannot resize
        the pool in between.
        '''
        with self._lock:
            ex = self.ensure_size(n, silent=silent)
            return [ex.submit(fn, *args) for args in arg_lists]
    def _shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        self._executor = None
        self._size = None
    def shutdown(self):
        '''
        pool.shutdown() stops the running executor, if any, after its queued work has finished.
        Calling shutdown on a pool that is not running does nothing.
        '''
        with self._lock:
            self._shutdown()
    def __enter__(self):
        return self
    def __exit__(self, *args):
        self.shutdown()
        return False
    def __repr__(self):
        return 'WorkerPool(%r, <%s workers>)' % (self.name, self._size)

_shared_pool = None
_shared_pool_lock = threading.Lock()
def shared_pool():
    '''
    shared_pool() yields the process-wide WorkerPool that split processing uses when no pool is
      given explicitly. The pool is created on first use and shut down at interpreter exit.
    '''
    global _shared_pool
    with _shared_pool_lock:
        if _shared_pool is None:
            _shared_pool = WorkerPool()
            atexit.register(_shared_pool.shutdown)
        return _shared_pool
