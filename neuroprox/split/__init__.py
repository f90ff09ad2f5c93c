####################################################################################################
# neuroprox/split/__init__.py
# Splitting large inputs into subsets and processing them sequentially or on a pool of threads.

'''
The neuroprox.split package contains the split-processing scheduler: prepare_split() partitions a
number of datapoints into contiguous ranges according to a SplitConfig, and SplitRunner (or
run_split()) processes those ranges either sequentially or on a WorkerPool, merging the partial
results back in the original order.
'''

from .core   import (SplitConfig, SplitPlan, SplitConfigError, SingleSubsetWarning,
                     is_split_config, to_split_config, prepare_split)
from .pool   import (WorkerPool, shared_pool)
from .runner import (SplitResult, SplitRunner, run_split, in_pool_worker)
