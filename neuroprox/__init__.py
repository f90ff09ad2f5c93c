####################################################################################################
# __init__.py

'''Tools for finding the points that lie near other points or within cylinders in 3D space.'''

submodules = ('neuroprox.util.conf',
              'neuroprox.util.core',
              'neuroprox.util',
              'neuroprox.split.core',
              'neuroprox.split.pool',
              'neuroprox.split.runner',
              'neuroprox.split',
              'neuroprox.geometry.proximity',
              'neuroprox.geometry.mesh',
              'neuroprox.geometry',
              'neuroprox.commands.proximity',
              'neuroprox.commands')
'''neuroprox.submodules is a tuple of all the sub-modules of neuroprox in a loadable order.'''

def reload_neuroprox():
    '''
    reload_neuroprox() reloads all of the modules of neuroprox and returns the reloaded neuroprox
    module. This is similar to reload(neuroprox) except that it reloads all the neuroprox
    submodules prior to reloading neuroprox.

    Example:
      import neuroprox as nprox
      # ... some nonsense that breaks the library ...
      nprox = nprox.reload_neuroprox()
    '''
    import sys
    from importlib import reload
    for mdl in submodules:
        if mdl in sys.modules:
            sys.modules[mdl] = reload(sys.modules[mdl])
    return reload(sys.modules['neuroprox'])

from   .util       import (config, to_points, to_cylinders, to_radius)
from   .split      import (SplitConfig, SplitPlan, SplitResult, SplitRunner, SplitConfigError,
                           SingleSubsetWarning, WorkerPool, shared_pool, to_split_config,
                           prepare_split, run_split)
from   .geometry   import (RadialProximity, CylindricalProximity, radial_proximate_points,
                           cylindrical_proximate_points, radial_proximate_points_split,
                           cylindrical_proximate_points_split, mesh_metrics, merge_meshes,
                           random_surface_points)

# Version information...
__version__ = '0.1.0'
