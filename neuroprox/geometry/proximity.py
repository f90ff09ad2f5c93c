####################################################################################################
# neuroprox/geometry/proximity.py
# Radial and cylindrical proximity queries between sets of 3D points, and their split versions.

import pimms
import numpy      as np
import pyrsistent as pyr
from scipy.spatial import cKDTree

from ..util  import (config, to_points, to_cylinders, to_radius, zinv, to_radial_method,
                     to_imm_indices, to_imm_floats, empty_indices, empty_floats)
from ..split import SplitRunner

# The number of point/query pairs evaluated at once by the blocked (brute-force) computations.
block_elements = 2**20

def _sqdist(p, q):
    # the same expression is used for every query method so that their results are identical
    dx = p[..., 0] - q[..., 0]
    dy = p[..., 1] - q[..., 1]
    dz = p[..., 2] - q[..., 2]
    return dx*dx + dy*dy + dz*dz

# Result types #####################################################################################
@pimms.immutable
class RadialProximity(object):
    '''
    RadialProximity(indices) yields an immutable result of a radial proximity query. The indices
    argument must contain one array of retrieval-point indices per search point; these are stored
    as read-only integer arrays in a persistent vector.

    The result behaves as a sequence of index arrays: len(res) is the number of search points and
    res[k] is the array of indices of the retrieval points within the radius of search point k.
    The success member is False if the query could not be performed (for example, because of an
    invalid split configuration), in which case every index array is empty.
    '''
    def __init__(self, indices, success=True):
        self.indices = indices
        self.success = success

    @pimms.param
    def indices(ii):
        '''
        res.indices is a persistent vector of read-only index arrays, one per search point.
        '''
        return pyr.pvector([to_imm_indices(u) for u in ii])
    @pimms.option(True)
    def success(s):
        '''
        res.success is True if the query was performed and False otherwise.
        '''
        return bool(s)

    @pimms.value
    def counts(indices):
        '''
        res.counts is a read-only array of the number of proximate points of each search point.
        '''
        return pimms.imm_array(np.array([len(u) for u in indices], dtype=np.int64))
    def __len__(self):
        return len(self.indices)
    def __iter__(self):
        return iter(self.indices)
    def __getitem__(self, k):
        return self.indices[k]
    def __repr__(self):
        return 'RadialProximity(<%d search points>, success=%s)' % (len(self), self.success)

@pimms.immutable
class CylindricalProximity(RadialProximity):
    '''
    CylindricalProximity(indices, axial_distances, radial_distances) yields an immutable result of
    a cylindrical proximity query. Each of the three arguments must contain one array per search
    cylinder, and the arrays of a cylinder must have equal lengths: the k'th entry of
    axial_distances[i] and radial_distances[i] belongs to retrieval point indices[i][k].

    The axial distance of a point is the signed distance from the cylinder's start cap to the
    point's projection onto the cylinder axis; the radial distance is the shortest distance of the
    point to the axis.
    '''
    def __init__(self, indices, axial_distances, radial_distances, success=True):
        RadialProximity.__init__(self, indices, success=success)
        self.axial_distances = axial_distances
        self.radial_distances = radial_distances

    @pimms.param
    def axial_distances(ds):
        '''
        res.axial_distances is a persistent vector of read-only arrays of axial distances.
        '''
        return pyr.pvector([to_imm_floats(u) for u in ds])
    @pimms.param
    def radial_distances(ds):
        '''
        res.radial_distances is a persistent vector of read-only arrays of radial distances.
        '''
        return pyr.pvector([to_imm_floats(u) for u in ds])
    @pimms.require
    def validate_alignment(indices, axial_distances, radial_distances):
        '''
        The index and distance arrays must be aligned with each other.
        '''
        if len(axial_distances) != len(indices) or len(radial_distances) != len(indices):
            raise ValueError('indices and distances must have one entry per cylinder')
        for (ii,a,r) in zip(indices, axial_distances, radial_distances):
            if len(a) != len(ii) or len(r) != len(ii):
                raise ValueError('distances must be aligned with indices')
        return True
    def __repr__(self):
        return 'CylindricalProximity(<%d cylinders>, success=%s)' % (len(self), self.success)

# Radial queries ###################################################################################
def _radial_brute(ret, srch, r2):
    res = []
    block = max(1, block_elements // max(len(ret), 1))
    for k in range(0, len(srch), block):
        d2 = _sqdist(ret[None,:,:], srch[k:k+block, None, :])
        res.extend(np.flatnonzero(row < r2) for row in d2)
    return res
def _radial_kdtree(ret, srch, radius, r2):
    tree = cKDTree(ret)
    # search a slightly larger ball; the exact strict test below decides membership
    cands = tree.query_ball_point(srch, radius * (1 + 1e-6) + 1e-12)
    res = []
    for (q, ii) in zip(srch, cands):
        ii = np.sort(np.asarray(ii, dtype=np.int64))
        res.append(ii[_sqdist(ret[ii], q) < r2])
    return res

def radial_proximate_points(retrieval_points, search_points, radius, method=None):
    '''
    radial_proximate_points(retrieval_points, search_points, radius) yields a RadialProximity
      object res in which res[k] is the array of the indices of the retrieval points whose
      Euclidean distance to search point k is strictly less than the given radius. Points exactly
      at the radius are not included. The indices are in ascending order.

    Both retrieval_points and search_points must be (n x 3) matrices (or (3 x n) matrices, which
    are transposed). If there are no search points, an empty result is returned.

    The following options may be given:
      * method (default: None) may be 'brute', in which case all pairwise distances are computed
        in blocks, or 'kdtree', in which case a scipy.spatial.cKDTree of the retrieval points is
        used to find candidate points. Both methods yield identical results. If None, the config
        item 'radial_method' is used.
    '''
    ret = to_points(retrieval_points)
    srch = to_points(search_points)
    radius = to_radius(radius)
    method = config['radial_method'] if method is None else to_radial_method(method)
    r2 = radius * radius
    if len(srch) == 0: return RadialProximity([])
    if len(ret) == 0 or radius == 0: return RadialProximity([empty_indices] * len(srch))
    if method == 'kdtree': res = _radial_kdtree(ret, srch, radius, r2)
    else:                  res = _radial_brute(ret, srch, r2)
    return RadialProximity(res)

# Cylindrical queries ##############################################################################
def _cylinder_axes(cyls):
    start = cyls[:, 0:3]
    axis = cyls[:, 3:6] - start
    ssq = axis[:,0]*axis[:,0] + axis[:,1]*axis[:,1] + axis[:,2]*axis[:,2]
    return (start, axis, ssq)
def _cylinder_dot(pts, start, axis):
    return ((pts[..., 0] - start[..., 0]) * axis[..., 0] +
            (pts[..., 1] - start[..., 1]) * axis[..., 1] +
            (pts[..., 2] - start[..., 2]) * axis[..., 2])

def _cylinders_preexcl(ret, start, axis, ssq, inv_ssq, inv_len, r2):
    (idcs, axds, rads) = ([], [], [])
    for k in range(len(start)):
        d0 = _sqdist(ret, start[k])
        # slack keeps the filter a superset of the exact test under rounding
        ii = np.flatnonzero(d0 < (ssq[k] + r2) * (1 + 1e-12))
        dot = _cylinder_dot(ret[ii], start[k], axis[k])
        dist2 = d0[ii] - dot * dot * inv_ssq[k]
        w = (dot >= 0) & (dot <= ssq[k]) & (dist2 < r2)
        idcs.append(ii[w])
        axds.append(dot[w] * inv_len[k])
        rads.append(np.sqrt(np.clip(dist2[w], 0, None)))
    return (idcs, axds, rads)
def _cylinders_full(ret, start, axis, ssq, inv_ssq, inv_len, r2):
    (idcs, axds, rads) = ([], [], [])
    block = max(1, block_elements // max(len(ret), 1))
    for k0 in range(0, len(start), block):
        sl = slice(k0, k0 + block)
        d0 = _sqdist(ret[:, None, :], start[None, sl, :])
        dot = _cylinder_dot(ret[:, None, :], start[None, sl, :], axis[None, sl, :])
        dist2 = d0 - dot * dot * inv_ssq[None, sl]
        within = (dot >= 0) & (dot <= ssq[None, sl]) & (dist2 < r2)
        for (j, k) in enumerate(range(k0, min(k0 + block, len(start)))):
            ii = np.flatnonzero(within[:, j])
            idcs.append(ii)
            axds.append(dot[ii, j] * inv_len[k])
            rads.append(np.sqrt(np.clip(dist2[ii, j], 0, None)))
    return (idcs, axds, rads)

def cylindrical_proximate_points(retrieval_points, search_cylinders, radius,
                                 use_pre_exclusion=None):
    '''
    cylindrical_proximate_points(retrieval_points, search_cylinders, radius) yields a
      CylindricalProximity object res in which res[k] is the array of the indices of the retrieval
      points that lie within search cylinder k, along with the distances of those points along
      (res.axial_distances[k]) and from (res.radial_distances[k]) the cylinder's axis.

    The retrieval_points must be an (n x 3) matrix and search_cylinders an (m x 6) matrix whose
    rows are (x0, y0, z0, x1, y1, z1): the start and end points of each cylinder's axis. All
    cylinders share the given radius. A point is within a cylinder if its projection onto the
    axis lies between the two (flat) end caps, inclusive, and its distance from the axis is
    strictly less than the radius. Indices are in ascending order.

    A cylinder whose start and end points are identical is treated as a sphere with the given
    radius around its start point; the axial distances of its points are 0.

    The following options may be given:
      * use_pre_exclusion (default: None) specifies whether retrieval points are first filtered
        per cylinder by their distance from the cylinder's start point before the exact test is
        performed. This is beneficial with large numbers of retrieval points or cylinders and
        when memory is limited; without it, all points are tested against blocks of cylinders at
        once. Both modes yield identical results. If None, the config item 'use_pre_exclusion'
        is used.
    '''
    ret = to_points(retrieval_points)
    cyls = to_cylinders(search_cylinders)
    radius = to_radius(radius)
    if use_pre_exclusion is None: use_pre_exclusion = config['use_pre_exclusion']
    if len(cyls) == 0: return CylindricalProximity([], [], [])
    r2 = radius * radius
    (start, axis, ssq) = _cylinder_axes(cyls)
    inv_ssq = zinv(ssq)
    inv_len = zinv(np.sqrt(ssq))
    f = _cylinders_preexcl if use_pre_exclusion else _cylinders_full
    (idcs, axds, rads) = f(ret, start, axis, ssq, inv_ssq, inv_len, r2)
    return CylindricalProximity(idcs, axds, rads)

# Split versions ###################################################################################
def radial_proximate_points_split(retrieval_points, search_points, radius, split_config=None,
                                  method=None, pool=None, **kw):
    '''
    radial_proximate_points_split(retrieval_points, search_points, radius, split_config) is
      equivalent to radial_proximate_points(retrieval_points, search_points, radius) except that
      the search points are split up into subsets according to the given split configuration
      (see neuroprox.split.prepare_split), which are processed sequentially or on multiple
      threads. The result is identical to that of the unsplit query.

    If the split configuration is invalid, the error is logged and the returned result has
    success == False and an empty index array for every search point. The optional argument pool
    may specify the WorkerPool to use; additional keywords are merged into the split config.
    '''
    ret = to_points(retrieval_points)
    srch = to_points(search_points)
    radius = to_radius(radius)
    method = config['radial_method'] if method is None else to_radial_method(method)
    n = len(srch)
    if n == 0: return RadialProximity([])
    def _process(a, b):
        return radial_proximate_points(ret, srch[a:b], radius, method=method).indices
    res = SplitRunner(pool).run(n, split_config, _process, label='points', **kw)
    if not res.success: return RadialProximity([empty_indices] * n, success=False)
    return RadialProximity(res.items)

def cylindrical_proximate_points_split(retrieval_points, search_cylinders, radius,
                                       split_config=None, use_pre_exclusion=None, pool=None,
                                       **kw):
    '''
    cylindrical_proximate_points_split(retrieval_points, search_cylinders, radius, split_config)
      is equivalent to cylindrical_proximate_points(retrieval_points, search_cylinders, radius)
      except that the search cylinders are split up into subsets according to the given split
      configuration (see neuroprox.split.prepare_split), which are processed sequentially or on
      multiple threads. The result is identical to that of the unsplit query.

    If the split configuration is invalid, the error is logged and the returned result has
    success == False and empty arrays for every cylinder. The options use_pre_exclusion and pool
    are as in cylindrical_proximate_points and radial_proximate_points_split.
    '''
    ret = to_points(retrieval_points)
    cyls = to_cylinders(search_cylinders)
    radius = to_radius(radius)
    if use_pre_exclusion is None: use_pre_exclusion = config['use_pre_exclusion']
    n = len(cyls)
    if n == 0: return CylindricalProximity([], [], [])
    def _process(a, b):
        sub = cylindrical_proximate_points(ret, cyls[a:b], radius,
                                           use_pre_exclusion=use_pre_exclusion)
        return list(zip(sub.indices, sub.axial_distances, sub.radial_distances))
    res = SplitRunner(pool).run(n, split_config, _process, label='cylinders', **kw)
    if not res.success:
        return CylindricalProximity([empty_indices] * n, [empty_floats] * n, [empty_floats] * n,
                                    success=False)
    (idcs, axds, rads) = zip(*res.items)
    return CylindricalProximity(idcs, axds, rads)
