# -*- coding: utf-8 -*-
####################################################################################################
# neuroprox/util/core.py
# Coercion and small numerical utilities shared by the neuroprox modules.

import os, pimms
import numpy as np

# Info Utilities ###################################################################################
def cpu_count():
    """Returns the number of logical cores on the host (at least 1)."""
    return max(1, os.cpu_count() or 1)

def is_count(n):
    """Returns `True` if `n` is a non-negative integer (booleans excluded) and `False` otherwise."""
    return pimms.is_int(n) and not isinstance(n, (bool, np.bool_)) and n >= 0

# Coercion #########################################################################################
def _to_coord_matrix(x, width, name):
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        if x.size == 0:     return np.zeros((0, width))
        if x.size == width: return np.reshape(x, (1, width))
    if x.ndim != 2:
        raise ValueError('%s must be a (n x %d) matrix' % (name, width))
    if x.shape[1] != width:
        if x.shape[0] == width: x = x.T
        else: raise ValueError('%s must be a (n x %d) matrix; got shape %s'
                               % (name, width, x.shape))
    return x

def to_points(x):
    """Converts the argument into an (n x 3) float64 numpy array of 3D points.

    `to_points(x)` accepts any array-like object of 3D points. Points may be
    given in (n x 3) orientation or in (3 x n) orientation; the latter is
    transposed. When both orientations are possible (a 3 x 3 matrix), the rows
    are taken to be the points. A single point (a vector of length 3) yields a
    (1 x 3) matrix and an empty sequence yields a (0 x 3) matrix.

    Parameters
    ----------
    x : array-like
        The points to convert.

    Returns
    -------
    numpy.ndarray
        An (n x 3) float64 array. If `x` is already such an array it is
        returned as-is (it is never written to).

    Raises
    ------
    ValueError
        If `x` cannot be interpreted as a matrix of 3D points.
    """
    return _to_coord_matrix(x, 3, 'points')

def to_cylinders(x):
    """Converts the argument into an (n x 6) float64 numpy array of cylinders.

    Each row of the result is `(x0, y0, z0, x1, y1, z1)`: the start and end
    points of a cylinder's axis. Orientation rules are as in `to_points()`.

    Raises
    ------
    ValueError
        If `x` cannot be interpreted as a matrix of cylinders.
    """
    return _to_coord_matrix(x, 6, 'cylinders')

def to_radius(r):
    """Checks that `r` is a finite non-negative real number and returns it as a float.

    Raises
    ------
    ValueError
        If `r` is not a real number, is negative, or is not finite.
    """
    if not pimms.is_real(r): raise ValueError('radius must be a real number')
    r = float(r)
    if not np.isfinite(r) or r < 0: raise ValueError('radius must be finite and non-negative')
    return r

# Numerics #########################################################################################
def zinv(x):
    '''
    zinv(x) yields 0 if x == 0 and 1/x otherwise.
    '''
    x = np.asarray(x, dtype=np.float64)
    ii = (x != 0)
    r = np.zeros(x.shape, dtype=x.dtype)
    r[ii] = 1 / x[ii]
    return r

def to_imm_indices(ii):
    '''
    to_imm_indices(ii) yields a read-only int64 copy of the given indices.
    '''
    return pimms.imm_array(np.array(ii, dtype=np.int64).reshape(-1))

def to_imm_floats(x):
    '''
    to_imm_floats(x) yields a read-only float64 copy of the given values.
    '''
    return pimms.imm_array(np.array(x, dtype=np.float64).reshape(-1))

empty_indices = to_imm_indices([])
empty_floats = to_imm_floats([])
