####################################################################################################
# neuroprox/geometry/mesh.py
# Metrics, merging, and random surface sampling of triangle meshes given as vertices and faces.

import pimms
import numpy as np

from ..util import to_points

def to_mesh_data(mesh, faces=None):
    '''
    to_mesh_data(mesh) yields the tuple (vertices, faces) for the given triangle mesh, where
      vertices is an (n x 3) float64 array and faces is an (m x 3) int64 array of 0-based vertex
      indices. The mesh may be a mapping or an object with vertex ('vertices', 'vert', or
      'coordinates') and face ('faces', 'face', or 'tri') entries, or a tuple (vertices, faces).
    to_mesh_data(vertices, faces) yields the (vertices, faces) tuple for the given matrices.

    Raises a ValueError if no vertices and faces can be found or if a face refers to a vertex
    that does not exist.
    '''
    if faces is None:
        (vnames, fnames) = (('vertices', 'vert', 'coordinates'), ('faces', 'face', 'tri'))
        if pimms.is_map(mesh):
            verts = next((mesh[k] for k in vnames if k in mesh), None)
            faces = next((mesh[k] for k in fnames if k in mesh), None)
        elif isinstance(mesh, tuple) and len(mesh) == 2:
            (verts, faces) = mesh
        else:
            verts = next((getattr(mesh, k) for k in vnames if hasattr(mesh, k)), None)
            faces = next((getattr(mesh, k) for k in fnames if hasattr(mesh, k)), None)
    else: verts = mesh
    if verts is None or faces is None:
        raise ValueError('no vertices and faces found; a mesh or vertices and faces must be given')
    verts = to_points(verts)
    faces = np.asarray(faces)
    if faces.size == 0: faces = np.zeros((0, 3), dtype=np.int64)
    if faces.ndim != 2 or 3 not in faces.shape:
        raise ValueError('faces must be an (m x 3) matrix')
    if faces.shape[1] != 3: faces = faces.T
    if not np.issubdtype(faces.dtype, np.integer):
        if not np.all(np.mod(faces, 1) == 0): raise ValueError('faces must contain integers')
    faces = faces.astype(np.int64)
    if len(faces) > 0 and (faces.min() < 0 or faces.max() >= len(verts)):
        raise ValueError('faces refer to vertices that do not exist')
    return (verts, faces)

def mesh_edges(faces):
    '''
    mesh_edges(faces) yields the (k x 2) array of unique undirected edges of the given (m x 3)
      faces; each row is sorted so that the smaller vertex index comes first.
    '''
    faces = np.asarray(faces, dtype=np.int64)
    if len(faces) == 0: return np.zeros((0, 2), dtype=np.int64)
    es = np.concatenate([faces[:, [0,1]], faces[:, [0,2]], faces[:, [1,2]]])
    return np.unique(np.sort(es, axis=1), axis=0)

def face_areas(vertices, faces):
    '''
    face_areas(vertices, faces) yields the area of each of the given triangle faces.
    '''
    (v1, v2, v3) = [vertices[faces[:, k]] for k in (0, 1, 2)]
    cr = np.cross(v1 - v2, v1 - v3)
    return 0.5 * np.sqrt(np.sum(cr**2, axis=1))

def _summary(x, fn):
    return fn(x) if len(x) > 0 else np.nan

def mesh_metrics(mesh, faces=None):
    '''
    mesh_metrics(mesh) yields a lazy map of metrics of the given triangle mesh; the mesh argument
      is interpreted as by to_mesh_data(), and mesh_metrics(vertices, faces) is also accepted.
      Metrics are only computed when they are requested from the map.

    The map contains the following keys:
      * 'edges': the (k x 2) array of unique edges (see mesh_edges());
      * 'edge_lengths': the length of each edge in 'edges';
      * 'mean_edge_length', 'min_edge_length', 'max_edge_length';
      * 'face_areas': the area of each face;
      * 'mean_face_area', 'min_face_area', 'max_face_area', 'total_area'.
    Summary statistics of empty meshes are NaN (total_area is 0).
    '''
    (verts, faces) = to_mesh_data(mesh, faces)
    def _edges(): return pimms.imm_array(mesh_edges(faces))
    def _edge_lengths():
        es = m['edges']
        return pimms.imm_array(np.sqrt(np.sum((verts[es[:,0]] - verts[es[:,1]])**2, axis=1)))
    def _areas(): return pimms.imm_array(face_areas(verts, faces))
    m = pimms.lazy_map(
        {'edges':            _edges,
         'edge_lengths':     _edge_lengths,
         'mean_edge_length': lambda:_summary(m['edge_lengths'], np.mean),
         'min_edge_length':  lambda:_summary(m['edge_lengths'], np.min),
         'max_edge_length':  lambda:_summary(m['edge_lengths'], np.max),
         'face_areas':       _areas,
         'mean_face_area':   lambda:_summary(m['face_areas'], np.mean),
         'min_face_area':    lambda:_summary(m['face_areas'], np.min),
         'max_face_area':    lambda:_summary(m['face_areas'], np.max),
         'total_area':       lambda:np.sum(m['face_areas'])})
    return m

def merge_meshes(*meshes):
    '''
    merge_meshes(mesh1, mesh2, ...) yields the tuple (vertices, faces) of a single mesh that
      contains all of the given meshes. The vertices of the meshes are concatenated in order and
      the faces of each mesh are offset by the number of vertices that precede it. Each mesh is
      interpreted as by to_mesh_data().

    Raises a ValueError if fewer than two meshes are given.
    '''
    if len(meshes) == 1 and isinstance(meshes[0], list): meshes = meshes[0]
    if len(meshes) < 2: raise ValueError('at least two meshes are required to merge')
    (vs, fs, offset) = ([], [], 0)
    for mesh in meshes:
        (v, f) = to_mesh_data(mesh)
        vs.append(v)
        fs.append(f + offset)
        offset += len(v)
    return (np.concatenate(vs), np.concatenate(fs))

def random_surface_points(mesh, n, faces=None, rng=None):
    '''
    random_surface_points(mesh, n) yields a tuple (points, face_ids) of n points drawn uniformly at
      random from the surface of the given triangle mesh, along with the index of the face that
      each point lies on. Faces are chosen with probability proportional to their area, and points
      are distributed uniformly within each chosen face.
    random_surface_points(vertices, n, faces) may also be used.

    The optional argument rng may be a numpy Generator or a seed for numpy.random.default_rng.

    Raises a ValueError if the mesh has no surface area or if n is negative.
    '''
    (verts, faces) = to_mesh_data(mesh, faces)
    if not pimms.is_int(n) or n < 0: raise ValueError('n must be a non-negative integer')
    rng = np.random.default_rng(rng)
    areas = face_areas(verts, faces)
    cum = np.cumsum(areas)
    if len(cum) == 0 or not cum[-1] > 0: raise ValueError('mesh has no surface area')
    fids = np.searchsorted(cum, rng.random(n) * cum[-1], side='right')
    fids = np.minimum(fids, len(faces) - 1)
    uv = rng.random((n, 2))
    flip = np.sum(uv, axis=1) > 1
    uv[flip] = 1 - uv[flip]
    p0 = verts[faces[fids, 0]]
    e1 = verts[faces[fids, 1]] - p0
    e2 = verts[faces[fids, 2]] - p0
    pts = p0 + e1 * uv[:, [0]] + e2 * uv[:, [1]]
    return (pts, fids)
