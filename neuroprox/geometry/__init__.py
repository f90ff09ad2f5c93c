####################################################################################################
# neuroprox/geometry/__init__.py
# Proximity queries of points and cylinders in 3D space, and triangle-mesh utilities.

'''
The neuroprox.geometry package contains the proximity queries (radial_proximate_points and
cylindrical_proximate_points, along with their split versions) and a few utilities for triangle
meshes (mesh_metrics, merge_meshes, and random_surface_points).
'''

from .proximity import (RadialProximity, CylindricalProximity, radial_proximate_points,
                        cylindrical_proximate_points, radial_proximate_points_split,
                        cylindrical_proximate_points_split)
from .mesh      import (to_mesh_data, mesh_edges, face_areas, mesh_metrics, merge_meshes,
                        random_surface_points)
