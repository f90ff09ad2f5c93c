# -*- coding: utf-8 -*-
####################################################################################################
# neuroprox/util/__init__.py
# This file defines the general tools that are available as part of neuroprox.

from .conf     import (config, loadrc, saverc, to_thread_count, to_flag, to_radial_method,
                       radial_methods)
from .core     import (cpu_count, is_count, to_points, to_cylinders, to_radius, zinv,
                       to_imm_indices, to_imm_floats, empty_indices, empty_floats)
