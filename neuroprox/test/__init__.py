####################################################################################################
# neuroprox/test/__init__.py
# Tests for the neuroprox library.

import unittest, logging

logging.getLogger().setLevel(logging.INFO)

from .test_util     import TestNeuroproxUtil
from .test_split    import TestNeuroproxSplit
from .test_proximity import TestNeuroproxProximity
from .test_mesh     import TestNeuroproxMesh
from .test_commands import TestNeuroproxCommands

if __name__ == '__main__':
    unittest.main()
