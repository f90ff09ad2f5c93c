####################################################################################################
# commands/__init__.py
# The commands that can be run when neuroprox is invoked directly as a command.

import pyrsistent as _pyr

from . import proximity as _prox

# The commands that can be run by main:
commands = _pyr.m(
    radial      = _prox.radial_main,
    cylindrical = _prox.cylindrical_main)

__all__ = ['commands']
