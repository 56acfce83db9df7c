"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .auth import *
from .payment import *
from .subscription import *
from .user import *
from .admin import *
from .ai import *
