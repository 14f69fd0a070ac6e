## taskwrappr — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Variable, Action, Block
from .errors import *
from .environment import Environment
from .runtime import Runtime, Script

_RUNTIME = Runtime()

def __getattr__(name):
    return getattr(_RUNTIME, name)
