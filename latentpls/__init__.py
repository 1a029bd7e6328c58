__version__ = "0.1.0"
__all__ = [
    "CCA",
    "Center",
    "DeflationMode",
    "NIPALS",
    "PLS1",
    "PreprocessingKind",
    "Standardize",
    "exceptions",
]

from . import exceptions
from .nipals import CCA, NIPALS, DeflationMode
from .pls1 import PLS1
from .preprocessing import Center, PreprocessingKind, Standardize
