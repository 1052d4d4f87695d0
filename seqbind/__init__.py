"""seqbind - language binding generator over a sequential wire buffer.

Reads the exported surface of one package and emits the two halves of a
binding: a callee dispatcher that decodes requests and invokes the real
declarations, and caller stubs that encode requests and decode responses.
"""

import logging

from .errors import BindError, CallError, ContractViolation, GenerationFailed
from .frontend import analyze
from .ir import Binding
from .serialize import package_from_dict

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BindError",
    "Binding",
    "CallError",
    "ContractViolation",
    "GenerationFailed",
    "analyze",
    "package_from_dict",
]
