"""
Coordinate-based browser control for agents, over WebDriver or CDP.

One BrowserSession per server process owns the browser. Every tool call is
serialized through it, and an idle monitor closes the browser when nobody
has used it for a while. Driver and browser processes the server launched
itself are stopped on shutdown; externally managed ones are left running.
"""

from .errors import (
    BrowserError,
    InvalidInput,
    SessionNotOpen,
    ProtocolFailure,
    UnsupportedOperation,
    BinaryNotFound,
    PortInUse,
    AcquisitionTimeout,
)
from .session import BrowserSession

__version__ = "0.1.0"

__all__ = [
    "BrowserError",
    "InvalidInput",
    "SessionNotOpen",
    "ProtocolFailure",
    "UnsupportedOperation",
    "BinaryNotFound",
    "PortInUse",
    "AcquisitionTimeout",
    "BrowserSession",
    "__version__",
]
