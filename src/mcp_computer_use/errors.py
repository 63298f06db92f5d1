"""Exception types raised by the browser session subsystem."""


class BrowserError(Exception):
    """Base class for every error this package raises on purpose."""


class InvalidInput(BrowserError, ValueError):
    """Bad coordinates, key names, directions or tab selectors."""


class SessionNotOpen(BrowserError, RuntimeError):
    """An action was requested while no browser is open."""


class ProtocolFailure(BrowserError, RuntimeError):
    """The WebDriver or CDP call failed. The session stays open."""


class UnsupportedOperation(BrowserError, NotImplementedError):
    """The operation does not exist for the selected connection mode."""


class BinaryNotFound(BrowserError, FileNotFoundError):
    """No usable browser or chromedriver binary could be located."""


class PortInUse(BrowserError, OSError):
    """The port we were about to launch on is already bound."""


class AcquisitionTimeout(BrowserError, TimeoutError):
    """A launched process never started accepting connections."""


__all__ = [
    "BrowserError",
    "InvalidInput",
    "SessionNotOpen",
    "ProtocolFailure",
    "UnsupportedOperation",
    "BinaryNotFound",
    "PortInUse",
    "AcquisitionTimeout",
]
