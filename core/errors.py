# =============================================================================
# core/errors.py  —  Error taxonomy for one query cycle
# =============================================================================
#
# Every failure the router knows how to report is a RouterError.  The session
# controller catches these at the cycle boundary, reports them, and goes back
# to waiting for the next query.  Only ConfigurationError at startup ends the
# process.
# =============================================================================


class RouterError(Exception):
    """Base class for all errors raised by the router."""


class ConfigurationError(RouterError):
    """Startup configuration is missing or invalid (e.g. no API key)."""


# --- Backend lifecycle --------------------------------------------------------

class BackendConnectionError(RouterError):
    """A backend failed to spawn or to respond during discovery."""

    def __init__(self, locator: str, message: str) -> None:
        super().__init__(f"{locator}: {message}")
        self.locator = locator


class UnsupportedLocatorError(BackendConnectionError):
    """The locator's extension does not map to a known interpreter."""


class ProtocolError(RouterError):
    """The backend's tool listing could not be read."""


class NoBackendAvailable(RouterError):
    """Every candidate backend failed discovery."""


# --- Selection ----------------------------------------------------------------

class SelectionError(RouterError):
    """The model's selection response could not be used."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class SelectionParseError(SelectionError):
    """The selection response did not match ``path=<id>, name=<tool>``."""


class UnknownBackendSelected(SelectionError):
    """The selection names a backend that was not discovered."""


class UnknownToolSelected(SelectionError):
    """The selection names a tool the chosen backend does not own."""


# --- Invocation ---------------------------------------------------------------

class ArgumentSynthesisError(RouterError):
    """The model's tool-call response was unparseable or invalid."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class ToolInvocationError(RouterError):
    """The backend rejected or failed the tool call."""


class ModelError(RouterError):
    """The language model call failed or timed out."""
