"""Domain-specific errors for budsd."""


class BudsdError(Exception):
    """Base error for budsd."""


class PluginValidationError(BudsdError):
    """Raised when a plugin file does not conform to schema or semantics."""


class PluginLoadError(BudsdError):
    """Raised when loading plugin sources fails."""


class DeviceSelectionError(BudsdError):
    """Raised when a request cannot be resolved to a connected device."""


class ConfigNotFoundError(BudsdError):
    """Raised when a device has no config entry."""


class MissingParameterError(BudsdError):
    """Raised when a request lacks a parameter its command needs."""


class InvalidKeyError(BudsdError):
    """Raised for keys the targeted operation does not know."""


class ValueParseError(BudsdError):
    """Raised when a request value cannot be parsed for its key."""


class FeatureResolutionError(BudsdError):
    """Raised when feature/value cannot be found for a plugin."""


class ConfigLoadError(BudsdError):
    """Raised when the config file cannot be read or is malformed."""


class ConfigSaveError(BudsdError):
    """Raised when persisting the config file fails."""


class RequestDecodeError(BudsdError):
    """Raised when a socket request is not a valid request document."""


class DaemonConnectionError(BudsdError):
    """Raised when the daemon socket is unreachable or closes without a reply."""


class DaemonResponseError(BudsdError):
    """Raised by the client API when the daemon answers with an error."""


class TransportError(BudsdError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on device connect failures."""


class TransportSendError(TransportError):
    """Raised when payload sending fails."""


class TransportTimeoutError(TransportError):
    """Raised when the device does not answer in time."""
