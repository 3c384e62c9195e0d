"""Domain-specific errors for easytty.

Rule operations report failures through ``OperationResult``; the exceptions
here are reserved for conditions that stop the tool from starting at all.
"""


class EasyttyError(Exception):
    """Base error for easytty."""


class ConfigLoadError(EasyttyError):
    """Raised when the configuration file cannot be read."""


class ConfigValidationError(EasyttyError):
    """Raised when the configuration file does not conform to schema."""


class DeviceEnumerationError(EasyttyError):
    """Raised when the udev enumeration context cannot be created."""
