class CamrouterError(Exception):
    """Base class for camera routing errors"""


class ConfigError(CamrouterError):
    """Raised when the config document is malformed or missing required fields"""

    def __init__(self, message: str, source: str = "<memory>"):
        self.source = source
        super().__init__(f"config error in '{source}': {message}")


class ResolutionError(CamrouterError):
    """A selector could not be mapped to a started camera"""

    def __init__(self, selector, context: str = ""):
        self.selector = selector
        self.context = context
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}no camera for selector {selector!r}")


class DeviceOpError(CamrouterError):
    """Creating or removing a device alias failed"""

    def __init__(self, alias_path: str, message: str):
        self.alias_path = alias_path
        super().__init__(f"{alias_path}: {message}")
