"""Custom exceptions for the OmniFocus task store."""


class AutomationError(Exception):
    """An OmniFocus automation call failed."""


class AutomationUnavailableError(AutomationError):
    """osascript is missing, timed out, or OmniFocus cannot be scripted."""


class ContainerNotFoundError(AutomationError):
    """A configured project, folder, or tag does not exist in OmniFocus."""
