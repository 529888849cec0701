"""Errors raised while driving the OASYS portal session."""


class PortalError(Exception):
    """Base class for every failure of a portal session operation"""


class NavigationFailure(PortalError):
    pass


class ElementNotFound(PortalError):
    pass


class FormFillFailure(PortalError):
    pass


class ClickFailure(PortalError):
    pass


class InvalidStateError(PortalError):
    """Operation is not allowed in the current session state"""

    def __init__(self, operation, state):
        self.operation = operation
        self.state = state
        super().__init__(f"{operation} is not allowed while session is {state.value}")


class OperationTimeout(PortalError):
    pass


class DriverStartupError(PortalError):
    """Chrome could not be started, the server cannot run without it"""


class SessionNotStarted(PortalError):
    """No portal session has been started in this process"""
