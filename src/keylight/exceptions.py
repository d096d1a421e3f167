"""
Error types raised by Key Light discovery and control
"""

from typing import Optional


class KeyLightError(Exception):
    """Base class for all Key Light errors"""


class NoDevicesFound(KeyLightError):
    """Discovery timed out before any Key Light answered"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Cannot discover any Key Lights in the network (waited {timeout}s)")


class PartialDiscovery(KeyLightError):
    """Discovery timed out after finding some, but not all, expected Key Lights"""

    def __init__(self, found: int, expected: int, timeout: float):
        self.found = found
        self.expected = expected
        self.timeout = timeout
        super().__init__(
            f"Discovered only {found} of {expected} Key Lights within {timeout}s"
        )


class DeviceUnreachable(KeyLightError):
    """A single REST call against a Key Light failed"""

    def __init__(self, endpoint, url: str, reason: str):
        self.endpoint = endpoint
        self.url = url
        self.reason = reason
        super().__init__(f"Key Light at {url} unreachable: {reason}")


class OperationFailed(KeyLightError):
    """A control operation aborted because one Key Light failed

    Carries the endpoint, the operation name and the phase ("fetch" or
    "push") in which the failure happened.
    """

    def __init__(self, endpoint, operation: str, phase: str, verb: str,
                 cause: Optional[BaseException] = None):
        self.endpoint = endpoint
        self.operation = operation
        self.phase = phase
        self.cause = cause
        super().__init__(f"Failed {verb} Key Light at {endpoint} ({phase} failed)")
