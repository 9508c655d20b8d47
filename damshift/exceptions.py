"""
Exceptions for DamShift.
"""


class DamShiftError(Exception):
    """Base exception for DamShift."""


class RetrievalError(DamShiftError):
    """Remote data could not be retrieved after all retry attempts."""

    def __init__(self, message: str, site_id: str = None):
        super().__init__(message)
        self.site_id = site_id
