"""Exceptions raised by the pyarc runtime.

A weak reference resolving to nothing is not an error: ``resolve()`` simply
returns ``None``. Everything below is a misuse of the ownership contract and
is raised immediately to the caller.
"""


class ARCError(Exception):
    """Base class for all runtime errors."""


class ContractViolation(ARCError):
    """A reference was used after its referent was torn down.

    This is the equivalent of a runtime trap: accessing an unowned reference
    to a dead object, retaining a dead object, or using a dropped StrongRef.
    """

    def __init__(self, message, block=None):
        super().__init__(message)
        self.block = block


class UnderflowError(ARCError):
    """A strong or weak count would go below zero."""

    def __init__(self, message, block=None):
        super().__init__(message)
        self.block = block


class DoubleReleaseError(UnderflowError):
    """The same reference object was dropped twice."""
