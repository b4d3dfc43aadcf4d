"""Exception hierarchy for module linking, signature parsing and runtime traps."""

from __future__ import annotations


class M3Error(Exception):
    """Base class for every error raised by the interpreter host layer."""

    default_message = "interpreter error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class FunctionLookupFailed(M3Error):
    """No imported function matched the requested module and field name."""

    default_message = "function lookup failed"


class MalformedSignature(M3Error):
    """A textual function signature could not be parsed."""

    default_message = "malformed function signature"


class MissingReturnType(MalformedSignature):
    """A textual function signature lacks its leading return type."""

    default_message = "missing return type"


class Trap(M3Error):
    """Execution stopped abnormally."""

    default_message = "trap"


class TrapAbort(Trap):
    """The guest program called abort."""

    default_message = "[trap] abort"


class TrapExit(Trap):
    """The guest program asked to exit with a status code."""

    default_message = "[trap] program called exit"

    def __init__(self, code: int = 0, message: str | None = None) -> None:
        self.code = code
        super().__init__(message)


class DivisionByZero(Trap):
    """Integer division or remainder by zero."""

    default_message = "[trap] integer divide by zero"


class IntegerOverflow(Trap):
    """An integer operation or conversion overflowed."""

    default_message = "[trap] integer overflow"


class IntegerConversion(Trap):
    """A floating point value could not be converted to an integer."""

    default_message = "[trap] invalid conversion to integer"