## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class WrapprError(Exception):
    def __init__(self, message: str = "", *, line=None, column=None, filename=None, action=None):
        """Base class for all errors raised by the interpreter."""
        super().__init__(message)
        self.line: int | None = line
        self.column: int | None = column
        self.filename: str | None = filename
        self.action: object = action

    def __str__(self):
        message = super().__str__()
        if self.line is None: return message
        position = f"{self.line}:{self.column}" if self.column is not None else f"{self.line}"
        return f"[{position}] {message}"


class WrapprParseError(WrapprError):
    """Structural problems: unbalanced delimiters, invalid lines, misplaced blocks."""
    pass

class WrapprLexError(WrapprParseError, lark.exceptions.LexError):
    pass

class WrapprIncompleteParse(WrapprParseError):
    """Input ended while braces or parentheses were still open."""
    pass


class WrapprValidationError(WrapprError):
    pass

class WrapprNameError(WrapprError, NameError):
    pass

class WrapprTypeError(WrapprError, TypeError):
    pass

class WrapprValueError(WrapprError, ValueError):
    pass

class WrapprZeroDivisionError(WrapprError, ZeroDivisionError):
    pass

class WrapprRuntimeError(WrapprError, RuntimeError):
    pass


class WrapprModuleError(WrapprError, ImportError):
    def __init__(self, message, *, name=None, filename=None):
        super().__init__(message, filename=filename)
        self.module_name = name
