class CryptStrError(Exception):
    """Base class for every error raised by cryptstr."""


class SizeMismatch(CryptStrError, ValueError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid sizes: declared {expected}, got {actual}")


class OutOfRange(CryptStrError, IndexError):
    def __init__(self, index, size: int):
        self.index = index
        self.size = size
        super().__init__(f"index {index} out of range for size {size}")


class DuplicationError(CryptStrError, TypeError):
    """A SecureView was about to be copied or converted to a plain string."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"SecureView cannot be duplicated ({operation})")


class ViewReleasedError(CryptStrError, ValueError):
    def __init__(self, state):
        self.state = state
        super().__init__(f"SecureView has been {state.value}")


class ManifestError(CryptStrError):
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        if line and column:
            message = f"line {line}, column {column}: {message}"
        elif line:
            message = f"line {line}: {message}"
        super().__init__(message)
