"""
Custom exceptions for SQL to DDlog translation.
"""

from typing import List, Optional


class TranslationError(Exception):
    """Base exception for translation errors."""
    def __init__(self, message: str, statement: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.statement = statement

    def __str__(self) -> str:
        if self.statement:
            return f"{self.message} (in: {self.statement})"
        return self.message


class UnsupportedConstructError(TranslationError):
    """Statement or expression shape has no translation rule."""
    def __init__(
        self,
        message: str,
        features: Optional[List[str]] = None,
        hint: Optional[str] = None,
        statement: Optional[str] = None,
    ):
        super().__init__(message, statement)
        self.features = features or []
        self.hint = hint


class TypeMismatchError(TranslationError):
    """Expression type conflicts with the type an operator or column expects."""
    pass


class UnknownRelationError(TranslationError):
    """Query references a table or view that was never declared."""
    pass


class UnknownColumnError(TranslationError):
    """Column reference is missing or ambiguous in the FROM clause."""
    pass


class DuplicateDeclarationError(TranslationError):
    """Name is already declared with a conflicting definition."""
    pass


class DDlogError(Exception):
    """Base exception for external DDlog compiler errors."""
    pass


class DDlogNotFoundError(DDlogError):
    """The ddlog executable could not be found."""
    pass


class DDlogCompileError(DDlogError):
    """ddlog rejected the program."""
    def __init__(self, message: str, stderr: str, returncode: int):
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode
