"""
Error taxonomy for vCard parsing and serialization.

Every error raised by the engine is a ParseError carrying the component that
raised it and whatever context was known at the point of failure. Component
functions raise without a line number; the top-level parser fills it in.

Dependencies:
    - enum: Standard library for the component enumeration
    - typing: Standard library for type hints
"""

from enum import Enum
from typing import Optional


class ErrorComponent(Enum):
    """Engine component that raised an error."""

    FOLD = "Fold"
    GRAMMAR = "Grammar"
    PARAM = "Param"
    VALUE = "Value"
    STRUCTURAL = "Structural"
    CARDINALITY = "Cardinality"


class ParseError(ValueError):
    """Base class for every vCard parse failure."""

    component: ErrorComponent = ErrorComponent.GRAMMAR

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        property_name: Optional[str] = None,
        token: Optional[str] = None
    ) -> None:
        """
        :param message: Human readable description of the failure
        :param line_number: 1-based physical line where the logical line starts
        :param property_name: Name of the property being processed, if known
        :param token: Offending piece of input, if known
        """
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.property_name = property_name
        self.token = token

    def with_context(
        self,
        line_number: Optional[int] = None,
        property_name: Optional[str] = None
    ) -> "ParseError":
        """
        Fill in context that was unknown where the error was raised.

        Already-set fields are kept.

        :param line_number: Line number of the logical line being processed
        :param property_name: Name of the property being processed
        :return: The same error instance, for re-raising
        """
        if self.line_number is None:
            self.line_number = line_number
        if self.property_name is None:
            self.property_name = property_name
        return self

    def __str__(self) -> str:
        location = []
        if self.line_number is not None:
            location.append(f"line {self.line_number}")
        if self.property_name:
            location.append(self.property_name)
        prefix = f"{self.component.value} error"
        if location:
            prefix += f" ({', '.join(location)})"
        text = f"{prefix}: {self.message}"
        if self.token is not None:
            text += f" [{self.token!r}]"
        return text


class FoldError(ParseError):
    """A continuation line with nothing to continue."""

    component = ErrorComponent.FOLD


class GrammarError(ParseError):
    """A logical line that is not a content line."""

    component = ErrorComponent.GRAMMAR


class ParamError(ParseError):
    """Malformed parameter quoting or splitting."""

    component = ErrorComponent.PARAM


class InvalidValueError(ParseError):
    """A property value that does not match its value kind's grammar."""

    component = ErrorComponent.VALUE


class StructuralError(ParseError):
    """Envelope violation: missing, misplaced or duplicate BEGIN/END."""

    component = ErrorComponent.STRUCTURAL


class CardinalityError(ParseError):
    """A property appears more or fewer times than its cardinality allows."""

    component = ErrorComponent.CARDINALITY

    def __init__(
        self,
        property_name: str,
        rule: str,
        found: int,
        line_number: Optional[int] = None
    ) -> None:
        super().__init__(
            f"{property_name}: {rule}, found {found}",
            line_number=line_number,
            property_name=property_name
        )
        self.rule = rule
        self.found = found
