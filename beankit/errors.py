from __future__ import annotations

from typing import Optional


class BeanError(Exception):
    """Base class of every error raised by beankit."""


class StructuralError(BeanError):
    """A source unit cannot be generated: bad marker, field or class header."""

    def __init__(self, message: str, line: Optional[int] = None, source: Optional[str] = None) -> None:
        self.message = message
        self.line = line
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.source or "<unit>"
        if self.line is not None:
            where = f"{where}:{self.line}"
        return f"{where}: {self.message}"

    def with_source(self, source: str) -> "StructuralError":
        return StructuralError(self.message, line=self.line, source=source)


class PropertyNotFoundError(BeanError, KeyError):
    """Unknown property name. A KeyError so mapping views behave naturally."""

    def __init__(self, property_name: object, bean_name: str = "") -> None:
        self.property_name = property_name
        self.bean_name = bean_name
        where = f" on {bean_name}" if bean_name else ""
        super().__init__(f"Unknown property{where}: {property_name}")

    def __str__(self) -> str:
        return str(self.args[0])


class UnsupportedPropertyError(BeanError):
    """Write attempted on a derived or immutable property."""

    def __init__(self, property_name: str, reason: str = "Property cannot be written") -> None:
        self.property_name = property_name
        super().__init__(f"{reason}: {property_name}")


class BeanValidationError(BeanError, ValueError):
    def __init__(self, property_name: str, message: Optional[str] = None) -> None:
        self.property_name = property_name
        super().__init__(message or f"Argument '{property_name}' must not be None")


class PropertyTypeError(BeanError, TypeError):
    """Value (or bean) is not assignable to the declared type."""

    def __init__(self, property_name: str, expected: object, actual: object) -> None:
        self.property_name = property_name
        self.expected = expected
        self.actual = actual
        exp = getattr(expected, "__name__", str(expected))
        act = type(actual).__name__
        super().__init__(f"Property '{property_name}' expects {exp}, got {act}")
