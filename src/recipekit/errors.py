"""Exceptions raised while building objects from recipes."""

__all__ = [
    "ConstructionError",
    "ConfigurationTypeError",
    "SelectionAmbiguityError",
    "MissingAccessorError",
    "ConversionError",
    "InvocationError",
]


class ConstructionError(Exception):
    """Raised when a recipe cannot produce its instance."""

    pass


class ConfigurationTypeError(ConstructionError):
    """Raised when the target type is missing, private, abstract or a protocol."""

    pass


class SelectionAmbiguityError(ConstructionError):
    """Raised when argument names alone match no overload, or more than one."""

    pass


class MissingAccessorError(ConstructionError):
    """Raised when no setter or field can accept a property value.

    Attributes:
        match_level: How close the best rejected candidate came to being usable,
            from 0 (no candidate with that name at all) to 6 (only the value was
            wrong). Higher levels make more useful diagnostics.
    """

    def __init__(self, message: str, match_level: int):
        super().__init__(message)
        self.match_level = match_level

    @property
    def reason(self) -> str:
        return self.args[0]


class ConversionError(ConstructionError):
    """Raised when text cannot be converted to the declared slot type."""

    pass


class InvocationError(ConstructionError):
    """Raised when a constructor, factory or accessor raises.

    The underlying exception is always available as ``__cause__``.
    """

    pass
