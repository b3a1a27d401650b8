"""High level entry points for building recipes from plain data."""

from typing import Any, Mapping, Optional

from recipekit.domain import Option
from recipekit.loading import LoadingContext
from recipekit.recipe import ObjectRecipe

__all__ = ["make_recipe", "make_object"]

_KNOWN_KEYS = frozenset({
    "type",
    "factory",
    "args",
    "arg_types",
    "properties",
    "field_properties",
    "method_properties",
    "options",
})


def make_recipe(spec: Mapping[str, Any]) -> ObjectRecipe:
    """Create an :class:`ObjectRecipe` from a mapping, typically parsed configuration.

    Any property value that is itself a mapping with a ``"type"`` key becomes a
    nested recipe.

    Args:
        spec: A mapping with the keys:

            - ``type`` (required): class or class name.
            - ``factory``: name of the factory method.
            - ``args``: constructor argument names.
            - ``arg_types``: constructor argument types or type names.
            - ``properties``: properties bound through setters (or fields with fallback).
            - ``field_properties``: properties only assigned to fields.
            - ``method_properties``: properties only bound through setters.
            - ``options``: :class:`~recipekit.domain.Option` members or their names.

    Returns:
        The recipe, not yet built.

    Raises:
        ValueError: If ``type`` is missing, a key is unknown, or an option is unknown.

    Example:
        >>> recipe = make_recipe({
        ...     "type": "myapp.db.ConnectionPool",
        ...     "args": ["url"],
        ...     "properties": {
        ...         "url": "postgres://localhost/app",
        ...         "metrics": {"type": "myapp.metrics.Registry"},
        ...     },
        ...     "options": ["IGNORE_MISSING_PROPERTIES"],
        ... })
    """
    if "type" not in spec:
        raise ValueError(f"Recipe specification has no type: {dict(spec)}")
    unknown = set(spec) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unexpected keys {unknown} in recipe specification")

    recipe = ObjectRecipe(
        spec["type"],
        spec.get("factory"),
        spec.get("args"),
        spec.get("arg_types"),
    )
    for name, value in (spec.get("properties") or {}).items():
        recipe.set_property(name, _value(value))
    for name, value in (spec.get("field_properties") or {}).items():
        recipe.set_field_property(name, _value(value))
    for name, value in (spec.get("method_properties") or {}).items():
        recipe.set_method_property(name, _value(value))
    for option in spec.get("options") or ():
        recipe.allow(_option(option))
    return recipe


def make_object(spec: Mapping[str, Any], context: Optional[LoadingContext] = None) -> Any:
    """Build the object described by a mapping in one step.

    See :func:`make_recipe` for the accepted keys.
    """
    return make_recipe(spec).create(context)


def _value(value: Any) -> Any:
    if isinstance(value, Mapping) and "type" in value:
        return make_recipe(value)
    return value


def _option(option: Any) -> Option:
    if isinstance(option, Option):
        return option
    try:
        return Option[str(option).upper()]
    except KeyError:
        raise ValueError(f"Unknown option: {option}") from None
