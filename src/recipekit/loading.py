"""Resolution of type identifiers for a single recipe build."""

import builtins
import importlib
import inspect
from typing import Any, Mapping, Optional, Union

from recipekit.conversion import ConverterRegistry, default_converters
from recipekit.errors import ConfigurationTypeError
from recipekit.introspection import Introspector, TypeDescriptor

__all__ = ["TypeId", "LoadingContext"]


TypeId = Union[str, type]
"""A class, or the name of one.

Names are either registered aliases or import paths, written as
``"package.module.Class"`` or ``"package.module:Outer.Inner"``. Names without
a dot refer to builtins.
"""


class LoadingContext:
    """The type universe a recipe is built against.

    A context resolves type identifiers to classes, describes those classes and
    converts configuration text. Passing different contexts to
    :meth:`~recipekit.recipe.Recipe.create` lets the same recipe be built
    against different classes or conversion rules.

    Args:
        types: Aliases consulted before any import is attempted.
        converters: The text conversion registry; defaults to :func:`default_converters`.
        introspector: The class introspector; defaults to :class:`Introspector`.
    """

    def __init__(
        self,
        types: Optional[Mapping[str, type]] = None,
        converters: Optional[ConverterRegistry] = None,
        introspector: Optional[Introspector] = None,
    ):
        self.types = dict(types or {})
        self.converters = converters or default_converters()
        self.introspector = introspector or Introspector()

    @classmethod
    def default(cls) -> "LoadingContext":
        return cls()

    def load(self, type_id: TypeId) -> type:
        """Resolve a type identifier to a class.

        Raises:
            ConfigurationTypeError: If the name cannot be imported or does not name a class.
        """
        if isinstance(type_id, type):
            return type_id
        if type_id in self.types:
            return self.types[type_id]
        resolved = _import_object(type_id)
        if not inspect.isclass(resolved):
            raise ConfigurationTypeError(f"Type is not a class: {type_id}")
        return resolved

    def describe(self, cls: type) -> TypeDescriptor:
        return self.introspector.describe(cls)


def _import_object(path: str) -> Any:
    if ":" in path:
        module_name, _, qualname = path.partition(":")
        return _attribute_path(_import_module(module_name, path), qualname, path)

    parts = path.split(".")
    if len(parts) == 1:
        if hasattr(builtins, path):
            return getattr(builtins, path)
        raise ConfigurationTypeError(f"Type class could not be found: {path}")

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name and not module_name.startswith(e.name):
                raise ConfigurationTypeError(
                    f"Failed to import module {module_name!r} for {path}"
                ) from e
            continue
        except Exception as e:
            raise ConfigurationTypeError(
                f"Failed to import module {module_name!r} for {path}"
            ) from e
        return _attribute_path(module, ".".join(parts[split:]), path)

    raise ConfigurationTypeError(f"Type class could not be found: {path}")


def _import_module(module_name: str, path: str):
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise ConfigurationTypeError(f"Type class could not be found: {path}") from e
    except Exception as e:
        raise ConfigurationTypeError(f"Failed to import module {module_name!r} for {path}") from e


def _attribute_path(module: Any, qualname: str, path: str) -> Any:
    resolved = module
    for attribute in qualname.split("."):
        if not hasattr(resolved, attribute):
            raise ConfigurationTypeError(f"Type class could not be found: {path}")
        resolved = getattr(resolved, attribute)
    return resolved
