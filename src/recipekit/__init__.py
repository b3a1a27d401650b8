"""Recipekit: declarative object construction.

Recipekit builds objects from declarative recipes instead of hand-written
factory code. A recipe names a class, optionally a factory method on it, the
properties passed as constructor arguments, and the properties assigned after
construction. Property values may be literals, text to be converted to the
declared type, or further recipes, so that configuration can describe a whole
object graph.

Key Features:
    - Constructor and factory selection by argument names, or by exact argument types
    - Setter-first property binding with optional field fallback
    - Closest-miss diagnostics when a property cannot be bound
    - Tolerant mode recording properties that could not be bound
    - Pluggable type loading, introspection and text conversion

Basic Usage:
    >>> from recipekit.recipe import ObjectRecipe
    >>>
    >>> recipe = ObjectRecipe("myapp.net.Server", constructor_arg_names=["host", "port"])
    >>> recipe.set_property("host", "localhost")
    >>> recipe.set_property("port", "8080")
    >>> recipe.set_property("timeout", "2.5")
    >>> server = recipe.create()

The package consists of several modules:
    - recipe: Recipe interface and the ObjectRecipe orchestrator
    - builders: Building recipes and objects from plain mappings
    - selection: Constructor and factory method selection
    - accessors: Setter and field resolution
    - introspection: Class descriptors built with inspect and typing
    - loading: Type name resolution for a build
    - conversion: Text to typed value conversion
    - primitives: Slot type checks and zero values
    - domain: Property keys, binding modes and options
    - errors: Package exceptions
"""
