import collections
import decimal

import pytest

from recipekit.conversion import ConverterRegistry
from recipekit.errors import ConfigurationTypeError
from recipekit.introspection import Introspector
from recipekit.loading import LoadingContext


class Outer:
    class Inner:
        pass


@pytest.fixture
def context():
    return LoadingContext()


def test_classes_load_as_themselves(context):
    assert context.load(Outer) is Outer


def test_builtin_names(context):
    assert context.load("int") is int
    assert context.load("dict") is dict


def test_dotted_import_paths(context):
    assert context.load("decimal.Decimal") is decimal.Decimal
    assert context.load("collections.OrderedDict") is collections.OrderedDict


def test_nested_classes(context):
    assert context.load(f"{__name__}.Outer.Inner") is Outer.Inner
    assert context.load(f"{__name__}:Outer.Inner") is Outer.Inner


def test_aliases_are_consulted_first():
    context = LoadingContext(types={"decimal.Decimal": Outer})

    assert context.load("decimal.Decimal") is Outer


@pytest.mark.parametrize(
    "name",
    [
        "NoSuchBuiltin",
        "no_such_package.Thing",
        "decimal.NoSuchThing",
        "no_such_package:Thing",
        f"{__name__}:Outer.Missing",
    ],
)
def test_unknown_names(context, name):
    with pytest.raises(ConfigurationTypeError, match="Type class could not be found"):
        context.load(name)


def test_names_must_refer_to_classes(context):
    with pytest.raises(ConfigurationTypeError, match="Type is not a class"):
        context.load("decimal.getcontext")


def test_default_context_has_default_collaborators():
    context = LoadingContext.default()

    assert isinstance(context.converters, ConverterRegistry)
    assert isinstance(context.introspector, Introspector)
    assert context.converters.can_convert(int)


def test_describe_uses_the_introspector():
    class Recording(Introspector):
        def __init__(self):
            self.described = []

        def describe(self, cls):
            self.described.append(cls)
            return super().describe(cls)

    introspector = Recording()
    descriptor = LoadingContext(introspector=introspector).describe(Outer)

    assert descriptor.cls is Outer
    assert introspector.described == [Outer]


@pytest.mark.parametrize(
    "source",
    [
        "raise RuntimeError('module init failed')\n",
        "def broken(:\n",
        "from recipekit import no_such_name\n",
    ],
)
@pytest.mark.parametrize("name", ["recipekit_broken_plugin.Thing", "recipekit_broken_plugin:Thing"])
def test_modules_failing_to_import(context, tmp_path, monkeypatch, source, name):
    (tmp_path / "recipekit_broken_plugin.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(ConfigurationTypeError, match="Failed to import module 'recipekit_broken_plugin'"):
        context.load(name)
