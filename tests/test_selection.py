import dataclasses
from dataclasses import dataclass
from typing import overload

import pytest

from recipekit.conversion import default_converters
from recipekit.domain import PropertyKey
from recipekit.errors import ConstructionError, SelectionAmbiguityError
from recipekit.introspection import Introspector, ParameterDescriptor
from recipekit.selection import extract_arguments, select_constructor, select_factory


def describe(cls):
    return Introspector().describe(cls)


class Endpoint:
    @overload
    def __init__(self, host: str, port: int) -> None: ...

    @overload
    def __init__(self, host: str, port: str) -> None: ...

    def __init__(self, host, port):
        self.host = host
        self.port = port


@dataclass
class Settings:
    name: str = "default"
    retries: int = 3


class Token:
    def __init__(self, value: int):
        self.value = value


class Connection:
    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout

    @classmethod
    def open(cls, url: str, timeout: float = 5.0) -> "Connection":
        return cls(url, timeout)

    @staticmethod
    def count() -> int:
        return 0

    @staticmethod
    def reset() -> None:
        pass

    def close(self) -> None:
        pass

    @staticmethod
    def _internal(url: str) -> "Connection":
        return Connection(url, 1.0)


class GuardedIntrospector(Introspector):
    """Describes every constructor as non-public."""

    def constructors(self, cls):
        for constructor in super().constructors(cls):
            yield dataclasses.replace(constructor, public=False)


def test_names_alone_must_match_a_single_constructor():
    with pytest.raises(SelectionAmbiguityError, match="found too many potentially valid constructors"):
        select_constructor(describe(Endpoint), ["host", "port"], [])


def test_names_alone_matching_no_constructor():
    with pytest.raises(SelectionAmbiguityError, match=r"unable to find a potentially valid constructor.*\(<a>, <b>, <c>\)"):
        select_constructor(describe(Endpoint), ["a", "b", "c"], [])


def test_types_pick_a_single_constructor():
    constructor, shape = select_constructor(describe(Endpoint), ["host", "port"], [str, int])

    assert tuple(p.annotation for p in shape) == (str, int)
    assert constructor.parameter_types == (str, int)


def test_primitive_slots_need_their_exact_type():
    with pytest.raises(ConstructionError, match=r"Unable to find a valid constructor.*\(str, bool\)"):
        select_constructor(describe(Endpoint), ["host", "port"], [str, bool])


def test_no_names_selects_the_no_argument_form():
    _, shape = select_constructor(describe(Settings), [], [])

    assert shape == ()


def test_defaults_offer_one_form_per_argument_count():
    _, shape = select_constructor(describe(Settings), ["name"], [])

    assert [p.name for p in shape] == ["name"]


def test_required_arguments_without_names_fail():
    with pytest.raises(ConstructionError, match=r"Unable to find a valid constructor.*Token\(\)"):
        select_constructor(describe(Token), [], [])


def test_non_public_constructor_is_reported():
    token = GuardedIntrospector().describe(Token)

    with pytest.raises(ConstructionError, match="Constructor is not public"):
        select_constructor(token, ["value"], [int])


def test_factory_selected_by_names():
    method, shape = select_factory(describe(Connection), "open", ["url"], [])

    assert method.attribute == "open"
    assert [p.name for p in shape] == ["url"]


def test_factory_selected_by_types():
    method, shape = select_factory(describe(Connection), "open", ["url", "timeout"], [str, float])

    assert [p.name for p in shape] == ["url", "timeout"]


@pytest.mark.parametrize(
    "name,message",
    [
        ("count", "Factory method returns a primitive type"),
        ("reset", "Factory method does not return anything"),
        ("close", "Factory method is not static"),
    ],
)
def test_unusable_factories(name, message):
    with pytest.raises(ConstructionError, match=message):
        select_factory(describe(Connection), name, [], [])


def test_non_public_factory_is_reported():
    with pytest.raises(ConstructionError, match="Factory method is not public"):
        select_factory(describe(Connection), "internal", ["url"], [str])


def test_missing_factory():
    with pytest.raises(ConstructionError, match=r"Unable to find a valid factory method.*Connection.build\(\)"):
        select_factory(describe(Connection), "build", [], [])


def test_names_alone_ignore_unusable_factories():
    with pytest.raises(SelectionAmbiguityError, match="unable to find a potentially valid factory method"):
        select_factory(describe(Connection), "count", ["x"], [])


@pytest.fixture
def server_shape():
    return (
        ParameterDescriptor("host", str),
        ParameterDescriptor("port", int),
        ParameterDescriptor("secure", bool),
        ParameterDescriptor("proxy", str),
    )


def test_arguments_are_taken_out_of_the_table(server_shape):
    values = {
        PropertyKey("host"): "example.org",
        PropertyKey("extra"): 1,
        PropertyKey("port"): "8443",
    }

    arguments = extract_arguments(
        server_shape, ["host", "port", "secure", "proxy"], values, default_converters()
    )

    assert arguments == ["example.org", 8443, False, None]
    assert [key.name for key in values] == ["extra"]


def test_invalid_argument_is_rejected(server_shape):
    values = {PropertyKey("port"): [8443]}

    with pytest.raises(
        ConstructionError,
        match="Invalid and non-convertible constructor parameter type: name=port, index=1, expected=int, actual=list",
    ):
        extract_arguments(server_shape, ["host", "port", "secure", "proxy"], values, default_converters())


def test_argument_names_must_cover_the_shape(server_shape):
    with pytest.raises(ConstructionError, match="Expected 4 argument names"):
        extract_arguments(server_shape, ["host"], {}, default_converters())


class Animal:
    pass


class Dog(Animal):
    pass


class Kennel:
    def __init__(self, dog: Dog):
        self.dog = dog


def test_non_public_constructor_accepting_a_narrower_type_is_reported():
    kennel = GuardedIntrospector().describe(Kennel)

    with pytest.raises(ConstructionError, match="Constructor is not public"):
        select_constructor(kennel, ["dog"], [Animal])


def test_non_public_constructor_accepting_an_unrelated_type_is_not_reported():
    kennel = GuardedIntrospector().describe(Kennel)

    with pytest.raises(ConstructionError, match="Unable to find a valid constructor"):
        select_constructor(kennel, ["dog"], [Token])
