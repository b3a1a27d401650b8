from abc import ABC, abstractmethod
from typing import ClassVar

import pytest

from recipekit.accessors import FieldMember, MethodMember, find_accessor, find_field, find_setter
from recipekit.domain import BindingMode, PropertyKey
from recipekit.errors import MissingAccessorError
from recipekit.introspection import Introspector


def describe(cls):
    return Introspector().describe(cls)


class Counter:
    count: int = 0

    def __init__(self):
        self.calls = []

    def set_count(self, count: int) -> None:
        self.calls.append(count)
        self.count = count


class NoArgSetter:
    def set_size(self) -> None:
        pass


class TwoArgSetter:
    def set_size(self, width: int, height: int) -> None:
        pass


class ReturningSetter:
    def set_size(self, size: int) -> int:
        return size


class AbstractSetter(ABC):
    @abstractmethod
    def set_size(self, size: int) -> None: ...


class StaticSetter:
    @staticmethod
    def set_size(size: int) -> None:
        pass


class PrivateSetter:
    def _set_size(self, size: int) -> None:
        self.size = size


class IntSetter:
    def set_size(self, size: int) -> None:
        self.size = size


class CamelCaseSetter:
    def setMaxSize(self, max_size: int) -> None:
        self.max_size = max_size


class MixedSetters:
    def set_size(self) -> None:
        pass

    def setSize(self, size: int) -> None:
        pass


class TiedSetters:
    def set_size(self, size: int) -> None:
        pass

    def setSize(self, size: float) -> None:
        pass


class Thermostat:
    def __init__(self):
        self._target = 0.0

    @property
    def target(self) -> float:
        return self._target

    @target.setter
    def target(self, value: float) -> None:
        self._target = value

    @property
    def reading(self) -> float:
        return 20.0


class Base:
    inherited: str = "base"


class Derived(Base):
    own: int = 0
    _hidden: int = 0
    shared: ClassVar[int] = 0


class PrivateFieldWithBadSetter:
    _size: int = 0

    def set_size(self) -> None:
        pass


def test_setter_is_found():
    member = find_setter(describe(IntSetter), "size", 5)

    assert isinstance(member, MethodMember)
    assert member.value_type is int


def test_camel_case_setter_is_found():
    member = find_setter(describe(CamelCaseSetter), "maxSize", 5)

    assert member.method.attribute == "setMaxSize"


def test_property_setter_is_found_and_assigned():
    thermostat = Thermostat()
    member = find_setter(describe(Thermostat), "target", 21.5)

    member.set_value(thermostat, 21.5)

    assert member.method.is_property
    assert thermostat.target == 21.5


def test_text_convertible_to_the_parameter_is_accepted():
    assert find_setter(describe(IntSetter), "size", "12").value_type is int


@pytest.mark.parametrize(
    "cls,value,level,message",
    [
        (NoArgSetter, 1, 1, "Setter takes no parameters"),
        (TwoArgSetter, 1, 1, "Setter takes more than one parameter"),
        (ReturningSetter, 1, 2, "Setter returns a value"),
        (AbstractSetter, 1, 3, "Setter is abstract"),
        (PrivateSetter, 1, 4, "Setter is not public"),
        (StaticSetter, 1, 4, "Setter is static"),
        (IntSetter, [1], 5, "list can not be assigned or converted to int"),
        (IntSetter, None, 6, "None can not be assigned to int"),
        (Thermostat, 1.0, 0, "Unable to find a valid setter method"),
    ],
)
def test_setter_rejections_are_scored(cls, value, level, message):
    with pytest.raises(MissingAccessorError, match=message) as excinfo:
        find_setter(describe(cls), "size", value)

    assert excinfo.value.match_level == level


def test_read_only_property_is_rejected():
    with pytest.raises(MissingAccessorError, match="Setter takes no parameters") as excinfo:
        find_setter(describe(Thermostat), "reading", 1.0)

    assert excinfo.value.match_level == 1


def test_private_setter_allowed_with_private_access():
    instance = PrivateSetter()
    member = find_setter(describe(PrivateSetter), "size", 3, allow_private=True)

    member.set_value(instance, 3)

    assert instance.size == 3


def test_closest_miss_is_reported():
    with pytest.raises(MissingAccessorError) as excinfo:
        find_setter(describe(MixedSetters), "size", [1])

    assert excinfo.value.match_level == 5
    assert "setSize" in excinfo.value.reason


def test_first_miss_wins_a_tie():
    with pytest.raises(MissingAccessorError) as excinfo:
        find_setter(describe(TiedSetters), "size", [1])

    assert excinfo.value.match_level == 5
    assert "set_size" in excinfo.value.reason
    assert "setSize" not in excinfo.value.reason


def test_empty_name_is_rejected():
    with pytest.raises(ValueError, match="empty"):
        find_setter(describe(IntSetter), "", 1)


def test_field_is_found_on_an_ancestor():
    member = find_field(describe(Derived), "inherited", "text")

    assert isinstance(member, FieldMember)
    assert member.field.owner is Base


@pytest.mark.parametrize(
    "name,value,level,message",
    [
        ("hidden", 1, 4, "Field is not public"),
        ("shared", 1, 4, "Field is static"),
        ("own", [1], 5, "list can not be assigned or converted to int"),
        ("own", None, 6, "None can not be assigned to int"),
        ("missing", 1, 0, "Unable to find a valid field"),
    ],
)
def test_field_rejections_are_scored(name, value, level, message):
    with pytest.raises(MissingAccessorError, match=message) as excinfo:
        find_field(describe(Derived), name, value)

    assert excinfo.value.match_level == level


def test_private_field_allowed_with_private_access():
    instance = Derived()
    member = find_field(describe(Derived), "hidden", 9, allow_private=True)

    member.set_value(instance, 9)

    assert instance._hidden == 9


def test_setter_is_preferred_over_a_field_of_the_same_name():
    member = find_accessor(describe(Counter), PropertyKey("count"), 5, field_fallback=True)

    assert isinstance(member, MethodMember)
    assert member.method.attribute == "set_count"


def test_fields_are_only_used_with_fallback():
    key = PropertyKey("own")

    with pytest.raises(MissingAccessorError):
        find_accessor(describe(Derived), key, 1)

    assert isinstance(find_accessor(describe(Derived), key, 1, field_fallback=True), FieldMember)


def test_fallback_reports_the_closer_failure():
    with pytest.raises(MissingAccessorError, match="Field is not public") as excinfo:
        find_accessor(describe(PrivateFieldWithBadSetter), PropertyKey("size"), 1, field_fallback=True)

    assert excinfo.value.match_level == 4


def test_fallback_tie_reports_the_setter_failure():
    with pytest.raises(MissingAccessorError, match="Unable to find a valid setter method"):
        find_accessor(describe(Derived), PropertyKey("missing"), 1, field_fallback=True)


def test_forced_setter_never_uses_fields():
    key = PropertyKey("own", BindingMode.FORCE_SETTER)

    with pytest.raises(MissingAccessorError):
        find_accessor(describe(Derived), key, 1, field_fallback=True)


def test_forced_field_skips_setters():
    member = find_accessor(describe(Counter), PropertyKey("count", BindingMode.FORCE_FIELD), 5)

    assert isinstance(member, FieldMember)
