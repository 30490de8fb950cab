from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import NamedTuple, TypedDict, get_overloads, overload

import pytest

from deprecheck.marker import (
    MarkerRegistry,
    deprecated,
    get_deprecation_message,
    is_deprecated,
    qualified_name,
    registry,
)


def test_deprecated_returns_the_same_object():
    def func() -> int:
        return 1

    result = deprecated("Use other instead")(func)

    assert result is func
    assert func() == 1
    assert func.__deprecated__ == "Use other instead"
    assert registry.lookup(func).message == "Use other instead"


def test_class_marker_is_not_inherited():
    @deprecated("Use Spam instead")
    class Ham:
        pass

    class Child(Ham):
        pass

    assert get_deprecation_message(Ham) == "Use Spam instead"
    assert get_deprecation_message(Child) is None
    assert is_deprecated(Ham)
    assert not is_deprecated(Child)


def test_marking_one_overload_leaves_the_others_alone():
    @overload
    @deprecated("Only str will be allowed")
    def foo(x: int) -> str: ...

    @overload
    def foo(x: str) -> str: ...

    def foo(x):
        return str(x)

    first, second = get_overloads(foo)
    assert first.__deprecated__ == "Only str will be allowed"
    assert not is_deprecated(second)
    assert not is_deprecated(foo)
    assert foo(3) == "3"


def test_named_tuple_and_typed_dict_can_be_marked():
    @deprecated("Use Point3D")
    class Point(NamedTuple):
        x: int
        y: int

    @deprecated("Use MovieV2")
    class Movie(TypedDict):
        title: str

    assert Point(1, 2).x == 1
    assert get_deprecation_message(Point) == "Use Point3D"
    assert get_deprecation_message(Movie) == "Use MovieV2"


@pytest.mark.parametrize("message", [42, None, b"bytes"])
def test_non_string_message_raises_type_error(message):
    with pytest.raises(TypeError):
        deprecated(message)


def test_first_marker_wins():
    def func():
        pass

    deprecated("first")(func)
    deprecated("second")(func)

    assert registry.lookup(func).message == "first"
    assert func.__deprecated__ == "first"


def test_objects_without_attribute_support_use_the_registry():
    class Slotted:
        __slots__ = ()

    obj = Slotted()
    assert deprecated("slots only")(obj) is obj
    assert not hasattr(obj, "__deprecated__")
    assert get_deprecation_message(obj) == "slots only"


def test_registry_is_keyed_by_identity():
    local = MarkerRegistry()

    def one():
        pass

    def two():
        pass

    marker = local.record(one, "gone")
    assert marker.target == qualified_name(one)
    assert one in local
    assert two not in local
    assert local.lookup(two) is None
    assert len(local) == 1
    assert [item.message for item in local] == ["gone"]

    local.record(two, "also gone")
    assert sorted(item.message for item in local) == ["also gone", "gone"]


def test_package_import_does_not_load_the_analyzer():
    root = Path(__file__).resolve().parents[1]
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [str(root), os.environ.get("PYTHONPATH")]))}
    code = (
        "import sys\n"
        "from deprecheck import deprecated\n"
        "loaded = {'tree_sitter', 'networkx', 'deprecheck.pipeline'} & set(sys.modules)\n"
        "assert not loaded, loaded\n"
    )
    completed = subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True)
    assert completed.returncode == 0, completed.stderr
