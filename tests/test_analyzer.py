from __future__ import annotations

from deprecheck.analyzer import UsageAnalyzer
from deprecheck.config import AnalyzerConfig
from deprecheck.models import ReferenceKind, Severity
from deprecheck.pipeline import analyze_sources

SHOP = '''from typing_extensions import deprecated

@deprecated("Use Spam instead")
class Ham:
    pass

class Spam:
    pass
'''

OVERLOADED = '''from typing import overload
from typing_extensions import deprecated

@overload
@deprecated("Only str will be allowed")
def foo(x: int) -> str: ...
@overload
def foo(x: str) -> str: ...
def foo(x):
    return str(x)
'''


def check(files, **config):
    return analyze_sources(files, AnalyzerConfig(**config)).diagnostics


def summary(diagnostics):
    return [(d.location.path, d.location.line, d.reference_kind, d.message) for d in diagnostics]


def test_imported_class_is_reported_at_import_and_call():
    diagnostics = check({"shop.py": SHOP, "main.py": "from shop import Ham, Spam\n\nHam()\nSpam()\n"})

    assert summary(diagnostics) == [
        ("main.py", 1, ReferenceKind.IMPORT, "Use Spam instead"),
        ("main.py", 3, ReferenceKind.CALL, "Use Spam instead"),
    ]
    assert diagnostics[0].location.column == 18
    assert diagnostics[0].target == "def:shop:Ham"
    assert all(d.severity is Severity.WARNING and d.code == "deprecated" for d in diagnostics)


def test_module_attribute_access():
    diagnostics = check({"shop.py": SHOP, "main.py": "import shop\n\nx = shop.Ham\ny = shop.Spam\n"})

    assert summary(diagnostics) == [("main.py", 3, ReferenceKind.ATTRIBUTE, "Use Spam instead")]


def test_only_the_selected_overload_is_reported():
    source = OVERLOADED + "\nfoo(1)\nfoo('a')\nfoo\n"
    diagnostics = check({"mod.py": source})

    assert summary(diagnostics) == [("mod.py", 12, ReferenceKind.OVERLOAD, "Only str will be allowed")]
    assert diagnostics[0].target == "def:mod:foo#0"


def test_ambiguous_overload_call_is_silent():
    source = OVERLOADED + "\ndef run(value):\n    return foo(value)\n"
    assert check({"mod.py": source}) == []


def test_overload_from_another_module():
    main = "from mod import foo\nfoo(42)\nfoo(x=1)\nfoo('ok')\n"
    diagnostics = check({"mod.py": OVERLOADED, "main.py": main})

    assert summary(diagnostics) == [
        ("main.py", 2, ReferenceKind.OVERLOAD, "Only str will be allowed"),
        ("main.py", 3, ReferenceKind.OVERLOAD, "Only str will be allowed"),
    ]


def test_wildcard_import_reference():
    lib = 'from typing_extensions import deprecated\n\n@deprecated("old api")\ndef old():\n    pass\n'
    diagnostics = check({"lib.py": lib, "app.py": "from lib import *\n\nold()\n"})

    assert summary(diagnostics) == [("app.py", 3, ReferenceKind.WILDCARD_IMPORT, "old api")]


def test_wildcard_import_respects_dunder_all():
    lib = (
        'from typing_extensions import deprecated\n'
        '__all__ = ["new"]\n'
        '@deprecated("old api")\n'
        'def old():\n'
        '    pass\n'
        'def new():\n'
        '    pass\n'
    )
    assert check({"lib.py": lib, "app.py": "from lib import *\n\nold()\nnew()\n"}) == []


def test_self_use_before_and_after_definition():
    source = '''from typing_extensions import deprecated

class Foo:
    def before(self):
        return self.old()

    @deprecated("old is gone")
    def old(self):
        return 1

    def after(self):
        return self.old()
'''
    diagnostics = check({"foo.py": source})

    assert summary(diagnostics) == [
        ("foo.py", 5, ReferenceKind.CALL, "old is gone"),
        ("foo.py", 12, ReferenceKind.CALL, "old is gone"),
    ]


def test_instance_and_class_attribute_access():
    source = '''from typing_extensions import deprecated

class Foo:
    @deprecated("method is old")
    def old(self):
        pass

    @staticmethod
    @deprecated("static is old")
    def stale():
        pass

def use(foo: Foo):
    foo.old()

Foo().old
Foo.old
Foo.stale()
'''
    diagnostics = check({"foo.py": source})

    assert summary(diagnostics) == [
        ("foo.py", 14, ReferenceKind.CALL, "method is old"),
        ("foo.py", 16, ReferenceKind.ATTRIBUTE, "method is old"),
        ("foo.py", 17, ReferenceKind.ATTRIBUTE, "method is old"),
        ("foo.py", 18, ReferenceKind.CALL, "static is old"),
    ]


def test_inherited_method_and_return_annotation():
    source = '''from typing_extensions import deprecated

class Base:
    @deprecated("use run")
    def start(self):
        pass

class Child(Base):
    pass

def make() -> Child:
    return Child()

make().start()
'''
    diagnostics = check({"jobs.py": source})

    assert summary(diagnostics) == [("jobs.py", 14, ReferenceKind.CALL, "use run")]
    assert diagnostics[0].target == "def:jobs:Base.start"


def test_deprecated_constructor_overload():
    source = '''from typing import overload
from typing_extensions import deprecated

class Box:
    @overload
    @deprecated("Pass a str")
    def __init__(self, x: int) -> None: ...
    @overload
    def __init__(self, x: str) -> None: ...
    def __init__(self, x):
        self.x = x

Box(1)
Box("a")
'''
    diagnostics = check({"box.py": source})

    assert summary(diagnostics) == [("box.py", 13, ReferenceKind.OVERLOAD, "Pass a str")]
    assert diagnostics[0].target == "def:box:Box.__init__#0"


def test_deprecated_init_reports_construction():
    source = '''from typing_extensions import deprecated

class Box:
    @deprecated("Use Box.create")
    def __init__(self):
        pass

Box()
'''
    diagnostics = check({"box.py": source})

    assert summary(diagnostics) == [("box.py", 8, ReferenceKind.CALL, "Use Box.create")]


def test_unmarked_and_unresolved_references_are_silent():
    source = '''import os
from typing_extensions import deprecated
from missing import Thing

@deprecated(some_variable)
def dynamic():
    pass

os.path.join("a", "b")
Thing().run()
dynamic()
'''
    assert check({"mod.py": source, "shop.py": SHOP}) == []


def test_ambiguous_binding_is_not_resolved():
    main = '''import sys

if sys.version_info >= (3, 12):
    from shop import Ham
else:
    Ham = None

Ham()
'''
    diagnostics = check({"shop.py": SHOP, "main.py": main})

    assert summary(diagnostics) == [("main.py", 4, ReferenceKind.IMPORT, "Use Spam instead")]


def test_suppression_comments():
    main = '''from shop import Ham  # type: ignore

Ham()  # type: ignore[deprecated]
Ham()  # pyright: ignore[reportDeprecated]
Ham()  # deprecheck: ignore
Ham()  # type: ignore[attr-defined]
Ham()
'''
    diagnostics = check({"shop.py": SHOP, "main.py": main})

    assert [d.location.line for d in diagnostics] == [6, 7]


def test_ignore_file_comment():
    main = "# deprecheck: ignore-file\nfrom shop import Ham\nHam()\n"
    assert check({"shop.py": SHOP, "main.py": main}) == []


def test_severity_setting():
    files = {"shop.py": SHOP, "main.py": "from shop import Ham\n"}

    assert [d.severity for d in check(files, severity=Severity.ERROR)] == [Severity.ERROR]
    assert check(files, severity=Severity.IGNORE) == []


def test_custom_decorator_names():
    source = '''import legacy

@legacy.deprecated("custom marker")
def old():
    pass

old()
'''
    assert check({"mod.py": source}) == []
    diagnostics = check({"mod.py": source}, decorators=("legacy.deprecated",))
    assert summary(diagnostics) == [("mod.py", 7, ReferenceKind.CALL, "custom marker")]


def test_stub_takes_precedence():
    files = {
        "pkg/__init__.py": "",
        "pkg/mod.py": "def f():\n    pass\n",
        "pkg/mod.pyi": 'from typing_extensions import deprecated\n\n@deprecated("stub says no")\ndef f() -> None: ...\n',
        "main.py": "from pkg.mod import f\nf()\n",
    }
    diagnostics = check(files)

    assert summary(diagnostics) == [
        ("main.py", 1, ReferenceKind.IMPORT, "stub says no"),
        ("main.py", 2, ReferenceKind.CALL, "stub says no"),
    ]


def test_relative_imports():
    files = {
        "pkg/__init__.py": "",
        "pkg/a.py": 'from typing_extensions import deprecated\n\n@deprecated("a.old")\ndef old():\n    pass\n',
        "pkg/b.py": "from .a import old\nfrom . import a\n\nold()\na.old()\n",
    }
    diagnostics = check(files)

    assert summary(diagnostics) == [
        ("pkg/b.py", 1, ReferenceKind.IMPORT, "a.old"),
        ("pkg/b.py", 4, ReferenceKind.CALL, "a.old"),
        ("pkg/b.py", 5, ReferenceKind.CALL, "a.old"),
    ]


def test_uses_are_recorded_in_the_graph():
    result = analyze_sources({"shop.py": SHOP, "main.py": "from shop import Ham\nHam()\n"})
    graph = result.symbols.graph

    edge = graph.edges["module:main", "def:shop:Ham"]
    assert edge["type"] == "USES_DEPRECATED"
    assert edge["count"] == 2


def test_deprecated_property_getter_with_setter():
    source = '''from typing_extensions import deprecated

class C:
    @property
    @deprecated("getter old")
    def x(self):
        return 1

    @x.setter
    def x(self, value):
        pass

C().x
'''
    diagnostics = check({"mod.py": source})

    assert summary(diagnostics) == [("mod.py", 13, ReferenceKind.ATTRIBUTE, "getter old")]
    assert diagnostics[0].location.column == 5


def test_marker_on_one_conditional_branch():
    source = '''import sys
from typing_extensions import deprecated

if sys.version_info >= (3, 12):
    @deprecated("old on 3.12")
    def f():
        pass
else:
    def f():
        pass

f()
'''
    diagnostics = check({"mod.py": source})

    assert summary(diagnostics) == [("mod.py", 12, ReferenceKind.CALL, "old on 3.12")]


def test_decorator_instance_created_before_use():
    source = '''from typing_extensions import deprecated

todo = deprecated("This needs to be implemented!!")

@todo
class ClassA: ...

ClassA()

@todo
def func1() -> None:
    pass

func1()

def func2() -> None:
    pass

func2()
'''
    diagnostics = check({"mod.py": source})

    assert summary(diagnostics) == [
        ("mod.py", 8, ReferenceKind.CALL, "This needs to be implemented!!"),
        ("mod.py", 14, ReferenceKind.CALL, "This needs to be implemented!!"),
    ]


def test_each_chain_part_is_reported_at_its_own_column():
    diagnostics = check({"shop.py": SHOP, "main.py": "import shop\nshop.Ham.x\nvalue = (shop\n    .Ham)\n"})

    assert [(d.location.line, d.location.column, d.reference_kind) for d in diagnostics] == [
        (2, 6, ReferenceKind.ATTRIBUTE),
        (4, 6, ReferenceKind.ATTRIBUTE),
    ]


def test_string_annotations_are_references():
    main = 'import shop\nfrom shop import Ham\n\ndef use(item: "Ham") -> "shop.Ham":\n    return item\n'
    diagnostics = check({"shop.py": SHOP, "main.py": main})

    assert [(d.location.line, d.location.column, d.reference_kind) for d in diagnostics] == [
        (2, 18, ReferenceKind.IMPORT),
        (4, 16, ReferenceKind.NAME),
        (4, 31, ReferenceKind.ATTRIBUTE),
    ]


def test_same_module_name_in_two_directories():
    files = {
        "a/util.py": "def other():\n    pass\n",
        "b/util.py": 'from typing_extensions import deprecated\n\n@deprecated("old")\ndef old():\n    pass\n\nold()\n',
    }
    diagnostics = check(files)

    assert summary(diagnostics) == [("b/util.py", 7, ReferenceKind.CALL, "old")]
    assert diagnostics[0].target == "def:util@b/util.py:old"


def test_iter_references_include_unmarked_definitions():
    result = analyze_sources({"shop.py": SHOP, "main.py": "from shop import Spam\n\nSpam()\n"})
    main = next(source for source in result.symbols.sources if source.module == "main")
    references = list(UsageAnalyzer(result.symbols).iter_references(main))

    assert [(r.location.line, r.reference_kind, r.resolved_target, r.name) for r in references] == [
        (1, ReferenceKind.IMPORT, "def:shop:Spam", "Spam"),
        (3, ReferenceKind.CALL, "def:shop:Spam", "Spam"),
    ]
