"""Extract scopes, definitions and name uses from a Python Tree-sitter AST."""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass, field

from .file_walker import is_package_file, module_name_for
from .log import get_logger
from .models import (
    KEYWORD_ONLY,
    POSITIONAL_ONLY,
    POSITIONAL_OR_KEYWORD,
    VAR_KEYWORD,
    VAR_POSITIONAL,
    ArgExpr,
    Binding,
    CallSite,
    Decorator,
    Definition,
    Location,
    NameUse,
    Parameter,
    ReferenceKind,
    Scope,
)

logger = get_logger(__name__)

# marks "the result of calling the preceding chain" inside a name chain
CALL_PART = "()"

COMPREHENSION_TYPES = {
    "list_comprehension",
    "set_comprehension",
    "dictionary_comprehension",
    "generator_expression",
}
TARGET_CONTAINERS = {
    "pattern_list",
    "tuple_pattern",
    "list_pattern",
    "tuple",
    "list",
    "expression_list",
    "parenthesized_expression",
    "as_pattern_target",
    "list_splat_pattern",
}
CONTAINER_KINDS = {
    "list": "list",
    "list_comprehension": "list",
    "dictionary": "dict",
    "dictionary_comprehension": "dict",
    "set": "set",
    "set_comprehension": "set",
    "tuple": "tuple",
    "generator_expression": "generator",
    "lambda": "function",
}
SKIPPED_TYPES = {
    "comment",
    "dotted_name",
    "aliased_import",
    "parameters",
    "lambda_parameters",
    "nonlocal_statement",
    "future_import_statement",
    "escape_sequence",
}
# first parameter of these methods is the class even without @classmethod
IMPLICIT_CLASSMETHODS = {"__new__", "__init_subclass__", "__class_getitem__"}
# ``@name.setter`` and friends extend the property being defined
PROPERTY_ACCESSORS = {"setter", "getter", "deleter"}

_TYPE_IGNORE = re.compile(r"#\s*type:\s*ignore(?:\[(?P<codes>[^\]]*)\])?")
_PYRIGHT_IGNORE = re.compile(r"#\s*pyright:\s*ignore(?:\[(?P<codes>[^\]]*)\])?")
_DEPRECHECK_IGNORE = re.compile(r"#\s*deprecheck:\s*ignore(?P<file>-file)?\b")


@dataclass
class ExtractedModule:
    module: str
    path: str | None = None
    is_stub: bool = False
    is_package: bool = False
    scopes: list[Scope] = field(default_factory=list)
    definitions: list[Definition] = field(default_factory=list)
    uses: list[NameUse] = field(default_factory=list)
    all_names: list[str] | None = None
    suppressed_lines: set[int] = field(default_factory=set)
    ignore_file: bool = False

    def bindings(self, scope_id: int, name: str) -> list[Binding]:
        return self.scopes[scope_id].bindings.get(name, [])


def extract_module(parsed, module: str | None = None, is_package: bool | None = None) -> ExtractedModule:
    path = parsed.path
    if module is None:
        module = module_name_for(path) if path else "__main__"
    if is_package is None:
        is_package = bool(path) and is_package_file(path)

    result = ExtractedModule(
        module=module,
        path=path,
        is_stub=parsed.is_stub,
        is_package=is_package,
    )
    walker = _Walker(result, parsed.source_bytes)
    root = parsed.tree.root_node
    walker.walk(root, 0)
    walker.collect_comments(root)
    return result


class _Walker:
    def __init__(self, result: ExtractedModule, source_bytes: bytes) -> None:
        self.result = result
        self.source_bytes = source_bytes
        self._new_scope("module", "", None)

    def walk(self, node, scope_id: int) -> None:
        node_type = node.type

        if node_type == "decorated_definition":
            self._decorated(node, scope_id)
            return
        if node_type in ("function_definition", "class_definition"):
            self._definition(node, scope_id, [])
            return
        if node_type == "import_statement":
            self._import(node, scope_id)
            return
        if node_type == "import_from_statement":
            self._import_from(node, scope_id)
            return
        if node_type == "call":
            self._call(node, scope_id)
            return
        if node_type == "attribute":
            self._attribute(node, scope_id)
            return
        if node_type == "identifier":
            self._use((self._text(node),), node, scope_id, ReferenceKind.NAME)
            return
        if node_type == "keyword_argument":
            self._walk_field(node, "value", scope_id)
            return
        if node_type in ("assignment", "augmented_assignment"):
            self._assignment(node, scope_id)
            return
        if node_type == "global_statement":
            scope = self.result.scopes[scope_id]
            for child in node.named_children:
                if child.type == "identifier":
                    scope.globals.add(self._text(child))
            return
        if node_type in ("for_statement", "for_in_clause"):
            left = node.child_by_field_name("left")
            if left is not None:
                self._bind_targets(left, scope_id)
            for child in node.named_children:
                if left is None or not _same_node(child, left):
                    self.walk(child, scope_id)
            return
        if node_type == "named_expression":
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind_targets(name, scope_id)
            self._walk_field(node, "value", scope_id)
            return
        if node_type == "as_pattern":
            alias = node.child_by_field_name("alias")
            for child in node.named_children:
                if alias is not None and _same_node(child, alias):
                    self._bind_targets(child, scope_id)
                else:
                    self.walk(child, scope_id)
            return
        if node_type == "except_clause":
            after_as = False
            for child in node.children:
                if child.type == "as":
                    after_as = True
                    continue
                if after_as and child.type == "identifier":
                    self._bind_targets(child, scope_id)
                elif child.is_named:
                    self.walk(child, scope_id)
                after_as = False
            return
        if node_type == "lambda":
            self._lambda(node, scope_id)
            return
        if node_type in COMPREHENSION_TYPES:
            self._comprehension(node, scope_id)
            return
        if node_type == "string":
            for child in node.named_children:
                if child.type == "interpolation":
                    for inner in child.named_children:
                        self.walk(inner, scope_id)
            return
        if node_type == "type_alias_statement":
            self._walk_field(node, "right", scope_id)
            return
        if node_type in SKIPPED_TYPES:
            return

        for child in node.named_children:
            self.walk(child, scope_id)

    def collect_comments(self, node) -> None:
        if node.type == "comment":
            self._suppression(node)
            return
        for child in node.children:
            self.collect_comments(child)

    # definitions

    def _decorated(self, node, scope_id: int) -> None:
        decorators = [child for child in node.named_children if child.type == "decorator"]
        for decorator in decorators:
            chain = self._chain(_first_named(decorator))
            if chain and len(chain) == 2 and chain[1] in PROPERTY_ACCESSORS:
                continue
            for child in decorator.named_children:
                self.walk(child, scope_id)
        definition = node.child_by_field_name("definition")
        if definition is not None:
            self._definition(definition, scope_id, decorators)

    def _definition(self, node, scope_id: int, decorator_nodes: list) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = self._text(name_node)
        owner = self.result.scopes[scope_id]
        qualname = f"{owner.qualname}.{name}" if owner.qualname else name
        decorators = tuple(
            info
            for info in (self._decorator_info(item) for item in decorator_nodes)
            if info is not None
        )

        if node.type == "class_definition":
            bases = self._class_bases(node, scope_id)
            body_scope = self._new_scope("class", qualname, scope_id)
            self.result.definitions.append(
                Definition(
                    kind="class",
                    name=name,
                    qualname=qualname,
                    scope_id=scope_id,
                    body_scope_id=body_scope,
                    location=self._location(name_node),
                    decorators=decorators,
                    bases=tuple(bases),
                )
            )
            self._bind(scope_id, name, Binding("definition", target=qualname))
            self._walk_field(node, "body", body_scope)
            return

        parameters = node.child_by_field_name("parameters")
        params = self._parameters(parameters)
        if parameters is not None:
            for child in parameters.named_children:
                annotation = child.child_by_field_name("type")
                if annotation is not None:
                    self._walk_annotation(annotation, scope_id)
                self._walk_field(child, "value", scope_id)

        returns = None
        returns_node = node.child_by_field_name("return_type")
        if returns_node is not None:
            self._walk_annotation(returns_node, scope_id)
            returns = self._annotation_chain(returns_node)

        body_scope = self._new_scope("function", qualname, scope_id)
        self.result.definitions.append(
            Definition(
                kind="function",
                name=name,
                qualname=qualname,
                scope_id=scope_id,
                body_scope_id=body_scope,
                location=self._location(name_node),
                decorators=decorators,
                params=params,
                returns=returns,
            )
        )
        self._bind(scope_id, name, Binding("definition", target=qualname))
        self._bind_parameters(parameters, name, decorators, scope_id, body_scope)
        self._walk_field(node, "body", body_scope)

    def _decorator_info(self, decorator) -> Decorator | None:
        expression = next(
            (child for child in decorator.named_children if child.type != "comment"), None
        )
        if expression is None:
            return None
        if expression.type == "call":
            chain = self._chain(expression.child_by_field_name("function"))
            if not chain:
                return None
            return Decorator(name=chain, message=self._call_message(expression), is_call=True)
        chain = self._chain(expression)
        return Decorator(name=chain) if chain else None

    def _call_message(self, call) -> str | None:
        """The first positional argument of ``call`` when it is a str literal."""
        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            return None
        positional = [
            child
            for child in arguments.named_children
            if child.type not in ("keyword_argument", "comment", "list_splat", "dictionary_splat")
        ]
        return self._string_literal(positional[0]) if positional else None

    def _class_bases(self, node, scope_id: int) -> list[tuple[str, ...]]:
        bases: list[tuple[str, ...]] = []
        superclasses = node.child_by_field_name("superclasses")
        if superclasses is None:
            return bases
        for child in superclasses.named_children:
            if child.type == "keyword_argument":
                self._walk_field(child, "value", scope_id)
                continue
            target = child.child_by_field_name("value") if child.type == "subscript" else child
            chain = self._chain(target)
            if chain and CALL_PART not in chain:
                bases.append(chain)
            self.walk(child, scope_id)
        return bases

    def _parameters(self, parameters) -> tuple[Parameter, ...] | None:
        if parameters is None:
            return ()
        try:
            module = ast.parse(f"def _{self._text(parameters)}: pass")
        except SyntaxError:
            logger.debug("unparseable signature at %s", self._location(parameters))
            return None
        arguments = module.body[0].args

        params: list[Parameter] = []
        positional = [*arguments.posonlyargs, *arguments.args]
        first_default = len(positional) - len(arguments.defaults)
        for index, arg in enumerate(positional):
            kind = POSITIONAL_ONLY if index < len(arguments.posonlyargs) else POSITIONAL_OR_KEYWORD
            params.append(
                Parameter(arg.arg, kind, _unparse(arg.annotation), index >= first_default)
            )
        if arguments.vararg is not None:
            params.append(
                Parameter(arguments.vararg.arg, VAR_POSITIONAL, _unparse(arguments.vararg.annotation))
            )
        for arg, default in zip(arguments.kwonlyargs, arguments.kw_defaults):
            params.append(
                Parameter(arg.arg, KEYWORD_ONLY, _unparse(arg.annotation), default is not None)
            )
        if arguments.kwarg is not None:
            params.append(
                Parameter(arguments.kwarg.arg, VAR_KEYWORD, _unparse(arguments.kwarg.annotation))
            )
        return tuple(params)

    def _bind_parameters(
        self,
        parameters,
        function_name: str,
        decorators: tuple[Decorator, ...],
        owner_scope: int,
        body_scope: int,
    ) -> None:
        if parameters is None:
            return
        owner = self.result.scopes[owner_scope]
        decorator_names = {decorator.name[-1] for decorator in decorators}
        first = True
        for child in parameters.named_children:
            if child.type in ("keyword_separator", "positional_separator", "comment"):
                continue
            name = self._parameter_name(child)
            if name is None:
                continue
            splat = _is_splat(child)
            if first and not splat and owner.kind == "class" and "staticmethod" not in decorator_names:
                kind = "cls"
                if "classmethod" not in decorator_names and function_name not in IMPLICIT_CLASSMETHODS:
                    kind = "self"
                self._bind(body_scope, name, Binding(kind, target=owner.qualname))
            else:
                annotation = child.child_by_field_name("type")
                chain = None if splat or annotation is None else self._annotation_chain(annotation)
                if chain:
                    self._bind(body_scope, name, Binding("annotated", value=chain))
                else:
                    self._bind(body_scope, name, Binding("opaque"))
            first = False

    def _parameter_name(self, node) -> str | None:
        if node.type == "identifier":
            return self._text(node)
        if node.type in ("list_splat_pattern", "dictionary_splat_pattern", "typed_parameter"):
            for child in node.named_children:
                if child.type in ("identifier", "list_splat_pattern", "dictionary_splat_pattern"):
                    return self._parameter_name(child)
            return None
        name = node.child_by_field_name("name")
        return self._text(name) if name is not None else None

    def _lambda(self, node, scope_id: int) -> None:
        owner = self.result.scopes[scope_id]
        qualname = f"{owner.qualname}.<lambda>" if owner.qualname else "<lambda>"
        lambda_scope = self._new_scope("function", qualname, scope_id)
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            for child in parameters.named_children:
                self._walk_field(child, "value", scope_id)
                name = self._parameter_name(child)
                if name is not None:
                    self._bind(lambda_scope, name, Binding("opaque"))
        self._walk_field(node, "body", lambda_scope)

    def _comprehension(self, node, scope_id: int) -> None:
        owner = self.result.scopes[scope_id]
        qualname = f"{owner.qualname}.<comprehension>" if owner.qualname else "<comprehension>"
        inner_scope = self._new_scope("function", qualname, scope_id)
        first_clause = True
        for child in node.named_children:
            if child.type == "for_in_clause":
                left = child.child_by_field_name("left")
                if left is not None:
                    self._bind_targets(left, inner_scope)
                # the outermost iterable is evaluated in the enclosing scope
                iterable_scope = scope_id if first_clause else inner_scope
                for part in child.named_children:
                    if left is None or not _same_node(part, left):
                        self.walk(part, iterable_scope)
                first_clause = False
            else:
                self.walk(child, inner_scope)

    # imports

    def _import(self, node, scope_id: int) -> None:
        for name_node in node.children_by_field_name("name"):
            if name_node.type == "aliased_import":
                dotted = self._text(name_node.child_by_field_name("name"))
                alias = self._text(name_node.child_by_field_name("alias"))
                self._bind(scope_id, alias, Binding("module", target=dotted))
            else:
                head = self._text(name_node).split(".")[0]
                self._bind(scope_id, head, Binding("module", target=head))

    def _import_from(self, node, scope_id: int) -> None:
        module_node = node.child_by_field_name("module_name")
        if module_node is None:
            return
        module = self._absolute_module(module_node)
        wildcard = any(child.type == "wildcard_import" for child in node.children)

        if wildcard:
            if module is not None:
                self.result.scopes[scope_id].star_imports.append(module)
            return

        for name_node in node.children_by_field_name("name"):
            if name_node.type == "aliased_import":
                imported_node = name_node.child_by_field_name("name")
                alias = self._text(name_node.child_by_field_name("alias"))
            else:
                imported_node = name_node
                alias = self._text(name_node)
            imported = self._text(imported_node)
            if module is None:
                self._bind(scope_id, alias, Binding("opaque"))
                continue
            self._bind(scope_id, alias, Binding("from", target=module, name=imported))
            self._use(
                (imported,),
                imported_node,
                scope_id,
                ReferenceKind.IMPORT,
                import_from=module,
            )

    def _absolute_module(self, module_node) -> str | None:
        if module_node.type == "dotted_name":
            return self._text(module_node)

        prefix = ""
        name = None
        for child in module_node.children:
            if child.type == "import_prefix":
                prefix = self._text(child)
            elif child.type == "dotted_name":
                name = self._text(child)

        level = prefix.count(".")
        module_parts = self.result.module.split(".")
        package = module_parts if self.result.is_package else module_parts[:-1]
        if level - 1 > len(package):
            logger.debug("relative import beyond top-level package in %s", self.result.module)
            return None
        base = package[: len(package) - (level - 1)]
        if name:
            base = [*base, name]
        return ".".join(base) or None

    # expressions

    def _call(self, node, scope_id: int) -> None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        chain = self._chain(function)
        if chain:
            self._use(
                chain,
                self._name_node(function),
                scope_id,
                ReferenceKind.CALL,
                call=self._call_site(arguments),
                locations=self._chain_locations(function),
            )
            self._walk_chain_bases(function, scope_id)
        elif function is not None:
            self.walk(function, scope_id)
        if arguments is not None:
            for child in arguments.named_children:
                self.walk(child, scope_id)

    def _attribute(self, node, scope_id: int) -> None:
        chain = self._chain(node)
        obj = node.child_by_field_name("object")
        if chain:
            self._use(
                chain,
                self._name_node(node),
                scope_id,
                ReferenceKind.ATTRIBUTE,
                locations=self._chain_locations(node),
            )
            self._walk_chain_bases(obj, scope_id)
        elif obj is not None:
            self.walk(obj, scope_id)

    def _walk_annotation(self, node, scope_id: int) -> None:
        self.walk(node, scope_id)
        inner = _first_named(node) if node.type == "type" else node
        if inner is None or inner.type != "string":
            return
        chain = self._annotation_chain(inner)
        if not chain:
            return
        # forward reference: point each part at its text inside the quotes
        content = next((child for child in inner.named_children if child.type == "string_content"), None)
        if content is None:
            return
        start = self._location(content)
        text = self._text(content)
        column = start.column + len(text) - len(text.lstrip())
        locations = []
        for part in chain:
            locations.append(Location(line=start.line, column=column, path=start.path))
            column += len(part) + 1
        self._use(chain, content, scope_id, ReferenceKind.NAME, locations=tuple(locations))

    def _walk_chain_bases(self, node, scope_id: int) -> None:
        if node is None:
            return
        if node.type == "attribute":
            self._walk_chain_bases(node.child_by_field_name("object"), scope_id)
        elif node.type == "call":
            self._call(node, scope_id)
        elif node.type == "parenthesized_expression":
            self._walk_chain_bases(_first_named(node), scope_id)

    def _assignment(self, node, scope_id: int) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        annotation = node.child_by_field_name("type")
        if right is not None:
            self.walk(right, scope_id)
        if annotation is not None:
            self._walk_annotation(annotation, scope_id)
        if left is None:
            return

        if node.type == "augmented_assignment":
            if (
                scope_id == 0
                and left.type == "identifier"
                and self._text(left) == "__all__"
                and self.result.all_names is not None
                and right is not None
            ):
                self.result.all_names.extend(self._literal_names(right) or [])
            self.walk(left, scope_id)
            return

        value = right
        while value is not None and value.type == "assignment":
            value = value.child_by_field_name("right")

        if left.type != "identifier":
            self._bind_targets(left, scope_id)
            return

        name = self._text(left)
        if scope_id == 0 and name == "__all__" and value is not None:
            self.result.all_names = self._literal_names(value)
        if value is not None:
            message = self._call_message(value) if value.type == "call" else None
            self._bind_targets(left, scope_id, value=self._chain(value), message=message)
            return
        chain = self._annotation_chain(annotation) if annotation is not None else None
        if chain:
            self._bind(scope_id, name, Binding("annotated", value=chain))
        else:
            self._bind(scope_id, name, Binding("opaque"))

    def _bind_targets(
        self,
        node,
        scope_id: int,
        value: tuple[str, ...] | None = None,
        message: str | None = None,
    ) -> None:
        if node.type == "identifier":
            binding = Binding("value", value=value, message=message) if value else Binding("opaque")
            self._bind(scope_id, self._text(node), binding)
        elif node.type in TARGET_CONTAINERS:
            for child in node.named_children:
                self._bind_targets(child, scope_id)
        elif node.type in ("attribute", "subscript"):
            self.walk(node, scope_id)

    def _call_site(self, arguments) -> CallSite:
        if arguments is None:
            return CallSite()
        if arguments.type == "generator_expression":
            return CallSite(args=(ArgExpr(kind="generator"),))

        args: list[ArgExpr] = []
        keywords: list[tuple[str, ArgExpr]] = []
        star = double_star = False
        for child in arguments.named_children:
            if child.type == "comment":
                continue
            if child.type == "list_splat":
                star = True
            elif child.type == "dictionary_splat":
                double_star = True
            elif child.type == "keyword_argument":
                name = child.child_by_field_name("name")
                value = child.child_by_field_name("value")
                if name is not None and value is not None:
                    keywords.append((self._text(name), self._arg_expr(value)))
            else:
                args.append(self._arg_expr(child))
        return CallSite(
            args=tuple(args),
            keywords=tuple(keywords),
            star=star,
            double_star=double_star,
        )

    def _arg_expr(self, node) -> ArgExpr:
        node_type = node.type
        if node_type == "parenthesized_expression":
            inner = _first_named(node)
            return self._arg_expr(inner) if inner is not None else ArgExpr()
        if node_type in ("string", "concatenated_string"):
            try:
                value = ast.literal_eval(f"({self._text(node)})")
            except (ValueError, SyntaxError):
                # f-strings are str but have no literal value
                return ArgExpr(kind="str")
            kind = "bytes" if isinstance(value, bytes) else "str"
            return ArgExpr(kind=kind, literal=value, has_literal=True)
        if node_type in ("integer", "float", "unary_operator"):
            try:
                value = ast.literal_eval(self._text(node))
            except (ValueError, SyntaxError):
                return ArgExpr()
            return ArgExpr(kind=type(value).__name__, literal=value, has_literal=True)
        if node_type in ("true", "false"):
            return ArgExpr(kind="bool", literal=node_type == "true", has_literal=True)
        if node_type == "none":
            return ArgExpr(kind="None", literal=None, has_literal=True)
        if node_type in CONTAINER_KINDS:
            return ArgExpr(kind=CONTAINER_KINDS[node_type])
        chain = self._chain(node)
        if chain:
            return ArgExpr(chain=chain)
        return ArgExpr()

    # helpers

    def _chain(self, node) -> tuple[str, ...] | None:
        if node is None:
            return None
        node_type = node.type
        if node_type == "identifier":
            return (self._text(node),)
        if node_type == "attribute":
            base = self._chain(node.child_by_field_name("object"))
            attribute = node.child_by_field_name("attribute")
            if base is None or attribute is None:
                return None
            return (*base, self._text(attribute))
        if node_type == "call":
            base = self._chain(node.child_by_field_name("function"))
            return (*base, CALL_PART) if base else None
        if node_type == "parenthesized_expression":
            return self._chain(_first_named(node))
        return None

    def _chain_locations(self, node) -> tuple[Location, ...]:
        """Locations parallel to ``_chain(node)``; a call part reuses the callee's."""
        node_type = node.type
        if node_type == "identifier":
            return (self._location(node),)
        if node_type == "attribute":
            base = self._chain_locations(node.child_by_field_name("object"))
            return (*base, self._location(node.child_by_field_name("attribute")))
        if node_type == "call":
            base = self._chain_locations(node.child_by_field_name("function"))
            return (*base, base[-1]) if base else ()
        if node_type == "parenthesized_expression":
            inner = _first_named(node)
            return self._chain_locations(inner) if inner is not None else ()
        return ()

    def _annotation_chain(self, node) -> tuple[str, ...] | None:
        if node.type == "type":
            node = _first_named(node)
            if node is None:
                return None
        if node.type == "string":
            text = self._string_literal(node)
            if text and all(part.isidentifier() for part in text.strip().split(".")):
                return tuple(text.strip().split("."))
            return None
        chain = self._chain(node)
        if chain and CALL_PART not in chain:
            return chain
        return None

    def _name_node(self, node):
        if node.type == "attribute":
            return node.child_by_field_name("attribute") or node
        if node.type == "call":
            function = node.child_by_field_name("function")
            return self._name_node(function) if function is not None else node
        if node.type == "parenthesized_expression":
            inner = _first_named(node)
            return self._name_node(inner) if inner is not None else node
        return node

    def _string_literal(self, node) -> str | None:
        if node.type not in ("string", "concatenated_string"):
            return None
        try:
            value = ast.literal_eval(f"({self._text(node)})")
        except (ValueError, SyntaxError):
            return None
        return value if isinstance(value, str) else None

    def _literal_names(self, node) -> list[str] | None:
        try:
            value = ast.literal_eval(f"({self._text(node)})")
        except (ValueError, SyntaxError):
            return None
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            return list(value)
        return None

    def _suppression(self, node) -> None:
        text = self._text(node)
        line = node.start_point[0] + 1
        own = _DEPRECHECK_IGNORE.search(text)
        if own:
            if own.group("file"):
                self.result.ignore_file = True
            else:
                self.result.suppressed_lines.add(line)
            return
        for pattern, code in ((_TYPE_IGNORE, "deprecated"), (_PYRIGHT_IGNORE, "reportDeprecated")):
            match = pattern.search(text)
            if not match:
                continue
            codes = match.group("codes")
            if codes is None or code in {item.strip() for item in codes.split(",")}:
                self.result.suppressed_lines.add(line)
                return

    def _new_scope(self, kind: str, qualname: str, parent: int | None) -> int:
        scope = Scope(id=len(self.result.scopes), kind=kind, qualname=qualname, parent=parent)
        self.result.scopes.append(scope)
        return scope.id

    def _bind(self, scope_id: int, name: str, binding: Binding) -> None:
        scope = self.result.scopes[scope_id]
        if name in scope.globals:
            scope = self.result.scopes[0]
        scope.bindings.setdefault(name, []).append(binding)

    def _use(
        self,
        parts: tuple[str, ...],
        node,
        scope_id: int,
        kind: ReferenceKind,
        call: CallSite | None = None,
        import_from: str | None = None,
        locations: tuple[Location, ...] = (),
    ) -> None:
        report_from = 0
        for index, part in enumerate(parts):
            if part == CALL_PART:
                report_from = index + 1
        if len(locations) != len(parts):
            locations = ()
        self.result.uses.append(
            NameUse(
                parts=parts,
                location=locations[-1] if locations else self._location(node),
                scope_id=scope_id,
                kind=kind,
                call=call,
                report_from=report_from,
                import_from=import_from,
                part_locations=locations,
            )
        )

    def _walk_field(self, node, field_name: str, scope_id: int) -> None:
        child = node.child_by_field_name(field_name)
        if child is not None:
            self.walk(child, scope_id)

    def _location(self, node) -> Location:
        line, column = node.start_point
        return Location(line=line + 1, column=column + 1, path=self.result.path)

    def _text(self, node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _same_node(left, right) -> bool:
    return (
        left.type == right.type
        and left.start_byte == right.start_byte
        and left.end_byte == right.end_byte
    )


def _first_named(node):
    return next((child for child in node.named_children if child.type != "comment"), None)


def _is_splat(node) -> bool:
    if node.type in ("list_splat_pattern", "dictionary_splat_pattern"):
        return True
    return node.type == "typed_parameter" and any(
        child.type in ("list_splat_pattern", "dictionary_splat_pattern")
        for child in node.named_children
    )


def _unparse(node: ast.AST | None) -> str | None:
    return ast.unparse(node) if node is not None else None
