"""
AST parsing helpers and the routine collector used to build the code index.
"""

import ast
from typing import Dict, List, Optional, Tuple

from callpath.analysis.import_tracker import ImportTracker
from callpath.logger import get_logger, log_analysis_file
from callpath.models import Routine

logger = get_logger("callpath.analysis.ast_parser")

FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)


class ParentNodeVisitor(ast.NodeVisitor):
    """
    AST visitor that adds parent references to nodes.
    """

    def __init__(self):
        self.parent_map: Dict[ast.AST, ast.AST] = {}

    def visit(self, node):
        for child in ast.iter_child_nodes(node):
            self.parent_map[child] = node
        super().visit(node)


def parse_source(source: str, file_path: str = "<unknown>") -> ast.Module:
    """Parse source code, raising SyntaxError for invalid input."""
    return ast.parse(source, filename=file_path)


@log_analysis_file
def parse_file(file_path: str) -> ast.Module:
    """Read and parse a Python file."""
    with open(file_path, "r", encoding="utf-8", errors="replace") as f:
        source = f.read()
    return parse_source(source, file_path)


def get_dotted_name(node: Optional[ast.AST]) -> Optional[str]:
    """Return ``a.b.c`` for Name/Attribute chains, None for anything else."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = get_dotted_name(node.value)
        return f"{base}.{node.attr}" if base else None
    return None


def annotation_name(node: Optional[ast.AST]) -> Optional[str]:
    """
    Extract the class name a type annotation refers to.

    Handles plain names, dotted names, string forward references and
    ``Optional[X]``; anything more elaborate yields None.
    """
    if node is None:
        return None
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        text = node.value.strip()
        return text if text.replace(".", "").replace("_", "").isalnum() else None
    if isinstance(node, ast.Subscript):
        container = get_dotted_name(node.value)
        if container and container.split(".")[-1] == "Optional":
            return annotation_name(node.slice)
        return None
    return get_dotted_name(node)


def routine_has_body(node: ast.AST) -> bool:
    """
    Check whether a function has an executable body.

    Docstrings, ``pass``, ``...`` and ``raise NotImplementedError`` do not
    count: such functions are abstract or stub declarations.
    """
    statements = list(getattr(node, "body", []))
    if (
        statements
        and isinstance(statements[0], ast.Expr)
        and isinstance(statements[0].value, ast.Constant)
        and isinstance(statements[0].value.value, str)
    ):
        statements = statements[1:]

    for stmt in statements:
        if isinstance(stmt, ast.Pass):
            continue
        if (
            isinstance(stmt, ast.Expr)
            and isinstance(stmt.value, ast.Constant)
            and stmt.value.value is Ellipsis
        ):
            continue
        if isinstance(stmt, ast.Raise) and _raises_not_implemented(stmt):
            continue
        return True
    return False


def _raises_not_implemented(stmt: ast.Raise) -> bool:
    exc = stmt.exc
    if isinstance(exc, ast.Call):
        exc = exc.func
    return get_dotted_name(exc) == "NotImplementedError"


def first_parameter(node: ast.AST) -> Optional[str]:
    args = getattr(node, "args", None)
    if args is None:
        return None
    params = list(args.posonlyargs) + list(args.args)
    return params[0].arg if params else None


class ClassInfo:
    """A class declaration: its bases, methods and known attribute types."""

    def __init__(self, name: str, qualname: str, module: "ModuleInfo", node: ast.ClassDef):
        self.name = name
        self.qualname = qualname
        self.module = module
        self.node = node
        self.bases: List[str] = [
            base for base in (get_dotted_name(b) for b in node.bases) if base
        ]
        self.methods: Dict[str, Routine] = {}
        self.attribute_types: Dict[str, str] = {}

    def __repr__(self) -> str:
        return f"ClassInfo(qualname='{self.qualname}', module='{self.module.module_name}')"


class ModuleInfo:
    """Everything the index knows about one source file."""

    def __init__(
        self,
        file_path: str,
        module_name: str,
        tree: ast.Module,
        is_package: bool = False,
    ):
        self.file_path = file_path
        self.module_name = module_name
        self.tree = tree
        self.is_package = is_package

        parent_visitor = ParentNodeVisitor()
        parent_visitor.visit(tree)
        self.parent_map = parent_visitor.parent_map

        self.imports = ImportTracker(module_name, is_package)
        self.imports.visit(tree)

        self.functions: Dict[str, Routine] = {}
        self.classes: Dict[str, ClassInfo] = {}
        self.routines: List[Routine] = []
        self.routine_by_node: Dict[ast.AST, Routine] = {}
        self.class_by_node: Dict[ast.AST, ClassInfo] = {}
        # Nested functions visible by name inside each function
        self.local_defs: Dict[ast.AST, Dict[str, Routine]] = {}

    def __repr__(self) -> str:
        return f"ModuleInfo(module='{self.module_name}', file='{self.file_path}', routines={len(self.routines)})"


class RoutineCollector(ast.NodeVisitor):
    """
    Collect routines and classes of one module, in source order.

    Qualified names follow the nesting: ``Class.method``, ``outer.inner``.
    """

    def __init__(self, module: ModuleInfo):
        self.module = module
        # (kind, node, info) where info is ClassInfo or Routine
        self._scopes: List[Tuple[str, ast.AST, object]] = []

    def collect(self) -> ModuleInfo:
        self.visit(self.module.tree)
        return self.module

    def _qualname(self, name: str) -> str:
        prefix = [
            info.name for _, _, info in self._scopes  # type: ignore[attr-defined]
        ]
        return ".".join(prefix + [name])

    def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
        info = ClassInfo(node.name, self._qualname(node.name), self.module, node)
        self.module.classes[info.qualname] = info
        self.module.class_by_node[node] = info

        self._scopes.append(("class", node, info))
        self.generic_visit(node)
        self._scopes.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:  # noqa: N802
        self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:  # noqa: N802
        self._visit_function(node)

    def _visit_function(self, node) -> None:
        scope_kind, scope_node, scope_info = self._scopes[-1] if self._scopes else (None, None, None)
        class_name = scope_info.name if scope_kind == "class" else None  # type: ignore[union-attr]

        routine = Routine(
            name=node.name,
            qualname=self._qualname(node.name),
            module=self.module.module_name,
            file_path=self.module.file_path,
            line_no=node.lineno,
            end_line_no=getattr(node, "end_lineno", node.lineno) or node.lineno,
            class_name=class_name,
            is_async=isinstance(node, ast.AsyncFunctionDef),
            has_body=routine_has_body(node),
        )
        self.module.routines.append(routine)
        self.module.routine_by_node[node] = routine

        # Later definitions shadow earlier ones, as at runtime
        if scope_kind == "class":
            scope_info.methods[node.name] = routine  # type: ignore[union-attr]
            self._record_attribute_types(node, scope_info)  # type: ignore[arg-type]
        elif scope_kind == "function":
            self.module.local_defs.setdefault(scope_node, {})[node.name] = routine
        else:
            self.module.functions[node.name] = routine

        self._scopes.append(("function", node, routine))
        self.generic_visit(node)
        self._scopes.pop()

    def _record_attribute_types(self, node, class_info: ClassInfo) -> None:
        """Remember ``self.attr = Cls(...)`` and ``self.attr: Cls`` assignments."""
        receiver = first_parameter(node)
        if not receiver:
            return

        for stmt in ast.walk(node):
            if isinstance(stmt, ast.AnnAssign):
                target = stmt.target
                type_name = annotation_name(stmt.annotation)
                if type_name and _is_self_attribute(target, receiver):
                    class_info.attribute_types[target.attr] = type_name  # type: ignore[union-attr]
            elif isinstance(stmt, ast.Assign) and isinstance(stmt.value, ast.Call):
                type_name = get_dotted_name(stmt.value.func)
                if not type_name:
                    continue
                for target in stmt.targets:
                    if _is_self_attribute(target, receiver):
                        class_info.attribute_types.setdefault(target.attr, type_name)  # type: ignore[union-attr]


def _is_self_attribute(node: ast.AST, receiver: str) -> bool:
    return (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id == receiver
    )
