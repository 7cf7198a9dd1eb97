"""call_resolver.py
Resolve the callee expression of a call site to indexed routines.

Resolution is name-based at the statically declared symbol. Polymorphic
overrides are not considered: a variable annotated ``a: Animal`` resolves
``a.make_sound()`` to ``Animal.make_sound`` whatever object it holds at
runtime. Strategies, in order:

1. ``f(...)`` - nested def in an enclosing function, module function,
   module class (constructor -> ``__init__``), imported function or class.
2. ``recv.m(...)`` - ``self``/``cls``, ``super()``, a class name, a local
   variable or parameter with a known type, ``self.attr`` with a recorded
   type, an inline construction ``C().m()``, an imported module.
3. Method calls on receivers of unknown type fall back to a name lookup,
   governed by the ``ambiguous_attribute_calls`` setting.
"""

import ast
from typing import Dict, List, Optional

from callpath.analysis.ast_parser import (
    FUNCTION_NODES,
    ClassInfo,
    ModuleInfo,
    annotation_name,
    first_parameter,
    get_dotted_name,
)
from callpath.logger import get_logger
from callpath.models import Routine

logger = get_logger("callpath.analysis.call_resolver")


class ResolutionContext:
    """Lexical context of a reference: its module and enclosing functions."""

    def __init__(self, module: ModuleInfo, def_chain: List[ast.AST]):
        self.module = module
        # Nearest enclosing function first
        self.def_chain = def_chain
        self.self_bindings: Dict[str, ClassInfo] = {}

        for def_node in def_chain:
            owner = module.parent_map.get(def_node)
            if not isinstance(owner, ast.ClassDef) or _is_staticmethod(def_node):
                continue
            receiver = first_parameter(def_node)
            class_info = module.class_by_node.get(owner)
            if receiver and class_info is not None:
                self.self_bindings.setdefault(receiver, class_info)

    @property
    def method_class(self) -> Optional[ClassInfo]:
        """Class of the nearest enclosing method, if any."""
        for def_node in self.def_chain:
            owner = self.module.parent_map.get(def_node)
            if isinstance(owner, ast.ClassDef):
                return self.module.class_by_node.get(owner)
        return None


def _is_staticmethod(def_node: ast.AST) -> bool:
    for decorator in getattr(def_node, "decorator_list", []):
        name = get_dotted_name(decorator)
        if name and name.split(".")[-1] == "staticmethod":
            return True
    return False


class CallTargetResolver:
    """
    Resolve callee expressions against a fixed set of parsed modules.

    Args:
        modules: Parsed modules keyed by dotted module name
        ambiguous_attribute_calls: ``"unique"``, ``"all"`` or ``"none"``
    """

    def __init__(self, modules: Dict[str, ModuleInfo], ambiguous_attribute_calls: str = "unique"):
        self.modules = modules
        self.ambiguous_attribute_calls = ambiguous_attribute_calls

        self.classes_by_name: Dict[str, List[ClassInfo]] = {}
        self.methods_by_name: Dict[str, List[Routine]] = {}
        for module_name in sorted(modules):
            module = modules[module_name]
            for class_info in module.classes.values():
                self.classes_by_name.setdefault(class_info.name, []).append(class_info)
            for routine in module.routines:
                if routine.class_name:
                    self.methods_by_name.setdefault(routine.name, []).append(routine)

        self._local_types_cache: Dict[ast.AST, Dict[str, str]] = {}

    # --- public API --------------------------------------------------------------

    def resolve_call(self, func: ast.expr, context: ResolutionContext) -> List[Routine]:
        """Resolve the ``func`` part of a call expression."""
        return self._resolve(func, context, constructors=True, fallback=True)

    def resolve_reference(self, expr: ast.expr, context: ResolutionContext) -> List[Routine]:
        """Resolve a bare callable reference such as ``Thread(target=self.run)``."""
        return self._resolve(expr, context, constructors=False, fallback=False)

    def lookup_method(self, class_info: ClassInfo, name: str, _seen=None) -> Optional[Routine]:
        """Find ``name`` on a class or, depth-first, on its indexed bases."""
        seen = _seen if _seen is not None else set()
        if id(class_info) in seen:
            return None
        seen.add(id(class_info))

        if name in class_info.methods:
            return class_info.methods[name]
        for base in class_info.bases:
            base_info = self.resolve_class(base, class_info.module)
            if base_info is not None:
                found = self.lookup_method(base_info, name, seen)
                if found is not None:
                    return found
        return None

    def resolve_class(self, dotted: str, module: ModuleInfo) -> Optional[ClassInfo]:
        """Resolve a class name as written in ``module``."""
        if dotted in module.classes:
            return module.classes[dotted]

        head = dotted.split(".", 1)[0]
        if module.imports.resolve_name(head):
            # Imported names that are not indexed belong to external packages
            return self._class_by_full_name(module.imports.expand_dotted(dotted))

        candidates = self.classes_by_name.get(dotted.rsplit(".", 1)[-1], [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    def find_module(self, dotted: str) -> Optional[ModuleInfo]:
        """Find an indexed module by dotted name, tolerating a different root."""
        if dotted in self.modules:
            return self.modules[dotted]
        for name in sorted(self.modules):
            if dotted.endswith("." + name) or name.endswith("." + dotted):
                return self.modules[name]
        return None

    # --- resolution strategies ---------------------------------------------------

    def _resolve(self, expr, context, constructors: bool, fallback: bool) -> List[Routine]:
        if isinstance(expr, ast.Name):
            return self._resolve_name(expr.id, context, constructors)
        if isinstance(expr, ast.Attribute):
            return self._resolve_attribute(expr, context, constructors, fallback)
        return []

    def _resolve_name(self, name: str, context: ResolutionContext, constructors: bool) -> List[Routine]:
        module = context.module
        for def_node in context.def_chain:
            local = module.local_defs.get(def_node, {})
            if name in local:
                return [local[name]]

        if name in module.functions:
            return [module.functions[name]]

        if name in module.classes:
            return self._constructor(module.classes[name]) if constructors else []

        full_name = module.imports.from_imports.get(name)
        if full_name:
            return self._resolve_full_name(full_name, constructors)
        return []

    def _resolve_attribute(self, expr: ast.Attribute, context, constructors: bool, fallback: bool) -> List[Routine]:
        attr = expr.attr
        receiver = expr.value

        if (
            isinstance(receiver, ast.Call)
            and isinstance(receiver.func, ast.Name)
            and receiver.func.id == "super"
        ):
            owner = context.method_class
            if owner is None:
                return []
            for base in owner.bases:
                base_info = self.resolve_class(base, owner.module)
                if base_info is not None:
                    found = self.lookup_method(base_info, attr)
                    if found is not None:
                        return [found]
            return []

        receiver_class = self._infer_receiver_class(receiver, context)
        if receiver_class is not None:
            found = self.lookup_method(receiver_class, attr)
            return [found] if found is not None else []

        target_module = self._receiver_module(receiver, context.module)
        if target_module is not None:
            if attr in target_module.functions:
                return [target_module.functions[attr]]
            if constructors and attr in target_module.classes:
                return self._constructor(target_module.classes[attr])
            return []

        if fallback:
            return self._fallback(attr)
        return []

    def _infer_receiver_class(self, receiver: ast.expr, context: ResolutionContext) -> Optional[ClassInfo]:
        module = context.module

        if isinstance(receiver, ast.Name):
            if receiver.id in context.self_bindings:
                return context.self_bindings[receiver.id]
            for def_node in context.def_chain:
                type_name = self._local_types(def_node).get(receiver.id)
                if type_name:
                    return self.resolve_class(type_name, module)
            if receiver.id in module.classes or module.imports.from_imports.get(receiver.id):
                return self.resolve_class(receiver.id, module)
            return None

        if isinstance(receiver, ast.Call):
            dotted = get_dotted_name(receiver.func)
            if dotted and dotted != "super":
                return self.resolve_class(dotted, module)
            return None

        if (
            isinstance(receiver, ast.Attribute)
            and isinstance(receiver.value, ast.Name)
            and receiver.value.id in context.self_bindings
        ):
            owner = context.self_bindings[receiver.value.id]
            type_name = self._attribute_type(owner, receiver.attr)
            if type_name:
                return self.resolve_class(type_name, owner.module)
        return None

    def _attribute_type(self, class_info: ClassInfo, attr: str, _seen=None) -> Optional[str]:
        seen = _seen if _seen is not None else set()
        if id(class_info) in seen:
            return None
        seen.add(id(class_info))

        if attr in class_info.attribute_types:
            return class_info.attribute_types[attr]
        for base in class_info.bases:
            base_info = self.resolve_class(base, class_info.module)
            if base_info is not None:
                found = self._attribute_type(base_info, attr, seen)
                if found:
                    return found
        return None

    def _receiver_module(self, receiver: ast.expr, module: ModuleInfo) -> Optional[ModuleInfo]:
        dotted = get_dotted_name(receiver)
        if not dotted:
            return None
        head = dotted.split(".", 1)[0]
        if not module.imports.resolve_name(head):
            return None
        return self.find_module(module.imports.expand_dotted(dotted))

    def _resolve_full_name(self, full_name: str, constructors: bool) -> List[Routine]:
        """Resolve ``pkg.mod.func`` / ``pkg.mod.Class`` / ``pkg.mod.Class.method``."""
        parts = full_name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module = self.find_module(".".join(parts[:split]))
            if module is None:
                continue
            rest = parts[split:]
            if len(rest) == 1 and rest[0] in module.functions:
                return [module.functions[rest[0]]]
            class_info = module.classes.get(rest[0])
            if class_info is None:
                continue
            if len(rest) == 1:
                return self._constructor(class_info) if constructors else []
            found = self.lookup_method(class_info, rest[1])
            return [found] if found is not None else []
        return []

    def _class_by_full_name(self, full_name: str) -> Optional[ClassInfo]:
        parts = full_name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module = self.find_module(".".join(parts[:split]))
            if module is not None:
                class_info = module.classes.get(".".join(parts[split:]))
                if class_info is not None:
                    return class_info
        return None

    def _constructor(self, class_info: ClassInfo) -> List[Routine]:
        init = self.lookup_method(class_info, "__init__")
        return [init] if init is not None else []

    def _fallback(self, attr: str) -> List[Routine]:
        candidates = self.methods_by_name.get(attr, [])
        if self.ambiguous_attribute_calls == "all":
            return list(candidates)
        if self.ambiguous_attribute_calls == "unique" and len(candidates) == 1:
            return list(candidates)
        return []

    def _local_types(self, def_node: ast.AST) -> Dict[str, str]:
        """
        Declared or constructed types of a function's local names.

        An annotation (parameter or ``x: T = ...``) wins over the class a
        name is constructed from, mirroring static declared types.
        """
        if def_node in self._local_types_cache:
            return self._local_types_cache[def_node]

        declared: Dict[str, str] = {}
        constructed: Dict[str, str] = {}

        args = def_node.args  # type: ignore[attr-defined]
        for arg in list(args.posonlyargs) + list(args.args) + list(args.kwonlyargs):
            type_name = annotation_name(arg.annotation)
            if type_name:
                declared[arg.arg] = type_name

        for node in _walk_local(def_node):
            if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                type_name = annotation_name(node.annotation)
                if type_name:
                    declared.setdefault(node.target.id, type_name)
            elif isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
                type_name = get_dotted_name(node.value.func)
                if not type_name:
                    continue
                for target in node.targets:
                    if isinstance(target, ast.Name):
                        constructed.setdefault(target.id, type_name)

        constructed.update(declared)
        self._local_types_cache[def_node] = constructed
        return constructed


def _walk_local(def_node: ast.AST):
    """Yield the nodes of a function body without entering nested scopes."""
    stack = list(reversed(getattr(def_node, "body", [])))
    while stack:
        node = stack.pop()
        yield node
        for child in reversed(list(ast.iter_child_nodes(node))):
            if isinstance(child, FUNCTION_NODES + (ast.ClassDef, ast.Lambda)):
                continue
            stack.append(child)
