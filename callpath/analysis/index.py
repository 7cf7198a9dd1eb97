"""
Code index: an immutable snapshot of the routines and call sites of a set of
Python source files.

The index is built eagerly. Once constructed nothing mutates it, so a search
always sees one consistent call graph.
"""

import ast
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from callpath.analysis.ast_parser import (
    FUNCTION_NODES,
    ModuleInfo,
    RoutineCollector,
    parse_file,
    parse_source,
)
from callpath.analysis.boundary import AsyncBoundaryDetector
from callpath.analysis.call_resolver import CallTargetResolver, ResolutionContext
from callpath.config import merge_configuration
from callpath.logger import debug, get_logger, log_function, warning
from callpath.models import CallSite, Routine
from callpath.utils.fs_utils import get_python_files_in_directory, get_relative_path

logger = get_logger("callpath.analysis.index")


def module_name_for(relative_path: str) -> Tuple[str, bool]:
    """
    Derive the dotted module name of a source file.

    Returns:
        (module name, whether the file is a package ``__init__``)
    """
    normalized = relative_path.replace(os.sep, "/")
    if normalized.endswith(".py"):
        normalized = normalized[:-3]
    parts = [part for part in normalized.split("/") if part and part != "."]
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    return ".".join(parts), is_package


class CodeIndex:
    """
    Routines and call sites of a codebase.

    Build it with :meth:`build` (files on disk) or :meth:`from_sources`
    (in-memory sources, mainly for tests and the MCP interface).
    """

    def __init__(self, modules: List[ModuleInfo], config: Optional[Dict[str, Any]] = None, root: Optional[str] = None):
        self.config = merge_configuration(config)
        self.root = root
        self.skipped_files: List[str] = []

        self._modules: Dict[str, ModuleInfo] = {}
        self._modules_by_file: Dict[str, ModuleInfo] = {}
        for module in sorted(modules, key=lambda m: m.file_path):
            self._modules[module.module_name] = module
            self._modules_by_file[module.file_path] = module

        self._routines: Tuple[Routine, ...] = tuple(
            routine
            for module in sorted(modules, key=lambda m: m.file_path)
            for routine in module.routines
        )
        self._routine_nodes: Dict[Routine, ast.AST] = {}
        for module in modules:
            for node, routine in module.routine_by_node.items():
                self._routine_nodes[routine] = node

        self.resolver = CallTargetResolver(
            self._modules, self.config["ambiguous_attribute_calls"]
        )
        self.boundary_detector = AsyncBoundaryDetector.from_config(self.config)
        self._call_sites: Dict[Routine, Tuple[CallSite, ...]] = self._collect_call_sites()

    # --- construction ------------------------------------------------------------

    @classmethod
    @log_function(level="debug")
    def build(cls, target: str, config: Optional[Dict[str, Any]] = None) -> "CodeIndex":
        """
        Index a Python file or every Python file below a directory.

        Args:
            target: File or directory path
            config: Partial configuration merged over the defaults

        Returns:
            The code index

        Raises:
            FileNotFoundError: If the target does not exist
        """
        if not os.path.exists(target):
            raise FileNotFoundError(f"Target not found: {target}")

        merged = merge_configuration(config)
        target = os.path.abspath(target)
        root = target if os.path.isdir(target) else os.path.dirname(target)
        files = sorted(
            get_python_files_in_directory(target, exclude_dirs=merged["exclude_dirs"])
        )

        modules: List[ModuleInfo] = []
        skipped: List[str] = []
        for file_path in files:
            relative = get_relative_path(root, file_path)
            try:
                tree = parse_file(file_path)
            except (SyntaxError, ValueError, OSError) as e:
                warning(f"Skipping {relative}: {type(e).__name__}: {e}")
                skipped.append(relative)
                continue
            modules.append(cls._make_module(relative, tree))

        index = cls(modules, merged, root=root)
        index.skipped_files = skipped
        logger.info(
            f"Indexed {len(index.files)} files, {len(index)} routines from {target}"
        )
        return index

    @classmethod
    def from_sources(cls, sources: Mapping[str, str], config: Optional[Dict[str, Any]] = None) -> "CodeIndex":
        """
        Index in-memory sources.

        Args:
            sources: Relative file path -> source code
            config: Partial configuration merged over the defaults
        """
        modules: List[ModuleInfo] = []
        skipped: List[str] = []
        for relative in sorted(sources):
            try:
                tree = parse_source(sources[relative], relative)
            except (SyntaxError, ValueError) as e:
                warning(f"Skipping {relative}: {type(e).__name__}: {e}")
                skipped.append(relative)
                continue
            modules.append(cls._make_module(relative.replace(os.sep, "/"), tree))

        index = cls(modules, config)
        index.skipped_files = skipped
        return index

    @staticmethod
    def _make_module(relative: str, tree: ast.Module) -> ModuleInfo:
        module_name, is_package = module_name_for(relative)
        module = ModuleInfo(relative, module_name, tree, is_package=is_package)
        return RoutineCollector(module).collect()

    # --- queries -----------------------------------------------------------------

    @property
    def routines(self) -> Tuple[Routine, ...]:
        return self._routines

    @property
    def files(self) -> List[str]:
        return list(self._modules_by_file)

    def __len__(self) -> int:
        return len(self._routines)

    def __contains__(self, routine: object) -> bool:
        return routine in self._routine_nodes

    def resolve_routines_by_name(self, name: str) -> List[Routine]:
        """
        All routines matching a display name.

        A bare name matches ``Routine.name``; a dotted name matches a
        qualified name (``Class.method``) or ``module.qualname``.
        """
        return self.find_routines(name)

    def find_routines(self, spec: str) -> List[Routine]:
        """
        Resolve a routine specifier.

        Accepted forms: ``path/to/file.py:Class.method``, ``pkg.mod.func``,
        ``Class.method`` and a bare ``name``.
        """
        spec = (spec or "").strip()
        if not spec:
            return []

        file_part, sep, qual_part = spec.rpartition(":")
        if sep and file_part.endswith(".py"):
            file_part = self._spec_file_path(file_part)
            return [
                routine
                for routine in self._routines
                if (routine.file_path == file_part or routine.file_path.endswith("/" + file_part))
                and (routine.qualname == qual_part or routine.name == qual_part)
            ]

        if "." not in spec:
            return [routine for routine in self._routines if routine.name == spec]

        exact = [
            routine
            for routine in self._routines
            if routine.full_name == spec or routine.qualname == spec
        ]
        if exact:
            return exact
        return [
            routine
            for routine in self._routines
            if routine.full_name.endswith("." + spec)
        ]

    def _spec_file_path(self, file_part: str) -> str:
        """File part of a specifier, relative to the index root and "/"-separated."""
        if self.root and os.path.isabs(file_part):
            file_part = get_relative_path(self.root, file_part)
        file_part = file_part.replace(os.sep, "/")
        while file_part.startswith("./"):
            file_part = file_part[2:]
        return file_part

    def find_call_sites(self, routine: Routine) -> Tuple[CallSite, ...]:
        """
        Call sites referencing ``routine``, ordered by file and position.

        Returns an empty tuple for unreferenced routines.
        """
        return self._call_sites.get(routine, ())

    def enclosing_routine_of(self, node: ast.AST, file_path: str) -> Optional[Routine]:
        """The routine whose body lexically contains ``node``, if any."""
        module = self._modules_by_file.get(file_path)
        if module is None:
            return None
        chain = self._def_chain(module, node)
        return module.routine_by_node.get(chain[0]) if chain else None

    def node_of(self, routine: Routine) -> Optional[ast.AST]:
        return self._routine_nodes.get(routine)

    def get_summary(self) -> Dict[str, Any]:
        call_sites = [site for sites in self._call_sites.values() for site in sites]
        return {
            "root": self.root,
            "files": len(self._modules_by_file),
            "skipped_files": list(self.skipped_files),
            "routines": len(self._routines),
            "routines_without_body": sum(1 for r in self._routines if not r.has_body),
            "classes": sum(len(m.classes) for m in self._modules.values()),
            "call_sites": len(call_sites),
            "async_boundary_call_sites": sum(
                1 for site in call_sites if site.inside_async_boundary
            ),
        }

    # --- call site collection ----------------------------------------------------

    @staticmethod
    def _def_chain(module: ModuleInfo, node: ast.AST) -> List[ast.AST]:
        """Enclosing functions whose *body* contains ``node``, nearest first."""
        chain: List[ast.AST] = []
        child = node
        parent = module.parent_map.get(node)
        while parent is not None:
            if isinstance(parent, FUNCTION_NODES) and any(stmt is child for stmt in parent.body):
                chain.append(parent)
            child = parent
            parent = module.parent_map.get(parent)
        return chain

    def _collect_call_sites(self) -> Dict[Routine, Tuple[CallSite, ...]]:
        collected: Dict[Routine, List[CallSite]] = {}
        for module in self._modules_by_file.values():
            for site in self._module_call_sites(module):
                collected.setdefault(site.callee, []).append(site)

        result = {}
        for routine, sites in collected.items():
            sites.sort(key=lambda s: (s.file_path, s.line, s.col))
            result[routine] = tuple(sites)
            debug(f"{routine.qualname}: {len(sites)} call sites")
        return result

    def _module_call_sites(self, module: ModuleInfo) -> Iterable[CallSite]:
        contexts: Dict[Tuple[int, ...], ResolutionContext] = {}

        for node in ast.walk(module.tree):
            if isinstance(node, ast.Call):
                kind = "call"
                reference = node.func
            elif isinstance(node, (ast.Name, ast.Attribute)) and isinstance(node.ctx, ast.Load):
                if not self._is_bare_reference(module, node):
                    continue
                kind = "reference"
                reference = node
            else:
                continue

            chain = self._def_chain(module, node)
            key = tuple(id(def_node) for def_node in chain)
            context = contexts.get(key)
            if context is None:
                context = contexts[key] = ResolutionContext(module, chain)

            if kind == "call":
                callees = self.resolver.resolve_call(reference, context)
            else:
                callees = self.resolver.resolve_reference(reference, context)
            if not callees:
                continue

            caller = module.routine_by_node.get(chain[0]) if chain else None
            inside_boundary = self.boundary_detector.is_async_boundary(
                node,
                module.parent_map,
                stop_at=chain[0] if chain else None,
                imports=module.imports,
            )
            expression = ast.unparse(reference)
            for callee in callees:
                yield CallSite(
                    callee=callee,
                    caller=caller,
                    file_path=module.file_path,
                    line=getattr(node, "lineno", 0),
                    col=getattr(node, "col_offset", 0),
                    kind=kind,
                    expression=expression,
                    inside_async_boundary=inside_boundary,
                )

    @staticmethod
    def _is_bare_reference(module: ModuleInfo, node: ast.AST) -> bool:
        """A Name/Attribute used as a value, not called and not part of a longer chain."""
        parent = module.parent_map.get(node)
        if isinstance(parent, ast.Call) and parent.func is node:
            return False
        if isinstance(parent, ast.Attribute) and parent.value is node:
            return False
        return True
