"""import_tracker.py
专门负责解析并记录 Python 源文件中的 import 语句，提取别名映射等信息。

调用目标解析和异步边界检测都依赖这里记录的别名，例如
``from threading import Thread as T`` 之后 ``T(...)`` 仍可识别为线程创建。
"""
from __future__ import annotations

import ast
from typing import Dict, Optional


class ImportTracker(ast.NodeVisitor):
    """AST 访问器，用于追踪 import/from import 的别名与模块映射。

    - ``import_aliases``: ``import pkg.mod as m`` -> ``{"m": "pkg.mod"}``
    - ``module_imports``: ``import pkg.mod`` -> ``{"pkg": "pkg", "pkg.mod": "pkg.mod"}``
    - ``from_imports``: ``from pkg.mod import f as g`` -> ``{"g": "pkg.mod.f"}``

    相对导入根据 ``module_name`` 解析为绝对名称。
    """

    def __init__(self, module_name: str = "", is_package: bool = False) -> None:
        self.module_name = module_name
        self.is_package = is_package

        self.import_aliases: Dict[str, str] = {}
        self.module_imports: Dict[str, str] = {}
        self.from_imports: Dict[str, str] = {}

    # --- ast.NodeVisitor overrides -------------------------------------------------

    def visit_Import(self, node: ast.Import) -> None:  # noqa: N802 (保持与 ast API 一致)
        """记录 `import xxx as yyy` 及直接 import 情况。"""
        for name in node.names:
            if name.asname:
                self.import_aliases[name.asname] = name.name
            else:
                # `import a.b.c` 绑定名称 `a`，同时 `a.b.c` 仍可完整引用
                root = name.name.split(".")[0]
                self.module_imports[root] = root
                self.module_imports[name.name] = name.name

        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:  # noqa: N802
        """记录 `from module import ...` 形式，包括相对导入。"""
        module = self._absolute_module(node.module, node.level)
        for name in node.names:
            if name.name == "*":
                continue
            local_name = name.asname or name.name
            self.from_imports[local_name] = f"{module}.{name.name}" if module else name.name

        self.generic_visit(node)

    # -----------------------------------------------------------------------------

    def resolve_name(self, alias: str) -> Optional[str]:
        """尝试解析别名对应的完整名称。"""
        return (
            self.import_aliases.get(alias)
            or self.from_imports.get(alias)
            or self.module_imports.get(alias)
        )

    def expand_dotted(self, dotted: str) -> str:
        """将点分名称的首段按别名展开，例如 ``T`` -> ``threading.Thread``。"""
        head, _, rest = dotted.partition(".")
        resolved = self.resolve_name(head)
        if not resolved:
            return dotted
        return f"{resolved}.{rest}" if rest else resolved

    def _absolute_module(self, module: Optional[str], level: int) -> str:
        if not level:
            return module or ""

        package_parts = self.module_name.split(".") if self.module_name else []
        if not self.is_package and package_parts:
            package_parts = package_parts[:-1]
        # level 1 指当前包，每多一级向上一层
        if level > 1:
            package_parts = package_parts[: max(len(package_parts) - (level - 1), 0)]

        base = ".".join(package_parts)
        if module:
            return f"{base}.{module}" if base else module
        return base
