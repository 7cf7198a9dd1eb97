import ast
import os
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path

# 添加项目根目录到 Python 路径
current_dir = Path(__file__).parent
project_root = current_dir.parent
sys.path.append(str(project_root))

from callpath.analysis.ast_parser import parse_source, routine_has_body
from callpath.analysis.import_tracker import ImportTracker
from callpath.analysis.index import CodeIndex, module_name_for


def sources(files=None, **modules):
    """Dedent sources keyed by path; keyword arguments name top-level modules."""
    merged = dict(files or {})
    merged.update({f"{name}.py": src for name, src in modules.items()})
    return {path: textwrap.dedent(src) for path, src in merged.items()}


def callers(index, spec):
    matches = index.find_routines(spec)
    assert len(matches) == 1, f"{spec}: {matches}"
    return [site.caller.qualname if site.caller else None for site in index.find_call_sites(matches[0])]


class TestModuleNames(unittest.TestCase):
    def test_module_name_for(self):
        self.assertEqual(module_name_for("pkg/mod.py"), ("pkg.mod", False))
        self.assertEqual(module_name_for("pkg/__init__.py"), ("pkg", True))
        self.assertEqual(module_name_for("top.py"), ("top", False))
        self.assertEqual(module_name_for("./a/b/c.py"), ("a.b.c", False))


class TestImportTracker(unittest.TestCase):
    def _track(self, source, module_name="pkg.sub.mod", is_package=False):
        tracker = ImportTracker(module_name, is_package)
        tracker.visit(parse_source(textwrap.dedent(source)))
        return tracker

    def test_alias_tables(self):
        tracker = self._track(
            """
            import os.path
            import threading as th
            from concurrent.futures import ThreadPoolExecutor as Pool, wait
            from os import *
            """
        )
        self.assertEqual(tracker.import_aliases, {"th": "threading"})
        self.assertEqual(tracker.module_imports, {"os": "os", "os.path": "os.path"})
        self.assertEqual(
            tracker.from_imports,
            {"Pool": "concurrent.futures.ThreadPoolExecutor", "wait": "concurrent.futures.wait"},
        )
        self.assertEqual(tracker.expand_dotted("th.Thread"), "threading.Thread")
        self.assertEqual(tracker.expand_dotted("unknown.call"), "unknown.call")

    def test_relative_imports(self):
        tracker = self._track("from . import a\nfrom ..b import c\nfrom .. import d\n")
        self.assertEqual(tracker.resolve_name("a"), "pkg.sub.a")
        self.assertEqual(tracker.resolve_name("c"), "pkg.b.c")
        self.assertEqual(tracker.resolve_name("d"), "pkg.d")

        package = self._track("from .a import f\n", module_name="pkg.sub", is_package=True)
        self.assertEqual(package.resolve_name("f"), "pkg.sub.a.f")


class TestRoutineBodies(unittest.TestCase):
    """
    测试函数体是否为空的判断
    """

    def _first_def(self, source):
        tree = parse_source(textwrap.dedent(source))
        return next(node for node in ast.walk(tree) if isinstance(node, ast.FunctionDef))

    def test_stub_bodies(self):
        stubs = [
            "def f():\n    pass\n",
            "def f():\n    ...\n",
            'def f():\n    """Only a docstring."""\n',
            'def f():\n    """Doc."""\n    pass\n',
            "def f():\n    raise NotImplementedError\n",
            'def f():\n    raise NotImplementedError("subclass")\n',
        ]
        for source in stubs:
            with self.subTest(source=source):
                self.assertFalse(routine_has_body(self._first_def(source)))

    def test_real_bodies(self):
        bodies = [
            "def f():\n    return None\n",
            "def f():\n    x = 1\n",
            'def f():\n    raise ValueError("no")\n',
            'def f():\n    """Doc."""\n    return 1\n',
        ]
        for source in bodies:
            with self.subTest(source=source):
                self.assertTrue(routine_has_body(self._first_def(source)))


class TestRoutineIndex(unittest.TestCase):
    """
    测试代码索引中的函数收集与查找
    """

    def setUp(self):
        self.index = CodeIndex.from_sources(
            sources(
                {
                "pkg/__init__.py": "",
                "pkg/models.py": """
                class Repo:
                    def save(self):
                        return 1

                    async def load(self):
                        return 2


                def save():
                    return 3
                """,
                "pkg/service.py": """
                def outer():
                    def inner():
                        return 4
                    return inner()
                """,
                }
            )
        )

    def test_qualified_names(self):
        names = [routine.qualname for routine in self.index.routines]
        self.assertEqual(
            names, ["Repo.save", "Repo.load", "save", "outer", "outer.inner"]
        )
        load = self.index.find_routines("Repo.load")[0]
        self.assertTrue(load.is_async)
        self.assertEqual(load.class_name, "Repo")
        self.assertEqual(load.module, "pkg.models")
        self.assertEqual(load.full_name, "pkg.models.Repo.load")

    def test_find_routines_forms(self):
        self.assertEqual(len(self.index.find_routines("save")), 2)
        self.assertEqual(len(self.index.resolve_routines_by_name("save")), 2)
        self.assertEqual(
            [r.qualname for r in self.index.find_routines("pkg/models.py:Repo.save")],
            ["Repo.save"],
        )
        self.assertEqual(
            [r.qualname for r in self.index.find_routines("models.py:save")],
            ["Repo.save", "save"],
        )
        self.assertEqual(
            [r.qualname for r in self.index.find_routines("pkg.models.save")], ["save"]
        )
        self.assertEqual(
            [r.qualname for r in self.index.find_routines("models.Repo.save")],
            ["Repo.save"],
        )
        self.assertEqual(
            [r.qualname for r in self.index.find_routines("./pkg/models.py:Repo.save")],
            ["Repo.save"],
        )
        self.assertEqual(self.index.find_routines(""), [])
        self.assertEqual(self.index.find_routines("missing"), [])

    def test_find_routines_in_dot_directory(self):
        index = CodeIndex.from_sources({".hidden/x.py": "def s():\n    return 0\n"})
        self.assertEqual([r.qualname for r in index.find_routines(".hidden/x.py:s")], ["s"])
        self.assertEqual([r.qualname for r in index.find_routines("./.hidden/x.py:s")], ["s"])

    def test_routine_identity_is_declaration_site(self):
        first, second = self.index.find_routines("save")
        self.assertNotEqual(first, second)
        self.assertEqual(first.key, "pkg/models.py:3:Repo.save")
        self.assertIn(first, self.index)
        self.assertEqual(len({first, second, self.index.find_routines("Repo.save")[0]}), 2)

    def test_summary(self):
        summary = self.index.get_summary()
        self.assertEqual(summary["files"], 3)
        self.assertEqual(summary["routines"], 5)
        self.assertEqual(summary["classes"], 1)
        self.assertEqual(summary["skipped_files"], [])
        self.assertEqual(len(self.index), 5)

    def test_unparseable_file_is_skipped(self):
        index = CodeIndex.from_sources(
            {"bad.py": "def broken(:\n", "good.py": "def fine():\n    return 1\n"}
        )
        self.assertEqual(index.skipped_files, ["bad.py"])
        self.assertEqual([r.qualname for r in index.routines], ["fine"])


class TestCallSiteResolution(unittest.TestCase):
    """
    测试调用点解析策略
    """

    def test_module_function_and_nested_def(self):
        index = CodeIndex.from_sources(
            sources(
                app="""
                def helper():
                    return 1

                def outer():
                    def helper():
                        return 2
                    return helper()

                def main():
                    return helper()
                """
            )
        )
        self.assertEqual(callers(index, "outer.helper"), ["outer"])
        module_helper = [r for r in index.find_routines("helper") if r.qualname == "helper"][0]
        self.assertEqual(
            [site.caller.qualname for site in index.find_call_sites(module_helper)], ["main"]
        )

    def test_self_super_and_attribute_types(self):
        index = CodeIndex.from_sources(
            sources(
                svc="""
                class Repo:
                    def save(self):
                        return 1


                class Base:
                    def setup(self):
                        self.ready = True

                    def run(self):
                        self.setup()


                class Service(Base):
                    def __init__(self):
                        self.repo = Repo()

                    def setup(self):
                        super().setup()

                    def handle(self):
                        self.repo.save()
                """
            )
        )
        self.assertEqual(callers(index, "Repo.save"), ["Service.handle"])
        self.assertEqual(callers(index, "Base.setup"), ["Base.run", "Service.setup"])
        self.assertEqual(callers(index, "Service.setup"), [])

    def test_constructor_resolves_to_init(self):
        index = CodeIndex.from_sources(
            sources(
                shapes="""
                class Point:
                    def __init__(self, x):
                        self.x = x


                def make():
                    return Point(1)
                """
            )
        )
        self.assertEqual(callers(index, "Point.__init__"), ["make"])

    def test_imports_across_modules(self):
        index = CodeIndex.from_sources(
            sources(
                {
                "pkg/__init__.py": "",
                "pkg/helpers.py": """
                def assist():
                    return 1

                def tool():
                    return 2
                """,
                "pkg/core.py": """
                from .helpers import assist
                from pkg import helpers as h


                def main():
                    assist()
                    h.tool()
                """,
                },
                util="""
                def shared():
                    return 3
                """,
                app="""
                import util as u
                from pkg.helpers import tool as renamed


                def go():
                    u.shared()
                    renamed()
                """,
            )
        )
        self.assertEqual(callers(index, "assist"), ["main"])
        self.assertEqual(callers(index, "tool"), ["go", "main"])
        self.assertEqual(callers(index, "shared"), ["go"])

    def test_parameter_annotation_and_class_method(self):
        index = CodeIndex.from_sources(
            sources(
                store="""
                class Store:
                    def put(self, item):
                        return item

                    @classmethod
                    def create(cls):
                        return cls()


                def fill(store: Store):
                    store.put(1)

                def build():
                    return Store.create()
                """
            )
        )
        self.assertEqual(callers(index, "Store.put"), ["fill"])
        self.assertEqual(callers(index, "Store.create"), ["build"])

    def test_ambiguous_attribute_calls(self):
        source = sources(
            mod="""
            class A:
                def run(self):
                    return 1


            class B:
                def run(self):
                    return 2

                def only(self):
                    return 3


            def f(x):
                x.run()
                x.only()
            """
        )
        unique = CodeIndex.from_sources(source)
        self.assertEqual(callers(unique, "A.run"), [])
        self.assertEqual(callers(unique, "B.only"), ["f"])

        everything = CodeIndex.from_sources(source, {"ambiguous_attribute_calls": "all"})
        self.assertEqual(callers(everything, "A.run"), ["f"])
        self.assertEqual(callers(everything, "B.run"), ["f"])

        nothing = CodeIndex.from_sources(source, {"ambiguous_attribute_calls": "none"})
        self.assertEqual(callers(nothing, "B.only"), [])

    def test_lambda_decorator_and_module_level(self):
        index = CodeIndex.from_sources(
            sources(
                mod="""
                def deco(func):
                    return func

                def work():
                    return 1

                def host():
                    @deco
                    def inner():
                        return 2
                    callback = lambda: work()
                    return callback, inner

                work()
                """
            )
        )
        self.assertEqual(callers(index, "work"), ["host", None])
        deco_sites = index.find_call_sites(index.find_routines("deco")[0])
        self.assertEqual(len(deco_sites), 1)
        self.assertEqual(deco_sites[0].kind, "reference")
        self.assertEqual(deco_sites[0].caller.qualname, "host")

    def test_bare_reference_sites(self):
        index = CodeIndex.from_sources(
            sources(
                mod="""
                import threading


                def job():
                    return 1

                def spawn():
                    threading.Thread(target=job).start()

                def call():
                    job()
                """
            )
        )
        sites = index.find_call_sites(index.find_routines("job")[0])
        self.assertEqual([(s.caller.qualname, s.kind) for s in sites], [("spawn", "reference"), ("call", "call")])
        self.assertTrue(sites[0].inside_async_boundary)
        self.assertFalse(sites[1].inside_async_boundary)
        self.assertEqual(sites[0].expression, "job")

    def test_enclosing_routine_of(self):
        index = CodeIndex.from_sources(
            sources(
                mod="""
                def outer(x=print("default")):
                    def inner():
                        return print("inner")
                    return print("outer")
                """
            )
        )
        outer = index.find_routines("outer")[0]
        outer_node = index.node_of(outer)
        calls = [n for n in ast.walk(outer_node) if isinstance(n, ast.Call)]
        found = {ast.unparse(call): index.enclosing_routine_of(call, "mod.py") for call in calls}
        self.assertIsNone(found["print('default')"])
        self.assertEqual(found["print('inner')"].qualname, "outer.inner")
        self.assertEqual(found["print('outer')"], outer)
        self.assertIsNone(index.enclosing_routine_of(calls[0], "missing.py"))

    def test_unreferenced_routine_has_no_sites(self):
        index = CodeIndex.from_sources(sources(mod="def lonely():\n    return 1\n"))
        self.assertEqual(index.find_call_sites(index.routines[0]), ())


class TestBuildFromDirectory(unittest.TestCase):
    """
    测试从磁盘目录构建索引
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        root = self.temp_dir.name
        os.makedirs(os.path.join(root, "pkg"))
        os.makedirs(os.path.join(root, "venv"))
        files = {
            "pkg/__init__.py": "",
            "pkg/a.py": "def alpha():\n    return 1\n",
            "pkg/b.py": "from pkg.a import alpha\n\n\ndef beta():\n    return alpha()\n",
            "venv/ignored.py": "def ignored():\n    return 0\n",
            "broken.py": "def broken(:\n",
        }
        for relative, content in files.items():
            with open(os.path.join(root, relative), "w", encoding="utf-8") as f:
                f.write(content)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_build_directory(self):
        index = CodeIndex.build(self.temp_dir.name)
        self.assertEqual(index.files, ["pkg/__init__.py", "pkg/a.py", "pkg/b.py"])
        self.assertEqual(index.skipped_files, ["broken.py"])
        self.assertEqual(callers(index, "alpha"), ["beta"])
        self.assertEqual(index.find_routines("ignored"), [])

    def test_find_routines_by_absolute_path(self):
        index = CodeIndex.build(self.temp_dir.name)
        absolute = os.path.join(self.temp_dir.name, "pkg", "a.py")
        self.assertEqual([r.full_name for r in index.find_routines(f"{absolute}:alpha")], ["pkg.a.alpha"])
        self.assertEqual(index.find_routines(f"{absolute}:missing"), [])

    def test_build_single_file(self):
        index = CodeIndex.build(os.path.join(self.temp_dir.name, "pkg", "a.py"))
        self.assertEqual(index.files, ["a.py"])
        self.assertEqual([r.full_name for r in index.routines], ["a.alpha"])

    def test_custom_exclude_dirs(self):
        index = CodeIndex.build(self.temp_dir.name, {"exclude_dirs": ["pkg"]})
        self.assertEqual(index.files, ["venv/ignored.py"])

    def test_missing_target(self):
        with self.assertRaises(FileNotFoundError):
            CodeIndex.build(os.path.join(self.temp_dir.name, "nope"))


if __name__ == "__main__":
    unittest.main()
