import sys
import textwrap
import time
import unittest
from pathlib import Path

# 添加项目根目录到 Python 路径
current_dir = Path(__file__).parent
project_root = current_dir.parent
sys.path.append(str(project_root))

from callpath.analysis.index import CodeIndex
from callpath.analysis.path_search import (
    CancellationToken,
    PathFinder,
    SearchCanceled,
    find_call_paths,
)


def build_index(source, config=None, file_name="example.py"):
    return CodeIndex.from_sources({file_name: textwrap.dedent(source)}, config)


def routine(index, spec):
    matches = index.find_routines(spec)
    assert len(matches) == 1, f"{spec}: {matches}"
    return matches[0]


CHAIN_SOURCE = """
def interesting_method():
    print("reached")

def baz():
    interesting_method()

def bar():
    baz()

def foo():
    bar()
    baz()
"""


class TestBackwardSearch(unittest.TestCase):
    """
    测试反向深度优先路径搜索
    """

    def test_chain_with_shortcut(self):
        """foo -> bar -> baz -> target，foo 也直接调用 baz"""
        index = build_index(CHAIN_SOURCE)
        paths = find_call_paths(
            index, routine(index, "interesting_method"), routine(index, "foo")
        )
        self.assertEqual(paths, [("foo", "bar", "baz"), ("foo", "baz")])

    def test_direct_caller_path_contains_only_start(self):
        index = build_index(CHAIN_SOURCE)
        paths = find_call_paths(
            index, routine(index, "interesting_method"), routine(index, "baz")
        )
        self.assertEqual(paths, [("baz",)])

    def test_diamond(self):
        """S 调用 A 和 B，A 和 B 都调用 T"""
        index = build_index(
            """
            def t():
                return 1

            def a():
                t()

            def b():
                t()

            def s():
                a()
                b()
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertEqual(paths, [("s", "a"), ("s", "b")])

    def test_same_named_callers_in_different_modules(self):
        """a.helper 和 b.helper 同名，但属于两条不同的调用链"""
        index = CodeIndex.from_sources(
            {
                "lib.py": "def t():\n    return 1\n",
                "a.py": "from lib import t\n\n\ndef helper():\n    t()\n",
                "b.py": "from lib import t\n\n\ndef helper():\n    t()\n",
                "main.py": "import a\nimport b\n\n\ndef s():\n    a.helper()\n    b.helper()\n",
            }
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertEqual(paths, [("s", "a.helper"), ("s", "b.helper")])

    def test_shared_routine_appears_in_sibling_paths(self):
        index = build_index(
            """
            def t():
                return 1

            def a():
                t()

            def b():
                t()

            def m():
                a()
                b()

            def s():
                m()
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertEqual(paths, [("s", "m", "a"), ("s", "m", "b")])

    def test_cycle_without_start_terminates(self):
        index = build_index(
            """
            def a():
                b()

            def b():
                c()

            def c():
                a()

            def s():
                return 0
            """
        )
        start = routine(index, "s")
        for name in ("a", "b", "c"):
            self.assertEqual(find_call_paths(index, routine(index, name), start), [])

    def test_cycle_through_start(self):
        index = build_index(
            """
            def a():
                b()

            def b():
                a()
                t()

            def t():
                return 1
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "a"))
        self.assertEqual(paths, [("a", "b")])

    def test_self_loop_on_target(self):
        index = build_index(
            """
            def t(n):
                if n:
                    t(n - 1)

            def s():
                t(3)
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertEqual(paths, [("s",)])

    def test_repeated_call_sites_yield_one_path(self):
        index = build_index(
            """
            def t():
                return 1

            def s():
                t()
                t()
                value = t()
                return value
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertEqual(paths, [("s",)])

    def test_unreachable_target(self):
        index = build_index(
            """
            def t():
                return 1

            def other():
                t()

            def s():
                return 2
            """
        )
        self.assertEqual(
            find_call_paths(index, routine(index, "t"), routine(index, "s")), []
        )

    def test_paths_are_acyclic_and_anchored(self):
        index = build_index(
            """
            def t():
                return 1

            def a():
                t()
                b()

            def b():
                a()
                t()

            def s():
                a()
                b()
            """
        )
        paths = find_call_paths(index, routine(index, "t"), routine(index, "s"))
        self.assertTrue(paths)
        for path in paths:
            self.assertEqual(path[0], "s")
            self.assertNotIn("t", path)
            self.assertEqual(len(path), len(set(path)))
        self.assertEqual(len(paths), len(set(paths)))
        self.assertEqual(
            sorted(paths),
            sorted([("s", "a"), ("s", "b", "a"), ("s", "b"), ("s", "a", "b")]),
        )

    def test_cross_type_call(self):
        """X.s 通过 Y 的实例调用 bar"""
        index = build_index(
            """
            class Y:
                def bar(self):
                    return 42


            class X:
                def s(self):
                    y = Y()
                    return y.bar()
            """
        )
        paths = find_call_paths(index, routine(index, "Y.bar"), routine(index, "X.s"))
        self.assertEqual(paths, [("X.s",)])

    def test_polymorphic_call_resolves_declared_type(self):
        index = build_index(
            """
            class Animal:
                def make_sound(self):
                    return "..."


            class Dog(Animal):
                def make_sound(self):
                    return "woof"


            def s():
                a: Animal = Dog()
                return a.make_sound()
            """
        )
        start = routine(index, "s")
        self.assertEqual(
            find_call_paths(index, routine(index, "Animal.make_sound"), start), [("s",)]
        )
        self.assertEqual(find_call_paths(index, routine(index, "Dog.make_sound"), start), [])

    def test_deep_chain_exceeds_default_recursion_limit(self):
        depth = sys.getrecursionlimit() + 200
        lines = []
        for i in range(depth - 1):
            lines.append(f"def f{i}():\n    f{i + 1}()\n")
        lines.append(f"def f{depth - 1}():\n    return 0\n")
        index = CodeIndex.from_sources({"deep.py": "\n".join(lines)})

        limit_before = sys.getrecursionlimit()
        paths = find_call_paths(
            index, routine(index, f"f{depth - 1}"), routine(index, "f0")
        )
        self.assertEqual(len(paths), 1)
        self.assertEqual(len(paths[0]), depth - 1)
        self.assertEqual(paths[0][0], "f0")
        self.assertEqual(sys.getrecursionlimit(), limit_before)


THREAD_SOURCE = """
import threading
from concurrent.futures import ThreadPoolExecutor


def target():
    return 1

def helper():
    target()

def direct():
    helper()

def spawner():
    threading.Thread(target=helper).start()

def pooled():
    with ThreadPoolExecutor() as pool:
        pool.submit(helper)

def main():
    direct()
    spawner()
"""


class TestAsyncBoundaryPruning(unittest.TestCase):
    """
    测试线程/执行器边界的剪枝策略
    """

    def test_thread_reference_is_pruned(self):
        index = build_index(
            """
            import threading


            def target():
                return 1

            def worker():
                target()

            def start():
                t = threading.Thread(target=worker)
                t.start()
            """
        )
        self.assertEqual(
            find_call_paths(index, routine(index, "target"), routine(index, "start")), []
        )

    def test_same_graph_without_thread_finds_path(self):
        index = build_index(
            """
            def target():
                return 1

            def worker():
                target()

            def start():
                worker()
            """
        )
        self.assertEqual(
            find_call_paths(index, routine(index, "target"), routine(index, "start")),
            [("start", "worker")],
        )

    def test_executor_submit_is_pruned(self):
        index = build_index(
            """
            from concurrent.futures import ThreadPoolExecutor


            def target():
                return 1

            def job():
                target()

            def run():
                with ThreadPoolExecutor() as pool:
                    pool.submit(job)
            """
        )
        self.assertEqual(
            find_call_paths(index, routine(index, "target"), routine(index, "run")), []
        )

    def test_sever_branch_keeps_paths_found_before_boundary(self):
        index = build_index(THREAD_SOURCE)
        paths = find_call_paths(index, routine(index, "target"), routine(index, "main"))
        # direct() is referenced before spawner() and pooled() in source order
        self.assertEqual(paths, [("main", "direct", "helper")])

    def test_sever_branch_discards_later_unguarded_call_sites(self):
        index = build_index(
            """
            import threading


            def target():
                return 1

            def helper():
                target()

            def spawner():
                threading.Thread(target=helper).start()

            def direct():
                helper()

            def main():
                spawner()
                direct()
            """
        )
        target, start = routine(index, "target"), routine(index, "main")
        self.assertEqual(find_call_paths(index, target, start), [])
        self.assertEqual(
            find_call_paths(index, target, start, boundary_policy="skip_call_site"),
            [("main", "direct", "helper")],
        )

    def test_unknown_policy_rejected(self):
        index = build_index(CHAIN_SOURCE)
        with self.assertRaises(ValueError):
            PathFinder(index, routine(index, "foo"), boundary_policy="ignore")


class TestCancellation(unittest.TestCase):
    """
    测试协作式取消与进度回调
    """

    def test_cancelled_token_aborts_search(self):
        index = build_index(CHAIN_SOURCE)
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(SearchCanceled):
            find_call_paths(
                index,
                routine(index, "interesting_method"),
                routine(index, "foo"),
                cancellation=token,
            )

    def test_cancel_from_progress_callback(self):
        index = build_index(CHAIN_SOURCE)
        token = CancellationToken()

        def progress(count, current):
            if count == 2:
                token.cancel()

        with self.assertRaises(SearchCanceled):
            find_call_paths(
                index,
                routine(index, "interesting_method"),
                routine(index, "foo"),
                cancellation=token,
                progress=progress,
            )

    def test_deadline_expires(self):
        token = CancellationToken(timeout=0.01)
        self.assertFalse(token.cancelled)
        time.sleep(0.05)
        self.assertTrue(token.cancelled)
        with self.assertRaises(SearchCanceled):
            token.raise_if_cancelled()

    def test_progress_reports_expanded_routines(self):
        index = build_index(CHAIN_SOURCE)
        seen = []
        finder = PathFinder(
            index,
            routine(index, "foo"),
            progress=lambda count, current: seen.append((count, current.name)),
        )
        finder.find_call_paths(routine(index, "interesting_method"))
        self.assertEqual(
            seen, [(1, "interesting_method"), (2, "baz"), (3, "bar")]
        )
        self.assertEqual(finder.expanded, 3)


if __name__ == "__main__":
    unittest.main()
