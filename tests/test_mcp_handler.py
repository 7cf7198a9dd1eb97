import asyncio
import sys
import unittest
from pathlib import Path

import pytest

# 添加项目根目录到 Python 路径
current_dir = Path(__file__).parent
project_root = current_dir.parent
sys.path.append(str(project_root))

pytest.importorskip("pydantic")

from callpath.mcp.handlers import CallPathMCPHandler  # noqa: E402
from callpath.mcp.models import FindCallPathsRequest, ListRoutinesRequest  # noqa: E402

SOURCES = {
    "svc.py": (
        "class Repo:\n"
        "    def save(self):\n"
        "        return 1\n"
        "\n"
        "\n"
        "class Service:\n"
        "    def __init__(self):\n"
        "        self.repo = Repo()\n"
        "\n"
        "    def handle(self):\n"
        "        self.repo.save()\n"
        "\n"
        "    def idle(self):\n"
        "        return None\n"
    )
}


class TestMCPHandler(unittest.TestCase):
    """
    测试 MCP 请求处理器
    """

    def setUp(self):
        self.handler = CallPathMCPHandler()

    def test_server_info(self):
        info = asyncio.run(self.handler.get_server_info())
        self.assertEqual(info.name, "callpath MCP Server")
        self.assertIn("find_call_paths", info.capabilities)

    def test_find_call_paths(self):
        request = FindCallPathsRequest(start="Service.handle", method="save", sources=SOURCES)
        response = asyncio.run(self.handler.find_call_paths(request))
        self.assertTrue(response.success)
        self.assertEqual(response.outcome, "paths_found")
        self.assertEqual(response.candidates[0].paths, [["Service.handle"]])
        self.assertEqual(response.summary["path_count"], 1)

    def test_refusal_is_not_success(self):
        request = FindCallPathsRequest(start="Service.idle", method="missing", sources=SOURCES)
        response = asyncio.run(self.handler.find_call_paths(request))
        self.assertFalse(response.success)
        self.assertEqual(response.outcome, "target_not_found")
        self.assertEqual(response.message, "Method missing not found")

    def test_unknown_start(self):
        request = FindCallPathsRequest(start="nowhere", method="save", sources=SOURCES)
        response = asyncio.run(self.handler.find_call_paths(request))
        self.assertFalse(response.success)
        self.assertEqual(response.errors, ["Start routine nowhere not found"])

    def test_invalid_config(self):
        request = FindCallPathsRequest(
            start="Service.handle",
            method="save",
            sources=SOURCES,
            config={"async_boundary_policy": "ignore"},
        )
        response = asyncio.run(self.handler.find_call_paths(request))
        self.assertFalse(response.success)
        self.assertTrue(response.errors)

    def test_missing_target_path(self):
        request = FindCallPathsRequest(start="main", method="save", target_path="/no/such/dir")
        response = asyncio.run(self.handler.find_call_paths(request))
        self.assertFalse(response.success)
        self.assertIn("not found", response.errors[0])

    def test_list_routines(self):
        response = asyncio.run(
            self.handler.list_routines(ListRoutinesRequest(sources=SOURCES, name="Service.handle"))
        )
        self.assertTrue(response.success)
        self.assertEqual([r["qualname"] for r in response.routines], ["Service.handle"])

        response = asyncio.run(self.handler.list_routines(ListRoutinesRequest()))
        self.assertFalse(response.success)


if __name__ == "__main__":
    unittest.main()
