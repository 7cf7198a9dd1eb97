#!/usr/bin/env python
"""
callpath 包的主入口点，允许通过 python -m callpath 执行。
"""

import sys
from callpath.main import run_callpath

if __name__ == "__main__":
    sys.exit(run_callpath())
