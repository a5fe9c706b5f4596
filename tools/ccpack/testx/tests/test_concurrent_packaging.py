"""STRICT test: concurrent package() calls share no state."""

from __future__ import annotations

import os
import shutil
import sys
from concurrent.futures import ThreadPoolExecutor


TEST_ID = "testx.ccpack.concurrent_packaging"
TEST_TAGS = ["strict", "archive"]


def run(repo_root: str):
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)
    test_dir = os.path.dirname(os.path.abspath(__file__))
    if test_dir not in sys.path:
        sys.path.insert(0, test_dir)
    from testlib import make_temp_dir, make_tree
    from tools.ccpack.packager import GolangPackager

    temp_root = make_temp_dir("concurrent")
    try:
        trees = []
        for index in range(4):
            files = {"pkg{}/f{}.go".format(index, item): "package p{}\n// {}\n".format(index, item).encode("utf-8") for item in range(20)}
            trees.append(make_tree(os.path.join(temp_root, "tree{}".format(index)), files))

        packager = GolangPackager()
        sequential = [packager.package(root).data for root in trees]
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = list(pool.map(lambda root: packager.package(root).data, trees * 2))
        if parallel != sequential * 2:
            return {"status": "fail", "message": "concurrent packaging output differs from sequential"}
        if len(set(sequential)) != len(sequential):
            return {"status": "fail", "message": "distinct trees produced identical archives"}
    finally:
        shutil.rmtree(temp_root, ignore_errors=True)
    return {"status": "pass", "message": "concurrent packaging is isolated"}
