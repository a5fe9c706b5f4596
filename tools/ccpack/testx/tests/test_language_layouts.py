"""FAST test: per-language naming conventions and excluded directories."""

from __future__ import annotations

import os
import shutil
import sys


TEST_ID = "testx.ccpack.language_layouts"
TEST_TAGS = ["smoke", "packager"]


def run(repo_root: str):
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)
    test_dir = os.path.dirname(os.path.abspath(__file__))
    if test_dir not in sys.path:
        sys.path.insert(0, test_dir)
    from testlib import make_temp_dir, make_tree, read_entries
    from tools.ccpack.packager import GolangPackager, JavaPackager, NodePackager, package

    temp_root = make_temp_dir("layouts")
    try:
        node_root = make_tree(
            os.path.join(temp_root, "node"),
            {
                "package.json": b'{"name":"cc"}',
                "lib/chaincode.js": b"module.exports = {};\n",
                "node_modules/dep/index.js": b"module.exports = 1;\n",
                "lib/node_modules/nested/index.js": b"x\n",
                "notes.txt": b"skip\n",
            },
        )
        names = [info.name for info, _ in read_entries(NodePackager().package(node_root).data)]
        if names != ["src/lib/chaincode.js", "src/package.json"]:
            return {"status": "fail", "message": "unexpected node entries {}".format(names)}

        java_root = make_tree(
            os.path.join(temp_root, "java"),
            {
                "build.gradle": b"plugins {}\n",
                "src/main/java/org/example/Cc.java": b"class Cc {}\n",
                "build/classes/Cc.class": b"\xca\xfe\xba\xbe",
                "target/gen/Gen.java": b"class Gen {}\n",
                ".gradle/cache.properties": b"x=1\n",
            },
        )
        names = [info.name for info, _ in read_entries(JavaPackager().package(java_root).data)]
        if names != ["src/build.gradle", "src/src/main/java/org/example/Cc.java"]:
            return {"status": "fail", "message": "unexpected java entries {}".format(names)}

        go_path = os.path.join(temp_root, "gopath")
        make_tree(
            go_path,
            {
                "src/github.com/example/cc/main.go": b"package main\n",
                "src/github.com/example/cc/store/store.go": b"package store\n",
                "src/github.com/example/other/other.go": b"package other\n",
            },
        )
        meta_root = make_tree(os.path.join(temp_root, "meta"), {"statedb/couchdb/indexes/i.json": b"{}"})
        result = GolangPackager(go_path=go_path).package("github.com/example/cc", meta_root)
        names = [info.name for info, _ in read_entries(result.data)]
        expected = [
            "src/github.com/example/cc/main.go",
            "src/github.com/example/cc/store/store.go",
            "META-INF/statedb/couchdb/indexes/i.json",
        ]
        if names != expected:
            return {"status": "fail", "message": "unexpected gopath entries {}".format(names)}

        plain = GolangPackager().package(os.path.join(go_path, "src", "github.com", "example", "cc"))
        names = [info.name for info, _ in read_entries(plain.data)]
        if names != ["src/main.go", "src/store/store.go"]:
            return {"status": "fail", "message": "unexpected plain golang entries {}".format(names)}

        if package(node_root, "node", dev_mode=True) is not None:
            return {"status": "fail", "message": "dev mode must skip packaging"}
        dispatched = package(node_root, "node")
        if dispatched is None or dispatched.data != NodePackager().package(node_root).data:
            return {"status": "fail", "message": "dispatcher output differs from NodePackager"}
    finally:
        shutil.rmtree(temp_root, ignore_errors=True)
    return {"status": "pass", "message": "language layouts verified"}
