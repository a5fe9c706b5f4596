"""FAST test: source/metadata predicates are exact extension matches."""

from __future__ import annotations

import random
import sys


TEST_ID = "testx.ccpack.classify_rules"
TEST_TAGS = ["smoke", "classify"]


def run(repo_root: str):
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)
    from tools.ccpack.core.errors import ConfigError
    from tools.ccpack.packager.classify import ClassificationRule, SourceClassifier, extname

    classifier = SourceClassifier(ClassificationRule.from_extensions([".go", ".c"]))
    expected = {
        "main.go": True,
        "/abs/dir/main.go": True,
        "dir.go/Makefile": False,
        "main.GO": False,
        "main.go.txt": False,
        "Makefile": False,
        ".go": False,
        "lib.c": True,
    }
    for path, want in expected.items():
        if classifier.is_source(path) != want:
            return {"status": "fail", "message": "is_source({!r}) expected {}".format(path, want)}

    for path, want in (("a/b/c.json", True), ("c.JSON", False), (".json", False), ("c.json5", False), ("c", False)):
        if classifier.is_metadata(path) != want:
            return {"status": "fail", "message": "is_metadata({!r}) expected {}".format(path, want)}

    rng = random.Random(1337)
    alphabet = "abcJSONgo.xyz"
    allowed = {".go", ".c"}
    for _ in range(500):
        ext = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 5)))
        path = "dir/file" + ext
        ext_token = extname(path)
        if classifier.is_source(path) != (ext_token in allowed):
            return {"status": "fail", "message": "is_source disagrees with allow-list for {!r}".format(path)}
        if classifier.is_metadata(path) != (ext_token == ".json"):
            return {"status": "fail", "message": "is_metadata disagrees with .json rule for {!r}".format(path)}

    for bad in (["go"], [""], ["."], ".go"):
        try:
            ClassificationRule.from_extensions(bad)
        except ConfigError as exc:
            if exc.code != "refuse.config_invalid":
                return {"status": "fail", "message": "unexpected refusal code {}".format(exc.code)}
            continue
        return {"status": "fail", "message": "invalid keep list {!r} was accepted".format(bad)}

    return {"status": "pass", "message": "classification predicates are exact"}
