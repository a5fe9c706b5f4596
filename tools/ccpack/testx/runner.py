#!/usr/bin/env python3
"""Deterministic TestX runner for the ccpack suite with profile selection and sharding."""

from __future__ import annotations

import argparse
import hashlib
import importlib.util
import json
import os
import sys
import time
from typing import Dict, List


THIS_DIR = os.path.dirname(os.path.abspath(__file__))
REPO_ROOT_HINT = os.path.normpath(os.path.join(THIS_DIR, "..", "..", ".."))
if REPO_ROOT_HINT not in sys.path:
    sys.path.insert(0, REPO_ROOT_HINT)


TESTS_ROOT_REL = "tools/ccpack/testx/tests"


def _norm(path: str) -> str:
    return str(path or "").replace("\\", "/")


def _hash_text(text: str) -> str:
    return hashlib.sha256(str(text).encode("utf-8")).hexdigest()


def discover_tests(repo_root: str) -> List[Dict[str, object]]:
    tests_root = os.path.join(repo_root, TESTS_ROOT_REL.replace("/", os.sep))
    out: List[Dict[str, object]] = []
    if not os.path.isdir(tests_root):
        return out
    for root, _dirs, files in os.walk(tests_root):
        for name in sorted(files):
            if not name.startswith("test_") or not name.endswith(".py"):
                continue
            abs_path = os.path.join(root, name)
            rel_path = _norm(os.path.relpath(abs_path, repo_root))
            out.append(
                {
                    "abs_path": abs_path,
                    "rel_path": rel_path,
                }
            )
    return sorted(out, key=lambda row: str(row.get("rel_path", "")))


def load_test_module(module_path: str, module_token: str = ""):
    token = module_token or "ccpack_testx_{}".format(_hash_text(_norm(module_path))[:12])
    spec = importlib.util.spec_from_file_location(token, module_path)
    if not spec or not spec.loader:
        raise RuntimeError("unable to create module spec for '{}'".format(module_path))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _test_id(module, rel_path: str) -> str:
    token = str(getattr(module, "TEST_ID", "")).strip()
    if token:
        return token
    return _norm(rel_path).replace("/", ".").replace(".py", "")


def _test_tags(module) -> List[str]:
    raw = getattr(module, "TEST_TAGS", ["smoke"])
    if not isinstance(raw, list):
        return ["smoke"]
    tags = [str(item).strip() for item in raw if str(item).strip()]
    return sorted(set(tags or ["smoke"]))


def _should_include_test(profile: str, tags: List[str]) -> bool:
    token = str(profile or "").strip().upper() or "FAST"
    if token in ("STRICT", "FULL"):
        return True
    return "smoke" in set(tags)


def _shard_match(test_id: str, shards: int, shard_index: int) -> bool:
    digest = hashlib.sha256(str(test_id).encode("utf-8")).hexdigest()
    bucket = int(digest, 16) % int(shards)
    return bucket == int(shard_index)


def _result_status(raw: Dict[str, object]) -> str:
    token = str(raw.get("status", "")).strip().lower()
    if token in ("pass", "fail", "refusal"):
        return token
    return "fail"


def _result_message(raw: Dict[str, object], default: str) -> str:
    token = str(raw.get("message", "")).strip()
    return token or default


def run_test_module(module, repo_root: str) -> Dict[str, str]:
    if not hasattr(module, "run"):
        return {"status": "fail", "message": "test module missing run(repo_root) entrypoint"}
    try:
        raw = module.run(repo_root)
    except Exception as exc:
        return {"status": "fail", "message": "test execution crashed: {}".format(str(exc))}
    if not isinstance(raw, dict):
        raw = {"status": "fail", "message": "test returned non-object payload"}
    return {"status": _result_status(raw), "message": _result_message(raw, "test executed")}


def run_testx_suite(repo_root: str, profile: str, shards: int = 1, shard_index: int = 0) -> Dict[str, object]:
    token = str(profile or "").strip().upper() or "FAST"
    shard_count = int(shards)
    index = int(shard_index)
    if shard_count < 1 or index < 0 or index >= shard_count:
        return {
            "status": "refusal",
            "message": "invalid shard selection {}/{}".format(index, shard_count),
            "findings": [
                {
                    "severity": "refusal",
                    "code": "refuse.testx.invalid_shard",
                    "message": "shards must be >= 1 and shard-index within range",
                }
            ],
            "tests": [],
        }

    selected: List[Dict[str, object]] = []
    for row in discover_tests(repo_root):
        rel_path = str(row.get("rel_path", ""))
        try:
            module = load_test_module(str(row.get("abs_path", "")))
        except Exception as exc:
            selected.append({"id": rel_path, "rel_path": rel_path, "module": None, "module_error": str(exc)})
            continue
        test_id = _test_id(module, rel_path)
        if not _should_include_test(token, _test_tags(module)):
            continue
        if not _shard_match(test_id, shard_count, index):
            continue
        selected.append({"id": test_id, "rel_path": rel_path, "module": module, "module_error": ""})

    test_rows: List[Dict[str, object]] = []
    findings: List[Dict[str, object]] = []
    for row in sorted(selected, key=lambda item: str(item.get("id", ""))):
        test_id = str(row.get("id", ""))
        started = time.perf_counter()
        if row.get("module_error"):
            outcome = {"status": "fail", "message": "module load failed: {}".format(row.get("module_error"))}
        else:
            outcome = run_test_module(row.get("module"), repo_root)
        elapsed_ms = int((time.perf_counter() - started) * 1000.0)
        test_rows.append(
            {
                "test_id": test_id,
                "status": outcome["status"],
                "message": outcome["message"],
                "duration_ms": elapsed_ms,
                "rel_path": str(row.get("rel_path", "")),
            }
        )
        if outcome["status"] in ("fail", "refusal"):
            findings.append(
                {
                    "severity": "refusal" if outcome["status"] == "refusal" else "fail",
                    "code": "testx.{}".format(outcome["status"]),
                    "message": "{}: {}".format(test_id, outcome["message"]),
                }
            )

    status = "pass"
    if any(str(row.get("status", "")) == "refusal" for row in test_rows):
        status = "refusal"
    elif any(str(row.get("status", "")) == "fail" for row in test_rows):
        status = "fail"

    return {
        "status": status,
        "message": "testx {} (selected_tests={})".format(
            "passed" if status == "pass" else "completed_with_findings",
            len(test_rows),
        ),
        "findings": sorted(findings, key=lambda item: (item["severity"], item["code"], item["message"])),
        "tests": test_rows,
        "selection": {
            "profile": token,
            "selected_count": len(test_rows),
            "shards": shard_count,
            "shard_index": index,
        },
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Run deterministic ccpack TestX tests.")
    parser.add_argument("--repo-root", default="")
    parser.add_argument("--profile", default="FAST", choices=("FAST", "STRICT", "FULL"))
    parser.add_argument("--shards", type=int, default=1)
    parser.add_argument("--shard-index", type=int, default=0)
    args = parser.parse_args()

    repo_root = os.path.normpath(os.path.abspath(args.repo_root)) if str(args.repo_root).strip() else REPO_ROOT_HINT
    result = run_testx_suite(
        repo_root=repo_root,
        profile=str(args.profile),
        shards=int(args.shards),
        shard_index=int(args.shard_index),
    )
    print(json.dumps(result, indent=2, sort_keys=True))
    status = str(result.get("status", "error"))
    if status == "pass":
        return 0
    if status == "refusal":
        return 2
    if status == "fail":
        return 1
    return 3


if __name__ == "__main__":
    raise SystemExit(main())
