#!/usr/bin/env python3
"""Pack chaincode source and metadata into a deterministic .tar.gz archive."""

from __future__ import annotations

import argparse
import json
import os
import sys


THIS_DIR = os.path.dirname(os.path.abspath(__file__))
REPO_ROOT_HINT = os.path.normpath(os.path.join(THIS_DIR, "..", ".."))
if REPO_ROOT_HINT not in sys.path:
    sys.path.insert(0, REPO_ROOT_HINT)

from tools.ccpack.core.errors import PackagerError, refusal_from_error, refusal_payload  # noqa: E402
from tools.ccpack.core.log import EventLog  # noqa: E402
from tools.ccpack.packager import get_packager, load_packager_config  # noqa: E402
from tools.ccpack.packager.constants import LANGUAGE_GOLANG, SUPPORTED_LANGUAGES  # noqa: E402


def _norm(path: str) -> str:
    return str(path or "").replace("\\", "/")


def _check_inputs(args, go_path: str):
    if not (args.lang == LANGUAGE_GOLANG and go_path) and not os.path.isdir(args.source):
        return refusal_payload("refuse.invalid_input", "source directory not found", {"source": args.source})
    if args.metadata and not os.path.isdir(args.metadata):
        return refusal_payload("refuse.invalid_input", "metadata directory not found", {"metadata": args.metadata})
    out_parent = os.path.dirname(os.path.abspath(args.out))
    if not os.path.isdir(out_parent):
        return refusal_payload("refuse.invalid_input", "output directory not found", {"out": args.out})
    return None


def main() -> int:
    parser = argparse.ArgumentParser(description="Pack deterministic chaincode archives.")
    parser.add_argument("--lang", default=LANGUAGE_GOLANG, choices=SUPPORTED_LANGUAGES)
    parser.add_argument("--source", required=True, help="Chaincode directory (or import path when a GOPATH is set)")
    parser.add_argument("--metadata", default="", help="Metadata root; its .json files are packed under META-INF/")
    parser.add_argument("--out", required=True, help="Output archive path")
    parser.add_argument("--go-path", default="", help="GOPATH for golang import paths (default: $GOPATH)")
    parser.add_argument("--config", default="", help="JSON packager config")
    parser.add_argument("--trace", action="store_true", help="Emit JSON trace events on stderr")
    parser.add_argument("--quiet", action="store_true", help="Suppress events on stderr")
    args = parser.parse_args()

    log = EventLog(stream=sys.stderr, trace=args.trace, enabled=not args.quiet)
    try:
        config = load_packager_config(args.lang, config_path=args.config)
        go_path = args.go_path or config.go_path
        refusal = _check_inputs(args, go_path)
        if refusal:
            print(json.dumps(refusal, indent=2, sort_keys=True))
            return 3
        packager = get_packager(args.lang, config=config, go_path=go_path, log=log)
        result = packager.package(args.source, args.metadata or None, os.path.abspath(args.out))
        output = {
            "result": "complete",
            "language": packager.language,
            "archive_path": _norm(os.path.abspath(args.out)),
            "sha256": result.sha256,
            "byte_count": result.byte_count,
            "entry_count": len(result.entries),
            "entries": list(result.entries),
        }
        print(json.dumps(output, indent=2, sort_keys=True))
        return 0
    except PackagerError as exc:
        print(json.dumps(refusal_from_error(exc), indent=2, sort_keys=True))
        return 3
    except Exception as exc:  # pragma: no cover
        print(json.dumps(refusal_payload("refuse.internal_error", "pack failed", {"error": str(exc)}), indent=2, sort_keys=True))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
