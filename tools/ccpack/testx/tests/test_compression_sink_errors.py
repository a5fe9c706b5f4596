"""FAST test: destination and compressor failures are refused and output flows incrementally."""

from __future__ import annotations

import gzip
import os
import random
import shutil
import sys


TEST_ID = "testx.ccpack.compression_sink_errors"
TEST_TAGS = ["smoke", "sink"]


class FailingDestination:
    def __init__(self, fail_after: int):
        self.fail_after = fail_after
        self.writes = 0

    def write(self, data):
        self.writes += 1
        if self.writes > self.fail_after:
            raise OSError(28, "No space left on device")
        return len(data)


class RaisingDestination:
    """Destination whose write fails with something other than an OSError."""

    def write(self, data):
        raise RuntimeError("transport closed")


class RecordingSocket:
    """Socket-like destination: only sendall, no write."""

    def __init__(self):
        self.parts = []

    def sendall(self, data):
        self.parts.append(bytes(data))


def run(repo_root: str):
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)
    test_dir = os.path.dirname(os.path.abspath(__file__))
    if test_dir not in sys.path:
        sys.path.insert(0, test_dir)
    from testlib import make_temp_dir, make_tree
    from tools.ccpack.core.errors import CompressionError, WriteError
    from tools.ccpack.packager import ArchiveBuilder, CompressionSink, NodePackager

    temp_root = make_temp_dir("sink")
    try:
        rng = random.Random(7)
        files = {"blob{}.js".format(index): rng.randbytes(256 * 1024) for index in range(4)}
        source_root = make_tree(os.path.join(temp_root, "src"), files)
        packager = NodePackager()
        descriptors = packager.order_descriptors(packager.find_source(source_root), [])

        for fail_after in (0, 3):
            try:
                packager.generate_tar_gz(descriptors, FailingDestination(fail_after))
            except WriteError as exc:
                if exc.code != "refuse.write_failed":
                    return {"status": "fail", "message": "unexpected refusal code {}".format(exc.code)}
                continue
            return {"status": "fail", "message": "destination failure after {} writes not refused".format(fail_after)}

        try:
            packager.generate_tar_gz(descriptors, RaisingDestination())
        except WriteError as exc:
            if exc.code != "refuse.write_failed" or not isinstance(exc.__cause__, RuntimeError):
                return {"status": "fail", "message": "foreign destination error mapped to {}".format(exc.code)}
        else:
            return {"status": "fail", "message": "RuntimeError from destination not refused"}

        out_path = os.path.join(temp_root, "bad-level.tar.gz")
        for level in (42, -3):
            try:
                NodePackager(compresslevel=level).package(source_root, None, out_path)
            except CompressionError as exc:
                if exc.code != "refuse.compression_failed":
                    return {"status": "fail", "message": "unexpected refusal code {}".format(exc.code)}
            else:
                return {"status": "fail", "message": "compresslevel {} accepted".format(level)}
        if os.listdir(temp_root) != ["src"]:
            return {"status": "fail", "message": "refused compression left files behind: {}".format(os.listdir(temp_root))}

        socket_like = RecordingSocket()
        consumed = []

        def tracked_chunks():
            for chunk in ArchiveBuilder().build(descriptors):
                consumed.append(len(socket_like.parts))
                yield chunk

        result = CompressionSink().wrap(tracked_chunks(), socket_like)
        data = b"".join(socket_like.parts)
        if result.byte_count != len(data):
            return {"status": "fail", "message": "byte_count mismatch for socket destination"}
        if len(consumed) != len(descriptors) + 1:
            return {"status": "fail", "message": "builder produced {} chunks".format(len(consumed))}
        if consumed[-1] == 0:
            return {"status": "fail", "message": "no compressed output reached the destination before the last entry"}
        if gzip.decompress(data) != b"".join(ArchiveBuilder().build(descriptors)):
            return {"status": "fail", "message": "socket destination content mismatch"}

        try:
            CompressionSink().wrap(iter([b"x"]), object())
        except WriteError:
            pass
        else:
            return {"status": "fail", "message": "non-writable destination accepted"}
    finally:
        shutil.rmtree(temp_root, ignore_errors=True)
    return {"status": "pass", "message": "compression sink error handling verified"}
