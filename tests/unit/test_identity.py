"""Tests for deterministic session ids."""

import hashlib
import re

from trailmark.identity import derive_session_id

UUID_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


class TestDeriveSessionId:
    def test_same_path_same_id(self):
        assert derive_session_id("/tmp/a.jsonl") == derive_session_id("/tmp/a.jsonl")

    def test_different_paths_differ(self):
        assert derive_session_id("/tmp/a.jsonl") != derive_session_id("/tmp/b.jsonl")

    def test_uuid_shaped(self):
        assert UUID_SHAPE.match(derive_session_id("/home/dev/.pi/sessions/x.jsonl"))

    def test_is_sha256_prefix(self):
        """The hex digits are the first 32 of the path's SHA-256."""
        path = "/tmp/a.jsonl"
        expected = hashlib.sha256(path.encode("utf-8")).hexdigest()[:32]
        assert derive_session_id(path).replace("-", "") == expected

    def test_non_ascii_path(self):
        session_id = derive_session_id("/home/dév/会话.jsonl")
        assert UUID_SHAPE.match(session_id)
