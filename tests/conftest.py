"""Shared fakes for catalog and orchestration tests."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from constants import ArtifactType, Constants
from catalog import keys
from common.errors import UpstreamError

FIXTURES = Path(__file__).parent / "fixtures"
ROOT = Constants.REPOSITORY_ROOT


def fixture_text(*parts: str) -> str:
    return FIXTURES.joinpath(*parts).read_text(encoding="utf-8")


class FakeKV:
    """In-memory stand-in for the Consul KV client."""

    def __init__(self, data: Optional[Dict[str, object]] = None):
        self.data: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_delete = set()
        for key, value in (data or {}).items():
            self.put(key, value)

    def get(self, key):
        return self.data.get(key)

    def keys(self, prefix, separator=None):
        found = []
        for key in sorted(self.data):
            if not key.startswith(prefix):
                continue
            if separator:
                rest = key[len(prefix):]
                if separator in rest:
                    key = prefix + rest[: rest.index(separator) + 1]
            if key not in found:
                found.append(key)
        return found

    def list(self, prefix):
        return [(key, self.data[key]) for key in sorted(self.data) if key.startswith(prefix)]

    def put(self, key, value):
        if isinstance(value, str):
            value = value.encode("utf-8")
        self.data[key] = value

    def delete(self, key):
        if key in self.fail_delete:
            raise UpstreamError(f"delete {key} refused", operation="kv_delete", target=key)
        self.deleted.append(key)
        self.data.pop(key, None)


class FakeZookeeper:
    """In-memory coordination service holding a set of node paths."""

    def __init__(self, paths: Iterable[str] = ()):
        self.nodes = set()
        self.deleted: List[str] = []
        self.fail_delete = set()
        self.sessions = 0
        for path in paths:
            self.add(path)

    def add(self, path):
        parts = path.strip("/").split("/")
        for i in range(1, len(parts) + 1):
            self.nodes.add("/" + "/".join(parts[:i]))

    def __enter__(self):
        self.sessions += 1
        return self

    def __exit__(self, *exc):
        return None

    def children(self, path):
        if path not in self.nodes:
            raise UpstreamError(f"no node {path}", operation="get_children", target=path)
        prefix = path.rstrip("/") + "/"
        return [node[len(prefix):] for node in self.nodes
                if node.startswith(prefix) and "/" not in node[len(prefix):]]

    def delete(self, path):
        if path in self.fail_delete:
            raise UpstreamError(f"delete {path} refused", operation="delete", target=path)
        if path not in self.nodes:
            raise UpstreamError(f"no node {path}", operation="delete", target=path)
        if self.children(path):
            raise UpstreamError(f"{path} not empty", operation="delete", target=path)
        self.nodes.discard(path)
        self.deleted.append(path)


def add_repository(kv: FakeKV, index: int, name: str) -> None:
    kv.put(keys.name_key(ROOT, index), name)


def add_index(kv: FakeKV, packages: List[dict], index: int = 0) -> None:
    kv.put(keys.index_key(ROOT, index), json.dumps({"packages": packages}))


def add_artifact(kv: FakeKV, index: int, name: str, release: str, artifact: ArtifactType, content: str) -> None:
    kv.put(keys.artifact_key(ROOT, index, name, release, artifact), content)


def mark_supported(kv: FakeKV, index: int, name: str, release: str, content: str = "{}") -> None:
    add_artifact(kv, index, name, release, ArtifactType.OPTIONS, content)


@pytest.fixture
def kv():
    return FakeKV()


@pytest.fixture
def zookeeper():
    return FakeZookeeper()
