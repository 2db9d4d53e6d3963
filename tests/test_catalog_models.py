"""Tests for catalog models: index parsing, recency and version fallback."""

import pytest

from catalog.models import (
    Package,
    PackageIndexEntry,
    PackageVersion,
    by_recency,
    parse_package_index,
)
from common.errors import UpstreamError


def package(current="", supported=(), **versions):
    pkg = Package(
        name="kafka",
        current_version=current,
        versions={v: PackageVersion(version=v, index=i) for v, i in versions.items()},
    )
    for version in supported:
        pkg.versions[version].supported = True
    return pkg


class TestRecency:
    """Release-index ordering."""

    def test_most_recent_first(self):
        versions = [
            PackageVersion("1.0", "1"),
            PackageVersion("0.9", "0"),
            PackageVersion("1.2", "3"),
            PackageVersion("1.1", "2"),
        ]
        assert [v.index for v in by_recency(versions)] == ["3", "2", "1", "0"]

    def test_lexicographic_comparison(self):
        versions = [PackageVersion("a", "10"), PackageVersion("b", "9")]
        assert [v.index for v in by_recency(versions)] == ["9", "10"]


class TestIndexParsing:
    """index.json decoding."""

    def test_packages_object(self):
        entries = parse_package_index(
            b'{"packages": [{"name": "kafka", "currentVersion": "1.0", "framework": true,'
            b' "tags": ["queue"], "versions": {"1.0": "0", "1.1": "1"}}]}'
        )
        assert entries == [
            PackageIndexEntry(
                name="kafka",
                framework=True,
                current_version="1.0",
                tags=["queue"],
                versions={"1.0": "0", "1.1": "1"},
            )
        ]

    def test_framework_flag_requires_boolean(self):
        entries = parse_package_index(b'[{"name": "hdfs", "framework": "false", "versions": {"2": "0"}}]')
        assert entries[0].framework is False

    def test_bare_list_and_case_insensitive_keys(self):
        entries = parse_package_index(b'[{"Name": "hdfs", "CurrentVersion": "2", "Versions": {"2": "0"}}]')
        assert entries[0].name == "hdfs"
        assert entries[0].current_version == "2"
        assert entries[0].versions == {"2": "0"}

    @pytest.mark.parametrize("blob", [b"{not json", b'"text"', b'{"packages": [{"name": "x", "versions": "1.0"}]}'])
    def test_malformed(self, blob):
        with pytest.raises(UpstreamError):
            parse_package_index(blob)

    def test_to_package_starts_unsupported(self):
        pkg = PackageIndexEntry(name="kafka", versions={"1.0": "0"}).to_package()
        assert pkg.versions["1.0"] == PackageVersion("1.0", "0", supported=False)
        assert not pkg.supported


class TestVersionResolution:
    """Fallback chain and current version recomputation."""

    def test_requested_version(self):
        pkg = package(current="1.0", supported=["1.0"], **{"1.0": "0", "1.1": "1"})
        assert pkg.find_package_version("1.1").version == "1.1"

    def test_requested_lookup_trimmed_case_insensitive(self):
        pkg = package(**{"1.0-RC1": "0"})
        assert pkg.find_package_version("  1.0-rc1 ").version == "1.0-RC1"

    def test_falls_back_to_current(self):
        pkg = package(current="1.0", **{"1.0": "0", "1.1": "1"})
        assert pkg.find_package_version("9.9").version == "1.0"

    def test_falls_back_to_latest_supported(self):
        pkg = package(current="missing", supported=["1.0"], **{"1.0": "0", "1.1": "1"})
        assert pkg.find_package_version(None).version == "1.0"

    def test_falls_back_to_latest(self):
        pkg = package(**{"1.0": "0", "1.1": "1"})
        assert pkg.find_package_version("").version == "1.1"

    def test_no_versions(self):
        assert package().find_package_version("1.0") is None

    def test_current_version_kept_when_supported(self):
        pkg = package(current="1.0", supported=["1.0", "1.1"], **{"1.0": "0", "1.1": "1"})
        pkg.recompute_current_version()
        assert pkg.current_version == "1.0"

    def test_current_version_moves_to_latest_supported(self):
        pkg = package(current="1.2", supported=["1.0", "1.1"], **{"1.0": "0", "1.1": "1", "1.2": "2"})
        pkg.recompute_current_version()
        assert pkg.current_version == "1.1"

    def test_current_version_kept_when_nothing_supported(self):
        pkg = package(current="1.2", **{"1.0": "0", "1.2": "2"})
        pkg.recompute_current_version()
        assert pkg.current_version == "1.2"
        assert not pkg.supported

    def test_to_dict(self):
        data = package(current="1.0", supported=["1.0"], **{"1.0": "0"}).to_dict()
        assert data["currentVersion"] == "1.0"
        assert data["supported"] is True
        assert data["versions"]["1.0"] == {"version": "1.0", "index": "0", "supported": True}
