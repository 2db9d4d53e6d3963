"""Tests for PackageRequest parsing."""

import pytest

from common.errors import ValidationError
from install.request import PackageRequest


class TestPackageRequest:
    """Request decoding and validation."""

    def test_full_request(self):
        request = PackageRequest.from_json(
            '{"name": " kafka ", "version": "1.0", "id": "/kafka-a",'
            ' "config": {"kafka": {"brokers": 3}}, "uninstallOptions": {"purge": true}}'
        )
        assert request.name == "kafka"
        assert request.version == "1.0"
        assert request.app_id == "/kafka-a"
        assert request.config == {"kafka": {"brokers": 3}}
        assert request.uninstall_options == {"purge": True}

    def test_minimal_request(self):
        request = PackageRequest.from_json(b'{"name": "kafka"}')
        assert request.version_or_none is None
        assert request.config == {}
        assert request.to_dict() == {"name": "kafka"}

    def test_missing_name(self):
        with pytest.raises(ValidationError) as excinfo:
            PackageRequest.from_json('{"version": "1.0"}')
        assert excinfo.value.field == "name"

    @pytest.mark.parametrize("body", ["", "{broken", "[1, 2]"])
    def test_malformed_body(self, body):
        with pytest.raises(ValidationError) as excinfo:
            PackageRequest.from_json(body)
        assert excinfo.value.field == "body"

    def test_config_must_be_object(self):
        with pytest.raises(ValidationError) as excinfo:
            PackageRequest.from_dict({"name": "kafka", "config": [1]})
        assert excinfo.value.field == "config"

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            PackageRequest(name="").validate()
