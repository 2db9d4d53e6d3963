"""Tests for the Consul, Marathon, Mesos and ZooKeeper clients."""

import base64
import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from kazoo.exceptions import NoNodeError

from backends.consul import ConsulClient
from backends.marathon import App, MarathonClient
from backends.mesos import MesosClient, parse_credentials
from backends.zookeeper import ZookeeperClient
from common.errors import ConflictError, UpstreamError
from common.http_client import parse_base_url, safe_request


def response(status=200, body="", content=None):
    res = MagicMock()
    res.status_code = status
    res.text = body
    res.content = content if content is not None else body.encode()
    return res


STATE = {
    "flags": {"authenticate": "true"},
    "frameworks": [
        {"name": "kafka", "id": "fw-1", "active": True, "registered_time": 1445000000.5, "tasks": [{}, {}]},
    ],
    "completed_frameworks": [
        {"name": "kafka", "id": "fw-0"},
        {"name": "hdfs", "id": "fw-9"},
    ],
    "unregistered_frameworks": [
        {"name": "kafka", "id": "fw-1"},
    ],
}


class TestHttpClient:
    """Shared request helper."""

    def test_timeout_wrapped(self):
        with patch("common.http_client.requests.request", side_effect=requests.Timeout("slow")):
            with pytest.raises(UpstreamError) as excinfo:
                safe_request("GET", "http://user:pw@consul:8500/v1/kv/x?raw", context="consul")
        assert excinfo.value.target == "http://consul:8500/v1/kv/x"

    def test_connection_error_wrapped(self):
        with patch("common.http_client.requests.request", side_effect=requests.ConnectionError("down")):
            with pytest.raises(UpstreamError):
                safe_request("GET", "http://consul:8500", context="consul")

    def test_default_timeout(self):
        with patch("common.http_client.requests.request", return_value=response()) as mock_request:
            safe_request("GET", "http://consul:8500", context="consul")
        assert mock_request.call_args.kwargs["timeout"] == 30

    def test_parse_base_url(self):
        assert parse_base_url("marathon.service.consul:8080/") == "http://marathon.service.consul:8080"
        assert parse_base_url("https://m:8080") == "https://m:8080"


class TestConsul:
    """KV access and discovery."""

    def setup_method(self):
        self.client = ConsulClient("localhost:8500", token="secret")

    def test_get(self):
        with patch("common.http_client.requests.request", return_value=response(content=b"mantl-universe")) as req:
            assert self.client.get("mantl-install/repository/0/name") == b"mantl-universe"
        method, url = req.call_args.args
        assert method == "GET"
        assert url == "http://localhost:8500/v1/kv/mantl-install/repository/0/name"
        assert req.call_args.kwargs["params"] == {"raw": ""}
        assert req.call_args.kwargs["headers"]["X-Consul-Token"] == "secret"

    def test_get_missing(self):
        with patch("common.http_client.requests.request", return_value=response(404)):
            assert self.client.get("missing") is None

    def test_keys_with_separator(self):
        body = json.dumps(["mantl-install/repository/0/", "mantl-install/repository/1/"])
        with patch("common.http_client.requests.request", return_value=response(body=body)) as req:
            keys = self.client.keys("mantl-install/repository/", separator="/")
        assert keys == ["mantl-install/repository/0/", "mantl-install/repository/1/"]
        assert req.call_args.kwargs["params"] == {"keys": "", "separator": "/"}

    def test_list_decodes_values(self):
        body = json.dumps([
            {"Key": "mantl-install/apps/a", "Value": base64.b64encode(b'{"name": "kafka"}').decode()},
            {"Key": "mantl-install/apps/", "Value": None},
        ])
        with patch("common.http_client.requests.request", return_value=response(body=body)):
            pairs = self.client.list("mantl-install/apps/")
        assert pairs == [("mantl-install/apps/a", b'{"name": "kafka"}'), ("mantl-install/apps/", b"")]

    def test_delete_failure(self):
        with patch("common.http_client.requests.request", return_value=response(500, "boom")):
            with pytest.raises(UpstreamError) as excinfo:
                self.client.delete("mantl-install/apps/a")
        assert excinfo.value.status_code == 500
        assert excinfo.value.operation == "kv_delete"

    def test_service_hosts(self):
        body = json.dumps([{"Node": "control-01", "ServicePort": 8080}])
        with patch("common.http_client.requests.request", return_value=response(body=body)) as req:
            assert self.client.service_hosts("marathon") == ["control-01:8080"]
        assert req.call_args.args[1] == "http://localhost:8500/v1/catalog/service/marathon"

    def test_service_hosts_failure_is_empty(self):
        with patch("common.http_client.requests.request", side_effect=requests.ConnectionError("down")):
            assert self.client.service_hosts("mesos", "leader") == []


class TestMarathon:
    """Scheduler client."""

    def setup_method(self):
        self.client = MarathonClient("http://marathon:8080", username="admin", password="pw")

    def test_apps(self):
        body = json.dumps({"apps": [{"id": "/kafka", "labels": {"MANTL_PACKAGE_NAME": "kafka"}}]})
        with patch("common.http_client.requests.request", return_value=response(body=body)) as req:
            apps = self.client.apps()
        assert [a.id for a in apps] == ["/kafka"]
        assert apps[0].label("MANTL_PACKAGE_NAME") == "kafka"
        assert req.call_args.kwargs["auth"] == ("admin", "pw")

    def test_create_app(self):
        with patch("common.http_client.requests.request", return_value=response(201, '{"id": "/kafka"}')) as req:
            assert self.client.create_app(App({"id": "/kafka"})) == '{"id": "/kafka"}'
        assert json.loads(req.call_args.kwargs["data"]) == {"id": "/kafka"}

    def test_create_app_conflict(self):
        with patch("common.http_client.requests.request", return_value=response(409)):
            with pytest.raises(ConflictError):
                self.client.create_app(App({"id": "/kafka"}))

    def test_create_app_failure(self):
        with patch("common.http_client.requests.request", return_value=response(422, "bad")):
            with pytest.raises(UpstreamError):
                self.client.create_app(App({"id": "/kafka"}))

    def test_destroy_adds_leading_slash(self):
        with patch("common.http_client.requests.request", return_value=response(200, "{}")) as req:
            self.client.destroy_app("kafka")
        assert req.call_args.args == ("DELETE", "http://marathon:8080/v2/apps/kafka")

    def test_app_from_json(self):
        assert App.from_json('{"id": "/x"}').labels == {}
        with pytest.raises(UpstreamError):
            App.from_json("[]")
        with pytest.raises(UpstreamError):
            App.from_json("{")


class TestMesos:
    """Resource manager client."""

    def setup_method(self):
        self.client = MesosClient("http://mesos:5050", principal="mantl-install", secret="s3cret")

    def test_state(self):
        with patch("common.http_client.requests.request", return_value=response(body=json.dumps(STATE))):
            state = self.client.state()
        assert [f.id for f in state.frameworks] == ["fw-1"]
        assert state.frameworks[0].task_count == 2
        assert state.frameworks[0].registered_time.year == 2015
        assert len(state.all_frameworks()) == 4

    def test_find_frameworks_deduplicates(self):
        with patch("common.http_client.requests.request", return_value=response(body=json.dumps(STATE))):
            found = self.client.find_frameworks("kafka")
        assert [f.id for f in found] == ["fw-1", "fw-0"]

    def test_requires_authentication(self):
        with patch("common.http_client.requests.request", return_value=response(body=json.dumps(STATE))):
            assert self.client.requires_authentication() is True
        with patch("common.http_client.requests.request", return_value=response(body="{}")):
            assert self.client.requires_authentication() is False

    def test_shutdown(self):
        with patch("common.http_client.requests.request", return_value=response(200)) as req:
            self.client.shutdown("fw-1")
        assert req.call_args.args == ("POST", "http://mesos:5050/master/teardown")
        assert req.call_args.kwargs["data"] == {"frameworkId": "fw-1"}
        assert req.call_args.kwargs["auth"] == ("mantl-install", "s3cret")

    def test_shutdown_failure(self):
        with patch("common.http_client.requests.request", return_value=response(403, "denied")):
            with pytest.raises(UpstreamError):
                self.client.shutdown("fw-1")

    def test_shutdown_by_name(self):
        state = {"frameworks": [{"name": "hdfs", "id": "fw-9"}]}
        responses = [response(body=json.dumps(state)), response(200)]
        with patch("common.http_client.requests.request", side_effect=responses):
            assert self.client.shutdown_framework_by_name("hdfs").id == "fw-9"

    def test_shutdown_by_name_ambiguous(self):
        with patch("common.http_client.requests.request", return_value=response(body=json.dumps(STATE))):
            with pytest.raises(ConflictError):
                self.client.shutdown_framework_by_name("kafka")

    def test_shutdown_by_name_missing(self):
        with patch("common.http_client.requests.request", return_value=response(body=json.dumps(STATE))):
            assert self.client.shutdown_framework_by_name("spark") is None

    def test_parse_credentials(self):
        text = "mantl-install   s3cret\nbroken line here\n\nother\tpw\n"
        assert parse_credentials(text) == {"mantl-install": "s3cret", "other": "pw"}


class TestZookeeper:
    """Coordination-service client over kazoo."""

    def test_session_reused_inside_context(self):
        with patch("backends.zookeeper.KazooClient") as kazoo:
            kazoo.return_value.get_children.return_value = ["b"]
            with ZookeeperClient(["zk1:2181", "zk2:2181"]) as client:
                assert client.children("/a") == ["b"]
                client.delete("/a/b")
        kazoo.assert_called_once_with(hosts="zk1:2181,zk2:2181", timeout=10)
        kazoo.return_value.delete.assert_called_once_with("/a/b")
        kazoo.return_value.stop.assert_called_once()

    def test_call_outside_context_opens_session(self):
        with patch("backends.zookeeper.KazooClient") as kazoo:
            ZookeeperClient(["zk:2181"]).children("/")
        kazoo.return_value.start.assert_called_once()
        kazoo.return_value.close.assert_called_once()

    def test_errors_wrapped(self):
        with patch("backends.zookeeper.KazooClient") as kazoo:
            kazoo.return_value.delete.side_effect = NoNodeError()
            with pytest.raises(UpstreamError) as excinfo:
                ZookeeperClient(["zk:2181"]).delete("/missing")
        assert excinfo.value.target == "/missing"
