import json
import os

import pytest

from inventory_agent.discovery.base import INSTANCE_KEY, INSTANCE_URI
from inventory_agent.dispatch.steps import DISPATCH_TABLE
from inventory_agent.producers import (
    DEFAULT_PRODUCERS,
    produce_certificate_files,
    produce_code_archives,
    produce_code_property_files,
    produce_container_context,
    produce_host_service_descriptor,
    produce_property_files,
    produce_run_params_file,
    produce_secure_property_files,
    produce_service_run_params,
)


def _touch(root, rel, content="x"):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def instance(tmp_path):
    root = tmp_path / "shop"
    root.mkdir()
    _touch(root, "conf/context.xml")
    _touch(root, "WEB-INF/web.xml")
    _touch(root, "shop.war")
    _touch(root, "lib/commons.jar")
    _touch(root, "lib/readme.txt")
    _touch(root, "app.properties")
    _touch(root, "conf/db.properties")
    _touch(root, "conf/db.secure.properties")
    _touch(root, "secure/keystore.pass")
    _touch(root, "WEB-INF/classes/messages.properties")
    _touch(root, "certs/server.pem")
    _touch(root, "truststore.jks")
    return {
        "application.platform": "java",
        "application.type": "web",
        "application.key": "shop",
        INSTANCE_URI: os.path.abspath(str(root)),
        INSTANCE_KEY: "shop",
        "service.name": "shop-svc",
        "service.port": "8080",
        "snapshot.client.version": "1.0.0",
    }


def _names(payloads):
    return [p.name for p in payloads]


def test_every_table_step_has_a_default_producer():
    for table_steps in DISPATCH_TABLE.values():
        for step in table_steps:
            assert step.producer in DEFAULT_PRODUCERS


def test_container_context(instance):
    assert _names(produce_container_context(instance)) == ["conf/context.xml", "WEB-INF/web.xml"]


def test_code_archives(instance):
    assert _names(produce_code_archives(instance)) == ["lib/commons.jar", "shop.war"]


def test_property_files_exclude_secure_ones(instance):
    assert _names(produce_property_files(instance)) == ["app.properties", "conf/db.properties"]


def test_secure_property_files_are_flagged_sensitive(instance):
    payloads = produce_secure_property_files(instance)

    assert _names(payloads) == ["conf/db.secure.properties", "secure/keystore.pass"]
    assert all(p.metadata["sensitive"] for p in payloads)


def test_code_property_files(instance):
    assert _names(produce_code_property_files(instance)) == ["WEB-INF/classes/messages.properties"]


def test_certificate_files(instance):
    assert _names(produce_certificate_files(instance)) == ["certs/server.pem", "truststore.jks"]


def test_service_run_params_document(instance):
    payload = produce_service_run_params(instance)
    params = json.loads(payload.content)

    assert payload.kind == "service-run-params"
    assert params["service.port"] == "8080"
    assert params[INSTANCE_KEY] == "shop"


def test_host_service_descriptor(instance):
    payload = produce_host_service_descriptor(instance)
    descriptor = json.loads(payload.content)

    assert descriptor["service_name"] == "shop-svc"
    assert descriptor["instance_uri"] == instance[INSTANCE_URI]
    assert "hostname" in descriptor


def test_run_params_file_renders_whole_record(instance):
    payload = produce_run_params_file(instance)
    lines = payload.content.decode("utf-8").splitlines()

    assert payload.name == "run.properties"
    assert "service.port=8080" in lines
    assert lines == sorted(lines)
    assert len(lines) == len(instance)


def test_file_producers_tolerate_empty_instance(tmp_path):
    record = {INSTANCE_URI: str(tmp_path), INSTANCE_KEY: "empty"}

    for produce in (
        produce_container_context,
        produce_code_archives,
        produce_property_files,
        produce_secure_property_files,
        produce_code_property_files,
        produce_certificate_files,
    ):
        assert produce(record) == []
