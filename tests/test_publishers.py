import asyncio

import pytest

from inventory_agent.errors import ConfigError
from inventory_agent.producers import SnapshotPayload
from inventory_agent.publishers import (
    FilePublisher,
    HttpPublisher,
    LogPublisher,
    PublishConfig,
    build_publisher,
)


def test_file_publisher_writes_content(tmp_path):
    config = PublishConfig(provider="file", destination=str(tmp_path / "out"))
    payload = SnapshotPayload("run-params-file", "run.properties", "/opt/apps/a", "a", content=b"k=v\n")

    assert asyncio.run(FilePublisher().publish(payload, config)) is True
    assert (tmp_path / "out" / "opt" / "apps" / "a" / "run-params-file" / "run.properties").read_bytes() == b"k=v\n"


def test_file_publisher_copies_source_file(tmp_path):
    source = tmp_path / "db.properties"
    source.write_text("url=jdbc:x")
    config = PublishConfig(provider="file", destination=str(tmp_path / "out"))
    payload = SnapshotPayload("property-file", "conf/db.properties", "/opt/apps/a", "a", source_path=source)

    assert asyncio.run(FilePublisher().publish(payload, config)) is True
    assert (tmp_path / "out" / "opt" / "apps" / "a" / "property-file" / "conf" / "db.properties").read_text() == "url=jdbc:x"


def test_file_publisher_reports_missing_source(tmp_path):
    config = PublishConfig(provider="file", destination=str(tmp_path / "out"))
    payload = SnapshotPayload("property-file", "gone.properties", "/opt/apps/a", "a", source_path=tmp_path / "gone")

    assert asyncio.run(FilePublisher().publish(payload, config)) is False


def test_log_publisher_always_succeeds():
    payload = SnapshotPayload("code-archive", "a.jar", "/opt/apps/a", "a")

    assert asyncio.run(LogPublisher().publish(payload, PublishConfig(provider="log"))) is True


@pytest.mark.parametrize("provider, expected", [("file", FilePublisher), ("http", HttpPublisher), ("log", LogPublisher)])
def test_build_publisher(provider, expected):
    assert isinstance(build_publisher(PublishConfig(provider=provider)), expected)


def test_build_publisher_rejects_unknown_provider():
    with pytest.raises(ConfigError):
        build_publisher(PublishConfig(provider="carrier-pigeon"))


def test_file_publisher_separates_instances_with_same_key(tmp_path):
    config = PublishConfig(provider="file", destination=str(tmp_path / "out"))
    web = SnapshotPayload("run-params-file", "run.properties", "/opt/apps/java/webapps/app1", "app1", content=b"web")
    batch = SnapshotPayload("run-params-file", "run.properties", "/opt/apps/java/batch/app1", "app1", content=b"batch")

    publisher = FilePublisher()
    assert asyncio.run(publisher.publish(web, config)) is True
    assert asyncio.run(publisher.publish(batch, config)) is True

    assert publisher.target_path(web, config) != publisher.target_path(batch, config)
    assert publisher.target_path(web, config).read_bytes() == b"web"
    assert publisher.target_path(batch, config).read_bytes() == b"batch"


@pytest.mark.parametrize(
    "instance_uri, name",
    [
        ("/opt/apps/a", "../../../../../etc/passwd"),
        ("/opt/apps/a", "/etc/passwd"),
        ("/../../etc", "x"),
        ("/", "x"),
    ],
)
def test_file_publisher_refuses_paths_outside_destination(tmp_path, instance_uri, name):
    destination = tmp_path / "out"
    config = PublishConfig(provider="file", destination=str(destination))
    payload = SnapshotPayload("property-file", name, instance_uri, "a", content=b"x")

    with pytest.raises(ValueError):
        FilePublisher().target_path(payload, config)
    assert asyncio.run(FilePublisher().publish(payload, config)) is False
    assert not destination.exists()
