import os
from pathlib import Path
from typing import List

import pytest

from inventory_agent.producers import SnapshotPayload
from inventory_agent.publishers import PublishConfig, Publisher


class RecordingPublisher(Publisher):
    """Keeps every payload it is asked to publish."""

    def __init__(self, result=True):
        self.result = result
        self.published: List[SnapshotPayload] = []

    async def publish(self, payload: SnapshotPayload, config: PublishConfig) -> bool:
        self.published.append(payload)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def recording_publisher():
    return RecordingPublisher()


@pytest.fixture
def discovery_root(tmp_path: Path) -> Path:
    root = tmp_path / "apps"
    root.mkdir()
    return root


def make_instance(root: Path, convention: str, name: str) -> Path:
    path = root / convention / name
    path.mkdir(parents=True)
    return path


def published_dir(destination: Path, instance_dir: Path) -> Path:
    """Where the file publisher stores an instance's payloads."""
    return Path(destination) / os.path.abspath(str(instance_dir)).lstrip("/")
