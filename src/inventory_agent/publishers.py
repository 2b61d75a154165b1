"""
Snapshot Publishers

Transmit snapshot payloads to the configured destination. A publisher returns
True on success and False on failure; it never retries.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp

from .errors import ConfigError
from .producers import SnapshotPayload

logger = logging.getLogger(__name__)


@dataclass
class PublishConfig:
    """Provider selection and destination, loaded once per run."""
    provider: str = "file"  # 'file', 'http', 'log'
    destination: str = "/var/lib/inventory-agent/snapshots"
    api_key: Optional[str] = None
    timeout: int = 30


class Publisher:
    """Base publisher. Subclasses implement publish()."""

    async def publish(self, payload: SnapshotPayload, config: PublishConfig) -> bool:
        raise NotImplementedError

    async def close(self):
        """Release any held resources"""
        pass


class LogPublisher(Publisher):
    """Logs payloads without sending them anywhere."""

    async def publish(self, payload: SnapshotPayload, config: PublishConfig) -> bool:
        logger.info(f"[dry-run] {payload.instance_key}: {payload.kind} {payload.name}")
        return True


class FilePublisher(Publisher):
    """
    Copies payloads under <destination>/<instance.uri>/<kind>/<name>.

    The instance directory mirrors instance.uri without its leading separator,
    so instances sharing a leaf name in different categories stay apart.
    """

    def target_path(self, payload: SnapshotPayload, config: PublishConfig) -> Path:
        """
        Destination file for payload.

        Raises:
            ValueError: if the path resolves outside the destination
        """
        destination = Path(config.destination).resolve()
        instance_dir = payload.instance_uri.lstrip("/\\")
        if not instance_dir:
            raise ValueError(f"empty instance uri for {payload.name}")
        target = (destination / instance_dir / payload.kind / payload.name).resolve()
        if target == destination or destination not in target.parents:
            raise ValueError(f"{target} is outside {destination}")
        return target

    async def publish(self, payload: SnapshotPayload, config: PublishConfig) -> bool:
        try:
            target = self.target_path(payload, config)
        except ValueError as e:
            logger.error(f"Refusing to publish {payload.name}: {e}")
            return False

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if payload.content is not None:
                data = payload.content
            else:
                async with aiofiles.open(payload.source_path, "rb") as src:
                    data = await src.read()
            async with aiofiles.open(target, "wb") as dst:
                await dst.write(data)
        except (OSError, TypeError) as e:
            logger.error(f"Failed to publish {payload.name} to {target}: {e}")
            return False

        logger.debug(f"Published {payload.kind} {payload.name} to {target}")
        return True


class HttpPublisher(Publisher):
    """Uploads payloads as multipart form posts."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self.session = session
        self._owns_session = session is None

    async def _get_session(self, config: PublishConfig) -> aiohttp.ClientSession:
        if self.session is None:
            headers = {}
            if config.api_key:
                headers["Authorization"] = f"Bearer {config.api_key}"
            self.session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=config.timeout),
            )
        return self.session

    async def publish(self, payload: SnapshotPayload, config: PublishConfig) -> bool:
        session = await self._get_session(config)

        try:
            data = payload.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read {payload.name}: {e}")
            return False

        form_data = aiohttp.FormData()
        form_data.add_field("instance_uri", payload.instance_uri)
        form_data.add_field("instance_key", payload.instance_key)
        form_data.add_field("kind", payload.kind)
        form_data.add_field("metadata", json.dumps(payload.metadata))
        form_data.add_field("file", data, filename=payload.name)

        try:
            async with session.post(config.destination, data=form_data) as resp:
                if 200 <= resp.status < 300:
                    return True
                error_text = await resp.text()
                logger.warning(f"Publish of {payload.name} failed: {resp.status} - {error_text}")
                return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Publish of {payload.name} failed: {e!r}")
            return False

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None


PUBLISHERS = {
    "file": FilePublisher,
    "http": HttpPublisher,
    "log": LogPublisher,
}


def build_publisher(config: PublishConfig) -> Publisher:
    """Create the publisher for the configured provider."""
    try:
        publisher_class = PUBLISHERS[config.provider]
    except KeyError:
        raise ConfigError(f"Unknown publish provider: {config.provider!r}") from None
    return publisher_class()
