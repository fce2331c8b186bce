"""
Application context: everything one running AniToWatch session needs.

Built explicitly from a config and passed to whoever needs it; there is no
module-level instance. start() picks and opens the bridge, close() releases
the bridge and the HTTP session.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from .bridge import BrowserStorageBridge, ListBridge, RemoteBridge, StoreBridge
from .config import AniToWatchConfig
from .jikan import JikanClient
from .local_storage import JsonFileStorage, KeyValueStorage
from .logging import BridgeError
from .store import ListStore

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(
        self,
        config: AniToWatchConfig,
        catalog: Optional[JikanClient] = None,
        local_storage: Optional[KeyValueStorage] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config
        self.clock = clock
        self.store = ListStore(config.storage.data_dir, indent=config.storage.indent, clock=clock)
        self.catalog = catalog or JikanClient.from_config(config.jikan)
        self.local_storage = local_storage or JsonFileStorage(config.bridge.local_storage_file)
        self._bridge: Optional[ListBridge] = None

    @property
    def bridge(self) -> ListBridge:
        if self._bridge is None:
            raise RuntimeError("AppContext.start() has not been called")
        return self._bridge

    @property
    def started(self) -> bool:
        return self._bridge is not None

    async def start(self) -> ListBridge:
        """
        Opens the bridge selected by config.bridge.mode. A remote host that
        cannot be reached falls back to the local key/value storage.
        """
        if self._bridge is not None:
            return self._bridge

        mode = self.config.bridge.mode
        if mode == "remote":
            try:
                self._bridge = await RemoteBridge.connect(self.config.bridge.uri)
            except BridgeError as e:
                logger.warning(f"{e}; falling back to local storage")
                self._bridge = BrowserStorageBridge(self.local_storage, clock=self.clock)
        elif mode == "browser":
            self._bridge = BrowserStorageBridge(self.local_storage, clock=self.clock)
        else:
            self._bridge = StoreBridge(self.store)

        logger.info(f"Using {self._bridge.name} (mode={mode})")
        return self._bridge

    async def close(self) -> None:
        if self._bridge is not None:
            try:
                await self._bridge.close()
            finally:
                self._bridge = None
        self.catalog.close()

    async def __aenter__(self) -> 'AppContext':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
