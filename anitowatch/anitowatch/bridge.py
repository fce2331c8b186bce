"""
Request bridge between a rendering surface and the list store.

The UI only ever talks to a ListBridge. Which implementation sits behind it is
decided once at startup:

  - StoreBridge: the store lives in the same process.
  - RemoteBridge: the store lives in a BridgeHost reached over a WebSocket.
    Each call is a named request ("add-to-watchlist", ...) answered by one
    response carrying either the new collection or an error.
  - BrowserStorageBridge: no host is reachable, so the same semantics are
    replayed against a key/value string store.

All three return the full collection after every mutation and share the same
projection, dedupe and merge rules.
"""

import asyncio
import itertools
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import websockets

from .local_storage import KeyValueStorage
from .logging import (
    AniToWatchError,
    APIError,
    BridgeError,
    ConfigError,
    StorageError,
    UnsupportedOperationError,
    ValidationError,
)
from .models import CatalogRecord, ListKind, coerce_record, project_record, utc_now
from .store import (
    ListStore,
    append_unique,
    check_update_fields,
    find_entry,
    label_of,
    merge_entry,
    only_objects,
    without_entry,
)

logger = logging.getLogger(__name__)

Record = Union[CatalogRecord, Mapping[str, Any]]
EntryDict = Dict[str, Any]

# Channel name -> ListBridge method name
CHANNELS = {
    "get-watchlist": "get_watchlist",
    "add-to-watchlist": "add_to_watchlist",
    "remove-from-watchlist": "remove_from_watchlist",
    "update-watchlist": "update_watchlist",
    "get-readinglist": "get_reading_list",
    "add-to-readinglist": "add_to_reading_list",
    "remove-from-readinglist": "remove_from_reading_list",
    "get-favorites": "get_favorites",
    "add-to-favorites": "add_to_favorites",
    "remove-from-favorites": "remove_from_favorites",
}

# Errors that survive the trip across the wire with their type intact
WIRE_ERRORS = {
    cls.__name__: cls
    for cls in (
        AniToWatchError,
        APIError,
        BridgeError,
        ConfigError,
        StorageError,
        UnsupportedOperationError,
        ValidationError,
    )
}


class ListBridge(ABC):
    """One coroutine per list operation, as seen by the rendering surface."""

    @abstractmethod
    async def get_watchlist(self) -> List[EntryDict]: ...

    @abstractmethod
    async def add_to_watchlist(self, anime: Record) -> List[EntryDict]: ...

    @abstractmethod
    async def remove_from_watchlist(self, mal_id: int) -> List[EntryDict]: ...

    @abstractmethod
    async def update_watchlist(self, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]: ...

    @abstractmethod
    async def get_reading_list(self) -> List[EntryDict]: ...

    @abstractmethod
    async def add_to_reading_list(self, manga: Record) -> List[EntryDict]: ...

    @abstractmethod
    async def remove_from_reading_list(self, mal_id: int) -> List[EntryDict]: ...

    @abstractmethod
    async def get_favorites(self) -> List[EntryDict]: ...

    @abstractmethod
    async def add_to_favorites(self, character: Record) -> List[EntryDict]: ...

    @abstractmethod
    async def remove_from_favorites(self, mal_id: int) -> List[EntryDict]: ...

    async def close(self) -> None:
        """Releases the transport, if any."""

    @property
    def name(self) -> str:
        return type(self).__name__


class KindBridge(ListBridge):
    """Maps the per-operation surface onto four kind-generic operations."""

    @abstractmethod
    async def get(self, kind: ListKind) -> List[EntryDict]: ...

    @abstractmethod
    async def add(self, kind: ListKind, record: Record) -> List[EntryDict]: ...

    @abstractmethod
    async def remove(self, kind: ListKind, mal_id: int) -> List[EntryDict]: ...

    @abstractmethod
    async def update(self, kind: ListKind, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]: ...

    async def get_watchlist(self) -> List[EntryDict]:
        return await self.get(ListKind.WATCHLIST)

    async def add_to_watchlist(self, anime: Record) -> List[EntryDict]:
        return await self.add(ListKind.WATCHLIST, anime)

    async def remove_from_watchlist(self, mal_id: int) -> List[EntryDict]:
        return await self.remove(ListKind.WATCHLIST, mal_id)

    async def update_watchlist(self, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]:
        return await self.update(ListKind.WATCHLIST, mal_id, fields)

    async def get_reading_list(self) -> List[EntryDict]:
        return await self.get(ListKind.READINGLIST)

    async def add_to_reading_list(self, manga: Record) -> List[EntryDict]:
        return await self.add(ListKind.READINGLIST, manga)

    async def remove_from_reading_list(self, mal_id: int) -> List[EntryDict]:
        return await self.remove(ListKind.READINGLIST, mal_id)

    async def get_favorites(self) -> List[EntryDict]:
        return await self.get(ListKind.FAVORITES)

    async def add_to_favorites(self, character: Record) -> List[EntryDict]:
        return await self.add(ListKind.FAVORITES, character)

    async def remove_from_favorites(self, mal_id: int) -> List[EntryDict]:
        return await self.remove(ListKind.FAVORITES, mal_id)


class StoreBridge(KindBridge):
    """In-process bridge: forwards every call to a ListStore."""

    def __init__(self, store: ListStore):
        self.store = store

    async def get(self, kind: ListKind) -> List[EntryDict]:
        return await self.store.get(kind)

    async def add(self, kind: ListKind, record: Record) -> List[EntryDict]:
        return await self.store.add(kind, record)

    async def remove(self, kind: ListKind, mal_id: int) -> List[EntryDict]:
        return await self.store.remove(kind, mal_id)

    async def update(self, kind: ListKind, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]:
        return await self.store.update(kind, mal_id, fields)


class BrowserStorageBridge(KindBridge):
    """
    Fallback bridge over a key/value string store, one key per list kind.

    Behaves like StoreBridge: unreadable values are logged and reset to an
    empty list, adds are deduplicated by mal_id, updates are shallow merges
    and every call returns the whole collection.
    """

    def __init__(self, storage: KeyValueStorage, clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.clock = clock or utc_now

    def _load(self, kind: ListKind) -> List[EntryDict]:
        raw = self.storage.get_item(kind.storage_key)
        if raw is None or not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt local {kind.value} value ({e}); resetting to empty")
            self._repair(kind, [])
            return []
        if not isinstance(data, list):
            logger.warning(f"Local {kind.value} value is not a list; resetting to empty")
            self._repair(kind, [])
            return []
        entries = only_objects(data)
        if len(entries) != len(data):
            logger.warning(f"Dropping {len(data) - len(entries)} malformed item(s) from local {kind.value}")
            self._repair(kind, entries)
        return entries

    def _save(self, kind: ListKind, entries: List[EntryDict]) -> None:
        self.storage.set_item(kind.storage_key, json.dumps(entries, ensure_ascii=False))

    def _repair(self, kind: ListKind, entries: List[EntryDict]) -> None:
        try:
            self._save(kind, entries)
        except StorageError as e:
            logger.error(f"Could not repair local {kind.value}: {e}")

    async def get(self, kind: ListKind) -> List[EntryDict]:
        return self._load(ListKind(kind))

    async def add(self, kind: ListKind, record: Record) -> List[EntryDict]:
        kind = ListKind(kind)
        record = coerce_record(record)
        entries = self._load(kind)
        if append_unique(entries, project_record(kind, record, self.clock())):
            self._save(kind, entries)
            logger.info(f"Added \"{record.display_name}\" to local {kind.value}")
        return entries

    async def remove(self, kind: ListKind, mal_id: int) -> List[EntryDict]:
        kind = ListKind(kind)
        entries = self._load(kind)
        removed = find_entry(entries, mal_id)
        entries = without_entry(entries, mal_id)
        self._save(kind, entries)
        if removed:
            logger.info(f"Removed \"{label_of(removed)}\" from local {kind.value}")
        return entries

    async def update(self, kind: ListKind, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]:
        kind = ListKind(kind)
        check_update_fields(kind, fields)
        entries = self._load(kind)
        if merge_entry(entries, mal_id, fields):
            self._save(kind, entries)
        return entries


# Wire protocol ---------------------------------------------------------------

def encode_error(request_id: Any, exc: Exception) -> str:
    error_type = type(exc).__name__ if type(exc).__name__ in WIRE_ERRORS else "BridgeError"
    return json.dumps({
        "id": request_id,
        "ok": False,
        "error": {"type": error_type, "message": str(exc)},
    })


def decode_error(payload: Mapping[str, Any]) -> AniToWatchError:
    error = payload.get("error") or {}
    cls = WIRE_ERRORS.get(error.get("type"), BridgeError)
    return cls(error.get("message") or "Bridge request failed")


def _wire_value(value: Any) -> Any:
    if isinstance(value, CatalogRecord):
        return value.to_api()
    return value


class BridgeHost:
    """
    Serves a ListBridge (normally a StoreBridge) to remote clients.

    Requests on one connection are answered in order; requests from
    different connections may interleave.
    """

    def __init__(self, bridge: ListBridge):
        self.bridge = bridge
        self._server = None

    async def dispatch(self, channel: str, args: List[Any]) -> Any:
        method_name = CHANNELS.get(channel)
        if method_name is None:
            raise BridgeError(f"Unknown channel: {channel}")
        method = getattr(self.bridge, method_name)
        try:
            return await method(*args)
        except TypeError as e:
            raise BridgeError(f"Bad arguments for {channel}: {e}") from e

    async def handle_message(self, message: Union[str, bytes]) -> str:
        """Turns one request message into one response message."""
        try:
            request = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return encode_error(None, BridgeError(f"Malformed request: {e}"))

        if not isinstance(request, dict):
            return encode_error(None, BridgeError("Request must be an object"))

        request_id = request.get("id")
        channel = request.get("channel")
        args = request.get("args") or []
        if not isinstance(args, list):
            return encode_error(request_id, BridgeError("Request args must be a list"))

        logger.debug(f"Bridge request {request_id}: {channel}")
        try:
            result = await self.dispatch(channel, args)
        except AniToWatchError as e:
            logger.warning(f"Bridge request {channel} failed: {e}")
            return encode_error(request_id, e)
        except Exception as e:
            logger.error(f"Unexpected error handling {channel}: {e}", exc_info=True)
            return encode_error(request_id, e)

        return json.dumps({"id": request_id, "ok": True, "result": result}, ensure_ascii=False)

    async def _serve_connection(self, websocket) -> None:
        logger.info("Bridge client connected")
        try:
            async for message in websocket:
                await websocket.send(await self.handle_message(message))
        except websockets.exceptions.ConnectionClosed as e:
            logger.info(f"Bridge client disconnected: {e}")
        else:
            logger.info("Bridge client disconnected")

    async def start(self, host: str, port: int) -> None:
        self._server = await websockets.serve(self._serve_connection, host, port)
        logger.info(f"Bridge host listening on ws://{host}:{self.port}")

    @property
    def port(self) -> Optional[int]:
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def serve_forever(self, host: str, port: int) -> None:
        await self.start(host, port)
        try:
            await asyncio.Future()
        finally:
            await self.close()

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Bridge host stopped")


class RemoteBridge(ListBridge):
    """
    Client side of the WebSocket bridge.

    Every call gets a request id; a background listener matches responses
    to waiting callers, so several calls may be in flight at once.
    """

    def __init__(self, websocket):
        self._ws = websocket
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._listener = asyncio.get_running_loop().create_task(self._listen())

    @classmethod
    async def connect(cls, uri: str, open_timeout: float = 5) -> 'RemoteBridge':
        try:
            websocket = await websockets.connect(uri, open_timeout=open_timeout)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise BridgeError(f"Bridge host unavailable at {uri}: {e}") from e
        logger.info(f"Connected to bridge host {uri}")
        return cls(websocket)

    async def _listen(self) -> None:
        try:
            async for message in self._ws:
                self._resolve(message)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning(f"Bridge connection closed: {e}")
        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(BridgeError("Bridge connection closed"))
            self._pending.clear()

    def _resolve(self, message: Union[str, bytes]) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            logger.error(f"Dropping malformed bridge response: {message!r}")
            return

        future = self._pending.pop(payload.get("id"), None)
        if future is None or future.done():
            logger.debug(f"No caller waiting for bridge response {payload.get('id')}")
            return
        if payload.get("ok"):
            future.set_result(payload.get("result"))
        else:
            future.set_exception(decode_error(payload))

    async def invoke(self, channel: str, *args: Any) -> Any:
        """Sends one named request and waits for its response."""
        if self._listener.done():
            raise BridgeError("Bridge connection is closed")

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        request = {"id": request_id, "channel": channel, "args": [_wire_value(a) for a in args]}
        try:
            await self._ws.send(json.dumps(request, ensure_ascii=False))
        except websockets.exceptions.ConnectionClosed as e:
            self._pending.pop(request_id, None)
            raise BridgeError(f"Bridge connection closed: {e}") from e
        return await future

    async def get_watchlist(self) -> List[EntryDict]:
        return await self.invoke("get-watchlist")

    async def add_to_watchlist(self, anime: Record) -> List[EntryDict]:
        return await self.invoke("add-to-watchlist", anime)

    async def remove_from_watchlist(self, mal_id: int) -> List[EntryDict]:
        return await self.invoke("remove-from-watchlist", mal_id)

    async def update_watchlist(self, mal_id: int, fields: Mapping[str, Any]) -> List[EntryDict]:
        return await self.invoke("update-watchlist", mal_id, dict(fields))

    async def get_reading_list(self) -> List[EntryDict]:
        return await self.invoke("get-readinglist")

    async def add_to_reading_list(self, manga: Record) -> List[EntryDict]:
        return await self.invoke("add-to-readinglist", manga)

    async def remove_from_reading_list(self, mal_id: int) -> List[EntryDict]:
        return await self.invoke("remove-from-readinglist", mal_id)

    async def get_favorites(self) -> List[EntryDict]:
        return await self.invoke("get-favorites")

    async def add_to_favorites(self, character: Record) -> List[EntryDict]:
        return await self.invoke("add-to-favorites", character)

    async def remove_from_favorites(self, mal_id: int) -> List[EntryDict]:
        return await self.invoke("remove-from-favorites", mal_id)

    async def close(self) -> None:
        await self._ws.close()
        await self._listener
