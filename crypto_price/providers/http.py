"""
Cancellable HTTP transport for the price adapters.

requests offers no way to abort a call that is blocked in a socket read. Each
adapter call therefore gets its own Session whose connections register their
sockets with a ConnectionTracker. When the race's CancelToken fires, the
tracker shuts those sockets down. The blocked read then fails at once with a
ConnectionError instead of waiting out its timeout.

Connections are tracked through a thread-local, because requests opens the
socket on the calling thread.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

logger = logging.getLogger(__name__)

CHUNK_BYTES = 8192

_local = threading.local()


class RequestCancelled(requests.RequestException):
    """The race was decided while this request was still running."""


class CancelToken:
    """
    Cancellation signal shared by every worker of one race.

    Works like threading.Event (set / is_set / wait), and can also run
    callbacks: anything registered with add_callback runs once, on the thread
    that calls set(). A callback added after set() runs immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def set(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:
                logger.debug("Cancel callback %r failed: %s", callback, exc)

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # Already closed or never connected; nothing left to interrupt.
        return


class ConnectionTracker:
    """Sockets opened for one adapter call; abort() shuts them all down."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sockets: List[socket.socket] = []
        self._aborted = False

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add(self, sock: socket.socket) -> None:
        with self._lock:
            if not self._aborted:
                self._sockets.append(sock)
                return
        _shutdown(sock)

    def abort(self) -> None:
        with self._lock:
            self._aborted = True
            sockets, self._sockets = self._sockets, []
        for sock in sockets:
            _shutdown(sock)


class _TrackedConnectionMixin:
    def connect(self) -> None:
        super().connect()
        tracker = getattr(_local, "tracker", None)
        if tracker is not None and self.sock is not None:
            tracker.add(self.sock)


class _TrackedHTTPConnection(_TrackedConnectionMixin, HTTPConnection):
    pass


class _TrackedHTTPSConnection(_TrackedConnectionMixin, HTTPSConnection):
    pass


class _TrackedHTTPConnectionPool(HTTPConnectionPool):
    ConnectionCls = _TrackedHTTPConnection


class _TrackedHTTPSConnectionPool(HTTPSConnectionPool):
    ConnectionCls = _TrackedHTTPSConnection


_POOL_CLASSES = {
    "http": _TrackedHTTPConnectionPool,
    "https": _TrackedHTTPSConnectionPool,
}


class CancellableHTTPAdapter(HTTPAdapter):
    """HTTPAdapter whose pools open tracked connections, proxied or not."""

    def init_poolmanager(self, *args, **kwargs) -> None:
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = _POOL_CLASSES

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        manager.pool_classes_by_scheme = _POOL_CLASSES
        return manager


@contextmanager
def cancellable_session(cancel: Optional[CancelToken] = None) -> Iterator[requests.Session]:
    """A one-shot Session whose sockets are shut down when `cancel` fires."""
    tracker = ConnectionTracker()
    session = requests.Session()
    adapter = CancellableHTTPAdapter()
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    _local.tracker = tracker
    if cancel is not None:
        cancel.add_callback(tracker.abort)
    try:
        yield session
    finally:
        if cancel is not None:
            cancel.remove_callback(tracker.abort)
        _local.tracker = None
        session.close()


def read_body(
    resp: requests.Response,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> bytes:
    """
    Read a streamed response in chunks, checking cancel and the deadline
    between chunks. A server that trickles bytes resets the socket read timeout
    on every chunk, so the deadline applies to the whole body.
    """
    chunks: List[bytes] = []
    for chunk in resp.iter_content(chunk_size=CHUNK_BYTES):
        if cancel is not None and cancel.is_set():
            raise RequestCancelled("cancelled while reading response body")
        if deadline is not None and time.monotonic() > deadline:
            raise requests.Timeout("response body not complete before deadline")
        chunks.append(chunk)
    return b"".join(chunks)
