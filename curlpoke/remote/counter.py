from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import requests

from curlpoke.core.config import CounterConfig

logger = logging.getLogger(__name__)

UNAVAILABLE = "—"


def fmt_int(n: int) -> str:
    return f"{n:,}"


class RemoteCounterClient:
    """
    Worldwide poke tally.

    Best effort only: every network call runs on a daemon thread, every
    failure is logged and dropped, and the only thing results ever touch is
    `total` (plus whoever subscribed to it). The game never waits on this.
    """

    def __init__(self, config: CounterConfig, session: Optional[requests.Session] = None,
                 spawn: Optional[Callable[[Callable[[], None]], None]] = None) -> None:
        self.config = config
        self.http = session or requests.Session()
        self._spawn = spawn or _daemon
        self._lock = threading.Lock()
        self._total: Optional[int] = None
        self._observers: List[Callable[[int], None]] = []
        self._stop = threading.Event()
        self._watcher: Optional[threading.Thread] = None

    # -- display side -------------------------------------------------

    @property
    def available(self) -> bool:
        return self.config.enabled

    @property
    def total(self) -> Optional[int]:
        with self._lock:
            return self._total

    def display_text(self) -> str:
        t = self.total
        if not self.available or t is None:
            return UNAVAILABLE
        return fmt_int(t)

    def subscribe(self, fn: Callable[[int], None]) -> None:
        with self._lock:
            self._observers.append(fn)

    def _apply(self, total: int) -> None:
        # last write wins; ordering against local increments is not guaranteed
        with self._lock:
            self._total = total
            observers = list(self._observers)
        for fn in observers:
            try:
                fn(total)
            except Exception:
                logger.warning("counter observer failed", exc_info=True)

    # -- network side -------------------------------------------------

    def _headers(self) -> dict:
        key = self.config.key
        h = {"Content-Type": "application/json"}
        if key:
            h["apikey"] = key
            h["Authorization"] = f"Bearer {key}"
        return h

    def fetch(self) -> Optional[int]:
        """Blocking read of the singleton record. Returns None on any failure."""
        c = self.config
        url = f"{c.url}/rest/v1/{c.table}"
        try:
            resp = self.http.get(
                url,
                params={"id": f"eq.{c.record_id}", "select": "total"},
                headers=self._headers(),
                timeout=c.timeout_s,
            )
            resp.raise_for_status()
            rows = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("global counter fetch failed: %s", exc)
            return None
        if not (isinstance(rows, list) and rows and isinstance(rows[0], dict)) or "total" not in rows[0]:
            logger.warning("global counter record %s missing", c.record_id)
            return None
        try:
            total = int(rows[0]["total"])
        except (TypeError, ValueError):
            total = 0
        self._apply(total)
        return total

    def add(self, delta: int) -> Optional[int]:
        """Blocking atomic add then refetch to reconcile."""
        c = self.config
        try:
            resp = self.http.post(
                f"{c.url}/rest/v1/rpc/{c.rpc}",
                json={"delta": int(delta)},
                headers=self._headers(),
                timeout=c.timeout_s,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("global counter increment failed: %s", exc)
            return None
        return self.fetch()

    def init(self) -> None:
        """Fetch once, then keep refreshing in the background."""
        if not self.available:
            logger.info("global counter not configured; showing %s", UNAVAILABLE)
            return
        self._spawn(self.fetch)
        if self.config.poll_s > 0 and self._watcher is None:
            self._watcher = threading.Thread(target=self._watch, name="curlpoke-counter", daemon=True)
            self._watcher.start()

    def increment(self, delta: int = 1) -> None:
        """Fire and forget."""
        if not self.available:
            return
        self._spawn(lambda: self.add(delta))

    def _watch(self) -> None:
        while not self._stop.wait(self.config.poll_s):
            self.poll_once()

    def poll_once(self) -> None:
        """One watcher step; a bad poll must not end the watcher."""
        try:
            self.fetch()
        except Exception:
            logger.warning("global counter poll failed", exc_info=True)

    def close(self) -> None:
        self._stop.set()
        self.http.close()


def _daemon(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, daemon=True).start()
