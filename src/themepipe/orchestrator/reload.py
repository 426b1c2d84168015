from __future__ import annotations

from typing import Iterable

import requests

from .logging import get_logger


log = get_logger("themepipe.livereload")


class LiveReload:
    """Fire-and-forget client for a tiny-lr style live-reload server.

    Nothing is sent until `listen()` is called, so plain builds never touch
    the network.
    """

    def __init__(self, url: str = "http://localhost:35729", timeout: float = 2.0,
                 session: requests.Session | None = None):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.listening = False

    def listen(self) -> None:
        self.listening = True
        log.info("Live reload enabled (%s)", self.url)

    def changed(self, paths: Iterable[str]) -> None:
        files = [str(p) for p in paths]
        if not self.listening or not files:
            return
        self._send(files)

    def reload(self, path: str = "index.php") -> None:
        if not self.listening:
            return
        log.info("Reload: %s", path)
        self._send([path])

    def _send(self, files: list[str]) -> None:
        try:
            self.session.get(
                f"{self.url}/changed",
                params={"files": ",".join(files)},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            log.debug("Live reload notify failed: %s", e)
