"""Unix socket server: one request and at most one response per connection."""

from __future__ import annotations

import logging
import os
import socketserver
import stat
from pathlib import Path

from budsd.core.dispatcher import CommandDispatcher
from budsd.core.errors import RequestDecodeError
from budsd.daemon.codec import decode_request, encode_response

LOGGER = logging.getLogger(__name__)
_MAX_REQUEST_BYTES = 64 * 1024


class RequestHandler(socketserver.StreamRequestHandler):
    server: DaemonServer

    def handle(self) -> None:
        line = self.rfile.readline(_MAX_REQUEST_BYTES)
        if not line:
            LOGGER.debug("Client closed before sending a request")
            return
        try:
            request = decode_request(line)
        except RequestDecodeError as exc:
            LOGGER.debug("Dropping connection: %s", exc)
            return

        response = self.server.dispatcher.dispatch(request)
        if response is None:
            return

        try:
            self.wfile.write(encode_response(response))
            self.wfile.flush()
        except OSError as exc:
            LOGGER.warning("Could not deliver %s response: %s", request.cmd, exc)


class DaemonServer(socketserver.ThreadingUnixStreamServer):
    daemon_threads = True

    def __init__(self, socket_path: Path, dispatcher: CommandDispatcher) -> None:
        self.socket_path = socket_path
        self.dispatcher = dispatcher
        _remove_stale_socket(socket_path)
        socket_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(str(socket_path), RequestHandler)
        os.chmod(socket_path, 0o600)
        LOGGER.info("Listening on %s", socket_path)

    def server_close(self) -> None:
        super().server_close()
        self.socket_path.unlink(missing_ok=True)


def _remove_stale_socket(path: Path) -> None:
    try:
        mode = path.lstat().st_mode
    except FileNotFoundError:
        return
    if not stat.S_ISSOCK(mode):
        raise FileExistsError(f"{path} exists and is not a socket")
    LOGGER.debug("Removing stale socket %s", path)
    path.unlink()
