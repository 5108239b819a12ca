"""Blocking client for the daemon socket."""

from __future__ import annotations

import socket
from pathlib import Path

from budsd.core.errors import DaemonConnectionError, RequestDecodeError
from budsd.core.model import Request, Response
from budsd.daemon.codec import decode_response, encode_request


class SocketClient:
    def __init__(self, path: Path, *, timeout_s: float = 30.0) -> None:
        self.path = path
        self.timeout_s = timeout_s

    def request(self, request: Request) -> Response:
        """Send one request and wait for the daemon to answer and hang up."""
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self.timeout_s)
                sock.connect(str(self.path))
                sock.sendall(encode_request(request))
                chunks: list[bytes] = []
                while chunk := sock.recv(4096):
                    chunks.append(chunk)
        except OSError as exc:
            raise DaemonConnectionError(f"Could not talk to budsd at {self.path}: {exc}") from exc

        data = b"".join(chunks)
        if not data:
            raise DaemonConnectionError(f"budsd closed the connection without answering '{request.cmd}'")
        try:
            return decode_response(data)
        except RequestDecodeError as exc:
            raise DaemonConnectionError(f"Unreadable answer from budsd: {exc}") from exc
