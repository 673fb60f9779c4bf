"""Socket transport to the DDNet external console (econ).

Econ is a line-oriented, telnet-style TCP protocol. The bridge reads whatever
chunk the socket hands it (up to ``buffer_size`` bytes) and leaves line
splitting to the parser; there is no framing layer here.

Failure policy:
- Connect, read and write failures raise :mod:`mapgen_bridge.errors` console
  exceptions. They are fatal to the session; nothing reconnects implicitly.
- A read timeout is not a failure: :meth:`ConsoleLink.read` returns ``None``
  and the caller polls again.
"""

from __future__ import annotations

import logging
import re
import socket
from types import TracebackType

from mapgen_bridge.errors import ConsoleConnectionError, ConsoleReadError, ConsoleWriteError

logger = logging.getLogger(__name__)

# Alternation order matters: escaped IAC first, then a whole subnegotiation,
# then IAC + verb + option, then IAC + two-byte command.
_TELNET_COMMAND_RE = re.compile(
    rb"(\xff\xff)|\xff\xfa.*?\xff\xf0|\xff(?:[\xfb-\xfe].|[\xf0-\xfa])",
    re.DOTALL,
)


def _telnet_replacement(match: re.Match[bytes]) -> bytes:
    return b"\xff" if match.group(1) else b""


def decode_chunk(raw: bytes) -> str | None:
    """Decode one received chunk.

    Telnet negotiation bytes are dropped (an escaped ``IAC IAC`` becomes one
    0xFF byte), invalid UTF-8 is replaced and NUL bytes are stripped. Returns
    ``None`` when nothing but negotiation bytes arrived.
    """
    data = _TELNET_COMMAND_RE.sub(_telnet_replacement, raw)
    if not data:
        return None
    return data.decode("utf-8", errors="replace").replace("\0", "")


def quote_argument(text: str) -> str:
    """Wrap *text* as one double-quoted console argument.

    The console splits commands on unquoted ``;`` and only honours double
    quotes, with ``\\`` as the escape character inside them.
    """
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def say_command(text: str) -> str:
    """Console ``say`` command for *text*, flattened to a single quoted line."""
    return "say " + quote_argument(" ".join(text.splitlines()))


class ConsoleLink:
    """A connected econ session.

    Use :meth:`connect` rather than the constructor; the constructor takes an
    already-connected socket so tests can hand in a fake.
    """

    def __init__(self, sock: socket.socket, buffer_size: int = 256) -> None:
        self._sock: socket.socket | None = sock
        self.buffer_size = buffer_size

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        buffer_size: int = 256,
        timeout: float = 0.5,
    ) -> ConsoleLink:
        """Open a TCP connection to the econ port.

        Args:
            host: Server address.
            port: ``ec_port`` of the server.
            buffer_size: Maximum bytes returned by one :meth:`read`.
            timeout: Seconds a :meth:`read` waits before returning ``None``.

        Raises:
            ConsoleConnectionError: Refused, timed out, or the host did not resolve.
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise ConsoleConnectionError(
                f"could not connect to econ at {host}:{port}: {exc}"
            ) from exc
        sock.settimeout(timeout)
        logger.info("Connected to econ at %s:%d", host, port)
        return cls(sock, buffer_size=buffer_size)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def read(self) -> str | None:
        """Wait for one chunk of console text.

        Returns:
            The decoded chunk, or ``None`` on timeout or a negotiation-only chunk.

        Raises:
            ConsoleReadError: The link is closed, the peer hung up, or the socket failed.
        """
        if self._sock is None:
            raise ConsoleReadError("econ link is closed")
        try:
            raw = self._sock.recv(self.buffer_size)
        except TimeoutError:
            return None
        except OSError as exc:
            raise ConsoleReadError(f"econ read failed: {exc}") from exc
        if not raw:
            raise ConsoleReadError("econ connection closed by server")
        return decode_chunk(raw)

    def send(self, command: str) -> None:
        """Send one console command, newline-terminated.

        Raises:
            ConsoleWriteError: The link is closed or the peer reset it.
        """
        if self._sock is None:
            raise ConsoleWriteError("econ link is closed")
        try:
            self._sock.sendall(f"{command}\n".encode())
        except OSError as exc:
            raise ConsoleWriteError(f"econ write failed: {exc}") from exc

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def __enter__(self) -> ConsoleLink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
