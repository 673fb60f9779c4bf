"""Typed exceptions for the bridge.

The hierarchy separates failures the read loop must stop on (transport,
authentication, parser contract) from failures it recovers from (generation
errors and faults, which are reported to the server console and logged).

Fatal:
    - :exc:`ConsoleError` and subclasses
    - :exc:`AuthenticationError`
    - :exc:`ProtocolContractError`

Recovered by the controller:
    - :exc:`GenerationError`  (retried with the next seed)
    - :exc:`GenerationFault`  (never retried, operator alert)
"""

from __future__ import annotations


class BridgeError(RuntimeError):
    """Base exception for bridge failures."""


class ConsoleError(BridgeError):
    """Base exception for econ transport failures."""


class ConsoleConnectionError(ConsoleError):
    """The econ connection could not be established."""


class ConsoleReadError(ConsoleError):
    """Reading from the econ connection failed or the peer closed it."""


class ConsoleWriteError(ConsoleError):
    """Writing a command to the econ connection failed."""


class AuthenticationError(BridgeError):
    """The server rejected the econ password."""


class ProtocolContractError(BridgeError):
    """A line matched the vote envelope but none of the known vote forms.

    This means the envelope pattern and the payload forms are out of step,
    which is a defect in the parser rather than anything a player can cause.
    """


class PresetError(BridgeError):
    """A preset file is missing or malformed."""


class GenerationError(BridgeError):
    """The map generator reported that it could not produce a map.

    Generators raise this for a bad draw (e.g. the walker ran out of
    iterations). The bridge retries with the next seed.
    """


class GenerationFault(BridgeError):
    """The map generator (or exporter) terminated abnormally.

    Args:
        message: Human-readable summary.
        cause: The exception raised inside the generator.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
