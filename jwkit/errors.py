"""Flat error taxonomy raised by every jwkit operation."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Category of a jwkit failure."""

    INVALID = "Invalid"
    EXPIRED = "Expired"
    EARLY = "Early"
    CERTIFICATE = "Certificate"
    KEY = "Key"
    CONNECTION = "Connection"
    HEADER = "Header"
    PAYLOAD = "Payload"
    SIGNATURE = "Signature"
    INTERNAL = "Internal"


class JoseError(Exception):
    """A tagged failure carrying a short, developer-facing message.

    Two errors compare equal when both ``kind`` and ``msg`` match, so tests
    and callers can match on the value instead of the message text alone.
    """

    def __init__(self, kind: ErrorKind, msg: str) -> None:
        super().__init__(kind, msg)
        self.kind = kind
        self.msg = msg

    def __str__(self) -> str:
        return f"{self.kind}: {self.msg}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JoseError):
            return NotImplemented
        return (self.kind, self.msg) == (other.kind, other.msg)

    def __hash__(self) -> int:
        return hash((self.kind, self.msg))

    def __repr__(self) -> str:
        return f"JoseError(kind={self.kind!r}, msg={self.msg!r})"
