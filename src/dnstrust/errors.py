"""Exception taxonomy shared by the DNSSEC codecs and the resolver layer.

Brief:
  - DnssecValidationFailed and its subclasses are terminal decode/verify
    conditions; nothing in dnstrust retries them.
  - IllegalUse flags programmer errors such as reading answers from a failed
    ResolverResult.
  - DNS-layer failures (NXDOMAIN, timeouts) are not exceptions; they are
    reported as unsuccessful ResolverResult objects.
"""

from __future__ import annotations

from typing import Any, Optional

import dns.rcode


def rcode_text(rcode: Optional[Any]) -> str:
    """Return the mnemonic for ``rcode``; "NORESPONSE" when nothing came back."""

    if rcode is None:
        return "NORESPONSE"
    return dns.rcode.to_text(rcode)


class DnstrustError(Exception):
    """Base class for every error raised by dnstrust."""


class DnssecValidationFailed(DnstrustError):
    """
    A DNSSEC decode or verification step could not be completed.

    Inputs:
      - message: A short error description.
    Outputs:
      - Exception instance.
    """


class DataMalformed(DnssecValidationFailed):
    """
    Wire bytes are shorter than the format requires or structurally invalid.

    Inputs:
      - message: A short error description.
      - data: The raw offending bytes, kept for diagnostics.
    Outputs:
      - Exception instance exposing ``data``.
    """

    def __init__(self, message: str, data: bytes) -> None:
        super().__init__(message)
        self.data = bytes(data)

    def __str__(self) -> str:
        return f"{self.args[0]} (data={self.data.hex()})"


class InvalidKeySpec(DnssecValidationFailed):
    """Decoded key parameters were rejected by the cryptography backend."""


class UnsupportedAlgorithm(DnssecValidationFailed):
    """No codec suite is registered for the DNSSEC algorithm identifier."""

    def __init__(self, algorithm: Any) -> None:
        super().__init__(f"Unsupported DNSSEC algorithm: {algorithm!r}")
        self.algorithm = algorithm


class BogusSignature(DnssecValidationFailed):
    """Every applicable RRSIG was checked and none of them validated."""


class IllegalUse(DnstrustError, RuntimeError):
    """The caller used an object in a state where the operation is undefined."""


class ResolutionUnsuccessful(DnstrustError):
    """
    Raised on demand for a ResolverResult whose query did not succeed.

    Inputs:
      - question: DnsQuestion that was asked.
      - rcode: dns.rcode.Rcode returned by the engine (None when unknown).
    Outputs:
      - Exception instance.
    """

    def __init__(self, question: Any, rcode: Optional[Any]) -> None:
        super().__init__(
            f"Asking for {question} yielded an error response {rcode_text(rcode)}"
        )
        self.question = question
        self.rcode = rcode
