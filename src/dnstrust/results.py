"""Query results and DNSSEC unverified reasons.

Brief:
  A ResolverResult binds one DnsQuestion to its answer set and to the ordered
  list of reasons why the answer could not be DNSSEC-verified. An empty reason
  list means the answer is secure; a non-empty one keeps the answers usable
  and leaves the trust decision to the caller.

Inputs:
  - Engine output: rcode, answer rdata, unverified reasons, raw response.

Outputs:
  - Immutable ResolverResult objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    ClassVar,
    FrozenSet,
    Generic,
    Iterable,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

import dns.message
import dns.name
import dns.rcode
import dns.rdatatype

from .errors import IllegalUse, ResolutionUnsuccessful, rcode_text

T = TypeVar("T")


@dataclass(frozen=True)
class DnsQuestion:
    name: dns.name.Name
    rdtype: dns.rdatatype.RdataType

    @classmethod
    def of(
        cls,
        name: Union[str, dns.name.Name],
        rdtype: Union[str, int, dns.rdatatype.RdataType],
    ) -> "DnsQuestion":
        """Brief: Build a question from text or dnspython values.

        Example:
          >>> str(DnsQuestion.of("example.com", "A"))
          'example.com. A'
        """

        if not isinstance(name, dns.name.Name):
            name = dns.name.from_text(str(name))
        return cls(name=name, rdtype=dns.rdatatype.RdataType.make(rdtype))

    def __str__(self) -> str:
        return f"{self.name} {dns.rdatatype.to_text(self.rdtype)}"


# ---------------------------------------------------------------------------
# Unverified reasons
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UnverifiedReason:
    """Base class; ``code`` is a stable identifier, ``reason`` human text."""

    code: ClassVar[str] = "unverified"

    @property
    def reason(self) -> str:
        return self.code

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True)
class NoSignaturesReason(UnverifiedReason):
    question: DnsQuestion
    code: ClassVar[str] = "no-signatures"

    @property
    def reason(self) -> str:
        return f"No signatures were attached to answer on question for {self.question}"


@dataclass(frozen=True)
class NoActiveSignaturesReason(UnverifiedReason):
    question: DnsQuestion
    code: ClassVar[str] = "no-active-signatures"

    @property
    def reason(self) -> str:
        return f"No currently active signatures were attached to answer on question for {self.question}"


@dataclass(frozen=True)
class AlgorithmNotSupportedReason(UnverifiedReason):
    algorithm: int
    rdtype: dns.rdatatype.RdataType
    owner: dns.name.Name
    code: ClassVar[str] = "algorithm-not-supported"

    @property
    def reason(self) -> str:
        return (
            f"Algorithm {self.algorithm} used by {self.owner} "
            f"{dns.rdatatype.to_text(self.rdtype)} is not supported"
        )


@dataclass(frozen=True)
class AlgorithmExceptionThrownReason(UnverifiedReason):
    algorithm: int
    rdtype: dns.rdatatype.RdataType
    owner: dns.name.Name
    error: str
    code: ClassVar[str] = "algorithm-exception"

    @property
    def reason(self) -> str:
        return (
            f"Algorithm {self.algorithm} failed for {self.owner} "
            f"{dns.rdatatype.to_text(self.rdtype)}: {self.error}"
        )


@dataclass(frozen=True)
class NoSecureEntryPointReason(UnverifiedReason):
    zone: dns.name.Name
    code: ClassVar[str] = "no-secure-entry-point"

    @property
    def reason(self) -> str:
        return f"No secure entry point was found for zone {self.zone}"


@dataclass(frozen=True)
class NoTrustAnchorReason(UnverifiedReason):
    zone: dns.name.Name
    code: ClassVar[str] = "no-trust-anchor"

    @property
    def reason(self) -> str:
        return f"No trust anchor was found for zone {self.zone}"


@dataclass(frozen=True)
class AuthenticDataNotSetReason(UnverifiedReason):
    question: DnsQuestion
    code: ClassVar[str] = "authentic-data-not-set"

    @property
    def reason(self) -> str:
        return f"Upstream did not set the AD flag for {self.question}"


# ---------------------------------------------------------------------------
# ResolverResult
# ---------------------------------------------------------------------------


class ResolverResult(Generic[T]):
    """Outcome of one question.

    Brief:
      - was_successful is True iff the engine returned NOERROR.
      - answers raises IllegalUse when the query failed; check
        was_successful first.
      - Inputs are copied on construction, so later mutation of the caller's
        collections does not leak in.
    """

    def __init__(
        self,
        question: DnsQuestion,
        rcode: Optional[dns.rcode.Rcode],
        answers: Iterable[T] = (),
        unverified_reasons: Iterable[UnverifiedReason] = (),
        *,
        response: Optional[dns.message.Message] = None,
    ) -> None:
        self.question = question
        self.rcode = rcode
        self.response = response
        if self.was_successful:
            self._answers: FrozenSet[T] = frozenset(answers)
        else:
            self._answers = frozenset()
        # Keep order, drop duplicates.
        self._unverified_reasons: Tuple[UnverifiedReason, ...] = tuple(
            dict.fromkeys(unverified_reasons)
        )

    @classmethod
    def failed(
        cls,
        question: DnsQuestion,
        rcode: Optional[dns.rcode.Rcode] = dns.rcode.SERVFAIL,
        unverified_reasons: Iterable[UnverifiedReason] = (),
        *,
        response: Optional[dns.message.Message] = None,
    ) -> "ResolverResult[Any]":
        """Result for a question that produced no usable answer.

        ``rcode`` None means no response arrived at all.
        """

        return cls(question, rcode, (), unverified_reasons, response=response)

    @property
    def was_successful(self) -> bool:
        return self.rcode == dns.rcode.NOERROR

    @property
    def answers(self) -> FrozenSet[T]:
        if not self.was_successful:
            raise IllegalUse(
                f"Can not access answers of unsuccessful result for {self.question}"
                f" (rcode={rcode_text(self.rcode)}); check was_successful first"
            )
        return self._answers

    @property
    def unverified_reasons(self) -> Tuple[UnverifiedReason, ...]:
        return self._unverified_reasons

    @property
    def has_unverified_reasons(self) -> bool:
        return bool(self._unverified_reasons)

    @property
    def is_authentic_data(self) -> bool:
        return self.was_successful and not self.has_unverified_reasons

    def raise_if_error_response(self) -> None:
        if not self.was_successful:
            raise ResolutionUnsuccessful(self.question, self.rcode)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.question} rcode={rcode_text(self.rcode)} "
            f"answers={len(self._answers)} unverified={len(self._unverified_reasons)}>"
        )
