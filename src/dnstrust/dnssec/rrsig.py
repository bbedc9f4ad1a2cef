"""RRset-level RRSIG evaluation on top of SignatureVerifier.

Brief:
  Build the RFC 4034 section 3.1.8.1 signed data for an RRset, check the
  covering RRSIGs against the zone's DNSKEYs and translate the outcome into
  unverified reasons. Chain-of-trust anchoring and NSEC/NSEC3 proofs are not
  handled here.

Outcome policy:
  - At least one RRSIG validates: [] (secure).
  - Verification could not be attempted (unsupported algorithm, malformed
    key or signature, no matching key, no signatures): one or more
    UnverifiedReason entries (insecure).
  - Every attempted check returned False: BogusSignature is raised.
"""

from __future__ import annotations

import logging
import struct
import time
from typing import Iterable, List, Optional

import dns.dnssec
import dns.name
import dns.rdatatype
import dns.rrset
from dns.rdtypes.ANY.DNSKEY import DNSKEY
from dns.rdtypes.ANY.RRSIG import RRSIG

from ..errors import BogusSignature, DataMalformed, InvalidKeySpec, UnsupportedAlgorithm
from ..results import (
    AlgorithmExceptionThrownReason,
    AlgorithmNotSupportedReason,
    DnsQuestion,
    NoActiveSignaturesReason,
    NoSecureEntryPointReason,
    NoSignaturesReason,
    UnverifiedReason,
)
from .verifier import SignatureVerifier, default_verifier

logger = logging.getLogger(__name__)

# DNSKEY flags bit 7 (RFC 4034 section 2.1.1).
_ZONE_KEY_FLAG = 0x0100


def key_tag(dnskey: DNSKEY) -> int:
    return dns.dnssec.key_id(dnskey)


def _signed_owner(rrset: dns.rrset.RRset, rrsig: RRSIG) -> dns.name.Name:
    """Return the owner used in the signed data, expanding wildcards."""

    owner = rrset.name
    # len() counts the root label; RRSIG labels does not.
    if rrsig.labels < len(owner) - 1:
        _, suffix = owner.split(rrsig.labels + 1)
        owner = dns.name.Name((b"*",) + suffix.labels)
    return owner


def rrsig_signed_data(rrset: dns.rrset.RRset, rrsig: RRSIG) -> bytes:
    """Brief: Build the byte string an RRSIG signs.

    Inputs:
      - rrset: The covered RRset (absolute owner name).
      - rrsig: One RRSIG rdata covering rrset.

    Outputs:
      - bytes: RRSIG rdata without signature, followed by every RR in
        canonical form, ordered by canonical rdata.
    """

    data = struct.pack(
        "!HBBIIIH",
        rrsig.type_covered,
        rrsig.algorithm,
        rrsig.labels,
        rrsig.original_ttl,
        rrsig.expiration,
        rrsig.inception,
        rrsig.key_tag,
    )
    data += rrsig.signer.to_digestable()

    owner = _signed_owner(rrset, rrsig).to_digestable()
    fixed = struct.pack("!HHI", rrset.rdtype, rrset.rdclass, rrsig.original_ttl)
    for rdata in sorted({rd.to_digestable() for rd in rrset}):
        data += owner + fixed + struct.pack("!H", len(rdata)) + rdata
    return data


def _matching_keys(rrsig: RRSIG, dnskeys: Iterable[DNSKEY]) -> List[DNSKEY]:
    return [
        k
        for k in dnskeys
        if k.algorithm == rrsig.algorithm
        and k.flags & _ZONE_KEY_FLAG
        and key_tag(k) == rrsig.key_tag
    ]


def verify_rrset(
    rrset: dns.rrset.RRset,
    rrsigs: Iterable[RRSIG],
    dnskeys: Iterable[DNSKEY],
    *,
    now: Optional[float] = None,
    verifier: Optional[SignatureVerifier] = None,
) -> List[UnverifiedReason]:
    """Brief: Evaluate the RRSIGs covering ``rrset``.

    Inputs:
      - rrset: Answer RRset to check.
      - rrsigs: RRSIG rdata (any covered type; non-matching ones are ignored).
      - dnskeys: DNSKEY rdata of the signer zone.
      - now: POSIX time used for the validity window (default: time.time()).
      - verifier: SignatureVerifier to use (default: the shared instance).

    Outputs:
      - list[UnverifiedReason]: Empty when the RRset is secure.

    Raises:
      - BogusSignature: Signatures were checked and none validated.
    """

    verifier = verifier or default_verifier()
    question = DnsQuestion(rrset.name, rrset.rdtype)
    dnskeys = list(dnskeys)

    sigs = [s for s in rrsigs if s.type_covered == rrset.rdtype]
    if not sigs:
        return [NoSignaturesReason(question)]

    when = int(time.time() if now is None else now)
    active = [s for s in sigs if s.inception <= when <= s.expiration]
    if not active:
        return [NoActiveSignaturesReason(question)]

    reasons: List[UnverifiedReason] = []
    failed_checks = 0
    for sig in active:
        keys = _matching_keys(sig, dnskeys)
        if not keys:
            reasons.append(NoSecureEntryPointReason(sig.signer))
            continue
        message = rrsig_signed_data(rrset, sig)
        for key in keys:
            try:
                if verifier.verify(message, sig.signature, key.key, sig.algorithm):
                    logger.debug("%s validated by key tag %d", question, sig.key_tag)
                    return []
                failed_checks += 1
            except UnsupportedAlgorithm:
                reasons.append(
                    AlgorithmNotSupportedReason(int(sig.algorithm), rrset.rdtype, rrset.name)
                )
            except (DataMalformed, InvalidKeySpec) as exc:
                reasons.append(
                    AlgorithmExceptionThrownReason(
                        int(sig.algorithm), rrset.rdtype, rrset.name, str(exc)
                    )
                )

    if failed_checks:
        raise BogusSignature(
            f"{question}: {failed_checks} signature check(s) failed, none validated"
        )
    return list(dict.fromkeys(reasons))
