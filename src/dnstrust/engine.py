"""dnspython-backed DnsEngine.

Brief:
  DnspythonEngine asks a stub resolver (system resolv.conf or configured
  nameservers) with EDNS(0) and the DO bit set, then attaches unverified
  reasons according to the configured DNSSEC mode:

    - "upstream": trust a validating upstream; a missing AD flag becomes
      AuthenticDataNotSetReason.
    - "signatures": check the answer's RRSIGs locally against the signer's
      DNSKEY RRset. Chain anchoring is out of scope, so the DNSKEY set earns
      NoTrustAnchorReason unless the upstream flagged it AD.
    - "off": never record reasons.

  NXDOMAIN, timeouts and other resolver failures become unsuccessful answers;
  they are never raised to the caller.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import dns.resolver
import dns.rrset

from .config.config_schema import ResolverConfig
from .dnssec.rrsig import verify_rrset
from .dnssec.verifier import SignatureVerifier
from .errors import BogusSignature
from .resolver import EngineAnswer
from .results import (
    AuthenticDataNotSetReason,
    DnsQuestion,
    NoSecureEntryPointReason,
    NoTrustAnchorReason,
    UnverifiedReason,
)

logger = logging.getLogger(__name__)


def _parse_resolv_conf_nameservers(path: str = "/etc/resolv.conf") -> list[str]:
    """Brief: Best-effort parse of nameserver entries from a resolv.conf file.

    Inputs:
      - path: Filesystem path to a resolv.conf-format file.

    Outputs:
      - List of nameserver IP strings in file order; empty when unreadable.
    """

    servers: list[str] = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                raw = line.split("#", 1)[0].strip()
                parts = raw.split()
                if len(parts) >= 2 and parts[0].lower() == "nameserver":
                    servers.append(parts[1])
    except OSError:  # pragma: no cover - depends on host environment
        return []
    return servers


def build_stub_resolver(config: ResolverConfig) -> dns.resolver.Resolver:
    """Brief: Return a dnspython Resolver configured for DNSSEC-aware lookups.

    Inputs:
      - config: ResolverConfig (nameservers, lifetime, payload_size).

    Outputs:
      - dns.resolver.Resolver with EDNS(0), DO bit and lifetime applied.
    """

    if config.nameservers:
        r = dns.resolver.Resolver(configure=False)
        r.nameservers = list(config.nameservers)
    else:
        # Some hosts ship resolv.conf search directives dnspython refuses to
        # parse; fall back to a nameserver-only read.
        try:
            r = dns.resolver.Resolver(configure=True)
        except dns.exception.DNSException as exc:  # pragma: no cover - host specific
            logger.warning(
                "could not parse system resolv.conf; falling back to nameserver-only config: %s",
                exc,
            )
            r = dns.resolver.Resolver(configure=False)
            r.nameservers = _parse_resolv_conf_nameservers()

    r.use_edns(edns=0, ednsflags=dns.flags.DO, payload=config.payload_size)
    r.lifetime = float(config.lifetime)
    return r


class DnspythonEngine:
    """DnsEngine implementation over ``dns.resolver.Resolver``."""

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        *,
        resolver: Optional[dns.resolver.Resolver] = None,
        verifier: Optional[SignatureVerifier] = None,
    ) -> None:
        self._config = config or ResolverConfig()
        self._resolver = resolver if resolver is not None else build_stub_resolver(self._config)
        self._verifier = verifier or SignatureVerifier(self._config.key_cache_size)

    @property
    def resolver(self) -> dns.resolver.Resolver:
        return self._resolver

    def _lookup(
        self, name: dns.name.Name, rdtype: dns.rdatatype.RdataType
    ) -> dns.resolver.Answer:
        return self._resolver.resolve(
            name, rdtype, raise_on_no_answer=False, search=False
        )

    def query(self, question: DnsQuestion) -> EngineAnswer:
        """Brief: Resolve ``question`` and attach DNSSEC reasons.

        Inputs:
          - question: DnsQuestion to ask.

        Outputs:
          - EngineAnswer; failures carry a non-NOERROR rcode and no RRset.
        """

        try:
            answer = self._lookup(question.name, question.rdtype)
        except dns.resolver.NXDOMAIN:
            logger.debug("%s: NXDOMAIN", question)
            return EngineAnswer(rcode=dns.rcode.NXDOMAIN)
        except dns.exception.Timeout as exc:
            logger.warning("%s: timed out: %s", question, exc)
            return EngineAnswer(rcode=None)
        except dns.exception.DNSException as exc:
            logger.warning("%s: resolution failed: %s", question, exc)
            return EngineAnswer(rcode=dns.rcode.SERVFAIL)

        response = answer.response
        rrset = answer.rrset
        try:
            reasons = self._unverified_reasons(question, rrset, response)
        except BogusSignature as exc:
            logger.warning("%s: bogus DNSSEC data: %s", question, exc)
            return EngineAnswer(rcode=dns.rcode.SERVFAIL, response=response)

        return EngineAnswer(
            rcode=response.rcode(),
            rrset=rrset,
            unverified_reasons=tuple(reasons),
            response=response,
        )

    def _unverified_reasons(
        self,
        question: DnsQuestion,
        rrset: Optional[dns.rrset.RRset],
        response: dns.message.Message,
    ) -> List[UnverifiedReason]:
        mode = self._config.dnssec
        if mode == "off":
            return []
        authentic = bool(response.flags & dns.flags.AD)
        if mode == "upstream" or rrset is None:
            return [] if authentic else [AuthenticDataNotSetReason(question)]
        return self._check_signatures(rrset, response)

    def _check_signatures(
        self, rrset: dns.rrset.RRset, response: dns.message.Message
    ) -> List[UnverifiedReason]:
        rrsigs = response.get_rrset(
            response.answer,
            rrset.name,
            rrset.rdclass,
            dns.rdatatype.RRSIG,
            covers=rrset.rdtype,
        )
        if rrsigs is None:
            return verify_rrset(rrset, (), (), verifier=self._verifier)

        signer = rrsigs[0].signer
        try:
            key_answer = self._lookup(signer, dns.rdatatype.DNSKEY)
        except dns.exception.DNSException as exc:
            logger.debug("DNSKEY fetch for %s failed: %s", signer, exc)
            return [NoSecureEntryPointReason(signer)]
        dnskeys = key_answer.rrset
        if dnskeys is None:
            return [NoSecureEntryPointReason(signer)]

        reasons = verify_rrset(rrset, rrsigs, dnskeys, verifier=self._verifier)
        key_sigs = key_answer.response.get_rrset(
            key_answer.response.answer,
            dnskeys.name,
            dnskeys.rdclass,
            dns.rdatatype.RRSIG,
            covers=dns.rdatatype.DNSKEY,
        )
        reasons += verify_rrset(dnskeys, key_sigs or (), dnskeys, verifier=self._verifier)
        if not key_answer.response.flags & dns.flags.AD:
            reasons.append(NoTrustAnchorReason(signer))
        return list(dict.fromkeys(reasons))
