"""Brief: Tests for DnspythonEngine and build_stub_resolver.

Inputs:
  - None

Outputs:
  - None (pytest assertions)

The stub resolver is replaced by an in-memory object returning real
dns.message responses, so no network access is needed.
"""

from __future__ import annotations

from types import SimpleNamespace

import dns.dnssec
import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rdataclass
import dns.rcode
import dns.rdatatype
import dns.resolver
import dns.rrset
import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from conftest import make_rrset
from dnstrust.config import ResolverConfig
from dnstrust.dnssec.algorithms import Algorithm
from dnstrust.engine import DnspythonEngine, build_stub_resolver
from dnstrust.resolver import ResolverApi
from dnstrust.results import (
    AuthenticDataNotSetReason,
    DnsQuestion,
    NoSignaturesReason,
    NoTrustAnchorReason,
)

ZONE = dns.name.from_text("example.")
WWW_A = DnsQuestion.of("www.example.", "A")


class StubResolver:
    """Brief: Minimal dns.resolver.Resolver stand-in keyed by (name, type)."""

    def __init__(self):
        self.replies = {}
        self.calls = []

    def answer(self, name, rdtype, *rrsets, ad=False):
        query = dns.message.make_query(name, rdtype, want_dnssec=True)
        response = dns.message.make_response(query)
        if ad:
            response.flags |= dns.flags.AD
        for rrset in rrsets:
            # find_rrset keeps the message index in step so get_rrset sees it.
            response.find_rrset(
                response.answer,
                rrset.name,
                rrset.rdclass,
                rrset.rdtype,
                rrset.covers,
                create=True,
            ).update(rrset)
        self.replies[(dns.name.from_text(name), dns.rdatatype.from_text(rdtype))] = response
        return response

    def error(self, name, rdtype, exc):
        self.replies[(dns.name.from_text(name), dns.rdatatype.from_text(rdtype))] = exc

    def resolve(self, name, rdtype, raise_on_no_answer=True, search=None):
        self.calls.append((name, rdtype, raise_on_no_answer, search))
        reply = self.replies[(name, rdtype)]
        if isinstance(reply, Exception):
            raise reply
        rrset = reply.get_rrset(reply.answer, name, dns.rdataclass.IN, rdtype)
        return SimpleNamespace(rrset=rrset, response=reply)


@pytest.fixture
def stub():
    return StubResolver()


@pytest.fixture(scope="module")
def zone_key():
    private = ed25519.Ed25519PrivateKey.generate()
    dnskey = dns.dnssec.make_dnskey(private.public_key(), Algorithm.ED25519)
    return private, dnskey


def _engine(stub, mode="upstream"):
    return DnspythonEngine(ResolverConfig(dnssec=mode), resolver=stub)


def _signed_zone(stub, zone_key, *, key_ad=False, records=("192.0.2.1",), signed=None):
    private, dnskey = zone_key
    www = make_rrset("www.example.", "A", *records)
    signed = signed or www
    sig = dns.dnssec.sign(signed, private, ZONE, dnskey, lifetime=3600)
    stub.answer("www.example.", "A", www, dns.rrset.from_rdata(www.name, 300, sig))

    keys = dns.rrset.from_rdata(ZONE, 300, dnskey)
    key_sig = dns.dnssec.sign(keys, private, ZONE, dnskey, lifetime=3600)
    stub.answer("example.", "DNSKEY", keys, dns.rrset.from_rdata(ZONE, 300, key_sig), ad=key_ad)


# ---------------------------------------------------------------------------
# upstream / off modes
# ---------------------------------------------------------------------------


def test_upstream_mode_trusts_ad_flag(stub):
    stub.answer("www.example.", "A", make_rrset("www.example.", "A", "192.0.2.1"), ad=True)
    answer = _engine(stub).query(WWW_A)
    assert answer.rcode == dns.rcode.NOERROR
    assert [rd.address for rd in answer.rrset] == ["192.0.2.1"]
    assert answer.unverified_reasons == ()
    assert answer.response is not None
    # Search lists are never applied and NODATA does not raise.
    assert stub.calls == [(WWW_A.name, WWW_A.rdtype, False, False)]


def test_upstream_mode_without_ad_flag(stub):
    stub.answer("www.example.", "A", make_rrset("www.example.", "A", "192.0.2.1"))
    answer = _engine(stub).query(WWW_A)
    assert answer.unverified_reasons == (AuthenticDataNotSetReason(WWW_A),)


def test_nodata_without_ad_is_unverified(stub):
    stub.answer("www.example.", "A")
    answer = _engine(stub, "signatures").query(WWW_A)
    assert answer.rcode == dns.rcode.NOERROR
    assert answer.rrset is None
    assert answer.unverified_reasons == (AuthenticDataNotSetReason(WWW_A),)


def test_off_mode_never_records_reasons(stub):
    stub.answer("www.example.", "A", make_rrset("www.example.", "A", "192.0.2.1"))
    assert _engine(stub, "off").query(WWW_A).unverified_reasons == ()


# ---------------------------------------------------------------------------
# failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "exc,rcode",
    [
        (dns.resolver.NXDOMAIN(), dns.rcode.NXDOMAIN),
        (dns.exception.Timeout(), None),
        (dns.resolver.NoNameservers(), dns.rcode.SERVFAIL),
    ],
)
def test_failures_become_unsuccessful_answers(stub, exc, rcode):
    """Brief: Resolver exceptions are mapped to rcodes instead of propagating.

    Inputs:
      - exc: Exception raised by the stub resolver.
      - rcode: Expected EngineAnswer rcode.

    Outputs:
      - None; asserts the mapping and the resulting ResolverResult state.
    """

    stub.error("www.example.", "A", exc)
    engine = _engine(stub)
    answer = engine.query(WWW_A)
    assert answer.rcode == rcode
    assert answer.rrset is None

    result = ResolverApi(engine).resolve("www.example.", "A")
    assert not result.was_successful


# ---------------------------------------------------------------------------
# signatures mode
# ---------------------------------------------------------------------------


def test_signatures_mode_secure_with_anchored_keys(stub, zone_key):
    _signed_zone(stub, zone_key, key_ad=True)
    answer = _engine(stub, "signatures").query(WWW_A)
    assert answer.rcode == dns.rcode.NOERROR
    assert answer.unverified_reasons == ()
    asked = [(str(name), dns.rdatatype.to_text(t)) for name, t, _, _ in stub.calls]
    assert asked == [("www.example.", "A"), ("example.", "DNSKEY")]


def test_signatures_mode_without_anchor(stub, zone_key):
    _signed_zone(stub, zone_key)
    answer = _engine(stub, "signatures").query(WWW_A)
    assert answer.unverified_reasons == (NoTrustAnchorReason(ZONE),)


def test_signatures_mode_unsigned_answer(stub):
    stub.answer("www.example.", "A", make_rrset("www.example.", "A", "192.0.2.1"))
    answer = _engine(stub, "signatures").query(WWW_A)
    assert answer.unverified_reasons == (NoSignaturesReason(WWW_A),)
    assert len(stub.calls) == 1


def test_signatures_mode_bogus_answer_is_servfail(stub, zone_key):
    """Brief: An RRSIG that fails to validate turns the answer into SERVFAIL."""

    _signed_zone(
        stub,
        zone_key,
        key_ad=True,
        records=("192.0.2.66",),
        signed=make_rrset("www.example.", "A", "192.0.2.1"),
    )
    engine = _engine(stub, "signatures")
    answer = engine.query(WWW_A)
    assert answer.rcode == dns.rcode.SERVFAIL
    assert answer.rrset is None

    result = ResolverApi(engine).resolve("www.example.", "A")
    assert result.rcode == dns.rcode.SERVFAIL


# ---------------------------------------------------------------------------
# stub resolver construction
# ---------------------------------------------------------------------------


def test_build_stub_resolver_applies_config():
    cfg = ResolverConfig(nameservers=["192.0.2.53", "2001:db8::53"], lifetime=3.5, payload_size=4096)
    r = build_stub_resolver(cfg)
    assert [str(ns) for ns in r.nameservers] == ["192.0.2.53", "2001:db8::53"]
    assert r.edns == 0
    assert r.ednsflags & dns.flags.DO
    assert r.payload == 4096
    assert r.lifetime == 3.5


def test_engine_builds_its_own_verifier_from_config(stub):
    engine = DnspythonEngine(ResolverConfig(key_cache_size=3), resolver=stub)
    assert engine.resolver is stub
    assert engine._verifier._key_cache.maxsize == 3
