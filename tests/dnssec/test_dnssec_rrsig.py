"""Brief: Tests for RRset-level RRSIG evaluation.

Inputs:
  - None

Outputs:
  - None (pytest assertions)

RRSIGs are produced by dnspython's signer so the signed-data layout is
checked against an independent implementation.
"""

import time

import dns.dnssec
import dns.name
import dns.rdatatype
import dns.rrset
import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from conftest import make_rrset
from dnstrust.dnssec import algorithms
from dnstrust.dnssec.algorithms import Algorithm
from dnstrust.dnssec.rrsig import key_tag, rrsig_signed_data, verify_rrset
from dnstrust.errors import BogusSignature
from dnstrust.results import (
    AlgorithmExceptionThrownReason,
    AlgorithmNotSupportedReason,
    NoActiveSignaturesReason,
    NoSecureEntryPointReason,
    NoSignaturesReason,
)

ZONE = dns.name.from_text("example.")


@pytest.fixture(scope="module")
def zone_key():
    private = ed25519.Ed25519PrivateKey.generate()
    dnskey = dns.dnssec.make_dnskey(private.public_key(), Algorithm.ED25519)
    return private, dnskey


def _sign(rrset, zone_key, lifetime=3600):
    private, dnskey = zone_key
    return dns.dnssec.sign(rrset, private, ZONE, dnskey, lifetime=lifetime)


def test_signed_rrset_is_secure(zone_key):
    """Brief: A correctly signed RRset yields no unverified reasons."""

    rrset = make_rrset("www.example.", "A", "192.0.2.1", "192.0.2.2")
    rrsig = _sign(rrset, zone_key)
    assert verify_rrset(rrset, [rrsig], [zone_key[1]]) == []


def test_signed_data_is_order_and_case_insensitive(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1", "192.0.2.2")
    rrsig = _sign(rrset, zone_key)
    other = make_rrset("WWW.Example.", "A", "192.0.2.2", "192.0.2.1")
    assert rrsig_signed_data(other, rrsig) == rrsig_signed_data(rrset, rrsig)


def test_wildcard_expansion_uses_asterisk_owner(zone_key):
    """Brief: An RRSIG over *.example. validates the synthesized owner."""

    wild = make_rrset("*.example.", "TXT", '"hello"')
    rrsig = _sign(wild, zone_key)
    assert rrsig.labels == 1

    synthesized = make_rrset("host.example.", "TXT", '"hello"')
    assert verify_rrset(synthesized, [rrsig], [zone_key[1]]) == []


def test_tampered_rrset_is_bogus(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key)
    tampered = make_rrset("www.example.", "A", "192.0.2.99")
    with pytest.raises(BogusSignature):
        verify_rrset(tampered, [rrsig], [zone_key[1]])


def test_missing_signatures(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    other_type = _sign(make_rrset("www.example.", "AAAA", "2001:db8::1"), zone_key)
    reasons = verify_rrset(rrset, [other_type], [zone_key[1]])
    assert len(reasons) == 1
    assert isinstance(reasons[0], NoSignaturesReason)
    assert reasons[0].question.rdtype == dns.rdatatype.A


def test_expired_signatures_are_inactive(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key, lifetime=60)
    reasons = verify_rrset(rrset, [rrsig], [zone_key[1]], now=time.time() + 7200)
    assert [type(r) for r in reasons] == [NoActiveSignaturesReason]


def test_no_matching_key_is_no_secure_entry_point(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key)
    stranger = dns.dnssec.make_dnskey(
        ed25519.Ed25519PrivateKey.generate().public_key(), Algorithm.ED25519
    )
    if key_tag(stranger) == rrsig.key_tag:
        pytest.skip("generated key collided with the signing key tag")

    reasons = verify_rrset(rrset, [rrsig], [stranger])
    assert reasons == [NoSecureEntryPointReason(ZONE)]


def test_non_zone_key_is_ignored(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key)
    host_key = zone_key[1].replace(flags=0)
    rrsig = rrsig.replace(key_tag=key_tag(host_key))
    assert verify_rrset(rrset, [rrsig], [host_key]) == [NoSecureEntryPointReason(ZONE)]


def test_unsupported_algorithm_is_insecure_not_bogus(zone_key):
    """Brief: Removing the Ed25519 suite turns the check into an unverified reason."""

    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key)
    algorithms.unregister_algorithm(Algorithm.ED25519)

    reasons = verify_rrset(rrset, [rrsig], [zone_key[1]])
    assert reasons == [
        AlgorithmNotSupportedReason(int(Algorithm.ED25519), dns.rdatatype.A, rrset.name)
    ]
    assert "not supported" in reasons[0].reason


def test_malformed_key_is_algorithm_exception(zone_key):
    rrset = make_rrset("www.example.", "A", "192.0.2.1")
    rrsig = _sign(rrset, zone_key)
    broken = zone_key[1].replace(key=zone_key[1].key[:16])
    # Truncating the key changes its tag; re-point the RRSIG at it.
    rrsig = rrsig.replace(key_tag=key_tag(broken))

    reasons = verify_rrset(rrset, [rrsig], [broken])
    assert len(reasons) == 1
    assert isinstance(reasons[0], AlgorithmExceptionThrownReason)
    assert reasons[0].code == "algorithm-exception"


def test_agrees_with_dnspython_validator(zone_key):
    rrset = make_rrset("mail.example.", "MX", "10 mx1.example.", "20 mx2.example.")
    rrsig = _sign(rrset, zone_key)
    keys = dns.rrset.from_rdata(ZONE, 300, zone_key[1])
    dns.dnssec.validate_rrsig(rrset, rrsig, {ZONE: keys})
    assert verify_rrset(rrset, [rrsig], keys) == []
