"""Registry mapping DNSSEC algorithm numbers to codec/verify suites.

Brief:
  Adding an algorithm means registering one AlgorithmSuite; callers of the
  verifier never change. Identifiers are dnspython's ``dns.dnssec.Algorithm``.

Inputs:
  - dns.dnssec.Algorithm values (or their integer codes).

Outputs:
  - AlgorithmSuite entries, or UnsupportedAlgorithm for unknown identifiers.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, NamedTuple, Union

import dns.dnssec
import dns.exception
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding

from ..errors import UnsupportedAlgorithm
from .codecs import (
    DsaKeyCodec,
    DsaSignatureCodec,
    EcdsaKeyCodec,
    EcdsaSignatureCodec,
    EddsaKeyCodec,
    KeyCodec,
    RawSignatureCodec,
    RsaKeyCodec,
    SignatureCodec,
)

Algorithm = dns.dnssec.Algorithm

# verify(public_key, canonical_signature, message) -> None; raises
# cryptography.exceptions.InvalidSignature when the check fails.
VerifyPrimitive = Callable[[Any, bytes, bytes], None]


class AlgorithmSuite(NamedTuple):
    scheme: str
    key_codec: KeyCodec
    signature_codec: SignatureCodec
    verify: VerifyPrimitive


def _dsa_verify(hash_cls: Callable[[], hashes.HashAlgorithm]) -> VerifyPrimitive:
    def _verify(key: Any, signature: bytes, message: bytes) -> None:
        key.verify(signature, message, hash_cls())

    return _verify


def _rsa_verify(hash_cls: Callable[[], hashes.HashAlgorithm]) -> VerifyPrimitive:
    def _verify(key: Any, signature: bytes, message: bytes) -> None:
        key.verify(signature, message, padding.PKCS1v15(), hash_cls())

    return _verify


def _ecdsa_verify(hash_cls: Callable[[], hashes.HashAlgorithm]) -> VerifyPrimitive:
    def _verify(key: Any, signature: bytes, message: bytes) -> None:
        key.verify(signature, message, ec.ECDSA(hash_cls()))

    return _verify


def _eddsa_verify(key: Any, signature: bytes, message: bytes) -> None:
    key.verify(signature, message)


def _default_suites() -> Dict[Algorithm, AlgorithmSuite]:
    dsa_suite = AlgorithmSuite(
        "DSA", DsaKeyCodec(), DsaSignatureCodec(), _dsa_verify(hashes.SHA1)
    )
    rsa_key = RsaKeyCodec()
    rsa_sig = RawSignatureCodec(what="RSA signature")
    return {
        Algorithm.DSA: dsa_suite,
        Algorithm.DSANSEC3SHA1: dsa_suite,
        Algorithm.RSASHA1: AlgorithmSuite("RSA", rsa_key, rsa_sig, _rsa_verify(hashes.SHA1)),
        Algorithm.RSASHA1NSEC3SHA1: AlgorithmSuite(
            "RSA", rsa_key, rsa_sig, _rsa_verify(hashes.SHA1)
        ),
        Algorithm.RSASHA256: AlgorithmSuite(
            "RSA", rsa_key, rsa_sig, _rsa_verify(hashes.SHA256)
        ),
        Algorithm.RSASHA512: AlgorithmSuite(
            "RSA", rsa_key, rsa_sig, _rsa_verify(hashes.SHA512)
        ),
        Algorithm.ECDSAP256SHA256: AlgorithmSuite(
            "ECDSA",
            EcdsaKeyCodec("secp256r1", 32),
            EcdsaSignatureCodec(32),
            _ecdsa_verify(hashes.SHA256),
        ),
        Algorithm.ECDSAP384SHA384: AlgorithmSuite(
            "ECDSA",
            EcdsaKeyCodec("secp384r1", 48),
            EcdsaSignatureCodec(48),
            _ecdsa_verify(hashes.SHA384),
        ),
        Algorithm.ED25519: AlgorithmSuite(
            "EdDSA",
            EddsaKeyCodec("ed25519", 32),
            RawSignatureCodec(64, what="Ed25519 signature"),
            _eddsa_verify,
        ),
        Algorithm.ED448: AlgorithmSuite(
            "EdDSA",
            EddsaKeyCodec("ed448", 57),
            RawSignatureCodec(114, what="Ed448 signature"),
            _eddsa_verify,
        ),
    }


_REGISTRY: Dict[Algorithm, AlgorithmSuite] = _default_suites()
_REGISTRY_LOCK = threading.Lock()


def _coerce(algorithm: Union[Algorithm, int]) -> Algorithm:
    try:
        return Algorithm.make(algorithm)
    except (ValueError, TypeError, dns.exception.DNSException) as exc:
        raise UnsupportedAlgorithm(algorithm) from exc


def register_algorithm(algorithm: Union[Algorithm, int], suite: AlgorithmSuite) -> None:
    """Brief: Add or replace the suite used for ``algorithm``.

    Inputs:
      - algorithm: dns.dnssec.Algorithm or its integer code.
      - suite: AlgorithmSuite to use from now on.

    Outputs:
      - None.
    """

    with _REGISTRY_LOCK:
        _REGISTRY[_coerce(algorithm)] = suite


def unregister_algorithm(algorithm: Union[Algorithm, int]) -> None:
    with _REGISTRY_LOCK:
        _REGISTRY.pop(_coerce(algorithm), None)


def get_suite(algorithm: Union[Algorithm, int]) -> AlgorithmSuite:
    """Brief: Look up the suite for ``algorithm``.

    Raises:
      - UnsupportedAlgorithm: No suite is registered.
    """

    alg = _coerce(algorithm)
    suite = _REGISTRY.get(alg)
    if suite is None:
        raise UnsupportedAlgorithm(alg)
    return suite


def supported_algorithms() -> List[Algorithm]:
    return sorted(_REGISTRY)


def reset_registry() -> None:
    """Restore the built-in suites (used by tests that register extras)."""

    with _REGISTRY_LOCK:
        _REGISTRY.clear()
        _REGISTRY.update(_default_suites())
