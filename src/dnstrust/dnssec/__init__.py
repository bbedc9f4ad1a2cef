"""DNSSEC key/signature codecs, algorithm registry and verification."""

from .algorithms import (
    Algorithm,
    AlgorithmSuite,
    get_suite,
    register_algorithm,
    supported_algorithms,
    unregister_algorithm,
)
from .codecs import der_encode_signature, der_to_dsa_wire
from .rrsig import key_tag, rrsig_signed_data, verify_rrset
from .verifier import SignatureVerifier, verify_signature

__all__ = [
    "Algorithm",
    "AlgorithmSuite",
    "get_suite",
    "register_algorithm",
    "supported_algorithms",
    "unregister_algorithm",
    "der_encode_signature",
    "der_to_dsa_wire",
    "key_tag",
    "rrsig_signed_data",
    "verify_rrset",
    "SignatureVerifier",
    "verify_signature",
]
