"""Algorithm-polymorphic DNSSEC signature verification.

Brief:
  SignatureVerifier answers "does signature S over message M validate under
  DNSKEY K using algorithm A?". It looks up the registered suite for A,
  decodes key and signature with the suite's codecs and hands the results to
  the ``cryptography`` verify primitive.

Outcomes:
  - True / False: the check ran; False means the signature is bogus.
  - DataMalformed, InvalidKeySpec, UnsupportedAlgorithm: the check could not
    be attempted. Callers treat these as insecure rather than bogus.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Union

from cachetools import LRUCache, cachedmethod
from cryptography.exceptions import InvalidSignature

from .algorithms import Algorithm, get_suite

logger = logging.getLogger(__name__)

_DEFAULT_KEY_CACHE_SIZE = 256


class SignatureVerifier:
    """Verify RRSIG signature bytes against DNSKEY public-key bytes.

    Decoded public keys are memoised in a bounded LRU keyed by
    (algorithm, key bytes); the cache is lock-guarded so one verifier can be
    shared between threads.
    """

    def __init__(self, key_cache_size: int = _DEFAULT_KEY_CACHE_SIZE) -> None:
        self._key_cache: LRUCache = LRUCache(maxsize=max(1, int(key_cache_size)))
        self._key_lock = threading.Lock()

    @cachedmethod(lambda self: self._key_cache, lock=lambda self: self._key_lock)
    def public_key(self, algorithm: Algorithm, key_wire: bytes) -> Any:
        """Brief: Decode DNSKEY public-key bytes into a cryptography key object.

        Inputs:
          - algorithm: Registered dns.dnssec.Algorithm.
          - key_wire: DNSKEY public-key field.

        Outputs:
          - cryptography public key object.

        Raises:
          - UnsupportedAlgorithm, DataMalformed, InvalidKeySpec.
        """

        suite = get_suite(algorithm)
        material = suite.key_codec.decode(key_wire)
        return suite.key_codec.to_public_key(material)

    def verify(
        self,
        message: bytes,
        signature_wire: bytes,
        key_wire: bytes,
        algorithm: Union[Algorithm, int],
    ) -> bool:
        """Brief: Check one signature.

        Inputs:
          - message: Signed data (for RRSIGs, see dnstrust.dnssec.rrsig).
          - signature_wire: RRSIG signature field.
          - key_wire: DNSKEY public-key field.
          - algorithm: dns.dnssec.Algorithm or integer code.

        Outputs:
          - bool: True when the signature validates, False otherwise.

        Raises:
          - UnsupportedAlgorithm, DataMalformed, InvalidKeySpec.
        """

        suite = get_suite(algorithm)
        key = self.public_key(Algorithm.make(algorithm), bytes(key_wire))
        value = suite.signature_codec.decode(signature_wire)
        canonical = suite.signature_codec.encode(value)
        try:
            suite.verify(key, canonical, bytes(message))
        except InvalidSignature:
            logger.debug(
                "%s signature did not validate (%d message bytes)",
                Algorithm.make(algorithm).name,
                len(message),
            )
            return False
        return True

    def clear_cache(self) -> None:
        with self._key_lock:
            self._key_cache.clear()


_default_verifier: Optional[SignatureVerifier] = None


def default_verifier() -> SignatureVerifier:
    global _default_verifier
    if _default_verifier is None:
        _default_verifier = SignatureVerifier()
    return _default_verifier


def verify_signature(
    message: bytes,
    signature_wire: bytes,
    key_wire: bytes,
    algorithm: Union[Algorithm, int],
) -> bool:
    """Module-level shortcut for ``default_verifier().verify(...)``."""

    return default_verifier().verify(message, signature_wire, key_wire, algorithm)
