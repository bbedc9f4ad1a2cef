"""Per-algorithm DNSKEY and RRSIG wire-format codecs.

Brief:
  Each DNSSEC algorithm family stores its public key and signature in a
  different byte layout. The codecs in this module translate those layouts
  into numeric materials, back into wire bytes, and into the objects the
  ``cryptography`` verification primitives consume.

Inputs:
  - Raw DNSKEY public-key fields and raw RRSIG signature fields.

Outputs:
  - Frozen *KeyMaterial / *SignatureValue dataclasses, canonical signature
    bytes and ``cryptography`` public key objects.

Layouts:
  - DSA key (RFC 2536 section 2): T | Q[20] | P[64+8T] | G[64+8T] | Y[64+8T]
  - DSA signature (RFC 2536 section 3): T | R[20] | S[20]
  - RSA key (RFC 3110 section 2): explen[1 or 0+2] | exponent | modulus
  - ECDSA key/signature (RFC 6605): x | y and r | s, fixed width per curve
  - EdDSA key/signature (RFC 8080): raw public key and raw signature
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from ..errors import DataMalformed, InvalidKeySpec

# Width of the DSA subprime and of each half of a DSA signature.
DSA_FIELD_LENGTH = 20
DSA_MAX_T = 8


class _WireReader:
    """Brief: Sequential reader over wire bytes that fails with DataMalformed.

    Inputs:
      - data: Bytes to consume.
      - what: Short label used in error messages (e.g. "DSA key").

    Outputs:
      - Reader exposing read_byte(), read(n) and rest().
    """

    __slots__ = ("_data", "_pos", "_what")

    def __init__(self, data: bytes, what: str) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._what = what

    def read(self, n: int) -> bytes:
        end = self._pos + n
        if n < 0 or end > len(self._data):
            raise DataMalformed(
                f"{self._what}: need {n} bytes at offset {self._pos}, "
                f"have {len(self._data) - self._pos}",
                self._data,
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def read_uint(self, n: int) -> int:
        return int.from_bytes(self.read(n), "big")

    def rest(self) -> bytes:
        chunk = self._data[self._pos :]
        self._pos = len(self._data)
        return chunk


def _uint_bytes(value: int, length: Optional[int] = None) -> bytes:
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "big")


# ---------------------------------------------------------------------------
# DER composite used by the DSA and ECDSA verify primitives
# ---------------------------------------------------------------------------


def _der_length(n: int) -> bytes:
    if n < 0x80:
        return bytes([n])
    body = _uint_bytes(n)
    return bytes([0x80 | len(body)]) + body


def _der_integer(value: int) -> bytes:
    """Brief: Encode a non-negative int as a minimal DER INTEGER.

    Inputs:
      - value: Unsigned integer.

    Outputs:
      - bytes: 0x02 | len | [0x00] | magnitude. The leading 0x00 is present iff
        the top bit of the first magnitude byte is set, so the signed INTEGER
        reads as positive.
    """

    body = value.to_bytes((value.bit_length() + 8) // 8, "big")
    return b"\x02" + _der_length(len(body)) + body


def der_encode_signature(r: int, s: int) -> bytes:
    """Brief: Build the SEQUENCE { INTEGER r, INTEGER s } composite.

    Inputs:
      - r, s: Unsigned signature components.

    Outputs:
      - bytes: 0x30 | totalLen | INTEGER(r) | INTEGER(s).

    Example:
      >>> der_encode_signature(1, 0x80).hex()
      '300702010102020080'
    """

    body = _der_integer(r) + _der_integer(s)
    return b"\x30" + _der_length(len(body)) + body


def der_to_dsa_wire(der: bytes, t: int) -> bytes:
    """Brief: Convert a DER DSA signature into RFC 2536 RRSIG signature bytes.

    Inputs:
      - der: DER SEQUENCE produced by a DSA signer.
      - t: The key's T parameter.

    Outputs:
      - bytes: T | R[20] | S[20].
    """

    r, s = decode_dss_signature(der)
    return (
        bytes([t])
        + _uint_bytes(r, DSA_FIELD_LENGTH)
        + _uint_bytes(s, DSA_FIELD_LENGTH)
    )


# ---------------------------------------------------------------------------
# Codec contracts
# ---------------------------------------------------------------------------


class KeyCodec(Protocol):
    """Translate DNSKEY public-key bytes to key material and back."""

    def decode(self, wire: bytes) -> Any: ...

    def encode(self, material: Any) -> bytes: ...

    def to_public_key(self, material: Any) -> Any: ...


class SignatureCodec(Protocol):
    """Translate RRSIG signature bytes to the verify primitive's encoding."""

    def decode(self, wire: bytes) -> Any: ...

    def encode(self, value: Any) -> bytes: ...


# ---------------------------------------------------------------------------
# DSA (RFC 2536)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DsaKeyMaterial:
    t: int
    q: int
    p: int
    g: int
    y: int

    @property
    def field_length(self) -> int:
        return 64 + 8 * self.t


@dataclass(frozen=True)
class DsaSignatureValue:
    t: int
    r: int
    s: int


class DsaKeyCodec:
    """DSA public key layout from RFC 2536 section 2."""

    def decode(self, wire: bytes) -> DsaKeyMaterial:
        reader = _WireReader(wire, "DSA key")
        t = reader.read_byte()
        if t > DSA_MAX_T:
            raise DataMalformed(f"DSA key: T={t} exceeds {DSA_MAX_T}", wire)
        length = 64 + 8 * t
        q = reader.read_uint(DSA_FIELD_LENGTH)
        p = reader.read_uint(length)
        g = reader.read_uint(length)
        y = reader.read_uint(length)
        return DsaKeyMaterial(t=t, q=q, p=p, g=g, y=y)

    def encode(self, material: DsaKeyMaterial) -> bytes:
        length = material.field_length
        return (
            bytes([material.t])
            + _uint_bytes(material.q, DSA_FIELD_LENGTH)
            + _uint_bytes(material.p, length)
            + _uint_bytes(material.g, length)
            + _uint_bytes(material.y, length)
        )

    def to_public_key(self, material: DsaKeyMaterial) -> dsa.DSAPublicKey:
        params = dsa.DSAParameterNumbers(p=material.p, q=material.q, g=material.g)
        try:
            return dsa.DSAPublicNumbers(y=material.y, parameter_numbers=params).public_key()
        except ValueError as exc:
            raise InvalidKeySpec(f"DSA parameters rejected: {exc}") from exc


class DsaSignatureCodec:
    """DSA signature layout from RFC 2536 section 3."""

    def decode(self, wire: bytes) -> DsaSignatureValue:
        reader = _WireReader(wire, "DSA signature")
        t = reader.read_byte()
        r = reader.read_uint(DSA_FIELD_LENGTH)
        s = reader.read_uint(DSA_FIELD_LENGTH)
        return DsaSignatureValue(t=t, r=r, s=s)

    def encode(self, value: DsaSignatureValue) -> bytes:
        return der_encode_signature(value.r, value.s)


# ---------------------------------------------------------------------------
# RSA (RFC 3110)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RsaKeyMaterial:
    exponent: int
    modulus: int


@dataclass(frozen=True)
class RawSignatureValue:
    data: bytes


class RsaKeyCodec:
    """RSA public key layout from RFC 3110 section 2."""

    def decode(self, wire: bytes) -> RsaKeyMaterial:
        reader = _WireReader(wire, "RSA key")
        exp_len = reader.read_byte()
        if exp_len == 0:
            exp_len = reader.read_uint(2)
        if exp_len == 0:
            raise DataMalformed("RSA key: empty exponent", wire)
        exponent = reader.read_uint(exp_len)
        modulus = reader.rest()
        if not modulus:
            raise DataMalformed("RSA key: empty modulus", wire)
        return RsaKeyMaterial(exponent=exponent, modulus=int.from_bytes(modulus, "big"))

    def encode(self, material: RsaKeyMaterial) -> bytes:
        exponent = _uint_bytes(material.exponent)
        if len(exponent) <= 0xFF:
            prefix = bytes([len(exponent)])
        else:
            prefix = b"\x00" + _uint_bytes(len(exponent), 2)
        return prefix + exponent + _uint_bytes(material.modulus)

    def to_public_key(self, material: RsaKeyMaterial) -> rsa.RSAPublicKey:
        try:
            return rsa.RSAPublicNumbers(e=material.exponent, n=material.modulus).public_key()
        except ValueError as exc:
            raise InvalidKeySpec(f"RSA parameters rejected: {exc}") from exc


class RawSignatureCodec:
    """Signatures the verify primitive consumes verbatim (RSA, EdDSA).

    ``length`` pins the exact size when the algorithm fixes it.
    """

    def __init__(self, length: Optional[int] = None, what: str = "signature") -> None:
        self.length = length
        self.what = what

    def decode(self, wire: bytes) -> RawSignatureValue:
        data = bytes(wire)
        if not data:
            raise DataMalformed(f"{self.what}: empty", data)
        if self.length is not None and len(data) != self.length:
            raise DataMalformed(
                f"{self.what}: expected {self.length} bytes, got {len(data)}", data
            )
        return RawSignatureValue(data=data)

    def encode(self, value: RawSignatureValue) -> bytes:
        return value.data


# ---------------------------------------------------------------------------
# ECDSA (RFC 6605)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EcdsaKeyMaterial:
    curve: str
    x: int
    y: int


@dataclass(frozen=True)
class EcdsaSignatureValue:
    r: int
    s: int


_EC_CURVES = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
}


class EcdsaKeyCodec:
    def __init__(self, curve: str, length: int) -> None:
        self.curve = curve
        self.length = length

    def decode(self, wire: bytes) -> EcdsaKeyMaterial:
        if len(wire) != 2 * self.length:
            raise DataMalformed(
                f"ECDSA {self.curve} key: expected {2 * self.length} bytes, got {len(wire)}",
                wire,
            )
        reader = _WireReader(wire, f"ECDSA {self.curve} key")
        x = reader.read_uint(self.length)
        y = reader.read_uint(self.length)
        return EcdsaKeyMaterial(curve=self.curve, x=x, y=y)

    def encode(self, material: EcdsaKeyMaterial) -> bytes:
        return _uint_bytes(material.x, self.length) + _uint_bytes(material.y, self.length)

    def to_public_key(self, material: EcdsaKeyMaterial) -> ec.EllipticCurvePublicKey:
        point = b"\x04" + self.encode(material)
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(
                _EC_CURVES[material.curve](), point
            )
        except ValueError as exc:
            raise InvalidKeySpec(f"ECDSA point rejected: {exc}") from exc


class EcdsaSignatureCodec:
    def __init__(self, length: int) -> None:
        self.length = length

    def decode(self, wire: bytes) -> EcdsaSignatureValue:
        if len(wire) != 2 * self.length:
            raise DataMalformed(
                f"ECDSA signature: expected {2 * self.length} bytes, got {len(wire)}",
                wire,
            )
        reader = _WireReader(wire, "ECDSA signature")
        return EcdsaSignatureValue(
            r=reader.read_uint(self.length), s=reader.read_uint(self.length)
        )

    def encode(self, value: EcdsaSignatureValue) -> bytes:
        return der_encode_signature(value.r, value.s)


# ---------------------------------------------------------------------------
# EdDSA (RFC 8080)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EddsaKeyMaterial:
    curve: str
    public_bytes: bytes


_ED_KEY_CLASSES = {
    "ed25519": ed25519.Ed25519PublicKey,
    "ed448": ed448.Ed448PublicKey,
}


class EddsaKeyCodec:
    def __init__(self, curve: str, length: int) -> None:
        self.curve = curve
        self.length = length

    def decode(self, wire: bytes) -> EddsaKeyMaterial:
        if len(wire) != self.length:
            raise DataMalformed(
                f"{self.curve} key: expected {self.length} bytes, got {len(wire)}", wire
            )
        return EddsaKeyMaterial(curve=self.curve, public_bytes=bytes(wire))

    def encode(self, material: EddsaKeyMaterial) -> bytes:
        return material.public_bytes

    def to_public_key(self, material: EddsaKeyMaterial) -> Any:
        try:
            return _ED_KEY_CLASSES[material.curve].from_public_bytes(material.public_bytes)
        except ValueError as exc:
            raise InvalidKeySpec(f"{material.curve} key rejected: {exc}") from exc
