"""dnstrust: DNSSEC signature verification and SRV resolution with trust status."""

from .errors import (
    BogusSignature,
    DataMalformed,
    DnssecValidationFailed,
    DnstrustError,
    IllegalUse,
    InvalidKeySpec,
    ResolutionUnsuccessful,
    UnsupportedAlgorithm,
)
from .ipversion import IpVersionSetting
from .results import DnsQuestion, ResolverResult, UnverifiedReason
from .srv import ResolvedSrvRecord, SrvResolverResult, SrvServiceProto, SrvType
from .resolver import DnsEngine, EngineAnswer, ResolverApi
from .engine import DnspythonEngine

__all__ = [
    "BogusSignature",
    "DataMalformed",
    "DnssecValidationFailed",
    "DnstrustError",
    "IllegalUse",
    "InvalidKeySpec",
    "ResolutionUnsuccessful",
    "UnsupportedAlgorithm",
    "IpVersionSetting",
    "DnsQuestion",
    "ResolverResult",
    "UnverifiedReason",
    "ResolvedSrvRecord",
    "SrvResolverResult",
    "SrvServiceProto",
    "SrvType",
    "DnsEngine",
    "EngineAnswer",
    "ResolverApi",
    "DnspythonEngine",
]
