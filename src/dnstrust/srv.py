"""SRV resolution: sort SRV records, resolve their targets, merge addresses.

Brief:
  SrvResolverResult wraps the ResolverResult of an SRV query. On first use
  it resolves A and/or AAAA records for every SRV target (per the resolver's
  IpVersionSetting), drops address answers that failed or carry unverified
  reasons, skips targets without any usable address and memoises the
  resulting ResolvedSrvRecord tuple.

Concurrency:
  Sub-queries are issued sequentially in SRV sort order, A before AAAA. The
  memoised tuple is computed under a per-instance lock, so concurrent
  callers share a single computation.

Known gap:
  RFC 2782 forbids alias (CNAME) SRV targets. Such targets are not detected;
  when they yield no usable A/AAAA answer they are skipped like any other
  unresolvable target.
"""

from __future__ import annotations

import enum
import ipaddress
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Tuple, Union

import dns.name
import dns.rdatatype
from dns.rdtypes.IN.A import A
from dns.rdtypes.IN.AAAA import AAAA
from dns.rdtypes.IN.SRV import SRV

from .errors import IllegalUse
from .ipversion import IpVersionSetting
from .results import ResolverResult

if TYPE_CHECKING:  # pragma: no cover
    from .resolver import ResolverApi

logger = logging.getLogger(__name__)

InternetAddressRR = Union[A, AAAA]


@dataclass(frozen=True)
class SrvServiceProto:
    """Service and protocol labels of an SRV owner name (without underscores)."""

    service: str
    proto: str

    def srv_name(self, domain: Union[str, dns.name.Name]) -> dns.name.Name:
        """Brief: Build ``_service._proto.domain.``.

        Example:
          >>> SrvServiceProto("xmpp-client", "tcp").srv_name("example.com").to_text()
          '_xmpp-client._tcp.example.com.'
        """

        if not isinstance(domain, dns.name.Name):
            domain = dns.name.from_text(str(domain))
        return dns.name.Name((f"_{self.service}".encode(), f"_{self.proto}".encode())) + domain

    @classmethod
    def from_name(cls, name: dns.name.Name) -> Optional["SrvServiceProto"]:
        """Return the service/proto pair encoded in ``name``, if any."""

        labels = name.labels
        if len(labels) < 3:
            return None
        service, proto = labels[0], labels[1]
        if not (service.startswith(b"_") and proto.startswith(b"_")):
            return None
        try:
            return cls(
                service[1:].decode("ascii").lower(), proto[1:].decode("ascii").lower()
            )
        except UnicodeDecodeError:
            # Service and protocol labels are ASCII mnemonics (RFC 6335).
            return None


class SrvType(enum.Enum):
    XMPP_CLIENT = SrvServiceProto("xmpp-client", "tcp")
    XMPP_SERVER = SrvServiceProto("xmpp-server", "tcp")
    SIP = SrvServiceProto("sip", "udp")
    SIPS = SrvServiceProto("sips", "tcp")
    LDAP = SrvServiceProto("ldap", "tcp")
    IMAPS = SrvServiceProto("imaps", "tcp")
    SUBMISSION = SrvServiceProto("submission", "tcp")
    CALDAVS = SrvServiceProto("caldavs", "tcp")
    CARDDAVS = SrvServiceProto("carddavs", "tcp")

    def srv_name(self, domain: Union[str, dns.name.Name]) -> dns.name.Name:
        return self.value.srv_name(domain)


def sort_srv_records(records: Iterable[SRV]) -> List[SRV]:
    """Brief: Order SRV records for connection attempts.

    Inputs:
      - records: SRV rdata from one answer set.

    Outputs:
      - list[SRV]: priority ascending; within a priority, weight descending;
        target and port break remaining ties so the order is deterministic.
        A lone record targeting the root name ("service decidedly not
        available", RFC 2782) yields an empty list.

    Notes:
      - RFC 2782 asks for weighted random selection among equal priorities.
        A deterministic weight-descending order is used instead.
    """

    records = list(records)
    if len(records) == 1 and records[0].target == dns.name.root:
        return []
    return sorted(records, key=lambda r: (r.priority, -r.weight, r.target, r.port))


def _usable_addresses(result: Optional[ResolverResult[Any]]) -> List[InternetAddressRR]:
    if result is None or not result.was_successful:
        return []
    if result.has_unverified_reasons:
        logger.debug(
            "ignoring %s: %s",
            result.question,
            "; ".join(r.reason for r in result.unverified_reasons),
        )
        return []
    return sorted(result.answers, key=lambda rr: ipaddress.ip_address(rr.address))


def merge_addresses(
    ip_version: IpVersionSetting,
    a_records: Iterable[A],
    aaaa_records: Iterable[AAAA],
) -> Tuple[InternetAddressRR, ...]:
    """Brief: Concatenate A and AAAA records in the order ``ip_version`` dictates."""

    v4, v6 = list(a_records), list(aaaa_records)
    if ip_version is IpVersionSetting.V4_ONLY:
        return tuple(v4)
    if ip_version is IpVersionSetting.V6_ONLY:
        return tuple(v6)
    if ip_version is IpVersionSetting.V4_V6:
        return tuple(v4 + v6)
    return tuple(v6 + v4)


@dataclass(frozen=True)
class ResolvedSrvRecord:
    """One SRV target together with its usable addresses.

    ``a_records_result`` / ``aaaa_records_result`` are None when that family
    was not queried.
    """

    name: dns.name.Name
    srv_service_proto: Optional[SrvServiceProto]
    srv: SRV
    addresses: Tuple[InternetAddressRR, ...]
    a_records_result: Optional[ResolverResult[A]]
    aaaa_records_result: Optional[ResolverResult[AAAA]]

    @property
    def port(self) -> int:
        return self.srv.port

    @property
    def target(self) -> dns.name.Name:
        return self.srv.target


class SrvResolverResult(ResolverResult[SRV]):
    def __init__(
        self,
        srv_result: ResolverResult[SRV],
        srv_service_proto: Optional[SrvServiceProto],
        resolver: "ResolverApi",
    ) -> None:
        super().__init__(
            srv_result.question,
            srv_result.rcode,
            srv_result._answers,
            srv_result.unverified_reasons,
            response=srv_result.response,
        )
        self._resolver = resolver
        self.ip_version: IpVersionSetting = resolver.ip_version
        self.srv_service_proto = srv_service_proto
        self._sorted_resolved: Optional[Tuple[ResolvedSrvRecord, ...]] = None
        self._lock = threading.Lock()

    def is_service_decidedly_not_available(self) -> bool:
        """True when the only SRV record targets the root name (RFC 2782)."""

        if not self.was_successful or len(self._answers) != 1:
            return False
        (only,) = self._answers
        return only.target == dns.name.root

    def sorted_srv_resolved_addresses(self) -> Tuple[ResolvedSrvRecord, ...]:
        """Brief: Resolve every SRV target once and return the cached result.

        Inputs:
          - None.

        Outputs:
          - tuple[ResolvedSrvRecord, ...] in SRV sort order; the same tuple
            object is returned on every later call.

        Raises:
          - IllegalUse: The SRV query itself did not succeed.
        """

        cached = self._sorted_resolved
        if cached is not None:
            return cached
        if not self.was_successful:
            raise IllegalUse(
                f"SRV query for {self.question} failed; check was_successful first"
            )
        with self._lock:
            if self._sorted_resolved is None:
                self._sorted_resolved = self._resolve_targets()
            return self._sorted_resolved

    def _resolve_targets(self) -> Tuple[ResolvedSrvRecord, ...]:
        resolved: List[ResolvedSrvRecord] = []
        for srv in sort_srv_records(self._answers):
            a_result: Optional[ResolverResult[A]] = None
            aaaa_result: Optional[ResolverResult[AAAA]] = None
            if self.ip_version.v4:
                a_result = self._resolver.resolve(srv.target, dns.rdatatype.A)
            if self.ip_version.v6:
                aaaa_result = self._resolver.resolve(srv.target, dns.rdatatype.AAAA)

            a_records = _usable_addresses(a_result)
            aaaa_records = _usable_addresses(aaaa_result)
            if not a_records and not aaaa_records:
                logger.debug("skipping SRV target %s: no usable addresses", srv.target)
                continue

            resolved.append(
                ResolvedSrvRecord(
                    name=self.question.name,
                    srv_service_proto=self.srv_service_proto,
                    srv=srv,
                    addresses=merge_addresses(self.ip_version, a_records, aaaa_records),
                    a_records_result=a_result,
                    aaaa_records_result=aaaa_result,
                )
            )
        return tuple(resolved)
