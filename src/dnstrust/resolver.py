"""High-level resolver API on top of a pluggable resolution engine.

Brief:
  ResolverApi turns one (name, type) question into a ResolverResult by asking
  a DnsEngine. The engine owns transport, retries, timeouts and DNSSEC chain
  evaluation; this layer only maps its answer into the result contract and
  builds SRV results on top.

Inputs:
  - A DnsEngine implementation and an IpVersionSetting.

Outputs:
  - ResolverResult / SrvResolverResult instances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, Union

import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import dns.rrset

from .ipversion import DEFAULT_IP_VERSION, IpVersionSetting
from .results import DnsQuestion, ResolverResult, UnverifiedReason
from .srv import SrvResolverResult, SrvServiceProto, SrvType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineAnswer:
    """What a DnsEngine reports for one question.

    ``rrset`` is None for NODATA and failures; ``rcode`` is None when no
    response was received at all.
    """

    rcode: Optional[dns.rcode.Rcode]
    rrset: Optional[dns.rrset.RRset] = None
    unverified_reasons: Tuple[UnverifiedReason, ...] = ()
    response: Optional[dns.message.Message] = None


class DnsEngine(Protocol):
    def query(self, question: DnsQuestion) -> EngineAnswer: ...


class ResolverApi:
    """Blocking, sequential resolver facade.

    Every call issues exactly one engine query; nothing is retried or cached
    at this layer.
    """

    def __init__(
        self,
        engine: DnsEngine,
        ip_version: Union[IpVersionSetting, str] = DEFAULT_IP_VERSION,
    ) -> None:
        self._engine = engine
        self._ip_version = IpVersionSetting.from_text(ip_version)

    @property
    def engine(self) -> DnsEngine:
        return self._engine

    @property
    def ip_version(self) -> IpVersionSetting:
        return self._ip_version

    def resolve(
        self,
        name: Union[str, dns.name.Name],
        rdtype: Union[str, int, dns.rdatatype.RdataType],
    ) -> ResolverResult:
        """Brief: Ask the engine one question.

        Inputs:
          - name: Owner name (text or dns.name.Name).
          - rdtype: Record type (text, int or RdataType).

        Outputs:
          - ResolverResult whose answers are the rdata of the engine's RRset.
        """

        question = DnsQuestion.of(name, rdtype)
        answer = self._engine.query(question)
        result: ResolverResult
        if answer.rcode != dns.rcode.NOERROR:
            result = ResolverResult.failed(
                question,
                answer.rcode,
                answer.unverified_reasons,
                response=answer.response,
            )
        else:
            rdatas = list(answer.rrset) if answer.rrset is not None else []
            result = ResolverResult(
                question,
                answer.rcode,
                rdatas,
                answer.unverified_reasons,
                response=answer.response,
            )
        logger.debug("resolved %r", result)
        return result

    def resolve_srv(
        self,
        name: Union[str, dns.name.Name],
        srv_service_proto: Optional[SrvServiceProto] = None,
    ) -> SrvResolverResult:
        """Brief: Resolve the SRV RRset at ``name``.

        Inputs:
          - name: Full SRV owner, e.g. "_xmpp-client._tcp.example.com".
          - srv_service_proto: Optional explicit service/proto; parsed from the
            leading labels of ``name`` when omitted.

        Outputs:
          - SrvResolverResult (target addresses are resolved lazily).
        """

        question = DnsQuestion.of(name, dns.rdatatype.SRV)
        if srv_service_proto is None:
            srv_service_proto = SrvServiceProto.from_name(question.name)
        return SrvResolverResult(
            self.resolve(question.name, dns.rdatatype.SRV), srv_service_proto, self
        )

    def resolve_srv_service(
        self,
        service: Union[SrvType, SrvServiceProto],
        domain: Union[str, dns.name.Name],
    ) -> SrvResolverResult:
        """Resolve ``_service._proto.domain`` for a known service type."""

        proto = service.value if isinstance(service, SrvType) else service
        return self.resolve_srv(proto.srv_name(domain), proto)
