"""Pydantic models for dnstrust configuration.

Brief:
  The YAML file has two top-level sections, ``resolver`` and ``logging``.
  Unknown keys are rejected so typos surface at load time.
"""

from __future__ import annotations

import ipaddress
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..ipversion import DEFAULT_IP_VERSION, IpVersionSetting


class ResolverConfig(BaseModel):
    """Brief: Typed configuration for the resolver and its DNSSEC handling.

    Inputs:
      - ip_version: Address-family preference (v4only, v6only, v4v6, v6v4).
      - nameservers: Optional list of upstream IPs; None uses resolv.conf.
      - lifetime: Total seconds allowed per question.
      - payload_size: EDNS(0) UDP payload size advertised upstream.
      - dnssec: "upstream", "signatures" or "off".
      - key_cache_size: Number of decoded DNSKEYs kept by the verifier.

    Outputs:
      - ResolverConfig instance with normalized field types.
    """

    model_config = ConfigDict(extra="forbid")

    ip_version: IpVersionSetting = Field(default=DEFAULT_IP_VERSION)
    nameservers: Optional[List[str]] = None
    lifetime: float = Field(default=2.0, gt=0)
    payload_size: int = Field(default=1232, ge=512, le=65535)
    dnssec: Literal["upstream", "signatures", "off"] = "upstream"
    key_cache_size: int = Field(default=256, ge=1)

    @field_validator("ip_version", mode="before")
    @classmethod
    def _parse_ip_version(cls, value: Any) -> IpVersionSetting:
        return IpVersionSetting.from_text(value)

    @field_validator("nameservers")
    @classmethod
    def _check_nameservers(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        for ns in value:
            ipaddress.ip_address(ns)
        return list(value)


class LoggingConfig(BaseModel):
    """Options consumed by dnstrust.config.logging_config.init_logging."""

    model_config = ConfigDict(extra="forbid")

    level: str = "info"
    stderr: bool = True
    file: Optional[str] = None
    syslog: Union[bool, Dict[str, Any]] = False


class DnstrustConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
