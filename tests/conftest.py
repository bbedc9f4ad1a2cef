"""
Brief: Global pytest configuration and shared fixtures for dnstrust tests.

Inputs:
  - None

Outputs:
  - None
"""

import os
import signal
import sys
from typing import Dict, List, Optional, Tuple

import dns.name
import dns.rcode
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.rrset
import pytest

# Ensure 'src' is on sys.path so 'dnstrust' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from dnstrust.dnssec import algorithms  # noqa: E402
from dnstrust.resolver import EngineAnswer  # noqa: E402
from dnstrust.results import DnsQuestion, UnverifiedReason  # noqa: E402


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield


@pytest.fixture(autouse=True)
def restore_algorithm_registry():
    """
    Brief: Reset the DNSSEC algorithm registry after each test.

    Inputs:
      - None

    Outputs:
      - None
    """
    yield
    algorithms.reset_registry()


def make_rrset(name: str, rdtype: str, *texts: str, ttl: int = 300) -> dns.rrset.RRset:
    """Brief: Build an IN-class RRset from presentation-format rdata strings."""

    return dns.rrset.from_text_list(name, ttl, dns.rdataclass.IN, rdtype, list(texts))


def rdata(rdtype: str, text: str):
    return dns.rdata.from_text(dns.rdataclass.IN, rdtype, text)


class FakeEngine:
    """
    Brief: DnsEngine stand-in answering from a dict and recording questions.

    Inputs:
      - answers: mapping of (name text, type text) -> EngineAnswer

    Outputs:
      - FakeEngine; unknown questions answer NXDOMAIN.
    """

    def __init__(self, answers: Optional[Dict[Tuple[str, str], EngineAnswer]] = None):
        self.answers: Dict[Tuple[str, str], EngineAnswer] = dict(answers or {})
        self.calls: List[DnsQuestion] = []

    def add(
        self,
        name: str,
        rdtype: str,
        *texts: str,
        reasons: Tuple[UnverifiedReason, ...] = (),
        rcode=dns.rcode.NOERROR,
    ) -> None:
        rrset = make_rrset(name, rdtype, *texts) if texts else None
        key = (dns.name.from_text(name).to_text(), rdtype.upper())
        self.answers[key] = EngineAnswer(
            rcode=rcode, rrset=rrset, unverified_reasons=tuple(reasons)
        )

    def fail(self, name: str, rdtype: str, rcode=dns.rcode.NXDOMAIN) -> None:
        key = (dns.name.from_text(name).to_text(), rdtype.upper())
        self.answers[key] = EngineAnswer(rcode=rcode)

    def query(self, question: DnsQuestion) -> EngineAnswer:
        self.calls.append(question)
        key = (question.name.to_text(), dns.rdatatype.to_text(question.rdtype))
        return self.answers.get(key, EngineAnswer(rcode=dns.rcode.NXDOMAIN))


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
