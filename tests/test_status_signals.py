import pytest

from tg.status_signals import (
    ERROR_SIGNAL_PATTERNS,
    classify_probe_failure,
    format_probe_issue_label,
    is_auth_error,
    is_dns_resolution_failure,
    is_network_error,
    patterns_for,
)
from typess.status_types import ErrorSignal, ProbeFailureKind, ProbeSummary


# ---------- auth ----------
@pytest.mark.parametrize("status", [401, 403, 401.0])
@pytest.mark.parametrize("text", [None, "", "everything is fine", "ECONNREFUSED"])
def test_auth_status_codes_are_sufficient(status, text):
    assert is_auth_error(text, status) is True


@pytest.mark.parametrize(
    "text",
    ["Unauthorized", "Invalid Token supplied", "bot is NOT AUTHORIZED", "Bad Request: chat not found"],
)
def test_auth_text_patterns(text):
    assert is_auth_error(text, None) is True
    assert is_auth_error(text, 500) is True


def test_auth_negative():
    assert is_auth_error(None, None) is False
    assert is_auth_error("Internal Server Error", 500) is False
    assert is_auth_error("ECONNRESET", None) is False


# ---------- network ----------
@pytest.mark.parametrize("text", [None, "", "ECONNREFUSED", "timeout", "network is down"])
def test_network_false_whenever_status_present(text):
    assert is_network_error(text, 502) is False
    assert is_network_error(text, 0) is False


def test_network_true_when_both_signals_absent():
    assert is_network_error(None, None) is True
    assert is_network_error("", None) is True


@pytest.mark.parametrize(
    "text",
    [
        "connect ECONNREFUSED 149.154.167.220:443",
        "read ECONNRESET",
        "getaddrinfo ENOTFOUND api.telegram.org",
        "getaddrinfo EAI_AGAIN api.telegram.org",
        "ETIMEDOUT",
        "net::ERR_CONNECTION_CLOSED",
        "Network is down",
        "socket hang up",
        "TypeError: fetch failed",
        "request timeout after 10s",
    ],
)
def test_network_text_patterns(text):
    assert is_network_error(text, None) is True


def test_network_broad_words_over_match_by_design():
    # "network" / "timeout" are intentionally broad heuristics
    assert is_network_error("social network handle rejected", None) is True
    assert is_network_error("session timeout configured", None) is True


def test_network_negative():
    assert is_network_error("Conflict: terminated by other getUpdates request", None) is False


# ---------- dns ----------
@pytest.mark.parametrize(
    "text",
    [
        "Could not resolve host: api.telegram.org",
        "getaddrinfo ENOTFOUND api.telegram.org",
        "EAI_AGAIN",
        "DNS lookup failed",
        "[Errno -2] Name or service not known",
        "Temporarily unresolvable",
    ],
)
def test_dns_patterns(text):
    assert is_dns_resolution_failure(text) is True


def test_dns_negative():
    assert is_dns_resolution_failure(None) is False
    assert is_dns_resolution_failure("") is False
    assert is_dns_resolution_failure("connect ECONNREFUSED") is False


# ---------- pattern table ----------
def test_patterns_for_preserves_table_order():
    assert patterns_for(ErrorSignal.AUTH) == ("unauthorized", "invalid token", "not authorized", "bad request")
    network = patterns_for(ErrorSignal.NETWORK)
    assert network[0] == "econnrefused"
    assert network[-3:] == ("dns", "network", "timeout")


def test_patterns_override_tunes_classification():
    custom = ERROR_SIGNAL_PATTERNS + (("proxy refused", ErrorSignal.NETWORK),)
    assert is_network_error("upstream proxy refused", None) is False
    assert is_network_error("upstream proxy refused", None, patterns=custom) is True
    narrow = (("econnrefused", ErrorSignal.NETWORK),)
    assert is_network_error("timeout", None, patterns=narrow) is False


# ---------- label ----------
def test_format_probe_issue_label_variants():
    assert format_probe_issue_label(ProbeSummary(ok=False, status=401, error="Unauthorized"), "auth") == (
        "Token validation failed (HTTP 401): Unauthorized"
    )
    assert format_probe_issue_label(ProbeSummary(ok=False, status=403.0), "auth") == (
        "Token validation failed (HTTP 403)"
    )
    assert format_probe_issue_label(ProbeSummary(ok=False, status=502, error="Bad Gateway"), "runtime") == (
        "Bad Gateway (HTTP 502)"
    )
    assert format_probe_issue_label(ProbeSummary(ok=False), "runtime") == "Probe failed"
    assert format_probe_issue_label(ProbeSummary(ok=False, status=500), "other") == "Probe failed (HTTP 500)"


# ---------- guard chain ----------
def test_classify_probe_failure_only_for_explicit_false():
    assert classify_probe_failure(None) is None
    assert classify_probe_failure(ProbeSummary(ok=True, status=401)) is None
    assert classify_probe_failure(ProbeSummary(ok=None, error="ECONNREFUSED")) is None


def test_classify_probe_failure_first_match_wins():
    # auth beats network even when the text looks like a connectivity failure
    assert classify_probe_failure(ProbeSummary(ok=False, status=401, error="ETIMEDOUT")) is ProbeFailureKind.AUTH
    assert classify_probe_failure(ProbeSummary(ok=False, error="unauthorized: timeout")) is ProbeFailureKind.AUTH
    assert classify_probe_failure(ProbeSummary(ok=False, error="ECONNREFUSED")) is ProbeFailureKind.NETWORK
    assert classify_probe_failure(ProbeSummary(ok=False)) is ProbeFailureKind.NETWORK
    assert classify_probe_failure(ProbeSummary(ok=False, status=500, error="boom")) is ProbeFailureKind.GENERIC
    assert classify_probe_failure(ProbeSummary(ok=False, error="Conflict")) is ProbeFailureKind.GENERIC
