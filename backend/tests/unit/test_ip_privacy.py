from types import SimpleNamespace

import pytest

from app.utils.ip_privacy import anonymize_ip, get_client_ip


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("192.168.1.123", "192.168.1.0"),
        ("10.0.0.255", "10.0.0.0"),
        ("2001:db8:85a3:8d3:1319:8a2e:370:7348", "2001:db8:85a3:8d3::"),
        ("::ffff:203.0.113.77", "203.0.113.0"),
        (" 8.8.8.8 ", "8.8.8.0"),
    ],
)
def test_anonymize_ip_truncates(raw, expected):
    assert anonymize_ip(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "not-an-ip", "999.1.1.1"])
def test_anonymize_ip_unparsable_is_unknown(raw):
    assert anonymize_ip(raw) == "unknown"


def _request(headers=None, host=None):
    client = SimpleNamespace(host=host) if host else None
    return SimpleNamespace(headers=headers or {}, client=client)


def test_client_ip_prefers_first_forwarded_entry():
    request = _request({"x-forwarded-for": "203.0.113.9, 10.0.0.1"}, host="127.0.0.1")
    assert get_client_ip(request) == "203.0.113.9"


def test_client_ip_falls_back_to_real_ip_then_peer():
    assert get_client_ip(_request({"x-real-ip": "198.51.100.4"}, host="127.0.0.1")) == "198.51.100.4"
    assert get_client_ip(_request(host="127.0.0.1")) == "127.0.0.1"


def test_client_ip_without_request():
    assert get_client_ip(None) == "unknown"
    assert get_client_ip(_request()) == "unknown"
