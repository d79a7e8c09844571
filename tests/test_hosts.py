"""Tests for host normalisation and portal URL helpers."""

import pytest

from app.services.hosts import is_local_host, normalize_host, platform_admin_url, tenant_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Acme.Example.com", "acme.example.com"),
        ("acme.example.com:8443", "acme.example.com"),
        ("acme.example.com.", "acme.example.com"),
        ("[::1]:8000", "::1"),
        ("::1", "::1"),
    ],
)
def test_normalize_host(raw: str, expected: str):
    assert normalize_host(raw) == expected


@pytest.mark.parametrize(
    "host, local",
    [
        ("localhost:3000", True),
        ("127.0.0.1", True),
        ("192.168.1.20:8000", True),
        ("[::1]:8000", True),
        ("8.8.8.8", False),
        ("acme.example.com", False),
    ],
)
def test_is_local_host(host: str, local: bool):
    assert is_local_host(host) is local


def test_tenant_url_production():
    assert tenant_url("acme", "example.com") == "https://acme.example.com"
    assert tenant_url("acme", "example.com", "https://app.example.com") == "https://acme.example.com"


def test_tenant_url_local_origin_uses_query_param():
    assert tenant_url("acme", "example.com", "http://localhost:3000/") == "http://localhost:3000?tenant=acme"


def test_platform_admin_url():
    assert platform_admin_url("example.com") == "https://admin.example.com"
    assert platform_admin_url("example.com", "http://127.0.0.1:8000") == "http://127.0.0.1:8000"
