import pytest
from fastapi import Request

from tmdb_proxy.core.request_builder import build_incoming_request, resolve_client_info
from tmdb_proxy.models.request import IncomingRequest

COUNTRY_HEADERS = ["eo-client-ipcountry", "cf-ipcountry"]


@pytest.mark.parametrize(
    "headers,peer,expected_ip",
    [
        ({"eo-connecting-ip": "198.51.100.1", "x-forwarded-for": "10.0.0.1"}, "127.0.0.1", "198.51.100.1"),
        ({"x-forwarded-for": "203.0.113.9, 10.0.0.1"}, "127.0.0.1", "203.0.113.9"),
        ({}, "127.0.0.1", "127.0.0.1"),
        ({}, None, "unknown"),
    ],
)
def test_client_ip_precedence(headers, peer, expected_ip):
    assert resolve_client_info(headers, peer, COUNTRY_HEADERS).ip == expected_ip


def test_country_uses_first_configured_header():
    info = resolve_client_info({"cf-ipcountry": "FR", "eo-client-ipcountry": "JP"}, None, COUNTRY_HEADERS)
    assert info.country == "JP"


def test_country_defaults_to_unknown():
    info = resolve_client_info({"eo-client-ipcountry": ""}, None, COUNTRY_HEADERS)
    assert info.country == "unknown"


def test_build_incoming_request_keeps_raw_query():
    scope = {
        "type": "http",
        "method": "get",
        "path": "/t/p/w500/a b.jpg",
        "raw_path": b"/t/p/w500/a%20b.jpg",
        "query_string": b"v=1&v=2&api_key=k",
        "headers": [(b"host", b"proxy.example.com"), (b"cf-ipcountry", b"DE")],
        "client": ("10.0.0.1", 51000),
    }

    incoming = build_incoming_request(Request(scope), b"", COUNTRY_HEADERS)

    assert incoming.method == "GET"
    assert incoming.path == "/t/p/w500/a b.jpg"
    assert incoming.raw_path == "/t/p/w500/a%20b.jpg"
    assert incoming.query_string == "v=1&v=2&api_key=k"
    assert incoming.query_params["api_key"] == "k"
    assert incoming.client.ip == "10.0.0.1"
    assert incoming.client.country == "DE"
    assert set(IncomingRequest.model_fields) == {
        "method",
        "path",
        "raw_path",
        "query_string",
        "query_params",
        "headers",
        "body",
        "client",
    }
