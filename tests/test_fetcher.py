"""test suite for the metadata fetcher."""
import asyncio
import json
import logging
import pytest
import sys
from pathlib import Path
from unittest.mock import Mock
from urllib.parse import urljoin

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from almanac.domain.errors import FormatError, RegistryError, TransportError
from almanac.registry.encoders import encode_npm_name, encode_plain_name
from almanac.registry.fetcher import MetadataFetcher

REGISTRY = "https://registry.example.com/npm/?token=abc#top"


def make_fetcher(handler, registry=REGISTRY, encoder=encode_npm_name, reporter=None):
    """build a fetcher whose transports answer with `handler`."""
    transports = {
        "http": lambda: httpx.MockTransport(handler),
        "https": lambda: httpx.MockTransport(handler),
    }
    return MetadataFetcher(registry, encoder, reporter=reporter, transports=transports)


def json_handler(payload, status_code=200, content_type="application/json"):
    def handler(request):
        headers = {"content-type": content_type} if content_type else {}
        return httpx.Response(status_code, headers=headers, content=json.dumps(payload).encode("utf-8"))
    return handler


class BrokenStream(httpx.AsyncByteStream):
    """body stream that fails after the first chunk."""

    async def __aiter__(self):
        yield b'{"name": '
        raise httpx.ReadError("connection reset by peer")


class TestAddressResolution:
    def test_resolve_url_follows_standard_joining(self):
        """test the request address is the standard base+relative resolution."""
        fetcher = make_fetcher(json_handler({}))
        assert fetcher.resolve_url("left-pad") == urljoin(REGISTRY, "left-pad")
        assert fetcher.resolve_url("left-pad") == "https://registry.example.com/npm/left-pad"

    def test_resolve_url_with_scoped_package(self):
        """test scoped names are encoded before joining."""
        fetcher = make_fetcher(json_handler({}), registry="https://registry.npmjs.org/")
        assert fetcher.resolve_url("@types/node") == "https://registry.npmjs.org/@types%2Fnode"

    def test_registry_url_is_kept(self):
        fetcher = make_fetcher(json_handler({}))
        assert fetcher.registry_url == REGISTRY

    def test_request_goes_to_resolved_address(self):
        """test the GET request targets the resolved address."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"name": "left-pad"})

        fetcher = make_fetcher(handler)
        asyncio.run(fetcher.fetch("left-pad"))

        assert len(requests) == 1
        assert requests[0].method == "GET"
        assert str(requests[0].url) == urljoin(REGISTRY, "left-pad")

    def test_encoder_called_once_per_fetch(self):
        """test the path encoder runs exactly once per fetch."""
        encoder = Mock(side_effect=encode_plain_name)
        fetcher = make_fetcher(json_handler({"name": "foo"}), encoder=encoder)

        asyncio.run(fetcher.fetch("foo"))

        encoder.assert_called_once_with("foo")


class TestFetchSuccess:
    def test_parses_json_body(self):
        """test a 200 json response resolves with the parsed document."""
        fetcher = make_fetcher(json_handler({"name": "foo", "version": "1.0.0"}))
        result = asyncio.run(fetcher.fetch("foo"))
        assert result == {"name": "foo", "version": "1.0.0"}

    def test_content_type_with_charset(self):
        """test content types with parameters are accepted."""
        fetcher = make_fetcher(json_handler({"name": "foo"}, content_type="application/json; charset=utf-8"))
        assert asyncio.run(fetcher.fetch("foo")) == {"name": "foo"}

    def test_decodes_utf8_body(self):
        """test non-ascii text survives decoding."""
        def handler(request):
            body = '{"description": "café ☕"}'.encode("utf-8")
            return httpx.Response(200, headers={"content-type": "application/json"}, content=body)

        fetcher = make_fetcher(handler)
        assert asyncio.run(fetcher.fetch("foo")) == {"description": "café ☕"}

    def test_plain_http_registry(self):
        """test plain http registries use the http transport."""
        fetcher = make_fetcher(json_handler({"name": "foo"}), registry="http://localhost:4873/")
        assert asyncio.run(fetcher.fetch("foo")) == {"name": "foo"}

    def test_reports_progress_before_request(self):
        """test the reporter is told about the request before it is sent."""
        reporter = Mock()
        calls_at_request = []

        def handler(request):
            calls_at_request.append(reporter.update_line.call_count)
            return httpx.Response(200, json={})

        fetcher = make_fetcher(handler, reporter=reporter)
        asyncio.run(fetcher.fetch("foo"))

        reporter.update_line.assert_called_once_with("Getting package info of 'foo' from registry")
        assert calls_at_request == [1]


class TestFetchErrors:
    def test_not_found_raises_registry_error(self):
        """test a 404 yields the server status text, never a result."""
        fetcher = make_fetcher(json_handler({"error": "not found"}, status_code=404))

        with pytest.raises(RegistryError) as exc_info:
            asyncio.run(fetcher.fetch("missing"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Not Found"
        assert exc_info.value.package_name == "missing"

    def test_registry_error_uses_server_reason_phrase(self):
        """test a custom reason phrase from the server becomes the detail."""
        def handler(request):
            return httpx.Response(
                503,
                headers={"content-type": "application/json"},
                content=b"{}",
                extensions={"reason_phrase": b"Registry Resting"},
            )

        fetcher = make_fetcher(handler)
        with pytest.raises(RegistryError, match="Registry Resting"):
            asyncio.run(fetcher.fetch("foo"))

    def test_html_response_raises_format_error(self):
        """test a non-json content type fails regardless of the body."""
        fetcher = make_fetcher(json_handler({"name": "foo"}, content_type="text/html"))
        with pytest.raises(FormatError, match="incompatible data"):
            asyncio.run(fetcher.fetch("foo"))

    def test_missing_content_type_raises_format_error(self):
        """test a response without content type is treated as a mismatch."""
        def handler(request):
            return httpx.Response(200, content=b'{"name": "foo"}')

        fetcher = make_fetcher(handler)
        with pytest.raises(FormatError):
            asyncio.run(fetcher.fetch("foo"))

    def test_empty_body_raises_format_error(self):
        """test an empty json body surfaces as a parse failure."""
        def handler(request):
            return httpx.Response(200, headers={"content-type": "application/json"}, content=b"")

        fetcher = make_fetcher(handler)
        with pytest.raises(FormatError, match="invalid JSON"):
            asyncio.run(fetcher.fetch("foo"))

    def test_invalid_utf8_raises_format_error(self):
        def handler(request):
            return httpx.Response(200, headers={"content-type": "application/json"}, content=b"\xff\xfe{}")

        fetcher = make_fetcher(handler)
        with pytest.raises(FormatError):
            asyncio.run(fetcher.fetch("foo"))

    def test_connection_failure_raises_transport_error(self):
        """test connection errors on the request become TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = make_fetcher(handler)
        with pytest.raises(TransportError) as exc_info:
            asyncio.run(fetcher.fetch("foo"))

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_stream_failure_raises_transport_error(self):
        """test errors while the body streams in become TransportError."""
        def handler(request):
            return httpx.Response(200, headers={"content-type": "application/json"}, stream=BrokenStream())

        fetcher = make_fetcher(handler)
        with pytest.raises(TransportError):
            asyncio.run(fetcher.fetch("foo"))

    def test_unsupported_scheme_raises_before_request(self):
        """test schemes outside the transport table are rejected without I/O."""
        handler = Mock()
        fetcher = make_fetcher(handler, registry="ftp://registry.example.com/")

        with pytest.raises(TransportError, match="unsupported registry scheme 'ftp'"):
            asyncio.run(fetcher.fetch("foo"))

        handler.assert_not_called()

    def test_default_transport_table(self):
        """test the default table covers http and https only."""
        fetcher = MetadataFetcher("https://registry.npmjs.org/", encode_npm_name)
        assert set(fetcher.transports) == {"http", "https"}

    def test_corrupt_compressed_body_raises_format_error(self):
        """test a body that fails to decompress becomes FormatError."""
        def handler(request):
            return httpx.Response(
                200,
                headers={"content-type": "application/json", "content-encoding": "gzip"},
                stream=httpx.ByteStream(b"not gzip at all"),
            )

        fetcher = make_fetcher(handler)
        with pytest.raises(FormatError, match="corrupt body") as exc_info:
            asyncio.run(fetcher.fetch("foo"))

        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    def test_other_request_failures_raise_transport_error(self):
        """test request errors outside the transport family are still wrapped."""
        def handler(request):
            raise httpx.RequestError("request went wrong", request=request)

        fetcher = make_fetcher(handler)
        with pytest.raises(TransportError, match="request went wrong"):
            asyncio.run(fetcher.fetch("foo"))

    def test_schemes_share_one_transport_factory(self):
        """test http and https are served by the same httpx transport."""
        fetcher = MetadataFetcher("https://registry.npmjs.org/", encode_npm_name)
        assert fetcher.transports["http"] is fetcher.transports["https"]
        assert isinstance(fetcher.transports["https"](), httpx.AsyncHTTPTransport)


class TestFetchLogging:
    def test_logs_chosen_transport(self, caplog):
        """test the debug log names the address and the transport scheme."""
        caplog.set_level(logging.DEBUG, logger="almanac.registry.fetcher")
        fetcher = make_fetcher(json_handler({"name": "foo"}))

        asyncio.run(fetcher.fetch("foo"))

        assert "resolved 'foo' to https://registry.example.com/npm/foo via https transport" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
