"""
Tests for the secure document fetcher (connectors/documents.py).

Driven through httpx.MockTransport so every outbound request can be inspected.
"""
import base64

import httpx
import pytest

from liqpro.core.errors import DocumentFetchError
from liqpro.services.connectors.documents import DocumentFetcher

METADATA_URL = "https://document-api.example/document/abc/content"
STORAGE_URL = "https://storage.example/bucket/abc.pdf?X-Amz-Signature=sig"
PDF_BYTES = b"%PDF-1.4 fake document"
EXPECTED_AUTH = "Basic " + base64.b64encode(b"secret-key:").decode()


class RecordingTransport(httpx.MockTransport):
    def __init__(self, handler):
        self.requests = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request, len(self.requests))

        super().__init__(_record)


class TestRedirectResolution:

    @pytest.mark.asyncio
    async def test_follows_location_without_credentials(self):
        """A 302 with Location sends the second request to exactly that URL, unauthenticated."""

        def handler(request, n):
            if n == 1:
                return httpx.Response(302, headers={"Location": STORAGE_URL})
            return httpx.Response(200, content=PDF_BYTES)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        result = await fetcher.fetch_document(METADATA_URL, "secret-key")

        assert base64.b64decode(result) == PDF_BYTES
        assert len(transport.requests) == 2
        first, second = transport.requests
        assert str(first.url) == METADATA_URL
        assert first.headers["authorization"] == EXPECTED_AUTH
        assert first.headers["accept"] == "application/pdf"
        assert str(second.url) == STORAGE_URL
        assert "authorization" not in second.headers

    @pytest.mark.asyncio
    async def test_missing_location_reuses_metadata_url(self):
        """A redirect without Location falls back to the original URL instead of failing."""

        def handler(request, n):
            if n == 1:
                return httpx.Response(302)
            return httpx.Response(200, content=PDF_BYTES)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        result = await fetcher.fetch_document(METADATA_URL, "secret-key")

        assert base64.b64decode(result) == PDF_BYTES
        assert [str(r.url) for r in transport.requests] == [METADATA_URL, METADATA_URL]
        assert "authorization" not in transport.requests[1].headers

    @pytest.mark.asyncio
    async def test_direct_success_treats_url_as_storage(self):

        def handler(request, n):
            return httpx.Response(200, content=PDF_BYTES)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        storage = await fetcher.resolve_storage_url(METADATA_URL, "secret-key")
        assert storage == METADATA_URL

    @pytest.mark.asyncio
    async def test_metadata_json_document_link_followed_before_storage(self):
        """A JSON metadata body is resolved through links.document, authenticated, to the storage URL."""
        meta_url = "https://document-api.example/document/abc"
        content_url = "https://document-api.example/document/abc/content"

        def handler(request, n):
            if str(request.url) == meta_url:
                return httpx.Response(200, json={"links": {"document": content_url}})
            if str(request.url) == content_url:
                return httpx.Response(302, headers={"Location": STORAGE_URL})
            return httpx.Response(200, content=PDF_BYTES)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        result = await fetcher.fetch_document(meta_url, "secret-key")

        assert base64.b64decode(result) == PDF_BYTES
        assert [str(r.url) for r in transport.requests] == [meta_url, content_url, STORAGE_URL]
        assert transport.requests[0].headers["authorization"] == EXPECTED_AUTH
        assert transport.requests[1].headers["authorization"] == EXPECTED_AUTH
        assert "authorization" not in transport.requests[2].headers

    @pytest.mark.asyncio
    async def test_document_link_without_redirect_is_storage_url(self):
        meta_url = "https://document-api.example/document/abc"

        def handler(request, n):
            if n == 1:
                return httpx.Response(200, json={"links": {"document": "/document/abc/content"}})
            return httpx.Response(200, content=PDF_BYTES)

        fetcher = DocumentFetcher(transport=RecordingTransport(handler))

        storage = await fetcher.resolve_storage_url(meta_url, "secret-key")
        assert storage == "https://document-api.example/document/abc/content"

    @pytest.mark.asyncio
    async def test_document_link_failure_is_metadata_hop(self):

        def handler(request, n):
            if n == 1:
                return httpx.Response(200, json={"links": {"document": METADATA_URL}})
            return httpx.Response(404)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        with pytest.raises(DocumentFetchError) as exc:
            await fetcher.fetch_document("https://document-api.example/document/abc", "secret-key")

        assert exc.value.hop == "metadata"
        assert exc.value.status_code == 404
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_json_without_document_link_treated_as_storage(self):

        def handler(request, n):
            return httpx.Response(200, json={"links": {"self": "/document/abc"}})

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        storage = await fetcher.resolve_storage_url(METADATA_URL, "secret-key")
        assert storage == METADATA_URL
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_relative_location_resolved_against_metadata_url(self):

        def handler(request, n):
            return httpx.Response(307, headers={"Location": "/files/abc.pdf"})

        fetcher = DocumentFetcher(transport=RecordingTransport(handler))

        storage = await fetcher.resolve_storage_url(METADATA_URL, "secret-key")
        assert storage == "https://document-api.example/files/abc.pdf"


class TestHopFailures:

    @pytest.mark.asyncio
    async def test_metadata_hop_error_named(self):

        def handler(request, n):
            return httpx.Response(401)

        transport = RecordingTransport(handler)
        fetcher = DocumentFetcher(transport=transport)

        with pytest.raises(DocumentFetchError) as exc:
            await fetcher.fetch_document(METADATA_URL, "bad-key")

        assert exc.value.hop == "metadata"
        assert exc.value.status_code == 401
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_storage_hop_error_named(self):

        def handler(request, n):
            if n == 1:
                return httpx.Response(302, headers={"Location": STORAGE_URL})
            return httpx.Response(403)

        fetcher = DocumentFetcher(transport=RecordingTransport(handler))

        with pytest.raises(DocumentFetchError) as exc:
            await fetcher.fetch_document(METADATA_URL, "secret-key")

        assert exc.value.hop == "storage"
        assert exc.value.status_code == 403
        assert "storage" in str(exc.value)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self):

        def handler(request, n):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = DocumentFetcher(transport=RecordingTransport(handler))

        with pytest.raises(DocumentFetchError) as exc:
            await fetcher.fetch_document(METADATA_URL, "secret-key")

        assert exc.value.hop == "metadata"
        assert exc.value.status_code is None
