from __future__ import annotations

import base64
import logging
from urllib.parse import urljoin

import httpx

from .base import BaseConnector
from ...core.errors import DocumentFetchError

logger = logging.getLogger(__name__)


class DocumentFetcher(BaseConnector):
    """
    Resolves a Companies House document URL to base64-encoded PDF bytes.

    Two hops:
    - metadata hop: authenticated GET with redirects disabled. A 3xx answer
      carries the storage URL in `Location`. A 2xx JSON body with
      `links.document` is the document-metadata resource, and that link is
      requested the same way (authenticated, no redirects). Any other 2xx
      means the URL is already the storage URL.
    - storage hop: plain GET against the resolved URL. The storage tier is
      pre-signed, so the registry key is never sent there.

    A 3xx without `Location` reuses the URL that was requested instead of
    failing.
    """

    name = "companies_house_documents"

    async def _authenticated_get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        try:
            return await client.get(url, headers={"Accept": "application/pdf"})
        except httpx.HTTPError as e:
            raise DocumentFetchError("metadata", url, reason=str(e) or type(e).__name__) from e

    def _redirect_target(self, resp: httpx.Response, requested_url: str) -> str:
        location = resp.headers.get("location")
        if not location:
            logger.warning(
                "Redirect without Location header; reusing requested URL",
                extra={"connector": self.name, "step": "resolve_storage_url"},
            )
            return requested_url
        return urljoin(requested_url, location)

    @staticmethod
    def _document_link(resp: httpx.Response) -> str | None:
        if "json" not in resp.headers.get("content-type", ""):
            return None
        try:
            meta = resp.json()
        except ValueError:
            return None
        if not isinstance(meta, dict):
            return None
        links = meta.get("links")
        if not isinstance(links, dict):
            return None
        link = links.get("document")
        return link if isinstance(link, str) and link else None

    async def resolve_storage_url(self, metadata_url: str, credential: str) -> str:
        async with self._client(auth=(credential, ""), follow_redirects=False) as client:
            resp = await self._authenticated_get(client, metadata_url)

            if 300 <= resp.status_code < 400:
                return self._redirect_target(resp, metadata_url)

            if not resp.is_success:
                raise DocumentFetchError("metadata", metadata_url, status_code=resp.status_code)

            document_url = self._document_link(resp)
            if document_url is None:
                return metadata_url

            document_url = urljoin(metadata_url, document_url)
            doc_resp = await self._authenticated_get(client, document_url)

        if 300 <= doc_resp.status_code < 400:
            return self._redirect_target(doc_resp, document_url)
        if doc_resp.is_success:
            return document_url
        raise DocumentFetchError("metadata", document_url, status_code=doc_resp.status_code)

    async def download(self, storage_url: str) -> bytes:
        async with self._client(follow_redirects=True) as client:
            try:
                resp = await client.get(storage_url)
            except httpx.HTTPError as e:
                raise DocumentFetchError("storage", storage_url, reason=str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise DocumentFetchError("storage", storage_url, status_code=resp.status_code)
        return resp.content

    async def fetch_document(self, metadata_url: str, credential: str) -> str:
        storage_url = await self.resolve_storage_url(metadata_url, credential)
        body = await self.download(storage_url)
        logger.info(
            "Fetched document (%d bytes)",
            len(body),
            extra={"connector": self.name, "step": "fetch_document"},
        )
        return base64.b64encode(body).decode("ascii")
