import json
import logging
from typing import Any, Mapping, Optional, TYPE_CHECKING
from urllib.parse import urljoin, urlsplit

import httpx

from ..domain.errors import FormatError, RegistryError, TransportError
from .encoders import PathEncoder
from .transports import TransportFactory, default_transports

if TYPE_CHECKING:
    from ..ui.status import StatusRenderer

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class MetadataFetcher:
    """fetches the metadata document of a package from an http registry."""

    def __init__(
        self,
        registry_url: str,
        encoder: PathEncoder,
        reporter: Optional["StatusRenderer"] = None,
        transports: Optional[Mapping[str, TransportFactory]] = None,
    ):
        """
        initialize the fetcher.

        args:
            registry_url: base address of the registry, e.g. https://registry.npmjs.org/
            encoder: turns a package name into a path relative to the registry
            reporter: optional status renderer used to announce requests
            transports: scheme -> transport factory table. defaults to http/https.
        """
        self._registry_url = registry_url
        self.encoder = encoder
        self.reporter = reporter
        self.transports = dict(transports) if transports is not None else default_transports()

    @property
    def registry_url(self) -> str:
        return self._registry_url

    def resolve_url(self, package_name: str) -> str:
        """resolve the absolute address of a package's metadata document."""
        return self._join(self.encoder(package_name))

    async def fetch(self, package_name: str) -> Any:
        """
        fetch and parse the metadata of a package.

        issues a single GET request, no retries.

        raises:
            TransportError: connection failed, or the registry scheme is unsupported
            RegistryError: the registry answered with a status other than 200
            FormatError: the response is not JSON, or its body is corrupt
        """
        address = self._join(self.encoder(package_name))
        transport_factory = self._select_transport(address, package_name)
        logger.debug(f"resolved '{package_name}' to {address} via {urlsplit(address).scheme} transport")

        if self.reporter:
            self.reporter.update_line(f"Getting package info of '{package_name}' from registry")

        try:
            async with httpx.AsyncClient(transport=transport_factory()) as client:
                async with client.stream("GET", address) as response:
                    logger.debug(f"{address} answered {response.status_code} {response.reason_phrase}")
                    if response.status_code != 200:
                        detail = response.reason_phrase or httpx.codes.get_reason_phrase(response.status_code)
                        raise RegistryError(response.status_code, detail, package_name)

                    chunks = []
                    async for chunk in response.aiter_bytes():
                        chunks.append(chunk)
                    content_type = response.headers.get("content-type")
        except httpx.DecodingError as e:
            raise FormatError(f"Registry returned a corrupt body: {e}", package_name) from e
        except httpx.RequestError as e:
            raise TransportError(f"failed to reach registry: {e}", package_name) from e

        body = b"".join(chunks)
        logger.debug(f"received {len(body)} bytes for '{package_name}'")
        return self._parse(body, content_type, package_name)

    def _join(self, fragment: str) -> str:
        return urljoin(self._registry_url, fragment)

    def _select_transport(self, address: str, package_name: str) -> TransportFactory:
        scheme = urlsplit(address).scheme
        try:
            return self.transports[scheme]
        except KeyError:
            raise TransportError(f"unsupported registry scheme '{scheme}'", package_name)

    def _parse(self, body: bytes, content_type: Optional[str], package_name: str) -> Any:
        # a missing content type is a mismatch too
        if not content_type or JSON_CONTENT_TYPE not in content_type:
            raise FormatError("Registry returned incompatible data", package_name)

        try:
            return json.loads(body.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise FormatError(f"Registry returned invalid utf-8: {e}", package_name) from e
        except json.JSONDecodeError as e:
            raise FormatError(f"Registry returned invalid JSON: {e}", package_name) from e
