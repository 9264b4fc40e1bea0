#!/usr/bin/env python3
"""
Stricker API Client for the Spot Gifts catalog.

Authenticates with an access key and downloads the colors, products and
optionals (price tiers) collections.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests

from lucia.core.errors import UpstreamFailure
from lucia.integrations.stricker.config import (
    AUTH_ENDPOINT,
    AUTH_TIMEOUT,
    COLLECTION_ENDPOINTS,
    FETCH_TIMEOUT,
)

logger = logging.getLogger(__name__)


class StrickerAPIError(UpstreamFailure):
    """Exception raised for Stricker API errors."""


@dataclass
class CatalogSnapshot:
    """Raw collections downloaded from the Stricker API."""
    colors: List[Dict[str, Any]] = field(default_factory=list)
    products: List[Dict[str, Any]] = field(default_factory=list)
    optionals: List[Dict[str, Any]] = field(default_factory=list)


class StrickerClient:
    """
    Client for the Stricker catalog API.

    The token obtained by ``authenticate()`` is kept in memory for the
    lifetime of the client and never refreshed.
    """

    def __init__(
        self,
        api_url: str,
        access_key: str,
        lang: str = "PT",
        session: Optional[requests.Session] = None,
        auth_timeout: float = AUTH_TIMEOUT,
        fetch_timeout: float = FETCH_TIMEOUT
    ):
        """
        Args:
            api_url: API base URL (e.g. https://ws.spotgifts.com.br/api/v1SSL/)
            access_key: Client access key
            lang: Catalog language
            session: requests session (created if not provided)
            auth_timeout: Timeout for the authentication call, in seconds
            fetch_timeout: Timeout for each collection download, in seconds
        """
        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self.access_key = access_key
        self.lang = lang
        self.session = session or requests.Session()
        self.auth_timeout = auth_timeout
        self.fetch_timeout = fetch_timeout

        self._token: Optional[str] = None

    # =========================================================================
    # API Request Helpers
    # =========================================================================

    def _get(self, endpoint: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        """
        Make a GET request and return the decoded JSON body.

        Raises:
            StrickerAPIError: If the request fails or the body is not JSON
        """
        url = urljoin(self.api_url, endpoint)
        logger.debug(f"Stricker API GET {url}")

        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise StrickerAPIError(f"Request to '{endpoint}' failed: {e}")

        if response.status_code >= 400:
            raise StrickerAPIError(
                f"API error on '{endpoint}': HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise StrickerAPIError(f"Invalid JSON from '{endpoint}': {e}", status_code=response.status_code)

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(self) -> str:
        """
        Exchange the access key for a session token.

        Returns:
            The token

        Raises:
            StrickerAPIError: If the response carries no token
        """
        logger.info("Authenticating with Stricker API...")
        data = self._get(AUTH_ENDPOINT, {"AccessKey": self.access_key}, self.auth_timeout)

        token = data.get("Token") if isinstance(data, dict) else None
        if not token:
            raise StrickerAPIError("Authentication failed: no token in response", response=data)

        self._token = token
        logger.info("Authenticated")
        return token

    @property
    def token(self) -> str:
        if not self._token:
            raise StrickerAPIError("Not authenticated; call authenticate() first")
        return self._token

    # =========================================================================
    # Collections
    # =========================================================================

    def get_collection(self, endpoint: str) -> List[Dict[str, Any]]:
        """Download one collection. An empty or missing collection is []."""
        key = COLLECTION_ENDPOINTS[endpoint]
        data = self._get(endpoint, {"token": self.token, "lang": self.lang}, self.fetch_timeout)
        records = data.get(key) if isinstance(data, dict) else None
        return list(records or [])

    def get_colors(self) -> List[Dict[str, Any]]:
        return self.get_collection("colors")

    def get_products(self) -> List[Dict[str, Any]]:
        return self.get_collection("products")

    def get_optionals(self) -> List[Dict[str, Any]]:
        return self.get_collection("optionals")

    def fetch_catalog(self) -> CatalogSnapshot:
        """Download the three collections concurrently."""
        logger.info("Fetching data from Stricker API...")

        with ThreadPoolExecutor(max_workers=3) as executor:
            colors = executor.submit(self.get_colors)
            products = executor.submit(self.get_products)
            optionals = executor.submit(self.get_optionals)

            snapshot = CatalogSnapshot(
                colors=colors.result(),
                products=products.result(),
                optionals=optionals.result(),
            )

        logger.info(
            f"Fetched: {len(snapshot.colors)} colors, {len(snapshot.products)} products, "
            f"{len(snapshot.optionals)} optionals"
        )
        return snapshot

    def close(self) -> None:
        self.session.close()
