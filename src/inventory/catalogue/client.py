"""Catalogue lookup client.

Resolves a barcode against the shared product catalogue service. The ledger
uses it only to seed a store's first record for a barcode that is new to the
store but already known globally, so every call is best effort: callers
catch ``CatalogueUnavailable`` and carry on without enrichment.
"""

import requests
from pydantic import BaseModel, ValidationError

from inventory.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogueUnavailable(Exception):
    """The catalogue could not be reached or returned an unusable answer."""


class CatalogueProduct(BaseModel):
    barcode: str
    name: str
    description: str | None = None


class CatalogueClient:
    """HTTP client for ``GET {base_url}/products/{barcode}``."""

    def __init__(self, base_url: str, timeout: float = 3.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, barcode: str) -> CatalogueProduct | None:
        """Return the canonical product for ``barcode``, or None when the catalogue does not know it."""
        url = f"{self.base_url}/products/{barcode}"

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise CatalogueUnavailable(f"Catalogue request failed: {e}") from e

        if response.status_code == 404:
            logger.debug("Barcode not in catalogue", barcode=barcode)
            return None

        try:
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise CatalogueUnavailable(f"Catalogue returned an unusable response: {e}") from e

        # The product service wraps records as {success, message, product}
        if isinstance(data, dict) and "success" in data:
            if not data.get("success") or not data.get("product"):
                return None
            data = data["product"]

        try:
            return CatalogueProduct.model_validate(data)
        except ValidationError as e:
            raise CatalogueUnavailable(f"Catalogue product has an unexpected shape: {e.error_count()} error(s)") from e

    def close(self) -> None:
        self.session.close()
