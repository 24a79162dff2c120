from __future__ import annotations

import logging
from typing import Sequence

import requests

from instabill.domain.errors import FeatureUnavailableError, ItemUnresolvedError
from instabill.domain.models import CatalogEntry

log = logging.getLogger("instabill.scan")


class IdentificationService:
    """External product identification.

    Each configured URL is a template with a `{code}` placeholder, queried in
    order until one yields a usable product. Payloads shaped like Open Food
    Facts (`{"status": 1, "product": {...}}`) and flat `{"name", "price"}`
    objects are both understood.
    """

    def __init__(self, urls: Sequence[str] = (), timeout: float = 10.0):
        self.urls = tuple(urls)
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return bool(self.urls)

    def _fetch_json(self, url: str) -> dict:
        r = requests.get(url, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _extract_entry(self, code: str, data: dict) -> CatalogEntry:
        if not isinstance(data, dict):
            raise ValueError("Unexpected identification payload.")
        if data.get("status") == 0:
            raise ValueError("Product not found upstream.")

        product = data.get("product") if isinstance(data.get("product"), dict) else data
        name = product.get("name") or product.get("product_name") or product.get("generic_name")
        if not name:
            raise ValueError("Identification response missing product name.")

        try:
            price = float(product.get("price") or 0)
        except TypeError as e:
            raise ValueError(f"Unusable price in identification response: {product.get('price')!r}") from e
        category = product.get("category")
        if not category:
            cats = str(product.get("categories") or "").split(",")
            category = cats[0].strip() if cats and cats[0].strip() else "General"

        return CatalogEntry(barcode=code, name=str(name).strip(), price=max(price, 0.0), category=str(category))

    def identify_barcode(self, code: str) -> CatalogEntry:
        if not self.urls:
            raise FeatureUnavailableError("External barcode identification is not configured.")

        last_err = None
        for template in self.urls:
            try:
                url = template.format(code=code)
                entry = self._extract_entry(code, self._fetch_json(url))
                log.info("identify_ok code=%s name=%s", code, entry.name)
                return entry
            except (requests.RequestException, ValueError, TypeError, KeyError, IndexError) as e:
                last_err = e
                log.warning("identify_source_failed url=%s error=%s", template, e)

        raise ItemUnresolvedError(code, f"Item not identified for barcode '{code}'. Last error: {last_err}")

    def identify_image(self, image_data: str) -> CatalogEntry:
        raise FeatureUnavailableError("Image identification is not available.")
