from __future__ import annotations

import logging

from openpyxl import load_workbook

from instabill.domain.errors import AppError, ValidationError
from instabill.domain.models import CatalogEntry

log = logging.getLogger(__name__)


class ExcelService:
    def __init__(self, catalog):
        self.catalog = catalog

    def import_catalog_excel(self, path: str) -> tuple[int, int]:
        """
        Upserts catalog entries by barcode.
        Headers:
          barcode | name | price | category
        """
        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        for r in ("barcode", "name", "price"):
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        ok = 0
        skipped = 0

        for row in range(2, ws.max_row + 1):
            try:
                barcode = ws.cell(row=row, column=headers["barcode"]).value
                name = ws.cell(row=row, column=headers["name"]).value
                price = ws.cell(row=row, column=headers["price"]).value
                category = ws.cell(row=row, column=headers["category"]).value if "category" in headers else None

                if not barcode or not name or price is None:
                    skipped += 1
                    continue

                # numeric barcodes come back from Excel as int/float
                if isinstance(barcode, float) and barcode.is_integer():
                    barcode = int(barcode)
                entry = CatalogEntry(
                    barcode=str(barcode).strip(),
                    name=str(name).strip(),
                    price=float(price),
                    category=str(category).strip() if category else "General",
                )

                if self.catalog.lookup(entry.barcode) is not None:
                    self.catalog.update(entry.barcode, entry)
                else:
                    self.catalog.register(entry)
                ok += 1
            except (AppError, TypeError, ValueError) as e:
                log.warning("Excel import skipped row %s: %s", row, e)
                skipped += 1

        log.info("catalog_import ok=%s skipped=%s", ok, skipped)
        return ok, skipped
