from __future__ import annotations

from dataclasses import replace
from typing import Any

from ..excel.header import AliasHeaderLocator, locator_from_setting
from ..models.config_models import (
    EntityKind,
    FieldKind,
    FieldSpec,
    IngestConfig,
    IngestMode,
    SourceSpec,
)
from ..services.normalizer import DEFAULT_CURRENCY_CODES, DEFAULT_CURRENCY_SYMBOLS

"""Field tables for the upstream export formats.

Booksonix exports the product catalog, Gazelle exports sales order lines.
Each FieldSpec lists the header labels seen in the wild, most common first;
`position` is the column used when an export arrives without a usable header.
Aliases and the hyphen policy can be extended per source from ingest.yml.
"""

__all__ = [
    "CATALOG",
    "SALES",
    "SOURCE_DEFAULTS",
    "build_sources",
    "default_sources",
]

CATALOG = EntityKind(
    name="catalog",
    table="booksonix_records",
    key_columns=("sku",),
    required_key_columns=("sku",),
    columns=(
        "sku", "isbn", "title", "author", "publisher", "price",
        "quantity", "format", "publication_date", "description", "category",
    ),
    text_columns=frozenset(
        {"isbn", "title", "author", "publisher", "format", "description", "category"}
    ),
    touch_column="last_updated",
)

SALES = EntityKind(
    name="sales",
    table="gazelle_sales",
    key_columns=("order_ref", "isbn13", "customer_name"),
    required_key_columns=("order_ref",),
    columns=(
        "order_ref", "order_date", "customer_name", "city", "country", "title",
        "isbn13", "quantity", "unit_price", "discount", "publisher", "format",
    ),
    text_columns=frozenset({"city", "country", "title", "publisher", "format"}),
    touch_column="upload_date",
)

BOOKSONIX_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        "sku", FieldKind.IDENTIFIER,
        ("SKU", "sku", "Sku", "Product SKU", "Product Code", "Item Code", "Code"),
        position=0, strip_hyphens=True,
    ),
    FieldSpec(
        "isbn", FieldKind.IDENTIFIER,
        ("ISBN-13", "ISBN13", "isbn-13", "ISBN", "EAN"),
        position=1, strip_hyphens=True,
    ),
    FieldSpec("title", FieldKind.TEXT, ("Title", "TITLE", "Product Title"), position=2),
    FieldSpec("author", FieldKind.TEXT, ("Author", "AUTHOR", "Authors", "Contributor"), position=3),
    FieldSpec("publisher", FieldKind.TEXT, ("Publishers", "Publisher", "PUBLISHER", "Imprint"), position=4),
    FieldSpec("price", FieldKind.CURRENCY, ("Prices", "Price", "PRICE", "RRP"), position=5),
    FieldSpec("quantity", FieldKind.QUANTITY, ("Quantity", "QUANTITY", "Qty", "Stock"), position=6),
    FieldSpec("format", FieldKind.TEXT, ("Format", "FORMAT", "Binding"), position=7),
    FieldSpec(
        "publication_date", FieldKind.DATE,
        ("Publication Date", "Publication date", "Pub Date", "Pub date"),
        position=8,
    ),
    FieldSpec("description", FieldKind.TEXT, ("Description", "DESCRIPTION", "Blurb"), position=9),
    FieldSpec("category", FieldKind.TEXT, ("Category", "CATEGORY", "BIC Subject", "Subject"), position=10),
)

GAZELLE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("order_ref", FieldKind.IDENTIFIER, ("Order Ref", "Order Reference", "Invoice"), position=0),
    FieldSpec("order_date", FieldKind.DATE, ("Order Date", "Invoice Date", "Date"), position=1),
    FieldSpec("customer_name", FieldKind.TEXT, ("Customer Name", "Customer"), position=2),
    FieldSpec("city", FieldKind.TEXT, ("City", "Town"), position=3),
    FieldSpec("country", FieldKind.TEXT, ("Country",), position=4),
    FieldSpec("title", FieldKind.TEXT, ("Title", "Product Title"), position=5),
    FieldSpec("isbn13", FieldKind.IDENTIFIER, ("ISBN-13", "ISBN13", "ISBN", "EAN"), position=6, strip_hyphens=True),
    FieldSpec("quantity", FieldKind.QUANTITY, ("Quantity", "Qty"), position=7),
    FieldSpec("unit_price", FieldKind.CURRENCY, ("Unit Price", "Price"), position=8),
    FieldSpec("discount", FieldKind.PERCENTAGE, ("Discount %", "Discount"), position=9),
    FieldSpec("publisher", FieldKind.TEXT, ("Publishers", "Publisher"), position=10),
    FieldSpec("format", FieldKind.TEXT, ("Format", "Binding"), position=11),
)

SOURCE_DEFAULTS: dict[str, tuple[EntityKind, tuple[FieldSpec, ...]]] = {
    "booksonix": (CATALOG, BOOKSONIX_FIELDS),
    "gazelle": (SALES, GAZELLE_FIELDS),
}


class SourceConfigError(ValueError):
    pass


def _apply_overrides(fields: tuple[FieldSpec, ...], overrides: dict[str, Any]) -> tuple[FieldSpec, ...]:
    extra_aliases: dict[str, list[str]] = overrides.get("aliases") or {}
    strip_flags: dict[str, bool] = overrides.get("strip_hyphens") or {}
    known = {f.name for f in fields}
    unknown = (set(extra_aliases) | set(strip_flags)) - known
    if unknown:
        raise SourceConfigError(f"unknown fields in overrides: {sorted(unknown)}")

    result: list[FieldSpec] = []
    for spec in fields:
        if spec.name in extra_aliases:
            added = tuple(a for a in extra_aliases[spec.name] if a not in spec.aliases)
            spec = replace(spec, aliases=spec.aliases + added)
        if spec.name in strip_flags:
            if spec.kind is not FieldKind.IDENTIFIER:
                raise SourceConfigError(f"strip_hyphens only applies to identifier fields: {spec.name}")
            spec = replace(spec, strip_hyphens=bool(strip_flags[spec.name]))
        result.append(spec)
    return tuple(result)


def default_sources() -> dict[str, SourceSpec]:
    return {
        name: SourceSpec(
            name=name,
            entity=entity,
            fields=fields,
            header_locator=AliasHeaderLocator(),
            currency_symbols=DEFAULT_CURRENCY_SYMBOLS,
            currency_codes=DEFAULT_CURRENCY_CODES,
        )
        for name, (entity, fields) in SOURCE_DEFAULTS.items()
    }


def build_sources(config: IngestConfig) -> dict[str, SourceSpec]:
    """Apply the per-source overrides of ingest.yml to the built-in field tables."""
    sources: dict[str, SourceSpec] = {}
    for name, (entity, fields) in SOURCE_DEFAULTS.items():
        overrides = config.sources.get(name) or {}
        try:
            locator = locator_from_setting(overrides.get("header", "auto"))
            mode = IngestMode(overrides.get("mode", IngestMode.MERGE.value))
        except ValueError as e:
            raise SourceConfigError(f"source '{name}': {e}") from e
        sources[name] = SourceSpec(
            name=name,
            entity=entity,
            fields=_apply_overrides(fields, overrides),
            header_locator=locator,
            mode=mode,
            sheet=overrides.get("sheet"),
            currency_symbols=config.currency_symbols,
            currency_codes=config.currency_codes,
        )
    return sources
