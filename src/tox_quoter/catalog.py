"""Read-only master-data snapshots consumed by the pricing engine.

Master data (the study catalog, the combination-product catalog, the
single-price catalogs, both OECD overlay tables and the test-type
classification) is provisioned elsewhere and handed to this module as CSV
tables. The loaders normalise headers, map blank price cells to ``None`` and
return immutable structures; the pricing functions themselves never touch the
filesystem.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, TypeVar

import pandas as pd

from tox_quoter.config import get_logger
from tox_quoter.domain import (
    CatalogItem,
    ComboCatalogItem,
    OverlayEntry,
    SimpleCatalogItem,
    TestClassification,
)

logger = get_logger("catalog")

T = TypeVar("T")

ITEMS_CSV = "items.csv"
COMBO_ITEMS_CSV = "combo_items.csv"
SIMPLE_ITEMS_CSV = "simple_items.csv"
PRIMARY_OVERLAY_CSV = "overlay_primary.csv"
SECONDARY_OVERLAY_CSV = "overlay_secondary.csv"
CLASSIFICATION_CSV = "classification.csv"

_GUIDELINE_SEP = "|"


class CatalogError(RuntimeError):
    """Raised when a master-data table cannot be loaded or is malformed."""


def _frozen(mapping: Mapping[int, T]) -> Mapping[int, T]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable bundle of every table the pricing engine reads."""

    items: Mapping[int, CatalogItem] = field(default_factory=dict)
    combo_items: Mapping[int, ComboCatalogItem] = field(default_factory=dict)
    simple_items: Mapping[int, SimpleCatalogItem] = field(default_factory=dict)
    primary_overlay: Mapping[int, OverlayEntry] = field(default_factory=dict)
    secondary_overlay: Mapping[int, OverlayEntry] = field(default_factory=dict)
    classification: Mapping[int, TestClassification] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in (
            "items",
            "combo_items",
            "simple_items",
            "primary_overlay",
            "secondary_overlay",
            "classification",
        ):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    @classmethod
    def from_records(
        cls,
        *,
        items: Iterable[CatalogItem] = (),
        combo_items: Iterable[ComboCatalogItem] = (),
        simple_items: Iterable[SimpleCatalogItem] = (),
        primary_overlay: Mapping[int, Any] | None = None,
        secondary_overlay: Mapping[int, Any] | None = None,
        classification: Mapping[int, Any] | None = None,
    ) -> "CatalogSnapshot":
        """Build a snapshot from in-memory records and raw lookup tables."""

        return cls(
            items={item.id: item for item in items},
            combo_items={item.id: item for item in combo_items},
            simple_items={item.id: item for item in simple_items},
            primary_overlay=_coerce_overlay(primary_overlay),
            secondary_overlay=_coerce_overlay(secondary_overlay),
            classification={
                int(key): TestClassification.coerce(value)
                for key, value in (classification or {}).items()
            },
        )

    def item(self, item_id: int) -> CatalogItem:
        try:
            return self.items[item_id]
        except KeyError:
            raise KeyError(f"Unknown catalog item: {item_id}") from None

    def combo_item(self, item_id: int) -> ComboCatalogItem:
        try:
            return self.combo_items[item_id]
        except KeyError:
            raise KeyError(f"Unknown combination catalog item: {item_id}") from None

    def simple_item(self, item_id: int) -> SimpleCatalogItem:
        try:
            return self.simple_items[item_id]
        except KeyError:
            raise KeyError(f"Unknown catalog item: {item_id}") from None


def _coerce_overlay(raw: Mapping[int, Any] | None) -> dict[int, OverlayEntry]:
    overlay: dict[int, OverlayEntry] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, OverlayEntry):
            overlay[int(key)] = value
        else:
            overlay[int(key)] = OverlayEntry(oop=value.get("oop"), oip=value.get("oip"))
    return overlay


# ---- CSV helpers ----


def _normalize_key(name: Any) -> str:
    return re.sub(r"[^a-z0-9]+", "_", str(name or "").lower()).strip("_")


def _read_table(path: str | Path, required: Iterable[str]) -> pd.DataFrame:
    table_path = Path(path)
    if not table_path.exists():
        raise CatalogError(f"Master-data table not found: {table_path}")
    try:
        df = pd.read_csv(table_path, dtype=str, keep_default_na=False, encoding="utf-8")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Unable to read {table_path.name}: {exc}") from exc

    df = df.rename(columns=_normalize_key)
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise CatalogError(f"{table_path.name} is missing columns: {', '.join(missing)}")

    for column in df.columns:
        df[column] = df[column].astype(str).str.strip()
    key_col = "id" if "id" in df.columns else "item_id"
    df = df[df[key_col] != ""]
    dupes = df[key_col][df[key_col].duplicated()]
    if not dupes.empty:
        raise CatalogError(
            f"{table_path.name} has duplicate ids: {', '.join(sorted(set(dupes)))}"
        )
    return df


def _money(value: Any, column: str, source: str) -> int | None:
    text = str(value or "").replace(",", "").strip()
    if not text:
        return None
    numeric = pd.to_numeric(text, errors="coerce")
    if pd.isna(numeric) or not math.isfinite(numeric) or numeric < 0 or int(numeric) != numeric:
        raise CatalogError(f"{source}: invalid amount {value!r} in column {column!r}")
    return int(numeric)


def _required_money(value: Any, column: str, source: str) -> int:
    amount = _money(value, column, source)
    if amount is None:
        raise CatalogError(f"{source}: column {column!r} must not be blank")
    return amount


def _int_or_none(value: Any, column: str, source: str) -> int | None:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise CatalogError(f"{source}: invalid integer {value!r} in column {column!r}") from None


def _weeks(value: Any) -> int | str | None:
    text = str(value or "").strip()
    if not text:
        return None
    return int(text) if text.isdigit() else text


def _guideline(value: Any) -> tuple[str, ...]:
    text = str(value or "").strip()
    if not text:
        return ()
    return tuple(part.strip() for part in text.split(_GUIDELINE_SEP))


def _rows(df: pd.DataFrame) -> list[dict[str, str]]:
    return df.to_dict(orient="records")


def _build(
    path: str | Path,
    required: Iterable[str],
    make: Callable[[dict[str, str], str], T],
) -> list[T]:
    df = _read_table(path, required)
    source = Path(path).name
    records = [make(row, f"{source} id={row.get('id') or row.get('item_id')}") for row in _rows(df)]
    logger.debug("loaded %d rows from %s", len(records), source)
    return records


def _catalog_item(row: dict[str, str], source: str) -> CatalogItem:
    return CatalogItem(
        id=_required_int(row, "id", source),
        num=_int_or_none(row.get("num"), "num", source),
        name=row.get("name", ""),
        category=row.get("category", ""),
        species=row.get("species", ""),
        duration=row.get("duration", ""),
        price_oral=_money(row.get("price_oral"), "price_oral", source),
        price_iv=_money(row.get("price_iv"), "price_iv", source),
        route_oral=row.get("route_oral", ""),
        route_iv=row.get("route_iv", ""),
        weeks_oral=_weeks(row.get("weeks_oral")),
        weeks_iv=_weeks(row.get("weeks_iv")),
        description=row.get("description", ""),
        formal_name=row.get("formal_name", ""),
        guideline=_guideline(row.get("guideline")),
        note=row.get("note", ""),
    )


def _combo_item(row: dict[str, str], source: str) -> ComboCatalogItem:
    return ComboCatalogItem(
        id=_required_int(row, "id", source),
        num=_int_or_none(row.get("num"), "num", source),
        name=row.get("name", ""),
        category=row.get("category", ""),
        species=row.get("species", ""),
        duration=row.get("duration", ""),
        price_p2=_required_money(row.get("price_p2"), "price_p2", source),
        price_p3=_required_money(row.get("price_p3"), "price_p3", source),
        price_p4=_required_money(row.get("price_p4"), "price_p4", source),
        formal_name=row.get("formal_name", ""),
        description=row.get("description", ""),
        weeks=_weeks(row.get("weeks")),
        guideline=_guideline(row.get("guideline")),
        note=row.get("note", ""),
    )


def _simple_item(row: dict[str, str], source: str) -> SimpleCatalogItem:
    return SimpleCatalogItem(
        id=_required_int(row, "id", source),
        num=_int_or_none(row.get("num"), "num", source),
        name=row.get("name", ""),
        category=row.get("category", ""),
        species=row.get("species", ""),
        duration=row.get("duration", ""),
        price=_required_money(row.get("price"), "price", source),
        formal_name=row.get("formal_name", ""),
        description=row.get("description", ""),
        weeks=_weeks(row.get("weeks")),
        guideline=_guideline(row.get("guideline")),
        note=row.get("note", ""),
    )


def _required_int(row: dict[str, str], column: str, source: str) -> int:
    value = _int_or_none(row.get(column), column, source)
    if value is None:
        raise CatalogError(f"{source}: column {column!r} must not be blank")
    return value


def load_catalog_csv(path: str | Path) -> list[CatalogItem]:
    """Load the route-priced study catalog."""

    return _build(path, ("id", "category", "species", "duration", "price_oral", "price_iv"), _catalog_item)


def load_combo_catalog_csv(path: str | Path) -> list[ComboCatalogItem]:
    """Load the combination-product catalog."""

    return _build(path, ("id", "category", "duration", "price_p2", "price_p3", "price_p4"), _combo_item)


def load_simple_catalog_csv(path: str | Path) -> list[SimpleCatalogItem]:
    """Load a single-price catalog (vaccine, health-functional food, device)."""

    return _build(path, ("id", "category", "duration", "price"), _simple_item)


def load_overlay_csv(path: str | Path) -> dict[int, OverlayEntry]:
    """Load an OECD overlay table keyed by catalog item id.

    Rows that define neither ``oop`` nor ``oip`` carry no override and are
    dropped.
    """

    overlay: dict[int, OverlayEntry] = {}
    source = Path(path).name
    for row in _rows(_read_table(path, ("item_id", "oop", "oip"))):
        label = f"{source} item_id={row['item_id']}"
        entry = OverlayEntry(
            oop=_money(row.get("oop"), "oop", label),
            oip=_money(row.get("oip"), "oip", label),
        )
        if entry.oop is None and entry.oip is None:
            logger.warning("ignoring overlay row without prices: %s", label)
            continue
        overlay[_required_int(row, "item_id", label)] = entry
    return overlay


def load_classification_csv(path: str | Path) -> dict[int, TestClassification]:
    """Load the test-type / content-analysis classification table."""

    table: dict[int, TestClassification] = {}
    source = Path(path).name
    for row in _rows(_read_table(path, ("item_id", "test_type", "content_analysis"))):
        label = f"{source} item_id={row['item_id']}"
        test_type = _required_int(row, "test_type", label)
        flag = row.get("content_analysis", "").lower()
        if flag not in {"0", "1", "true", "false", "yes", "no"}:
            raise CatalogError(f"{label}: invalid content_analysis flag {row.get('content_analysis')!r}")
        table[_required_int(row, "item_id", label)] = TestClassification(
            test_type=test_type,
            content_analysis=flag in {"1", "true", "yes"},
        )
    return table


def load_snapshot(directory: str | Path) -> CatalogSnapshot:
    """Load every master-data table found in ``directory`` into a snapshot.

    ``items.csv`` is required; the other tables are optional and default to
    empty when absent.
    """

    root = Path(directory)
    if not (root / ITEMS_CSV).exists():
        raise CatalogError(f"{ITEMS_CSV} not found in {root}")

    def _optional(name: str, loader: Callable[[Path], Any], empty: Any) -> Any:
        path = root / name
        if not path.exists():
            logger.info("optional master-data table %s not present in %s", name, root)
            return empty
        return loader(path)

    snapshot = CatalogSnapshot.from_records(
        items=load_catalog_csv(root / ITEMS_CSV),
        combo_items=_optional(COMBO_ITEMS_CSV, load_combo_catalog_csv, []),
        simple_items=_optional(SIMPLE_ITEMS_CSV, load_simple_catalog_csv, []),
        primary_overlay=_optional(PRIMARY_OVERLAY_CSV, load_overlay_csv, {}),
        secondary_overlay=_optional(SECONDARY_OVERLAY_CSV, load_overlay_csv, {}),
        classification=_optional(CLASSIFICATION_CSV, load_classification_csv, {}),
    )
    logger.info(
        "loaded catalog snapshot from %s: %d items, %d combo items, %d simple items",
        root,
        len(snapshot.items),
        len(snapshot.combo_items),
        len(snapshot.simple_items),
    )
    return snapshot


__all__ = [
    "CatalogError",
    "CatalogSnapshot",
    "load_catalog_csv",
    "load_classification_csv",
    "load_combo_catalog_csv",
    "load_overlay_csv",
    "load_simple_catalog_csv",
    "load_snapshot",
]
