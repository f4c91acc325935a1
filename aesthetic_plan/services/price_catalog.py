from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from aesthetic_plan.models import PriceCatalogEntry


logger = logging.getLogger("aesthetic-plan-agent.price-catalog")

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "price_catalog.json"


class PriceCatalog:
    """Ordered, read-only set of procedures the plan may choose from."""

    def __init__(self, entries: Iterable[PriceCatalogEntry], *, source: str) -> None:
        self._entries: tuple[PriceCatalogEntry, ...] = tuple(entries)
        if not self._entries:
            raise ValueError("price catalog must not be empty")
        self.source = source

    def __iter__(self) -> Iterator[PriceCatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[PriceCatalogEntry, ...]:
        return self._entries

    def categories(self) -> list[str]:
        seen: list[str] = []
        for entry in self._entries:
            if entry.category not in seen:
                seen.append(entry.category)
        return seen

    def first_in(self, category: str) -> Optional[PriceCatalogEntry]:
        for entry in self._entries:
            if entry.category == category:
                return entry
        return None

    def find(self, name: str, category: Optional[str] = None) -> Optional[PriceCatalogEntry]:
        key = name.strip()
        if not key:
            return None
        by_name = [e for e in self._entries if e.name == key]
        for entry in by_name:
            if category is None or entry.category == category:
                return entry
        return by_name[0] if by_name else None

    def as_dicts(self) -> list[dict[str, Any]]:
        return [entry.model_dump() for entry in self._entries]

    def to_json(self) -> str:
        return json.dumps(self.as_dicts(), ensure_ascii=False)


BUILTIN_CATALOG = PriceCatalog(
    [
        PriceCatalogEntry(category="spots", name="Laser toning", unit="session", price=30000),
        PriceCatalogEntry(category="wrinkles", name="Botulinum toxin (forehead)", unit="session", price=25000),
        PriceCatalogEntry(category="sagging", name="HIFU (full face)", unit="session", price=90000),
        PriceCatalogEntry(category="pores", name="Microneedling", unit="session", price=35000),
        PriceCatalogEntry(category="redness", name="Photofacial (IPL)", unit="session", price=20000),
    ],
    source="builtin",
)


def _fallback(reason: str) -> PriceCatalog:
    logger.warning("price_catalog_fallback reason=%s entries=%s", reason, len(BUILTIN_CATALOG))
    return BUILTIN_CATALOG


def load_price_catalog(path: Optional[Union[str, Path]] = None) -> PriceCatalog:
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _fallback(f"not_found path={catalog_path}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return _fallback(f"unreadable path={catalog_path} err={exc}")

    if not isinstance(raw, list):
        return _fallback(f"not_an_array path={catalog_path}")

    entries: list[PriceCatalogEntry] = []
    for idx, item in enumerate(raw):
        try:
            entries.append(PriceCatalogEntry.model_validate(item))
        except PydanticValidationError as exc:
            logger.warning("price_catalog_entry_skipped index=%s errors=%s", idx, exc.error_count())

    if not entries:
        return _fallback(f"empty path={catalog_path}")

    logger.info("price_catalog_loaded path=%s entries=%s", catalog_path, len(entries))
    return PriceCatalog(entries, source=str(catalog_path))
