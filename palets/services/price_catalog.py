from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Mapping

from palets.core.config import DEFAULT_CLIENT_PREFIX_ORDER
from palets.core.paths import resources_dir
from palets.data.json_store import JsonFileStore
from palets.models.errors import StoreError
from palets.utils.numeric import ZERO, format_price_text, parse_price, to_decimal

BUNDLED_CATALOG_PATH = resources_dir() / "precios.json"
USER_CATALOG_NAME = "precios.json"
SENTINEL_CLIENTS = ("otro", "other")


@dataclass(frozen=True)
class PriceEntry:
    client: str
    product_type: str
    unit_price: Decimal

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "PriceEntry":
        client = raw["cliente"]
        product_type = raw["palet"]
        if not isinstance(client, str) or not isinstance(product_type, str):
            raise ValueError("Client and palet names must be text")
        client = client.strip()
        product_type = product_type.strip()
        if not client or not product_type:
            raise ValueError("Blank client or palet name")
        return cls(client, product_type, to_decimal(raw["precio"]))

    def to_dict(self) -> dict[str, object]:
        return {
            "cliente": self.client,
            "palet": self.product_type,
            "precio": self.unit_price,
        }


def is_sentinel_client(name: str) -> bool:
    return name.strip().casefold() in SENTINEL_CLIENTS


def client_sort_key(
    name: str, prefix_order: Iterable[str] = DEFAULT_CLIENT_PREFIX_ORDER
) -> tuple[int, int, str, str]:
    folded = name.casefold()
    prefixes = [prefix.casefold() for prefix in prefix_order]
    bucket = len(prefixes)
    for index, prefix in enumerate(prefixes):
        if prefix and folded.startswith(prefix):
            bucket = index
            break
    return (1 if is_sentinel_client(name) else 0, bucket, folded, name)


def _unique_in_order(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class PriceCatalog:
    """Per-client unit prices for each palet type.

    Entries keep file order: the order in which a client's palet types first
    appear is the display order of every form built from the catalog.
    """

    def __init__(
        self,
        store: JsonFileStore | None = None,
        bundled_path: Path | None = None,
        prefix_order: Iterable[str] | None = None,
    ) -> None:
        self.store = store
        self.bundled_path = bundled_path or BUNDLED_CATALOG_PATH
        self.prefix_order = list(
            prefix_order if prefix_order is not None else DEFAULT_CLIENT_PREFIX_ORDER
        )
        self.entries: list[PriceEntry] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[PriceEntry],
        prefix_order: Iterable[str] | None = None,
    ) -> "PriceCatalog":
        catalog = cls(prefix_order=prefix_order)
        catalog.entries = list(entries)
        return catalog

    def load(self) -> int:
        self.entries = []
        source = self._source_path()
        try:
            raw = JsonFileStore.read_path(source)
        except StoreError as exc:
            if exc.is_missing:
                self._logger.info("Price catalog not found at %s", source)
            else:
                self._logger.warning("Price catalog unreadable: %s", exc)
            return 0
        if not isinstance(raw, list):
            self._logger.warning("Price catalog %s is not a list", source)
            return 0

        for index, item in enumerate(raw):
            if not isinstance(item, Mapping):
                self._logger.warning("Skipping price record %s: not an object", index)
                continue
            try:
                self.entries.append(PriceEntry.from_dict(item))
            except (KeyError, ValueError) as exc:
                self._logger.warning("Skipping price record %s: %s", index, exc)
        self._logger.info(
            "Loaded %s price entries from %s", len(self.entries), source
        )
        return len(self.entries)

    def save(self) -> bool:
        if self.store is None:
            return False
        payload = [entry.to_dict() for entry in self.entries]
        try:
            self.store.write(USER_CATALOG_NAME, payload)
        except StoreError:
            self._logger.exception("Failed to save price catalog")
            return False
        return True

    def _source_path(self) -> Path:
        if self.store is not None and self.store.exists(USER_CATALOG_NAME):
            return self.store.path_for(USER_CATALOG_NAME)
        return self.bundled_path

    def is_empty(self) -> bool:
        return not self.entries

    def has_client(self, name: str) -> bool:
        return any(entry.client == name for entry in self.entries)

    def clients(self) -> list[str]:
        names = {entry.client for entry in self.entries}
        return sorted(
            names, key=lambda name: client_sort_key(name, self.prefix_order)
        )

    def product_types_for(self, client: str) -> list[str]:
        return _unique_in_order(
            entry.product_type for entry in self.entries if entry.client == client
        )

    def all_product_types(self) -> list[str]:
        return _unique_in_order(entry.product_type for entry in self.entries)

    def unit_price(self, client: str, product_type: str) -> Decimal:
        for entry in self.entries:
            if entry.client == client and entry.product_type == product_type:
                return entry.unit_price
        return ZERO

    def client_price_texts(self, client: str) -> dict[str, str]:
        return {
            product_type: format_price_text(self.unit_price(client, product_type))
            for product_type in self.product_types_for(client)
        }

    def replace_client(self, name: str, entries: Iterable[PriceEntry]) -> None:
        self.remove_client(name)
        self.entries.extend(self._dedupe(name, entries))

    def remove_client(self, name: str) -> int:
        before = len(self.entries)
        self.entries = [entry for entry in self.entries if entry.client != name]
        return before - len(self.entries)

    def create_client(self, name: str, price_texts: Mapping[str, str]) -> str:
        client = self._clean_name(name)
        self.replace_client(client, self._entries_from_texts(client, price_texts))
        self._logger.info("Client %s created with %s prices", client, len(price_texts))
        return client

    def edit_client(
        self, old_name: str, new_name: str, price_texts: Mapping[str, str]
    ) -> str:
        client = self._clean_name(new_name)
        entries = self._entries_from_texts(client, price_texts)
        if client == old_name:
            self.replace_client(client, entries)
            return client

        self.remove_client(old_name)
        edited_types = {entry.product_type for entry in entries}
        if self.has_client(client):
            self._logger.info("Client %s renamed onto existing %s", old_name, client)
        self.entries = [
            entry
            for entry in self.entries
            if not (entry.client == client and entry.product_type in edited_types)
        ]
        self.entries.extend(entries)
        return client

    @staticmethod
    def _clean_name(name: str) -> str:
        client = (name or "").strip()
        if not client:
            raise ValueError("Client name cannot be blank.")
        return client

    def _entries_from_texts(
        self, client: str, price_texts: Mapping[str, str]
    ) -> list[PriceEntry]:
        return self._dedupe(
            client,
            (
                PriceEntry(client, product_type, parse_price(text))
                for product_type, text in price_texts.items()
            ),
        )

    @staticmethod
    def _dedupe(client: str, entries: Iterable[PriceEntry]) -> list[PriceEntry]:
        seen: set[str] = set()
        unique: list[PriceEntry] = []
        for entry in entries:
            if entry.product_type in seen:
                continue
            seen.add(entry.product_type)
            if entry.client != client:
                entry = PriceEntry(client, entry.product_type, entry.unit_price)
            unique.append(entry)
        return unique
