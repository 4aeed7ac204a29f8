from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from PySide6.QtCore import QObject, Signal

from palets.core.config import AppConfig
from palets.models.delivery_note import DeliveryNote
from palets.services.delivery_note_store import DeliveryNoteStore
from palets.services.line_items import LineItemSet
from palets.services.price_catalog import PriceCatalog
from palets.utils.numeric import parse_quantity


class AlbaranController(QObject):
    """Owns the delivery-note editing session.

    Every mutation re-derives the current lines and emits a signal so a view
    can refresh; nothing here touches widgets.
    """

    client_changed = Signal(str)
    lines_changed = Signal()
    catalog_changed = Signal()
    note_saved = Signal(str)

    def __init__(
        self,
        catalog: PriceCatalog,
        note_store: DeliveryNoteStore,
        config: AppConfig,
        parent=None,
        save_config: bool = True,
    ) -> None:
        super().__init__(parent)
        self.catalog = catalog
        self.note_store = note_store
        self.config = config
        self.save_config = save_config
        self.selected_client = ""
        self.line_items = LineItemSet()
        self.editing_key: str | None = None
        self.editing_note: DeliveryNote | None = None
        self.editing_quantities: dict[str, int | None] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    def start(self) -> str:
        if self.catalog.is_empty():
            self.catalog.load()
        clients = self.catalog.clients()
        preferred = self.config.default_client
        if preferred and preferred in clients:
            client = preferred
        else:
            client = clients[0] if clients else ""
        self.select_client(client)
        return client

    def clients(self) -> list[str]:
        return self.catalog.clients()

    def select_client(self, client: str) -> None:
        self.selected_client = client
        self.line_items = LineItemSet.init_for(self.catalog, client)
        self.client_changed.emit(client)
        self.lines_changed.emit()

    def set_quantity(self, product_type: str, text: str) -> int | None:
        quantity = self.line_items.set_quantity(product_type, text)
        self.lines_changed.emit()
        return quantity

    def reset(self) -> None:
        self.line_items.reset_all()
        self.lines_changed.emit()

    def total(self) -> Decimal:
        return self.line_items.total()

    def save_note(self) -> str | None:
        note = self.line_items.finalize()
        key = self.note_store.save(note)
        if key is not None:
            self.note_saved.emit(key)
        return key

    def set_default_client(self, client: str | None) -> None:
        self.config.default_client = client or None
        if self.save_config:
            try:
                self.config.save()
            except OSError:
                self._logger.exception("Failed to save default client")

    def create_client(self, name: str, price_texts: Mapping[str, str]) -> str:
        client = self.catalog.create_client(name, price_texts)
        self._after_catalog_edit(client)
        return client

    def edit_client(
        self, old_name: str, new_name: str, price_texts: Mapping[str, str]
    ) -> str:
        client = self.catalog.edit_client(old_name, new_name, price_texts)
        if self.config.default_client == old_name:
            self.set_default_client(client)
        self._after_catalog_edit(client)
        return client

    def remove_client(self, name: str) -> None:
        self.catalog.remove_client(name)
        self.catalog.save()
        self.catalog_changed.emit()
        if self.selected_client == name:
            clients = self.catalog.clients()
            self.select_client(clients[0] if clients else "")

    def _after_catalog_edit(self, client: str) -> None:
        self.catalog.save()
        self.catalog_changed.emit()
        self.select_client(client)

    def open_note(self, key: str) -> DeliveryNote | None:
        note = self.note_store.read(key)
        if note is None:
            return None
        self.editing_key = key
        self.editing_note = note
        self.editing_quantities = {line.product_type: line.quantity for line in note.lines}
        return note

    def set_note_quantity(self, product_type: str, text: str) -> DeliveryNote | None:
        if self.editing_note is None or product_type not in self.editing_quantities:
            return None
        self.editing_quantities[product_type] = parse_quantity(text)
        return self.edited_note()

    def edited_note(self) -> DeliveryNote | None:
        if self.editing_note is None:
            return None
        return self.editing_note.with_quantities(self.editing_quantities)

    def save_note_edit(self) -> bool:
        note = self.edited_note()
        if self.editing_key is None or note is None:
            return False
        if not self.note_store.update(self.editing_key, note):
            return False
        self.editing_note = note
        self.note_saved.emit(self.editing_key)
        return True

    def close_note(self) -> None:
        self.editing_key = None
        self.editing_note = None
        self.editing_quantities = {}
