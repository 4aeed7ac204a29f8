from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from palets.data.json_store import JsonFileStore
from palets.models.delivery_note import DeliveryNote, DeliveryNoteSummary
from palets.models.errors import StoreError

NOTE_PREFIX = "albaran_"
NOTE_SUFFIX = ".json"


class DeliveryNoteStore:
    def __init__(self, store: JsonFileStore) -> None:
        self.store = store
        self._logger = logging.getLogger(self.__class__.__name__)

    def key_for(self, note: DeliveryNote) -> str:
        base = f"{NOTE_PREFIX}{int(note.timestamp.timestamp())}"
        key = f"{base}{NOTE_SUFFIX}"
        suffix = 0
        while self.store.exists(key):
            suffix += 1
            key = f"{base}_{suffix}{NOTE_SUFFIX}"
        return key

    def save(self, note: DeliveryNote) -> str | None:
        key = self.key_for(note)
        try:
            self.store.write(key, note.to_dict())
        except StoreError:
            self._logger.exception("Failed to save delivery note for %s", note.client)
            return None
        self._logger.info(
            "Delivery note %s saved for %s (%s lines, total %s)",
            key,
            note.client,
            len(note.lines),
            note.total,
        )
        return key

    def read(self, key: str) -> DeliveryNote | None:
        try:
            raw = self.store.read(key)
        except StoreError as exc:
            self._logger.warning("Cannot read delivery note %s: %s", key, exc)
            return None
        try:
            return DeliveryNote.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            self._logger.warning("Cannot decode delivery note %s: %s", key, exc)
            return None

    def update(self, key: str, note: DeliveryNote) -> bool:
        stored = self.read(key)
        if stored is not None:
            note = replace(note, timestamp=stored.timestamp, client=stored.client)
        try:
            self.store.write(key, note.to_dict())
        except StoreError:
            self._logger.exception("Failed to update delivery note %s", key)
            return False
        self._logger.info("Delivery note %s updated (total %s)", key, note.total)
        return True

    def edit_quantities(
        self, key: str, quantities: Mapping[str, int | None]
    ) -> DeliveryNote | None:
        stored = self.read(key)
        if stored is None:
            return None
        edited = stored.with_quantities(quantities)
        if not self.update(key, edited):
            return None
        return edited

    def list_all(self) -> list[DeliveryNoteSummary]:
        summaries: list[DeliveryNoteSummary] = []
        for key in self.store.list_names(prefix=NOTE_PREFIX, suffix=NOTE_SUFFIX):
            note = self.read(key)
            if note is None:
                continue
            summaries.append(
                DeliveryNoteSummary(
                    key=key,
                    timestamp=note.timestamp,
                    client=note.client,
                    total=note.total,
                )
            )
        summaries.sort(key=lambda summary: summary.timestamp, reverse=True)
        return summaries

    def read_all(self) -> list[tuple[str, DeliveryNote]]:
        notes = []
        for summary in self.list_all():
            note = self.read(summary.key)
            if note is not None:
                notes.append((summary.key, note))
        return notes

    def delete(self, key: str) -> bool:
        try:
            removed = self.store.delete(key)
        except StoreError:
            self._logger.exception("Failed to delete delivery note %s", key)
            return False
        if removed:
            self._logger.info("Delivery note %s deleted", key)
        return removed
