from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from palets.data.json_store import JsonFileStore
from palets.models.delivery_note import DeliveryNote, DeliveryNoteLine
from palets.services.delivery_note_store import DeliveryNoteStore


def _note(when: datetime, client: str = "ClientA") -> DeliveryNote:
    return DeliveryNote(
        timestamp=when,
        client=client,
        lines=(
            DeliveryNoteLine("Pallet1", Decimal("5.00"), 4),
            DeliveryNoteLine("Pallet2", Decimal("3.50"), 3),
        ),
    )


class DeliveryNoteStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.notes = DeliveryNoteStore(JsonFileStore(self.root))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_save_and_read_round_trip(self) -> None:
        note = _note(datetime(2024, 5, 1, 10, 30))
        key = self.notes.save(note)
        self.assertIsNotNone(key)
        self.assertTrue(key.startswith("albaran_"))
        self.assertTrue(key.endswith(".json"))

        loaded = self.notes.read(key)
        self.assertEqual(loaded.client, note.client)
        self.assertEqual(loaded.timestamp, note.timestamp)
        self.assertEqual(loaded.lines, note.lines)
        self.assertEqual(loaded.total, Decimal("30.50"))
        self.assertEqual(sum(line.subtotal for line in loaded.lines), loaded.total)

    def test_stored_total_matches_lines(self) -> None:
        key = self.notes.save(_note(datetime(2024, 5, 1, 10, 30)))
        raw = json.loads((self.root / key).read_text(encoding="utf-8"))
        self.assertEqual(Decimal(raw["total"]), Decimal("30.50"))
        self.assertEqual(
            sum(Decimal(line["subtotal"]) for line in raw["lineas"]),
            Decimal(raw["total"]),
        )
        self.assertEqual(raw["cliente"], "ClientA")

    def test_high_precision_prices_round_trip_exactly(self) -> None:
        price = Decimal("1234567890123.4567")
        note = DeliveryNote(
            timestamp=datetime(2024, 5, 1, 10, 30),
            client="ClientA",
            lines=(DeliveryNoteLine("Pallet1", price, 3),),
        )
        key = self.notes.save(note)
        loaded = self.notes.read(key)
        self.assertEqual(loaded.lines[0].unit_price, price)
        self.assertEqual(loaded.total, Decimal("3703703670370.3701"))
        self.assertEqual(self.notes.list_all()[0].total, loaded.total)

    def test_list_all_accepts_mixed_offset_timestamps(self) -> None:
        self.notes.save(_note(datetime(2024, 1, 1, 8, 0), client="Naive"))
        aware = _note(datetime(2024, 6, 1, 8, 0), client="Aware").to_dict()
        aware["fecha"] = "2024-06-01T08:00:00+00:00"
        (self.root / "albaran_5.json").write_text(
            json.dumps(aware, default=str), encoding="utf-8"
        )

        summaries = self.notes.list_all()
        self.assertEqual([summary.client for summary in summaries], ["Aware", "Naive"])
        self.assertTrue(all(summary.timestamp.tzinfo is None for summary in summaries))

    def test_list_all_skips_non_finite_prices(self) -> None:
        self.notes.save(_note(datetime(2024, 1, 1, 8, 0), client="Good"))
        for index, price in enumerate(("NaN", "sNaN", "Infinity"), start=6):
            bad = _note(datetime(2024, 2, 1, 8, 0), client="Bad").to_dict()
            bad["lineas"][0]["precioUnitario"] = price
            (self.root / f"albaran_{index}.json").write_text(
                json.dumps(bad, default=str), encoding="utf-8"
            )
        (self.root / "albaran_9.json").write_text(
            '{"fecha": "2024-03-01T08:00:00", "cliente": "Bad", "total": 0,'
            ' "lineas": [{"palet": "P", "precioUnitario": NaN, "cantidad": 1}]}',
            encoding="utf-8",
        )

        summaries = self.notes.list_all()
        self.assertEqual([summary.client for summary in summaries], ["Good"])

    def test_null_client_is_skipped(self) -> None:
        bad = _note(datetime(2024, 2, 1, 8, 0)).to_dict()
        bad["cliente"] = None
        (self.root / "albaran_7.json").write_text(
            json.dumps(bad, default=str), encoding="utf-8"
        )
        self.assertIsNone(self.notes.read("albaran_7.json"))
        self.assertEqual(self.notes.list_all(), [])

    def test_same_second_saves_do_not_collide(self) -> None:
        when = datetime(2024, 5, 1, 10, 30)
        first = self.notes.save(_note(when))
        second = self.notes.save(_note(when, client="ClientB"))
        self.assertNotEqual(first, second)
        self.assertTrue(second.endswith("_1.json"))
        self.assertEqual(len(self.notes.list_all()), 2)

    def test_list_all_sorts_newest_first_and_skips_bad_records(self) -> None:
        self.notes.save(_note(datetime(2024, 1, 1, 8, 0), client="Old"))
        self.notes.save(_note(datetime(2024, 6, 1, 8, 0), client="New"))
        (self.root / "albaran_1.json").write_text("{not json", encoding="utf-8")
        (self.root / "albaran_2.json").write_text('{"cliente": "x"}', encoding="utf-8")
        (self.root / "inventario.json").write_text("[]", encoding="utf-8")

        summaries = self.notes.list_all()
        self.assertEqual([summary.client for summary in summaries], ["New", "Old"])
        self.assertEqual(summaries[0].total, Decimal("30.50"))

    def test_delete_missing_key_is_noop(self) -> None:
        self.notes.save(_note(datetime(2024, 1, 1, 8, 0)))
        before = self.notes.list_all()
        self.assertFalse(self.notes.delete("albaran_999.json"))
        self.assertEqual(self.notes.list_all(), before)

    def test_delete_removes_record(self) -> None:
        key = self.notes.save(_note(datetime(2024, 1, 1, 8, 0)))
        self.assertTrue(self.notes.delete(key))
        self.assertEqual(self.notes.list_all(), [])
        self.assertIsNone(self.notes.read(key))

    def test_update_keeps_original_timestamp_and_client(self) -> None:
        original = _note(datetime(2024, 2, 2, 12, 0))
        key = self.notes.save(original)
        replacement = DeliveryNote(
            timestamp=datetime(2025, 1, 1),
            client="Someone else",
            lines=(DeliveryNoteLine("Pallet1", Decimal("5.00"), 1),),
        )
        self.assertTrue(self.notes.update(key, replacement))

        loaded = self.notes.read(key)
        self.assertEqual(loaded.timestamp, original.timestamp)
        self.assertEqual(loaded.client, "ClientA")
        self.assertEqual(loaded.total, Decimal("5.00"))
        self.assertEqual(len(self.notes.list_all()), 1)

    def test_edit_quantities_recomputes_from_stored_prices(self) -> None:
        key = self.notes.save(_note(datetime(2024, 2, 2, 12, 0)))
        edited = self.notes.edit_quantities(key, {"Pallet1": 10, "Pallet2": 0})
        self.assertEqual([line.product_type for line in edited.lines], ["Pallet1"])
        self.assertEqual(edited.total, Decimal("50.00"))
        self.assertEqual(self.notes.read(key).total, Decimal("50.00"))

    def test_edit_quantities_on_missing_key_returns_none(self) -> None:
        self.assertIsNone(self.notes.edit_quantities("albaran_1.json", {"Pallet1": 1}))

    def test_read_all_returns_notes_with_keys(self) -> None:
        key = self.notes.save(_note(datetime(2024, 2, 2, 12, 0)))
        self.assertEqual([item[0] for item in self.notes.read_all()], [key])


if __name__ == "__main__":
    unittest.main()
