from __future__ import annotations

import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

from palets.data.json_store import JsonFileStore
from palets.services.cash_tally import DENOMINATIONS, CashTally


class CashTallyTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonFileStore(Path(self._tmp.name))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_total_sums_denominations(self) -> None:
        tally = CashTally()
        tally.set_count("50 €", "2")
        tally.set_count("0,20 €", "3")
        tally.increment("1 €")
        self.assertEqual(tally.line_total("50 €"), Decimal("100.00"))
        self.assertEqual(tally.total(), Decimal("101.60"))

    def test_invalid_counts_become_zero(self) -> None:
        tally = CashTally()
        self.assertEqual(tally.set_count("5 €", "cinco"), 0)
        self.assertEqual(tally.set_count("5 €", "-1"), 0)
        self.assertEqual(tally.decrement("5 €"), 0)

    def test_unknown_denomination_raises(self) -> None:
        with self.assertRaises(ValueError):
            CashTally().set_count("3 €", "1")

    def test_clear_all(self) -> None:
        tally = CashTally()
        tally.set_count("20 €", "4")
        tally.clear_all()
        self.assertEqual(tally.total(), Decimal("0"))
        self.assertEqual(len(tally.counts), len(DENOMINATIONS))

    def test_session_scoped_without_store(self) -> None:
        tally = CashTally()
        self.assertFalse(tally.is_persistent)
        tally.set_count("10 €", "1")
        self.assertFalse(tally.save())

    def test_persistent_tally_survives_reload(self) -> None:
        tally = CashTally(self.store)
        tally.load()
        tally.set_count("100 €", "3")
        tally.increment("0,05 €")

        reloaded = CashTally(self.store)
        reloaded.load()
        self.assertEqual(reloaded.denomination("100 €").count, 3)
        self.assertEqual(reloaded.total(), Decimal("300.05"))


if __name__ == "__main__":
    unittest.main()
