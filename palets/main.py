from __future__ import annotations

import faulthandler
import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

if __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from palets.controllers.albaran_controller import AlbaranController
from palets.core.config import AppConfig
from palets.core.logging_setup import setup_logging
from palets.data.json_store import JsonFileStore
from palets.services.cash_tally import CashTally
from palets.services.delivery_note_store import DeliveryNoteStore
from palets.services.export_service import ExportService
from palets.services.price_catalog import PriceCatalog
from palets.services.stack_inventory import StackInventory
from palets.services.truck_load import TruckLoadTally

_CRASH_FILE = None


@dataclass
class AppServices:
    config: AppConfig
    store: JsonFileStore
    catalog: PriceCatalog
    notes: DeliveryNoteStore
    inventory: StackInventory
    cash: CashTally
    truck: TruckLoadTally
    albaran: AlbaranController
    exporter: ExportService


def build_services(config: AppConfig, save_config: bool = True) -> AppServices:
    store = JsonFileStore(config.resolved_data_dir())
    catalog = PriceCatalog(store, prefix_order=config.client_prefix_order)
    notes = DeliveryNoteStore(store)
    return AppServices(
        config=config,
        store=store,
        catalog=catalog,
        notes=notes,
        inventory=StackInventory(store),
        cash=CashTally(store if config.persist_cash_tally else None),
        truck=TruckLoadTally(store),
        albaran=AlbaranController(catalog, notes, config, save_config=save_config),
        exporter=ExportService(),
    )


def start_services(services: AppServices) -> None:
    services.albaran.start()
    services.inventory.load()
    services.cash.load()
    services.truck.load()


def shutdown_services(services: AppServices) -> None:
    services.inventory.save()
    services.cash.save()
    services.truck.save()


def main() -> int:
    """Bootstrap and smoke check: load every store, log what was found, save
    the snapshots and exit. A UI embeds the services through
    ``build_services`` and ``start_services`` instead.
    """
    setup_logging()
    _install_exception_hook()
    _install_crash_logging()
    _install_thread_exception_hook()
    _install_unraisable_hook()

    config = AppConfig.load()
    services = build_services(config)
    start_services(services)

    logger = logging.getLogger("AppLifecycle")
    logger.info(
        "Data dir %s: %s clients, %s delivery notes, %s truck entries",
        services.store.directory,
        len(services.catalog.clients()),
        len(services.notes.list_all()),
        len(services.truck.lines),
    )
    shutdown_services(services)
    return 0


def _install_exception_hook() -> None:
    logger = logging.getLogger("UnhandledException")

    def handle_exception(exc_type, exc_value, exc_traceback) -> None:
        logger.exception(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )
        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    sys.excepthook = handle_exception


def _install_crash_logging() -> None:
    try:
        from palets.core.logging_setup import LOG_DIR

        crash_path = LOG_DIR / "crash.log"
        crash_path.parent.mkdir(parents=True, exist_ok=True)
        global _CRASH_FILE
        _CRASH_FILE = open(crash_path, "a", encoding="utf-8", buffering=1)
        faulthandler.enable(file=_CRASH_FILE, all_threads=True)
        logger = logging.getLogger("CrashLogger")
        logger.info("Crash logging enabled at %s", crash_path)
    except Exception:  # noqa: BLE001
        logging.getLogger("CrashLogger").exception(
            "Failed to enable crash logging"
        )


def _install_thread_exception_hook() -> None:
    logger = logging.getLogger("ThreadException")

    def handle(args: threading.ExceptHookArgs) -> None:
        logger.exception(
            "Unhandled thread exception",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    threading.excepthook = handle


def _install_unraisable_hook() -> None:
    logger = logging.getLogger("UnraisableException")

    def handle(unraisable) -> None:  # noqa: ANN001
        logger.error(
            "Unraisable exception",
            exc_info=(
                unraisable.exc_type,
                unraisable.exc_value,
                unraisable.exc_traceback,
            ),
        )

    sys.unraisablehook = handle


if __name__ == "__main__":
    raise SystemExit(main())
