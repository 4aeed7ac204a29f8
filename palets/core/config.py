import json
import threading
from dataclasses import dataclass, field
from pathlib import Path

from palets.core.paths import app_dir, default_data_dir

CONFIG_PATH = app_dir() / "config.json"
_CONFIG_LOCK = threading.RLock()

DEFAULT_CLIENT_PREFIX_ORDER = ["Palets", "Maderas", "Reciclajes"]


@dataclass
class AppConfig:
    data_dir: str | None = None
    default_client: str | None = None
    client_prefix_order: list[str] = field(
        default_factory=lambda: list(DEFAULT_CLIENT_PREFIX_ORDER)
    )
    persist_cash_tally: bool = True

    @classmethod
    def _default_data(cls) -> dict[str, object]:
        return {
            "data_dir": None,
            "default_client": None,
            "client_prefix_order": list(DEFAULT_CLIENT_PREFIX_ORDER),
            "persist_cash_tally": True,
        }

    @classmethod
    def _read_data_locked(cls) -> dict[str, object]:
        if not CONFIG_PATH.exists():
            return cls._default_data()
        try:
            raw = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return cls._default_data()
        if not isinstance(raw, dict):
            return cls._default_data()
        data = cls._default_data()
        for key in data:
            if key in raw:
                data[key] = raw.get(key)
        return data

    @classmethod
    def _write_data_locked(cls, data: dict[str, object]) -> None:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = CONFIG_PATH.with_name(f"{CONFIG_PATH.name}.tmp")
        tmp_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        tmp_path.replace(CONFIG_PATH)

    @classmethod
    def _from_data(cls, data: dict[str, object]) -> "AppConfig":
        prefixes = data.get("client_prefix_order")
        if not isinstance(prefixes, list):
            prefixes = list(DEFAULT_CLIENT_PREFIX_ORDER)
        default_client = data.get("default_client")
        return cls(
            data_dir=data.get("data_dir") or None,
            default_client=str(default_client) if default_client else None,
            client_prefix_order=[str(prefix) for prefix in prefixes],
            persist_cash_tally=bool(data.get("persist_cash_tally", True)),
        )

    @classmethod
    def load(cls) -> "AppConfig":
        with _CONFIG_LOCK:
            data = cls._read_data_locked()
        return cls._from_data(data)

    def to_dict(self) -> dict[str, object]:
        return {
            "data_dir": self.data_dir,
            "default_client": self.default_client,
            "client_prefix_order": list(self.client_prefix_order),
            "persist_cash_tally": self.persist_cash_tally,
        }

    def save(self) -> None:
        with _CONFIG_LOCK:
            self._write_data_locked(self.to_dict())

    @classmethod
    def save_partial(cls, **updates) -> "AppConfig":
        with _CONFIG_LOCK:
            data = cls._read_data_locked()
            for key, value in updates.items():
                if key in data:
                    data[key] = value
            cls._write_data_locked(data)
            return cls._from_data(data)

    def resolved_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return default_data_dir()
