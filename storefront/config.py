# storefront/config.py
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .paths import BASE_DIR, CARTS_DIR

log = logging.getLogger(__name__)

CONFIG_FILE = Path(os.getenv("STOREFRONT_CONFIG", str(BASE_DIR / "config.json")))

@dataclass
class DatabaseConfig:
    url: str = "sqlite:///storefront.db"
    echo: bool = False

@dataclass
class CartConfig:
    directory: str = str(CARTS_DIR)

@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cart: CartConfig = field(default_factory=CartConfig)
    # key for the trusted provisioning boundary; empty means "not configured"
    service_key: str = ""
    log_level: str = "INFO"

def _merge(dst: dict, src: dict) -> dict:
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            dst[k] = _merge(dst[k], v)
        else:
            dst[k] = v
    return dst

def _env_overrides() -> dict:
    out: dict = {}
    if os.getenv("STOREFRONT_DB_URL"):
        out.setdefault("database", {})["url"] = os.environ["STOREFRONT_DB_URL"]
    if os.getenv("STOREFRONT_CART_DIR"):
        out.setdefault("cart", {})["directory"] = os.environ["STOREFRONT_CART_DIR"]
    if os.getenv("STOREFRONT_SERVICE_KEY"):
        out["service_key"] = os.environ["STOREFRONT_SERVICE_KEY"]
    if os.getenv("STOREFRONT_LOG_LEVEL"):
        out["log_level"] = os.environ["STOREFRONT_LOG_LEVEL"]
    return out

def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    data = {
        "database": {"url": "sqlite:///storefront.db", "echo": False},
        "cart": {"directory": str(CARTS_DIR)},
        "service_key": "",
        "log_level": "INFO",
    }
    if path.exists():
        try:
            file_data = json.loads(path.read_text(encoding="utf-8"))
            data = _merge(data, file_data or {})
        except (OSError, ValueError) as e:
            # malformed file: keep defaults
            log.warning("config file %s ignored: %s", path, e)
    data = _merge(data, _env_overrides())

    db = data["database"]
    return AppConfig(
        database=DatabaseConfig(
            url=str(db.get("url", "sqlite:///storefront.db")),
            echo=bool(db.get("echo", False)),
        ),
        cart=CartConfig(directory=str(data["cart"].get("directory", str(CARTS_DIR)))),
        service_key=str(data.get("service_key") or ""),
        log_level=str(data.get("log_level") or "INFO").upper(),
    )

# singleton loaded at import
CONFIG = load_config()
