# storefront/cart/storage.py
"""Storage "locale" del carrello: un blob per chiave."""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

SAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_key(key: str) -> str:
    key = SAFE_RE.sub("_", str(key or "")).strip("._")
    return key[:120] or "cart"


class CartStorage(Protocol):
    def read(self, key: str) -> Optional[str]: ...
    def write(self, key: str, blob: str) -> None: ...


class MemoryCartStorage:
    def __init__(self) -> None:
        self.blobs: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self.blobs[key] = blob


class JsonFileCartStorage:
    """Un file JSON per chiave sotto `directory`; scrittura via file temporaneo + replace."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{safe_key(key)}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, blob: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(blob, encoding="utf-8")
        os.replace(tmp, path)
