from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class TerminalConfig:
    api_url: str = "http://localhost:5000"
    # Seconds; requests past this raise RequestTimeout
    timeout: float = 5.0
    storage_path: str = os.path.join("~", ".tokopos", "terminal.json")
    # Repeat scans of the same product inside this window are ignored
    scan_debounce_seconds: float = 0.3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TerminalConfig":
        env = os.environ if environ is None else environ
        return cls(
            api_url=env.get("POS_API_URL", cls.api_url),
            timeout=float(env.get("POS_API_TIMEOUT", cls.timeout)),
            storage_path=env.get("POS_STORAGE_PATH", cls.storage_path),
            scan_debounce_seconds=float(env.get("POS_SCAN_DEBOUNCE", cls.scan_debounce_seconds)),
        )
