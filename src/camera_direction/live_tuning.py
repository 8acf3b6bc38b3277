# live_tuning.py
"""Hot-reload of fusion parameters from a JSON file."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from loguru import logger

from camera_direction.config import FusionConfig

# Noise values only reach tracks created after the reload.
_TUNABLE: Dict[str, Callable[[Any], Any]] = {
    "update_rate_hz": float,
    "min_blob_size": int,
    "lifetime_threshold": float,
    "motion_noise": float,
    "measurement_noise": float,
}


class RuntimeParamWatcher:
    """Watch a JSON file and hot-reload its contents when it changes."""

    def __init__(self, path: str | Path = "runtime_params.json") -> None:
        self.path = Path(path).expanduser().resolve()
        self._stamp: Tuple[float, int] = (0.0, -1)  # (mtime, size)
        self.params: Dict[str, Any] = {}

        logger.info(f"[Runtime] Watching: {self.path}")
        self._load(initial=True)

    # ------------------------------------------------------------------
    #   Internal helpers
    # ------------------------------------------------------------------
    def _load(self, *, initial: bool = False) -> None:
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                params = json.load(fp)
            stat = self.path.stat()
            self._stamp = (stat.st_mtime, stat.st_size)
        except FileNotFoundError:
            if initial:
                logger.info(f"[Runtime] {self.path} not found – live-tuning disabled (create the file to enable).")
            else:
                logger.warning(f"[Runtime] {self.path} was deleted – keeping old params.")
            return
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(f"[Runtime] Failed to load {self.path}: {exc}")
            return

        if not isinstance(params, dict):
            logger.warning(f"[Runtime] {self.path} must hold a JSON object – keeping old params.")
            return
        self.params = params
        if not initial:
            logger.info(f"[Runtime] Reloaded parameters from {self.path}")

    # ------------------------------------------------------------------
    #   Public API
    # ------------------------------------------------------------------
    def maybe_reload(self) -> bool:
        """
        If the watched file changed since the last call reload it and
        return **True**, else return **False**.
        """
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return False

        mtime, fsize = self._stamp
        if stat.st_size != fsize or stat.st_mtime != mtime:
            self._load()
            return True
        return False

    def get(self, key: str, default: Any | None = None) -> Any:
        return self.params.get(key, default)

    def apply_to(self, cfg: FusionConfig) -> List[str]:
        """Push known keys into ``cfg``; returns the names that changed."""
        changed = []
        for key, cast in _TUNABLE.items():
            if key not in self.params:
                continue
            try:
                value = cast(self.params[key])
            except (TypeError, ValueError):
                logger.warning(f"[Runtime] Ignoring {key}={self.params[key]!r}")
                continue
            if key == "update_rate_hz" and value <= 0:
                logger.warning(f"[Runtime] Ignoring non-positive update_rate_hz={value}")
                continue
            if getattr(cfg, key) != value:
                setattr(cfg, key, value)
                changed.append(key)
        return changed
