from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_CONFIG_FILE = "EMITTER_CONFIG_FILE"
DEFAULT_MAX_WORKERS = 16


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey values into a bool.

    Accepts: True/False, 1/0, "true"/"false", "yes"/"no", "on"/"off" (case-insensitive).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off"}:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


@dataclass
class EmitterConfig:
    """Runtime tuning for an EventEmitter.

    Built from (lowest to highest precedence):
    - defaults
    - a TOML file (explicit path, or env EMITTER_CONFIG_FILE); keys at top level or under [emitter]
    - environment variables prefixed EMITTER_
    """

    # Upper bound on listener threads running at once for a single emit
    max_workers: int = DEFAULT_MAX_WORKERS
    # Decode payloads in pydantic strict mode (no "10" -> 10 coercion)
    strict_decoding: bool = False
    # Include payload contents in debug log records
    log_payloads: bool = False

    def validate(self) -> None:
        """Normalize fields to safe values."""
        try:
            self.max_workers = int(self.max_workers)
        except (TypeError, ValueError):
            logger.warning("Invalid max_workers %r; using %d", self.max_workers, DEFAULT_MAX_WORKERS)
            self.max_workers = DEFAULT_MAX_WORKERS
        if self.max_workers < 1:
            logger.warning("max_workers must be >= 1, got %s; clamping to 1", self.max_workers)
            self.max_workers = 1
        self.strict_decoding = bool(self.strict_decoding)
        self.log_payloads = bool(self.log_payloads)

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmitterConfig":
        allowed = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            logger.warning("Ignoring unknown emitter config keys: %s", sorted(unknown))
        obj = cls(**{k: v for k, v in data.items() if k in allowed})
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "EMITTER_MAX_WORKERS": ("max_workers", int),
            "EMITTER_STRICT_DECODING": ("strict_decoding", _as_bool),
            "EMITTER_LOG_PAYLOADS": ("log_payloads", _as_bool),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            raw = env.get(env_key, "")
            if raw == "":
                continue
            try:
                out[field_name] = caster(raw)
            except ValueError as exc:
                logger.error("Invalid env for %s=%r: %s", env_key, raw, exc)
        return out

    @classmethod
    def from_toml_file(cls, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Emitter config file not found: %s", path)
            return {}
        try:
            with path.open("rb") as f:
                doc = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.error("Failed to read emitter config %s: %s", path, exc)
            return {}
        flat: Dict[str, Any] = {k: v for k, v in doc.items() if not isinstance(v, dict)}
        if isinstance(doc.get("emitter"), dict):
            flat.update(doc["emitter"])
        return flat

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Path | str] = None,
    ) -> "EmitterConfig":
        environ = os.environ if env is None else env
        data: Dict[str, Any] = {}
        if file_path is None and environ.get(ENV_CONFIG_FILE):
            file_path = environ[ENV_CONFIG_FILE]
        if file_path is not None:
            data.update(cls.from_toml_file(Path(file_path).expanduser().resolve()))
        data.update(cls.from_env(environ))
        return cls.from_dict(data)


__all__ = ["EmitterConfig", "ENV_CONFIG_FILE", "DEFAULT_MAX_WORKERS"]
