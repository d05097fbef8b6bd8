"""
Service configuration.

Sources, lowest to highest precedence:
- dataclass defaults,
- an optional YAML file (`--config`),
- environment variables.

The program identity and verifying key are fixed per deployment; they are
injected into the verifier at construction and never change afterwards.
Invalid values raise `ConfigError` (fail-closed at startup).
"""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..core.groth16 import Groth16EncodingError, VerifyingKey
from ..core.identity import ProgramIdentity
from ..core.journal import JournalSchema
from ..core.payload import DEFAULT_MAX_PAYLOAD_BYTES
from .proof_verifier import BACKEND_GROTH16, BACKENDS, ProofVerifierConfig


DEFAULT_ROLLUP_HTTP_SERVER_URL = "http://127.0.0.1:5004"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class VerifierServiceConfig:
    rollup_http_server_url: str = DEFAULT_ROLLUP_HTTP_SERVER_URL
    backend: str = BACKEND_GROTH16
    program_identity: Optional[ProgramIdentity] = None
    verifying_key: Optional[VerifyingKey] = None
    journal_schema: JournalSchema = field(default_factory=lambda: JournalSchema(("bool",)))
    emit_notices: bool = True
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    # None blocks until the node answers; bound it by the node's heartbeat in production.
    finish_timeout_s: Optional[float] = None
    post_timeout_s: Optional[float] = 10.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.rollup_http_server_url, str) or not self.rollup_http_server_url.strip():
            raise ConfigError("rollup_http_server_url must be a non-empty string")
        if not self.rollup_http_server_url.startswith(("http://", "https://")):
            raise ConfigError("rollup_http_server_url must be an http(s) URL")
        if not isinstance(self.max_payload_bytes, int) or isinstance(self.max_payload_bytes, bool) or self.max_payload_bytes <= 0:
            raise ConfigError("max_payload_bytes must be a positive int")
        for name in ("finish_timeout_s", "post_timeout_s"):
            v = getattr(self, name)
            if v is not None and (not isinstance(v, (int, float)) or isinstance(v, bool) or not math.isfinite(v) or v <= 0):
                raise ConfigError(f"{name} must be a positive finite number or null")
        if self.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {list(BACKENDS)}, got {self.backend!r}")
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {sorted(_LOG_LEVELS)}")

    def proof_verifier_config(self) -> ProofVerifierConfig:
        return ProofVerifierConfig(
            backend=self.backend,
            program_identity=self.program_identity,
            verifying_key=self.verifying_key,
            journal_schema=self.journal_schema,
        )


def _parse_bool(raw: Any, *, name: str) -> bool:
    if isinstance(raw, bool):
        return raw
    v = str(raw).strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(raw: Any, *, name: str) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{name} must be an int")
    try:
        return int(str(raw).strip(), 10) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an int, got {raw!r}") from exc


def _parse_timeout(raw: Any, *, name: str) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, str) and raw.strip().lower() in {"", "none", "null"}:
        return None
    try:
        v = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(v):
        raise ConfigError(f"{name} must be finite, got {raw!r}")
    return v


def load_verifying_key(path: Path) -> VerifyingKey:
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read verifying key file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"verifying key file {path} is not valid JSON: {exc}") from exc
    return _verifying_key_from_obj(obj, name=str(path))


def _verifying_key_from_obj(obj: Any, *, name: str) -> VerifyingKey:
    try:
        return VerifyingKey.from_json_dict(obj)
    except (Groth16EncodingError, ValueError) as exc:
        raise ConfigError(f"invalid verifying key ({name}): {exc}") from exc


def _identity(raw: Any, *, name: str) -> ProgramIdentity:
    try:
        return ProgramIdentity.parse(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name}: {exc}") from exc


def _schema(raw: Any, *, name: str) -> JournalSchema:
    try:
        return JournalSchema.parse(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name}: {exc}") from exc


def _apply(values: Dict[str, Any], raw: Mapping[str, Any], *, base_dir: Path, source: str) -> None:
    for key, value in raw.items():
        name = f"{source}:{key}"
        if key == "rollup_http_server_url":
            values[key] = str(value).strip()
        elif key == "backend":
            values[key] = str(value).strip().lower()
        elif key == "program_identity":
            values[key] = _identity(value, name=name)
        elif key == "verifying_key":
            values[key] = _verifying_key_from_obj(value, name=name)
        elif key == "verifying_key_file":
            path = Path(str(value))
            values["verifying_key"] = load_verifying_key(path if path.is_absolute() else base_dir / path)
        elif key == "journal_schema":
            values[key] = _schema(value, name=name)
        elif key == "emit_notices":
            values[key] = _parse_bool(value, name=name)
        elif key == "max_payload_bytes":
            values[key] = _parse_int(value, name=name)
        elif key in ("finish_timeout_s", "post_timeout_s"):
            values[key] = _parse_timeout(value, name=name)
        elif key == "log_level":
            values[key] = str(value).strip().upper()
        else:
            raise ConfigError(f"unknown configuration key: {name}")


_ENV_KEYS = {
    "ROLLUP_HTTP_SERVER_URL": "rollup_http_server_url",
    "VERIFIER_BACKEND": "backend",
    "VERIFIER_PROGRAM_IDENTITY": "program_identity",
    "VERIFIER_VERIFYING_KEY_FILE": "verifying_key_file",
    "VERIFIER_JOURNAL_SCHEMA": "journal_schema",
    "VERIFIER_EMIT_NOTICES": "emit_notices",
    "VERIFIER_MAX_PAYLOAD_BYTES": "max_payload_bytes",
    "VERIFIER_FINISH_TIMEOUT_S": "finish_timeout_s",
    "VERIFIER_POST_TIMEOUT_S": "post_timeout_s",
    "VERIFIER_LOG_LEVEL": "log_level",
}


def load_config(path: Optional[Path] = None, *, environ: Optional[Mapping[str, str]] = None) -> VerifierServiceConfig:
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if path is not None:
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"config file {path} is not valid YAML: {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ConfigError(f"config file {path} must contain a mapping")
        _apply(values, raw, base_dir=path.resolve().parent, source=str(path))

    env_raw = {}
    for env_name, key in _ENV_KEYS.items():
        v = env.get(env_name)
        if v is not None and v.strip():
            env_raw[key] = v.strip()
    _apply(values, env_raw, base_dir=Path.cwd(), source="env")

    return replace(VerifierServiceConfig(), **values)
