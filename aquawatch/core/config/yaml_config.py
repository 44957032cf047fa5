from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass(frozen=True)
class TcpClientConfig:
    """TCP client connection settings used by the readings receiver."""
    host: str = "127.0.0.1"
    port: int = 9009
    timeout_s: float = 5.0
    reconnect_delay_s: float = 0.5


@dataclass(frozen=True)
class WebhookConfigData:
    """Webhook notifier configuration (URL + auth)."""
    url: str
    auth_header: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True


@dataclass(frozen=True)
class EvaluatorConfig:
    """Notification evaluator parameters. Zero disables re-alert suppression."""
    min_realert_interval_s: float = 0.0


@dataclass(frozen=True)
class ApiConfig:
    """HTTP API bind address and bearer token."""
    host: str = "0.0.0.0"
    port: int = 8000
    token: str = "dev-token"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    Holds every runtime-tunable value. The threshold table is not part of it.
    """
    transport: TcpClientConfig = field(default_factory=TcpClientConfig)
    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    webhook: Optional[WebhookConfigData] = None


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) AQUAWATCH_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    env = os.getenv("AQUAWATCH_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    # PyInstaller-friendly: executable directory
    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return value


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Convert a decoded YAML mapping into typed config objects.

    Environment overrides
    ---------------------
    - ``AQUAWATCH_API_TOKEN`` replaces ``api.token``
    - ``AQUAWATCH_WEBHOOK_URL`` replaces (or provides) ``webhook.url``

    Raises
    ------
    ValueError
        If a section has the wrong shape or a value cannot be converted.
    """
    # ---- transport ----
    t = _section(_section(raw, "transport"), "tcp_client")
    transport = TcpClientConfig(
        host=str(t.get("host", "127.0.0.1")),
        port=int(t.get("port", 9009)),
        timeout_s=float(t.get("timeout_s", 5.0)),
        reconnect_delay_s=float(t.get("reconnect_delay_s", 0.5)),
    )

    # ---- evaluator ----
    e = _section(raw, "evaluator")
    interval = float(e.get("min_realert_interval_s", 0.0))
    if interval < 0:
        raise ValueError("evaluator.min_realert_interval_s must be >= 0")
    evaluator = EvaluatorConfig(min_realert_interval_s=interval)

    # ---- api ----
    a = _section(raw, "api")
    api = ApiConfig(
        host=str(a.get("host", "0.0.0.0")),
        port=int(a.get("port", 8000)),
        token=os.getenv("AQUAWATCH_API_TOKEN") or str(a.get("token", "dev-token")),
    )

    # ---- logging ----
    lg = _section(raw, "logging")
    log_cfg = LoggingConfig(level=str(lg.get("level", "INFO")).upper())

    # ---- webhook (optional) ----
    w = _section(raw, "webhook")
    url = os.getenv("AQUAWATCH_WEBHOOK_URL") or w.get("url")
    webhook = None
    if url:
        webhook = WebhookConfigData(
            url=str(url),
            auth_header=w.get("auth_header"),
            timeout_s=float(w.get("timeout_s", 3.0)),
            verify_tls=bool(w.get("verify_tls", True)),
        )

    return AppConfig(
        transport=transport,
        evaluator=evaluator,
        api=api,
        logging=log_cfg,
        webhook=webhook,
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If fields are malformed.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    return parse_app_config(_read_yaml(cfg_path))
