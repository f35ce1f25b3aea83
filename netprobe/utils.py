from __future__ import annotations
import json
import os
from pathlib import Path
from typing import List

import requests
import yaml
from pydantic import BaseModel, Field, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from netprobe.agent.logging_setup import get_logger

DEFAULT_CONFIG = "config.json"
CONFIG_ENV = "NETPROBE_CONFIG"
REGISTRY_TIMEOUT = 10  # seconds

log = get_logger(__name__)


class StartupError(RuntimeError):
    """Config or target registry problem the agent cannot run without."""


class AgentConfig(BaseModel):
    hostname: str = Field(..., min_length=1, description="Name reported as the probe source")
    targets_url: str = Field(..., description="Registry URL prefix; the hostname is appended")
    web_socket: str = Field(..., description="Telemetry collector websocket URL")
    log_level: str = "INFO"

    @property
    def registry_url(self) -> str:
        return self.targets_url + self.hostname


def config_path(explicit: str | Path | None = None) -> Path:
    if explicit:
        return Path(explicit)
    return Path(os.getenv(CONFIG_ENV) or DEFAULT_CONFIG)


def load_config(path: str | Path | None = None) -> AgentConfig:
    """Read and validate the agent config (``.json`` as JSON, anything else as YAML)."""
    p = config_path(path)
    log.info("Started loading config", extra={"event": "config_loading", "fields": {"path": str(p)}})
    try:
        text = p.read_text(encoding="utf-8")
        # YAML rejects tab indentation, which is valid JSON
        data = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except OSError as exc:
        raise StartupError(f"cannot read config {p}: {exc}") from exc
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise StartupError(f"malformed config {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise StartupError(f"config {p} must be a mapping, got {type(data).__name__}")
    try:
        config = AgentConfig(**data)
    except ValidationError as exc:
        raise StartupError(f"invalid config {p}: {exc}") from exc
    log.info("Loaded config", extra={"event": "config_loaded", "fields": {"hostname": config.hostname}})
    return config


@retry(
    stop=stop_after_attempt(2),
    wait=wait_fixed(1),
    retry=retry_if_exception_type(requests.ConnectionError),
    reraise=True,
)
def _get(url: str) -> requests.Response:
    return requests.get(url, timeout=REGISTRY_TIMEOUT)


def fetch_targets(config: AgentConfig) -> List[str]:
    """Fetch the target address list for this host from the registry.

    Called once at startup; every failure is fatal.
    """
    url = config.registry_url
    log.info("Started retrieving targets", extra={"event": "targets_fetching", "fields": {"url": url}})
    try:
        resp = _get(url)
        resp.raise_for_status()
        targets = resp.json()
    except requests.RequestException as exc:
        raise StartupError(f"target registry {url} unavailable: {exc}") from exc
    except ValueError as exc:
        raise StartupError(f"target registry {url} returned invalid JSON: {exc}") from exc

    if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
        raise StartupError(f"target registry {url} must return a JSON array of strings")
    log.info(
        "Ended retrieving targets",
        extra={"event": "targets_fetched", "fields": {"count": len(targets)}},
    )
    return targets
