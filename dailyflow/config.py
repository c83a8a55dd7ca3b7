"""Runtime configuration read from the environment at startup."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .ai import DEFAULT_MODEL, SUPPORTED_PROVIDERS, PlanGenerator
from .paths import data_directory

API_KEY_VARIABLES = ("DAILYFLOW_API_KEY", "GEMINI_API_KEY", "API_KEY")

_DEFAULT_MODELS = {
    "gemini": DEFAULT_MODEL,
    "openai": "gpt-4o-mini",
    "local": "local-model",
}


@dataclass(frozen=True)
class RuntimeConfig:
    provider: str
    model: str
    api_key: str
    endpoint: str
    data_dir: Path
    log_level: str
    timeout: float


def load_runtime_config(environ: Mapping[str, str] | None = None) -> RuntimeConfig:
    env = os.environ if environ is None else environ

    provider = env.get("DAILYFLOW_PROVIDER", "gemini").strip().lower() or "gemini"
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"DAILYFLOW_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)}, got {provider!r}"
        )

    api_key = ""
    for name in API_KEY_VARIABLES:
        value = env.get(name, "").strip()
        if value:
            api_key = value
            break

    try:
        timeout = float(env.get("DAILYFLOW_TIMEOUT", "120"))
    except ValueError:
        timeout = 120.0

    return RuntimeConfig(
        provider=provider,
        model=env.get("DAILYFLOW_MODEL", "").strip() or _DEFAULT_MODELS[provider],
        api_key=api_key,
        endpoint=env.get("DAILYFLOW_ENDPOINT", "").strip(),
        data_dir=data_directory(dict(env)),
        log_level=env.get("DAILYFLOW_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        timeout=max(1.0, timeout),
    )


def build_generator(config: RuntimeConfig) -> PlanGenerator:
    return PlanGenerator(
        api_key=config.api_key,
        model=config.model,
        provider=config.provider,
        endpoint=config.endpoint,
        timeout=config.timeout,
    )
