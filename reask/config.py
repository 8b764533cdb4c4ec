"""
Client configuration.

There is no process-wide default client: a ClientConfig is built explicitly
(directly or from the environment) and handed to ``Instructor``.

Environment variables (``from_env``, prefix ``REASK_``):
    REASK_PROVIDER, REASK_MODEL, REASK_MODE, REASK_MAX_RETRIES,
    REASK_TEMPERATURE, REASK_MAX_TOKENS, REASK_API_KEY, REASK_BASE_URL,
    REASK_TIMEOUT

A ``.env`` file in the working directory is loaded first (python-dotenv).
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from reask.errors import ConfigError
from reask.types import ResponseMode


@dataclass(frozen=True)
class ClientConfig:
    """
    Defaults applied to every request made through a client.

    Attributes:
        provider: Adapter name ("openai", "anthropic", "mock")
        model: Default model identifier
        mode: Default response mode
        max_retries: Default corrective retry budget
        temperature: Default sampling temperature (provider default if None)
        max_tokens: Default completion cap (provider default if None)
        api_key: Provider API key (adapters fall back to their own env vars)
        base_url: Provider base URL override
        timeout: HTTP timeout in seconds, enforced by the adapter
    """

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    mode: ResponseMode = ResponseMode.TOOLS
    max_retries: int = 3
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ResponseMode(self.mode))
        if self.max_retries < 0:
            raise ConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")

    def adapter_options(self) -> Dict[str, Any]:
        """Keyword arguments for AdapterFactory.create."""
        options: Dict[str, Any] = {"timeout": self.timeout}
        if self.api_key:
            options["api_key"] = self.api_key
        if self.base_url:
            options["base_url"] = self.base_url
        return options

    def with_overrides(self, **changes: Any) -> "ClientConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, prefix: str = "REASK_", load_dotenv_file: bool = True) -> "ClientConfig":
        """
        Build a config from environment variables.

        Args:
            prefix: Variable name prefix
            load_dotenv_file: Load ``.env`` before reading

        Returns:
            ClientConfig: Config with unset variables left at their defaults

        Raises:
            ConfigError: If a variable has an unparseable value
        """
        if load_dotenv_file:
            load_dotenv(find_dotenv(usecwd=True))

        parsers: Dict[str, Callable[[str], Any]] = {
            "provider": str,
            "model": str,
            "mode": ResponseMode,
            "max_retries": int,
            "temperature": float,
            "max_tokens": int,
            "api_key": str,
            "base_url": str,
            "timeout": float,
        }

        values: Dict[str, Any] = {}
        for name, parse in parsers.items():
            env_name = f"{prefix}{name.upper()}"
            raw = os.getenv(env_name)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[name] = parse(raw.strip())
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from e

        return cls(**values)
