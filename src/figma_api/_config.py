"""
Configuration of the Figma API clients.

Settings are grouped in frozen sections (`client`, `retry`) held by the
global `FIGMA` object. Nothing has to be configured: the defaults talk to the
public Figma API and only the access token is usually set, either through
`FIGMA_ACCESS_TOKEN` or `FIGMA.configure()`.

Where a value comes from, first match wins:
1. Arguments passed to `FigmaClient` / `AsyncFigmaClient`
2. `FIGMA.configure(...)`
3. `FIGMA_*` environment variables (unless `allow_env_override=False`)
4. Field defaults

Example:
    >>> from figma_api import FIGMA
    >>> FIGMA.configure(
    ...     client={"access_token": "figd_..."},
    ...     retry={"max_attempts": 5, "max_acceptable_wait": 600},
    ... )
    >>> FIGMA.config.retry.to_policy().max_attempts
    5
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

from figma_api._retry import RetryPolicy

# =============================================================================
# Exceptions
# =============================================================================


class ConfigEnvVarError(ValueError):
    """A `FIGMA_*` environment variable holds a value of the wrong type."""

    def __init__(self, env_var: str, value: str, expected_type: str):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Environment variable {env_var}='{value}' is not a valid {expected_type}")


class ConfigValidationError(ValueError):
    """A configured value is outside its allowed range."""

    def __init__(self, field: str, value: Any, message: str, section: str | None = None):
        self.field = field
        self.value = value
        self.section = section
        where = f"[{section}] {field}" if section else field
        super().__init__(f"{where} = {value!r}: {message}")


# =============================================================================
# Environment Variables
# =============================================================================


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Keyed by type name so string annotations (PEP 563) resolve too.
_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "int": int,
    "float": float,
    "bool": _parse_bool,
}


class EnvVars:
    """
    Typed access to environment variables.

    Example:
        >>> EnvVars.get("FIGMA_RETRY_MAX_ATTEMPTS", type_hint=int)
        5
    """

    @staticmethod
    def get(
        var_name: str,
        type_hint: Any = str,
        converter: Callable[[str], Any] | None = None,
    ) -> Any:
        """
        Return the converted value of `var_name`, or None when unset or empty.

        Raises:
            ConfigEnvVarError: If the value does not convert to `type_hint`.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:
            return None

        type_name = getattr(type_hint, "__name__", str(type_hint))
        convert = converter or _CONVERTERS.get(type_name, str)
        try:
            return convert(raw_value)
        except (TypeError, ValueError) as e:
            raise ConfigEnvVarError(var_name, raw_value, type_name) from e


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Frozen config section that can be copied with some fields changed.

    Fields declare their environment variable with `metadata={"env": ...}`.
    """

    def with_overrides(self, overrides: dict[str, Any]) -> Self:
        """
        Copy this section with the given fields replaced.

        None values keep the current value, so optional constructor arguments
        can be forwarded as-is.

        Raises:
            ValueError: If a key is not a field of this section.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides or {}) - known
        if unknown:
            raise ValueError(
                f"Unknown {type(self).__name__} fields: {sorted(unknown)}. Valid fields are: {sorted(known)}"
            )

        changes = {name: value for name, value in (overrides or {}).items() if value is not None}
        return replace(self, **changes) if changes else self

    def with_env_vars(self) -> Self:
        """
        Copy this section with values read from the fields' environment variables.

        Raises:
            ConfigEnvVarError: If a variable holds an invalid value.
        """
        from_env: dict[str, Any] = {}
        for f in fields(self):
            if env_var := f.metadata.get("env"):
                from_env[f.name] = EnvVars.get(env_var, type_hint=f.type, converter=f.metadata.get("converter"))
        return self.with_overrides(from_env)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class ClientConfig(OverridableConfig):
    """
    Connection settings for the Figma API clients.

    Attributes:
        base_url: Base URL of the Figma REST API.
            Env var: FIGMA_API_BASE_URL

        access_token: Personal access token sent as `X-Figma-Token`.
            Env var: FIGMA_ACCESS_TOKEN

        request_timeout: Transport timeout in seconds for each attempt.
            Env var: FIGMA_REQUEST_TIMEOUT

    Example:
        >>> from figma_api import FIGMA
        >>> FIGMA.config.client.base_url
        'https://api.figma.com/v1/'
    """

    base_url: str = field(default="https://api.figma.com/v1/", metadata={"env": "FIGMA_API_BASE_URL"})
    access_token: str | None = field(default=None, metadata={"env": "FIGMA_ACCESS_TOKEN"})
    request_timeout: float = field(default=30.0, metadata={"env": "FIGMA_REQUEST_TIMEOUT"})

    def has_access_token(self) -> bool:
        return bool(self.access_token)

    def validate(self) -> Self:
        """Validate client configuration fields."""
        if not (self.base_url.startswith("http://") or self.base_url.startswith("https://")):
            raise ConfigValidationError(
                "base_url", self.base_url,
                "Must start with 'http://' or 'https://'.", section="client"
            )
        if self.access_token is not None and self.access_token == "":
            raise ConfigValidationError(
                "access_token", self.access_token,
                "Must not be empty string.", section="client"
            )
        if self.request_timeout <= 0:
            raise ConfigValidationError(
                "request_timeout", self.request_timeout,
                "Must be greater than 0.", section="client"
            )
        return self

    def __repr__(self) -> str:
        token = "'***'" if self.access_token else "None"
        return (
            f"ClientConfig(base_url={self.base_url!r}, access_token={token}, "
            f"request_timeout={self.request_timeout!r})"
        )


@dataclass(frozen=True)
class RetryConfig(OverridableConfig):
    """
    Default retry behavior of the Figma API clients.

    Attributes:
        max_attempts: Total attempts per call, counting the first one.
            Env var: FIGMA_RETRY_MAX_ATTEMPTS

        initial_backoff: Seconds to wait after the first timeout. Doubles
            (see backoff_multiplier) after each further timeout.
            Env var: FIGMA_RETRY_INITIAL_BACKOFF

        backoff_multiplier: Factor applied to the backoff after each timeout.
            Env var: FIGMA_RETRY_BACKOFF_MULTIPLIER

        max_acceptable_wait: Largest Retry-After (seconds) the client waits for.
            A larger value fails the call with RateLimitExceededError.
            Env var: FIGMA_RETRY_MAX_ACCEPTABLE_WAIT

    Example:
        >>> from figma_api import FIGMA
        >>> FIGMA.config.retry.to_policy()
        RetryPolicy(max_attempts=3, initial_backoff=1.0, backoff_multiplier=2.0, max_acceptable_wait=300.0)
    """

    max_attempts: int = field(default=3, metadata={"env": "FIGMA_RETRY_MAX_ATTEMPTS"})
    initial_backoff: float = field(default=1.0, metadata={"env": "FIGMA_RETRY_INITIAL_BACKOFF"})
    backoff_multiplier: float = field(default=2.0, metadata={"env": "FIGMA_RETRY_BACKOFF_MULTIPLIER"})
    max_acceptable_wait: float = field(default=300.0, metadata={"env": "FIGMA_RETRY_MAX_ACCEPTABLE_WAIT"})

    def validate(self) -> Self:
        """Validate retry configuration fields."""
        if self.max_attempts < 1:
            raise ConfigValidationError(
                "max_attempts", self.max_attempts,
                "Must be >= 1.", section="retry"
            )
        if self.initial_backoff <= 0:
            raise ConfigValidationError(
                "initial_backoff", self.initial_backoff,
                "Must be greater than 0.", section="retry"
            )
        if self.backoff_multiplier < 1:
            raise ConfigValidationError(
                "backoff_multiplier", self.backoff_multiplier,
                "Must be >= 1.", section="retry"
            )
        if self.max_acceptable_wait < 0:
            raise ConfigValidationError(
                "max_acceptable_wait", self.max_acceptable_wait,
                "Must be >= 0.", section="retry"
            )
        return self

    def to_policy(self) -> RetryPolicy:
        """Build the immutable retry policy used by the clients."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_backoff=self.initial_backoff,
            backoff_multiplier=self.backoff_multiplier,
            max_acceptable_wait=self.max_acceptable_wait,
        )


@dataclass(frozen=True)
class FigmaConfig:
    """
    The full package configuration: one frozen section per concern.

    Read it through `FIGMA.config`; build modified copies with
    `with_section_overrides()` rather than mutating it.
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    def with_env_vars(self) -> FigmaConfig:
        """Apply `FIGMA_*` environment variables to both sections."""
        return FigmaConfig(
            client=self.client.with_env_vars(),
            retry=self.retry.with_env_vars(),
        )

    def with_section_overrides(
        self,
        *,
        client: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
    ) -> FigmaConfig:
        """
        Copy this config, replacing only the fields named in each section dict.

        Example:
            >>> FigmaConfig().with_section_overrides(retry={"max_attempts": 5}).retry.max_attempts
            5
        """
        return FigmaConfig(
            client=self.client.with_overrides(client or {}),
            retry=self.retry.with_overrides(retry or {}),
        )


# =============================================================================
# Global Configuration Singleton
# =============================================================================


class _FIGMA:
    """
    Holder of the process-wide `FigmaConfig` used by `FigmaClient` and
    `AsyncFigmaClient` when no explicit values are passed.

    Example:
        >>> from figma_api import FIGMA
        >>> FIGMA.configure(client={"access_token": "figd_..."}, retry={"max_attempts": 5})
    """

    def __init__(self) -> None:
        self._config: FigmaConfig = FigmaConfig().with_env_vars()

    def configure(
        self,
        *,
        client: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> FigmaConfig:
        """
        Replace the current configuration, starting again from the defaults.

        Args:
            client: Fields of `ClientConfig` to set.
            retry: Fields of `RetryConfig` to set.
            allow_env_override: When False, `FIGMA_*` variables are not read
                and fields left out keep their hardcoded defaults.

        Returns:
            The new, validated configuration.

        Raises:
            ValueError: On unknown field names.
            ConfigValidationError: On invalid values.
        """
        base = FigmaConfig()
        if allow_env_override:
            base = base.with_env_vars()

        self._config = base.with_section_overrides(client=client, retry=retry)
        return self.validate()

    @property
    def config(self) -> FigmaConfig:
        return self._config

    def reset(self) -> FigmaConfig:
        """Drop anything set by `configure()` and re-read the environment."""
        self._config = FigmaConfig().with_env_vars()
        return self.validate()

    def validate(self) -> FigmaConfig:
        """
        Check every section of the current configuration.

        Raises:
            ConfigValidationError: If a section holds an invalid value.
        """
        self._config.client.validate()
        self._config.retry.validate()
        return self._config

    def __repr__(self) -> str:
        return f"FIGMA(config={self._config!r})"


FIGMA: _FIGMA = _FIGMA()
FIGMA.validate()
