"""
Configuration validation and environment overrides.
"""
import os
from typing import Any, Mapping, Optional, cast

from omegaconf import DictConfig, OmegaConf

from ..types.types import ConfigurationError

ENV_PREFIX = "WEBDIGEST"

_FAILURE_POLICIES = ("abort", "skip")
_TOKEN_COUNTING = ("tiktoken", "heuristic")


def _env_value(value: str) -> Optional[str]:
    """
    Map ``null``/``none`` to ``None`` and keep everything else as text.

    The structured schema converts text for int, float and bool fields.
    """
    if value.lower() in ("null", "none"):
        return None
    return value


def merge_with_env_vars(
    config: DictConfig,
    prefix: str = ENV_PREFIX,
    environ: Optional[Mapping[str, str]] = None,
) -> DictConfig:
    """
    Merge configuration with environment variables.

    Environment variables override config values using the format
    ``{PREFIX}_{SECTION}__{KEY}={VALUE}``.

    Example:
        WEBDIGEST_PIPELINE__CHUNK_TOKEN_BUDGET=4000

    Values are passed through as strings, so ``config`` should be a structured
    config whose field types do the conversion.

    Args:
        config: Base configuration
        prefix: Environment variable prefix
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Updated configuration
    """
    environ = os.environ if environ is None else environ
    env_vars = {k: v for k, v in environ.items() if k.startswith(f"{prefix}_")}
    # Keys without a section separator (e.g. WEBDIGEST_CONFIG_DIR) are not overrides
    env_vars = {k: v for k, v in env_vars.items() if "__" in k}

    for env_key, env_value in sorted(env_vars.items()):
        config_path = env_key[len(prefix) + 1 :].lower().replace("__", ".")
        try:
            OmegaConf.update(config, config_path, _env_value(env_value), merge=True)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid environment override {env_key}: {e!s}",
                context={"key": env_key},
                cause=e,
            )

    return config


def validate_config(config: DictConfig) -> None:
    """
    Check value ranges the schema types cannot express.

    Raises:
        ConfigurationError: On the first invalid value
    """
    pipeline = config.pipeline

    if pipeline.chunk_token_budget <= 0:
        raise ConfigurationError("pipeline.chunk_token_budget must be > 0")
    if pipeline.concurrency_limit <= 0:
        raise ConfigurationError("pipeline.concurrency_limit must be > 0")
    if pipeline.inter_request_delay < 0 or pipeline.aggregation_delay < 0:
        raise ConfigurationError("pipeline delays must be >= 0")
    if pipeline.failure_policy not in _FAILURE_POLICIES:
        raise ConfigurationError(
            f"pipeline.failure_policy must be one of {_FAILURE_POLICIES}, "
            f"got {pipeline.failure_policy!r}"
        )
    if pipeline.token_counting not in _TOKEN_COUNTING:
        raise ConfigurationError(
            f"pipeline.token_counting must be one of {_TOKEN_COUNTING}, "
            f"got {pipeline.token_counting!r}"
        )
    if pipeline.retry_attempts < 1:
        raise ConfigurationError("pipeline.retry_attempts must be >= 1")
    if pipeline.timeout is not None and pipeline.timeout <= 0:
        raise ConfigurationError("pipeline.timeout must be > 0 when set")

    for section in ("chunk", "final"):
        if cast(Any, config[section]).max_tokens <= 0:
            raise ConfigurationError(f"{section}.max_tokens must be > 0")
