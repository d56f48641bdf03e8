"""Syncer configuration from environment variables or a YAML file."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from core.errors import ConfigurationError
from runner_binaries_syncer.models import CacheObject

DEFAULT_GITHUB_API_URL = "https://api.github.com"

# Environment variable -> SyncerConfig field
ENV_FIELDS: Dict[str, str] = {
    "GITHUB_RUNNER_OS": "runner_os",
    "GITHUB_RUNNER_ARCHITECTURE": "runner_arch",
    "GITHUB_RUNNER_ALLOW_PRERELEASE_BINARIES": "allow_prerelease",
    "S3_BUCKET_NAME": "bucket",
    "S3_OBJECT_KEY": "key",
    "S3_SSE_ALGORITHM": "sse_algorithm",
    "S3_SSE_KMS_KEY_ID": "sse_kms_key_id",
    "S3_ENDPOINT_URL": "s3_endpoint_url",
    "AWS_REGION": "aws_region",
    "GITHUB_API_URL": "github_api_url",
    "GITHUB_TOKEN": "github_token",
    "HTTP_TIMEOUT_SECONDS": "http_timeout_seconds",
    "PROMETHEUS_PUSHGATEWAY": "pushgateway_url",
    "LOG_LEVEL": "log_level",
}


def parse_bool(value: Union[str, bool, None], name: str, default: bool = False) -> bool:
    """
    Parse a boolean setting.

    Real booleans pass through. Strings must be "true" or "false"
    (case-insensitive); anything else is rejected instead of guessed.

    Raises:
        ConfigurationError: If the value is not a recognizable boolean
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == "":
        return default
    if text == "true":
        return True
    if text == "false":
        return False
    raise ConfigurationError(f"{name} must be 'true' or 'false', got {value!r}")


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"http_timeout_seconds must be a number, got {value!r}", cause=e
        ) from e
    if timeout <= 0:
        raise ConfigurationError("http_timeout_seconds must be positive")
    return timeout


@dataclass(frozen=True)
class SyncerConfig:
    """Configuration for a single sync invocation.

    Built once at process start by from_env() or load_config() and passed
    into the syncer. bucket and key are mandatory but only checked by
    cache_object(), so a missing value fails the invocation itself before
    any network call instead of failing the loader.
    """

    # Runner target
    runner_os: str = "linux"
    runner_arch: str = "x64"
    allow_prerelease: bool = False

    # Cache location
    bucket: str = ""
    key: str = ""
    sse_algorithm: Optional[str] = None
    sse_kms_key_id: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    aws_region: Optional[str] = None

    # GitHub
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_token: Optional[str] = None
    http_timeout_seconds: float = 30.0

    # Observability
    pushgateway_url: Optional[str] = None
    log_level: str = "INFO"

    @property
    def target(self) -> str:
        """Runner target label, e.g. linux-x64."""
        return f"{self.runner_os}-{self.runner_arch}"

    def cache_object(self) -> CacheObject:
        """Return the configured cache slot.

        Raises:
            ConfigurationError: If bucket or key is missing
        """
        if not self.bucket or not self.key:
            raise ConfigurationError(
                "Please check all mandatory variables are set.",
                context={"bucket": bool(self.bucket), "key": bool(self.key)},
            )
        return CacheObject(bucket=self.bucket, key=self.key)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SyncerConfig":
        """Build a config from field-name keyed values, ignoring empty ones.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for name, value in values.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if name == "allow_prerelease":
                value = parse_bool(value, name)
            elif name == "http_timeout_seconds":
                value = _parse_timeout(value)
            else:
                value = str(value).strip()
            kwargs[name] = value

        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncerConfig":
        """Load configuration from environment variables.

        Environment variables (all optional at load time):
            GITHUB_RUNNER_OS: linux (default)
            GITHUB_RUNNER_ARCHITECTURE: x64 (default)
            GITHUB_RUNNER_ALLOW_PRERELEASE_BINARIES: false (default)
            S3_BUCKET_NAME: cache bucket (mandatory for sync)
            S3_OBJECT_KEY: cache object key (mandatory for sync)
            S3_SSE_ALGORITHM: server-side encryption, e.g. aws:kms
            S3_SSE_KMS_KEY_ID: KMS key for aws:kms encryption
            S3_ENDPOINT_URL: S3-compatible endpoint override
            AWS_REGION: region for the S3 client
            GITHUB_API_URL: https://api.github.com (default)
            GITHUB_TOKEN: token for authenticated API calls
            HTTP_TIMEOUT_SECONDS: 30 (default)
            PROMETHEUS_PUSHGATEWAY: Pushgateway address for metrics
            LOG_LEVEL: INFO (default)

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ
        values = {
            field_name: env.get(env_name)
            for env_name, field_name in ENV_FIELDS.items()
        }
        return cls.from_mapping(values)


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncerConfig:
    """Load configuration from an optional YAML file plus environment.

    The YAML file holds field names at the top level (or under a
    "syncer" key). Environment variables that are set win over the file.

    Example config.yaml:
        syncer:
          runner_os: linux
          runner_arch: arm64
          allow_prerelease: true
          bucket: my-runner-cache
          key: actions-runner-linux-arm64.tar.gz

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    values: Dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}", cause=e) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {config_path}")
        section = data.get("syncer", data)
        if not isinstance(section, dict):
            raise ConfigurationError("'syncer' section must be a mapping")
        values.update(section)

    env = os.environ if environ is None else environ
    for env_name, field_name in ENV_FIELDS.items():
        env_value = env.get(env_name)
        if env_value is not None and env_value.strip():
            values[field_name] = env_value

    return SyncerConfig.from_mapping(values)
