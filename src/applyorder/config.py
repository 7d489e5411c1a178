"""Configuration management for applyorder."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml


class FailurePolicy(str, Enum):
    """Policy for handling resource failures during a run."""

    FAIL_FAST = "fail_fast"  # Finish the current layer, then stop
    CONTINUE = "continue"  # Keep going with later layers


@dataclass
class PolicyConfig:
    """
    Policy configuration for apply and prune runs.

    Controls concurrency within a layer, failure handling and how strictly
    dependency facts are checked.
    """

    max_concurrent_operations: int = 10  # Per-layer worker limit
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    strict_references: bool = True  # Reject dependencies on undeclared resources

    def __post_init__(self) -> None:
        if isinstance(self.failure_policy, str):
            self.failure_policy = FailurePolicy(self.failure_policy)
        if isinstance(self.max_concurrent_operations, bool) or not isinstance(
            self.max_concurrent_operations, int
        ):
            raise ValueError(
                "max_concurrent_operations must be an integer, "
                f"got {type(self.max_concurrent_operations).__name__}"
            )
        if self.max_concurrent_operations < 1:
            raise ValueError(
                f"max_concurrent_operations must be at least 1, got {self.max_concurrent_operations}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"  # "console" or "json"
    file: Path | None = None

    @property
    def json_logs(self) -> bool:
        return self.format.lower() == "json"


@dataclass
class OrderConfig:
    """
    Complete configuration for applyorder.

    This combines all configuration sections.
    """

    policy: PolicyConfig = field(default_factory=PolicyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "OrderConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            OrderConfig instance
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        logging_data = dict(data.get("logging") or {})
        # Convert file path string to Path if present
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])

        try:
            policy = PolicyConfig(**(data.get("policy") or {}))
            logging = LoggingConfig(**logging_data)
        except TypeError as e:
            raise ValueError(f"Unknown setting in configuration file {config_path}: {e}") from e

        return cls(policy=policy, logging=logging)

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save config file
        """
        data = {
            "policy": {
                k: v.value if isinstance(v, Enum) else v for k, v in self.policy.__dict__.items()
            },
            "logging": {
                k: str(v) if isinstance(v, Path) else v
                for k, v in self.logging.__dict__.items()
                if v is not None
            },
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "OrderConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            APPLYORDER_MAX_CONCURRENCY: Per-layer worker limit (default: 10)
            APPLYORDER_FAILURE_POLICY: fail_fast or continue (default: fail_fast)
            APPLYORDER_LOG_LEVEL: Logging level (default: INFO)
            APPLYORDER_LOG_FORMAT: console or json (default: console)

        Returns:
            OrderConfig instance

        Raises:
            ValueError: If a variable holds an invalid value
        """
        max_concurrency = os.environ.get("APPLYORDER_MAX_CONCURRENCY", "10")
        try:
            max_concurrent_operations = int(max_concurrency)
        except ValueError as e:
            raise ValueError(
                f"APPLYORDER_MAX_CONCURRENCY must be an integer, got {max_concurrency!r}"
            ) from e

        policy = PolicyConfig(
            max_concurrent_operations=max_concurrent_operations,
            failure_policy=FailurePolicy(
                os.environ.get("APPLYORDER_FAILURE_POLICY", FailurePolicy.FAIL_FAST.value)
            ),
        )

        logging_config = LoggingConfig(
            level=os.environ.get("APPLYORDER_LOG_LEVEL", "INFO"),
            format=os.environ.get("APPLYORDER_LOG_FORMAT", "console"),
        )

        return cls(policy=policy, logging=logging_config)


def load_config(config_file: Path | None = None) -> OrderConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        OrderConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return OrderConfig.from_file(config_file)
    return OrderConfig.from_env()
