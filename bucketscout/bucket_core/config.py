"""Bucket Core Configuration - Simple Configuration Management"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, Optional, List

import yaml

from .constants import (
    DEFAULT_DATABASE_URL, DEFAULT_CONCURRENCY_LIMIT, DEFAULT_PROBE_TIMEOUT_MS,
    DEFAULT_LIVENESS_INTERVAL, DEFAULT_MAX_BODY_BYTES, DEFAULT_USER_AGENT,
    DEFAULT_DENY_SUFFIXES, DEFAULT_DENY_SUBSTRINGS, DEFAULT_VENDOR_SIGNATURES,
    DEFAULT_QUEUE_MAX_SIZE, DEFAULT_BACKPRESSURE_POLICY, DEFAULT_LOG_LEVEL,
    VALID_LOG_LEVELS
)
from .exceptions import ConfigurationError
from .models import BackpressurePolicy

logger = logging.getLogger(__name__)


# ===============================================================================
# CONFIGURATION DATA CLASS
# ===============================================================================

@dataclass
class ScoutConfig:
    """Main configuration settings"""

    # Database settings
    database_url: str = DEFAULT_DATABASE_URL

    # Scheduler settings
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    liveness_interval: float = DEFAULT_LIVENESS_INTERVAL

    # Probe settings
    probe_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    follow_redirects: bool = False
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    # Host filter settings
    deny_suffixes: List[str] = field(default_factory=lambda: list(DEFAULT_DENY_SUFFIXES))
    deny_substrings: List[str] = field(default_factory=lambda: list(DEFAULT_DENY_SUBSTRINGS))
    skip_stored_hosts: bool = False

    # Classifier settings
    vendor_signatures: List[str] = field(default_factory=lambda: list(DEFAULT_VENDOR_SIGNATURES))

    # Queue settings (0 = unbounded)
    queue_max_size: int = DEFAULT_QUEUE_MAX_SIZE
    backpressure_policy: str = DEFAULT_BACKPRESSURE_POLICY

    # Logging settings
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = "bucketscout.log"
    enable_file_logging: bool = False

    @property
    def probe_timeout_seconds(self) -> float:
        return self.probe_timeout_ms / 1000.0

    @property
    def policy(self) -> BackpressurePolicy:
        return BackpressurePolicy(self.backpressure_policy)


# ===============================================================================
# CONFIGURATION MANAGER
# ===============================================================================

class ConfigManager:
    """Simple and efficient configuration manager"""

    def __init__(self, config_path: Optional[str] = None, cli_overrides: Optional[Dict[str, Any]] = None):
        self.config_path = config_path or self._get_default_config_path()
        self.config = ScoutConfig()
        self.cli_overrides = cli_overrides or {}
        self._load_config()

    def _get_default_config_path(self) -> str:
        """Get default configuration file path"""
        config_dir = Path.home() / ".bucketscout"
        config_dir.mkdir(exist_ok=True)
        return str(config_dir / "config.yaml")

    def _load_config(self):
        """Load configuration from file and apply CLI overrides"""
        if not os.path.exists(self.config_path):
            self._create_default_config()
        else:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    if self.config_path.endswith('.json'):
                        data = json.load(f)
                    else:
                        data = yaml.safe_load(f) or {}

                if not isinstance(data, dict):
                    raise ValueError(f"expected a mapping of settings, got {type(data).__name__}")

                for key, value in data.items():
                    if hasattr(self.config, key):
                        setattr(self.config, key, value)
                    else:
                        logger.warning(f"Ignoring unknown configuration key: {key}")

            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.warning("Using default configuration.")

        # CLI overrides have the highest priority
        self._apply_cli_overrides()

    def _apply_cli_overrides(self):
        """Apply CLI parameter overrides to configuration"""
        for key, value in self.cli_overrides.items():
            if hasattr(self.config, key) and value is not None:
                setattr(self.config, key, value)

    def _create_default_config(self):
        """Create default configuration file"""
        try:
            yaml_content = self._generate_yaml_with_comments(asdict(self.config))

            with open(self.config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_content)

            logger.info(f"Created default configuration at: {self.config_path}")

        except OSError as e:
            logger.warning(f"Failed to create config file: {e}")

    def _generate_yaml_with_comments(self, data: Dict) -> str:
        """Generate YAML with helpful comments"""
        def _list(values):
            return json.dumps(values)

        return f"""# BucketScout Configuration File
# Generated automatically with default values

# Database Configuration
database_url: "{data['database_url']}"          # SQLAlchemy URL of the findings store

# Scheduler Settings
concurrency_limit: {data['concurrency_limit']}                     # Probes in flight at once
liveness_interval: {data['liveness_interval']}                  # Seconds between liveness ticks

# Probe Settings
probe_timeout_ms: {data['probe_timeout_ms']}                   # Timeout per request (milliseconds)
max_body_bytes: {data['max_body_bytes']}                  # Largest response body read
follow_redirects: {str(data['follow_redirects']).lower()}                 # Follow redirects off the probed host
verify_ssl: {str(data['verify_ssl']).lower()}                        # TLS certificate verification
user_agent: "{data['user_agent']}"

# Host Filter Settings
deny_suffixes: {_list(data['deny_suffixes'])}
deny_substrings: {_list(data['deny_substrings'])}
skip_stored_hosts: {str(data['skip_stored_hosts']).lower()}                # Never re-probe hosts already stored

# Classifier Settings
vendor_signatures: {_list(data['vendor_signatures'])}

# Queue Settings
queue_max_size: {data['queue_max_size']}                        # 0 = unbounded
backpressure_policy: "{data['backpressure_policy']}"       # drop_oldest, reject_new

# Logging Settings
log_level: "{data['log_level']}"                    # DEBUG, INFO, WARNING, ERROR
log_file: "{data['log_file']}"
enable_file_logging: {str(data['enable_file_logging']).lower()}
"""

    def save_config(self):
        """Save current configuration to file"""
        try:
            config_data = asdict(self.config)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                if self.config_path.endswith('.json'):
                    json.dump(config_data, f, indent=2)
                else:
                    yaml.dump(config_data, f, default_flow_style=False, indent=2)

            logger.info(f"Configuration saved to: {self.config_path}")

        except OSError as e:
            raise ConfigurationError(f"Failed to save config: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return getattr(self.config, key, default)

    def set(self, key: str, value: Any):
        """Set configuration value"""
        if not hasattr(self.config, key):
            raise ConfigurationError(f"Unknown configuration key: {key}")
        setattr(self.config, key, value)

    def update(self, **kwargs):
        """Update multiple configuration values"""
        for key, value in kwargs.items():
            self.set(key, value)

    def validate(self) -> List[str]:
        """Validate configuration settings"""
        return validate_config(self.config)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self.config)

    def __repr__(self) -> str:
        return f"ConfigManager(config_path='{self.config_path}')"


# ===============================================================================
# CONFIGURATION UTILITIES
# ===============================================================================

def validate_config(config: ScoutConfig) -> List[str]:
    """Return a list of problems with the given settings (empty when valid)"""
    errors = []

    if config.concurrency_limit <= 0:
        errors.append("concurrency_limit must be positive")
    if config.probe_timeout_ms <= 0:
        errors.append("probe_timeout_ms must be positive")
    if config.liveness_interval <= 0:
        errors.append("liveness_interval must be positive")
    if config.max_body_bytes <= 0:
        errors.append("max_body_bytes must be positive")
    if config.queue_max_size < 0:
        errors.append("queue_max_size cannot be negative")

    valid_policies = [policy.value for policy in BackpressurePolicy]
    if config.backpressure_policy not in valid_policies:
        errors.append(f"backpressure_policy must be one of: {valid_policies}")

    if config.log_level not in VALID_LOG_LEVELS:
        errors.append(f"log_level must be one of: {VALID_LOG_LEVELS}")

    return errors


def load_config(config_path: Optional[str] = None) -> ConfigManager:
    """Load configuration manager"""
    return ConfigManager(config_path)


def create_config_from_dict(data: Dict[str, Any]) -> ScoutConfig:
    """Create ScoutConfig from dictionary"""
    config = ScoutConfig()
    for key, value in data.items():
        if hasattr(config, key):
            setattr(config, key, value)
    return config


def create_cli_overrides(verbose=None, quiet=None, threads=None, timeout=None,
                         database=None, max_queue=None, policy=None) -> Dict[str, Any]:
    """Create CLI overrides dictionary from common parameters"""
    overrides = {}

    if verbose:
        overrides['log_level'] = 'DEBUG'

    if quiet:
        overrides['log_level'] = 'WARNING'

    if threads is not None:
        overrides['concurrency_limit'] = threads

    if timeout is not None:
        overrides['probe_timeout_ms'] = timeout

    if database is not None:
        overrides['database_url'] = database

    if max_queue is not None:
        overrides['queue_max_size'] = max_queue

    if policy is not None:
        overrides['backpressure_policy'] = policy

    return overrides
