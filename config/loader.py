"""
Configuration Loader - Loads and validates application configuration

Usage:
    from config.loader import get_config

    config = get_config()
    print(config.supabase_url)
    print(config.session_ttl)

Configuration lives in config/app.yaml. String values may reference
environment variables as ${VAR_NAME} or ${VAR_NAME:-default}; the
substituted document is validated against config/schema.json.
"""

import yaml
import json
import os
import re
import logging
from datetime import timedelta
from pathlib import Path
from typing import Dict, Any, Optional
from jsonschema import validate, ValidationError

logger = logging.getLogger(__name__)

DEV_SESSION_SECRET = "lawwise-development-session-secret"


class AppConfig:
    """Load and validate application configuration from YAML"""

    def __init__(self, base_path: Optional[str] = None, filename: str = "app.yaml"):
        """
        Initialize application configuration

        Args:
            base_path: Directory holding app.yaml and schema.json
                (defaults to this package's directory)
            filename: Name of the YAML file to load
        """
        if base_path is None:
            base_path = Path(__file__).parent

        self.base_path = Path(base_path)
        self.config_path = self.base_path / filename
        self.schema_path = self.base_path / "schema.json"

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        self.config = self._load_config()
        self._validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load YAML configuration file"""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        return self._substitute_env_vars(config)

    def _substitute_env_vars(self, obj: Any) -> Any:
        """
        Recursively substitute environment variables in config

        Supports: ${VAR_NAME} or ${VAR_NAME:-default_value}
        """
        if isinstance(obj, dict):
            return {k: self._substitute_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            pattern = r'\$\{([A-Z_]+)(?::-([^}]+))?\}'

            def replacer(match):
                var_name = match.group(1)
                default = match.group(2)
                return os.getenv(var_name, default or '')

            return re.sub(pattern, replacer, obj)
        else:
            return obj

    def _validate_config(self):
        """Validate configuration against JSON schema"""
        if not self.schema_path.exists():
            logger.warning(f"Schema file not found: {self.schema_path}, skipping validation")
            return

        with open(self.schema_path, 'r') as f:
            schema = json.load(f)

        try:
            validate(instance=self.config, schema=schema)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e.message}")

    # ==================== Application Properties ====================

    @property
    def app_name(self) -> str:
        """Human-readable service name"""
        return self.config['app'].get('name', 'Lawwise Directory')

    @property
    def environment(self) -> str:
        """Deployment environment (development, staging, production)"""
        return self.config['app'].get('environment') or 'development'

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == 'production'

    # ==================== Infrastructure Properties ====================

    @property
    def supabase_url(self) -> str:
        """Supabase project URL"""
        return self.config['infrastructure']['supabase']['url']

    @property
    def supabase_service_key(self) -> str:
        """Supabase service role key"""
        return self.config['infrastructure']['supabase']['service_key']

    # ==================== Security Properties ====================

    @property
    def session_secret(self) -> str:
        """
        HMAC secret for session tokens.

        Required in production. Outside production an empty value falls back
        to a fixed development secret so local runs work without setup.
        """
        secret = self.config['security'].get('session_secret') or ''
        if secret:
            return secret

        if self.is_production:
            raise RuntimeError("SESSION_SECRET is required in production")

        logger.warning(
            "SESSION_SECRET not set - using the development secret. "
            "Sessions issued now stop validating once a real secret is configured."
        )
        return DEV_SESSION_SECRET

    @property
    def session_ttl(self) -> timedelta:
        """Lifetime of an issued session token"""
        return timedelta(days=self.config['security'].get('session_ttl_days', 7))

    @property
    def lockout_max_failures(self) -> int:
        """Consecutive failed logins that lock an account"""
        return self.config['security'].get('lockout', {}).get('max_failures', 5)

    @property
    def lockout_window(self) -> timedelta:
        """How long a lock lasts once the threshold is crossed"""
        minutes = self.config['security'].get('lockout', {}).get('lockout_minutes', 30)
        return timedelta(minutes=minutes)

    @property
    def login_rate_limit(self) -> str:
        """slowapi limit string applied per IP to the login endpoint"""
        return self.config['security'].get('login_rate_limit', '5/minute')

    def __repr__(self) -> str:
        return f"AppConfig(environment='{self.environment}', supabase_url='{self.config['infrastructure']['supabase']['url']}')"


# ==================== Singleton Access ====================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the process-wide AppConfig, loading it on first use"""
    global _config
    if _config is None:
        _config = AppConfig()
        logger.info(f"Loaded configuration for environment '{_config.environment}'")
    return _config


def reset_config() -> None:
    """Drop the cached AppConfig (used by tests)"""
    global _config
    _config = None
