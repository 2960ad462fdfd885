# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Simple configuration loader for cognitoflow
Loads config.json and lets environment variables (CloudFormation) override it
"""
import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .config_types import AppConfig, CognitoConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('cognitoflow/.config/config.json')

# Environment variable -> key in the cognito section
COGNITO_ENV_VARS = {
    'COGNITO_REGION': 'region',
    'COGNITO_USER_POOL_ID': 'userPool',
    'COGNITO_CLIENT_ID': 'clientId',
    'COGNITO_CLIENT_SECRET': 'clientSecret',
    'COGNITO_IDENTITY_POOL_ID': 'identityPool',
    'COGNITO_MANDATORY_EMAIL_VERIFICATION': 'mandatoryEmailVerification',
}


class ConfigLoader:
    """Simple configuration loader"""

    def __init__(self):
        self._cache: Optional[AppConfig] = None
        self._cache_time: float = 0
        self.CACHE_TTL = 300  # 5 minutes
        self._user_pool = None

    def _read_config_file(self) -> Dict[str, Any]:
        """
        Read config.json
        - CONFIG_PATH set: that file must exist and parse
        - Otherwise: cognitoflow/.config/config.json if present, else empty
        """
        explicit_path = os.environ.get('CONFIG_PATH')
        config_path = Path(explicit_path) if explicit_path else DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if explicit_path:
                raise RuntimeError(
                    f"Configuration not found at CONFIG_PATH={explicit_path}. "
                    "Unset CONFIG_PATH to rely on environment variables only."
                )
            logger.info(f"config.json not found at: {config_path}, using environment only")
            return {}

        try:
            with open(config_path, 'r') as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as error:
            logger.error(f"Failed to read configuration {config_path}: {error}")
            raise RuntimeError(f"Configuration invalid: {error}")

        logger.info(f"Loaded config from: {config_path}")
        return config

    def load_config(self) -> AppConfig:
        """
        Load configuration

        Priority for the cognito section:
        1. Environment variables (set by CloudFormation at deploy time)
        2. Config file
        """
        if self._cache and (time.time() - self._cache_time) < self.CACHE_TTL:
            return self._cache

        raw = self._read_config_file()
        cognito = dict(raw.get('cognito', {}))
        for env_var, key in COGNITO_ENV_VARS.items():
            value = os.environ.get(env_var)
            if value:
                cognito[key] = value

        config = AppConfig.model_validate({**raw, 'cognito': cognito})

        self._cache = config
        self._cache_time = time.time()
        return config

    def get_cognito_config(self) -> CognitoConfig:
        return self.load_config().cognito

    def get_environment(self) -> str:
        """
        Get environment from ENV variable
        No default outside of tests - a missing ENV is a startup failure
        """
        if os.getenv('TESTING') == 'true':
            return 'test'

        env = os.getenv('ENV')
        if not env:
            logger.error("CRITICAL: ENV environment variable is not set!")
            logger.error("Set ENV=dev|test|stage|prod before starting the application")
            raise RuntimeError("ENV environment variable MUST be set - refusing to start without explicit environment")

        return env

    def clear_cache(self) -> None:
        """Clear configuration cache"""
        self._cache = None
        self._cache_time = 0
        self._user_pool = None

    def get_user_pool(self):
        """
        Get CognitoUserPool for the configured pool (singleton)

        Raises:
            RuntimeError: If userPool or clientId is not configured
        """
        if self._user_pool is None:
            from .cognito_user import CognitoUserPool
            cognito = self.get_cognito_config()
            if not cognito.user_pool or not cognito.client_id:
                raise RuntimeError("Cognito not configured (userPool and clientId required)")
            self._user_pool = CognitoUserPool(
                cognito.user_pool, cognito.client_id, region=cognito.region,
                client_secret=cognito.client_secret
            )
        return self._user_pool

# Export singleton instance
config_loader = ConfigLoader()
