# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Configuration types and validation for cognitoflow

Pydantic models for the Cognito, server and CORS sections of config.json.
Keys are accepted in either snake_case or the camelCase used by the
frontend config files (userPool, identityPool, mandatoryEmailVerification).
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class Environment(str, Enum):
    """Environment enumeration"""
    DEV = "dev"
    TEST = "test"
    STAGE = "stage"
    PROD = "prod"


class CognitoConfig(BaseModel):
    """Cognito user pool and identity pool configuration"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    region: Optional[str] = None
    user_pool: Optional[str] = Field(default=None, alias='userPool')
    identity_pool: Optional[str] = Field(default=None, alias='identityPool')
    client_id: Optional[str] = Field(default=None, alias='clientId')
    # Only for app clients created with a secret; never sent to clients
    client_secret: Optional[str] = Field(default=None, alias='clientSecret', repr=False)
    # None means "not configured"; only an explicit False disables
    # verification on login
    mandatory_email_verification: Optional[bool] = Field(
        default=None, alias='mandatoryEmailVerification'
    )

    @field_validator('region', 'user_pool', 'identity_pool', 'client_id', 'client_secret')
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings from env/config files as missing"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def email_verification_mandatory(self) -> bool:
        return self.mandatory_email_verification is not False

    @property
    def login_domain(self) -> str:
        return f"cognito-idp.{self.region}.amazonaws.com"

    @property
    def login_url(self) -> str:
        """Provider name used as the key of the identity pool Logins map"""
        return f"{self.login_domain}/{self.user_pool}"

    def public_config(self) -> Dict[str, Any]:
        """Configuration that can be shared with clients (client secret left out)"""
        return {
            'region': self.region,
            'userPool': self.user_pool,
            'identityPool': self.identity_pool,
            'clientId': self.client_id,
            'mandatoryEmailVerification': self.email_verification_mandatory,
        }

    def with_pool_defaults(self, pool) -> 'CognitoConfig':
        """Fill region, user pool and client id from a CognitoUserPool where unset"""
        update = {}
        if not self.region:
            update['region'] = pool.region
        if not self.user_pool:
            update['user_pool'] = pool.user_pool_id
        if not self.client_id:
            update['client_id'] = pool.client_id
        return self.model_copy(update=update) if update else self

    @classmethod
    def coerce(cls, config: Union['CognitoConfig', Dict[str, Any], None]) -> 'CognitoConfig':
        """Accept a CognitoConfig, a plain dict, or None"""
        if isinstance(config, CognitoConfig):
            return config
        return cls.model_validate(config or {})


class ServerConfig(BaseModel):
    """Local uvicorn server configuration"""
    host: str = '0.0.0.0'
    port: int = Field(default=8000, ge=1, le=65535)


class CorsConfig(BaseModel):
    """CORS configuration"""
    model_config = ConfigDict(populate_by_name=True)

    allowed_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
        alias='allowedOrigins'
    )


class AppConfig(BaseModel):
    """Top-level configuration"""
    cognito: CognitoConfig = Field(default_factory=CognitoConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
