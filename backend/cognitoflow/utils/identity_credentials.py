# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Federated identity credentials

Exchanges a user pool ID token for temporary AWS credentials through a
Cognito identity pool. The credentials are returned as a value and passed
explicitly to whatever needs them; nothing is installed process-wide, so
concurrent logins for different users do not interfere.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

import boto3
from pydantic import BaseModel, ConfigDict, Field

from .config_types import CognitoConfig
from .errors import BOTO_ERRORS, InvalidArgument, VendorError

logger = logging.getLogger(__name__)


class IdentityCredentialsRequest(BaseModel):
    """Parameters for one identity pool credentials exchange"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identity_pool_id: str = Field(alias='IdentityPoolId')
    logins: Dict[str, str] = Field(alias='Logins')
    # Identifies which pool user the credentials belong to; the identity
    # pool cannot tell users of the same pool apart from Logins alone
    login_id: str = Field(alias='LoginId')


class FederatedCredentials(BaseModel):
    """Temporary AWS credentials for a federated identity"""
    model_config = ConfigDict(frozen=True)

    identity_id: str
    access_key_id: str
    secret_key: str = Field(repr=False)
    session_token: str = Field(repr=False)
    expiration: Optional[datetime] = None
    login_id: Optional[str] = None

    def boto3_session(self, region: Optional[str] = None) -> boto3.session.Session:
        """boto3 session signing requests with these credentials"""
        return boto3.session.Session(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_key,
            aws_session_token=self.session_token,
            region_name=region,
        )


def get_identity_client(region: str):
    """Get Cognito identity client for the region"""
    return boto3.client('cognito-identity', region_name=region)


def build_identity_credentials(username: str, jwt_token: str,
                               config: CognitoConfig) -> IdentityCredentialsRequest:
    config = CognitoConfig.coerce(config)
    missing = [name for name in ('region', 'user_pool', 'identity_pool')
               if not getattr(config, name)]
    if missing:
        raise InvalidArgument(
            f"Identity credentials require {', '.join(missing)} in the Cognito config"
        )

    return IdentityCredentialsRequest(
        IdentityPoolId=config.identity_pool,
        Logins={config.login_url: jwt_token},
        LoginId=username,
    )


def refresh_identity_credentials(username: str, jwt_token: str,
                                 config: CognitoConfig) -> FederatedCredentials:
    """
    Exchange an ID token for federated credentials

    Args:
        username: User pool username the token belongs to
        jwt_token: ID token of the user's current session
        config: Cognito configuration (region, user_pool, identity_pool)

    Returns:
        FederatedCredentials for the user's identity

    Raises:
        InvalidArgument: If the config lacks region, user pool or identity pool
        VendorError: If the identity pool rejects the exchange
    """
    config = CognitoConfig.coerce(config)
    request = build_identity_credentials(username, jwt_token, config)
    client = get_identity_client(config.region)

    try:
        identity = client.get_id(
            IdentityPoolId=request.identity_pool_id,
            Logins=request.logins,
        )
        identity_id = identity['IdentityId']
        response = client.get_credentials_for_identity(
            IdentityId=identity_id,
            Logins=request.logins,
        )
    except BOTO_ERRORS as e:
        logger.error(f"Identity credentials refresh failed for {username}: {e}")
        raise VendorError.from_boto_error(e) from e

    creds = response['Credentials']
    logger.info(f"Obtained federated credentials for {username} (identity={identity_id})")

    return FederatedCredentials(
        identity_id=response.get('IdentityId', identity_id),
        access_key_id=creds['AccessKeyId'],
        secret_key=creds['SecretKey'],
        session_token=creds['SessionToken'],
        expiration=creds.get('Expiration'),
        login_id=request.login_id,
    )
