# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Login and email verification workflows

Expected failures (bad session, rejected credentials exchange, failed
verification send) come back as Action values. Only caller mistakes and
unexpected vendor failures are raised.
"""

import logging
from typing import Any, Dict, Optional, Union

from . import actions
from . import cognito_adapter
from .actions import Action
from .cognito_adapter import AttributeMap
from .cognito_user import CognitoUser
from .config_types import CognitoConfig
from .errors import InvalidArgument, VendorError
from .identity_credentials import FederatedCredentials, refresh_identity_credentials

logger = logging.getLogger(__name__)

ConfigLike = Union[CognitoConfig, Dict[str, Any], None]


def email_verification_flow(user: CognitoUser, attributes: AttributeMap,
                            credentials: Optional[FederatedCredentials] = None) -> Action:
    """Send an email verification code and report what the user has to do next"""
    try:
        required = cognito_adapter.send_attribute_verification_code(user, 'email')
    except VendorError as e:
        logger.warning(f"Email verification code for {user.get_username()} failed: {e.message}")
        return actions.email_verification_failed(user, e.message, attributes, credentials)

    if required:
        return actions.email_verification_required(user, attributes, credentials)
    # Cognito verified without a code; nothing left to verify so the user is
    # logged in. Possibly unreachable with a real pool.
    return actions.login(user, attributes, credentials)


def login_or_verify_email(user: CognitoUser, config: ConfigLike = None,
                          credentials: Optional[FederatedCredentials] = None) -> Action:
    """
    Log the user in, or start email verification if the pool requires it

    Verification is mandatory unless the config sets
    mandatory_email_verification to exactly False.
    """
    mandatory = CognitoConfig.coerce(config).email_verification_mandatory
    attributes = cognito_adapter.get_user_attributes(user)

    if mandatory and attributes.get('email_verified') != 'true':
        return email_verification_flow(user, attributes, credentials)
    return actions.login(user, attributes, credentials)


def perform_login(user: Optional[CognitoUser], config: ConfigLike) -> Action:
    """
    Complete a login for an authenticated user

    Gets the user's session, exchanges its ID token for federated
    credentials and then checks email verification.

    Args:
        user: Authenticated CognitoUser
        config: Cognito configuration

    Returns:
        Action: COGNITO_LOGIN_FAILURE if the session or credentials exchange
        fails, otherwise the result of login_or_verify_email

    Raises:
        InvalidArgument: If user is None
    """
    if user is None:
        raise InvalidArgument("user is null")

    config = CognitoConfig.coerce(config).with_pool_defaults(user.pool)

    try:
        session = cognito_adapter.get_session(user)
    except VendorError as e:
        logger.warning(f"No session for {user.get_username()}: {e.message}")
        return actions.login_failure(user, e.message)

    username = user.get_username()
    logger.info(f"Performing login for {username}")

    try:
        credentials = refresh_identity_credentials(username, session.id_token, config)
    except VendorError as e:
        return actions.login_failure(user, e.message)
    except InvalidArgument as e:
        logger.warning(f"Cannot exchange credentials for {username}: {e}")
        return actions.login_failure(user, str(e))

    return login_or_verify_email(user, config, credentials)


def update_attributes(user: CognitoUser, attributes: AttributeMap,
                      config: ConfigLike) -> Action:
    """
    Update user attributes

    When the config explicitly enables mandatory email verification the
    attributes are re-read and checked again, since the update may have
    reset email_verified.

    Raises:
        VendorError: If Cognito rejects the update
    """
    config = CognitoConfig.coerce(config)
    cognito_adapter.update_attributes(user, attributes)

    if config.mandatory_email_verification:
        return login_or_verify_email(user, config)
    return actions.update_attributes(attributes)
