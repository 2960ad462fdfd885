# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Result actions produced by the login workflows

Every workflow ends in exactly one Action. Callers branch on action.type
and pick the payload fields they need.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identity_credentials import FederatedCredentials


class ActionType(str, Enum):
    """Action tags"""
    LOGIN = "COGNITO_LOGIN"
    LOGIN_FAILURE = "COGNITO_LOGIN_FAILURE"
    EMAIL_VERIFICATION_REQUIRED = "COGNITO_EMAIL_VERIFICATION_REQUIRED"
    EMAIL_VERIFICATION_FAILED = "COGNITO_EMAIL_VERIFICATION_FAILED"
    UPDATE_USER_ATTRIBUTES = "COGNITO_UPDATE_USER_ATTRIBUTES"
    AUTHENTICATED = "COGNITO_AUTHENTICATED"
    USER_UNCONFIRMED = "COGNITO_USER_UNCONFIRMED"
    LOGIN_MFA_REQUIRED = "COGNITO_LOGIN_MFA_REQUIRED"
    LOGIN_NEW_PASSWORD_REQUIRED = "COGNITO_LOGIN_NEW_PASSWORD_REQUIRED"
    REFRESH = "COGNITO_REFRESH"


class Action(BaseModel):
    """Immutable tagged workflow result"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: ActionType
    # CognitoUser handle; not serialized
    user: Optional[Any] = Field(default=None, exclude=True)
    username: Optional[str] = None
    attributes: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    credentials: Optional[FederatedCredentials] = None
    # Pending auth challenge (SMS_MFA, SOFTWARE_TOKEN_MFA, NEW_PASSWORD_REQUIRED)
    challenge_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe form (user handle replaced by its username)"""
        return self.model_dump(mode='json', exclude_none=True)


def _action(action_type: ActionType, user=None, **payload) -> Action:
    username = user.get_username() if user is not None else None
    return Action(type=action_type, user=user, username=username, **payload)


def login(user, attributes: Dict[str, str],
          credentials: Optional[FederatedCredentials] = None) -> Action:
    return _action(ActionType.LOGIN, user, attributes=attributes, credentials=credentials)


def login_failure(user, error: str) -> Action:
    return _action(ActionType.LOGIN_FAILURE, user, error=error)


def email_verification_required(user, attributes: Dict[str, str],
                                credentials: Optional[FederatedCredentials] = None) -> Action:
    return _action(ActionType.EMAIL_VERIFICATION_REQUIRED, user,
                   attributes=attributes, credentials=credentials)


def email_verification_failed(user, error: str, attributes: Dict[str, str],
                              credentials: Optional[FederatedCredentials] = None) -> Action:
    return _action(ActionType.EMAIL_VERIFICATION_FAILED, user,
                   error=error, attributes=attributes, credentials=credentials)


def update_attributes(attributes: Dict[str, str]) -> Action:
    return Action(type=ActionType.UPDATE_USER_ATTRIBUTES, attributes=dict(attributes))


def authenticated(user) -> Action:
    return _action(ActionType.AUTHENTICATED, user)


def user_unconfirmed(user) -> Action:
    return _action(ActionType.USER_UNCONFIRMED, user)


def mfa_required(user, challenge_name: Optional[str] = None) -> Action:
    return _action(ActionType.LOGIN_MFA_REQUIRED, user, challenge_name=challenge_name)


def new_password_required(user) -> Action:
    return _action(ActionType.LOGIN_NEW_PASSWORD_REQUIRED, user,
                   challenge_name='NEW_PASSWORD_REQUIRED')


def refresh(user) -> Action:
    return _action(ActionType.REFRESH, user)
