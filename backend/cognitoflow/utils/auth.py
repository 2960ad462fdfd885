# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Authentication entry points

authenticate() and refresh() start from a username and a user pool, hand
every resulting Action to the caller's dispatch callable and return None.
A sign-in rejected by Cognito is raised as VendorError so the caller can
branch on its code (NotAuthorizedException, PasswordResetRequiredException,
...); an unconfirmed user is reported as an action instead.
"""

import logging
from typing import Any, Callable, Dict, Optional

from . import actions
from . import cognito_adapter
from .actions import Action
from .cognito_adapter import (
    AuthFailure, AuthOutcome, AuthSuccess, MfaRequired, NewPasswordRequired,
    change_password,
)
from .cognito_user import CognitoUser, CognitoUserPool
from .login_flow import ConfigLike, perform_login

logger = logging.getLogger(__name__)

Dispatch = Optional[Callable[[Action], Any]]

USER_NOT_CONFIRMED = 'UserNotConfirmedException'

__all__ = [
    'authenticate',
    'refresh',
    'confirm_mfa',
    'complete_new_password',
    'change_password',
]


def _dispatch(dispatch: Dispatch, action: Action) -> Action:
    if dispatch is not None:
        dispatch(action)
    return action


def _handle_outcome(user: CognitoUser, outcome: AuthOutcome,
                    config: ConfigLike, dispatch: Dispatch) -> None:
    if isinstance(outcome, AuthSuccess):
        logger.info(f"User {user.get_username()} authenticated")
        _dispatch(dispatch, actions.authenticated(user))
        _dispatch(dispatch, perform_login(user, config))
    elif isinstance(outcome, AuthFailure):
        if outcome.error.code == USER_NOT_CONFIRMED:
            _dispatch(dispatch, actions.user_unconfirmed(user))
            return
        raise outcome.error
    elif isinstance(outcome, MfaRequired):
        logger.info(f"MFA required for {user.get_username()} ({outcome.challenge_name})")
        _dispatch(dispatch, actions.mfa_required(user, outcome.challenge_name))
    elif isinstance(outcome, NewPasswordRequired):
        _dispatch(dispatch, actions.new_password_required(user))


def authenticate(username: str, password: str, pool: CognitoUserPool,
                 config: ConfigLike, dispatch: Dispatch = None) -> None:
    """
    Sign a user in with username and password

    Dispatches COGNITO_AUTHENTICATED followed by the login result,
    COGNITO_USER_UNCONFIRMED, COGNITO_LOGIN_MFA_REQUIRED or
    COGNITO_LOGIN_NEW_PASSWORD_REQUIRED.

    Every dispatched action carries the CognitoUser handle (action.user),
    which is what confirm_mfa() and complete_new_password() answer a
    pending challenge with.

    Raises:
        VendorError: If Cognito rejects the sign-in for any other reason
    """
    user = CognitoUser(username, pool)
    logger.info(f"Login attempt: {username}")
    outcome = cognito_adapter.authenticate_user(user, password)
    _handle_outcome(user, outcome, config, dispatch)


def confirm_mfa(user: CognitoUser, code: str, config: ConfigLike,
                dispatch: Dispatch = None, challenge_name: Optional[str] = None) -> None:
    """
    Answer a pending MFA challenge; dispatches like authenticate()

    challenge_name defaults to the challenge the user handle was left on
    (SMS_MFA or SOFTWARE_TOKEN_MFA).
    """
    outcome = cognito_adapter.send_mfa_code(user, code, challenge_name)
    _handle_outcome(user, outcome, config, dispatch)


def complete_new_password(user: CognitoUser, new_password: str, config: ConfigLike,
                          dispatch: Dispatch = None,
                          attributes: Optional[Dict[str, str]] = None) -> None:
    """Answer a pending NEW_PASSWORD_REQUIRED challenge; dispatches like authenticate()"""
    outcome = cognito_adapter.complete_new_password_challenge(user, new_password, attributes)
    _handle_outcome(user, outcome, config, dispatch)


def refresh(pool: CognitoUserPool, username: str, refresh_token: str,
            dispatch: Dispatch = None, config: ConfigLike = None) -> None:
    """
    Renew a session from a refresh token

    Dispatches COGNITO_REFRESH followed by the login result.

    Raises:
        VendorError: If Cognito rejects the refresh token
    """
    user = CognitoUser(username, pool)
    cognito_adapter.refresh_session(user, refresh_token)
    _dispatch(dispatch, actions.refresh(user))
    _dispatch(dispatch, perform_login(user, config))
