# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Adapters over CognitoUser operations

Each function performs one service call and ends in exactly one outcome:
a return value, or a VendorError carrying the service message and code.
Sign-in calls return a tagged AuthOutcome instead of raising, since every
branch of a sign-in (success, failure, MFA, new password) is expected.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .cognito_user import CognitoUser, CognitoUserSession
from .errors import BOTO_ERRORS, VendorError

logger = logging.getLogger(__name__)

AttributeMap = Dict[str, str]

MFA_CHALLENGES = ('SMS_MFA', 'SOFTWARE_TOKEN_MFA')
NEW_PASSWORD_CHALLENGE = 'NEW_PASSWORD_REQUIRED'


@dataclass(frozen=True)
class AuthSuccess:
    session: CognitoUserSession


@dataclass(frozen=True)
class AuthFailure:
    error: VendorError


@dataclass(frozen=True)
class MfaRequired:
    challenge_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NewPasswordRequired:
    user_attributes: Dict[str, Any] = field(default_factory=dict)
    required_attributes: List[str] = field(default_factory=list)


AuthOutcome = Union[AuthSuccess, AuthFailure, MfaRequired, NewPasswordRequired]


def _auth_outcome(user: CognitoUser, response: Dict[str, Any]) -> AuthOutcome:
    if 'AuthenticationResult' in response:
        return AuthSuccess(user.session)

    challenge = response.get('ChallengeName')
    parameters = response.get('ChallengeParameters', {})
    if challenge in MFA_CHALLENGES:
        return MfaRequired(challenge, parameters)
    if challenge == NEW_PASSWORD_CHALLENGE:
        # Cognito sends these two as JSON strings
        return NewPasswordRequired(
            user_attributes=json.loads(parameters.get('userAttributes') or '{}'),
            required_attributes=json.loads(parameters.get('requiredAttributes') or '[]'),
        )
    return AuthFailure(VendorError(f"Unsupported challenge: {challenge}",
                                   code='UnsupportedChallenge'))


def authenticate_user(user: CognitoUser, password: str) -> AuthOutcome:
    try:
        response = user.authenticate_user(password)
    except BOTO_ERRORS as e:
        error = VendorError.from_boto_error(e)
        logger.warning(f"Authentication failed for {user.get_username()}: {error.code}")
        return AuthFailure(error)
    return _auth_outcome(user, response)


def send_mfa_code(user: CognitoUser, code: str,
                  challenge_name: Optional[str] = None) -> AuthOutcome:
    """
    Answer an MFA challenge with the code the user received

    Defaults to the challenge the user handle is waiting on, so TOTP users
    answer SOFTWARE_TOKEN_MFA without the caller naming it.
    """
    challenge_name = challenge_name or user.challenge_name or 'SMS_MFA'
    code_key = 'SOFTWARE_TOKEN_MFA_CODE' if challenge_name == 'SOFTWARE_TOKEN_MFA' else 'SMS_MFA_CODE'
    try:
        response = user.respond_to_auth_challenge(challenge_name, {code_key: code})
    except BOTO_ERRORS as e:
        return AuthFailure(VendorError.from_boto_error(e))
    return _auth_outcome(user, response)


def complete_new_password_challenge(user: CognitoUser, new_password: str,
                                    attributes: Optional[AttributeMap] = None) -> AuthOutcome:
    responses = {'NEW_PASSWORD': new_password}
    for name, value in (attributes or {}).items():
        responses[f'userAttributes.{name}'] = value
    try:
        response = user.respond_to_auth_challenge(NEW_PASSWORD_CHALLENGE, responses)
    except BOTO_ERRORS as e:
        return AuthFailure(VendorError.from_boto_error(e))
    return _auth_outcome(user, response)


def get_session(user: CognitoUser) -> CognitoUserSession:
    try:
        return user.get_session()
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e


def refresh_session(user: CognitoUser, refresh_token: str) -> CognitoUserSession:
    try:
        return user.refresh_session(refresh_token)
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e


def change_password(user: CognitoUser, old_password: str, new_password: str) -> str:
    try:
        return user.change_password(old_password, new_password)
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e


def send_attribute_verification_code(user: CognitoUser, attribute_name: str) -> bool:
    """
    Ask Cognito to send a verification code for an attribute

    Returns:
        True if a code was delivered and the user has to enter it,
        False if the attribute needed no input
    """
    try:
        response = user.get_attribute_verification_code(attribute_name)
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e
    return bool(response.get('CodeDeliveryDetails'))


def get_user_attributes(user: CognitoUser) -> AttributeMap:
    try:
        attribute_list = user.get_user_attributes()
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e
    return {attr['Name']: attr['Value'] for attr in attribute_list}


def update_attributes(user: CognitoUser, attributes: AttributeMap) -> None:
    attribute_list = [{'Name': name, 'Value': value} for name, value in attributes.items()]
    try:
        user.update_attributes(attribute_list)
    except BOTO_ERRORS as e:
        raise VendorError.from_boto_error(e) from e
