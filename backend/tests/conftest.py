# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Shared pytest fixtures for all tests

The boto3 clients are replaced by MagicMock fakes whose behaviour depends on
the username, one scenario per username:
- success: signs in, email verified
- email-verification-required: signs in, email not verified
- identity-pool-failure: signs in, identity pool rejects the ID token
- session-error: signs in, but the tokens it gets are already expired
- failure-bad-creds / failure-not-confirmed: sign-in rejected
- mfa / mfa-totp / newpass: sign-in answered with an SMS MFA, TOTP MFA or
  new password challenge

Sign-in goes through USER_SRP_AUTH; FakeSRP stands in for pycognito.AWSSRP
and the PASSWORD_VERIFIER answer carries the scenario.
"""
import os
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import jwt
import pytest
from botocore.exceptions import ClientError
from pycognito import AWSSRP

os.environ['TESTING'] = 'true'

from cognitoflow.utils.cognito_user import CognitoUser, CognitoUserPool, CognitoUserSession
from cognitoflow.utils.config_types import CognitoConfig

USER_POOL_ID = 'eu-west-1_testpool'
CLIENT_ID = 'testclient'
IDENTITY_POOL_ID = 'eu-west-1:11111111-2222-3333-4444-555555555555'
MFA_CODE = '123456'
TOKEN_KEY = 'unit-test-signing-key-0123456789abcdef'


def make_token(username: str, token_use: str = 'id', expires_in: int = 3600) -> str:
    """Token with Cognito-style claims (only the claims are ever read)"""
    claims = {
        'sub': f'{username}-sub',
        'token_use': token_use,
        'exp': int(time.time()) + expires_in,
    }
    if token_use == 'access':
        claims['username'] = username
    else:
        claims['cognito:username'] = username
    return jwt.encode(claims, TOKEN_KEY, algorithm='HS256')


def make_session(username: str, expires_in: int = 3600,
                 refresh_token: str = 'jwt_refresh_token') -> CognitoUserSession:
    return CognitoUserSession(
        make_token(username, 'id', expires_in),
        make_token(username, 'access', expires_in),
        refresh_token,
    )


def client_error(code: str, message: str, operation: str = 'InitiateAuth') -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def authentication_result(username: str, expires_in: int = 3600,
                          with_refresh: bool = True) -> dict:
    result = {
        'IdToken': make_token(username, 'id', expires_in),
        'AccessToken': make_token(username, 'access', expires_in),
        'ExpiresIn': expires_in,
        'TokenType': 'Bearer',
    }
    if with_refresh:
        result['RefreshToken'] = 'jwt_refresh_token'
    return {'AuthenticationResult': result}


def _username_from_access_token(token: str) -> str:
    return jwt.decode(token, options={'verify_signature': False})['username']


class FakeSRP:
    """Stand-in for pycognito.AWSSRP that skips the SRP arithmetic"""

    get_secret_hash = staticmethod(AWSSRP.get_secret_hash)

    def __init__(self, username, password, pool_id, client_id, client=None, client_secret=None):
        self.username = username
        self.password = password
        self.pool_id = pool_id
        self.client_id = client_id
        self.client = client
        self.client_secret = client_secret

    def get_auth_params(self):
        params = {'USERNAME': self.username, 'SRP_A': 'fake-srp-a'}
        if self.client_secret:
            params['SECRET_HASH'] = self.get_secret_hash(
                self.username, self.client_id, self.client_secret
            )
        return params

    def process_challenge(self, challenge_parameters, request_parameters):
        return {
            'USERNAME': challenge_parameters['USER_ID_FOR_SRP'],
            'TIMESTAMP': 'Mon Jan 1 00:00:00 UTC 2030',
            'PASSWORD_CLAIM_SECRET_BLOCK': challenge_parameters['SECRET_BLOCK'],
            'PASSWORD_CLAIM_SIGNATURE': f'signature-of-{self.password}',
        }


def _password_verifier(username: str) -> dict:
    return {
        'ChallengeName': 'PASSWORD_VERIFIER',
        'ChallengeParameters': {
            'USER_ID_FOR_SRP': username,
            'SRP_B': 'fake-srp-b',
            'SALT': 'fake-salt',
            'SECRET_BLOCK': 'fake-secret-block',
        },
    }


def _initiate_auth(AuthFlow, AuthParameters, ClientId, **kwargs):
    if AuthFlow == 'REFRESH_TOKEN_AUTH':
        if AuthParameters['REFRESH_TOKEN'] == 'success':
            return authentication_result('success', with_refresh=False)
        raise client_error('NotAuthorizedException', 'Invalid Refresh Token')
    if AuthFlow == 'USER_SRP_AUTH':
        return _password_verifier(AuthParameters['USERNAME'])
    raise AssertionError(f'unexpected auth flow {AuthFlow}')


def _verify_password(username: str) -> dict:
    if username in ('success', 'email-verification-required', 'identity-pool-failure'):
        return authentication_result(username)
    if username == 'session-error':
        return authentication_result(username, expires_in=-60, with_refresh=False)
    if username == 'failure-bad-creds':
        raise client_error('NotAuthorizedException', 'Incorrect username or password.',
                           'RespondToAuthChallenge')
    if username == 'failure-not-confirmed':
        raise client_error('UserNotConfirmedException', 'User is not confirmed.',
                           'RespondToAuthChallenge')
    if username == 'mfa':
        return {
            'ChallengeName': 'SMS_MFA',
            'Session': 'mfa-session',
            'ChallengeParameters': {'CODE_DELIVERY_DESTINATION': '+*******1234'},
        }
    if username == 'mfa-totp':
        return {
            'ChallengeName': 'SOFTWARE_TOKEN_MFA',
            'Session': 'totp-session',
            'ChallengeParameters': {},
        }
    if username == 'newpass':
        return {
            'ChallengeName': 'NEW_PASSWORD_REQUIRED',
            'Session': 'newpass-session',
            'ChallengeParameters': {
                'userAttributes': '{"email": "newpass@example.com"}',
                'requiredAttributes': '["userAttributes.name"]',
            },
        }
    raise AssertionError(f'unrecognised username in sign-in fake: {username}')


def _respond_to_auth_challenge(ClientId, ChallengeName, ChallengeResponses, Session=None):
    username = ChallengeResponses['USERNAME']
    if ChallengeName == 'PASSWORD_VERIFIER':
        return _verify_password(username)
    if ChallengeName == 'SMS_MFA':
        if ChallengeResponses.get('SMS_MFA_CODE') != MFA_CODE:
            raise client_error('CodeMismatchException', 'Invalid code received for user',
                               'RespondToAuthChallenge')
        return authentication_result(username)
    if ChallengeName == 'SOFTWARE_TOKEN_MFA':
        if ChallengeResponses.get('SOFTWARE_TOKEN_MFA_CODE') != MFA_CODE:
            raise client_error('CodeMismatchException', 'Invalid code received for user',
                               'RespondToAuthChallenge')
        return authentication_result(username)
    if ChallengeName == 'NEW_PASSWORD_REQUIRED':
        return authentication_result(username)
    raise AssertionError(f'unexpected challenge {ChallengeName} for {username}')


def _get_user(AccessToken):
    username = _username_from_access_token(AccessToken)
    verified = 'false' if username == 'email-verification-required' else 'true'
    return {
        'Username': username,
        'UserAttributes': [
            {'Name': 'sub', 'Value': f'{username}-sub'},
            {'Name': 'email', 'Value': f'{username}@example.com'},
            {'Name': 'email_verified', 'Value': verified},
        ],
    }


def _change_password(PreviousPassword, ProposedPassword, AccessToken):
    if PreviousPassword == 'wrong':
        raise client_error('NotAuthorizedException', 'Incorrect username or password.',
                           'ChangePassword')
    return {}


@pytest.fixture
def cognito_client():
    """Fake boto3 cognito-idp client"""
    client = MagicMock()
    client.initiate_auth.side_effect = _initiate_auth
    client.respond_to_auth_challenge.side_effect = _respond_to_auth_challenge
    client.get_user.side_effect = _get_user
    client.get_user_attribute_verification_code.return_value = {
        'CodeDeliveryDetails': {
            'Destination': 'e***@example.com',
            'DeliveryMedium': 'EMAIL',
            'AttributeName': 'email',
        }
    }
    client.update_user_attributes.return_value = {'CodeDeliveryDetailsList': []}
    client.change_password.side_effect = _change_password
    return client


def _get_id(IdentityPoolId, Logins):
    token = next(iter(Logins.values()))
    username = jwt.decode(token, options={'verify_signature': False})['cognito:username']
    if username == 'identity-pool-failure':
        raise client_error('NotAuthorizedException', 'bad refresh in test', 'GetId')
    return {'IdentityId': f'eu-west-1:{username}-identity'}


def _get_credentials_for_identity(IdentityId, Logins):
    return {
        'IdentityId': IdentityId,
        'Credentials': {
            'AccessKeyId': 'ASIATESTKEY',
            'SecretKey': 'test-secret-key',
            'SessionToken': 'test-session-token',
            'Expiration': datetime(2030, 1, 1, tzinfo=timezone.utc),
        },
    }


@pytest.fixture
def identity_client():
    """Fake boto3 cognito-identity client"""
    client = MagicMock()
    client.get_id.side_effect = _get_id
    client.get_credentials_for_identity.side_effect = _get_credentials_for_identity
    return client


@pytest.fixture(autouse=True)
def patch_identity_client(identity_client):
    """No test talks to a real identity pool"""
    with patch('cognitoflow.utils.identity_credentials.get_identity_client',
               return_value=identity_client) as mock_factory:
        yield mock_factory


@pytest.fixture
def pool(cognito_client):
    return CognitoUserPool(USER_POOL_ID, CLIENT_ID, client=cognito_client)


@pytest.fixture
def config():
    return CognitoConfig(
        region='eu-west-1',
        user_pool=USER_POOL_ID,
        identity_pool=IDENTITY_POOL_ID,
        client_id=CLIENT_ID,
    )


@pytest.fixture
def make_user(pool):
    """Build a user handle, signed in unless signed_in=False"""
    def _make_user(username: str, signed_in: bool = True) -> CognitoUser:
        session = make_session(username) if signed_in else None
        return CognitoUser(username, pool, session)
    return _make_user


@pytest.fixture
def dispatch():
    """Dispatch stub returning the action type, like a reducer would"""
    return MagicMock(side_effect=lambda action: action.type)


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture(autouse=True)
def srp_calls():
    """Sign-ins use FakeSRP; yields the keyword arguments of every AWSSRP built"""
    calls = []

    class RecordingSRP(FakeSRP):
        def __init__(self, **kwargs):
            calls.append(kwargs)
            super().__init__(**kwargs)

    with patch('cognitoflow.utils.cognito_user.AWSSRP', RecordingSRP):
        yield calls
