# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Cognito user pool object model

Small user/session objects over the boto3 'cognito-idp' client. A
CognitoUser is the handle the workflows pass around: it knows its pool and
username and carries the tokens of the current session. Methods call the
service directly and let botocore errors propagate; the adapter layer
(cognito_adapter) turns those into VendorError.

Sign-in uses the USER_SRP_AUTH flow (pycognito computes the SRP values), so
the password never leaves the process. App clients with a secret are
supported by sending SECRET_HASH with every auth call.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import boto3
import jwt
from pycognito import AWSSRP

from .errors import VendorError

logger = logging.getLogger(__name__)


def decode_claims(token: str) -> Dict[str, Any]:
    """
    Read the claims of a Cognito JWT without verifying it

    Only used for local bookkeeping (expiry, username). Signature
    verification is the job of whoever consumes the token.
    """
    return jwt.decode(token, options={"verify_signature": False})


class CognitoUserPool:
    """User pool identity plus the boto3 client used to talk to it"""

    def __init__(self, user_pool_id: str, client_id: str,
                 region: Optional[str] = None, client=None,
                 client_secret: Optional[str] = None):
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.client_secret = client_secret
        # Pool IDs are prefixed with their region, e.g. eu-west-1_AbC123
        self.region = region or user_pool_id.split('_')[0]
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client('cognito-idp', region_name=self.region)
        return self._client

    def secret_hash(self, username: str) -> Optional[str]:
        """SECRET_HASH for username, or None when the app client has no secret"""
        if not self.client_secret:
            return None
        return AWSSRP.get_secret_hash(username, self.client_id, self.client_secret)

    def __repr__(self) -> str:
        return f"CognitoUserPool({self.user_pool_id!r}, client_id={self.client_id!r})"


class CognitoUserSession:
    """ID, access and refresh tokens of an authenticated user"""

    def __init__(self, id_token: str, access_token: str,
                 refresh_token: Optional[str] = None):
        self.id_token = id_token
        self.access_token = access_token
        self.refresh_token = refresh_token

    @classmethod
    def from_authentication_result(cls, result: Dict[str, Any],
                                   refresh_token: Optional[str] = None) -> 'CognitoUserSession':
        """Build from the AuthenticationResult block of an initiate_auth response"""
        return cls(
            id_token=result['IdToken'],
            access_token=result['AccessToken'],
            # Refresh responses do not rotate the refresh token
            refresh_token=result.get('RefreshToken') or refresh_token,
        )

    def is_valid(self, now: Optional[float] = None) -> bool:
        """True while neither the ID nor the access token has expired"""
        now = time.time() if now is None else now
        try:
            for token in (self.id_token, self.access_token):
                if decode_claims(token).get('exp', 0) <= now:
                    return False
        except jwt.InvalidTokenError:
            return False
        return True

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'id_token': self.id_token,
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
        }


class CognitoUser:
    """A user pool user and its current session"""

    def __init__(self, username: str, pool: CognitoUserPool,
                 session: Optional[CognitoUserSession] = None):
        self.username = username
        self.pool = pool
        self.session = session
        # Pending auth challenge and the session string Cognito sent with it
        self.challenge_name: Optional[str] = None
        self.challenge_session: Optional[str] = None

    @classmethod
    def from_tokens(cls, pool: CognitoUserPool, id_token: str, access_token: str,
                    refresh_token: Optional[str] = None) -> 'CognitoUser':
        """Rebuild a handle from tokens a client sent back"""
        claims = decode_claims(access_token)
        username = claims.get('username') or decode_claims(id_token).get('cognito:username')
        return cls(username, pool, CognitoUserSession(id_token, access_token, refresh_token))

    @classmethod
    def from_challenge(cls, pool: CognitoUserPool, username: str, challenge_session: str,
                       challenge_name: Optional[str] = None) -> 'CognitoUser':
        """Rebuild a handle that is waiting on an auth challenge"""
        user = cls(username, pool)
        user.challenge_session = challenge_session
        user.challenge_name = challenge_name
        return user

    def get_username(self) -> str:
        return self.username

    @property
    def client(self):
        return self.pool.client

    def _store_auth_response(self, response: Dict[str, Any],
                             refresh_token: Optional[str] = None) -> Dict[str, Any]:
        if 'AuthenticationResult' in response:
            self.session = CognitoUserSession.from_authentication_result(
                response['AuthenticationResult'], refresh_token
            )
            self.challenge_name = None
            self.challenge_session = None
        else:
            self.challenge_name = response.get('ChallengeName')
            self.challenge_session = response.get('Session')
        return response

    def _access_token(self) -> str:
        if self.session is None:
            raise VendorError('User is not authenticated', code='NotAuthenticated')
        return self.session.access_token

    def authenticate_user(self, password: str) -> Dict[str, Any]:
        """
        Sign in with USER_SRP_AUTH

        Answers the PASSWORD_VERIFIER challenge itself. Returns the last raw
        response, which either carries an AuthenticationResult or the next
        ChallengeName (MFA, new password).
        """
        aws_srp = AWSSRP(
            username=self.username,
            password=password,
            pool_id=self.pool.user_pool_id,
            client_id=self.pool.client_id,
            client=self.client,
            client_secret=self.pool.client_secret,
        )
        auth_params = aws_srp.get_auth_params()
        response = self.client.initiate_auth(
            AuthFlow='USER_SRP_AUTH',
            AuthParameters=auth_params,
            ClientId=self.pool.client_id,
        )

        if response.get('ChallengeName') == 'PASSWORD_VERIFIER':
            challenge_response = aws_srp.process_challenge(
                response['ChallengeParameters'], auth_params
            )
            params = {
                'ClientId': self.pool.client_id,
                'ChallengeName': 'PASSWORD_VERIFIER',
                'ChallengeResponses': challenge_response,
            }
            if response.get('Session'):
                params['Session'] = response['Session']
            response = self.client.respond_to_auth_challenge(**params)

        return self._store_auth_response(response)

    def respond_to_auth_challenge(self, challenge_name: str,
                                  responses: Dict[str, str]) -> Dict[str, Any]:
        """Answer a pending challenge (MFA code, new password)"""
        challenge_responses = {'USERNAME': self.username, **responses}
        secret_hash = self.pool.secret_hash(self.username)
        if secret_hash:
            challenge_responses['SECRET_HASH'] = secret_hash
        params = {
            'ClientId': self.pool.client_id,
            'ChallengeName': challenge_name,
            'ChallengeResponses': challenge_responses,
        }
        if self.challenge_session:
            params['Session'] = self.challenge_session
        response = self.client.respond_to_auth_challenge(**params)
        return self._store_auth_response(response)

    def refresh_session(self, refresh_token: str) -> CognitoUserSession:
        auth_params = {'REFRESH_TOKEN': refresh_token}
        secret_hash = self.pool.secret_hash(self.username)
        if secret_hash:
            auth_params['SECRET_HASH'] = secret_hash
        response = self.client.initiate_auth(
            AuthFlow='REFRESH_TOKEN_AUTH',
            AuthParameters=auth_params,
            ClientId=self.pool.client_id,
        )
        self._store_auth_response(response, refresh_token)
        return self.session

    def get_session(self) -> CognitoUserSession:
        """
        Current session, refreshed first if its tokens have expired

        Raises:
            VendorError: if the user never authenticated
        """
        if self.session is None:
            raise VendorError('User is not authenticated', code='NotAuthenticated')
        if self.session.is_valid():
            return self.session
        if not self.session.refresh_token:
            raise VendorError('Session expired and no refresh token is available',
                              code='NotAuthenticated')
        logger.debug(f"Session for {self.username} expired, refreshing")
        return self.refresh_session(self.session.refresh_token)

    def get_user_attributes(self) -> List[Dict[str, str]]:
        response = self.client.get_user(AccessToken=self._access_token())
        return response.get('UserAttributes', [])

    def update_attributes(self, attribute_list: List[Dict[str, str]]) -> Dict[str, Any]:
        return self.client.update_user_attributes(
            UserAttributes=attribute_list,
            AccessToken=self._access_token(),
        )

    def change_password(self, old_password: str, new_password: str) -> str:
        self.client.change_password(
            PreviousPassword=old_password,
            ProposedPassword=new_password,
            AccessToken=self._access_token(),
        )
        return 'SUCCESS'

    def get_attribute_verification_code(self, attribute_name: str) -> Dict[str, Any]:
        return self.client.get_user_attribute_verification_code(
            AccessToken=self._access_token(),
            AttributeName=attribute_name,
        )

    def __repr__(self) -> str:
        return f"CognitoUser({self.username!r}, pool={self.pool.user_pool_id!r})"
