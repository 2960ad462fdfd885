# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Authentication Routes
Login, auth challenges, session refresh, attribute update and password
change over Cognito
"""

from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import logging
import jwt

from cognitoflow.utils import auth as auth_flow
from cognitoflow.utils import login_flow
from cognitoflow.utils.actions import Action
from cognitoflow.utils.cognito_user import CognitoUser, CognitoUserPool
from cognitoflow.utils.config_loader import config_loader
from cognitoflow.utils.config_types import CognitoConfig
from cognitoflow.utils.errors import InvalidArgument, VendorError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["authentication"])

# Vendor codes that mean "bad credentials" rather than a bad request
UNAUTHORIZED_CODES = {'NotAuthorizedException', 'NotAuthenticated', 'UserNotFoundException'}
# botocore failures that never reached Cognito
UNAVAILABLE_CODES = {
    'EndpointConnectionError', 'ConnectTimeoutError', 'ReadTimeoutError', 'ConnectionClosedError'
}


# Request/Response models
class SessionTokens(BaseModel):
    id_token: str
    access_token: str
    refresh_token: Optional[str] = None

class LoginRequest(BaseModel):
    username: str
    password: str

class RefreshRequest(BaseModel):
    username: str
    refresh_token: str

class UpdateAttributesRequest(BaseModel):
    tokens: SessionTokens
    attributes: Dict[str, str]

class ChangePasswordRequest(BaseModel):
    tokens: SessionTokens
    old_password: str
    new_password: str

class ChallengeState(BaseModel):
    """What a client sends back to answer a pending challenge"""
    username: str
    challenge_name: Optional[str] = None
    session: str

class MfaRequest(BaseModel):
    challenge: ChallengeState
    code: str

class NewPasswordRequest(BaseModel):
    challenge: ChallengeState
    new_password: str
    attributes: Dict[str, str] = {}

class ActionsResponse(BaseModel):
    actions: List[Dict[str, Any]]
    tokens: Optional[SessionTokens] = None
    challenge: Optional[ChallengeState] = None


def get_user_pool() -> CognitoUserPool:
    try:
        return config_loader.get_user_pool()
    except RuntimeError as e:
        logger.error(f"User pool unavailable: {e}")
        raise HTTPException(status_code=500, detail=str(e))

def get_cognito_config() -> CognitoConfig:
    return config_loader.get_cognito_config()


def vendor_http_error(error: VendorError) -> HTTPException:
    if error.code in UNAUTHORIZED_CODES:
        status_code = status.HTTP_401_UNAUTHORIZED
    elif error.code in UNAVAILABLE_CODES:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=status_code, detail=error.to_dict())

def _session_tokens(collected: List[Action]) -> Optional[SessionTokens]:
    """Tokens of the last dispatched user that holds a session"""
    for action in reversed(collected):
        user = action.user
        if user is not None and user.session is not None:
            return SessionTokens(**user.session.to_dict())
    return None

def _challenge_state(collected: List[Action]) -> Optional[ChallengeState]:
    """Pending challenge of the last dispatched user, if it is waiting on one"""
    if not collected:
        return None
    user = collected[-1].user
    if user is None or not user.challenge_session:
        return None
    return ChallengeState(
        username=user.get_username(),
        challenge_name=user.challenge_name,
        session=user.challenge_session
    )

def _actions_response(collected: List[Action]) -> ActionsResponse:
    return ActionsResponse(
        actions=[action.to_dict() for action in collected],
        tokens=_session_tokens(collected),
        challenge=_challenge_state(collected)
    )

def _user_from_tokens(pool: CognitoUserPool, tokens: SessionTokens) -> CognitoUser:
    try:
        return CognitoUser.from_tokens(
            pool, tokens.id_token, tokens.access_token, tokens.refresh_token
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Unreadable session tokens: {e}")
        raise HTTPException(status_code=401, detail="Invalid session tokens")


@router.post("/login", response_model=ActionsResponse)
def login_user(
    request: LoginRequest,
    pool: CognitoUserPool = Depends(get_user_pool),
    config: CognitoConfig = Depends(get_cognito_config)
):
    """
    Sign in with username and password; returns every dispatched action

    When Cognito answers with a challenge, `challenge` carries what the
    client sends to /auth/mfa or /auth/new-password.
    """
    collected: List[Action] = []
    try:
        auth_flow.authenticate(request.username, request.password, pool, config, collected.append)
    except VendorError as e:
        logger.info(f"Login rejected for {request.username}: {e.code}")
        raise vendor_http_error(e)

    return _actions_response(collected)

@router.post("/mfa", response_model=ActionsResponse)
def confirm_mfa(
    request: MfaRequest,
    pool: CognitoUserPool = Depends(get_user_pool),
    config: CognitoConfig = Depends(get_cognito_config)
):
    """Answer an SMS or TOTP MFA challenge"""
    challenge = request.challenge
    user = CognitoUser.from_challenge(
        pool, challenge.username, challenge.session, challenge.challenge_name
    )
    collected: List[Action] = []
    try:
        auth_flow.confirm_mfa(user, request.code, config, collected.append)
    except VendorError as e:
        raise vendor_http_error(e)

    return _actions_response(collected)

@router.post("/new-password", response_model=ActionsResponse)
def complete_new_password(
    request: NewPasswordRequest,
    pool: CognitoUserPool = Depends(get_user_pool),
    config: CognitoConfig = Depends(get_cognito_config)
):
    """Set the permanent password of a user created with a temporary one"""
    challenge = request.challenge
    user = CognitoUser.from_challenge(
        pool, challenge.username, challenge.session, challenge.challenge_name
    )
    collected: List[Action] = []
    try:
        auth_flow.complete_new_password(
            user, request.new_password, config, collected.append, request.attributes
        )
    except VendorError as e:
        raise vendor_http_error(e)

    return _actions_response(collected)

@router.post("/refresh", response_model=ActionsResponse)
def refresh_session(
    request: RefreshRequest,
    pool: CognitoUserPool = Depends(get_user_pool),
    config: CognitoConfig = Depends(get_cognito_config)
):
    """Renew the session from a refresh token"""
    collected: List[Action] = []
    try:
        auth_flow.refresh(pool, request.username, request.refresh_token, collected.append, config)
    except VendorError as e:
        raise vendor_http_error(e)

    return _actions_response(collected)

@router.put("/attributes", response_model=ActionsResponse)
def update_user_attributes(
    request: UpdateAttributesRequest,
    pool: CognitoUserPool = Depends(get_user_pool),
    config: CognitoConfig = Depends(get_cognito_config)
):
    """Update attributes of the signed-in user"""
    user = _user_from_tokens(pool, request.tokens)
    try:
        action = login_flow.update_attributes(user, request.attributes, config)
    except VendorError as e:
        raise vendor_http_error(e)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ActionsResponse(actions=[action.to_dict()])

@router.post("/password")
def change_password(
    request: ChangePasswordRequest,
    pool: CognitoUserPool = Depends(get_user_pool)
):
    """Change the signed-in user's password"""
    user = _user_from_tokens(pool, request.tokens)
    try:
        result = auth_flow.change_password(user, request.old_password, request.new_password)
    except VendorError as e:
        raise vendor_http_error(e)
    return {'result': result}

@router.get("/config")
def get_auth_config(config: CognitoConfig = Depends(get_cognito_config)):
    """Public Cognito configuration for clients"""
    return config.public_config()
