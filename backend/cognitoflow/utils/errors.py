# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
Exception classes for cognitoflow
"""

from typing import Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

# What a boto3 call raises: service responses (ClientError) and transport
# or client-side failures (BotoCoreError)
BOTO_ERRORS = (ClientError, BotoCoreError)


class CognitoFlowError(Exception):
    """Base cognitoflow exception"""
    pass


class VendorError(CognitoFlowError):
    """
    Failure reported by the Cognito service (or by the user handle on its behalf)

    Carries the service error code (e.g. 'NotAuthorizedException') so callers
    can branch on it. Failures that never reached the service carry the
    botocore exception class name (e.g. 'EndpointConnectionError').
    """

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)

    @classmethod
    def from_client_error(cls, error: ClientError) -> 'VendorError':
        """Build from a botocore ClientError"""
        details = error.response.get('Error', {})
        return cls(
            details.get('Message') or str(error),
            code=details.get('Code')
        )

    @classmethod
    def from_botocore_error(cls, error: BotoCoreError) -> 'VendorError':
        """Build from a botocore connection, timeout or validation error"""
        return cls(str(error), code=type(error).__name__)

    @classmethod
    def from_boto_error(cls, error: Union[ClientError, BotoCoreError]) -> 'VendorError':
        if isinstance(error, ClientError):
            return cls.from_client_error(error)
        return cls.from_botocore_error(error)

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class InvalidArgument(CognitoFlowError, ValueError):
    """Caller passed an argument the workflows cannot work with"""
    pass
