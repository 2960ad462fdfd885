# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
cognitoflow - login and verification workflows over AWS Cognito user pools
"""

__version__ = "1.0.0"
