# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Error types for the Beanstalk Deploy MCP Server.

Two families live here. ``ClientError`` and ``ServerError`` are what the MCP
tools raise at their boundary. ``DeployError`` and its subclasses are raised by
the deployment pipeline; each one records the pipeline stage and the resource
it was acting on when it failed.
"""

from loguru import logger
from typing import Optional


class ClientError(Exception):
    """An error that indicates that the request was bad."""

    def __init__(self, message):
        """Call super and set message."""
        super().__init__(message)
        self.type = 'client'
        self.message = message


class ServerError(Exception):
    """An error that indicates that there was an issue processing the request."""

    def __init__(self, log):
        """Call super."""
        super().__init__('An internal error occurred while processing your request')
        logger.error(log)
        self.type = 'server'
        self.message = log


def handle_aws_api_error(e: Exception) -> Exception:
    """Map an AWS API exception onto a ClientError or ServerError.

    Args:
        e: The exception raised by boto3 (or anything carrying a botocore-style ``response``)

    Returns:
        A ClientError or ServerError with a human readable message
    """
    error_message = str(e)
    error_code = getattr(e, 'response', {}).get('Error', {}).get('Code', 'UnknownError')

    match error_code:
        case 'AccessDeniedException' | 'AccessDenied':
            return ClientError('Access denied')
        case 'IncompleteSignature':
            return ClientError('Incomplete signature')
        case 'InvalidAction':
            return ClientError('Invalid action')
        case 'InvalidClientTokenId':
            return ClientError('Invalid client token id')
        case 'NotAuthorized':
            return ClientError('Not authorized')
        case 'ValidationException' | 'ValidationError':
            return ClientError(f'Validation error: {error_message}')
        case 'InsufficientPrivilegesException':
            return ClientError('Insufficient privileges to perform this operation')
        case 'TooManyEnvironmentsException' | 'TooManyApplicationsException':
            return ClientError(f'Elastic Beanstalk quota exceeded: {error_message}')
        case 'TooManyBucketsException':
            return ClientError('S3 bucket quota exceeded')
        case 'BucketAlreadyExists':
            return ClientError('Bucket name is already owned by another account')
        case 'ResourceNotFoundException':
            return ClientError('Resource was not found')
        case 'ThrottlingException' | 'Throttling':
            return ClientError('Request was throttled')
        case 'InternalFailure':
            return ServerError('Internal failure')
        case 'ServiceUnavailable':
            return ServerError('Service unavailable')
        case _:
            return ClientError(f'An error occurred: {error_message}')


def request_id_of(e: Optional[BaseException]) -> Optional[str]:
    """Return the AWS request id carried by a botocore exception, if any."""
    response = getattr(e, 'response', None) or {}
    return response.get('ResponseMetadata', {}).get('RequestId')


class DeployError(Exception):
    """Base class for deployment pipeline failures."""

    stage = 'deploy'

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        """Record the stage, resource and underlying cause of the failure."""
        if isinstance(cause, DeployError):
            message = f'{message}: {cause}'
        elif cause is not None:
            message = f'{message}: {handle_aws_api_error(cause).message}'
        super().__init__(message)
        self.message = message
        self.resource = resource
        if stage is not None:
            self.stage = stage
        self.cause = cause
        self.request_id = getattr(cause, 'request_id', None) or request_id_of(cause)

    def __str__(self):
        """Prefix the message with the failing stage and resource."""
        where = f'{self.stage}:{self.resource}' if self.resource else self.stage
        return f'[{where}] {self.message}'


class ConfigValidationError(DeployError):
    """The deployment configuration is missing or contradictory."""

    stage = 'configure'


class CredentialError(DeployError):
    """AWS credentials could not be loaded or were rejected."""

    stage = 'credentials'


class ArtifactReadError(DeployError):
    """The local artifact could not be read."""

    stage = 'upload'


class ArtifactUploadError(DeployError):
    """S3 rejected the artifact upload."""

    stage = 'upload'


class BucketProvisioningError(DeployError):
    """The artifact bucket could not be created or configured."""

    stage = 'bucket'


class PlatformQueryError(DeployError):
    """A describe call failed; usually bad credentials or missing permissions."""

    stage = 'describe'


class ProvisioningError(DeployError):
    """A create, update, restart or terminate call was rejected."""

    stage = 'provision'


class ResourceNotFoundError(DeployError):
    """The polled resource does not exist."""

    stage = 'wait'


class PollTimeoutError(DeployError):
    """The polled resource did not reach a target state within the attempt ceiling."""

    stage = 'wait'


class SwapError(DeployError):
    """Base class for blue-green swap failures."""

    stage = 'swap'


class SwapCreateError(SwapError):
    """The replacement environment could not be created or never became Ready."""

    stage = 'swap-create'


class SwapCutoverError(SwapError):
    """Swapping the environment CNAMEs failed; both environments are left running."""

    stage = 'swap-cutover'


class SwapTerminateError(SwapError):
    """The old environment could not be terminated after the cutover."""

    stage = 'swap-terminate'
