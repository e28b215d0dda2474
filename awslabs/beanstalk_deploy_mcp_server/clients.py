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

"""AWS client construction for the deployment pipeline."""

import boto3
from awslabs.beanstalk_deploy_mcp_server.consts import (
    DEFAULT_REGION,
    PROXY_ENV_VARS,
    USER_AGENT_EXTRA,
)
from awslabs.beanstalk_deploy_mcp_server.errors import CredentialError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound
from loguru import logger
from os import environ
from typing import Optional


def get_proxy_url() -> Optional[str]:
    """Return the HTTPS proxy configured in the process environment, if any."""
    for name in PROXY_ENV_VARS:
        if environ.get(name):
            return environ[name]
    return None


def get_client_config() -> Config:
    """Botocore config carrying the user agent and, when set, the HTTPS proxy."""
    proxy = get_proxy_url()
    if proxy:
        return Config(user_agent_extra=USER_AGENT_EXTRA, proxies={'https': proxy})
    return Config(user_agent_extra=USER_AGENT_EXTRA)


def get_session(
    region_name: Optional[str] = None, profile_name: Optional[str] = None
) -> boto3.Session:
    """Create a boto3 session for the given (or environment provided) region and profile.

    Raises:
        CredentialError: When the named profile does not exist
    """
    region = region_name or environ.get('AWS_REGION', DEFAULT_REGION)
    profile = profile_name or environ.get('AWS_PROFILE')
    try:
        if profile:
            return boto3.Session(profile_name=profile, region_name=region)
        return boto3.Session(region_name=region)
    except ProfileNotFound as e:
        logger.error(f'AWS profile {profile} not found')
        raise CredentialError(f'AWS profile "{profile}" not found', resource=profile) from e


def get_beanstalk_client(region_name: Optional[str] = None, profile_name: Optional[str] = None):
    """Create and return an AWS Elastic Beanstalk client.

    Args:
        region_name: AWS region name (defaults to AWS_REGION env var or 'us-east-1')
        profile_name: Shared credentials profile (defaults to AWS_PROFILE env var)

    Returns:
        Boto3 client for Elastic Beanstalk service

    Raises:
        CredentialError: When credentials cannot be loaded or are invalid
    """
    session = get_session(region_name, profile_name)
    try:
        client = session.client('elasticbeanstalk', config=get_client_config())

        # Verify credentials by making a simple API call
        client.describe_applications()
        return client
    except (BotoCoreError, ClientError) as e:
        logger.error(f'Error creating Elastic Beanstalk client: {str(e)}')
        raise CredentialError(
            'Could not authenticate with Elastic Beanstalk; check your AWS credentials',
            cause=e,
        ) from e


def get_s3_client(region_name: Optional[str] = None, profile_name: Optional[str] = None):
    """Create and return an S3 client sharing the Beanstalk client's credentials."""
    session = get_session(region_name, profile_name)
    try:
        return session.client('s3', config=get_client_config())
    except BotoCoreError as e:
        logger.error(f'Error creating S3 client: {str(e)}')
        raise CredentialError('Could not create S3 client', cause=e) from e
