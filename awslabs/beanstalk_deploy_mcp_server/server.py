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

"""awslabs Beanstalk Deploy MCP Server implementation."""

import argparse
import os
import sys
from awslabs.beanstalk_deploy_mcp_server.clients import get_beanstalk_client
from awslabs.beanstalk_deploy_mcp_server.common import handle_exceptions
from awslabs.beanstalk_deploy_mcp_server.consts import (
    BEANSTALK_DEPLOY_INSTRUCTIONS,
    DEFAULT_TIER,
    DEFAULT_VERSION,
    ENVIRONMENT_NAME_SUFFIX,
    READONLY_MESSAGE,
)
from awslabs.beanstalk_deploy_mcp_server.context import Context
from awslabs.beanstalk_deploy_mcp_server.errors import ClientError
from awslabs.beanstalk_deploy_mcp_server.models import EnvironmentRef
from awslabs.beanstalk_deploy_mcp_server.pipeline import deploy, restart, update
from awslabs.beanstalk_deploy_mcp_server.reconciler import EnvironmentReconciler
from loguru import logger
from mcp.server.fastmcp import FastMCP
from pydantic import Field
from typing import Any, Dict, List, Optional


logger.remove()
logger.add(sys.stderr, level=os.getenv('FASTMCP_LOG_LEVEL', 'WARNING'))

mcp = FastMCP(
    'awslabs.beanstalk-deploy-mcp-server',
    instructions=BEANSTALK_DEPLOY_INSTRUCTIONS,
    dependencies=[
        'pydantic',
        'loguru',
        'boto3',
    ],
)


def _tags(tags: Optional[Dict[str, str]]) -> List[Dict[str, str]]:
    return [{'Key': key, 'Value': value} for key, value in (tags or {}).items()]


def _build_config(**fields) -> Dict[str, Any]:
    """Deployment config from tool arguments, filling region and profile from the context."""
    config = {key: value for key, value in fields.items() if value is not None}
    config['environment_tags'] = _tags(fields.get('environment_tags'))
    config['bucket_tags'] = _tags(fields.get('bucket_tags'))
    config.setdefault('region', Context.region_name())
    config.setdefault('profile', Context.profile_name())
    return config


def _require_writable() -> None:
    if Context.readonly_mode():
        raise ClientError(READONLY_MESSAGE)


@mcp.tool()
@handle_exceptions
async def deploy_application(
    ctx,
    artifact_path: str = Field(
        ..., description='Local path of the application bundle (for example app.zip)'
    ),
    application_name: str = Field(..., description='Elastic Beanstalk application name'),
    environment_name: Optional[str] = Field(
        default=None,
        description=f'Environment name; defaults to the application name plus "{ENVIRONMENT_NAME_SUFFIX}"',
    ),
    description: Optional[str] = Field(
        default=None, description='Description of the application, version and environment'
    ),
    version: str = Field(default=DEFAULT_VERSION, description='Base version of the artifact'),
    solution_stack: Optional[str] = Field(
        default=None, description='Solution stack name; exactly one of this or template'
    ),
    template: Optional[str] = Field(
        default=None, description='Configuration template name; exactly one of this or solution_stack'
    ),
    tier: str = Field(default=DEFAULT_TIER, description='Environment tier: WebServer or Worker'),
    cname_prefix: Optional[str] = Field(
        default=None, description='CNAME prefix, only applied when the environment is created'
    ),
    group_name: Optional[str] = Field(default=None, description='Environment group name'),
    environment_tags: Optional[Dict[str, str]] = Field(
        default=None,
        description='Environment tags; when present an existing environment is replaced by a blue-green swap',
    ),
    option_settings: Optional[List[Dict[str, str]]] = Field(
        default=None, description='Option settings as Namespace/OptionName/Value objects'
    ),
    always_swap: bool = Field(
        default=False, description='Always replace an existing environment with a blue-green swap'
    ),
    bucket: Optional[str] = Field(
        default=None, description='S3 bucket for the artifact; defaults to the application name'
    ),
    bucket_acl: Optional[str] = Field(default=None, description='Canned ACL applied to the bucket'),
    bucket_tags: Optional[Dict[str, str]] = Field(default=None, description='Bucket tags'),
    region_name: Optional[str] = Field(default=None, description='The AWS region to run the tool'),
) -> Dict[str, Any]:
    """Uploads an application bundle and deploys it to an Elastic Beanstalk environment.

    Creates the S3 bucket, application, application version and environment as
    needed. An existing environment is updated in place, or replaced with a
    blue-green swap when environment tags are given or always_swap is set.
    """
    _require_writable()
    config = _build_config(
        app_name=application_name,
        environment_name=environment_name,
        description=description,
        version=version,
        solution_stack=solution_stack,
        template=template,
        tier=tier,
        cname_prefix=cname_prefix,
        group_name=group_name,
        environment_tags=environment_tags,
        environment_settings=option_settings,
        always_swap=always_swap,
        bucket=bucket,
        bucket_acl=bucket_acl,
        bucket_tags=bucket_tags,
        region=region_name,
    )
    result = await deploy(artifact_path, config)
    return result.model_dump()


@mcp.tool()
@handle_exceptions
async def update_environment(
    ctx,
    application_name: str = Field(..., description='Elastic Beanstalk application name'),
    environment_name: Optional[str] = Field(default=None, description='Environment name'),
    description: Optional[str] = Field(default=None, description='Environment description'),
    solution_stack: Optional[str] = Field(
        default=None, description='Solution stack name; exactly one of this or template'
    ),
    template: Optional[str] = Field(
        default=None, description='Configuration template name; exactly one of this or solution_stack'
    ),
    tier: str = Field(default=DEFAULT_TIER, description='Environment tier: WebServer or Worker'),
    group_name: Optional[str] = Field(default=None, description='Environment group name'),
    environment_tags: Optional[Dict[str, str]] = Field(
        default=None,
        description='Environment tags; when present the environment is replaced by a blue-green swap',
    ),
    option_settings: Optional[List[Dict[str, str]]] = Field(
        default=None, description='Option settings as Namespace/OptionName/Value objects'
    ),
    always_swap: bool = Field(
        default=False, description='Replace the environment with a blue-green swap'
    ),
    region_name: Optional[str] = Field(default=None, description='The AWS region to run the tool'),
) -> Dict[str, Any]:
    """Applies configuration changes to an environment, keeping its deployed version.

    Without tags or always_swap the environment is updated in place. Otherwise a
    transient environment is created, the CNAMEs are swapped and the old
    environment is terminated, then the same is done back onto the original name.
    """
    _require_writable()
    config = _build_config(
        app_name=application_name,
        environment_name=environment_name,
        description=description,
        solution_stack=solution_stack,
        template=template,
        tier=tier,
        group_name=group_name,
        environment_tags=environment_tags,
        environment_settings=option_settings,
        always_swap=always_swap,
        region=region_name,
    )
    result = await update(config)
    return result.model_dump()


@mcp.tool()
@handle_exceptions
async def restart_app_server(
    ctx,
    application_name: str = Field(..., description='Elastic Beanstalk application name'),
    environment_name: Optional[str] = Field(default=None, description='Environment name'),
    region_name: Optional[str] = Field(default=None, description='The AWS region to run the tool'),
) -> Dict[str, Any]:
    """Restarts the application servers of an environment and waits for it to be Ready."""
    _require_writable()
    config = _build_config(
        app_name=application_name,
        environment_name=environment_name,
        region=region_name,
    )
    result = await restart(config)
    return result.model_dump()


@mcp.tool()
@handle_exceptions
async def describe_deployment(
    ctx,
    application_name: str = Field(..., description='Elastic Beanstalk application name'),
    environment_name: Optional[str] = Field(default=None, description='Environment name'),
    region_name: Optional[str] = Field(default=None, description='The AWS region to run the tool'),
) -> Dict[str, Any]:
    """Returns whether the application exists and the current state of its environment."""
    client = get_beanstalk_client(region_name or Context.region_name(), Context.profile_name())
    environment_name = environment_name or f'{application_name}{ENVIRONMENT_NAME_SUFFIX}'

    applications = client.describe_applications(ApplicationNames=[application_name])
    state = EnvironmentReconciler(client).observe(
        EnvironmentRef(application_name=application_name, environment_name=environment_name)
    )

    return {
        'ApplicationExists': bool(applications.get('Applications')),
        'EnvironmentName': environment_name,
        'Environment': state.model_dump(mode='json') if state else None,
    }


def main():
    """Main entry point for the MCP server application.

    Parses command line arguments and initializes the MCP server.
    """
    parser = argparse.ArgumentParser(description='AWS Elastic Beanstalk Deploy MCP Server')
    parser.add_argument(
        '--readonly', action='store_true', help='Refuse to run tools that change AWS resources'
    )
    parser.add_argument('--region', default=None, help='Default AWS region')
    parser.add_argument('--profile', default=None, help='AWS credentials profile')
    args = parser.parse_args()

    # Initialize the context
    Context.initialize(
        readonly_mode=args.readonly, region_name=args.region, profile_name=args.profile
    )

    mcp.run()


if __name__ == '__main__':
    main()
