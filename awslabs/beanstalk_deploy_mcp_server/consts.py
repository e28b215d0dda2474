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

"""Constants for the Beanstalk Deploy MCP Server."""

# Default configuration values
DEFAULT_REGION = 'us-east-1'
DEFAULT_VERSION = '1.0.0'
DEFAULT_TIER = 'WebServer'
ENVIRONMENT_NAME_SUFFIX = '-env'
TRANSIENT_ENVIRONMENT_PREFIX = 'tmp-'

# Tier name -> (Type, Version) as accepted by the Elastic Beanstalk API
TIER_TYPES = {
    'WebServer': ('Standard', '1.0'),
    'Worker': ('SQS/HTTP', '1.0'),
}

# Polling: front-loaded then flat wait schedule
POLL_MAX_ATTEMPTS = 50
POLL_CEILING_SECONDS = 40
POLL_STEP_SECONDS = 2
POLL_FLOOR_SECONDS = 2

# S3
ARTIFACT_CONTENT_TYPE = 'binary/octet-stream'
MISSING_BUCKET_ERROR_CODES = ('404', 'NoSuchBucket', 'NotFound')
MISSING_TAGSET_ERROR_CODES = ('NoSuchTagSet', 'NoSuchTagSetError')

# API configuration
USER_AGENT_EXTRA = 'MCP/BeanstalkDeployServer'
PROXY_ENV_VARS = ('HTTPS_PROXY', 'https_proxy')

READONLY_MESSAGE = (
    'You have configured this tool in readonly mode. '
    'To make this change you will have to update your configuration.'
)

# Documentation content
BEANSTALK_DEPLOY_INSTRUCTIONS = """
# AWS Elastic Beanstalk Deploy MCP Server

This MCP server allows you to:
1. Deploy an application bundle to an Elastic Beanstalk environment, creating the
   S3 bucket, application, application version and environment as needed
2. Update an existing environment's configuration in place, or replace it with a
   blue-green swap when environment tags are configured or always_swap is set
3. Restart the application servers of an environment
4. Describe the deployment state of an application and its environment
"""
