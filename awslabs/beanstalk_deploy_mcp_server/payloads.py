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

"""Request payloads for each Elastic Beanstalk and S3 call the pipeline makes.

Each remote operation gets its own builder so the fields sent to it are fixed
here rather than picked out of a shared parameter bag at call time.
"""

from awslabs.beanstalk_deploy_mcp_server.consts import ARTIFACT_CONTENT_TYPE, DEFAULT_REGION
from awslabs.beanstalk_deploy_mcp_server.models import (
    BucketDescriptor,
    DeploymentDescriptor,
    EnvironmentRef,
    SwapPlan,
)
from pydantic import BaseModel
from typing import Any, Dict, Iterable, List, Optional


def _dump(items: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [item.model_dump(exclude_none=True) for item in items]


def _platform(descriptor: DeploymentDescriptor) -> Dict[str, str]:
    if descriptor.solution_stack:
        return {'SolutionStackName': descriptor.solution_stack}
    return {'TemplateName': descriptor.template}


def _optional(**fields) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def describe_environments_request(ref: EnvironmentRef) -> Dict[str, Any]:
    """DescribeEnvironments for one environment.

    Known environment ids are used in preference to names, since terminated
    environments keep their name in the results for a while.
    """
    if ref.environment_id:
        return {'EnvironmentIds': [ref.environment_id], 'IncludeDeleted': True}
    return {
        'ApplicationName': ref.application_name,
        'EnvironmentNames': [ref.environment_name],
        'IncludeDeleted': False,
    }


def create_environment_request(
    descriptor: DeploymentDescriptor,
    environment_name: Optional[str] = None,
    include_cname: bool = True,
) -> Dict[str, Any]:
    """CreateEnvironment with the full descriptor."""
    request = {
        'ApplicationName': descriptor.application_name,
        'EnvironmentName': environment_name or descriptor.environment_name,
        'VersionLabel': descriptor.version_label,
        'Tier': descriptor.environment_tier.model_dump(exclude_none=True),
        **_platform(descriptor),
        **_optional(Description=descriptor.description, GroupName=descriptor.group_name),
    }
    if descriptor.option_settings:
        request['OptionSettings'] = _dump(descriptor.option_settings)
    if descriptor.tags:
        request['Tags'] = _dump(descriptor.tags)
    if include_cname and descriptor.cname_prefix:
        request['CNAMEPrefix'] = descriptor.cname_prefix
    return request


def update_environment_request(
    descriptor: DeploymentDescriptor, environment_name: Optional[str] = None
) -> Dict[str, Any]:
    """UpdateEnvironment with the mutable subset; Tags and CNAMEPrefix are create-only."""
    request = {
        'ApplicationName': descriptor.application_name,
        'EnvironmentName': environment_name or descriptor.environment_name,
        'VersionLabel': descriptor.version_label,
        'Tier': descriptor.environment_tier.model_dump(exclude_none=True),
        **_platform(descriptor),
        **_optional(Description=descriptor.description, GroupName=descriptor.group_name),
    }
    if descriptor.option_settings:
        request['OptionSettings'] = _dump(descriptor.option_settings)
    return request


def terminate_environment_request(ref: EnvironmentRef) -> Dict[str, Any]:
    """TerminateEnvironment, by id when known."""
    if ref.environment_id:
        return {'EnvironmentId': ref.environment_id}
    return {'EnvironmentName': ref.environment_name}


def restart_app_server_request(ref: EnvironmentRef) -> Dict[str, Any]:
    """RestartAppServer, by id when known."""
    if ref.environment_id:
        return {'EnvironmentId': ref.environment_id}
    return {'EnvironmentName': ref.environment_name}


def swap_environment_cnames_request(plan: SwapPlan) -> Dict[str, str]:
    """SwapEnvironmentCNAMEs between the two environments of a plan."""
    return {
        'SourceEnvironmentName': plan.source_environment_name,
        'DestinationEnvironmentName': plan.destination_environment_name,
    }


def create_application_request(name: str, description: Optional[str]) -> Dict[str, Any]:
    """CreateApplication."""
    return {'ApplicationName': name, **_optional(Description=description)}


def create_application_version_request(
    application_name: str,
    version_label: str,
    source_bundle: Dict[str, str],
    description: Optional[str],
) -> Dict[str, Any]:
    """CreateApplicationVersion pointing at an uploaded artifact."""
    return {
        'ApplicationName': application_name,
        'VersionLabel': version_label,
        'SourceBundle': dict(source_bundle),
        **_optional(Description=description),
    }


def create_bucket_request(bucket: BucketDescriptor) -> Dict[str, Any]:
    """CreateBucket; us-east-1 rejects an explicit location constraint."""
    request: Dict[str, Any] = {'Bucket': bucket.name}
    if bucket.region and bucket.region != DEFAULT_REGION:
        request['CreateBucketConfiguration'] = {'LocationConstraint': bucket.region}
    return request


def put_bucket_tagging_request(bucket: BucketDescriptor) -> Dict[str, Any]:
    """PutBucketTagging with the configured tag set."""
    return {'Bucket': bucket.name, 'Tagging': {'TagSet': _dump(bucket.tags)}}


def put_object_request(bucket: str, key: str, body: bytes) -> Dict[str, Any]:
    """PutObject for an artifact."""
    return {'Bucket': bucket, 'Key': key, 'Body': body, 'ContentType': ARTIFACT_CONTENT_TYPE}
