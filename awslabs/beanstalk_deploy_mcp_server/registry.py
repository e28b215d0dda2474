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

"""Elastic Beanstalk application and application version records."""

from awslabs.beanstalk_deploy_mcp_server.errors import PlatformQueryError, ProvisioningError
from awslabs.beanstalk_deploy_mcp_server.models import ApplicationRecord, VersionRecord
from awslabs.beanstalk_deploy_mcp_server.payloads import (
    create_application_request,
    create_application_version_request,
)
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Callable, Dict, Optional


class ApplicationRegistry:
    """Creates applications and application versions when they are absent.

    Existing records are never altered: create-on-absent is the only mutation.
    """

    def __init__(self, beanstalk, log: Optional[Callable[[str], None]] = None):
        """Initialize with a boto3 Elastic Beanstalk client and progress logger."""
        self._beanstalk = beanstalk
        self._log = log or logger.info

    async def ensure_application(
        self, name: str, description: Optional[str] = None
    ) -> ApplicationRecord:
        """Describe the application by name and create it if there is none."""
        self._log(f'Checking for application "{name}"...')
        try:
            response = self._beanstalk.describe_applications(ApplicationNames=[name])
        except (ClientError, BotoCoreError) as e:
            self._log(
                'beanstalk.describeApplications request failed. '
                'Check your AWS credentials and permissions.'
            )
            raise PlatformQueryError(
                'Could not describe application', resource=name, cause=e
            ) from e

        if response.get('Applications'):
            return ApplicationRecord(name=name, created=False)

        self._log(f'Creating application "{name}"...')
        try:
            self._beanstalk.create_application(**create_application_request(name, description))
        except (ClientError, BotoCoreError) as e:
            self._log('Create application failed.')
            raise ProvisioningError('Could not create application', resource=name, cause=e) from e
        return ApplicationRecord(name=name, created=True)

    async def ensure_version(
        self,
        application_name: str,
        version_label: str,
        source_bundle: Dict[str, str],
        description: Optional[str] = None,
    ) -> VersionRecord:
        """Describe the version by label and create it if there is none.

        An existing version is reused as-is, so deploying the same version twice
        is a no-op here; the environment update is what picks it up.
        """
        try:
            response = self._beanstalk.describe_application_versions(
                ApplicationName=application_name, VersionLabels=[version_label]
            )
        except (ClientError, BotoCoreError) as e:
            self._log(
                'beanstalk.describeApplicationVersions request failed. '
                'Check your AWS credentials and permissions.'
            )
            raise PlatformQueryError(
                'Could not describe application version', resource=version_label, cause=e
            ) from e

        if response.get('ApplicationVersions'):
            self._log(f'Version "{version_label}" already exists; reusing it.')
            return VersionRecord(
                application_name=application_name, version_label=version_label, created=False
            )

        self._log(f'Creating application version "{version_label}"...')
        try:
            self._beanstalk.create_application_version(
                **create_application_version_request(
                    application_name, version_label, source_bundle, description
                )
            )
        except (ClientError, BotoCoreError) as e:
            self._log('Create application version failed.')
            raise ProvisioningError(
                'Could not create application version', resource=version_label, cause=e
            ) from e

        self._log(f'Version "{version_label}" created.')
        return VersionRecord(
            application_name=application_name, version_label=version_label, created=True
        )
