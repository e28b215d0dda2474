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

"""S3 artifact bucket provisioning and artifact upload."""

import os
from awslabs.beanstalk_deploy_mcp_server.consts import (
    MISSING_BUCKET_ERROR_CODES,
    MISSING_TAGSET_ERROR_CODES,
)
from awslabs.beanstalk_deploy_mcp_server.errors import (
    ArtifactReadError,
    ArtifactUploadError,
    BucketProvisioningError,
)
from awslabs.beanstalk_deploy_mcp_server.models import (
    BucketDescriptor,
    DeploymentDescriptor,
    UploadResult,
)
from awslabs.beanstalk_deploy_mcp_server.payloads import (
    create_bucket_request,
    put_bucket_tagging_request,
    put_object_request,
)
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Callable, Optional


def _error_code(error: ClientError) -> str:
    return str(error.response.get('Error', {}).get('Code', ''))


def artifact_key(version: str, artifact_path: str) -> str:
    """Deterministic key of an artifact: ``{version}-{basename}``."""
    return f'{version}-{os.path.basename(artifact_path)}'


class ArtifactStore:
    """Owns the artifact bucket and the objects uploaded into it."""

    def __init__(self, s3, log: Optional[Callable[[str], None]] = None):
        """Initialize with a boto3 S3 client and progress logger."""
        self._s3 = s3
        self._log = log or logger.info

    async def ensure_bucket(self, descriptor: DeploymentDescriptor) -> BucketDescriptor:
        """Make sure the artifact bucket exists and carries the configured ACL and tags.

        Raises:
            BucketProvisioningError: The bucket could not be created or configured
            botocore.exceptions.ClientError: head_bucket failed for another reason
        """
        bucket = descriptor.bucket
        self._log(f'Checking for S3 bucket "{bucket.name}"...')
        try:
            self._s3.head_bucket(Bucket=bucket.name)
        except ClientError as e:
            if _error_code(e) not in MISSING_BUCKET_ERROR_CODES:
                self._log(
                    'S3.headBucket request failed. Check your AWS credentials and permissions.'
                )
                raise
            self._create_bucket(bucket)

        if self._apply_settings(bucket):
            self._log(f'S3 bucket "{bucket.name}" settings updated.')
        return bucket

    def _create_bucket(self, bucket: BucketDescriptor) -> None:
        self._log(f'Creating S3 bucket "{bucket.name}"...')
        try:
            self._s3.create_bucket(**create_bucket_request(bucket))
            self._s3.get_waiter('bucket_exists').wait(Bucket=bucket.name)
        except (ClientError, BotoCoreError) as e:
            self._log(f'Create S3 bucket "{bucket.name}" failed.')
            raise BucketProvisioningError(
                'Could not create bucket', resource=bucket.name, cause=e
            ) from e

    def _apply_settings(self, bucket: BucketDescriptor) -> bool:
        """Reconcile ACL and tags; returns True when anything was written."""
        changed = False
        try:
            if bucket.acl:
                self._s3.put_bucket_acl(Bucket=bucket.name, ACL=bucket.acl)
                changed = True
            if bucket.tags and self._current_tags(bucket.name) != {
                tag.Key: tag.Value for tag in bucket.tags
            }:
                self._log(f'Tagging S3 bucket "{bucket.name}"...')
                self._s3.put_bucket_tagging(**put_bucket_tagging_request(bucket))
                changed = True
        except ClientError as e:
            self._log(f'Configuring S3 bucket "{bucket.name}" failed.')
            raise BucketProvisioningError(
                'Could not apply bucket ACL or tags', resource=bucket.name, cause=e
            ) from e
        return changed

    def _current_tags(self, name: str) -> dict:
        try:
            response = self._s3.get_bucket_tagging(Bucket=name)
        except ClientError as e:
            if _error_code(e) in MISSING_TAGSET_ERROR_CODES:
                return {}
            raise
        return {tag['Key']: tag['Value'] for tag in response.get('TagSet', [])}

    async def upload(self, descriptor: DeploymentDescriptor, artifact_path: str) -> UploadResult:
        """Upload the artifact under its deterministic key, overwriting any previous upload.

        Raises:
            ArtifactReadError: The local artifact could not be read
            ArtifactUploadError: S3 rejected the write
        """
        bucket = descriptor.bucket.name
        key = descriptor.bucket_key or artifact_key(descriptor.version, artifact_path)
        self._log(f'Uploading code to S3 bucket "{bucket}"...')

        try:
            with open(artifact_path, 'rb') as f:
                body = f.read()
        except OSError as e:
            raise ArtifactReadError(
                f'Error reading specified package "{artifact_path}"', resource=artifact_path
            ) from e

        try:
            response = self._s3.put_object(**put_object_request(bucket, key, body))
        except (ClientError, BotoCoreError) as e:
            self._log(f'Upload of "{artifact_path}" to S3 bucket failed.')
            raise ArtifactUploadError(
                'S3 rejected the artifact', resource=f's3://{bucket}/{key}', cause=e
            ) from e

        logger.debug(f'Uploaded {len(body)} bytes to s3://{bucket}/{key}')
        return UploadResult(bucket=bucket, key=key, size=len(body), etag=response.get('ETag'))
