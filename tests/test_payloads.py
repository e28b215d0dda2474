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

"""Tests for the payloads module."""

from awslabs.beanstalk_deploy_mcp_server.models import BucketDescriptor, EnvironmentRef, Tag
from awslabs.beanstalk_deploy_mcp_server.payloads import (
    create_application_version_request,
    create_bucket_request,
    create_environment_request,
    describe_environments_request,
    put_bucket_tagging_request,
    terminate_environment_request,
    update_environment_request,
)
from awslabs.beanstalk_deploy_mcp_server.pipeline import build_descriptor


def full_descriptor(demo_config):
    """Descriptor with every optional field populated."""
    return build_descriptor(
        {
            **demo_config,
            'description': 'Demo app',
            'CNAMEPrefix': 'demo-site',
            'GroupName': 'g1',
            'environmentTags': [{'Key': 'team', 'Value': 'web'}],
            'environmentSettings': [
                {'Namespace': 'aws:autoscaling:asg', 'OptionName': 'MinSize', 'Value': '2'}
            ],
        }
    )


class TestEnvironmentPayloads:
    """Test class for the environment request builders."""

    def test_create_carries_full_descriptor(self, demo_config):
        """Test that create sends tags, CNAME prefix and every mutable field."""
        request = create_environment_request(full_descriptor(demo_config))

        assert request['ApplicationName'] == 'demo'
        assert request['EnvironmentName'] == 'demo-env'
        assert request['VersionLabel'] == 'demo-env-1.0.0'
        assert request['SolutionStackName'].startswith('64bit')
        assert 'TemplateName' not in request
        assert request['Tier'] == {'Name': 'WebServer', 'Type': 'Standard', 'Version': '1.0'}
        assert request['Tags'] == [{'Key': 'team', 'Value': 'web'}]
        assert request['CNAMEPrefix'] == 'demo-site'
        assert request['GroupName'] == 'g1'
        assert request['Description'] == 'Demo app'
        assert request['OptionSettings'] == [
            {'Namespace': 'aws:autoscaling:asg', 'OptionName': 'MinSize', 'Value': '2'}
        ]

    def test_create_under_other_name_without_cname(self, demo_config):
        """Test that a swap side environment is created without the CNAME prefix."""
        request = create_environment_request(
            full_descriptor(demo_config), 'tmp-1', include_cname=False
        )

        assert request['EnvironmentName'] == 'tmp-1'
        assert 'CNAMEPrefix' not in request

    def test_update_omits_create_only_fields(self, demo_config):
        """Test that Tags and CNAMEPrefix are never sent on update."""
        request = update_environment_request(full_descriptor(demo_config))

        assert 'Tags' not in request
        assert 'CNAMEPrefix' not in request
        assert request['VersionLabel'] == 'demo-env-1.0.0'
        assert request['OptionSettings'][0]['OptionName'] == 'MinSize'

    def test_minimal_create_omits_empty_fields(self, demo_config):
        """Test that unset optional fields are left out."""
        request = create_environment_request(build_descriptor(demo_config))

        for field in ('Tags', 'CNAMEPrefix', 'GroupName', 'Description', 'OptionSettings'):
            assert field not in request

    def test_describe_prefers_id(self):
        """Test that a known environment id is used instead of the name."""
        by_name = describe_environments_request(
            EnvironmentRef(application_name='demo', environment_name='demo-env')
        )
        by_id = describe_environments_request(
            EnvironmentRef(
                application_name='demo', environment_name='demo-env', environment_id='e-1'
            )
        )

        assert by_name == {
            'ApplicationName': 'demo',
            'EnvironmentNames': ['demo-env'],
            'IncludeDeleted': False,
        }
        assert by_id == {'EnvironmentIds': ['e-1'], 'IncludeDeleted': True}

    def test_terminate_by_id(self):
        """Test that terminate targets the environment id when known."""
        ref = EnvironmentRef(
            application_name='demo', environment_name='demo-env', environment_id='e-9'
        )

        assert terminate_environment_request(ref) == {'EnvironmentId': 'e-9'}


class TestStoragePayloads:
    """Test class for the S3 request builders."""

    def test_create_bucket_us_east_1(self):
        """Test that no location constraint is sent for us-east-1."""
        assert create_bucket_request(BucketDescriptor(name='demo', region='us-east-1')) == {
            'Bucket': 'demo'
        }

    def test_create_bucket_other_region(self):
        """Test that other regions get a location constraint."""
        request = create_bucket_request(BucketDescriptor(name='demo', region='eu-west-1'))

        assert request['CreateBucketConfiguration'] == {'LocationConstraint': 'eu-west-1'}

    def test_bucket_tagging(self):
        """Test the tag set payload."""
        bucket = BucketDescriptor(name='demo', region='us-east-1', tags=(Tag(Key='a', Value='b'),))

        assert put_bucket_tagging_request(bucket) == {
            'Bucket': 'demo',
            'Tagging': {'TagSet': [{'Key': 'a', 'Value': 'b'}]},
        }

    def test_application_version_source_bundle(self):
        """Test that the version points at the uploaded artifact."""
        request = create_application_version_request(
            'demo', 'demo-env-1.0.0', {'S3Bucket': 'demo', 'S3Key': '1.0.0-app.zip'}, None
        )

        assert request == {
            'ApplicationName': 'demo',
            'VersionLabel': 'demo-env-1.0.0',
            'SourceBundle': {'S3Bucket': 'demo', 'S3Key': '1.0.0-app.zip'},
        }
