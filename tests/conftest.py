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

"""Shared fixtures and in-memory fakes of the Elastic Beanstalk and S3 clients."""

import copy
import itertools
import pytest
from botocore.exceptions import ClientError


def client_error(code, message='', operation='Operation', status=400, request_id='req-1'):
    """Build a botocore ClientError the way boto3 raises it."""
    return ClientError(
        {
            'Error': {'Code': code, 'Message': message},
            'ResponseMetadata': {'HTTPStatusCode': status, 'RequestId': request_id},
        },
        operation,
    )


SETTLES_TO = {'Launching': 'Ready', 'Updating': 'Ready', 'Terminating': 'Terminated'}


class FakeBeanstalk:
    """Elastic Beanstalk client keeping applications, versions and environments in memory.

    Transitional statuses are reported ``settle_after`` times by describe_environments
    before they settle, so waits take ``settle_after + 1`` checks.
    """

    def __init__(self, settle_after=1):
        """Start with no applications or environments."""
        self.settle_after = settle_after
        self.applications = {}
        self.versions = {}
        self.environments = []
        self.calls = []
        self.failures = {}
        self._ids = itertools.count(1)

    def _record(self, operation, kwargs):
        self.calls.append((operation, copy.deepcopy(kwargs)))
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    def calls_to(self, operation):
        """Keyword arguments of every call made to ``operation``."""
        return [kwargs for name, kwargs in self.calls if name == operation]

    def add_environment(
        self, application, name, status='Ready', version_label=None, tier='WebServer'
    ):
        """Seed an existing environment."""
        env = {
            'EnvironmentId': f'e-{next(self._ids)}',
            'EnvironmentName': name,
            'ApplicationName': application,
            'VersionLabel': version_label,
            'Status': status,
            'Health': 'Green',
            'Tier': {'Name': tier},
            'CNAME': f'{name}.elasticbeanstalk.com' if tier == 'WebServer' else None,
            '_pending': self.settle_after,
        }
        self.environments.append(env)
        return env

    def live(self, name):
        """The non-terminated environment with this name, if any."""
        for env in reversed(self.environments):
            if env['EnvironmentName'] == name and env['Status'] != 'Terminated':
                return env
        return None

    def _by_id_or_name(self, EnvironmentId=None, EnvironmentName=None):
        for env in self.environments:
            if EnvironmentId and env['EnvironmentId'] == EnvironmentId:
                return env
        if EnvironmentName:
            env = self.live(EnvironmentName)
            if env is not None:
                return env
        raise client_error('InvalidParameterValue', 'No Environment found')

    @staticmethod
    def _public(env):
        return {k: copy.deepcopy(v) for k, v in env.items() if not k.startswith('_')}

    def _observe(self, env):
        if env['Status'] in SETTLES_TO:
            if env['_pending'] > 0:
                env['_pending'] -= 1
            else:
                env['Status'] = SETTLES_TO[env['Status']]
        return self._public(env)

    def _transition(self, env, status):
        env['Status'] = status
        env['_pending'] = self.settle_after

    def describe_applications(self, ApplicationNames=None):
        self._record('describe_applications', {'ApplicationNames': ApplicationNames})
        names = ApplicationNames or list(self.applications)
        return {'Applications': [self.applications[n] for n in names if n in self.applications]}

    def create_application(self, **kwargs):
        self._record('create_application', kwargs)
        self.applications[kwargs['ApplicationName']] = dict(kwargs)
        return {'Application': dict(kwargs)}

    def describe_application_versions(self, ApplicationName, VersionLabels):
        self._record(
            'describe_application_versions',
            {'ApplicationName': ApplicationName, 'VersionLabels': VersionLabels},
        )
        found = [
            self.versions[(ApplicationName, label)]
            for label in VersionLabels
            if (ApplicationName, label) in self.versions
        ]
        return {'ApplicationVersions': found}

    def create_application_version(self, **kwargs):
        self._record('create_application_version', kwargs)
        self.versions[(kwargs['ApplicationName'], kwargs['VersionLabel'])] = dict(kwargs)
        return {'ApplicationVersion': dict(kwargs)}

    def describe_environments(
        self, ApplicationName=None, EnvironmentNames=None, EnvironmentIds=None, IncludeDeleted=True
    ):
        self._record(
            'describe_environments',
            {
                'ApplicationName': ApplicationName,
                'EnvironmentNames': EnvironmentNames,
                'EnvironmentIds': EnvironmentIds,
                'IncludeDeleted': IncludeDeleted,
            },
        )
        matches = []
        for env in reversed(self.environments):
            if EnvironmentIds is not None:
                if env['EnvironmentId'] not in EnvironmentIds:
                    continue
            else:
                if ApplicationName and env['ApplicationName'] != ApplicationName:
                    continue
                if EnvironmentNames and env['EnvironmentName'] not in EnvironmentNames:
                    continue
                if not IncludeDeleted and env['Status'] == 'Terminated':
                    continue
            matches.append(self._observe(env))
        return {'Environments': matches}

    def create_environment(self, **kwargs):
        self._record('create_environment', kwargs)
        name = kwargs['EnvironmentName']
        if self.live(name) is not None:
            raise client_error('InvalidParameterValue', f'Environment {name} already exists.')
        prefix = kwargs.get('CNAMEPrefix')
        if prefix and any(
            env['Status'] != 'Terminated' and env['CNAME'] == f'{prefix}.elasticbeanstalk.com'
            for env in self.environments
        ):
            raise client_error('InvalidParameterValue', f'DNS name ({prefix}) is not available.')
        tier = kwargs.get('Tier', {}).get('Name', 'WebServer')
        env = self.add_environment(
            kwargs['ApplicationName'],
            name,
            status='Launching',
            version_label=kwargs.get('VersionLabel'),
            tier=tier,
        )
        if prefix:
            env['CNAME'] = f'{prefix}.elasticbeanstalk.com'
        env['Tags'] = kwargs.get('Tags')
        return self._public(env)

    def update_environment(self, **kwargs):
        self._record('update_environment', kwargs)
        env = self._by_id_or_name(EnvironmentName=kwargs['EnvironmentName'])
        if env['Status'] != 'Ready':
            raise client_error('InvalidParameterValue', 'Environment is in an invalid state')
        env['VersionLabel'] = kwargs.get('VersionLabel', env['VersionLabel'])
        self._transition(env, 'Updating')
        return self._public(env)

    def terminate_environment(self, **kwargs):
        self._record('terminate_environment', kwargs)
        env = self._by_id_or_name(**kwargs)
        self._transition(env, 'Terminating')
        return self._public(env)

    def restart_app_server(self, **kwargs):
        self._record('restart_app_server', kwargs)
        env = self._by_id_or_name(**kwargs)
        self._transition(env, 'Updating')
        return {}

    def swap_environment_cnames(self, SourceEnvironmentName, DestinationEnvironmentName):
        self._record(
            'swap_environment_cnames',
            {
                'SourceEnvironmentName': SourceEnvironmentName,
                'DestinationEnvironmentName': DestinationEnvironmentName,
            },
        )
        source = self.live(SourceEnvironmentName)
        destination = self.live(DestinationEnvironmentName)
        if source is None or destination is None:
            raise client_error('InvalidParameterValue', 'No Environment found')
        if source['Status'] != 'Ready' or destination['Status'] != 'Ready':
            raise client_error('InvalidParameterValue', 'Environments must be Ready to swap')
        source['CNAME'], destination['CNAME'] = destination['CNAME'], source['CNAME']
        return {}


class FakeWaiter:
    """Stand-in for the S3 bucket_exists waiter."""

    def __init__(self, s3):
        """Remember the client so waits are recorded on it."""
        self._s3 = s3

    def wait(self, **kwargs):
        self._s3._record('wait_bucket_exists', kwargs)


class FakeS3:
    """S3 client keeping buckets and objects in memory."""

    def __init__(self):
        """Start with no buckets."""
        self.buckets = {}
        self.objects = {}
        self.calls = []
        self.failures = {}

    def _record(self, operation, kwargs):
        self.calls.append((operation, kwargs))
        failure = self.failures.get(operation)
        if failure is not None:
            raise failure

    def calls_to(self, operation):
        """Keyword arguments of every call made to ``operation``."""
        return [kwargs for name, kwargs in self.calls if name == operation]

    def head_bucket(self, Bucket):
        self._record('head_bucket', {'Bucket': Bucket})
        if Bucket not in self.buckets:
            raise client_error('404', 'Not Found', 'HeadBucket', status=404)
        return {}

    def create_bucket(self, **kwargs):
        self._record('create_bucket', kwargs)
        self.buckets[kwargs['Bucket']] = {'acl': None, 'tags': None}
        return {'Location': f'/{kwargs["Bucket"]}'}

    def get_waiter(self, name):
        assert name == 'bucket_exists'
        return FakeWaiter(self)

    def put_bucket_acl(self, Bucket, ACL):
        self._record('put_bucket_acl', {'Bucket': Bucket, 'ACL': ACL})
        self.buckets[Bucket]['acl'] = ACL

    def get_bucket_tagging(self, Bucket):
        self._record('get_bucket_tagging', {'Bucket': Bucket})
        tags = self.buckets[Bucket]['tags']
        if tags is None:
            raise client_error('NoSuchTagSet', 'The TagSet does not exist', 'GetBucketTagging')
        return {'TagSet': tags}

    def put_bucket_tagging(self, Bucket, Tagging):
        self._record('put_bucket_tagging', {'Bucket': Bucket, 'Tagging': Tagging})
        self.buckets[Bucket]['tags'] = list(Tagging['TagSet'])

    def put_object(self, **kwargs):
        self._record('put_object', kwargs)
        self.objects[(kwargs['Bucket'], kwargs['Key'])] = kwargs
        return {'ETag': '"0123456789abcdef"'}


class RecordingSleep:
    """Async sleep replacement that records the requested delays."""

    def __init__(self):
        """Start with no recorded delays."""
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def beanstalk():
    """Fake Elastic Beanstalk client."""
    return FakeBeanstalk()


@pytest.fixture
def s3():
    """Fake S3 client."""
    return FakeS3()


@pytest.fixture
def sleep():
    """Recording async sleep."""
    return RecordingSleep()


@pytest.fixture
def messages():
    """Collected progress lines."""
    return []


@pytest.fixture
def log(messages):
    """Progress logger appending to ``messages``."""
    return messages.append


@pytest.fixture
def artifact(tmp_path):
    """A small application bundle on disk."""
    path = tmp_path / 'app.zip'
    path.write_bytes(b'PK\x03\x04 application bundle')
    return str(path)


@pytest.fixture
def demo_config():
    """Config for the demo application on a solution stack, WebServer tier, no tags."""
    return {
        'appName': 'demo',
        'S3Bucket': 'demo',
        'version': '1.0.0',
        'solutionStack': '64bit Amazon Linux 2023 v6.1.0 running Node.js 20',
        'tier': 'WebServer',
    }
