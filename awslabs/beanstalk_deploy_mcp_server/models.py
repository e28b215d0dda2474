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

"""Pydantic models for the Beanstalk Deploy MCP Server."""

from awslabs.beanstalk_deploy_mcp_server.consts import DEFAULT_VERSION, TIER_TYPES
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Tuple


class TierName(str, Enum):
    """Deployment topology of an environment."""

    WEB_SERVER = 'WebServer'
    WORKER = 'Worker'


class EnvironmentStatus(str, Enum):
    """Status values reported by DescribeEnvironments."""

    LAUNCHING = 'Launching'
    UPDATING = 'Updating'
    READY = 'Ready'
    TERMINATING = 'Terminating'
    TERMINATED = 'Terminated'
    ABORTING = 'Aborting'
    LINKING_FROM = 'LinkingFrom'
    LINKING_TO = 'LinkingTo'
    UNKNOWN = 'Unknown'

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class DeployStrategy(str, Enum):
    """How an existing environment is brought to the new version."""

    IN_PLACE = 'in_place'
    BLUE_GREEN = 'blue_green'


class EnvironmentTier(BaseModel):
    """Environment tier specification."""

    Name: Optional[str] = None
    Type: Optional[str] = None
    Version: Optional[str] = None

    @classmethod
    def for_name(cls, name: TierName) -> 'EnvironmentTier':
        """Build the full tier specification for a tier name."""
        tier_type, version = TIER_TYPES[TierName(name).value]
        return cls(Name=TierName(name).value, Type=tier_type, Version=version)


class Tag(BaseModel):
    """Resource tag."""

    Key: str
    Value: str


class OptionSetting(BaseModel):
    """Configuration option setting."""

    Namespace: str
    OptionName: str
    Value: str
    ResourceName: Optional[str] = None


class DeployConfig(BaseModel):
    """Caller supplied deployment configuration.

    Field names may be given in snake_case or with the camelCase keys used by
    existing deployment config files (``appName``, ``solutionStack``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    app_name: str = Field(..., alias='appName', min_length=1)
    environment_name: Optional[str] = Field(default=None, alias='environmentName')
    description: Optional[str] = None
    version: str = DEFAULT_VERSION
    solution_stack: Optional[str] = Field(default=None, alias='solutionStack')
    template: Optional[str] = None
    tier: TierName = TierName.WEB_SERVER
    cname_prefix: Optional[str] = Field(default=None, alias='CNAMEPrefix')
    group_name: Optional[str] = Field(default=None, alias='GroupName')
    environment_tags: List[Tag] = Field(default_factory=list, alias='environmentTags')
    environment_settings: List[OptionSetting] = Field(
        default_factory=list, alias='environmentSettings'
    )
    always_swap: bool = Field(default=False, alias='alwaysSwap')
    scope_versions: bool = Field(default=True, alias='scopeVersions')
    bucket: Optional[str] = Field(default=None, alias='S3Bucket')
    bucket_acl: Optional[str] = Field(default=None, alias='bucketAcl')
    bucket_tags: List[Tag] = Field(default_factory=list, alias='bucketTags')
    region: Optional[str] = None
    profile: Optional[str] = None


class BucketDescriptor(BaseModel):
    """Artifact bucket identity and the settings reconciled onto it."""

    model_config = ConfigDict(frozen=True)

    name: str
    region: str
    acl: Optional[str] = None
    tags: Tuple[Tag, ...] = ()


class DeploymentDescriptor(BaseModel):
    """Immutable description of one deployment, built once per invocation."""

    model_config = ConfigDict(frozen=True)

    application_name: str
    environment_name: str
    description: Optional[str] = None
    version: str
    version_label: str
    solution_stack: Optional[str] = None
    template: Optional[str] = None
    tier: TierName = TierName.WEB_SERVER
    tags: Tuple[Tag, ...] = ()
    option_settings: Tuple[OptionSetting, ...] = ()
    bucket: BucketDescriptor
    bucket_key: Optional[str] = None
    cname_prefix: Optional[str] = None
    group_name: Optional[str] = None
    strategy: DeployStrategy = DeployStrategy.IN_PLACE
    scope_versions: bool = True

    @property
    def environment_tier(self) -> EnvironmentTier:
        """Tier specification sent to the API."""
        return EnvironmentTier.for_name(self.tier)

    @property
    def version_scope(self) -> Optional[str]:
        """Prefix used to keep version labels distinct per environment."""
        return self.environment_name if self.scope_versions else None

    def with_version_label(self, version_label: str) -> 'DeploymentDescriptor':
        """Return a copy targeting another application version."""
        return self.model_copy(update={'version_label': version_label})


class EnvironmentRef(BaseModel):
    """Identity of an environment being observed or polled."""

    model_config = ConfigDict(frozen=True)

    application_name: str
    environment_name: str
    environment_id: Optional[str] = None

    def __str__(self):
        """Return the environment name."""
        return self.environment_name


class EnvironmentState(BaseModel):
    """Observed state of a remote environment."""

    ref: EnvironmentRef
    status: EnvironmentStatus = EnvironmentStatus.UNKNOWN
    version_label: Optional[str] = None
    cname: Optional[str] = None
    health: Optional[str] = None
    tier_name: Optional[str] = None

    @classmethod
    def from_description(cls, description: Dict[str, Any]) -> 'EnvironmentState':
        """Build from one entry of a DescribeEnvironments response."""
        return cls(
            ref=EnvironmentRef(
                application_name=description.get('ApplicationName', ''),
                environment_name=description.get('EnvironmentName', ''),
                environment_id=description.get('EnvironmentId'),
            ),
            status=EnvironmentStatus(description.get('Status', 'Unknown')),
            version_label=description.get('VersionLabel'),
            cname=description.get('CNAME'),
            health=description.get('Health'),
            tier_name=(description.get('Tier') or {}).get('Name'),
        )

    @property
    def is_ready(self) -> bool:
        """Ready is the only state in which mutation or swap is safe."""
        return self.status == EnvironmentStatus.READY

    @property
    def is_going_away(self) -> bool:
        """Terminating or Terminated; the environment can only end up gone."""
        return self.status in (EnvironmentStatus.TERMINATING, EnvironmentStatus.TERMINATED)


class SwapPlan(BaseModel):
    """One direction of a blue-green swap."""

    model_config = ConfigDict(frozen=True)

    source_environment_name: str
    destination_environment_name: str
    tier: TierName

    @property
    def swaps_cnames(self) -> bool:
        """Worker environments have no public endpoint to exchange."""
        return self.tier == TierName.WEB_SERVER

    def __str__(self):
        """Return a short description of the plan."""
        return (
            f'{self.source_environment_name} -> {self.destination_environment_name} '
            f'({self.tier.value})'
        )


class UploadResult(BaseModel):
    """Location of an uploaded artifact."""

    bucket: str
    key: str
    size: int
    etag: Optional[str] = None

    @property
    def source_bundle(self) -> Dict[str, str]:
        """SourceBundle payload for CreateApplicationVersion."""
        return {'S3Bucket': self.bucket, 'S3Key': self.key}


class ApplicationRecord(BaseModel):
    """An Elastic Beanstalk application, and whether this run created it."""

    name: str
    created: bool = False


class VersionRecord(BaseModel):
    """An application version, and whether this run created it."""

    application_name: str
    version_label: str
    created: bool = False


class DeploymentResult(BaseModel):
    """Summary returned by a completed deploy or update."""

    application_name: str
    environment_name: str
    version_label: Optional[str] = None
    action: str
    swapped: bool = False
    bucket: Optional[str] = None
    key: Optional[str] = None
