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

"""Deploy and update pipelines.

Each stage is awaited in turn and either returns the value the next stage
needs or raises a ``DeployError``; the first error aborts the pipeline and
whatever remote resources were already created are left in place.
"""

import asyncio
from awslabs.beanstalk_deploy_mcp_server.artifact_store import ArtifactStore, artifact_key
from awslabs.beanstalk_deploy_mcp_server.clients import get_beanstalk_client, get_s3_client
from awslabs.beanstalk_deploy_mcp_server.consts import DEFAULT_REGION, ENVIRONMENT_NAME_SUFFIX
from awslabs.beanstalk_deploy_mcp_server.errors import ConfigValidationError, DeployError
from awslabs.beanstalk_deploy_mcp_server.models import (
    BucketDescriptor,
    DeployConfig,
    DeploymentDescriptor,
    DeploymentResult,
    DeployStrategy,
    EnvironmentState,
)
from awslabs.beanstalk_deploy_mcp_server.reconciler import EnvironmentReconciler
from awslabs.beanstalk_deploy_mcp_server.registry import ApplicationRegistry
from awslabs.beanstalk_deploy_mcp_server.versioning import (
    initial_version,
    next_version,
    version_key,
)
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from os import environ
from pydantic import ValidationError
from typing import Any, Awaitable, Callable, Dict, Optional, Union


ConfigInput = Union[DeployConfig, Dict[str, Any]]


def load_config(config: ConfigInput) -> DeployConfig:
    """Validate caller configuration, accepting a model or a plain dict."""
    if isinstance(config, DeployConfig):
        return config
    try:
        return DeployConfig.model_validate(config)
    except ValidationError as e:
        raise ConfigValidationError(f'Invalid deployment configuration: {e}') from e


def build_descriptor(
    config: ConfigInput,
    artifact_path: Optional[str] = None,
    require_artifact: bool = False,
    require_platform: bool = True,
) -> DeploymentDescriptor:
    """Resolve defaults and validate the configuration into a deployment descriptor.

    Raises:
        ConfigValidationError: Neither or both of solution stack and template are
            set, or an artifact is required and missing
    """
    config = load_config(config)

    if require_platform and not config.solution_stack and not config.template:
        raise ConfigValidationError('Missing either "solutionStack" or "template" config')
    if config.solution_stack and config.template:
        raise ConfigValidationError(
            'Provided both "solutionStack" and "template" config; only one or the other supported'
        )
    if require_artifact and not artifact_path:
        raise ConfigValidationError('Missing/invalid codePackage')

    environment_name = config.environment_name or f'{config.app_name}{ENVIRONMENT_NAME_SUFFIX}'
    scope = environment_name if config.scope_versions else None
    tags = tuple(config.environment_tags)
    strategy = (
        DeployStrategy.BLUE_GREEN if config.always_swap or tags else DeployStrategy.IN_PLACE
    )

    return DeploymentDescriptor(
        application_name=config.app_name,
        environment_name=environment_name,
        description=config.description,
        version=config.version,
        version_label=initial_version(config.version, scope),
        solution_stack=config.solution_stack,
        template=config.template,
        tier=config.tier,
        tags=tags,
        option_settings=tuple(config.environment_settings),
        bucket=BucketDescriptor(
            name=(config.bucket or config.app_name).lower(),
            region=config.region or environ.get('AWS_REGION', DEFAULT_REGION),
            acl=config.bucket_acl,
            tags=tuple(config.bucket_tags),
        ),
        bucket_key=artifact_key(config.version, artifact_path) if artifact_path else None,
        cname_prefix=config.cname_prefix,
        group_name=config.group_name,
        strategy=strategy,
        scope_versions=config.scope_versions,
    )


def _select_version_label(
    descriptor: DeploymentDescriptor,
    current: Optional[EnvironmentState],
    log: Callable[[str], None],
) -> str:
    """Next label after the running one, unless the configured base version is ahead of it."""
    if current is None or not current.version_label:
        return descriptor.version_label
    scope = descriptor.version_scope
    if version_key(descriptor.version_label, scope) > version_key(current.version_label, scope):
        log(
            f'Configured version "{descriptor.version}" is ahead of running version '
            f'"{current.version_label}"; starting from "{descriptor.version_label}".'
        )
        return descriptor.version_label
    return next_version(current.version_label, scope)


def _action(current: Optional[EnvironmentState], swapping: bool) -> str:
    if current is None or current.is_going_away:
        return 'created'
    return 'swapped' if swapping else 'updated'


def _report_failure(log: Callable[[str], None], e: Exception) -> None:
    stage = getattr(e, 'stage', 'aws')
    log(f'Deployment failed during {stage}: {e}')


async def deploy(
    artifact_path: str,
    config: ConfigInput,
    log: Optional[Callable[[str], None]] = None,
    beanstalk=None,
    s3=None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> DeploymentResult:
    """Upload an artifact and roll it out to the configured environment.

    Args:
        artifact_path: Path of the application bundle to upload
        config: Deployment configuration
        log: Progress sink; defaults to loguru's ``logger.info``
        beanstalk: Elastic Beanstalk client; built from the config when omitted
        s3: S3 client; built from the config when omitted
        sleep: Coroutine used to wait between status checks

    Returns:
        Summary of the deployment
    """
    log = log or logger.info
    try:
        config = load_config(config)
        descriptor = build_descriptor(config, artifact_path, require_artifact=True)
        if beanstalk is None:
            beanstalk = get_beanstalk_client(descriptor.bucket.region, config.profile)
        if s3 is None:
            s3 = get_s3_client(descriptor.bucket.region, config.profile)

        store = ArtifactStore(s3, log=log)
        registry = ApplicationRegistry(beanstalk, log=log)
        environments = EnvironmentReconciler(beanstalk, log=log, sleep=sleep)
        swapping = descriptor.strategy == DeployStrategy.BLUE_GREEN

        await store.ensure_bucket(descriptor)
        upload = await store.upload(descriptor, artifact_path)
        await registry.ensure_application(descriptor.application_name, descriptor.description)

        current = await environments.describe(descriptor, for_swap=swapping)
        version_label = _select_version_label(descriptor, current, log)
        target = descriptor.with_version_label(version_label)

        await registry.ensure_version(
            descriptor.application_name,
            version_label,
            upload.source_bundle,
            descriptor.description,
        )
        await environments.reconcile(target, current)
    except (DeployError, ClientError, BotoCoreError) as e:
        _report_failure(log, e)
        raise

    action = _action(current, swapping)
    log(f'Deployment of version "{version_label}" to "{descriptor.environment_name}" complete.')
    return DeploymentResult(
        application_name=descriptor.application_name,
        environment_name=descriptor.environment_name,
        version_label=version_label,
        action=action,
        swapped=action == 'swapped',
        bucket=upload.bucket,
        key=upload.key,
    )


async def update(
    config: ConfigInput,
    log: Optional[Callable[[str], None]] = None,
    beanstalk=None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> DeploymentResult:
    """Push configuration only changes, or a swap, against the deployed version.

    Same as ``deploy`` without the artifact upload and application version
    stages: the environment keeps the version label it is already running.
    """
    log = log or logger.info
    try:
        config = load_config(config)
        descriptor = build_descriptor(config)
        if beanstalk is None:
            beanstalk = get_beanstalk_client(descriptor.bucket.region, config.profile)

        registry = ApplicationRegistry(beanstalk, log=log)
        environments = EnvironmentReconciler(beanstalk, log=log, sleep=sleep)
        swapping = descriptor.strategy == DeployStrategy.BLUE_GREEN

        await registry.ensure_application(descriptor.application_name, descriptor.description)
        current = await environments.describe(descriptor, for_swap=swapping)
        target = descriptor
        if current is not None and current.version_label:
            target = descriptor.with_version_label(current.version_label)
        await environments.reconcile(target, current)
    except (DeployError, ClientError, BotoCoreError) as e:
        _report_failure(log, e)
        raise

    action = _action(current, swapping)
    log(f'Update of "{descriptor.environment_name}" complete.')
    return DeploymentResult(
        application_name=descriptor.application_name,
        environment_name=descriptor.environment_name,
        version_label=target.version_label,
        action=action,
        swapped=action == 'swapped',
    )


async def restart(
    config: ConfigInput,
    log: Optional[Callable[[str], None]] = None,
    beanstalk=None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> DeploymentResult:
    """Restart the application servers of the configured environment."""
    log = log or logger.info
    try:
        config = load_config(config)
        descriptor = build_descriptor(config, require_platform=False)
        if beanstalk is None:
            beanstalk = get_beanstalk_client(descriptor.bucket.region, config.profile)
        state = await EnvironmentReconciler(beanstalk, log=log, sleep=sleep).restart_app_server(
            descriptor
        )
    except (DeployError, ClientError, BotoCoreError) as e:
        _report_failure(log, e)
        raise

    return DeploymentResult(
        application_name=descriptor.application_name,
        environment_name=descriptor.environment_name,
        version_label=state.version_label,
        action='restarted',
    )
