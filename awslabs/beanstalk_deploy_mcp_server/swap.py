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

"""Blue-green replacement of an environment."""

import time
from awslabs.beanstalk_deploy_mcp_server.consts import TRANSIENT_ENVIRONMENT_PREFIX
from awslabs.beanstalk_deploy_mcp_server.errors import (
    DeployError,
    SwapCreateError,
    SwapCutoverError,
    SwapTerminateError,
)
from awslabs.beanstalk_deploy_mcp_server.models import (
    DeploymentDescriptor,
    EnvironmentRef,
    EnvironmentState,
    EnvironmentStatus,
    SwapPlan,
)
from awslabs.beanstalk_deploy_mcp_server.payloads import swap_environment_cnames_request
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Callable, Optional


def transient_environment_name(avoid: str, clock: Callable[[], float] = time.time) -> str:
    """Timestamp derived name for the temporary side of a swap."""
    name = f'{TRANSIENT_ENVIRONMENT_PREFIX}{int(clock() * 1000)}'
    if name == avoid:
        name = f'{name}-b'
    return name


class SwapOrchestrator:
    """Replaces a live environment by standing up a second one and cutting over.

    Terminate is only ever called on the source side of a swap direction, after
    the destination is Ready and, for web servers, after the CNAMEs were swapped.
    A failure part way through therefore leaves an extra environment running,
    never none.
    """

    def __init__(
        self,
        environments,
        beanstalk,
        log: Optional[Callable[[str], None]] = None,
        name_factory: Callable[[str], str] = transient_environment_name,
    ):
        """Initialize with the environment reconciler and Elastic Beanstalk client."""
        self._environments = environments
        self._beanstalk = beanstalk
        self._log = log or logger.info
        self._name_factory = name_factory

    async def cutover(
        self, descriptor: DeploymentDescriptor, current: EnvironmentState
    ) -> EnvironmentState:
        """Move the environment of record to ``descriptor.version_label`` with no downtime.

        Swaps to a transient environment and back again, so the environment of
        record keeps its configured name and CNAME. An environment that is already
        being terminated has nothing to swap with; once it is gone the environment
        is created directly.
        """
        live = descriptor.environment_name
        if current.is_going_away:
            self._log(f'Environment "{live}" is {current.status.value}; creating it afresh.')
            await self._environments.wait_until(current.ref, EnvironmentStatus.TERMINATED)
            return await self._environments.create(descriptor)

        transient = self._name_factory(live)
        self._log(f'Replacing environment "{live}" through transient environment "{transient}"...')

        outbound = SwapPlan(
            source_environment_name=live,
            destination_environment_name=transient,
            tier=descriptor.tier,
        )
        staged = await self.swap(descriptor, outbound, current.ref)

        inbound = SwapPlan(
            source_environment_name=transient,
            destination_environment_name=live,
            tier=descriptor.tier,
        )
        return await self.swap(descriptor, inbound, staged.ref)

    async def swap(
        self, descriptor: DeploymentDescriptor, plan: SwapPlan, source: EnvironmentRef
    ) -> EnvironmentState:
        """Run one swap direction and return the Ready destination environment."""
        environments = self._environments

        try:
            destination = await environments.create(
                descriptor, environment_name=plan.destination_environment_name, include_cname=False
            )
        except DeployError as e:
            raise SwapCreateError(
                f'Replacement environment for {plan} did not come up',
                resource=plan.destination_environment_name,
                cause=e,
            ) from e

        if plan.swaps_cnames:
            await self._swap_cnames(plan, source)
        else:
            self._log(
                f'Tier is {plan.tier.value}; no public endpoint to swap, '
                f'replacing "{plan.source_environment_name}" directly.'
            )

        try:
            await environments.terminate(source)
        except DeployError as e:
            raise SwapTerminateError(
                f'Old environment of {plan} could not be terminated',
                resource=plan.source_environment_name,
                cause=e,
            ) from e

        return destination

    async def _swap_cnames(self, plan: SwapPlan, source: EnvironmentRef) -> None:
        source_name = plan.source_environment_name
        destination_name = plan.destination_environment_name
        try:
            await self._environments.wait_until(source, EnvironmentStatus.READY)
            self._log(f'Swapping environments "{source_name}" and "{destination_name}"...')
            self._beanstalk.swap_environment_cnames(**swap_environment_cnames_request(plan))
        except (DeployError, ClientError, BotoCoreError) as e:
            self._log('Swap environments failed.')
            raise SwapCutoverError(
                f'CNAME swap for {plan} failed; "{destination_name}" was left running',
                resource=source_name,
                cause=e,
            ) from e
        self._log(f'Environments "{source_name}" and "{destination_name}" swapped.')
