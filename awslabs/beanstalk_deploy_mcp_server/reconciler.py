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

"""Create-or-update reconciliation of an Elastic Beanstalk environment."""

import asyncio
from awslabs.beanstalk_deploy_mcp_server.consts import POLL_MAX_ATTEMPTS
from awslabs.beanstalk_deploy_mcp_server.errors import (
    PlatformQueryError,
    ProvisioningError,
    ResourceNotFoundError,
)
from awslabs.beanstalk_deploy_mcp_server.models import (
    DeploymentDescriptor,
    DeployStrategy,
    EnvironmentRef,
    EnvironmentState,
    EnvironmentStatus,
)
from awslabs.beanstalk_deploy_mcp_server.payloads import (
    create_environment_request,
    describe_environments_request,
    restart_app_server_request,
    terminate_environment_request,
    update_environment_request,
)
from awslabs.beanstalk_deploy_mcp_server.poller import Poller, backoff_schedule
from awslabs.beanstalk_deploy_mcp_server.swap import SwapOrchestrator
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Any, Awaitable, Callable, Optional


READY = EnvironmentStatus.READY
TERMINATED = EnvironmentStatus.TERMINATED


class EnvironmentReconciler:
    """Drives one environment to Ready, creating or updating it as needed.

    Environments are only mutated while Ready. Anything mid-transition is waited
    on first, unless the caller is describing on behalf of a swap.
    """

    def __init__(
        self,
        beanstalk,
        log: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        schedule: Callable[[int], float] = backoff_schedule,
        swapper: Optional[SwapOrchestrator] = None,
    ):
        """Initialize with a boto3 Elastic Beanstalk client and polling settings."""
        self._beanstalk = beanstalk
        self._log = log or logger.info
        self._max_attempts = max_attempts
        self._schedule = schedule
        self._poller = Poller(
            self.observe, log=self._log, sleep=sleep, terminal=(TERMINATED,)
        )
        self._swapper = swapper or SwapOrchestrator(self, beanstalk, log=self._log)

    def observe(self, ref: EnvironmentRef) -> Optional[EnvironmentState]:
        """Single describe call; None when the environment does not exist.

        Raises:
            PlatformQueryError: The describe call itself failed
        """
        try:
            response = self._beanstalk.describe_environments(**describe_environments_request(ref))
        except (ClientError, BotoCoreError) as e:
            self._log(
                'beanstalk.describeEnvironments request failed. '
                'Check your AWS credentials and permissions.'
            )
            raise PlatformQueryError(
                'Could not describe environment', resource=ref.environment_name, cause=e
            ) from e

        states = [EnvironmentState.from_description(d) for d in response.get('Environments', [])]
        if not ref.environment_id:
            # Looked up by name: a terminated environment of the same name is absent.
            states = [s for s in states if s.status != TERMINATED]
        return states[0] if states else None

    async def wait_until(self, ref: EnvironmentRef, *statuses: EnvironmentStatus):
        """Poll the environment until it reaches one of ``statuses``."""
        return await self._poller.wait_for(
            ref, statuses, max_attempts=self._max_attempts, schedule=self._schedule
        )

    async def describe(
        self, descriptor: DeploymentDescriptor, for_swap: bool = False
    ) -> Optional[EnvironmentState]:
        """Observe the target environment.

        Returns None when it is absent. A non-Ready environment is waited on
        until it settles, unless ``for_swap`` is set, in which case its current
        state is returned as-is for the swap to deal with.
        """
        name = descriptor.environment_name
        self._log(f'Checking for environment "{name}"...')
        state = self.observe(
            EnvironmentRef(application_name=descriptor.application_name, environment_name=name)
        )
        if state is None or state.is_ready or for_swap:
            return state

        settled = await self.wait_until(state.ref, READY, TERMINATED)
        return None if settled.status == TERMINATED else settled

    async def reconcile(
        self,
        descriptor: DeploymentDescriptor,
        current: Optional[EnvironmentState],
    ) -> EnvironmentState:
        """Bring the environment to ``descriptor``: create, swap or update in place."""
        if current is None:
            return await self.create(descriptor)
        if descriptor.strategy == DeployStrategy.BLUE_GREEN:
            return await self._swapper.cutover(descriptor, current)
        return await self.update(descriptor, current)

    async def create(
        self,
        descriptor: DeploymentDescriptor,
        environment_name: Optional[str] = None,
        include_cname: bool = True,
    ) -> EnvironmentState:
        """Create an environment and wait for it to be Ready."""
        name = environment_name or descriptor.environment_name
        self._log(f'Creating environment "{name}"...')
        try:
            response = self._beanstalk.create_environment(
                **create_environment_request(descriptor, name, include_cname)
            )
        except (ClientError, BotoCoreError) as e:
            self._log('Create environment failed.')
            raise ProvisioningError('Could not create environment', resource=name, cause=e) from e

        self._log(f'Environment "{name}" created and is now being launched...')
        ref = EnvironmentRef(
            application_name=descriptor.application_name,
            environment_name=name,
            environment_id=response.get('EnvironmentId'),
        )
        return await self.wait_until(ref, READY)

    async def update(
        self, descriptor: DeploymentDescriptor, current: EnvironmentState
    ) -> EnvironmentState:
        """Update the environment in place and wait for it to be Ready again."""
        if not current.is_ready:
            current = await self.wait_until(current.ref, READY)

        name = current.ref.environment_name
        self._log(f'Updating environment "{name}"...')
        try:
            self._beanstalk.update_environment(**update_environment_request(descriptor, name))
        except (ClientError, BotoCoreError) as e:
            self._log('Update environment failed.')
            raise ProvisioningError('Could not update environment', resource=name, cause=e) from e

        self._log(f'Environment "{name}" updated and is now being launched...')
        return await self.wait_until(current.ref, READY)

    async def terminate(self, ref: EnvironmentRef) -> EnvironmentState:
        """Wait for Ready, terminate, then wait for Terminated."""
        name = ref.environment_name
        self._log(f'Terminating environment "{name}"...')
        ready = await self.wait_until(ref, READY)
        try:
            self._beanstalk.terminate_environment(**terminate_environment_request(ready.ref))
        except (ClientError, BotoCoreError) as e:
            self._log('Terminate environment failed.')
            raise ProvisioningError(
                'Could not terminate environment', resource=name, cause=e
            ) from e

        self._log(f'Environment "{name}" is now being terminated...')
        return await self.wait_until(ready.ref, TERMINATED)

    async def restart_app_server(self, descriptor: DeploymentDescriptor) -> EnvironmentState:
        """Restart the application servers of a Ready environment."""
        current = await self.describe(descriptor)
        if current is None:
            raise ResourceNotFoundError(
                'Cannot restart a missing environment', resource=descriptor.environment_name
            )

        name = current.ref.environment_name
        self._log(f'Restarting application servers of "{name}"...')
        try:
            self._beanstalk.restart_app_server(**restart_app_server_request(current.ref))
        except (ClientError, BotoCoreError) as e:
            self._log('Restart app server failed.')
            raise ProvisioningError(
                'Could not restart application servers', resource=name, cause=e
            ) from e
        return await self.wait_until(current.ref, READY)
