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

"""Wait for a remote resource to reach one of a set of target states."""

import asyncio
from awslabs.beanstalk_deploy_mcp_server.consts import (
    POLL_CEILING_SECONDS,
    POLL_FLOOR_SECONDS,
    POLL_MAX_ATTEMPTS,
    POLL_STEP_SECONDS,
)
from awslabs.beanstalk_deploy_mcp_server.errors import PollTimeoutError, ResourceNotFoundError
from loguru import logger
from typing import Any, Awaitable, Callable, Iterable, Optional


def backoff_schedule(attempt: int) -> int:
    """Seconds to wait after the given zero-based attempt.

    Starts at the ceiling and shrinks by a fixed step per attempt down to the
    floor, so slow initial provisioning gets long waits and later checks are
    frequent.
    """
    return max(POLL_CEILING_SECONDS - POLL_STEP_SECONDS * attempt, POLL_FLOOR_SECONDS)


class Poller:
    """Polls a resource until its status is acceptable.

    Only the read (``probe``) is ever retried. The probe returns an object with a
    ``status`` attribute, or None when the resource does not exist; any exception
    it raises propagates unchanged.
    """

    def __init__(
        self,
        probe: Callable[[Any], Optional[Any]],
        log: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        kind: str = 'environment',
        terminal: Iterable[Any] = (),
    ):
        """Initialize with the probe, progress logger and sleep coroutine.

        ``terminal`` lists states the resource never leaves; reaching one that is
        not acceptable ends the wait at once.
        """
        self._probe = probe
        self._log = log or logger.info
        self._sleep = sleep
        self._kind = kind
        self._terminal = frozenset(terminal)

    async def wait_for(
        self,
        resource_id: Any,
        acceptable: Iterable[Any],
        max_attempts: int = POLL_MAX_ATTEMPTS,
        schedule: Callable[[int], float] = backoff_schedule,
    ):
        """Wait until the resource reaches one of the acceptable states.

        Args:
            resource_id: Identity handed to the probe
            acceptable: States that end the wait
            max_attempts: Number of checks before giving up
            schedule: Maps a zero-based attempt number to a delay in seconds

        Returns:
            The last observed resource state

        Raises:
            ResourceNotFoundError: The resource does not exist, or reached a terminal
                state that is not acceptable
            PollTimeoutError: The resource did not settle within max_attempts checks
        """
        acceptable = frozenset(acceptable)
        wanted = ' or '.join(sorted(getattr(s, 'value', str(s)) for s in acceptable))
        self._log(f'Waiting for {self._kind} "{resource_id}"...')

        for attempt in range(max_attempts):
            state = self._probe(resource_id)
            if state is None:
                self._log(f'{self._kind.capitalize()} "{resource_id}" not found.')
                raise ResourceNotFoundError(
                    f'{self._kind.capitalize()} not found while waiting for {wanted}',
                    resource=str(resource_id),
                )

            current = getattr(state.status, 'value', state.status)
            if state.status in acceptable:
                self._log(f'   {self._kind.capitalize()} is {current}; Done')
                return state

            if state.status in self._terminal:
                self._log(f'   {self._kind.capitalize()} is {current}; it will never be {wanted}')
                raise ResourceNotFoundError(
                    f'{self._kind.capitalize()} reached {current} while waiting for {wanted}',
                    resource=str(resource_id),
                )

            if attempt + 1 >= max_attempts:
                break

            delay = schedule(attempt)
            self._log(
                f'    Not {wanted} (currently {current}); next check in {delay}s '
                f'(attempt: {attempt + 1}/{max_attempts})'
            )
            await self._sleep(delay)

        self._log('  Waited too long; aborting. Please manually clean up and try again')
        raise PollTimeoutError(
            f'Gave up after {max_attempts} checks waiting for {wanted}; the {self._kind} '
            'was left in an indeterminate state and needs manual intervention',
            resource=str(resource_id),
        )
