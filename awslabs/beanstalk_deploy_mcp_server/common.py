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

"""Common utilities for the Beanstalk Deploy MCP Server."""

from functools import wraps
from loguru import logger
from typing import Callable


def handle_exceptions(func: Callable) -> Callable:
    """Decorator to handle exceptions in Elastic Beanstalk deployment tools.

    Wraps the function in a try-catch block and returns any exceptions
    in a standardized error format. Pipeline errors additionally report the
    stage that failed and the resource it was acting on.

    Args:
        func: The function to wrap

    Returns:
        The wrapped function that handles exceptions
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            error_message = str(e)
            error_type = type(e).__name__
            logger.error(f'{func.__name__} failed: {error_type}: {error_message}')
            result = {
                'error': True,
                'error_type': error_type,
                'error_message': error_message,
                'request_id': getattr(e, 'request_id', None),
            }
            if getattr(e, 'stage', None):
                result['stage'] = e.stage
                result['resource'] = getattr(e, 'resource', None)
            return result

    return wrapper
