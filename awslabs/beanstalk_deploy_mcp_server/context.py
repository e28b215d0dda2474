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

"""Startup context for the Beanstalk Deploy MCP Server."""

from awslabs.beanstalk_deploy_mcp_server.errors import ServerError
from typing import Optional


class Context:
    """A singleton holding the server's startup parameters."""

    _instance = None

    def __init__(
        self,
        readonly_mode: bool,
        region_name: Optional[str] = None,
        profile_name: Optional[str] = None,
    ):
        """Initializes the context."""
        self._readonly_mode = readonly_mode
        self._region_name = region_name
        self._profile_name = profile_name

    @classmethod
    def _require(cls) -> 'Context':
        if cls._instance is None:
            raise ServerError('Context was not initialized')
        return cls._instance

    @classmethod
    def readonly_mode(cls) -> bool:
        """True when the server was started with --readonly; mutating tools refuse to run."""
        return cls._require()._readonly_mode

    @classmethod
    def region_name(cls) -> Optional[str]:
        """Region given on the command line, if any."""
        return cls._require()._region_name

    @classmethod
    def profile_name(cls) -> Optional[str]:
        """Credentials profile given on the command line, if any."""
        return cls._require()._profile_name

    @classmethod
    def initialize(
        cls,
        readonly_mode: bool,
        region_name: Optional[str] = None,
        profile_name: Optional[str] = None,
    ):
        """Create the singleton instance of the type."""
        cls._instance = cls(readonly_mode, region_name, profile_name)
