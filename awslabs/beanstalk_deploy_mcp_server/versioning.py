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

"""Application version label allocation.

Labels are dot separated. Extending a label with more than three components
increments its last numeric component; anything shorter, or ending in a
non-numeric component, gets a ``.0`` appended. Labels may be scoped with an
environment name prefix so that several environments of one application never
race for the same application version.
"""

from typing import Optional, Tuple


def _strip_scope(label: str, scope_key: Optional[str]) -> str:
    prefix = f'{scope_key}-' if scope_key else ''
    if prefix and label.startswith(prefix):
        return label[len(prefix) :]
    return label


def _apply_scope(label: str, scope_key: Optional[str]) -> str:
    return f'{scope_key}-{label}' if scope_key else label


def initial_version(version: str, scope_key: Optional[str] = None) -> str:
    """Label used the first time an environment is deployed."""
    return _apply_scope(version, scope_key)


def next_version(current_label: str, scope_key: Optional[str] = None) -> str:
    """Derive the label following ``current_label``.

    Args:
        current_label: Version label currently deployed to the environment
        scope_key: Optional environment name used to namespace the label

    Returns:
        The next version label, scoped when ``scope_key`` is given

    Examples:
        >>> next_version('1.0.0')
        '1.0.0.0'
        >>> next_version('1.0.0.0')
        '1.0.0.1'
        >>> next_version('demo-env-1.0.0.4', 'demo-env')
        'demo-env-1.0.0.5'
    """
    components = _strip_scope(current_label, scope_key).split('.')
    if len(components) > 3 and components[-1].isdecimal():
        components[-1] = str(int(components[-1]) + 1)
    else:
        components.append('0')
    return _apply_scope('.'.join(components), scope_key)


def version_key(label: str, scope_key: Optional[str] = None) -> Tuple[int, ...]:
    """Numeric sort key of a label; non-numeric components sort as -1."""
    return tuple(
        int(part) if part.isdecimal() else -1 for part in _strip_scope(label, scope_key).split('.')
    )
