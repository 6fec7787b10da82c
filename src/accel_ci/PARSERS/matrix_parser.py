# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Parsers for matrix.yml files and the CI environment variables that override them.
"""
import datetime
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..MODELS.build_matrix import AxisSet, Distribution, MatrixConfig
from ..UTILS.string_interpolation import interpolate_env
from ..errors import ConfigError

# Environment variable -> MatrixConfig field, as used by the GitLab CI jobs.
ENV_REGISTRY = "CI_REGISTRY_IMAGE"
ENV_TAG = "CI_COMMIT_REF_SLUG"
ENV_CUDA_VERSIONS = "CUDA_VERSIONS"
ENV_NIGHTLY_VERSIONS = "NIGHTLY_VERSIONS"
ENV_ENGINE = "CONTAINER_ENGINE"


class MatrixParser:
    """
    Parser for matrix.yml files.

    Example::

        registry: ${CI_REGISTRY_IMAGE:-registry.gitlab.com/termoshtt/accel}
        cuda_versions: ["10.0", "10.1", "10.2"]
        nightly_versions: ["2020-01-02", "2020-05-01"]
        distributions:
          - {family: ubuntu, version: "18.04"}
          - {family: centos, version: "7"}
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        :param context: Environment used for ${VAR} interpolation and overrides.
        """
        self.context = dict(os.environ) if context is None else context

    def load(self, matrix_path: Optional[str] = None) -> MatrixConfig:
        """
        Builds the effective configuration: defaults, then the matrix file
        if one is given, then environment overrides.
        """
        if matrix_path:
            config = self.parse(matrix_path)
        else:
            config = MatrixConfig()
        return self.apply_environment(config)

    def parse(self, matrix_path: str) -> MatrixConfig:
        """
        Parses a matrix file from a path.

        :raises ConfigError: If the file cannot be read or is invalid.
        """
        try:
            with open(matrix_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read matrix file {matrix_path}: {e}") from e
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> MatrixConfig:
        """
        Parses a matrix file from a string.

        :raises ConfigError: On unset variables, malformed YAML or invalid values.
        """
        try:
            content = interpolate_env(content, self.context)
        except KeyError as e:
            raise ConfigError(f"Matrix file interpolation failed: {e}") from e

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid matrix file: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Matrix file must be a mapping")

        axes: Dict[str, Any] = {}
        if 'distributions' in data:
            axes['distributions'] = [self._parse_distribution(d) for d in data['distributions'] or []]
        if 'cuda_versions' in data:
            axes['library_versions'] = self._to_list(data['cuda_versions'])
        if 'nightly_versions' in data:
            axes['channel_versions'] = self._to_list(data['nightly_versions'])

        fields = {k: str(data[k]) for k in ('registry', 'tag', 'context', 'engine') if data.get(k)}
        try:
            return MatrixConfig(axes=AxisSet(**axes), **fields)
        except ValidationError as e:
            raise ConfigError(f"Invalid matrix configuration: {e}") from e

    def apply_environment(self, config: MatrixConfig) -> MatrixConfig:
        """
        Overrides config values with CI_REGISTRY_IMAGE, CI_COMMIT_REF_SLUG,
        CUDA_VERSIONS, NIGHTLY_VERSIONS and CONTAINER_ENGINE when set.
        """
        axes_update: Dict[str, List[str]] = {}
        if self.context.get(ENV_CUDA_VERSIONS):
            axes_update['library_versions'] = self.context[ENV_CUDA_VERSIONS].split()
        if self.context.get(ENV_NIGHTLY_VERSIONS):
            axes_update['channel_versions'] = self.context[ENV_NIGHTLY_VERSIONS].split()

        update: Dict[str, Any] = {}
        if self.context.get(ENV_REGISTRY):
            update['registry'] = self.context[ENV_REGISTRY]
        if self.context.get(ENV_TAG):
            update['tag'] = self.context[ENV_TAG]
        if self.context.get(ENV_ENGINE):
            update['engine'] = self.context[ENV_ENGINE]

        return override(config, update, axes_update)

    def _parse_distribution(self, spec: Any) -> Distribution:
        """
        Distributions are mappings such as ``{family: centos, version: 7}``.
        """
        if not isinstance(spec, dict) or 'family' not in spec or 'version' not in spec:
            raise ConfigError(f"Distribution needs 'family' and 'version': {spec!r}")
        return Distribution(**{k: str(v) for k, v in spec.items() if v is not None})

    def _to_list(self, val: Any) -> List[str]:
        """
        YAML turns 10.0 into a float and 2020-01-02 into a date; both are
        converted back to strings. Quote versions like "10.10" in the file.
        """
        if val is None:
            return []
        if isinstance(val, (str, int, float, datetime.date)):
            return str(val).split()
        return [str(v) for v in val]


def override(config: MatrixConfig,
             update: Dict[str, Any],
             axes_update: Optional[Dict[str, List[str]]] = None) -> MatrixConfig:
    """
    Returns a validated copy of ``config`` with the given values replaced.

    :raises ConfigError: If the result is invalid, e.g. an empty axis.
    """
    data = config.model_dump()
    data.update(update)
    if axes_update:
        data['axes'].update(axes_update)
    try:
        return MatrixConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid matrix configuration: {e}") from e
