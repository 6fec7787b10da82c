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
Image references for matrix images.
Composes references like 'registry.gitlab.com/termoshtt/accel/centos7-cuda10.2-nightly2020-05-01:master'.
"""

from dataclasses import dataclass

from ..MODELS.build_matrix import BuildTarget


@dataclass(frozen=True)
class ImageReference:
    """
    Reference to one pushed matrix image.

    Examples:
        - root 'registry.gitlab.com/termoshtt/accel', target 'ubuntu18.04-cuda10.0-nightly2020-01-02',
          tag 'manual' -> registry.gitlab.com/termoshtt/accel/ubuntu18.04-cuda10.0-nightly2020-01-02:manual
        - root 'localhost:5000', same target and tag -> localhost:5000/ubuntu18.04-cuda10.0-nightly2020-01-02:manual
    """

    registry_root: str
    name: str
    tag: str

    @classmethod
    def for_target(cls, registry_root: str, target: BuildTarget, tag: str) -> "ImageReference":
        """
        Build the reference for a matrix target.

        Args:
            registry_root: Registry path images are pushed under. Trailing slashes are ignored.
            target: The build target, whose identity becomes the image name.
            tag: Run-scoped tag, usually the CI branch slug.
        """
        if not registry_root.strip("/"):
            raise ValueError("Empty registry root")
        if not tag:
            raise ValueError("Empty image tag")
        return cls(registry_root=registry_root.rstrip("/"), name=target.identity, tag=tag)

    @property
    def repository(self) -> str:
        """Reference without the tag."""
        return f"{self.registry_root}/{self.name}"

    @property
    def full_name(self) -> str:
        return f"{self.repository}:{self.tag}"

    def __str__(self) -> str:
        return self.full_name
