"""
Models for the image build matrix: distributions, axis values and targets.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

LIBRARY_LABEL = "cuda"
CHANNEL_LABEL = "nightly"

LIBRARY_TOKEN = "CUDA_VERSION"
CHANNEL_TOKEN = "NIGHTLY_VERSION"

RENDERED_SUFFIX = ".Dockerfile"


class Distribution(BaseModel):
    """
    One OS distribution release an image is built on, e.g. ubuntu 18.04.
    """
    model_config = ConfigDict(frozen=True)

    family: str
    version: str
    template: Optional[str] = None
    token: Optional[str] = None

    @property
    def template_name(self) -> str:
        """Template file for this family, ``<family>.Dockerfile`` unless overridden."""
        return self.template or f"{self.family}{RENDERED_SUFFIX}"

    @property
    def version_token(self) -> str:
        """Placeholder replaced by the release, ``UBUNTU_VERSION`` for ubuntu."""
        return self.token or f"{self.family.upper()}_VERSION"

    @property
    def name(self) -> str:
        return f"{self.family}{self.version}"


DEFAULT_DISTRIBUTIONS = [
    Distribution(family="ubuntu", version="18.04"),
    Distribution(family="centos", version="6"),
    Distribution(family="centos", version="7"),
]
DEFAULT_LIBRARY_VERSIONS = ["10.0", "10.1", "10.2"]
DEFAULT_CHANNEL_VERSIONS = ["2020-01-02", "2020-05-01"]


class AxisSet(BaseModel):
    """
    The three axes of the build matrix. Values are opaque version strings.
    """
    distributions: List[Distribution] = Field(
        default_factory=lambda: list(DEFAULT_DISTRIBUTIONS), min_length=1
    )
    library_versions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_LIBRARY_VERSIONS), min_length=1
    )
    channel_versions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CHANNEL_VERSIONS), min_length=1
    )

    @field_validator("library_versions", "channel_versions")
    @classmethod
    def _no_duplicate_versions(cls, values: List[str]) -> List[str]:
        if len(set(values)) != len(values):
            raise ValueError(f"duplicate values in axis: {values}")
        return values

    @field_validator("distributions")
    @classmethod
    def _no_duplicate_distributions(cls, values: List[Distribution]) -> List[Distribution]:
        names = [d.name for d in values]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate distributions: {names}")
        return values

    @property
    def size(self) -> int:
        return len(self.distributions) * len(self.library_versions) * len(self.channel_versions)


class BuildTarget(BaseModel):
    """
    A single point of the matrix. Its identity names both the rendered
    Dockerfile and the pushed image.
    """
    model_config = ConfigDict(frozen=True)

    distribution: Distribution
    library_version: str
    channel_version: str

    @property
    def identity(self) -> str:
        return (
            f"{self.distribution.name}"
            f"-{LIBRARY_LABEL}{self.library_version}"
            f"-{CHANNEL_LABEL}{self.channel_version}"
        )

    @property
    def rendered_filename(self) -> str:
        return f"{self.identity}{RENDERED_SUFFIX}"

    @property
    def bindings(self) -> Dict[str, str]:
        """Placeholder token -> value for rendering this target's template."""
        return {
            self.distribution.version_token: self.distribution.version,
            LIBRARY_TOKEN: self.library_version,
            CHANNEL_TOKEN: self.channel_version,
        }

    def __str__(self) -> str:
        return self.identity


class MatrixConfig(BaseModel):
    """
    Complete configuration for a matrix run.
    """
    axes: AxisSet = Field(default_factory=AxisSet)
    registry: str = Field(default="registry.gitlab.com/termoshtt/accel", min_length=1)
    tag: str = Field(default="manual", min_length=1)
    context: str = "."
    engine: str = "docker"

    @field_validator("registry")
    @classmethod
    def _registry_not_only_slashes(cls, value: str) -> str:
        if not value.strip("/"):
            raise ValueError(f"registry root has no path: {value!r}")
        return value
