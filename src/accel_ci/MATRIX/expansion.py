"""
Expansion of an AxisSet into the flat list of build targets.
"""
from typing import Iterable, Iterator, List

from ..MODELS.build_matrix import AxisSet, BuildTarget
from ..errors import ConfigError


def expand_targets(axes: AxisSet) -> Iterator[BuildTarget]:
    """
    Yields one BuildTarget per (distribution, library version, channel version),
    in declaration order of the distributions, then library versions, then
    channel versions.
    """
    for distribution in axes.distributions:
        for library_version in axes.library_versions:
            for channel_version in axes.channel_versions:
                yield BuildTarget(
                    distribution=distribution,
                    library_version=library_version,
                    channel_version=channel_version,
                )


class TargetMatrix:
    """
    Restartable view over the targets of an AxisSet. Every iteration starts
    a fresh expansion.
    """
    def __init__(self, axes: AxisSet):
        self.axes = axes

    def __iter__(self) -> Iterator[BuildTarget]:
        return expand_targets(self.axes)

    def __len__(self) -> int:
        return self.axes.size

    def identities(self) -> List[str]:
        return [target.identity for target in self]

    def select(self, identities: Iterable[str]) -> List[BuildTarget]:
        """
        Returns the targets with the given identities, in expansion order.

        :raises ConfigError: If an identity is not part of the matrix.
        """
        wanted = set(identities)
        selected = [target for target in self if target.identity in wanted]
        unknown = wanted - {target.identity for target in selected}
        if unknown:
            raise ConfigError(f"Unknown target(s): {', '.join(sorted(unknown))}")
        return selected
