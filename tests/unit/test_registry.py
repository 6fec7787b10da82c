"""
Unit tests for matrix image references.
"""
import pytest
from accel_ci.MATRIX.expansion import TargetMatrix
from accel_ci.MODELS.build_matrix import AxisSet
from accel_ci.REGISTRY.image_reference import ImageReference


@pytest.fixture
def target():
    return TargetMatrix(AxisSet()).select(["ubuntu18.04-cuda10.1-nightly2020-05-01"])[0]


class TestImageReference:
    """Tests for ImageReference."""

    def test_for_target(self, target):
        ref = ImageReference.for_target("registry.gitlab.com/termoshtt/accel", target, "master")
        assert ref.full_name == "registry.gitlab.com/termoshtt/accel/ubuntu18.04-cuda10.1-nightly2020-05-01:master"
        assert ref.repository == "registry.gitlab.com/termoshtt/accel/ubuntu18.04-cuda10.1-nightly2020-05-01"
        assert str(ref) == ref.full_name

    def test_trailing_slash(self, target):
        ref = ImageReference.for_target("localhost:5000/", target, "dev")
        assert ref.full_name == "localhost:5000/ubuntu18.04-cuda10.1-nightly2020-05-01:dev"

    def test_empty_root_raises(self, target):
        with pytest.raises(ValueError):
            ImageReference.for_target("", target, "dev")

    def test_empty_tag_raises(self, target):
        with pytest.raises(ValueError):
            ImageReference.for_target("localhost:5000", target, "")
