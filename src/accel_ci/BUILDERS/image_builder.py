"""
Builders for rendering matrix Dockerfiles from templates and building/pushing
one image per matrix target.
"""
import glob
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

import psutil

from ..MATRIX.expansion import TargetMatrix
from ..MODELS.build_matrix import AxisSet, BuildTarget, CHANNEL_LABEL, LIBRARY_LABEL, RENDERED_SUFFIX
from ..REGISTRY.image_reference import ImageReference
from ..UTILS.string_interpolation import render
from ..errors import BuildError, CommandError, MatrixBuildError
from .container_engine import ContainerEngine

RENDERED_PATTERN = f"*-{LIBRARY_LABEL}*-{CHANNEL_LABEL}*{RENDERED_SUFFIX}"


def resolve_jobs(jobs: int) -> int:
    """0 means one worker per CPU."""
    if jobs < 0:
        raise ValueError("jobs must not be negative")
    if jobs == 0:
        return psutil.cpu_count() or 1
    return jobs


class MatrixImageBuilder:
    """
    Renders a Dockerfile per matrix target and builds and pushes its image.
    Targets are independent: a failing target never stops the others.
    """
    def __init__(self,
                 engine: Optional[ContainerEngine] = None,
                 base_dir: str = ".",
                 template_dir: Optional[str] = None,
                 context: str = "."):
        """
        Initializes the builder.

        :param engine: Container engine used for build and push.
        :param base_dir: Directory rendered Dockerfiles are written to.
        :param template_dir: Directory holding the per-family templates, base_dir by default.
        :param context: Build context, relative to base_dir.
        """
        self.engine = engine or ContainerEngine()
        self.base_dir = base_dir
        self.template_dir = template_dir or base_dir
        self.context = context

    def rendered_path(self, target: BuildTarget) -> str:
        return os.path.join(self.base_dir, target.rendered_filename)

    def render_target(self, target: BuildTarget) -> str:
        """
        Writes ``<identity>.Dockerfile`` for a target.

        :return: Path of the rendered file.
        :raises BuildError: If the template cannot be read or the file cannot be written.
        """
        template_path = os.path.join(self.template_dir, target.distribution.template_name)
        try:
            with open(template_path, 'r', encoding='utf-8', newline='') as f:
                template = f.read()
            path = self.rendered_path(target)
            with open(path, 'w', encoding='utf-8', newline='') as f:
                f.write(render(template, target.bindings))
        except OSError as e:
            print(f"[{target.identity}] Failed to render {template_path}: {e}")
            raise BuildError(target.identity, "render", e) from e
        return path

    def build_target(self, target: BuildTarget, registry_root: str, tag_slug: str, push: bool = True) -> ImageReference:
        """
        Renders, builds and optionally pushes one target.

        :raises BuildError: On the first failing stage for this target.
        """
        dockerfile = self.render_target(target)
        try:
            image = ImageReference.for_target(registry_root, target, tag_slug)
        except ValueError as e:
            raise BuildError(target.identity, "reference", e) from e

        print(f"[{target.identity}] Building {image}")
        try:
            self.engine.build(dockerfile, image, os.path.join(self.base_dir, self.context))
        except CommandError as e:
            raise BuildError(target.identity, "build", e) from e

        if push:
            print(f"[{target.identity}] Pushing {image}")
            try:
                self.engine.push(image)
            except CommandError as e:
                raise BuildError(target.identity, "push", e) from e
        return image

    def _attempt(self, target: BuildTarget, registry_root: str, tag_slug: str, push: bool) -> Optional[BuildError]:
        try:
            self.build_target(target, registry_root, tag_slug, push=push)
        except BuildError as e:
            print(f"[{target.identity}] {e.stage} failed: {e.cause}")
            return e
        return None

    def build_all(self,
                  axes: AxisSet,
                  registry_root: str,
                  tag_slug: str,
                  targets: Optional[Iterable[BuildTarget]] = None,
                  push: bool = True,
                  jobs: int = 1) -> List[ImageReference]:
        """
        Builds every target of the matrix, or only ``targets`` when given.

        Every target is attempted. Images already pushed stay pushed when
        another target fails.

        :param axes: Matrix axes.
        :param registry_root: Registry path images are pushed under.
        :param tag_slug: Tag applied to every image of this run.
        :param targets: Subset of the matrix to build, in the order to build them.
        :param push: Push each image after building it.
        :param jobs: Worker threads; 1 is sequential, 0 uses one per CPU.
        :return: References of all built images, in target order.
        :raises MatrixBuildError: After all targets ran, if any of them failed.
        """
        selected = list(targets) if targets is not None else list(TargetMatrix(axes))
        workers = resolve_jobs(jobs)

        if workers == 1:
            results = [self._attempt(t, registry_root, tag_slug, push) for t in selected]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(
                    lambda t: self._attempt(t, registry_root, tag_slug, push), selected
                ))

        failures = [result for result in results if result is not None]
        if failures:
            raise MatrixBuildError(failures)
        return [ImageReference.for_target(registry_root, t, tag_slug) for t in selected]

    def render_all(self, axes: AxisSet, targets: Optional[Iterable[BuildTarget]] = None) -> List[str]:
        """
        Renders Dockerfiles without building anything.

        :raises MatrixBuildError: If any template could not be rendered.
        """
        selected = list(targets) if targets is not None else list(TargetMatrix(axes))
        paths = []
        failures = []
        for target in selected:
            try:
                paths.append(self.render_target(target))
            except BuildError as e:
                failures.append(e)
        if failures:
            raise MatrixBuildError(failures)
        return paths

    def clean(self) -> List[str]:
        """
        Removes every rendered Dockerfile from base_dir. Templates and other
        files are left alone. Nothing to remove is not an error.

        :return: Paths of removed files.
        """
        removed = []
        for path in sorted(glob.glob(os.path.join(glob.escape(self.base_dir), RENDERED_PATTERN))):
            if os.path.isfile(path):
                os.remove(path)
                removed.append(path)
        return removed
