"""
Thin wrapper over the container engine CLI (docker or a compatible one).
"""
from typing import Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..RUNNERS.process_runner import CommandRunner
from ..REGISTRY.image_reference import ImageReference
from ..errors import CommandError


class ContainerEngine:
    """
    Builds images from a Dockerfile and pushes them.
    """
    def __init__(self,
                 runner: Optional[CommandRunner] = None,
                 executable: str = "docker",
                 push_attempts: int = 1,
                 retry_wait: float = 2.0):
        """
        :param runner: Command runner, a real CommandRunner by default.
        :param executable: Engine binary, e.g. docker or podman.
        :param push_attempts: Total attempts for a push; 1 disables retrying.
        :param retry_wait: Base delay in seconds for exponential backoff between pushes.
        """
        if push_attempts < 1:
            raise ValueError("push_attempts must be at least 1")
        self.runner = runner or CommandRunner()
        self.executable = executable
        self.push_attempts = push_attempts
        self.retry_wait = retry_wait

    def build(self, dockerfile: str, image: ImageReference, context: str = "."):
        self.runner.run([self.executable, "build", "-f", dockerfile, "-t", image.full_name, context])

    def push(self, image: ImageReference):
        retrying = Retrying(
            stop=stop_after_attempt(self.push_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=60),
            retry=retry_if_exception_type(CommandError),
            before_sleep=lambda state: print(
                f"Push of {image} failed (attempt {state.attempt_number}), retrying..."
            ),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                self.runner.run([self.executable, "push", image.full_name])
