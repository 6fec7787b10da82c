"""
Models for the nvptx toolchain installed by the provisioner.
"""
from pydantic import BaseModel

DEFAULT_CHANNEL = "nightly-2020-09-20"


class ToolchainSpec(BaseModel):
    """
    What gets installed into a channel, and the linker helper installed globally.
    """
    channel: str = DEFAULT_CHANNEL
    component: str = "rustfmt"
    target: str = "nvptx64-nvidia-cuda"
    linker_tool: str = "ptx-linker"
