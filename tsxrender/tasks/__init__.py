"""
External engine adapters.

- RemotionCliEngine: bundle / compositions / render through the Remotion CLI
"""

from .remotion_runner import RemotionCliEngine, RenderEngine, run_command

__all__ = [
    "RemotionCliEngine",
    "RenderEngine",
    "run_command",
]
