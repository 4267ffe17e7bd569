"""
Core application engine for orchestrating a launch.

The `Launcher` drives a descriptor through fetching, verification and
supervised execution, delegating each step to the resource and process layers.
"""

from .launcher import Launcher, LaunchState

__all__ = ["LaunchState", "Launcher"]
