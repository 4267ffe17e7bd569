"""
Process Layer.

This package spawns and supervises the child runtime, wiring its standard
streams and exposing abort for cooperative cancellation.
"""

from .streams import OutputBuffer
from .supervisor import Execution, ProcessSupervisor, normalize_exit_code

__all__ = ["Execution", "OutputBuffer", "ProcessSupervisor", "normalize_exit_code"]
