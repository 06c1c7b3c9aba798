"""
CI host integration for OdinKit.
"""

from .reporter import ExecutionPathRegistry, OutputReporter, to_command_value

__all__ = ["ExecutionPathRegistry", "OutputReporter", "to_command_value"]
