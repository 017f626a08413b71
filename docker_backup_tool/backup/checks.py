"""
Success checks for commands executed inside containers.

Supports:
- output: the command failed if its output mentions "error" or "Error"
- exit_code: the command failed if it exited non-zero
"""

from .runtime import ExecResult


class CommandError(Exception):
    """Raised when an in-container command is judged failed."""

    def __init__(self, message: str, output: str = '', exit_code=None):
        super().__init__(message)
        self.output = output
        self.exit_code = exit_code


class OutputSuccessCheck:
    """
    Judge a command by the text it printed.

    Any occurrence of "error" or "Error" in the combined output counts as a
    failure, whatever the exit code. Other casings ("ERROR") pass.
    """

    name = 'output'

    def __call__(self, result: ExecResult) -> bool:
        return not ('Error' in result.output or 'error' in result.output)


class ExitCodeSuccessCheck:
    """Judge a command by its exit code."""

    name = 'exit_code'

    def __call__(self, result: ExecResult) -> bool:
        return result.exit_code == 0


def create_success_check(check_type: str):
    """
    Factory function to create the appropriate success check.

    Args:
        check_type: 'output' or 'exit_code'

    Returns:
        Success check instance

    Raises:
        ValueError: If check_type is invalid
    """
    if check_type == 'output':
        return OutputSuccessCheck()
    elif check_type == 'exit_code':
        return ExitCodeSuccessCheck()
    else:
        raise ValueError(f"Invalid success check: {check_type}. Valid options: ['output', 'exit_code']")
