"""
Unit tests for command success checks (docker_backup_tool/backup/checks.py).
"""

import pytest

from docker_backup_tool.backup.checks import (
    ExitCodeSuccessCheck,
    OutputSuccessCheck,
    create_success_check
)
from docker_backup_tool.backup.runtime import ExecResult


class TestOutputSuccessCheck:
    """Test the output-based check."""

    @pytest.mark.parametrize('output', [
        'error',
        'mysqldump: Got error: 1045',
        'Error: no such table',
        'sh: TypeError happened',
    ])
    def test_error_text_fails(self, output):
        assert OutputSuccessCheck()(ExecResult(exit_code=0, output=output)) is False

    @pytest.mark.parametrize('output', ['', 'done', 'ERROR in uppercase', 'Dump completed'])
    def test_other_output_passes(self, output):
        assert OutputSuccessCheck()(ExecResult(exit_code=0, output=output)) is True

    def test_exit_code_ignored(self):
        """Test a non-zero exit without error text still passes."""
        assert OutputSuccessCheck()(ExecResult(exit_code=2, output='')) is True


class TestExitCodeSuccessCheck:
    """Test the exit-code-based check."""

    def test_zero_exit_passes_despite_error_text(self):
        assert ExitCodeSuccessCheck()(ExecResult(exit_code=0, output='0 errors found')) is True

    @pytest.mark.parametrize('exit_code', [1, 127, None])
    def test_non_zero_exit_fails(self, exit_code):
        assert ExitCodeSuccessCheck()(ExecResult(exit_code=exit_code, output='')) is False


class TestCreateSuccessCheck:
    """Test success check factory."""

    def test_create_output_check(self):
        assert isinstance(create_success_check('output'), OutputSuccessCheck)

    def test_create_exit_code_check(self):
        assert isinstance(create_success_check('exit_code'), ExitCodeSuccessCheck)

    def test_invalid_check(self):
        with pytest.raises(ValueError, match="Invalid success check"):
            create_success_check('magic')
