#!/usr/bin/env python3
"""
SOPS-SHELL EXECUTOR SUITE
-------------------------
Runs real /bin/sh commands to pin down output capture and failure mapping.
"""

import pytest
from sopsshell.core.errors import ExecutionError
from sopsshell.runner.executor import CommandExecutor


@pytest.mark.parametrize("command, expected", [
    ("echo hi", "hi"),
    ("printf 1", "1"),
    ("printf 'two\\n\\n'", "two\n"),
    ("printf '  padded  '", "  padded  "),
    ("printf ''", ""),
    ("echo out; echo err >&2", "out"),
    ("X=value; echo \"$X\" | tr a-z A-Z", "VALUE"),
])
def test_captures_stdout(command, expected):
    assert CommandExecutor().run(command) == expected


def test_executor_is_callable():
    assert CommandExecutor()("echo called") == "called"


def test_nonzero_exit_is_execution_error():
    with pytest.raises(ExecutionError) as exc:
        CommandExecutor().run("echo partial; echo broken >&2; exit 3")
    assert exc.value.exit_code == 3
    assert exc.value.stderr == "broken"
    assert exc.value.command == "echo partial; echo broken >&2; exit 3"
    assert "broken" in str(exc.value)


def test_false_fails():
    with pytest.raises(ExecutionError):
        CommandExecutor().run("false")


def test_missing_shell_is_execution_error():
    with pytest.raises(ExecutionError) as exc:
        CommandExecutor(shell="/nonexistent/shell").run("echo hi")
    assert exc.value.exit_code is None


def test_timeout_is_execution_error():
    with pytest.raises(ExecutionError) as exc:
        CommandExecutor(timeout=0.2).run("exec sleep 2")
    assert "timed out" in str(exc.value)


def test_invalid_utf8_output():
    with pytest.raises(ExecutionError):
        CommandExecutor().run("printf '\\377\\376'")
