#!/usr/bin/env python3
"""
SOPS-SHELL SYNC PIPELINE SUITE
------------------------------
Check / sync behaviour over decrypted text. Most tests inject a fake runner
so no process is spawned; the scenario tests also run real shell commands.
"""

import pytest
from sopsshell.core.errors import ExecutionError
from sopsshell.core.models import Format, SyncOutcome
from sopsshell.surgery.lines import LineModel
from sopsshell.surgery.pipeline import SyncEngine


class FakeRunner:
    """Maps command strings to outputs; unknown commands fail."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def __call__(self, command):
        self.calls.append(command)
        value = self.outputs.get(command)
        if value is None:
            raise ExecutionError(command, "Command failed with exit status 1", exit_code=1)
        return value


# --- Scenarios with the real executor ---

def test_scenario_yaml_in_sync():
    result = SyncEngine().check("# shell: echo hi\nfoo: hi\n", Format.YAML)
    assert len(result.results) == 1
    assert result.results[0].outcome == SyncOutcome.IN_SYNC
    assert result.out_of_sync == []


def test_scenario_yaml_out_of_sync():
    text = "# shell: echo bye\nfoo: hi\n"
    checked = SyncEngine().check(text, Format.YAML)
    assert checked.results[0].outcome == SyncOutcome.OUT_OF_SYNC
    assert checked.results[0].new_value == "bye"
    assert checked.updated_text is None

    synced = SyncEngine().sync(text, Format.YAML)
    assert synced.updated_text == "# shell: echo bye\nfoo: bye\n"


def test_scenario_env_format():
    synced = SyncEngine().sync("# shell: printf 1\nKEY=0\n", Format.ENV)
    assert synced.updated_text == "# shell: printf 1\nKEY=1\n"


def test_scenario_command_failure():
    text = "# shell: false\nfoo: hi\n"
    checked = SyncEngine().check(text, Format.YAML)
    assert checked.results[0].outcome == SyncOutcome.COMMAND_FAILED
    assert isinstance(checked.results[0].error, ExecutionError)

    synced = SyncEngine().sync(text, Format.YAML)
    assert synced.updated_text is None
    assert not synced.changed
    assert len(synced.failed) == 1


def test_scenario_duplicate_keys():
    text = (
        "[dev]\n"
        "# shell: dev-cmd\n"
        "password = same\n"
        "\n"
        "[prod]\n"
        "# shell: prod-cmd\n"
        "password = same\n"
    )
    engine = SyncEngine(FakeRunner({"dev-cmd": "same", "prod-cmd": "rotated"}))
    synced = engine.sync(text, Format.INI)

    assert [r.outcome for r in synced.results] == [SyncOutcome.IN_SYNC, SyncOutcome.OUT_OF_SYNC]
    assert synced.updated_text == (
        "[dev]\n"
        "# shell: dev-cmd\n"
        "password = same\n"
        "\n"
        "[prod]\n"
        "# shell: prod-cmd\n"
        "password = rotated\n"
    )


# --- Engine behaviour with a fake runner ---

def test_unannotated_entries_are_not_run():
    runner = FakeRunner({"cmd": "x"})
    result = SyncEngine(runner).check("a: 1\n# shell: cmd\nb: x\nc: 3\n", Format.YAML)
    assert runner.calls == ["cmd"]
    assert len(result.entries) == 3
    assert len(result.results) == 1


def test_commands_run_in_file_order():
    runner = FakeRunner({"one": "1", "two": "2", "three": "3"})
    SyncEngine(runner).check(
        "# shell: three\nc: 3\n# shell: one\na: 1\n# shell: two\nb: 2\n", Format.YAML
    )
    assert runner.calls == ["three", "one", "two"]


def test_no_directives_is_a_noop():
    text = "# header\nfoo: hi\nbar: 'quoted'\n"
    runner = FakeRunner({})
    synced = SyncEngine(runner).sync(text, Format.YAML)
    assert runner.calls == []
    assert synced.results == []
    assert synced.updated_text is None


def test_all_in_sync_leaves_file_untouched():
    synced = SyncEngine(FakeRunner({"c": "hi"})).sync("# shell: c\nfoo: hi\n", Format.YAML)
    assert synced.applied
    assert synced.updated_text is None
    assert not synced.changed


def test_comparison_is_exact():
    engine = SyncEngine(FakeRunner({"a": "Secret", "b": " padded", "c": "quoted"}))
    result = engine.check(
        "# shell: a\nx: secret\n", Format.YAML
    )
    assert result.results[0].outcome == SyncOutcome.OUT_OF_SYNC

    env = engine.check("# shell: b\nPAD= padded\n# shell: c\nQ=\"quoted\"\n", Format.ENV)
    assert [r.outcome for r in env.results] == [SyncOutcome.IN_SYNC, SyncOutcome.OUT_OF_SYNC]


def test_failure_does_not_block_other_entries():
    text = "# shell: broken\na: 1\n# shell: good\nb: old\n"
    synced = SyncEngine(FakeRunner({"good": "new"})).sync(text, Format.YAML)
    assert [r.outcome for r in synced.results] == [SyncOutcome.COMMAND_FAILED, SyncOutcome.OUT_OF_SYNC]
    assert synced.updated_text == "# shell: broken\na: 1\n# shell: good\nb: new\n"


def test_multiline_output_is_a_failure():
    synced = SyncEngine(FakeRunner({"cert": "line1\nline2"})).sync("# shell: cert\nfoo: x\n", Format.YAML)
    assert synced.results[0].outcome == SyncOutcome.COMMAND_FAILED
    assert "multiple lines" in str(synced.results[0].error)
    assert synced.updated_text is None


@pytest.mark.parametrize("fmt, text", [
    (Format.YAML, "top:\n  # shell: cmd\n  key: \"old\"  \n"),
    (Format.ENV, "# shell: cmd\r\nexport KEY=old\r\n"),
    (Format.INI, "[s]\n; shell: cmd\nkey   =   old   \n"),
])
def test_sync_then_check_is_in_sync(fmt, text):
    engine = SyncEngine(FakeRunner({"cmd": "fresh"}))
    synced = engine.sync(text, fmt)
    assert synced.changed

    rechecked = engine.check(synced.updated_text, fmt)
    assert [r.outcome for r in rechecked.results] == [SyncOutcome.IN_SYNC]
    assert rechecked.entries[0].value == "fresh"


@pytest.mark.parametrize("fmt, text, output", [
    (Format.YAML, "# shell: c\nfoo: x\n", "pw "),
    (Format.YAML, "# shell: c\nfoo: x\n", " pw"),
    (Format.YAML, "# shell: c\nfoo: x\n", "#pw"),
    (Format.YAML, "# shell: c\nfoo: x\n", "abc #def"),
    (Format.YAML, "# shell: c\nfoo: x\n", "| folded"),
    (Format.INI, "[s]\n; shell: c\nkey = x\n", "pw "),
    (Format.INI, "[s]\n; shell: c\nkey = x\n", " pw"),
])
def test_output_that_would_not_read_back_is_a_failure(fmt, text, output):
    synced = SyncEngine(FakeRunner({"c": output})).sync(text, fmt)
    assert synced.results[0].outcome == SyncOutcome.COMMAND_FAILED
    assert isinstance(synced.results[0].error, ExecutionError)
    assert synced.updated_text is None


def test_env_keeps_surrounding_whitespace():
    engine = SyncEngine(FakeRunner({"c": " pw "}))
    synced = engine.sync("# shell: c\nKEY=old\n", Format.ENV)
    assert synced.updated_text == "# shell: c\nKEY= pw \n"
    assert engine.check(synced.updated_text, Format.ENV).results[0].outcome == SyncOutcome.IN_SYNC


@pytest.mark.parametrize("placeholder, filled", [
    ("  password:\n", "  password: s3cr3t\n"),
    ("  password:   \n", "  password:   s3cr3t\n"),
])
def test_yaml_placeholder_is_populated(placeholder, filled):
    text = "db:\n  # shell: c\n" + placeholder + "  user: admin\n"
    engine = SyncEngine(FakeRunner({"c": "s3cr3t"}))
    synced = engine.sync(text, Format.YAML)
    assert synced.updated_text == "db:\n  # shell: c\n" + filled + "  user: admin\n"

    rechecked = engine.check(synced.updated_text, Format.YAML)
    assert [r.outcome for r in rechecked.results] == [SyncOutcome.IN_SYNC]


def test_sync_loads_text_once(monkeypatch):
    loads = []
    original_load = LineModel.load

    def counting_load(text):
        loads.append(text)
        return original_load(text)

    monkeypatch.setattr(LineModel, "load", counting_load)
    text = "# shell: c\nfoo: old\n"
    synced = SyncEngine(FakeRunner({"c": "new"})).sync(text, Format.YAML)
    assert synced.updated_text == "# shell: c\nfoo: new\n"
    assert loads == [text]
