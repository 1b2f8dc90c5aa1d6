from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rlm_protocol.cli import BLOCK_SEPARATOR, app
from rlm_protocol.prompts import FOLLOW_UP_PREFIX

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logging.getLogger("rlm_protocol").setLevel(logging.NOTSET)


def test_describe_text_context(write_file) -> None:
    path = write_file("context.txt", "abcde")

    result = runner.invoke(app, ["describe", str(path)])

    assert result.exit_code == 0, result.output
    assert "Your context is a str with 5 total characters" in result.output
    assert "[5]." in result.output


def test_describe_json_context_as_json(write_file) -> None:
    path = write_file("context.json", json.dumps(["ab", "cde"]))

    result = runner.invoke(app, ["describe", str(path), "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"kind": "list", "total_length": 5, "lengths": [2, 3]}


def test_describe_rejects_unsupported_json_shape(write_file) -> None:
    path = write_file("context.json", "42")

    result = runner.invoke(app, ["describe", str(path)])

    assert result.exit_code != 0


def test_describe_can_force_text_format(write_file) -> None:
    path = write_file("context.json", '["a"]')

    result = runner.invoke(app, ["describe", str(path), "--format", "text", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["kind"] == "str"


def test_extract_prints_blocks(write_file) -> None:
    path = write_file("response.md", "```repl\na = 1\n```\n```python\nno\n```\n```repl\nb = 2\n```\n")

    result = runner.invoke(app, ["extract", str(path)])

    assert result.exit_code == 0, result.output
    assert result.output == f"a = 1\n{BLOCK_SEPARATOR}\nb = 2\n"


def test_extract_without_blocks_exits_with_error(write_file) -> None:
    path = write_file("response.md", "nothing to run")

    result = runner.invoke(app, ["extract", str(path)])

    assert result.exit_code == 1
    assert "No repl blocks found." in result.output


def test_final_resolves_variables_from_env_file(write_file) -> None:
    response = write_file("response.md", "Done. FINAL_VAR(result)")
    env = write_file("env.json", json.dumps({"result": [1, 2, 3]}))

    result = runner.invoke(app, ["final", str(response), "--env", str(env)])

    assert result.exit_code == 0, result.output
    assert result.output == "[1,2,3]\n"


def test_final_literal_answer(write_file) -> None:
    response = write_file("response.md", 'FINAL("Paris")')

    result = runner.invoke(app, ["final", str(response)])

    assert result.exit_code == 0, result.output
    assert result.output == "Paris\n"


def test_final_missing_answer_exits_with_error(write_file) -> None:
    response = write_file("response.md", "FINAL_VAR(result)")

    result = runner.invoke(app, ["final", str(response)])

    assert result.exit_code == 1
    assert "No final answer found." in result.output


def test_prompt_emits_message_sequence(write_file) -> None:
    context = write_file("context.json", json.dumps({"doc": "abc"}))

    result = runner.invoke(
        app,
        ["prompt", str(context), "--iteration", "2", "--root-prompt", "Summarize", "--contexts", "2"],
    )

    assert result.exit_code == 0, result.output
    messages = json.loads(result.output)
    assert [message["role"] for message in messages] == ["system", "assistant", "user"]
    assert messages[1]["content"].startswith("Your context is a dict with 3 total characters")
    assert messages[2]["content"].startswith(FOLLOW_UP_PREFIX)
    assert '"Summarize"' in messages[2]["content"]
    assert "context_0 through context_1" in messages[2]["content"]


def test_prompt_uses_config_file(write_file) -> None:
    context = write_file("context.json", json.dumps(["a", "b", "c"]))
    config = write_file(
        "rlm.yaml",
        "prompt:\n  system_prompt: Be brief.\n  max_listed_chunks: 1\nlogging:\n  level: INFO\n",
    )

    result = runner.invoke(app, ["prompt", str(context), "--config", str(config)])

    assert result.exit_code == 0, result.output
    messages = json.loads(result.output)
    assert messages[0]["content"] == "Be brief."
    assert messages[1]["content"].endswith("[1]... [2 others].")


def test_prompt_rejects_invalid_options(write_file) -> None:
    context = write_file("context.txt", "abc")

    result = runner.invoke(app, ["prompt", str(context), "--contexts", "0"])

    assert result.exit_code != 0


def test_prompt_reports_bad_config(write_file) -> None:
    context = write_file("context.txt", "abc")
    config = write_file("rlm.yaml", "prompt: [broken\n")

    result = runner.invoke(app, ["prompt", str(context), "--config", str(config)])

    assert result.exit_code == 1
    assert "Failed to load config" in result.output


def _debug_messages(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [
        record.getMessage()
        for record in caplog.records
        if record.levelno == logging.DEBUG and record.name.startswith("rlm_protocol")
    ]


def test_prompt_applies_config_logging_level(write_file, caplog: pytest.LogCaptureFixture) -> None:
    context = write_file("context.txt", "abc")
    config = write_file("rlm.yaml", "logging:\n  level: DEBUG\n")

    result = runner.invoke(app, ["prompt", str(context), "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert logging.getLogger("rlm_protocol").level == logging.DEBUG
    assert f"Loaded configuration from {config}" in _debug_messages(caplog)


def test_prompt_default_logging_level_hides_debug(write_file, caplog: pytest.LogCaptureFixture) -> None:
    context = write_file("context.txt", "abc")
    config = write_file("rlm.yaml", "prompt:\n  max_listed_chunks: 3\n")

    result = runner.invoke(app, ["prompt", str(context), "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert _debug_messages(caplog) == []


def test_verbose_flag_enables_debug_logging(write_file, caplog: pytest.LogCaptureFixture) -> None:
    path = write_file("response.md", "```repl\na = 1\n```\n```repl\nb = 2\n```\n")

    result = runner.invoke(app, ["--verbose", "extract", str(path)])

    assert result.exit_code == 0, result.output
    assert any("Found 2 repl block(s)" in message for message in _debug_messages(caplog))


def test_verbose_flag_wins_over_config_level(write_file, caplog: pytest.LogCaptureFixture) -> None:
    context = write_file("context.txt", "abc")
    config = write_file("rlm.yaml", "logging:\n  level: ERROR\n")

    result = runner.invoke(app, ["-v", "prompt", str(context), "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert logging.getLogger("rlm_protocol").level == logging.DEBUG


def test_prompt_picks_up_rlm_yaml_from_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_file
) -> None:
    context = write_file("context.txt", "abc")
    write_file("rlm.yaml", "prompt:\n  system_prompt: From the working directory.\n")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["prompt", str(context)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0]["content"] == "From the working directory."
