from __future__ import annotations

from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from taskrelay.backends import SQLiteBackend, TaskState
from taskrelay.controllers import parse_task_arg
from taskrelay.main import taskrelay

pytestmark = [
    allure.epic("Task Dispatch"),
    allure.feature("CLI"),
]


def _sent_uuid(output: str) -> str:
    for line in output.splitlines():
        if line.startswith("Task sent: uuid="):
            return line.split("uuid=", 1)[1].split()[0]
    raise AssertionError(f"No task uuid in output: {output!r}")


def test_cli_send_state_and_queue_with_sqlite(tmp_path: Path, clean_env) -> None:
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"
    runner = CliRunner()

    sent = runner.invoke(
        taskrelay,
        [
            "send",
            "email.send",
            "--routing-key",
            "notifications",
            "--arg",
            "str:ada@example.com",
            "--arg",
            "int:3",
            "--header",
            "trace=abc",
            "--broker-url",
            db_url,
            "--backend-url",
            db_url,
        ],
    )
    assert sent.exit_code == 0, sent.output
    assert "routing_key=notifications" in sent.output
    assert "State tracking: yes" in sent.output
    task_uuid = _sent_uuid(sent.output)

    state = runner.invoke(taskrelay, ["state", task_uuid, "--backend-url", db_url])
    assert state.exit_code == 0, state.output
    assert f"Task {task_uuid}: state=PENDING" in state.output

    queued = runner.invoke(
        taskrelay,
        ["queue", "--routing-key", "notifications", "--broker-url", db_url],
    )
    assert queued.exit_code == 0, queued.output
    assert "Pending messages on notifications: 1" in queued.output
    assert f"- {task_uuid} email.send args=2" in queued.output


def test_cli_send_uses_caller_uuid_and_env_settings(tmp_path: Path, clean_env, monkeypatch) -> None:
    monkeypatch.setenv("TASKRELAY_BROKER_URL", f"sqlite:///{tmp_path / 'env.db'}")
    monkeypatch.setenv("TASKRELAY_DEFAULT_ROUTING_KEY", "jobs")
    runner = CliRunner()

    sent = runner.invoke(taskrelay, ["send", "report.build", "--uuid", "fixed-1"])

    assert sent.exit_code == 0, sent.output
    assert "uuid=fixed-1" in sent.output
    assert "routing_key=jobs" in sent.output
    assert "State tracking: no" in sent.output

    queued = runner.invoke(taskrelay, ["queue"])
    assert "Pending messages on jobs: 1" in queued.output


def test_cli_state_unknown_task(tmp_path: Path, clean_env) -> None:
    db_url = f"sqlite:///{tmp_path / 'state.db'}"

    result = CliRunner().invoke(taskrelay, ["state", "missing", "--backend-url", db_url])

    assert result.exit_code == 0
    assert "Task not found: missing" in result.output


def test_cli_purge_uses_result_expiry(tmp_path: Path, clean_env, monkeypatch) -> None:
    db_path = tmp_path / "purge.db"
    db_url = f"sqlite:///{db_path}"
    backend = SQLiteBackend(db_path)
    backend.init_schema()
    backend.update_state("done-1", TaskState.SUCCESS, None)
    backend.update_state("queued-1", TaskState.PENDING, None)
    backend.close()
    monkeypatch.setenv("TASKRELAY_RESULT_BACKEND_URL", db_url)
    monkeypatch.setenv("TASKRELAY_RESULT_EXPIRES_SECONDS", "3600")
    runner = CliRunner()

    kept = runner.invoke(taskrelay, ["purge"])
    assert kept.exit_code == 0, kept.output
    assert "Purged 0 expired task state(s)" in kept.output

    purged = runner.invoke(taskrelay, ["purge", "--expires-seconds", "0"])
    assert purged.exit_code == 0, purged.output
    assert "Purged 1 expired task state(s)" in purged.output

    assert "Task not found: done-1" in runner.invoke(taskrelay, ["state", "done-1"]).output
    assert "state=PENDING" in runner.invoke(taskrelay, ["state", "queued-1"]).output


def test_cli_purge_requires_backend(clean_env) -> None:
    result = CliRunner().invoke(taskrelay, ["purge"])

    assert result.exit_code != 0
    assert "TASKRELAY_RESULT_BACKEND_URL" in result.output


def test_cli_state_requires_backend(clean_env) -> None:
    result = CliRunner().invoke(taskrelay, ["state", "u-1"])

    assert result.exit_code != 0
    assert "TASKRELAY_RESULT_BACKEND_URL" in result.output


def test_cli_rejects_unsupported_broker_url(clean_env) -> None:
    result = CliRunner().invoke(taskrelay, ["send", "x", "--broker-url", "amqp://localhost"])

    assert result.exit_code != 0
    assert "TASKRELAY_BROKER_URL" in result.output


def test_cli_rejects_malformed_arg(clean_env) -> None:
    result = CliRunner().invoke(taskrelay, ["send", "x", "--arg", "novalue"])

    assert result.exit_code != 0
    assert "'<type>:<value>'" in result.output


@pytest.mark.parametrize(
    ("raw", "expected_type", "expected_value"),
    [
        ("int:7", "int", 7),
        ("float:1.5", "float", 1.5),
        ("bool:true", "bool", True),
        ("bool:0", "bool", False),
        ("json:[1, 2]", "json", [1, 2]),
        ("str:a:b", "str", "a:b"),
        ("uuid:abc", "uuid", "abc"),
    ],
)
def test_parse_task_arg(raw: str, expected_type: str, expected_value: object) -> None:
    arg = parse_task_arg(raw)

    assert arg.type == expected_type
    assert arg.value == expected_value
