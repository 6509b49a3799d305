# tests/test_console_connector.py

from __future__ import annotations

import builtins

import pytest

from daytasks.connectors.console_connector import ConsoleNotifier, ConsolePermissionPrompt, run_console_loop
from daytasks.core.ports import NotificationPermission
from daytasks.tasks.task_models import DirectOccurrence, TaskTemplate


@pytest.mark.asyncio
async def test_console_notifier_prints_title_and_time(capsys) -> None:
    occ = DirectOccurrence(template=TaskTemplate(id=1, title="Standup", time="09:00"), date_key="2024-03-05")
    await ConsoleNotifier().notify(occ, "2024-03-05")
    assert '[DUE] "Standup" is scheduled for 09:00' in capsys.readouterr().out


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("answer", "expected"),
    [("y", NotificationPermission.GRANTED), ("", NotificationPermission.DENIED)],
)
async def test_permission_prompt_asks(monkeypatch, answer, expected) -> None:
    monkeypatch.setattr(builtins, "input", lambda _prompt="": answer)
    assert await ConsolePermissionPrompt().request() == expected


@pytest.mark.asyncio
async def test_permission_prompt_assumed(monkeypatch) -> None:
    def boom(_prompt=""):
        raise AssertionError("should not ask")

    monkeypatch.setattr(builtins, "input", boom)
    assert await ConsolePermissionPrompt(assume_granted=True).request() == NotificationPermission.GRANTED


@pytest.mark.asyncio
async def test_console_loop_runs_commands_until_exit(state, monkeypatch, capsys) -> None:
    await state.manager.load()
    lines = iter(["/day 2024-03-05", "hello", "/exit"])
    monkeypatch.setattr(builtins, "input", lambda _prompt="": next(lines))

    await run_console_loop(state)

    out = capsys.readouterr().out
    assert "1. [ ] 09:00 Standup" in out
    assert "Commands start with '/'" in out
