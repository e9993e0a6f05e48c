"""Command line entry point and the app's wiring, without starting curses."""

import sys
from types import SimpleNamespace

import pytest

from nosudopass import main as main_module
from nosudopass.main import NoSudoPass, main
from nosudopass.NavMachine import Event, RESULT_ST, USER_ST


def _argv(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["nosudopass", *args])


def _paths(grant_dir, passwd_file, validator):
    return ("--grant-dir", str(grant_dir), "--passwd-file", str(passwd_file),
            "--validator", validator)


def test_list_mode(monkeypatch, capsys, grant_dir, passwd_file, ok_validator):
    (grant_dir / "nopasswd_bob").write_text("bob ALL=(ALL) NOPASSWD: ALL\n")
    (grant_dir / "admins").write_text("%admin ALL=(ALL) ALL\n")
    _argv(monkeypatch, *_paths(grant_dir, passwd_file, ok_validator), "--list")

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert f"  {grant_dir / 'nopasswd_bob'}" in out
    assert "admins" not in out
    assert "  alice\n  bob\n" in out


def test_list_mode_empty(monkeypatch, capsys, grant_dir, tmp_path, ok_validator):
    registry = tmp_path / "empty-passwd"
    registry.write_text("")
    _argv(monkeypatch, *_paths(grant_dir, registry, ok_validator), "--list")

    with pytest.raises(SystemExit):
        main()

    assert capsys.readouterr().out.count("(none)") == 2


def test_interactive_exit_codes(monkeypatch, grant_dir, passwd_file, ok_validator):
    _argv(monkeypatch, *_paths(grant_dir, passwd_file, ok_validator))
    monkeypatch.setattr(NoSudoPass, "main_loop", lambda self: None)
    monkeypatch.setattr(main_module.time, "sleep", lambda seconds: None)

    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 0


def _start(monkeypatch, args, root):
    naps = []
    _argv(monkeypatch, *args)
    monkeypatch.setattr(NoSudoPass, "main_loop", lambda self: None)
    monkeypatch.setattr(main_module, "is_root", lambda: root)
    monkeypatch.setattr(main_module.time, "sleep", naps.append)
    with pytest.raises(SystemExit):
        main()
    return naps


def test_startup_warnings_pause_before_curses(monkeypatch, capsys, grant_dir,
                                              passwd_file, tmp_path):
    naps = _start(monkeypatch, _paths(grant_dir, passwd_file, str(tmp_path / "nope")), True)

    assert naps == [1.0]
    assert "validator not found" in capsys.readouterr().err


def test_non_root_pauses_before_curses(monkeypatch, capsys, grant_dir,
                                       passwd_file, ok_validator):
    naps = _start(monkeypatch, _paths(grant_dir, passwd_file, ok_validator), False)

    assert naps == [1.0]
    assert "without root privileges" in capsys.readouterr().out


def test_clean_start_does_not_pause(monkeypatch, grant_dir, passwd_file, ok_validator):
    assert _start(monkeypatch, _paths(grant_dir, passwd_file, ok_validator), True) == []


def test_loop_failure_exits_nonzero(monkeypatch, capsys, grant_dir, passwd_file, ok_validator):
    def explode(self):
        raise RuntimeError("no terminal")

    _argv(monkeypatch, *_paths(grant_dir, passwd_file, ok_validator))
    monkeypatch.setattr(NoSudoPass, "main_loop", explode)
    monkeypatch.setattr(main_module.time, "sleep", lambda seconds: None)

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1
    assert "no terminal" in capsys.readouterr().err


def test_as_root_reexecs_under_sudo(monkeypatch, grant_dir, passwd_file, ok_validator):
    calls = []
    _argv(monkeypatch, "--as-root", "--list")
    monkeypatch.setattr(main_module.os, "geteuid", lambda: 1000)
    monkeypatch.setattr(main_module.os, "chdir", lambda path: None)

    def fake_execvp(file, args):
        calls.append((file, args))
        raise SystemExit(0)

    monkeypatch.setattr(main_module.os, "execvp", fake_execvp)

    with pytest.raises(SystemExit):
        main()

    assert calls[0][0] == "sudo"
    assert calls[0][1][1:4] == [sys.executable, "-m", "nosudopass.main"]
    assert calls[0][1][4:] == ["--as-root", "--list"]


def test_app_wiring_and_dispatch(grant_dir, passwd_file, ok_validator):
    app = NoSudoPass(grant_dir=grant_dir, registry=passwd_file, validator=ok_validator)
    app.ops.is_root = lambda: True
    app.win = SimpleNamespace(pick_pos=0, scroll_pos=7)

    app.dispatch(Event.CONFIRM)
    assert app.state.screen == USER_ST
    assert app.state.options[1:] == ("alice", "bob")
    assert app.win.scroll_pos == 0

    app.dispatch(Event.MOVE_DOWN)
    app.dispatch(Event.MOVE_DOWN)
    assert app.win.pick_pos == 2

    app.dispatch(Event.CONFIRM)
    assert app.state.screen == RESULT_ST
    assert app.state.message == "User bob can now run sudo without password."
    assert (grant_dir / "nopasswd_bob").read_text() == "bob ALL=(ALL) NOPASSWD: ALL\n"
