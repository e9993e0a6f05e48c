"""Shared fixtures: a scratch grant directory, account registry and fake validators."""

import os
from pathlib import Path

import pytest

from nosudopass.GrantMgr import GrantMgr

PASSWD_LINES = [
    "root:x:0:0:root:/root:/bin/bash",
    "daemon:x:1:1:daemon:/usr/sbin:/usr/sbin/nologin",
    "alice:x:1000:1000::/home/alice:/bin/bash",
    "",
    "broken:x:1001",
    "bob:x:1002:1002:Bob,,,:/home/bob:/bin/zsh",
    "svc:x:999:999::/var/lib/svc:/usr/sbin/nologin",
]


def _script(path: Path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def grant_dir(tmp_path) -> Path:
    folder = tmp_path / "sudoers.d"
    folder.mkdir()
    return folder


@pytest.fixture
def passwd_file(tmp_path) -> Path:
    path = tmp_path / "passwd"
    path.write_text("\n".join(PASSWD_LINES) + "\n")
    return path


@pytest.fixture
def ok_validator(tmp_path) -> str:
    """Accepts only 'CMD -c -f FILE' where FILE holds a NOPASSWD line."""
    return _script(
        tmp_path / "visudo-ok",
        '[ "$1" = "-c" ] && [ "$2" = "-f" ] && grep -q "NOPASSWD: ALL" "$3"',
    )


@pytest.fixture
def bad_validator(tmp_path) -> str:
    return _script(tmp_path / "visudo-bad", 'echo "parse error" >&2\nexit 1')


@pytest.fixture
def mgr(grant_dir, ok_validator) -> GrantMgr:
    return GrantMgr(grant_dir=grant_dir, validator=ok_validator)


@pytest.fixture
def snapshot():
    """Returns a function listing every file name below a folder."""

    def _snapshot(folder: Path):
        return sorted(
            os.path.relpath(os.path.join(root, name), folder)
            for root, _, names in os.walk(folder)
            for name in names
        )

    return _snapshot
