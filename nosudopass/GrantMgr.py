#!/usr/bin/env python3
"""
GrantMgr: the NOPASSWD drop-in files that nosudopass owns.

Only files in the grant directory (normally /etc/sudoers.d) whose name
starts with the reserved prefix (normally 'nopasswd_') are ever listed,
written or removed.  Each holds exactly one line:

    {user} ALL=(ALL) NOPASSWD: ALL

Writing a grant is a stage -> validate -> rename sequence: the line goes
to a dot-named file beside the target with mode 0440, is checked with
'visudo -c -f', and is renamed onto nopasswd_{user} only if the check
passes.  So once grant() returns (or raises), the directory never holds
a file the validator rejected, and a failed grant leaves any earlier one
untouched.
"""
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

GRANT_DIR = Path('/etc/sudoers.d')
GRANT_PREFIX = 'nopasswd_'
GRANT_MODE = 0o440
GRANT_LINE = '{user} ALL=(ALL) NOPASSWD: ALL'
CHECK_ARGS = ('-c', '-f')


class GrantError(Exception):
    """ A grant or removal that did not happen """

class SyntaxCheckError(GrantError):
    """ The validator rejected the written file (which has been removed) """

class BadGrantTarget(GrantError):
    """ A username or path nosudopass refuses to touch """


class GrantMgr:
    """
    Lists, writes and removes the managed drop-in files.
    """
    def __init__(self, grant_dir=GRANT_DIR, prefix: str = GRANT_PREFIX,
                 validator: Optional[str] = 'visudo', check_args: Sequence[str] = CHECK_ARGS,
                 mode: int = GRANT_MODE, line: str = GRANT_LINE):
        """
        :param grant_dir: directory holding the drop-ins
        :param prefix: reserved basename prefix of managed files
        :param validator: path/name of the syntax checker (None disables grants)
        :param check_args: validator args meaning "check this file only"
        :param mode: permission bits of written files
        :param line: grant line template ({user} is substituted)
        """
        self.grant_dir = Path(grant_dir)
        self.prefix = prefix
        self.validator = validator
        self.check_args = list(check_args)
        self.mode = mode
        self.line = line

    @staticmethod
    def from_settings(settings, validator):
        """ Build from CannedConfig settings plus the resolved validator """
        return GrantMgr(grant_dir=settings.grant_dir, prefix=settings.grant_prefix,
                        validator=validator, check_args=settings.check_args,
                        mode=settings.grant_mode, line=settings.grant_line)

    def grant_path(self, user: str) -> Path:
        """ The file holding the grant for user (same user, same file) """
        return self.grant_dir / f'{self.prefix}{user}'

    def is_managed(self, path) -> bool:
        """ Does the basename carry the reserved prefix? """
        return Path(path).name.startswith(self.prefix)

    def get_grants(self) -> List[str]:
        """
        Recursively collect managed grant files, in lexical order.

        Directories, symlinks and files without the prefix are skipped.
        An entry that cannot be read (vanished, no permission, ...) is
        skipped and the walk goes on; a missing grant_dir gives [].
        """
        grants: List[str] = []
        self._walk(self.grant_dir, grants)
        return grants

    def _walk(self, folder: Path, grants: List[str]):
        try:
            with os.scandir(folder) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError:
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    self._walk(Path(entry.path), grants)
                elif entry.is_file(follow_symlinks=False) and self.is_managed(entry.name):
                    grants.append(entry.path)
            except OSError:
                continue

    def check_syntax(self, path: Path) -> bool:
        """ Run the validator on path; True when it exits 0 """
        cmd = [self.validator] + self.check_args + [str(path)]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError:
            return False
        return result.returncode == 0

    def grant(self, user: str) -> Path:
        """
        Write the NOPASSWD grant for user, validate it, and only then
        put it in place.

        The line goes to a dot-named staging file in the grant directory
        (sudo's #includedir skips names with a '.'), which is checked and
        then renamed onto grant_path(user).  On any failure only the
        staging file is removed; whatever sat at grant_path(user) before
        is left as it was.

        Returns the path of the grant file.
        Raises BadGrantTarget, SyntaxCheckError, or OSError on I/O failure.
        """
        if (not user or os.sep in user or '.' in user
                or user.endswith('~')):
            raise BadGrantTarget(f'refusing to grant to user {user!r}')
        if not self.validator:
            raise GrantError('no sudoers validator available, nothing written')

        path = self.grant_path(user)
        content = self.line.format(user=user) + '\n'
        # mkstemp opens with O_EXCL|O_NOFOLLOW
        fd, staged = tempfile.mkstemp(prefix=f'.{self.prefix}{user}.', dir=self.grant_dir)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                os.fchmod(f.fileno(), self.mode)
                f.write(content)
            if not self.check_syntax(staged):
                raise SyntaxCheckError('syntax error in sudoers file, file removed')
            os.replace(staged, path)
        except BaseException:
            self._discard(staged)
            raise
        return path

    @staticmethod
    def _discard(path: Path):
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass

    def remove(self, path) -> Path:
        """
        Delete exactly path, which must be a managed grant file.

        Raises BadGrantTarget if the name lacks the prefix, OSError on failure.
        """
        path = Path(path)
        if not self.is_managed(path):
            raise BadGrantTarget(f'{str(path)!r} is not a {self.prefix}* file')
        os.unlink(path)
        return path
