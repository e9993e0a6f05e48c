#!/usr/bin/env python3
""" Resolve the system pieces nosudopass depends on """
import os
import shutil
import sys


def is_root():
    """ effective-root check; evaluated on every call, never cached """
    return os.geteuid() == 0


class SysVars:
    """ Locates the sudoers validator from the canned candidates """
    def __init__(self, settings):
        self.settings = settings
        self.validator = self._find_binary(settings.validators)
        self.is_crippled = self.validator is None

    def _find_binary(self, commands):
        for cmd in commands:
            if os.path.isabs(cmd):
                if os.path.isfile(cmd) and os.access(cmd, os.X_OK):
                    return cmd
                continue
            resolved = shutil.which(cmd)
            if resolved:
                return resolved
        return None

    def warnings(self):
        """ Non-fatal problems worth telling the user before curses starts """
        missing = []
        if not self.validator:
            names = ', '.join(self.settings.validators)
            missing.append(f'sudoers validator not found (tried: {names});'
                           ' granting is disabled')
        if not os.path.isdir(self.settings.grant_dir):
            missing.append(f'{self.settings.grant_dir} does not exist')
        return missing

    def report(self, stream=None):
        """ print any warnings; returns True if there were none """
        stream = stream if stream else sys.stderr
        missing = self.warnings()
        if missing:
            print('WARNING: Some components were not found:', file=stream)
            for item in missing:
                print(f'  - {item}', file=stream)
        return not missing
