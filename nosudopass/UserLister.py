#!/usr/bin/env python3
"""
UserLister: the "real" accounts of the system.

Reads the colon-delimited account registry (normally /etc/passwd) and
keeps the usernames whose home directory starts with the home prefix.
Records with fewer than 6 fields are ignored rather than treated as
errors; order and duplicates follow the registry verbatim.
"""
from typing import List

PASSWD_PATH = '/etc/passwd'
HOME_PREFIX = '/home/'


def get_users(registry: str = PASSWD_PATH, home_prefix: str = HOME_PREFIX) -> List[str]:
    """ Return the usernames with a home under home_prefix (or [] if unreadable) """
    try:
        with open(registry, 'r', encoding='utf-8', errors='replace') as f:
            lines = f.read().splitlines()
    except OSError:
        return []

    users = []
    for line in lines:
        if not line.strip():
            continue
        fields = line.split(':')
        if len(fields) >= 6 and fields[5].startswith(home_prefix):
            users.append(fields[0])
    return users
