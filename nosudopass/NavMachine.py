#!/usr/bin/env python3
"""
NavMachine: the screen-to-screen logic of nosudopass, free of curses.

    MAIN ──0──> SELECT-USER ──user──> RESULT
      │            └─Back─> MAIN        │
      ├──1──> SELECT-GRANT ──file──> CONFIRM-DELETE ──Delete──> RESULT
      │            └─Back─> MAIN              └─Cancel─> MAIN
      └──2──> (done)                                RESULT ──Enter──> MAIN

transition() takes the current NavState and one Event and returns a Step
holding the next NavState plus the side effects it performed through the
Ops collaborators.  Nothing else mutates the state, so every row of the
table can be driven from a test without a terminal.

Failures (not root, nothing found, I/O, rejected syntax) never escape:
they become the message of the RESULT screen.
"""
# pylint: disable=invalid-name
from enum import Enum
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Tuple
from .GrantMgr import GrantError

MAIN_ST, USER_ST, GRANT_ST, CONFIRM_ST, RESULT_ST = 0, 1, 2, 3, 4
SCREENS = ('MAIN', 'SELECT-USER', 'SELECT-GRANT', 'CONFIRM-DELETE', 'RESULT')

ACT_NONE, ACT_ADD, ACT_REMOVE = 0, 1, 2

MAIN_OPTIONS = ('Allow sudo without password', 'Disable sudo without password', 'Exit')
BACK = '⬅ Back'
CANCEL = 'Cancel'

MSG_ADD_NEEDS_ROOT = '❌ Root privileges required to modify sudoers.'
MSG_REMOVE_NEEDS_ROOT = '❌ Root privileges required to remove sudoers files.'
MSG_NO_USERS = 'No users with home directories found.'
MSG_NO_GRANTS = 'No sudoers files to remove.'


class Event(Enum):
    """ The only inputs the machine understands """
    MOVE_UP = 'up'
    MOVE_DOWN = 'down'
    CONFIRM = 'confirm'
    QUIT = 'quit'


class NavState(NamedTuple):
    """ Everything the screens need; replaced, never mutated """
    screen: int = MAIN_ST
    options: Tuple[str, ...] = MAIN_OPTIONS
    cursor: int = 0
    action: int = ACT_NONE
    users: Tuple[str, ...] = ()
    grants: Tuple[str, ...] = ()
    selected: Optional[str] = None
    message: str = ''
    done: bool = False

    @property
    def screen_name(self):
        """ e.g., 'SELECT-USER' """
        return SCREENS[self.screen]


class Step(NamedTuple):
    """ Result of one transition """
    state: NavState
    effects: Tuple[tuple, ...] = ()


class Ops:
    """ The collaborators the machine calls out to """
    def __init__(self, is_root: Callable[[], bool],
                 list_users: Callable[[], List[str]],
                 list_grants: Callable[[], List[str]],
                 grant: Callable[[str], object],
                 remove: Callable[[str], object]):
        self.is_root = is_root
        self.list_users = list_users
        self.list_grants = list_grants
        self.grant = grant
        self.remove = remove


def initial_state():
    """ MAIN screen with the cursor on the first option """
    return NavState()


def clamp(cursor, options):
    """ keep the cursor on an option; 0 for an empty list """
    if not options:
        return 0
    return max(0, min(len(options) - 1, cursor))


def transition(state: NavState, event: Event, ops: Ops) -> Step:
    """ Consume one event; return the next state and effects performed """
    if state.done:
        return Step(state)
    if event is Event.QUIT:
        return Step(state._replace(done=True))
    if event is Event.MOVE_UP:
        return Step(state._replace(cursor=clamp(state.cursor - 1, state.options)))
    if event is Event.MOVE_DOWN:
        return Step(state._replace(cursor=clamp(state.cursor + 1, state.options)))
    if event is Event.CONFIRM:
        return CONFIRMERS[state.screen](state, ops)
    raise ValueError(f'unknown event {event!r}')


def _result(state, message, effects):
    return Step(state._replace(screen=RESULT_ST, message=message), tuple(effects))


def _confirm_main(state, ops):
    effects = []
    if state.cursor == 0:
        if not ops.is_root():
            return _result(state, MSG_ADD_NEEDS_ROOT, effects)
        users = tuple(ops.list_users())
        effects.append(('list_users',))
        if not users:
            return _result(state, MSG_NO_USERS, effects)
        return Step(state._replace(screen=USER_ST, options=(BACK,) + users,
                        cursor=0, action=ACT_ADD, users=users), tuple(effects))

    if state.cursor == 1:
        if not ops.is_root():
            return _result(state, MSG_REMOVE_NEEDS_ROOT, effects)
        grants = tuple(ops.list_grants())
        effects.append(('list_grants',))
        if not grants:
            return _result(state, MSG_NO_GRANTS, effects)
        return Step(state._replace(screen=GRANT_ST, options=(BACK,) + grants,
                        cursor=0, action=ACT_REMOVE, grants=grants), tuple(effects))

    return Step(state._replace(done=True))


def _confirm_user(state, ops):
    if state.cursor == 0:
        return Step(initial_state())
    user = state.users[state.cursor - 1]
    try:
        ops.grant(user)
        message = f'User {user} can now run sudo without password.'
    except (GrantError, OSError) as exce:
        message = f'Error: {exce}'
    return _result(state, message, [('grant', user)])


def _confirm_grant(state, _ops):
    if state.cursor == 0:
        return Step(initial_state())
    selected = state.grants[state.cursor - 1]
    return Step(state._replace(screen=CONFIRM_ST, selected=selected, cursor=0,
                    options=(f'Delete {Path(selected).name}', CANCEL)))


def _confirm_delete(state, ops):
    if state.cursor != 0:
        return Step(initial_state())
    try:
        ops.remove(state.selected)
        message = f'File deleted: {state.selected}'
    except (GrantError, OSError) as exce:
        message = f'Error deleting: {exce}'
    return _result(state._replace(selected=None), message, [('remove', state.selected)])


def _confirm_result(_state, _ops):
    return Step(initial_state())


CONFIRMERS = {
    MAIN_ST: _confirm_main,
    USER_ST: _confirm_user,
    GRANT_ST: _confirm_grant,
    CONFIRM_ST: _confirm_delete,
    RESULT_ST: _confirm_result,
}
