#!/usr/bin/env python3
"""
KeyMap: turns what the console window reports into NavMachine events.

The window moves its own pick position for the navigation keys
(up/down/j/k...), while the OptionSpinner raises a flag attribute for each
action key.  take_events() reads both exactly once per keystroke so the
machine only ever sees Event values.
"""
import curses as cs
from .NavMachine import Event

CONFIRM_KEYS = [10, 13, cs.KEY_ENTER]
QUIT_KEYS = [0x3, ord('q')]
ESCAPE_KEYS = [27]


def take_flag(spins, name):
    """ read-and-clear an action flag of the spinner object """
    val = bool(getattr(spins, name, False))
    if val:
        setattr(spins, name, False)
    return val


def take_events(spins, cursor, pick_pos):
    """ Decode one keystroke into a list of Events

    :param spins: the spinner's default_obj (action flags)
    :param cursor: the machine's cursor before the keystroke
    :param pick_pos: the window's pick position after the keystroke
    """
    events = []
    delta = pick_pos - cursor
    if delta > 0:
        events += [Event.MOVE_DOWN] * delta
    elif delta < 0:
        events += [Event.MOVE_UP] * -delta

    if take_flag(spins, 'quit'):
        events.append(Event.QUIT)
    elif take_flag(spins, 'confirm'):
        events.append(Event.CONFIRM)
    return events
