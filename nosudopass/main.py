#!/usr/bin/env python3
"""
    nosudopass: grant or revoke passwordless sudo, one user at a time

A curses front end over NavMachine.  Granting writes
/etc/sudoers.d/nopasswd_{user}, checks it with 'visudo -c -f' and removes
it again if the check fails; revoking deletes one nopasswd_* file.
"""
# pylint: disable=invalid-name,broad-exception-caught
# pylint: disable=too-many-instance-attributes

import sys
import os
import time
import traceback
import curses as cs
from argparse import ArgumentParser
from importlib.metadata import version, PackageNotFoundError
from console_window import OptionSpinner, ConsoleWindow, ConsoleWindowOpts
from .CannedConfig import CannedConfig
from .SysVars import SysVars, is_root
from .UserLister import get_users
from .GrantMgr import GrantMgr
from .KeyMap import CONFIRM_KEYS, QUIT_KEYS, ESCAPE_KEYS, take_events, take_flag
from .NavMachine import (Ops, initial_state, transition, MAIN_ST, USER_ST,
                         GRANT_ST, CONFIRM_ST, RESULT_ST)

try:
    VERSION = version('nosudopass')
except PackageNotFoundError:
    VERSION = 'dev'


class Screen:
    """Base class for all screen types"""
    def __init__(self, app):
        self.app = app  # Reference to main NoSudoPass instance
        self.win = app.win

    def draw_screen(self):
        """Draw screen-specific lines (header and body)"""


class MenuScreen(Screen):
    """ Any screen that is a pick list of the machine's options """
    def __init__(self, app, title):
        super().__init__(app)
        self.title = title

    def draw_screen(self):
        self.win.set_pick_mode(True)
        self.app.add_common_head()
        self.win.add_header('↑/↓/k/j - move, Enter - select, q - quit, ? - help',
                            attr=cs.A_DIM)
        self.win.add_header(f'{self.title}:')
        state = self.app.state
        for idx, option in enumerate(state.options):
            marker = '● ' if idx == state.cursor else '  '
            self.win.add_body(f'{marker}{option}')


class ResultScreen(Screen):
    """ RESULT screen - the outcome of the last action """
    def draw_screen(self):
        self.win.set_pick_mode(False)
        self.app.add_common_head()
        self.win.add_body(self.app.state.message)
        self.win.add_body(' ')
        self.win.add_body('Press Enter to return to menu.', attr=cs.A_DIM)


class HelpScreen(Screen):
    """HELP screen"""
    def draw_screen(self):
        self.win.set_pick_mode(False)
        self.app.spinner.show_help_nav_keys(self.win)
        self.app.spinner.show_help_body(self.win)


class NoSudoPass:
    """ The interactive application: window, screens and machine state """
    singleton = None
    def __init__(self, grant_dir=None, registry=None, validator=None):
        NoSudoPass.singleton = self
        self.win = None # place 1st
        self.spinner = None
        self.spins = None
        self.screens = {}
        self.help_screen = None
        self.in_help = False
        self.settings = CannedConfig().settings(grant_dir=grant_dir,
                        registry=registry, validator=validator)
        self.sys_vars = SysVars(self.settings)
        self.grant_mgr = GrantMgr.from_settings(self.settings, self.sys_vars.validator)
        self.ops = Ops(is_root=is_root,
                       list_users=self.list_users,
                       list_grants=self.grant_mgr.get_grants,
                       grant=self.grant_mgr.grant,
                       remove=self.grant_mgr.remove)
        self.state = initial_state()

    def list_users(self):
        """ accounts eligible for a grant """
        return get_users(self.settings.registry, self.settings.home_prefix)

    def print_listing(self, stream=None):
        """ non-interactive dump of the grant files and eligible users """
        stream = stream if stream else sys.stdout
        grants = self.grant_mgr.get_grants()
        print(f'Managed grant files in {self.settings.grant_dir}:', file=stream)
        for path in grants:
            print(f'  {path}', file=stream)
        if not grants:
            print('  (none)', file=stream)
        users = self.list_users()
        print(f'Accounts eligible for a grant ({self.settings.registry}):', file=stream)
        for user in users:
            print(f'  {user}', file=stream)
        if not users:
            print('  (none)', file=stream)

    def setup_win(self):
        """TBD """
        spinner = self.spinner = OptionSpinner()
        self.spins = self.spinner.default_obj
        spinner.add_key('help_mode', '? - enter/leave help screen', category='action')
        spinner.add_key('confirm', 'ENTER - select the highlighted option',
                        category='action', keys=CONFIRM_KEYS)
        spinner.add_key('escape', 'ESC - leave help screen',
                        category='action', keys=ESCAPE_KEYS)
        spinner.add_key('quit', 'q,ctl-c - quit the app', category='action',
                        keys=QUIT_KEYS)

        win_opts = ConsoleWindowOpts()
        win_opts.head_line = True
        win_opts.keys = spinner.keys
        win_opts.ctrl_c_terminates = False
        win_opts.return_if_pos_change = True
        win_opts.single_cell_scroll_indicator = True
        self.win = ConsoleWindow(win_opts)

        self.screens = {
            MAIN_ST: MenuScreen(self, 'Choose an action'),
            USER_ST: MenuScreen(self, 'Select a user'),
            GRANT_ST: MenuScreen(self, 'Select a sudoers file to remove'),
            CONFIRM_ST: MenuScreen(self, 'Confirm deletion'),
            RESULT_ST: ResultScreen(self),
        }
        self.help_screen = HelpScreen(self)

    def add_common_head(self):
        """ title, project URL and (if needed) the no-root banner """
        win = self.win
        win.add_header(f'{self.settings.app} {VERSION} (c) 2025-present', attr=cs.A_BOLD)
        win.add_header(self.settings.url, attr=cs.A_DIM)
        if not is_root():
            win.add_header('⚠ Running without root — access to /etc is limited.',
                           attr=cs.A_DIM)

    def dispatch(self, event):
        """ feed one event to the machine and sync the window with the result """
        prev_screen = self.state.screen
        self.state = transition(self.state, event, self.ops).state
        if self.state.screen != prev_screen:
            self.win.scroll_pos = 0
        self.win.pick_pos = self.state.cursor

    def help_loop_step(self):
        """ while in HELP, any of ?/ESC/ENTER/q returns to the menus """
        spins = self.spins
        leave = False
        for name in ('help_mode', 'escape', 'confirm', 'quit'):
            leave = take_flag(spins, name) or leave
        if leave:
            self.in_help = False
            self.win.pick_pos = self.state.cursor

    def main_loop(self):
        """ TBD """
        self.setup_win()
        win, spins = self.win, self.spins # shorthand
        win.pick_pos = self.state.cursor

        while not self.state.done:
            if self.in_help:
                self.help_screen.draw_screen()
            else:
                self.screens[self.state.screen].draw_screen()
            win.render()
            key = win.prompt(seconds=3.0)

            if key is not None:
                self.spinner.do_key(key, win)

            if self.in_help:
                self.help_loop_step()
            elif take_flag(spins, 'help_mode'):
                self.in_help = True
            else:
                take_flag(spins, 'escape')
                # RESULT is not a pick list; ignore any drift of pick_pos there
                pick_pos = self.state.cursor if self.state.screen == RESULT_ST else win.pick_pos
                for event in take_events(spins, self.state.cursor, pick_pos):
                    self.dispatch(event)
            win.clear()

        win.stop_curses()


def rerun_module_as_root(module_name):
    """ rerun using the module name """
    if os.geteuid() != 0: # Re-run the script with sudo
        os.chdir(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        vp = ['sudo', sys.executable, '-m', module_name] + sys.argv[1:]
        os.execvp('sudo', vp)


def main():
    """ TBD """
    parser = ArgumentParser(description='nosudopass: grant or revoke passwordless sudo')
    parser.add_argument('--grant-dir', default=None,
                        help='directory of the drop-in files [dflt=/etc/sudoers.d]')
    parser.add_argument('--passwd-file', default=None,
                        help='account registry to read [dflt=/etc/passwd]')
    parser.add_argument('--validator', default=None,
                        help='sudoers syntax checker to run [dflt=visudo]')
    parser.add_argument('--list', action='store_true',
                        help='print grant files and eligible users, then exit')
    parser.add_argument('--as-root', action='store_true',
                        help='re-run under sudo when not already root')
    parser.add_argument('-V', '--version', action='version',
                        version=f'nosudopass {VERSION}')
    opts = parser.parse_args()

    if opts.as_root:
        rerun_module_as_root('nosudopass.main')

    app = NoSudoPass(grant_dir=opts.grant_dir, registry=opts.passwd_file,
                     validator=opts.validator)
    if opts.list:
        app.print_listing()
        sys.exit(0)

    clean = app.sys_vars.report()
    if not is_root():
        print('⚠ Running without root privileges. Some functions may not work.')
        clean = False
    if not clean:
        time.sleep(1.0) # let the warnings be read before curses clears them

    try:
        app.main_loop()
    except Exception as exce:
        if NoSudoPass.singleton and NoSudoPass.singleton.win:
            NoSudoPass.singleton.win.stop_curses()
        print("exception:", str(exce), file=sys.stderr)
        print(traceback.format_exc(), file=sys.stderr)
        sys.exit(1)
    sys.exit(0)

if __name__ == '__main__':
    main()
