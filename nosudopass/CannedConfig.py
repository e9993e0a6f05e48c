#!/usr/bin/env python3
"""
CannedConfig: the shipped defaults (canned_config.yaml) for nosudopass.

The YAML resource lives inside the package; command line options may
override the paths for one run via settings(), but nothing is written back.
"""
import sys
from importlib.resources import files
from types import SimpleNamespace
from ruamel.yaml import YAML

yaml = YAML()
yaml.preserve_quotes = True
yaml.default_flow_style = False


class CannedConfig:
    """ Loads canned_config.yaml and flattens it into settings """
    def __init__(self):
        resource_path = files('nosudopass') / 'canned_config.yaml'
        yaml_string = resource_path.read_text(encoding='utf-8')
        self.data = yaml.load(yaml_string)

    def settings(self, grant_dir=None, registry=None, validator=None):
        """ Flatten the YAML into a namespace, applying any overrides.

        :param grant_dir: replaces grant.dir when given
        :param registry: replaces accounts.registry when given
        :param validator: when given, the only validator candidate
        """
        grant, accounts = self.data['grant'], self.data['accounts']
        checker = self.data['validator']
        candidates = [str(c) for c in checker['candidates']]
        if validator:
            candidates = [str(validator)]
        return SimpleNamespace(
            grant_dir=str(grant_dir) if grant_dir else str(grant['dir']),
            grant_prefix=str(grant['prefix']),
            grant_mode=int(str(grant['mode']), 8),
            grant_line=str(grant['line']),
            registry=str(registry) if registry else str(accounts['registry']),
            home_prefix=str(accounts['home_prefix']),
            validators=candidates,
            check_args=[str(arg) for arg in checker['check_args']],
            app=str(self.data['about']['app']),
            url=str(self.data['about']['url']),
        )

    def dump(self):
        """ Dump the canned configuration """
        yaml.dump(self.data, sys.stdout)


def main():
    """ Show the shipped defaults """
    cfg = CannedConfig()
    cfg.dump()

if __name__ == '__main__':
    main()
