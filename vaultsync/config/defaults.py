# vaultsync Default Configuration
# Default configuration as Python dict and YAML generator

from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "vault_path": "~/Documents/vault",
    "remote_url": "",
    "remote_name": "origin",
    "branch": "main",
    "git_path": None,
    "backend": "auto",
    "sync_interval": 0,
    "sync_on_load": False,
    "username": "",
    "token": "",
    "network_timeout": 60,
    "api_base_url": "https://api.github.com",
    "content_commit_message": "Vault sync",
    "exclude": [".git", ".trash"],
    "verbose": False,
    "colored": True,
    "sync_history": None,
}

_HEADER = """\
# vaultsync configuration
#
# remote_url:     HTTPS (https://github.com/you/notes.git) or SSH (git@github.com:you/notes.git)
# git_path:       git binary or its directory, if git is not on PATH
# backend:        auto | native | content_api (embedded needs a host-supplied toolkit)
# sync_interval:  minutes between automatic syncs while `vaultsync watch` runs (0 = off)
# sync_on_load:   sync immediately at startup when the remote is ahead
# username/token: HTTPS credentials for the embedded and content_api backends
#                 (VAULTSYNC_TOKEN overrides token)

"""


def generate_default_config() -> str:
    """
    Generate the default configuration file content.

    Returns:
        Commented YAML document.
    """
    body = yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return _HEADER + body
