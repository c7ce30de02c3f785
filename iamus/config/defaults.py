"""Default configuration tree for the Iamus metaverse server.

Every key any component reads is declared here. Do not edit this file to
configure a deployment; put overrides in the user config file
(``server.user-config-file``, ``./iamus.json`` by default) or in the
``IAMUS_*`` environment variables.

Units are part of the key name (``-hours``, ``-minutes``, ``-seconds``,
``-megabytes``) and consumers rely on them without re-checking.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .merge import freeze

# Top-level sections, in tree order.
SECTIONS = (
    "metaverse",
    "server",
    "auth",
    "metaverse-server",
    "monitoring",
    "database",
    "debug",
)

# Sections copied into the static ``config.json`` read by browser pages.
# auth, metaverse-server and database stay private.
PUBLIC_SECTIONS = ("metaverse", "server", "debug")

# Sentinel stored in server.server-version when no VERSION.json can be read.
UNKNOWN_VERSION: Mapping[str, str] = freeze({"version-tag": "unknown"})

_DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "metaverse": {
        "metaverse-name": "Vircadia noobie",
        "metaverse-nick-name": "Noobie",
        "metaverse-server-url": "",    # empty: built from external IP + listen port
        "default-ice-server-url": "",  # empty: external IP
        "dashboard-url": "https://dashboard.vircadia.com",
    },
    "server": {
        "listen-host": "0.0.0.0",
        "listen-port": 9400,
        "key-file": "",            # if supplied, serve https
        "cert-file": "",
        "static-base": "/static",  # base of static data URL
        "user-config-file": "./iamus.json",
        "server-version": {        # replaced with VERSION.json contents
            "version-tag": "1.1.1-20200101-abcdefg",
        },
    },
    "auth": {
        "domain-token-expire-hours": 24 * 365,  # one year
        "owner-token-expire-hours": 24 * 7,     # one week
    },
    "metaverse-server": {
        "http-error-on-failure": True,  # include the error header on failures
        "error-header": "x-vircadia-error-handle",
        "heartbeat-seconds-until-offline": 300,
        "metaverse-info-addition-file": "./metaverse_info.json",
        "session-timeout-minutes": 5,
        "handshake-request-expiration-minutes": 1,
        "connection-request-expiration-minutes": 60 * 24 * 4,  # 4 days
        "friend-request-expiration-minutes": 60 * 24 * 4,      # 4 days
        # METAVERSE_SERVER_URL and DASHBOARD_URL are substituted by Settings.tokengen_url
        "tokengen_url": "METAVERSE_SERVER_URL/static/DomainTokenLogin.html",
        # account created with this name gets the 'admin' role
        "base-admin-account": "adminer",
    },
    "monitoring": {
        "enable": True,   # collect monitored values
        "history": True,  # keep value history
    },
    "database": {
        "db-host": "localhost",
        "db-port": 27017,
        "db": "tester",
        "db-user": "metaverse",
        "db-pw": "nooneknowsit",
        "db-authdb": "admin",
        "db-connection": "",  # full connection string; replaces the fields above
    },
    "debug": {
        "loglevel": "info",

        "log-to-files": True,
        "log-filename": "iamus.log",
        "log-directory": "./logs",
        "log-max-size-megabytes": 100,
        "log-max-files": 10,
        "log-tailable": True,    # newest entries always in log-filename
        "log-compress": False,   # gzip rotated files
        "log-to-console": False,

        "devel": False,

        "request-detail": False,
        "request-body": False,
        "metaverseapi-response-detail": False,
        "query-detail": False,
        "db-query-detail": False,
        "field-setting": False,
    },
}

# Read-only view; resolution always starts from a mutable copy of it.
DEFAULT_CONFIG: Mapping[str, Mapping[str, Any]] = freeze(_DEFAULT_CONFIG)
