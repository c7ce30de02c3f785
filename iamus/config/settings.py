"""Runtime configuration resolution for the Iamus metaverse server.

The server reads one :class:`Settings` object built once at startup:

1. **Defaults** – :data:`iamus.config.defaults.DEFAULT_CONFIG` (deep copied).
2. **Environment** – ``IAMUS_LOGLEVEL``, ``IAMUS_LISTEN_HOST``,
   ``IAMUS_LISTEN_PORT``, ``IAMUS_CONFIG_FILE`` (a ``.env`` file is honored).
3. **User config file** – ``server.user-config-file`` deep merged over the tree.
4. **Version file** – ``VERSION.json`` replaces ``server.server-version``.
5. **Derived URLs** – empty ICE / metaverse URLs filled from the external IP;
   trailing slashes stripped from ``metaverse.metaverse-server-url``.
6. **Public subset** – metaverse/server/debug written to ``<static>/config.json``.

Only a malformed ``IAMUS_LISTEN_PORT`` stops startup (:class:`ConfigurationError`).
Every file/network failure falls back to the previous value and is logged.

Usage:
    from iamus.config import load_settings

    settings = load_settings()
    settings.listen_port                      # 9400
    settings.get("metaverse.metaverse-server-url")
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Optional
from urllib.parse import quote_plus

from dotenv import find_dotenv, load_dotenv

from iamus.net import get_my_external_ip_address
from .defaults import DEFAULT_CONFIG, PUBLIC_SECTIONS, SECTIONS, UNKNOWN_VERSION
from .json_source import is_url, read_in_json
from .merge import deep_merge, freeze, plain_copy

logger = logging.getLogger(__name__)

IPProbe = Callable[[], Optional[str]]

# (variable, section, key)
ENV_OVERRIDES = (
    ("IAMUS_LOGLEVEL", "debug", "loglevel"),
    ("IAMUS_LISTEN_HOST", "server", "listen-host"),
    ("IAMUS_LISTEN_PORT", "server", "listen-port"),
    ("IAMUS_CONFIG_FILE", "server", "user-config-file"),
)

# Depending on how the server was built the version file lands in either place.
VERSION_FILES = ("./VERSION.json", "./dist/VERSION.json")

PUBLIC_CONFIG_FILENAME = "config.json"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------
class ConfigurationError(RuntimeError):
    """Raised when a supplied setting is unusable and startup must stop."""


# ---------------------------------------------------------------------------
# Settings snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True, eq=False)
class Settings(MappingABC):
    """Resolved, read-only configuration tree.

    Behaves like a mapping of section name to (read-only) section mapping.
    Pass it to the components that need it; nothing in it can be changed
    after :func:`load_settings` returns. Equality is mapping equality; like
    any mapping it is unhashable.
    """

    tree: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tree", freeze(self.tree))

    def __getitem__(self, section: str) -> Any:
        return self.tree[section]

    def __iter__(self) -> Iterator[str]:
        return iter(self.tree)

    def __len__(self) -> int:
        return len(self.tree)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup: ``settings.get("server.listen-port")``.

        Keys themselves contain hyphens, never dots, so the split is unambiguous.
        """
        node: Any = self.tree
        for part in key.split("."):
            if not isinstance(node, MappingABC) or part not in node:
                return default
            node = node[part]
        return node

    def section(self, name: str) -> Mapping[str, Any]:
        return self.tree[name]

    def as_dict(self) -> Dict[str, Any]:
        """Deep, mutable copy of the whole tree."""
        return plain_copy(self.tree)

    def public_subset(self) -> Dict[str, Any]:
        """The sections safe to hand to browser pages (metaverse, server, debug)."""
        return _public_subset(self.tree)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.as_dict(), indent=indent)

    # Convenience accessors -------------------------------------------------
    @property
    def listen_host(self) -> str:
        return self.tree["server"]["listen-host"]

    @property
    def listen_port(self) -> int:
        return self.tree["server"]["listen-port"]

    @property
    def metaverse_server_url(self) -> str:
        return self.tree["metaverse"]["metaverse-server-url"]

    @property
    def loglevel(self) -> str:
        return self.tree["debug"]["loglevel"]

    @property
    def tokengen_url(self) -> str:
        """Domain token generation URL with its placeholders filled in."""
        template = self.tree["metaverse-server"]["tokengen_url"]
        return (
            template
            .replace("METAVERSE_SERVER_URL", self.metaverse_server_url)
            .replace("DASHBOARD_URL", self.tree["metaverse"]["dashboard-url"])
        )

    @property
    def db_connection_string(self) -> str:
        """``database.db-connection`` if given, else a MongoDB URL from the discrete fields."""
        db = self.tree["database"]
        if db.get("db-connection"):
            return db["db-connection"]
        user = quote_plus(str(db["db-user"]))
        pw = quote_plus(str(db["db-pw"]))
        return (
            f"mongodb://{user}:{pw}@{db['db-host']}:{db['db-port']}/{db['db']}"
            f"?authSource={db['db-authdb']}"
        )


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------
def _parse_port(raw: str) -> int:
    text = raw.strip()
    # int() alone would also take "+80", "8_080" and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise ConfigurationError(
            f"IAMUS_LISTEN_PORT must be an integer port number, got {raw!r}"
        )
    port = int(text)
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"IAMUS_LISTEN_PORT out of range (0-65535): {port}")
    return port


def _apply_env_overrides(tree: Dict[str, Any], environ: Mapping[str, str]) -> None:
    for var, section, key in ENV_OVERRIDES:
        raw = environ.get(var)
        if not raw:
            continue
        value: Any = _parse_port(raw) if var == "IAMUS_LISTEN_PORT" else raw
        tree[section][key] = value
        logger.debug(f"resolve_configuration: {var} sets {section}.{key}")


def _apply_user_config(tree: Dict[str, Any]) -> Dict[str, Any]:
    source = str(tree["server"].get("user-config-file") or "")
    if not source:
        return tree
    if not is_url(source) and not Path(source).exists():
        logger.debug(f"resolve_configuration: no user config file at {source}")
        return tree

    logger.debug(f"resolve_configuration: reading configuration file {source}")
    user_cfg = read_in_json(source)
    if user_cfg is None:
        logger.error(f"resolve_configuration: could not read user config {source}; using defaults")
        return tree
    if not isinstance(user_cfg, dict):
        logger.error(f"resolve_configuration: user config {source} is not a JSON object; ignored")
        return tree
    if not user_cfg:
        return tree

    merged = deep_merge(tree, user_cfg)
    # Sections must stay objects; later stages read keys from them.
    for name in SECTIONS:
        if not isinstance(merged.get(name), dict):
            logger.error(f"resolve_configuration: section {name!r} in {source} is not an object; ignored")
            merged[name] = tree[name]
    return merged


def _apply_version_info(tree: Dict[str, Any]) -> None:
    version_info = None
    for candidate in VERSION_FILES:
        if Path(candidate).exists():
            version_info = read_in_json(candidate)
            break
    if not isinstance(version_info, dict) or not version_info:
        version_info = dict(UNKNOWN_VERSION)
    tree["server"]["server-version"] = version_info
    logger.debug(f"resolve_configuration: version info: {json.dumps(version_info, indent=4)}")


def _probe_address(ip_probe: IPProbe) -> Optional[str]:
    try:
        addr = ip_probe()
    except Exception as e:  # collaborator may raise anything; treat as no address
        logger.warning(f"resolve_configuration: external IP probe failed: {e}")
        return None
    return addr or None


def _apply_derived_urls(tree: Dict[str, Any], ip_probe: IPProbe) -> None:
    metaverse = tree["metaverse"]

    if not metaverse.get("default-ice-server-url"):
        addr = _probe_address(ip_probe)
        if addr:
            metaverse["default-ice-server-url"] = addr
            logger.debug(f"resolve_configuration: made ice server addr of {addr}")
        else:
            logger.warning("resolve_configuration: no external address; default-ice-server-url left empty")

    if not metaverse.get("metaverse-server-url"):
        addr = _probe_address(ip_probe)
        if addr:
            host = f"[{addr}]" if ":" in addr else addr
            url = f"http://{host}:{tree['server']['listen-port']}/"
            metaverse["metaverse-server-url"] = url
            logger.debug(f"resolve_configuration: built metaverse url of {url}")
        else:
            logger.warning("resolve_configuration: no external address; metaverse-server-url left empty")

    # API paths ("/api/v1/...") are appended directly to this value.
    metaverse["metaverse-server-url"] = str(metaverse.get("metaverse-server-url") or "").rstrip("/")


def _public_subset(tree: Mapping[str, Any]) -> Dict[str, Any]:
    return {name: plain_copy(tree[name]) for name in PUBLIC_SECTIONS if name in tree}


def _write_public_subset(tree: Dict[str, Any]) -> Optional[Path]:
    static_base = str(tree["server"].get("static-base") or "")
    for static_dir in ("." + static_base, "./dist" + static_base):
        if not Path(static_dir).is_dir():
            continue
        target = Path(static_dir) / PUBLIC_CONFIG_FILENAME
        try:
            target.write_text(json.dumps(_public_subset(tree)), encoding="utf-8")
        except OSError as e:
            logger.error(f"resolve_configuration: error writing {target}: {e}")
            return None
        logger.info(f"resolve_configuration: wrote static config subset to {target}")
        return target
    logger.debug(f"resolve_configuration: no static directory for {static_base}; subset not written")
    return None


# ---------------------------------------------------------------------------
# Public builders
# ---------------------------------------------------------------------------
def resolve_configuration(
    environ: Optional[Mapping[str, str]] = None,
    ip_probe: Optional[IPProbe] = None,
) -> Dict[str, Any]:
    """Run every overlay stage and return the resolved (mutable) tree.

    ``environ`` defaults to ``os.environ`` after loading ``.env``; ``ip_probe``
    defaults to :func:`iamus.net.get_my_external_ip_address`.
    """
    if environ is None:
        # .env beside the running server, not beside the installed package
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ
    if ip_probe is None:
        ip_probe = get_my_external_ip_address

    tree = plain_copy(DEFAULT_CONFIG)
    _apply_env_overrides(tree, environ)
    tree = _apply_user_config(tree)
    _apply_version_info(tree)
    _apply_derived_urls(tree, ip_probe)
    _write_public_subset(tree)
    return tree


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    ip_probe: Optional[IPProbe] = None,
) -> Settings:
    """Public loader: returns the fully-resolved, read-only :class:`Settings`."""
    return Settings(resolve_configuration(environ=environ, ip_probe=ip_probe))
