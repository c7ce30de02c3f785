"""External address lookup used to fill self-referencing metaverse URLs."""

import ipaddress
import logging
from typing import Optional

import requests

IP_ECHO_URL = "https://api.ipify.org"
IP_PROBE_TIMEOUT_SECONDS = 10

logger = logging.getLogger(__name__)


def get_my_external_ip_address(timeout: float = IP_PROBE_TIMEOUT_SECONDS) -> Optional[str]:
    """
    Ask an IP echo service for the address this process is seen from.
    Returns the address as text, or None if the service is unreachable or
    answers with something that is not an IP address.
    """
    try:
        r = requests.get(IP_ECHO_URL, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"External IP lookup failed: {e}")
        return None

    addr = r.text.strip()
    try:
        ipaddress.ip_address(addr)
    except ValueError:
        logger.warning(f"External IP lookup returned a non-address: {addr!r}")
        return None
    return addr
