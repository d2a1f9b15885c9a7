"""Firewall allow-list construction.

The VM's SSH firewall admits only the operator's current public
address plus an optional extra address.
"""

from __future__ import annotations

import ipaddress

import requests

from cloudagent.core.exceptions import ConfigurationError, NetworkDetectionError
from cloudagent.models.network import AllowedIpSet
from cloudagent.utils.logging import get_logger
from cloudagent.utils.output import print_warning

logger = get_logger("network")

IPV4_SERVICES = (
    "https://api.ipify.org",
    "https://ifconfig.me/ip",
    "https://icanhazip.com",
)
IPV6_SERVICES = (
    "https://api6.ipify.org",
    "https://ipv6.icanhazip.com",
)
LOOKUP_TIMEOUT = 5


def _lookup(
    session: requests.Session, services: tuple[str, ...], version: int
) -> str | None:
    """Return the first valid address of the given family any service reports."""
    for url in services:
        try:
            response = session.get(url, timeout=LOOKUP_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug(f"Address lookup via {url} failed: {e}")
            continue

        text = response.text.strip()
        try:
            address = ipaddress.ip_address(text)
        except ValueError:
            logger.debug(f"Address lookup via {url} returned garbage: {text[:40]!r}")
            continue

        if address.version == version:
            logger.debug(f"Detected public IPv{version} address via {url}")
            return str(address)

    return None


def detect_public_ipv4(session: requests.Session | None = None) -> str | None:
    """Public IPv4 address of this machine, or None."""
    return _lookup(session or requests.Session(), IPV4_SERVICES, 4)


def detect_public_ipv6(session: requests.Session | None = None) -> str | None:
    """Public IPv6 address of this machine, or None."""
    return _lookup(session or requests.Session(), IPV6_SERVICES, 6)


def host_cidr(address: str) -> str:
    """Turn an address into a CIDR entry.

    A prefix already present is kept; a bare host gets ``/32`` or ``/128``.

    Raises:
        ConfigurationError: If the value is not an address or network.
    """
    value = address.strip()
    try:
        if "/" in value:
            return str(ipaddress.ip_network(value, strict=False))
        ip = ipaddress.ip_address(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid additional IP address: {address}",
            details={"additional_ip": address},
        ) from e
    return f"{ip}/{32 if ip.version == 4 else 128}"


def build_allowed_ips(
    additional_ip: str | None = None,
    session: requests.Session | None = None,
) -> AllowedIpSet:
    """Build the SSH allow-list from the detected address and the extra one.

    IPv4 is preferred; IPv6 is used only when no IPv4 address is found.

    Raises:
        NetworkDetectionError: If no public address can be detected.
        ConfigurationError: If ``additional_ip`` is not a valid address.
    """
    session = session or requests.Session()
    allowed = AllowedIpSet()

    ipv4 = detect_public_ipv4(session)
    if ipv4:
        allowed.add(host_cidr(ipv4))
        logger.info(f"Allowing SSH from {ipv4}")
    else:
        ipv6 = detect_public_ipv6(session)
        if not ipv6:
            raise NetworkDetectionError()
        allowed.add(host_cidr(ipv6))
        logger.warning(f"Only an IPv6 address was detected ({ipv6})")
        print_warning(
            f"Only an IPv6 address was detected ({ipv6}). "
            "SSH may be unreachable if the VM has no IPv6 connectivity."
        )

    if additional_ip:
        allowed.add(host_cidr(additional_ip))
        logger.info(f"Allowing SSH from additional address {additional_ip}")

    return allowed
