"""Network/build configuration for twitter-deployments.

Settings come from the process environment, optionally layered over a
``.env`` file, and are parsed once into immutable dataclasses. Malformed
values are rejected here instead of surfacing later as connection or
signing failures.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence, Union
from urllib.parse import urlparse

from dotenv import dotenv_values

from .constants import (
    DEFAULT_SOLIDITY_VERSION,
    ENV_EXPLORER_API_KEY,
    ENV_SOLIDITY_VERSION,
    NETWORK_CONFIG,
)
from .exceptions import ConfigurationError, NetworkNotFoundError
from .types import NetworkProfile

logger = logging.getLogger(__name__)

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_SOLIDITY_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_URL_SCHEMES = ("http", "https", "ws", "wss")


@dataclass(frozen=True)
class ToolchainConfig:
    """Read-only configuration consulted by the compiler and deployer."""

    solidity_version: str = DEFAULT_SOLIDITY_VERSION
    networks: Dict[str, NetworkProfile] = field(default_factory=dict)
    etherscan_api_key: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"ToolchainConfig(solidity_version={self.solidity_version!r}, "
            f"networks={sorted(self.networks)!r}, "
            f"etherscan_api_key={'<set>' if self.etherscan_api_key else None})"
        )

    def network(self, name: str) -> NetworkProfile:
        """
        Get the profile for a named network.

        Raises:
            NetworkNotFoundError: If the network is unknown or has no endpoint
        """
        if name in self.networks:
            return self.networks[name]

        if name in NETWORK_CONFIG:
            raise NetworkNotFoundError(
                f"Network '{name}' has no RPC endpoint; set "
                + _describe(NETWORK_CONFIG[name]["url_env"])
            )
        raise NetworkNotFoundError(
            f"Unknown network '{name}' (known: {', '.join(sorted(NETWORK_CONFIG))})"
        )


def _describe(names: Sequence[str]) -> str:
    return " or ".join("$" + name for name in names)


def _resolve(
    env: Mapping[str, str],
    names: Sequence[str],
    normalize: Optional[Callable[[str], str]] = None,
) -> Optional[str]:
    """
    Resolve one logical setting that may be spelled several ways.

    Empty values count as unset. Values are compared after `normalize`, so
    "ac09.." and "0xAC09.." are the same key. When two spellings carry
    different values there is no way to tell which one is authoritative, so
    the operator has to reconcile them.
    """
    found = [(name, env[name].strip()) for name in names if env.get(name, "").strip()]
    if normalize is not None:
        found = [(name, normalize(value)) for name, value in found]
    if not found:
        return None

    distinct = {value for _, value in found}
    if len(distinct) > 1:
        raise ConfigurationError(
            f"Conflicting values for {' and '.join(name for name, _ in found)}; "
            "set only one of them or make them equal"
        )
    return found[0][1]


def normalize_private_key(value: str, variable: str) -> str:
    """
    Validate a private key and return it 0x-prefixed and lower-cased.

    Raises:
        ConfigurationError: If the value is not 32 bytes of hex
    """
    if not _PRIVATE_KEY_RE.match(value):
        # Never echo the value itself
        raise ConfigurationError(
            f"{variable} must be a 32-byte hex private key (64 hex characters, "
            "optional 0x prefix)"
        )
    if not value.startswith("0x"):
        value = "0x" + value
    return value.lower()


def validate_url(value: str, variable: str) -> str:
    """
    Check that an endpoint URL has a supported scheme and a host.

    Raises:
        ConfigurationError: If the URL is malformed
    """
    parsed = urlparse(value)
    if parsed.scheme not in _URL_SCHEMES or not parsed.netloc:
        raise ConfigurationError(
            f"{variable} must be an http(s) or ws(s) URL, got '{value}'"
        )
    return value


def _load_network(name: str, env: Mapping[str, str]) -> Optional[NetworkProfile]:
    network_config = NETWORK_CONFIG[name]
    url_vars = network_config["url_env"]
    key_vars = network_config["key_env"]

    url = _resolve(env, url_vars, lambda value: value.rstrip("/"))
    url_source = _describe(url_vars)
    if url is None:
        url = network_config["default_url"]
        url_source = f"default for {name}"

    key = _resolve(
        env, key_vars, lambda value: normalize_private_key(value, _describe(key_vars))
    )
    accounts = (key,) if key is not None else ()

    if url is None:
        logger.debug("Network %s skipped: no endpoint configured", name)
        return None

    return NetworkProfile(
        name=name,
        url=validate_url(url, url_source),
        accounts=accounts,
        chain_id=network_config["chain_id"],
        explorer_url=network_config["block_explorer_url"],
        explorer_api_url=network_config["explorer_api_url"],
    )


def load_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[Union[Path, str]] = None,
) -> ToolchainConfig:
    """
    Build the toolchain configuration.

    Args:
        env: Variables to read (defaults to os.environ)
        env_file: Optional .env file; variables already present in `env`
                  take precedence over it

    Returns:
        ToolchainConfig

    Raises:
        ConfigurationError: If any setting is malformed or ambiguous
    """
    if env is None:
        env = os.environ

    merged: Dict[str, str] = {}
    if env_file is not None:
        env_path = Path(env_file)
        if not env_path.is_file():
            raise ConfigurationError(f"Environment file not found: {env_path}")
        merged.update(
            {k: v for k, v in dotenv_values(env_path).items() if v is not None}
        )
        logger.debug("Loaded environment file %s", env_path)
    merged.update(env)

    solidity_version = merged.get(ENV_SOLIDITY_VERSION) or DEFAULT_SOLIDITY_VERSION
    if not _SOLIDITY_VERSION_RE.match(solidity_version):
        raise ConfigurationError(
            f"${ENV_SOLIDITY_VERSION} must look like 0.8.24, got '{solidity_version}'"
        )

    networks: Dict[str, NetworkProfile] = {}
    for name in NETWORK_CONFIG:
        profile = _load_network(name, merged)
        if profile is not None:
            networks[name] = profile

    return ToolchainConfig(
        solidity_version=solidity_version,
        networks=networks,
        etherscan_api_key=merged.get(ENV_EXPLORER_API_KEY) or None,
    )
