"""Registry of the vaults this service is allowed to score."""
from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from .config import AppConfig, VaultConfig
from .errors import InvalidInputError, VaultNotFoundError


@dataclass(frozen=True)
class KnownVault:
    config: VaultConfig
    address: str  # checksummed
    chain_id: int


class VaultRegistry:
    """Look up configured vaults by address or by id."""

    def __init__(self, vaults: list[KnownVault]) -> None:
        self._by_address = {v.address.lower(): v for v in vaults}
        self._by_id = {v.config.id: v for v in vaults if v.config.id}

    @classmethod
    def from_config(cls, config: AppConfig) -> VaultRegistry:
        known = [
            KnownVault(
                config=v,
                address=Web3.to_checksum_address(v.address),
                chain_id=config.chains[v.chain].chain_id,
            )
            for v in config.vaults
        ]
        return cls(known)

    def __iter__(self):
        return iter(self._by_address.values())

    def lookup(self, identifier: str, chain_id: int | None = None) -> KnownVault:
        """Resolve an address or vault id to a configured vault.

        Raises:
            InvalidInputError: ``identifier`` looks like an address but is malformed.
            VaultNotFoundError: not configured, or configured on another chain.
        """
        identifier = (identifier or "").strip()
        if identifier in self._by_id:
            vault = self._by_id[identifier]
        elif identifier.lower().startswith("0x"):
            if not Web3.is_address(identifier):
                raise InvalidInputError(f"Malformed vault address: {identifier}")
            vault = self._by_address.get(identifier.lower())
            if vault is None:
                raise VaultNotFoundError(f"Vault {identifier} not found in configuration")
        else:
            raise VaultNotFoundError(f"Vault '{identifier}' not found")

        if chain_id is not None and chain_id != vault.chain_id:
            raise VaultNotFoundError(
                f"Vault {vault.address} is not configured on chain {chain_id}"
            )
        return vault
