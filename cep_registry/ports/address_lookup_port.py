"""
ports/address_lookup_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for postal-code (CEP) to address resolution.

Three outcomes are possible for a lookup:
  1. Address   — the service knows the code (Found)
  2. None      — the service answered but does not know the code (NotFound)
  3. raise     — AddressLookupError(COMMUNICATION | TIMEOUT)

A Found address may still be incomplete (blank street, city or region);
deciding what to do with that is the caller's job, not the adapter's.

Current implementation: ViaCepLookupAdapter (requests)
To swap: write a new adapter implementing this Protocol and change ONE line
in services/container.py.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from cep_registry.domain.models import Address


@runtime_checkable
class AddressLookupPort(Protocol):
    """Contract for the outbound CEP lookup service."""

    @property
    def service_name(self) -> str:
        """Identifier of the lookup backend, for logs."""
        ...

    def lookup(self, normalized_code: str) -> Optional[Address]:
        """Resolve an already-normalised 8-digit postal code.

        Args:
            normalized_code: Exactly 8 ASCII digits.

        Returns:
            The resolved Address, or None when the code is unknown.

        Raises:
            AddressLookupError: On transport failure or when the bounded
                wait is exceeded.  Implementations must not retry.
        """
        ...
