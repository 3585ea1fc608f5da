"""
adapters/viacep_lookup.py
──────────────────────────────────────────────────────────────────────────────
Implements AddressLookupPort using the public ViaCEP API.

Key behaviour:
  - GET {VIACEP_BASE_URL}/{cep}/json/ via raw requests
  - Bounded wait: ``timeout=settings.lookup_timeout`` (default 10 s)
  - NO retries: a failed call aborts the caller's write, and the caller
    resubmits if it wants another attempt
  - {"erro": true} (or a body without "cep") → None (NotFound)
  - Transport errors, non-2xx and unparseable bodies → AddressLookupError

ViaCEP response shape:
  {"cep": "01310-100", "logradouro": "Avenida Paulista", "complemento": "...",
   "bairro": "Bela Vista", "localidade": "São Paulo", "uf": "SP",
   "ibge": "3550308", "gia": "1004", "ddd": "11", "siafi": "7107"}

Required env vars:
  VIACEP_BASE_URL   — default: https://viacep.com.br/ws
  LOOKUP_TIMEOUT    — default: 10 (seconds)
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from pydantic import BaseModel, ValidationError

from cep_registry.config.settings import Settings
from cep_registry.domain import postal_code
from cep_registry.domain.exceptions import AddressLookupError, LookupFailure
from cep_registry.domain.models import Address

logger = logging.getLogger(__name__)


class ViaCepPayload(BaseModel):
    """Raw ViaCEP JSON body.  Unknown keys are ignored."""

    cep:         Optional[str]  = None
    logradouro:  Optional[str]  = None
    complemento: Optional[str]  = None
    bairro:      Optional[str]  = None
    localidade:  Optional[str]  = None
    uf:          Optional[str]  = None
    ibge:        Optional[str]  = None
    gia:         Optional[str]  = None
    ddd:         Optional[str]  = None
    siafi:       Optional[str]  = None
    erro:        Optional[bool] = None

    @property
    def is_found(self) -> bool:
        return not self.erro and bool((self.cep or "").strip())

    def to_address(self) -> Address:
        return Address(
            postal_code=postal_code.normalize(self.cep),
            street=(self.logradouro or "").strip(),
            complement=(self.complemento or "").strip(),
            district=(self.bairro or "").strip(),
            city=(self.localidade or "").strip(),
            region=(self.uf or "").strip(),
            ibge_code=(self.ibge or "").strip(),
            area_code=(self.ddd or "").strip(),
        )


class ViaCepLookupAdapter:
    """ViaCEP adapter.

    Injected into CustomerService via services/container.py.
    """

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.viacep_base_url.rstrip("/")
        self._timeout = settings.lookup_timeout
        self._headers = {
            "Accept": "application/json",
            "User-Agent": settings.http_user_agent,
        }
        logger.debug(
            "ViaCepLookupAdapter ready | base_url=%s timeout=%.1fs",
            self._base_url,
            self._timeout,
        )

    # ── AddressLookupPort implementation ───────────────────────────────────

    @property
    def service_name(self) -> str:
        return "viacep"

    def lookup(self, normalized_code: str) -> Optional[Address]:
        """Resolve a CEP through ViaCEP.

        Args:
            normalized_code: 8-digit CEP.

        Returns:
            Address on a hit, None when ViaCEP reports the code as unknown.

        Raises:
            AddressLookupError: TIMEOUT when the bounded wait is exceeded,
                COMMUNICATION on any other transport or decoding failure.
        """
        url = f"{self._base_url}/{normalized_code}/json/"
        logger.info("ViaCEP lookup | cep=%s", normalized_code)

        try:
            resp = requests.get(url, headers=self._headers, timeout=self._timeout)
        except requests.Timeout as exc:
            logger.error("ViaCEP timeout after %.1fs | cep=%s", self._timeout, normalized_code)
            raise AddressLookupError(
                LookupFailure.TIMEOUT,
                f"ViaCEP did not answer within {self._timeout:.1f}s: {exc}",
            ) from exc
        except requests.RequestException as exc:
            logger.error("ViaCEP request error | cep=%s: %s", normalized_code, exc)
            raise AddressLookupError(
                LookupFailure.COMMUNICATION,
                f"ViaCEP request failed: {exc}",
            ) from exc

        if not resp.ok:
            logger.error("ViaCEP HTTP %d | cep=%s", resp.status_code, normalized_code)
            raise AddressLookupError(
                LookupFailure.COMMUNICATION,
                f"ViaCEP HTTP {resp.status_code}: {resp.text[:300]}",
            )

        payload = self._parse(resp, normalized_code)
        if payload is None or not payload.is_found:
            logger.warning("ViaCEP reports unknown cep=%s", normalized_code)
            return None

        address = payload.to_address()
        logger.info(
            "ViaCEP hit | cep=%s city=%s region=%s",
            normalized_code,
            address.city,
            address.region,
        )
        return address

    # ── Private helpers ────────────────────────────────────────────────────

    @staticmethod
    def _parse(resp: requests.Response, normalized_code: str) -> Optional[ViaCepPayload]:
        """Decode the body.  An empty body counts as NotFound."""
        if not resp.text or not resp.text.strip():
            return None
        try:
            return ViaCepPayload.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("ViaCEP unparseable body | cep=%s: %s", normalized_code, exc)
            raise AddressLookupError(
                LookupFailure.COMMUNICATION,
                f"Unexpected ViaCEP response body: {exc}",
            ) from exc
