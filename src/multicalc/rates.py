"""
Currency rate source for MultiCalc.

Fetches the currency list and the latest rates for a base currency from a
Frankfurter-compatible HTTP API. ``RateBook`` tracks the selected "from"
currency and drops responses that arrive for a base that is no longer
selected.
"""

from collections.abc import Mapping

import httpx
import structlog

from multicalc.config import settings
from multicalc.conversion import describe_currency_conversion
from multicalc.errors import DomainError, NetworkError
from multicalc.models import CurrencyConversion

logger = structlog.get_logger()


class CurrencyRateClient:
    """HTTP client for the currency rate API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.currency_api_url
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.currency_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "CurrencyRateClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> dict:
        try:
            response = await self.client.get(path, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"HTTP error! status: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to reach rate service: {e}") from e
        except ValueError as e:
            raise NetworkError("Malformed response from rate service") from e

        if not isinstance(data, dict):
            raise NetworkError("Malformed response from rate service")
        return data

    async def fetch_currencies(self) -> dict[str, str]:
        """Fetch the mapping of currency code to display name."""
        data = await self._get_json("/currencies")
        return {str(code): str(name) for code, name in data.items()}

    async def fetch_rates(self, base: str) -> dict[str, float]:
        """Fetch rates relative to ``base``; the base itself maps to 1."""
        logger.info("Fetching rates", base=base)
        data = await self._get_json("/latest", params={"from": base})

        rates = data.get("rates")
        if not isinstance(rates, dict):
            raise NetworkError("Rates not found in API response")
        try:
            result = {str(code): float(rate) for code, rate in rates.items()}
        except (TypeError, ValueError) as e:
            raise NetworkError("Malformed rates in API response") from e

        result[base] = 1.0
        logger.info("Fetched rates", base=base, currencies=len(result))
        return result


def currency_choices(currencies: Mapping[str, str]) -> list[tuple[str, str]]:
    """(code, label) pairs sorted alphabetically by label."""
    choices = [(code, f"{code} - {name}") for code, name in currencies.items()]
    return sorted(choices, key=lambda choice: choice[1])


class RateBook:
    """
    Rates for the currently selected "from" currency.

    Each selection starts a fetch keyed by its base currency. A response whose
    base is no longer the selected one is discarded on arrival.
    """

    def __init__(self, client: CurrencyRateClient, from_currency: str | None = None):
        self.client = client
        self.selected_base = from_currency or settings.default_from_currency
        self.rates: dict[str, float] | None = None
        self.rates_base: str | None = None
        self.error: str | None = None
        self.is_loading = False

    async def select(self, base: str) -> dict[str, float] | None:
        """
        Select a "from" currency and fetch its rates.

        Returns the rates, or None when a newer selection superseded this one
        before the response arrived.

        Raises:
            NetworkError: the fetch for the still-selected base failed.
        """
        self.selected_base = base
        self.is_loading = True
        self.error = None

        try:
            rates = await self.client.fetch_rates(base)
        except NetworkError as e:
            if base != self.selected_base:
                logger.info("Discarding stale rate failure", requested=base, selected=self.selected_base)
                return None
            self.rates = None
            self.rates_base = None
            self.error = str(e)
            self.is_loading = False
            logger.warning("Rate fetch failed", base=base, error=str(e))
            raise

        if base != self.selected_base:
            logger.info("Discarding stale rates", requested=base, selected=self.selected_base)
            return None

        self.rates = rates
        self.rates_base = base
        self.is_loading = False
        return rates

    async def refresh(self) -> dict[str, float] | None:
        """Fetch rates again for the selected currency."""
        return await self.select(self.selected_base)

    async def swap(self, to_code: str) -> str:
        """Make ``to_code`` the base currency; returns the new "to" currency."""
        previous = self.selected_base
        await self.select(to_code)
        return previous

    def convert(self, to_code: str, amount: float) -> CurrencyConversion:
        """Convert from the selected currency with the current rates."""
        if self.rates is None or self.rates_base != self.selected_base:
            # Rates still loading for a newly selected base
            raise DomainError("Exchange rate not available for the selected currency.")
        return describe_currency_conversion(self.rates, self.selected_base, to_code, amount)
