"""
Adapter tests with mocked HTTP: URL building, per-provider extraction, and
collapse of every failure mode (transport, status, JSON, schema) to a
zero-price quote tagged with the right provider.
"""

from __future__ import annotations

import io
import json
from unittest.mock import patch

import pytest
import requests

from crypto_price.providers.base import PriceQuote, PriceProvider, ProviderID
from crypto_price.providers.coingecko import CoinGeckoPriceProvider
from crypto_price.providers.coinmarketcap import CoinMarketCapPriceProvider
from crypto_price.providers.cryptocompare import CryptoComparePriceProvider
from crypto_price.providers.http import CancelToken

_GET = "requests.Session.get"

_ALL = [
    (CoinGeckoPriceProvider, ProviderID.COINGECKO),
    (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP),
    (CryptoComparePriceProvider, ProviderID.CRYPTOCOMPARE),
]


def _response(status: int = 200, payload=None, body: bytes | None = None) -> requests.Response:
    """A real Response whose streamed body comes from memory."""
    resp = requests.Response()
    resp.status_code = status
    if body is None:
        body = json.dumps(payload).encode("utf-8")
    resp.raw = io.BytesIO(body)
    return resp


def _assert_failed(quote: PriceQuote, source: ProviderID) -> None:
    assert quote.price == 0.0
    assert not quote.is_valid()
    assert quote.source is source
    assert quote.error_message
    assert quote.latency_s >= 0.0


class TestUrls:
    def test_coingecko_url(self):
        url = CoinGeckoPriceProvider().build_url("bitcoin")
        assert url == "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd"

    def test_coinmarketcap_url(self):
        url = CoinMarketCapPriceProvider().build_url("bitcoin")
        assert url == "https://api.coinmarketcap.com/v1/ticker/bitcoin/"

    def test_cryptocompare_url(self):
        url = CryptoComparePriceProvider().build_url("BTC")
        assert url == "https://min-api.cryptocompare.com/data/price?fsym=BTC&tsyms=USD"

    def test_identifier_is_quoted_not_normalized(self):
        url = CoinMarketCapPriceProvider().build_url("Bit Coin/x")
        assert url.endswith("/v1/ticker/Bit%20Coin%2Fx/")

    @pytest.mark.parametrize("cls,source", _ALL)
    def test_satisfies_protocol(self, cls, source):
        provider = cls()
        assert isinstance(provider, PriceProvider)
        assert provider.provider_id is source


class TestExtraction:
    @patch(_GET)
    def test_coingecko_usd_field(self, mock_get):
        mock_get.return_value = _response(payload={"bitcoin": {"usd": 42000.5}})
        quote = CoinGeckoPriceProvider().get_quote("bitcoin", timeout_s=3.0)
        assert quote.price == 42000.5
        assert quote.source is ProviderID.COINGECKO
        assert quote.error_message is None
        mock_get.assert_called_once_with(
            "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd",
            timeout=3.0,
            stream=True,
        )

    @patch(_GET)
    def test_coingecko_takes_only_entry_when_key_differs(self, mock_get):
        mock_get.return_value = _response(payload={"btc-alias": {"usd": 7}})
        assert CoinGeckoPriceProvider().get_quote("bitcoin").price == 7.0

    @patch(_GET)
    def test_coinmarketcap_decimal_string(self, mock_get):
        mock_get.return_value = _response(payload=[{"id": "bitcoin", "price_usd": "42000.50"}])
        quote = CoinMarketCapPriceProvider().get_quote("bitcoin")
        assert quote.price == 42000.50
        assert quote.source is ProviderID.COINMARKETCAP

    @patch(_GET)
    def test_cryptocompare_usd_field(self, mock_get):
        mock_get.return_value = _response(payload={"USD": 42000.5})
        quote = CryptoComparePriceProvider().get_quote("BTC")
        assert quote.price == 42000.5
        assert quote.source is ProviderID.CRYPTOCOMPARE
        assert quote.is_valid()


class TestFailures:
    @pytest.mark.parametrize("cls,source", _ALL)
    @pytest.mark.parametrize("status", [404, 429, 500])
    def test_non_200_yields_zero_quote(self, cls, source, status):
        with patch(_GET, return_value=_response(status=status)):
            quote = cls().get_quote("bitcoin")
        _assert_failed(quote, source)
        assert str(status) in quote.error_message

    @pytest.mark.parametrize("cls,source", _ALL)
    def test_transport_error_yields_zero_quote(self, cls, source):
        with patch(_GET, side_effect=requests.ConnectionError("refused")):
            quote = cls().get_quote("bitcoin")
        _assert_failed(quote, source)

    @pytest.mark.parametrize("cls,source", _ALL)
    def test_bad_json_yields_zero_quote(self, cls, source):
        resp = _response(body=b"<html>rate limited</html>")
        with patch(_GET, return_value=resp):
            quote = cls().get_quote("bitcoin")
        _assert_failed(quote, source)

    @pytest.mark.parametrize(
        "cls,source,payload",
        [
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, {}),
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, {"bitcoin": {"eur": 1.0}}),
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, {"bitcoin": {"usd": "42000"}}),
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, [{"usd": 1.0}]),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, []),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, [{"price_usd": "n/a"}]),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, [{"price_btc": "1.0"}]),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, {"error": "id not found"}),
            (CryptoComparePriceProvider, ProviderID.CRYPTOCOMPARE, {"Response": "Error", "Message": "no pair"}),
            (CryptoComparePriceProvider, ProviderID.CRYPTOCOMPARE, {"USD": None}),
            (CryptoComparePriceProvider, ProviderID.CRYPTOCOMPARE, ["USD"]),
        ],
    )
    def test_schema_mismatch_yields_zero_quote(self, cls, source, payload):
        with patch(_GET, return_value=_response(payload=payload)):
            quote = cls().get_quote("bitcoin")
        _assert_failed(quote, source)

    @pytest.mark.parametrize("cls,source", _ALL)
    def test_cancelled_before_request_skips_network(self, cls, source):
        cancel = CancelToken()
        cancel.set()
        with patch(_GET) as mock_get:
            quote = cls().get_quote("bitcoin", cancel=cancel)
        mock_get.assert_not_called()
        _assert_failed(quote, source)

    @pytest.mark.parametrize(
        "cls,source,body",
        [
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, b'{"bitcoin": {"usd": NaN}}'),
            (CoinGeckoPriceProvider, ProviderID.COINGECKO, b'{"bitcoin": {"usd": Infinity}}'),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, b'[{"price_usd": "Infinity"}]'),
            (CoinMarketCapPriceProvider, ProviderID.COINMARKETCAP, b'[{"price_usd": "nan"}]'),
            (CryptoComparePriceProvider, ProviderID.CRYPTOCOMPARE, b'{"USD": Infinity}'),
        ],
    )
    def test_non_finite_price_yields_zero_quote(self, cls, source, body):
        with patch(_GET, return_value=_response(body=body)):
            quote = cls().get_quote("bitcoin")
        _assert_failed(quote, source)
        assert "finite" in quote.error_message

    @pytest.mark.parametrize("cls,source", _ALL)
    def test_cancelled_while_reading_body(self, cls, source):
        cancel = CancelToken()
        resp = _response(payload={"bitcoin": {"usd": 1.0}, "USD": 1.0})

        def _cancel_then_respond(url, timeout, stream):
            cancel.set()
            return resp

        with patch(_GET, side_effect=_cancel_then_respond):
            quote = cls().get_quote("bitcoin", cancel=cancel)
        _assert_failed(quote, source)
        assert "cancelled" in quote.error_message
