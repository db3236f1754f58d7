from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests

from fare_scout.amadeus_fetcher import AmadeusFetcher, OfferTimeoutError, TransportError
from fare_scout.config import SearchConfig, Settings
from fare_scout.date_pairs import DatePair

PAIR = DatePair(date(2026, 7, 23), date(2026, 8, 11))


def make_fetcher(**kwargs):
    sleeps = []
    kwargs.setdefault("retry_policy", "fixed")
    fetcher = AmadeusFetcher(
        "https://test.api.amadeus.com",
        origin="AMS",
        destination="BKK",
        sleep=sleeps.append,
        **kwargs,
    )
    return fetcher, sleeps


def response(status=200, payload=None, headers=None, text=""):
    resp = Mock(status_code=status, headers=headers or {}, text=text)
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@patch("requests.get")
def test_fetch_offers_success(mock_get):
    mock_get.return_value = response(200, {"data": [{"id": "1"}, {"id": "2"}]})
    fetcher, _ = make_fetcher(timeout=4)

    result = fetcher.fetch_offers(PAIR, "tok")
    assert result.ok
    assert [o["id"] for o in result.offers] == ["1", "2"]

    args, kwargs = mock_get.call_args
    assert args[0] == "https://test.api.amadeus.com/v2/shopping/flight-offers"
    assert kwargs["params"] == {
        "originLocationCode": "AMS",
        "destinationLocationCode": "BKK",
        "departureDate": "2026-07-23",
        "returnDate": "2026-08-11",
        "adults": "1",
        "travelClass": "BUSINESS",
        "currencyCode": "USD",
        "max": "50",
    }
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert kwargs["timeout"] == 4


@patch("requests.get")
def test_missing_data_key_means_no_offers(mock_get):
    mock_get.return_value = response(200, {"meta": {"count": 0}})
    fetcher, _ = make_fetcher()
    result = fetcher.fetch_offers(PAIR, "tok")
    assert result.ok and result.offers == []


@patch("requests.get")
def test_http_error_is_returned_verbatim(mock_get):
    body = {"errors": [{"status": 400, "code": 477, "title": "INVALID FORMAT"}]}
    mock_get.return_value = response(400, body)
    fetcher, _ = make_fetcher()

    result = fetcher.fetch_offers(PAIR, "tok")
    assert not result.ok
    assert result.error == {"kind": "http", "status": 400, "body": body}
    assert result.to_dict()["error"]["status"] == 400


@patch("requests.get")
def test_http_error_with_text_body(mock_get):
    mock_get.return_value = response(502, ValueError("no json"), text="Bad Gateway")
    fetcher, _ = make_fetcher()
    result = fetcher.fetch_offers(PAIR, "tok")
    assert result.error == {"kind": "http", "status": 502, "body": "Bad Gateway"}


@patch("requests.get")
def test_parse_failure_is_reported(mock_get):
    mock_get.return_value = response(200, ValueError("Expecting value"))
    fetcher, _ = make_fetcher()
    result = fetcher.fetch_offers(PAIR, "tok")
    assert not result.ok
    assert result.error["kind"] == "parse"


@patch("requests.get")
def test_timeout_raises_distinct_error(mock_get):
    mock_get.side_effect = requests.Timeout("slow")
    fetcher, _ = make_fetcher()
    with pytest.raises(OfferTimeoutError):
        fetcher.fetch_offers(PAIR, "tok")


@patch("requests.get")
def test_network_error_raises_transport_error(mock_get):
    mock_get.side_effect = requests.ConnectionError("refused")
    fetcher, _ = make_fetcher()
    with pytest.raises(TransportError) as exc_info:
        fetcher.fetch_offers(PAIR, "tok")
    assert not isinstance(exc_info.value, OfferTimeoutError)


@patch("requests.get")
def test_rate_limit_fixed_delay_then_success(mock_get):
    mock_get.side_effect = [response(429, {}), response(200, {"data": []})]
    fetcher, sleeps = make_fetcher(retry_delay_s=1.5)
    result = fetcher.fetch_offers(PAIR, "tok")
    assert result.ok
    assert sleeps == [1.5]


@patch("requests.get")
def test_rate_limit_retry_after_is_capped(mock_get):
    mock_get.side_effect = [
        response(429, {}, headers={"Retry-After": "30"}),
        response(429, {}, headers={"Retry-After": "2"}),
        response(200, {"data": []}),
    ]
    fetcher, sleeps = make_fetcher(retry_policy="retry_after", retry_after_cap_s=5.0)
    assert fetcher.fetch_offers(PAIR, "tok").ok
    assert sleeps == [5.0, 2.0]


@patch("requests.get")
def test_rate_limit_backoff_grows(mock_get):
    mock_get.side_effect = [response(429, {}), response(429, {}), response(200, {"data": []})]
    fetcher, sleeps = make_fetcher(retry_policy="backoff", backoff_base_s=0.5)
    assert fetcher.fetch_offers(PAIR, "tok").ok
    assert 0.5 <= sleeps[0] <= 1.0
    assert 1.0 <= sleeps[1] <= 1.5


@patch("requests.get")
def test_rate_limit_gives_up_after_max_retries(mock_get):
    mock_get.return_value = response(429, {"errors": [{"code": 38194}]})
    fetcher, sleeps = make_fetcher(max_retries=2)
    result = fetcher.fetch_offers(PAIR, "tok")
    assert not result.ok
    assert result.error["status"] == 429
    assert mock_get.call_count == 3
    assert len(sleeps) == 2


def test_from_config():
    cfg = SearchConfig(currency="eur", max_results=10, retry_policy="backoff")
    settings = Settings(HTTP_TIMEOUT_S=3)
    fetcher = AmadeusFetcher.from_config(cfg, settings, "https://api.amadeus.com/")
    assert fetcher.base_url == "https://api.amadeus.com"
    assert fetcher.params_for(PAIR)["currencyCode"] == "EUR"
    assert fetcher.params_for(PAIR)["max"] == "10"
    assert fetcher.timeout == 3
    assert fetcher.retry_policy == "backoff"
