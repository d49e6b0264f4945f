import json

import httpx
import pytest

from vitabalance.services.mercadopago import (
    PLAN_ITEM,
    STATEMENT_DESCRIPTOR,
    MercadoPagoClient,
    build_preference_body,
)
from vitabalance.utils.errors import PaymentPreferenceError, UpstreamFetchError

from conftest import USER_EMAIL, USER_ID


def test_build_preference_body():
    body = build_preference_body(
        USER_ID,
        USER_EMAIL,
        "https://app.example.com/",
        "https://api.example.com/webhooks/mercadopago",
    )

    assert body["items"] == [PLAN_ITEM]
    assert body["items"][0]["unit_price"] == 9.90
    assert body["items"][0]["currency_id"] == "BRL"
    assert body["payer"] == {"email": USER_EMAIL}
    assert body["back_urls"] == {
        "success": "https://app.example.com/payment/success",
        "failure": "https://app.example.com/payment/failure",
        "pending": "https://app.example.com/payment/pending",
    }
    assert body["auto_return"] == "approved"
    assert body["external_reference"] == USER_ID
    assert body["notification_url"] == "https://api.example.com/webhooks/mercadopago"
    assert body["statement_descriptor"] == STATEMENT_DESCRIPTOR
    assert body["payment_methods"]["installments"] == 1


@pytest.mark.asyncio
async def test_create_preference(payment_client, fake_mp):
    result = await payment_client.create_preference(
        USER_ID, USER_EMAIL, "https://app.example.com", "https://api.example.com/webhooks/mercadopago"
    )

    assert result["id"] == "pref-1"
    assert result["init_point"].endswith("pref_id=pref-1")
    request = fake_mp.requests[0]
    assert request.headers["Authorization"] == "Bearer TEST-access-token"
    assert json.loads(request.content)["external_reference"] == USER_ID
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_create_preference_error_carries_provider_message(payment_client, fake_mp):
    fake_mp.preference_error = (400, "invalid payer email")

    with pytest.raises(PaymentPreferenceError) as exc_info:
        await payment_client.create_preference(USER_ID, "bad", "https://app.example.com", "https://x")

    assert exc_info.value.message == "invalid payer email"
    assert exc_info.value.provider_status == 400
    assert exc_info.value.status_code == 502
    assert len(fake_mp.requests) == 1
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_create_preference_is_not_retried_on_server_error(payment_client, fake_mp):
    fake_mp.preference_error = (500, "internal_error")

    with pytest.raises(PaymentPreferenceError):
        await payment_client.create_preference(USER_ID, USER_EMAIL, "https://app.example.com", "https://x")
    assert len(fake_mp.requests) == 1
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_get_payment(payment_client, fake_mp):
    fake_mp.add_payment(123, status="approved")

    payment = await payment_client.get_payment("123")

    assert payment["status"] == "approved"
    assert payment["external_reference"] == USER_ID
    assert fake_mp.requests[0].url.path == "/v1/payments/123"
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_get_payment_retries_server_errors(payment_client, fake_mp):
    fake_mp.add_payment(123)
    fake_mp.payment_failures = 2

    payment = await payment_client.get_payment("123")

    assert payment["id"] == 123
    assert fake_mp.payment_fetches() == 3
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_get_payment_gives_up_after_budget(payment_client, fake_mp):
    fake_mp.add_payment(123)
    fake_mp.payment_failures = 5

    with pytest.raises(UpstreamFetchError) as exc_info:
        await payment_client.get_payment("123")

    assert exc_info.value.provider_status == 500
    assert fake_mp.payment_fetches() == 3
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_get_payment_not_found_is_final(payment_client, fake_mp):
    with pytest.raises(UpstreamFetchError) as exc_info:
        await payment_client.get_payment("999")

    assert exc_info.value.provider_status == 404
    assert fake_mp.payment_fetches() == 1
    await payment_client.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = MercadoPagoClient(
        access_token="token",
        retry_attempts=2,
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(UpstreamFetchError) as exc_info:
        await client.get_payment("1")
    assert exc_info.value.provider_status is None
    await client.aclose()
