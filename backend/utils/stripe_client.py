# backend/utils/stripe_client.py
import httpx
import logging
from urllib.parse import urljoin
from config import settings
from services.exceptions import GatewayError

logger = logging.getLogger(__name__)

class StripeClient:
    def __init__(self, api_key: str = None, api_url: str = None, transport: httpx.AsyncBaseTransport = None):
        # Secret key authenticates as HTTP basic auth username with an empty password
        self.api_key = settings.STRIPE_SECRET_KEY if api_key is None else api_key
        self.api_url = api_url or settings.STRIPE_API_URL
        self.return_url = settings.PAYMENT_RETURN_URL
        self.timeout = settings.PAYMENT_TIMEOUT_SECONDS
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self.api_key, ""),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _post(self, path: str, data: dict) -> dict:
        url = urljoin(self.api_url, path)
        async with self._client() as client:
            try:
                response = await client.post(url, data=data)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error("Stripe %s error %s: %s", path, e.response.status_code, e.response.text[:500])
                raise
            except httpx.RequestError as e:
                logger.error("Stripe %s request failed: %s", path, e)
                raise

            try:
                return response.json()
            except ValueError:
                logger.error("Stripe %s returned a non-JSON body", path)
                raise GatewayError("Invalid response from payment gateway")

    async def create_payment_intent(self, amount_cents: int, currency: str, payment_method: str) -> dict:
        # Confirm immediately; manual confirmation surfaces 3-D Secure as requires_action
        payload = {
            "amount": amount_cents,
            "currency": currency,
            "payment_method": payment_method,
            "confirmation_method": "manual",
            "confirm": "true",
            "return_url": self.return_url,
        }
        return await self._post("/v1/payment_intents", payload)

    async def create_refund(self, payment_intent_id: str, amount_cents: int) -> dict:
        payload = {
            "payment_intent": payment_intent_id,
            "amount": amount_cents,
        }
        return await self._post("/v1/refunds", payload)


def gateway_error_message(exc: httpx.HTTPStatusError) -> str:
    # Stripe wraps failures as {"error": {"message": ...}}
    try:
        body = exc.response.json()
        return body.get("error", {}).get("message") or exc.response.text
    except ValueError:
        return exc.response.text or str(exc)
