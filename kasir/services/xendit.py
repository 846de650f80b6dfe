"""
Xendit QR code API client.

Thin wrapper over the QR Codes API (api-version 2022-07-31). Calls are
synchronous, authenticated with the secret key as the basic-auth username,
and never retried.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from kasir.core.config import Settings
from kasir.core.exceptions import InternalError, InvalidStateError, UpstreamError
from kasir.schemas.xendit import QrPayment, QrPaymentItem

logger = logging.getLogger(__name__)


class XenditClient:
    """Payment gateway adapter for QRIS payments."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.xendit.co",
        api_version: str = "2022-07-31",
        timeout: float = 30.0,
        currency: str = "IDR",
        expiry_hours: int = 24,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.currency = currency
        self.expiry_hours = expiry_hours

        self.session = session or requests.Session()
        self.session.auth = (secret_key, "")
        self.session.headers.update({
            "api-version": api_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @classmethod
    def from_settings(cls, settings: Settings) -> "XenditClient":
        return cls(
            secret_key=settings.XENDIT_SECRET_KEY,
            base_url=settings.XENDIT_BASE_URL,
            api_version=settings.XENDIT_API_VERSION,
            timeout=settings.XENDIT_TIMEOUT_SECONDS,
            currency=settings.CURRENCY,
            expiry_hours=settings.QR_CODE_EXPIRY_HOURS,
        )

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            body = _response_body(e.response)
            logger.warning("Xendit %s %s failed with %s: %s", method, path, status_code, body)
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamError(message or "Payment gateway error", status_code=status_code, body=body) from e
        except requests.RequestException as e:
            logger.error("Xendit %s %s unreachable: %s", method, path, e)
            raise InternalError("Payment gateway is unreachable") from e

        if not response.content:
            return {}
        return response.json()

    def create_qr_code(self, amount: int, reference_id: str, items: List[QrPaymentItem]) -> QrPayment:
        """Create a one-time dynamic QRIS code for the given invoice."""
        expires_at = datetime.now(timezone.utc) + timedelta(hours=self.expiry_hours)
        payload = {
            "reference_id": reference_id,
            "type": "DYNAMIC",
            "currency": self.currency,
            "amount": amount,
            "expires_at": expires_at.isoformat(),
            "payment_method": {
                "type": "QR_CODE",
                "reusability": "ONE_TIME_USE",
                "qr_code": {"channel_code": "QRIS"},
            },
            "items": [item.model_dump() for item in items],
        }
        data = self._request("POST", "/qr_codes", json=payload)
        logger.info("Created QR code %s for %s", data.get("id"), reference_id)
        return QrPayment.model_validate(data)

    def get_qr_code(self, qr_id: str) -> QrPayment:
        return QrPayment.model_validate(self._request("GET", f"/qr_codes/{qr_id}"))

    def simulate_payment(self, qr_id: str, amount: Optional[int] = None) -> Dict[str, Any]:
        """Ask the test-mode gateway to pay a QR code."""
        payload = {"amount": amount} if amount is not None else {}
        return self._request("POST", f"/qr_codes/{qr_id}/payments/simulate", json=payload)

    def simulate_payment_qr_code(self, qr_id: str) -> Dict[str, Any]:
        """
        Simulate payment for a QR code after checking its status.

        The gateway status must be SUCCEEDED; anything else is rejected as an
        invalid state.
        """
        qr = self.get_qr_code(qr_id)
        if qr.status != "SUCCEEDED":
            raise InvalidStateError(
                f"QR code {qr_id} is not payable in status {qr.status}",
                error={"status": qr.status},
            )
        return self.simulate_payment(qr_id, qr.amount)

    def get_payment_request(self, payment_request_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/payment_requests/{payment_request_id}")


def _response_body(response: Optional[requests.Response]) -> Any:
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
