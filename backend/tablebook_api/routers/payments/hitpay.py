"""
HitPay hosted checkout router.

Endpoints:
- POST /api/payments/hitpay/create - open a checkout for an order
- POST /api/payments/hitpay/callback - gateway webhook (signed, no token)
- GET /api/payments/hitpay/status/{payment_id} - poll a checkout
"""

import json
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from tablebook_shared.config.logging import payment_logger as logger
from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.utils.exceptions import ValidationError
from tablebook_shared.utils.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentStatusOutput,
    PaymentTransactionOutput,
    WebhookAck,
)
from tablebook_api.services.payments import (
    HitPayClient,
    PaymentService,
    verify_webhook_signature,
)


router = APIRouter(prefix="/api/payments/hitpay", tags=["payments"])


def get_gateway() -> HitPayClient:
    """Gateway client dependency, overridden in tests."""
    return HitPayClient()


def _parse_callback_body(raw_body: bytes, content_type: str) -> dict:
    if content_type.startswith("application/json"):
        try:
            payload = json.loads(raw_body or b"{}")
        except ValueError:
            raise ValidationError("Malformed webhook body")
        if not isinstance(payload, dict):
            raise ValidationError("Malformed webhook body")
        return payload
    return dict(parse_qsl(raw_body.decode("utf-8", errors="replace")))


@router.post("/create", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
    gateway: HitPayClient = Depends(get_gateway),
) -> CheckoutResponse:
    """
    Open a hosted checkout for one of the caller's unpaid orders.
    Returns 503 with Retry-After while the gateway is unreachable.
    """
    transaction = await PaymentService(db, gateway=gateway).create_checkout(get_subject_id(ctx), body.order_id)
    return CheckoutResponse(
        payment_id=transaction.payment_id,
        payment_url=transaction.payment_url,
        reference_number=transaction.reference_number,
        amount=float(transaction.amount),
        currency=transaction.currency,
        status=transaction.status,
    )


@router.post("/callback", response_model=WebhookAck)
async def hitpay_callback(
    request: Request,
    db: Session = Depends(get_db),
    hitpay_signature: str | None = Header(default=None, alias="Hitpay-Signature"),
) -> WebhookAck:
    """
    Gateway webhook.

    Deliveries may be replayed or arrive out of order; a status the
    transaction cannot move to from where it is gets ignored.
    """
    raw_body = await request.body()
    if not verify_webhook_signature(raw_body, hitpay_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    payload = _parse_callback_body(raw_body, request.headers.get("content-type", ""))
    logger.info(
        "HitPay webhook received",
        payment_id=payload.get("id") or payload.get("payment_request_id"),
        status=payload.get("status"),
    )
    return PaymentService(db).handle_webhook(payload)


@router.get("/status/{payment_id}", response_model=PaymentStatusOutput)
async def payment_status(
    payment_id: str,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
    gateway: HitPayClient = Depends(get_gateway),
) -> PaymentStatusOutput:
    return await PaymentService(db, gateway=gateway).refresh_status(get_subject_id(ctx), payment_id)


@router.get("/transactions", response_model=list[PaymentTransactionOutput])
def list_transactions(
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
    gateway: HitPayClient = Depends(get_gateway),
) -> list[PaymentTransactionOutput]:
    transactions = PaymentService(db, gateway=gateway).list_for_customer(get_subject_id(ctx))
    return [PaymentTransactionOutput.model_validate(t) for t in transactions]
