"""
Product Routes

POST /add    - commit a product record
POST /verify - verify a committed product against its anchored root
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import ProductService, get_service
from api.errors import APIError
from api.models.requests import AddProductRequest, VerifyProductRequest
from api.models.responses import AddProductResponse, VerifyProductResponse
from core.schemas.errors import ProdsealException
from core.schemas.verification import VerificationOutcome


logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])

OUTCOME_MESSAGES = {
    VerificationOutcome.AUTHENTIC: "Authentic Product",
    VerificationOutcome.TAMPERED: "Tampered Product",
}


@router.post("/add", response_model=AddProductResponse)
def add_product(
    request: AddProductRequest,
    service: ProductService = Depends(get_service),
) -> AddProductResponse:
    """
    Commit a product record.

    Salts each field, anchors the root on the ledger, stores the fields in
    the content store and persists the salts.
    """
    logger.info(f"Add product {request.product_id}")
    try:
        record = service.committer.commit(
            request.product_id,
            request.model_dump(),
            deadline=service.deadline(),
        )
    except ProdsealException as e:
        raise APIError.from_engine_error(e) from e

    return AddProductResponse(
        product_id=record.record_id,
        root=record.root,
        content_ref=record.content_ref,
        leaves=record.leaves,
    )


@router.post("/verify", response_model=VerifyProductResponse)
def verify_product(
    request: VerifyProductRequest,
    service: ProductService = Depends(get_service),
) -> VerifyProductResponse:
    """
    Verify a product.

    Returns ok=True for both outcomes; a tampered product is a result, not
    an error.
    """
    logger.info(f"Verify product {request.product_id}")
    try:
        report = service.verifier.verify(request.product_id, deadline=service.deadline())
    except ProdsealException as e:
        raise APIError.from_engine_error(e) from e

    checks = []
    if request.include_checks:
        checks = [c.model_dump(mode="json") for c in report.checks]

    return VerifyProductResponse(
        product_id=report.record_id,
        outcome=report.outcome.value,
        message=OUTCOME_MESSAGES[report.outcome],
        anchored_root=report.anchored_root,
        recomputed_root=report.recomputed_root,
        content_ref=report.content_ref,
        cache_hit=report.cache_hit,
        reason=report.reason,
        checks=checks,
    )
