"""GET /token - OAuth callback that runs the transaction publishing flow"""

import logging
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from token_gateway.api.v1.schemas import ErrorResponse, TokenFlowResponse
from token_gateway.api.dependencies import get_pipeline, get_request_id
from token_gateway.application.pipeline import TokenPipeline
from token_gateway.domain.models import PipelineSuccess

router = APIRouter()


@router.get(
    "/token",
    response_model=TokenFlowResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def handle_token_callback(
    request: Request,
    code: str | None = Query(None, description="OAuth2 authorization code"),
    pipeline: TokenPipeline = Depends(get_pipeline),
):
    """
    Exchange the authorization code and publish the user's transactions.

    Returns:
        200 with user id and transaction count, 400 for a missing code,
        500 when any step of the flow fails
    """
    request_id = get_request_id(request)

    if code is None or not code.strip():
        logging.warning("Rejected token request without code", extra={"request_id": request_id})
        body = ErrorResponse.bad_request("Authorization code is required")
        return JSONResponse(status_code=400, content=body.model_dump())

    result = await pipeline.run(code, request_id=request_id)

    if isinstance(result, PipelineSuccess):
        return JSONResponse(
            status_code=200,
            content=TokenFlowResponse.from_result(result).model_dump(by_alias=True),
        )

    return JSONResponse(status_code=500, content=ErrorResponse.from_result(result).model_dump())
