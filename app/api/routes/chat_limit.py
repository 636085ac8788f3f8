from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import get_chat_quota_gate
from app.core.exceptions import InvalidArgument
from app.models.chat_limit import ChatLimit
from app.schemas.chat_limit import (
    ChatLimitEnvelope,
    ChatLimitListEnvelope,
    ChatLimitRequest,
    ChatLimitResetResponse,
    ChatLimitResponse,
    ChatLimitUpdate,
)
from app.services.chat_quota import ChatQuotaGate, QuotaDecision

router = APIRouter(prefix="/chat-limit", tags=["Chat Limit"])


def _to_response(record: ChatLimit | QuotaDecision) -> ChatLimitResponse:
    return ChatLimitResponse.model_validate(record)


@router.get("", response_model=ChatLimitEnvelope)
def get_chat_limit(
    user_id: str | None = Query(None, alias="userId"),
    gate: ChatQuotaGate = Depends(get_chat_quota_gate),
):
    """Remaining allowance for today. Never consumes a call."""
    try:
        record = gate.peek(user_id)
    except InvalidArgument as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "chat_limit": _to_response(record)}


@router.post("", response_model=ChatLimitEnvelope)
def use_chat(
    body: ChatLimitRequest,
    request: Request,
    gate: ChatQuotaGate = Depends(get_chat_quota_gate),
):
    """Reserve one AI chat call. Responds 429 once today's allowance is spent."""
    request.state.user_id = body.user_id
    try:
        decision = gate.check_and_reserve(body.user_id)
    except InvalidArgument as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not decision.granted:
        denied = ChatLimitEnvelope(
            success=False,
            error="Daily chat limit exceeded",
            chat_limit=_to_response(decision),
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=denied.model_dump(mode="json", by_alias=True),
        )
    return {"success": True, "chat_limit": _to_response(decision)}


@router.put("", response_model=ChatLimitEnvelope)
def update_chat_limit(
    body: ChatLimitUpdate,
    gate: ChatQuotaGate = Depends(get_chat_quota_gate),
):
    """Set a user's daily allowance and restart their day."""
    try:
        record = gate.set_daily_limit(body.user_id, body.daily_limit)
    except InvalidArgument as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "chat_limit": _to_response(record)}


@router.get("/all", response_model=ChatLimitListEnvelope)
def list_chat_limits(gate: ChatQuotaGate = Depends(get_chat_quota_gate)):
    return {"success": True, "chat_limits": [_to_response(r) for r in gate.list_limits()]}


@router.post("/reset-all", response_model=ChatLimitResetResponse)
def reset_all_chat_limits(gate: ChatQuotaGate = Depends(get_chat_quota_gate)):
    return {"success": True, "reset_count": gate.reset_all()}
