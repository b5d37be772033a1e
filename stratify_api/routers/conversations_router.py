from fastapi import APIRouter, Depends, Response
import logging

from ..application.ports.conversation_repo import ConversationDto
from ..application.ports.session_repo import AuthSession
from ..application.services.conversation_service import ConversationService
from ..auth_gateway import require_auth_session
from ..dependencies import get_conversation_service
from ..schemas import (
    ConversationEnvelope, ConversationListResponse, ConversationPayload,
    ConversationResponse, SaveConversationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["Conversations"])


def _to_response(conversation: ConversationDto) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        title=conversation.title,
        messages=conversation.messages,
        files=conversation.files,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


def _save(service: ConversationService, user_id: str, conversation_id, body: ConversationPayload) -> ConversationDto:
    return service.save(
        user_id=user_id,
        conversation_id=conversation_id,
        title=body.title,
        messages=body.messages,
        files=body.files,
        created_at=body.created_at,
        updated_at=body.updated_at,
    )


@router.get("", response_model=ConversationListResponse)
def list_conversations(
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    conversations = service.list_for_user(auth.user.id)
    return ConversationListResponse(
        success=True,
        message="Conversations retrieved",
        data={"conversations": [_to_response(c) for c in conversations]},
    )


@router.post("", response_model=ConversationEnvelope, status_code=201)
def save_conversation(
    payload: SaveConversationRequest,
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    body = payload.unwrap()
    saved = _save(service, auth.user.id, body.id, body)
    logger.info(f"Conversation {saved.id} saved for user {auth.user.id}")
    return ConversationEnvelope(success=True, message="Conversation saved", data={"conversation": _to_response(saved)})


@router.delete("", status_code=204)
def delete_all_conversations(
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    removed = service.delete_all_for_user(auth.user.id)
    logger.info(f"Removed {removed} conversations for user {auth.user.id}")
    return Response(status_code=204)


@router.get("/{conversation_id}", response_model=ConversationEnvelope)
def get_conversation(
    conversation_id: str,
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = service.get_for_user(auth.user.id, conversation_id)
    return ConversationEnvelope(success=True, message="Conversation retrieved", data={"conversation": _to_response(conversation)})


@router.put("/{conversation_id}", response_model=ConversationEnvelope)
def put_conversation(
    conversation_id: str,
    payload: SaveConversationRequest,
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    # The path id wins over any id in the body
    saved = _save(service, auth.user.id, conversation_id, payload.unwrap())
    return ConversationEnvelope(success=True, message="Conversation saved", data={"conversation": _to_response(saved)})


@router.delete("/{conversation_id}", status_code=204)
def delete_conversation(
    conversation_id: str,
    auth: AuthSession = Depends(require_auth_session),
    service: ConversationService = Depends(get_conversation_service),
):
    service.delete_for_user(auth.user.id, conversation_id)
    return Response(status_code=204)
