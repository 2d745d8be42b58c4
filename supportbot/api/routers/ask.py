"""
Ask endpoints.

POST /mcp/ask/model   answer with the model alone
POST /mcp/ask/tools   answer with the model plus the MCP provider's tools
"""

from fastapi import APIRouter, Depends

from supportbot.api.dependencies import get_orchestrator
from supportbot.api.schemas import AskRequest, AskResponse
from supportbot.llm.orchestrator import ChatOrchestrator

router = APIRouter(prefix="/mcp", tags=["mcp"])


@router.post("/ask/model", response_model=AskResponse)
async def ask_model(
    body: AskRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> AskResponse:
    """Answer the message directly with the model."""
    result = await orchestrator.ask_model(
        body.session_id,
        body.message,
        body.system_instruction,
        body.history_turns(),
    )
    return AskResponse(answer=result.answer)


@router.post("/ask/tools", response_model=AskResponse)
async def ask_with_tools(
    body: AskRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> AskResponse:
    """Answer the message with the model, letting it call one MCP tool."""
    result = await orchestrator.ask_with_tools(
        body.session_id,
        body.message,
        body.system_instruction,
        body.history_turns(),
    )
    return AskResponse(answer=result.answer)
