from fastapi import APIRouter

from promptlab.agents.factory import all_agent_metadata, available_agent_types

router = APIRouter(prefix="/api/chat", tags=["agents"])

@router.get("/agents")
def list_agents() -> dict:
    return {"available": available_agent_types(), "metadata": all_agent_metadata()}
