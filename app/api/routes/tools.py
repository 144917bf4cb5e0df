from fastapi import APIRouter, Depends

from app.agents.registry import ToolRegistry
from app.api.deps import get_registry
from app.schemas.agent import ToolInfo, ToolListResponse

router = APIRouter(prefix="/v1.0/tools", tags=["tools"])


@router.get("", response_model=ToolListResponse)
async def list_tools(registry: ToolRegistry = Depends(get_registry)):
    """The tool catalog exactly as the model sees it."""
    return ToolListResponse(
        items=[
            ToolInfo(
                name=tool.name,
                description=tool.description,
                mutating=tool.mutating,
                input_schema=tool.input_schema,
            )
            for tool in registry.list_tools()
        ]
    )
