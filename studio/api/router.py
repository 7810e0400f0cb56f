# studio/api/router.py
from fastapi import APIRouter, Depends, status, HTTPException, Response, Header, Request
from studio.models.blueprint import Blueprint
from studio.models.execution import ChatMessage, RunInput, RunOutcome
from studio.models.graph import (
    Connection, Edge, EdgeChange, GraphSnapshot, Node, NodeChange, NodeCreate, NodeUpdate, Position,
)
from studio.core.config import settings
from studio.core.exceptions import NodeNotFoundException
from studio.core.limiter import limiter
from studio.db.repositories.workspace_repository import WorkspaceRepository
from studio.services.blueprint_compiler import BlueprintCompiler, CompilerOptions
from studio.services.graph_service import GraphService
from studio.services.graph_state import GraphState

router = APIRouter()


def _new_graph_state() -> GraphState:
    return GraphState(default_position=Position(x=settings.DEFAULT_NODE_X, y=settings.DEFAULT_NODE_Y))


workspace_repository = WorkspaceRepository(_new_graph_state)
compiler = BlueprintCompiler(CompilerOptions.from_settings(settings))

# Dependency to extract the workspace ID from a header
def get_user_id(x_user_id: str = Header(..., description="Client-generated workspace ID.")) -> str:
    workspace_id = x_user_id.strip()
    if not workspace_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-User-ID must not be blank.")
    return workspace_id

def get_service(request: Request) -> GraphService:
    # Set by the app lifespan; absent until the app has started.
    execution_service = getattr(request.app.state, "execution_service", None)
    return GraphService(workspace_repository, compiler, execution_service)

@router.delete("/graph", status_code=status.HTTP_204_NO_CONTENT, tags=["Graph"])
@limiter.limit("10/minute")
async def clear_workspace(
    request: Request,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    """Deletes all nodes and edges for the given user's workspace."""
    service.clear_workspace(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/graph", response_model=GraphSnapshot, tags=["Graph"])
async def get_full_graph(
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    return service.get_graph(user_id)

@router.get(
    "/blueprint",
    response_model=Blueprint,
    response_model_exclude_none=True,
    tags=["Graph"],
)
async def get_blueprint(
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    """Lowers the current workspace graph into the runtime's execution descriptor."""
    return service.compile_blueprint(user_id)

@router.post("/nodes", status_code=status.HTTP_201_CREATED, response_model=Node, tags=["Nodes"])
@limiter.limit("60/minute")
async def add_node(
    request: Request,
    node_data: NodeCreate,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    return service.create_node(node_data.kind, user_id)

@router.post("/nodes/changes", response_model=GraphSnapshot, tags=["Nodes"])
@limiter.limit("600/minute")
async def apply_node_changes(
    request: Request,
    changes: list[NodeChange],
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    """Applies a batch of position, selection and removal changes in order."""
    return service.apply_node_changes(changes, user_id)

@router.get("/nodes/{node_id}", response_model=Node, tags=["Nodes"])
@limiter.limit("200/minute")
async def get_node(
    request: Request,
    node_id: str,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    node = service.get_node(node_id, user_id)
    if node is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Node not found")
    return node

@router.put("/nodes/{node_id}", response_model=Node, tags=["Nodes"])
@limiter.limit("60/minute")
async def update_node(
    request: Request,
    node_id: str,
    node_update: NodeUpdate,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    try:
        return service.update_node(node_id, node_update, user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

@router.post("/edges", status_code=status.HTTP_201_CREATED, response_model=Edge, tags=["Edges"])
@limiter.limit("120/minute")
async def add_edge(
    request: Request,
    connection: Connection,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    try:
        return service.connect(connection.source, connection.target, user_id)
    except NodeNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

@router.post("/edges/changes", response_model=GraphSnapshot, tags=["Edges"])
@limiter.limit("600/minute")
async def apply_edge_changes(
    request: Request,
    changes: list[EdgeChange],
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    return service.apply_edge_changes(changes, user_id)

@router.post("/run", response_model=RunOutcome, tags=["Execution"])
@limiter.limit("15/minute")
async def run_graph(
    request: Request,
    run_input: RunInput,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    """Compiles the workspace graph and runs it on the execution runtime."""
    return await service.run(run_input.input, user_id)

@router.get("/history", response_model=list[ChatMessage], tags=["Execution"])
async def get_history(
    execution_id: str | None = None,
    user_id: str = Depends(get_user_id),
    service: GraphService = Depends(get_service)
):
    return await service.get_history(execution_id)
