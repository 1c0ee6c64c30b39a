"""
HTTP transport for the provenance engine.

Handlers translate requests into engine calls and engine failures into HTTP
status codes. No ledger logic lives here.
"""

from contextlib import asynccontextmanager
from typing import List, Optional, Union

from fastapi import FastAPI, Depends
from fastapi.responses import JSONResponse, Response

from .schemas import (
    EntityCreateRequest,
    AgentCreateRequest,
    ActivityCreateRequest,
    LinkRequest,
    EntityUpdateRequest,
    InvokeRequest,
    ExistsResponse,
    HistoryItem,
    VerifyResponse,
    HealthResponse,
    ErrorResponse,
)
from ..core import engine
from ..core.config import VERSION, SEED_ON_STARTUP, debug_enabled, get_record_store
from ..core.errors import (
    ProvenanceError,
    AlreadyExists,
    NotFound,
    BrokenReference,
    StoreUnavailable,
    InvalidArgument,
    VersionConflict,
)
from ..core.store import IRecordStore
from ..util.logging import logger

ERROR_STATUS = {
    AlreadyExists: 409,
    VersionConflict: 409,
    NotFound: 404,
    BrokenReference: 422,
    InvalidArgument: 400,
    StoreUnavailable: 503,
}

_store: Optional[IRecordStore] = None


def get_store() -> IRecordStore:
    """Process store handle, created from configuration on first use."""
    global _store
    if _store is None:
        _store = get_record_store()
    return _store


@asynccontextmanager
async def lifespan(app: FastAPI):
    if SEED_ON_STARTUP:
        result = engine.init_ledger(get_store())
        if isinstance(result, ProvenanceError):
            logger.error(f"Startup seeding failed: {result.code}: {result.message}")
    yield


# Initialize the FastAPI application
app = FastAPI(
    title="Provenance Ledger API",
    version=VERSION,
    description="PROV-style entity/agent/activity records over a versioned key-value store",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None,
    lifespan=lifespan
)


def _unwrap(result: Union[str, bool, ProvenanceError]):
    if isinstance(result, ProvenanceError):
        raise result
    return result


def _json(payload: str, status_code: int = 200) -> Response:
    # Engine output is already canonical JSON; pass the bytes through untouched
    return Response(content=payload, media_type="application/json", status_code=status_code)


@app.exception_handler(ProvenanceError)
async def provenance_error_handler(request, exc: ProvenanceError):
    """Map typed engine failures to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), 500)
    body = ErrorResponse(error_type=exc.code, message=exc.message, record_id=exc.record_id)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(store: IRecordStore = Depends(get_store)):
    """Check system health."""
    store_health = store.health_check()
    try:
        record_count = store.count()
    except StoreUnavailable:
        store_health = False
        record_count = 0

    return HealthResponse(
        status="healthy" if store_health else "unhealthy",
        version=VERSION,
        store_provider=store.provider,
        store_health=store_health,
        record_count=record_count
    )


@app.post("/ledger/init")
def init_ledger_endpoint(store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.init_ledger(store)))


@app.post("/entities", status_code=201)
def create_entity_endpoint(req: EntityCreateRequest, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.create_entity(store, req.id, req.nom, req.description)), 201)


@app.post("/agents", status_code=201)
def create_agent_endpoint(req: AgentCreateRequest, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.create_agent(store, req.id, req.nom, req.role)), 201)


@app.post("/activities", status_code=201)
def create_activity_endpoint(req: ActivityCreateRequest, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.create_activity(store, req.id, req.description, req.timestamp)), 201)


@app.post("/activities/{activity_id}/link")
def link_activity_endpoint(activity_id: str, req: LinkRequest, store: IRecordStore = Depends(get_store)):
    """Link an activity to the entity it generated and the agent it is associated with."""
    return _json(_unwrap(engine.link_activity(store, req.entity_id, activity_id, req.agent_id)))


@app.patch("/entities/{entity_id}")
def update_entity_endpoint(entity_id: str, req: EntityUpdateRequest, store: IRecordStore = Depends(get_store)):
    result = engine.update_entity(store, entity_id, req.nom or "", req.description or "")
    return _json(_unwrap(result))


@app.get("/records/{record_id}")
def read_record_endpoint(record_id: str, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.read_record(store, record_id)))


@app.get("/records/{record_id}/exists", response_model=ExistsResponse)
def record_exists_endpoint(record_id: str, kind: str = "entity", store: IRecordStore = Depends(get_store)):
    """Existence check; kind only selects the predicate, all share one key space."""
    predicates = {
        "entity": engine.entity_exists,
        "agent": engine.agent_exists,
        "activity": engine.activity_exists,
    }
    predicate = predicates.get(kind)
    if predicate is None:
        raise InvalidArgument(f"kind must be one of: {sorted(predicates)}", record_id)
    return ExistsResponse(id=record_id, exists=_unwrap(predicate(store, record_id)))


@app.get("/records/{record_id}/history", response_model=List[HistoryItem])
def history_endpoint(record_id: str, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.get_history(store, record_id)))


@app.get("/records/{record_id}/verify", response_model=VerifyResponse)
def verify_endpoint(record_id: str, store: IRecordStore = Depends(get_store)):
    return _json(_unwrap(engine.verify_history(store, record_id)))


@app.post("/invoke/{operation}")
def invoke_endpoint(operation: str, req: Optional[InvokeRequest] = None,
                    store: IRecordStore = Depends(get_store)):
    """Named-operation boundary: positional string arguments, JSON result."""
    args = req.args if req else []
    logger.debug(f"Invoke {operation} with {len(args)} args")
    return _json(_unwrap(engine.invoke(store, operation, args)))
