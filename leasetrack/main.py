"""
Lease tracker HTTP API.
Use: uvicorn leasetrack.main:app --host 0.0.0.0 --port 8000
"""
import logging
from typing import Any, Optional, List
from fastapi import FastAPI, Depends, Header, HTTPException
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import async_sessionmaker

from leasetrack.config import LOG_LEVEL
from leasetrack.database import get_session_factory
from leasetrack.apply import SuggestionBatchProcessor
from leasetrack.apply.config import configure_apply_logging, load_apply_config
from leasetrack.services.project_access import ProjectAccessValidator
from leasetrack.services.suggestions import UpdateSuggestion, ingest_suggestions

# Set up logging
logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)  # Reduce SQLAlchemy verbosity
logging.getLogger('uvicorn').setLevel(logging.INFO)

apply_config = load_apply_config()
configure_apply_logging(apply_config)

app = FastAPI(title="Lease Tracker", version="0.1.0")


class SuggestionIn(BaseModel):
    id: Optional[str] = None
    entity_type: str = Field(validation_alias=AliasChoices("entityType", "entity_type"))
    action: str
    entity_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("entityId", "entity_id"))
    entity_name: str = Field(default="", validation_alias=AliasChoices("entityName", "entity_name"))
    values: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""


class IngestRequest(BaseModel):
    suggestions: List[dict[str, Any]]


class ApplyRequest(BaseModel):
    suggestions: List[SuggestionIn]


class ValidateProjectsRequest(BaseModel):
    project_ids: List[str]


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/suggestions/ingest")
async def ingest(body: IngestRequest):
    """Parse raw upstream suggestions and return them with unique ids."""
    suggestions = ingest_suggestions(body.suggestions)
    return {"suggestions": [s.as_dict() for s in suggestions]}


@app.post("/suggestions/apply")
async def apply_suggestions(
    body: ApplyRequest,
    x_user_id: Optional[str] = Header(default=None),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Apply the approved suggestions in the body and return the batch summary."""
    try:
        suggestions = [UpdateSuggestion.from_dict(s.model_dump()) for s in body.suggestions]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    processor = SuggestionBatchProcessor(session_factory, owner_user_id=x_user_id, config=apply_config)
    result = await processor.apply_approved_suggestions(suggestions)
    return result.as_dict()


@app.post("/projects/validate")
async def validate_projects(
    body: ValidateProjectsRequest,
    x_user_id: Optional[str] = Header(default=None),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Pre-flight existence/access check for project ids."""
    validator = ProjectAccessValidator(session_factory, owner_user_id=x_user_id)
    results = await validator.validate_many(body.project_ids)
    return {project_id: result.as_dict() for project_id, result in results.items()}
