"""FastAPI application exposing the PRM data layer as REST routes."""

from __future__ import annotations

from typing import Callable, Optional, Union

from fastapi import Cookie, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prm import db_ops
from prm.config import get_config
from prm.errors import NotFoundError, ValidationError
from prm.log import get_logger
from prm.schemas import (
    EventPayload,
    IdPayload,
    InteractionPayload,
    OrganizationPayload,
    PersonPayload,
    PreferencePayload,
)

logger = get_logger("prm.api")

TOKEN_COOKIE = "prm_token"

app = FastAPI(title="PRM API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_config().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_error(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request", "detail": exc.errors()}, status_code=400)


# ==========================================
# Auth
# ==========================================

def current_user(
    authorization: Optional[str] = Header(default=None),
    cookie_token: Optional[str] = Cookie(default=None, alias=TOKEN_COOKIE),
) -> str:
    token = cookie_token
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    user_id = db_ops.resolve_api_token(token) if token else None
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


def _run(action: str, fn: Callable, *args, **kwargs):
    """Calls into db_ops and maps data-layer errors to HTTP responses."""
    try:
        return fn(*args, **kwargs)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error trying to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")


# ==========================================
# People
# ==========================================

@app.get("/api/people")
def get_people(user_id: str = Depends(current_user)):
    return _run("fetch people", db_ops.list_people, user_id)


@app.post("/api/people")
def post_person(body: PersonPayload, user_id: str = Depends(current_user)):
    return _run(
        "create person",
        db_ops.create_person,
        body.sent("organization_ids", "roles"),
        user_id,
        organization_ids=body.organization_ids,
        roles=body.roles,
    )


@app.put("/api/people/{person_id}")
def put_person(person_id: str, body: PersonPayload, user_id: str = Depends(current_user)):
    return _run(
        "update person",
        db_ops.update_person,
        person_id,
        body.sent("organization_ids", "roles"),
        user_id,
        organization_ids=body.organization_ids,
        roles=body.roles,
    )


@app.delete("/api/people/{person_id}")
def delete_person(person_id: str, user_id: str = Depends(current_user)):
    _run("delete person", db_ops.delete_person, person_id, user_id)
    return {"success": True}


# ==========================================
# Organizations
# ==========================================

@app.get("/api/organizations")
def get_organizations(user_id: str = Depends(current_user)):
    return _run("fetch organizations", db_ops.list_organizations, user_id)


@app.post("/api/organizations")
def post_organization(body: OrganizationPayload, user_id: str = Depends(current_user)):
    return _run("create organization", db_ops.create_organization, body.sent(), user_id)


@app.put("/api/organizations/{organization_id}")
def put_organization(organization_id: str, body: OrganizationPayload, user_id: str = Depends(current_user)):
    return _run("update organization", db_ops.update_organization, organization_id, body.sent(), user_id)


@app.delete("/api/organizations/{organization_id}")
def delete_organization(organization_id: str, user_id: str = Depends(current_user)):
    _run("delete organization", db_ops.delete_organization, organization_id, user_id)
    return {"success": True}


# ==========================================
# Events (PUT/DELETE carry the id in the body)
# ==========================================

@app.get("/api/events")
def get_events(user_id: str = Depends(current_user)):
    return _run("fetch events", db_ops.list_events, user_id)


@app.post("/api/events")
def post_event(body: EventPayload, user_id: str = Depends(current_user)):
    return _run("create event", db_ops.create_event, body.sent("id"), user_id)


@app.put("/api/events")
def put_event(body: EventPayload, user_id: str = Depends(current_user)):
    if not body.id:
        raise HTTPException(status_code=400, detail="Missing required field(s): id")
    return _run("update event", db_ops.update_event, body.id, body.sent("id"), user_id)


@app.delete("/api/events")
def delete_event(body: IdPayload, user_id: str = Depends(current_user)):
    _run("delete event", db_ops.delete_event, body.id, user_id)
    return {"success": True}


# ==========================================
# Interactions (POST takes one object or a batch)
# ==========================================

@app.get("/api/interactions")
def get_interactions(user_id: str = Depends(current_user)):
    return _run("fetch interactions", db_ops.list_interactions, user_id)


@app.post("/api/interactions")
def post_interactions(
    body: Union[InteractionPayload, list[InteractionPayload]],
    user_id: str = Depends(current_user),
):
    if isinstance(body, list):
        payload = [item.sent("id") for item in body]
        return _run("create interactions", db_ops.create_interactions, payload, user_id)
    return _run("create interaction", db_ops.create_interactions, body.sent("id"), user_id)


@app.put("/api/interactions")
def put_interaction(body: InteractionPayload, user_id: str = Depends(current_user)):
    if not body.id:
        raise HTTPException(status_code=400, detail="Missing required field(s): id")
    return _run("update interaction", db_ops.update_interaction, body.id, body.sent("id"), user_id)


@app.delete("/api/interactions")
def delete_interaction(body: IdPayload, user_id: str = Depends(current_user)):
    _run("delete interaction", db_ops.delete_interaction, body.id, user_id)
    return {"success": True}


# ==========================================
# Preferences
# ==========================================

@app.get("/api/preferences")
def get_preferences(user_id: str = Depends(current_user)):
    return _run("fetch preferences", db_ops.get_preferences, user_id)


@app.put("/api/preferences")
def put_preference(body: PreferencePayload, user_id: str = Depends(current_user)):
    return _run("update preference", db_ops.set_preference, user_id, body.key, body.value)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
