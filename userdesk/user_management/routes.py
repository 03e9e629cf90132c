"""
User Management API Routes

FastAPI routes for the ``/api/users`` resource. Handlers stay thin: they
hand the raw request to ``UserService`` and translate its result into a
JSON response.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dependencies import get_user_service
from .models import UserResult
from .service import UserService

user_router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
)


def _to_response(request: Request, result: UserResult) -> JSONResponse:
    """Translate a service result into a JSON response."""
    response = JSONResponse(status_code=result.status_code, content=result.payload)
    if result.ok and result.location_id is not None:
        response.headers["Location"] = str(
            request.app.url_path_for("user_get", user_id=result.location_id)
        )
    return response


@user_router.get("", name="users_get")
@user_router.get("/", include_in_schema=False)
async def get_users(request: Request, service: UserService = Depends(get_user_service)):
    """List all users."""
    return _to_response(request, await service.list_users())


@user_router.post("", name="users_add", status_code=201)
@user_router.post("/", status_code=201, include_in_schema=False)
async def add_user(request: Request, service: UserService = Depends(get_user_service)):
    """Create a user from a JSON body."""
    body = await request.body()
    return _to_response(request, await service.create_user(body))


@user_router.get("/{user_id}", name="user_get")
async def get_user_data(user_id: int, request: Request, service: UserService = Depends(get_user_service)):
    """Get specific user by ID."""
    return _to_response(request, await service.get_user(user_id))


@user_router.put("/{user_id}", name="user_update")
async def update_user(user_id: int, request: Request, service: UserService = Depends(get_user_service)):
    """Replace a user's data from a JSON body."""
    body = await request.body()
    return _to_response(request, await service.update_user(user_id, body))


@user_router.delete("/{user_id}", name="user_delete")
async def delete_user(user_id: int, request: Request, service: UserService = Depends(get_user_service)):
    """Delete a user."""
    return _to_response(request, await service.delete_user(user_id))
