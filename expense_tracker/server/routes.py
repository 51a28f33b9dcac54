"""
Record Service Routes

| Method | Path            | Success                          | Failure        |
|--------|-----------------|----------------------------------|----------------|
| HEAD   | /expenses       | 200, empty (reachability probe)  |                |
| GET    | /expenses       | 200, array in insertion order    |                |
| POST   | /expenses       | 201 created / 200 replaced       | 400            |
| PUT    | /expenses/{id}  | 200, updated record              | 404, then 400  |
| DELETE | /expenses/{id}  | 204, empty                       | 404            |

DESIGN DECISION: POST is an upsert keyed by the client-supplied id, so a
client that retries a push after a lost response cannot create a
duplicate record.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from expense_tracker.models import Expense, ExpenseFields
from expense_tracker.services.storage import ExpenseRepositoryInterface, NotFoundError


logger = structlog.get_logger(__name__)

router = APIRouter()

EDITABLE_FIELDS = ("amount", "description", "category", "date")
RECORD_FIELDS = ("id",) + EDITABLE_FIELDS

MISSING_FIELDS_MESSAGE = "All fields are required"
NOT_FOUND_MESSAGE = "Expense not found"


def get_repository(request: Request) -> ExpenseRepositoryInterface:
    return request.app.state.repository


async def _read_json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _require_fields(body: dict[str, Any], names: tuple[str, ...]) -> None:
    for name in names:
        value = body.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise HTTPException(status_code=400, detail=MISSING_FIELDS_MESSAGE)


def _invalid(error: ValidationError) -> HTTPException:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "body"
    return HTTPException(status_code=400, detail=f"Invalid {field}: {first['msg']}")


@router.head("/expenses")
async def probe_expenses() -> Response:
    return Response(status_code=200)


@router.get("/expenses")
async def list_expenses(
    repository: ExpenseRepositoryInterface = Depends(get_repository),
) -> JSONResponse:
    expenses = await repository.list_expenses()
    return JSONResponse([e.to_wire() for e in expenses])


@router.post("/expenses")
async def create_expense(
    request: Request,
    repository: ExpenseRepositoryInterface = Depends(get_repository),
) -> JSONResponse:
    body = await _read_json_object(request)
    _require_fields(body, RECORD_FIELDS)
    try:
        expense = Expense.model_validate(body)
    except ValidationError as e:
        raise _invalid(e)

    stored, created = await repository.upsert_expense(expense)
    logger.info("expense_stored", expense_id=stored.id, created=created)
    return JSONResponse(stored.to_wire(), status_code=201 if created else 200)


@router.put("/expenses/{expense_id}")
async def update_expense(
    expense_id: str,
    request: Request,
    repository: ExpenseRepositoryInterface = Depends(get_repository),
) -> JSONResponse:
    # Unknown ids are reported before the body is looked at
    if await repository.get_expense(expense_id) is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

    body = await _read_json_object(request)
    _require_fields(body, EDITABLE_FIELDS)
    try:
        fields = ExpenseFields.model_validate(body)
    except ValidationError as e:
        raise _invalid(e)

    try:
        updated = await repository.update_expense(expense_id, fields)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

    logger.info("expense_updated", expense_id=expense_id)
    return JSONResponse(updated.to_wire())


@router.delete("/expenses/{expense_id}")
async def delete_expense(
    expense_id: str,
    repository: ExpenseRepositoryInterface = Depends(get_repository),
) -> Response:
    try:
        await repository.delete_expense(expense_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

    logger.info("expense_deleted", expense_id=expense_id)
    return Response(status_code=204)
