# This project was developed with assistance from AI tools.
"""Status display metadata (labels, colors, icons) for the front end."""

from fastapi import APIRouter

from ..schemas.lifecycle import StatusCatalogResponse
from ..services.document_machine import document_machine
from ..services.loan_machine import loan_machine
from ..services.status_machine import StatusMachine

router = APIRouter()


def _catalog(machine: StatusMachine) -> StatusCatalogResponse:
    return StatusCatalogResponse(data=[machine.definition(s) for s in machine.statuses])


@router.get("/loan", response_model=StatusCatalogResponse)
async def loan_statuses() -> StatusCatalogResponse:
    return _catalog(loan_machine)


@router.get("/document", response_model=StatusCatalogResponse)
async def document_statuses() -> StatusCatalogResponse:
    return _catalog(document_machine)
