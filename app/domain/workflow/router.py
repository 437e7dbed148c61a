"""Workflow router - Driver time clock, vehicle picker and inspections"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_driver
from ...database import get_db
from ...models import User
from .schemas import ClockRequest, InspectionCreate
from .service import WorkflowService

router = APIRouter(prefix="/api/workflow", tags=["Driver Workflow"])
inspections_router = APIRouter(prefix="/api/inspections", tags=["Driver Workflow"])


def get_workflow_service(db: Session = Depends(get_db)) -> WorkflowService:
    """Dependency injection for WorkflowService"""
    return WorkflowService(db)


@router.get("/clock")
async def clock_status(
    driver: User = Depends(require_driver),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Current clock status for the logged-in driver"""
    return service.get_status(driver)


@router.post("/clock")
async def clock(
    data: ClockRequest,
    driver: User = Depends(require_driver),
    service: WorkflowService = Depends(get_workflow_service),
):
    """
    Clock in or out

    Blocked outcomes (already clocked in, vehicle in use, missing signature...)
    come back as 200 with a status the driver app can explain.
    """
    return service.clock(driver, data)


@router.get("/vehicles")
async def list_vehicles(
    _: User = Depends(require_driver),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.list_vehicles()


@inspections_router.post("", status_code=201)
async def create_inspection(
    data: InspectionCreate,
    driver: User = Depends(require_driver),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.create_inspection(driver, data)
