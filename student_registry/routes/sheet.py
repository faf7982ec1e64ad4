from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from student_registry.auth import get_current_admin
from student_registry.routes.rpc import get_registry_service
from student_registry.services.registry_service import RegistryService

router = APIRouter(prefix="/sheet", tags=["sheet"])


@router.get("/export", response_class=PlainTextResponse, summary="Export sheet", description="Admin-only: download every student row as CSV with the sheet headers.")
def export_sheet(admin=Depends(get_current_admin), service: RegistryService = Depends(get_registry_service)):
    return PlainTextResponse(
        service.sheet.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="students.csv"'},
    )


@router.get("/headers", summary="Sheet headers", description="Column headers in sheet order with their wire keys.")
def sheet_headers(service: RegistryService = Depends(get_registry_service)):
    return [{"header": c.header, "key": c.key, "writable": c.writable} for c in service.sheet.columns.columns]
