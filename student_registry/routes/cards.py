from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from student_registry.auth import get_current_admin
from student_registry.cards import render_cards, render_lookup_page
from student_registry.errors import NotFound
from student_registry.routes.rpc import get_registry_service
from student_registry.services.registry_service import RegistryService

router = APIRouter(prefix="/card", tags=["cards"])


@router.get("", response_class=HTMLResponse, summary="Card lookup page", description="Public page: enter a student ID (or pass `?studentId=`) to render the identity card.")
def lookup(studentId: Optional[str] = None, service: RegistryService = Depends(get_registry_service)):
    query = (studentId or "").strip()
    if not query:
        return render_lookup_page()
    return _card_page(service, query)


@router.get("/batch", response_class=HTMLResponse, summary="Batch card print", description="Admin-only: every requested card (`?ids=STU1,STU2`, or all students when omitted) on one printable page.")
def batch(ids: Optional[str] = None, admin=Depends(get_current_admin),
          service: RegistryService = Depends(get_registry_service)):
    if not ids:
        return HTMLResponse(render_cards(service.sheet.all()))
    wanted = list(dict.fromkeys(i.strip() for i in ids.split(",") if i.strip()))
    students, missing = [], []
    for student_id in wanted:
        student = service.sheet.find(student_id)
        if student:
            students.append(student)
        else:
            missing.append(student_id)
    return HTMLResponse(render_cards(students, missing))


@router.get("/{student_id}", response_class=HTMLResponse, summary="Student card", description="Render the printable identity card for one student.")
def card(student_id: str, service: RegistryService = Depends(get_registry_service)):
    return _card_page(service, student_id.strip())


def _card_page(service: RegistryService, student_id: str) -> HTMLResponse:
    try:
        student = service.get_student(student_id)
    except NotFound:
        return HTMLResponse(render_lookup_page(query=student_id, error="Student ID not found"), status_code=404)
    return HTMLResponse(render_lookup_page(student=student, query=student_id))
