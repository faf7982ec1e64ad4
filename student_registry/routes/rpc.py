import json
import logging
from time import perf_counter
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from starlette.concurrency import run_in_threadpool

from student_registry.auth import admin_from_credentials, optional_bearer, require_admin_token
from student_registry.errors import INVALID_REQUEST
from student_registry.services.registry_service import RegistryService

logger = logging.getLogger("registry.rpc")

router = APIRouter(tags=["rpc"])


def get_registry_service(request: Request) -> RegistryService:
    return request.app.state.registry


@router.post("/exec", summary="Registry RPC", description="Single JSON endpoint. Body is `{action, ...}` where action is one of addStudent, getStudents, getStudent, updateStudent, deleteStudent, generateStudentId. Always answers 200 with `{success, message?, ...}`.")
async def execute(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
    service: RegistryService = Depends(get_registry_service),
):
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        return {"success": False, "message": INVALID_REQUEST}

    is_admin = not require_admin_token() or admin_from_credentials(credentials) is not None
    started = perf_counter()
    result = await run_in_threadpool(service.execute, body, is_admin)
    action = body.get("action") if isinstance(body, dict) else None
    logger.info("rpc action=%s success=%s latency_ms=%d", action, result.get("success"),
                int((perf_counter() - started) * 1000))
    return result
