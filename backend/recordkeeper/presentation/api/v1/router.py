"""Version 1 of the API: health, entities, history and rollback, audit logs."""

from fastapi import APIRouter

from recordkeeper.presentation.api.v1.endpoints import audit_logs, entities, health, history

router = APIRouter(prefix="/v1")

for endpoint_module in (health, entities, history, audit_logs):
    router.include_router(endpoint_module.router)
