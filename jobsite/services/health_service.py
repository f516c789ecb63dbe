import logging
import platform
from datetime import datetime, timezone
from typing import Any, Dict

from starlette.concurrency import run_in_threadpool

from jobsite.config import settings
from jobsite.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)


async def get_detailed_health(service: SubmissionService) -> Dict[str, Any]:
    """Get detailed health status of the workbook and photo storage"""
    health_status = {
        "services": {},
        "system": {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    # Workbook
    try:
        workbook_healthy = await run_in_threadpool(service.workbook.check_connection)
        health_status["services"]["workbook"] = {
            "healthy": workbook_healthy,
            "path": str(service.workbook.path),
            "status": "readable" if workbook_healthy else "unreadable",
        }
    except Exception as e:
        health_status["services"]["workbook"] = {"healthy": False, "error": str(e)}

    # Photo storage
    try:
        storage_healthy = await run_in_threadpool(service.storage.check_connection)
        health_status["services"]["storage"] = {
            "healthy": storage_healthy,
            "backend": settings.STORAGE_BACKEND,
            "status": "connected" if storage_healthy else "disconnected",
        }
    except Exception as e:
        health_status["services"]["storage"] = {"healthy": False, "error": str(e)}

    health_status["system"] = {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
    }

    # Overall
    all_services_healthy = all(s.get("healthy", False) for s in health_status["services"].values())
    health_status["overall_health"] = "healthy" if all_services_healthy else "degraded"

    return health_status
