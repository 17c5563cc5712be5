import json
import logging
import os
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env (ENV_FILE overrides the path). This must run
# before the apps.api imports below: storage picks its backend at import time.
env_path = os.getenv("ENV_FILE") or Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from fastapi import FastAPI  # noqa: E402
from starlette.middleware.cors import CORSMiddleware  # noqa: E402
from starlette.requests import Request  # noqa: E402
from starlette.responses import Response  # noqa: E402

from apps.api import storage  # noqa: E402
from apps.api.correlation import CorrelationIdFilter, new_correlation_id  # noqa: E402
from apps.api.routes.config import router as config_router  # noqa: E402
from apps.api.routes.evals import router as evals_router  # noqa: E402
from apps.api.routes.health import router as health_router  # noqa: E402
from apps.api.routes.stats import router as stats_router  # noqa: E402

# Request-level structured logs. Every record carries the request's correlation_id.
_handler = logging.StreamHandler()
_handler.addFilter(CorrelationIdFilter())
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(levelname)s:%(name)s:[%(correlation_id)s] %(message)s",
    handlers=[_handler],
)
logger = logging.getLogger("evalboard.api")

app = FastAPI(title="Evalboard")

logger.info(
    "storage backend: %s, auth %s",
    type(storage.BACKEND).__name__,
    "enabled" if os.getenv("AUTH_ENABLED", "").strip().lower() in ("1", "true", "yes") else "disabled",
)

# CORS: allow the dashboard dev server (and configured origins) to call the API.
_cors_origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-API-Key", "Authorization"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next) -> Response:
    correlation_id = new_correlation_id()

    start = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000.0

    # One JSON line per request so log tools can parse it.
    logger.info(
        json.dumps(
            {
                "event": "http_request",
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "correlation_id": str(correlation_id),
            }
        )
    )
    response.headers["X-Correlation-ID"] = str(correlation_id)
    return response


# Stats must be registered before the evaluations router, otherwise
# /api/evals/stats would be matched by /api/evals/{eval_id}.
app.include_router(health_router)
app.include_router(stats_router)
app.include_router(evals_router)
app.include_router(config_router)
