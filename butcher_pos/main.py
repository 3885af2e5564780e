# butcher_pos/main.py
from datetime import datetime
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .api.v1 import api_router
from .config import settings
from .db import init_db
from .errors import AppException, app_exception_handler, generic_exception_handler
from .logging_config import configure_from_settings
from .middleware import RequestLoggingMiddleware, http_exception_handler
from .registry import registry

logger = configure_from_settings()

# create tables if not exist
init_db()

app = FastAPI(title=settings.app_name, debug=settings.debug)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "open_carts": len(registry.open_ids()),
        "timestamp": datetime.utcnow().isoformat(),
    }


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]
)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_router)
