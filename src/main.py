import logging

from fastapi.responses import JSONResponse
import uvicorn
from fastapi import FastAPI, Request
from sqlmodel import Session
from api.api_v1.api import api_router
from starlette.middleware.cors import CORSMiddleware

from core.config import settings
from core.db import engine, init_db
from core.exceptions import VaultError
from log import setup_logging_to_console, setup_seq_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME, openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    setup_logging_to_console()
    setup_seq_logging(settings.PROJECT_NAME)
    with Session(engine) as session:
        init_db(session)


@app.exception_handler(VaultError)
async def vault_exception_handler(request: Request, exc: VaultError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.error_message,
        },
    )


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": str(exc)},
    )


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8001)
