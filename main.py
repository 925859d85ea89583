from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from core.health_check import health_check
from core.log import logger
from routes.audit_log import router as audit_log_router
from routes.inventory import router as inventory_router
from routes.notification import router as notification_router
from routes.ticket_type import router as ticket_type_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    health_check()
    logger.info("Kiosk inventory API started")
    yield


app = FastAPI(title="Kiosk Inventory", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    ticket_type_router,
    inventory_router,
    notification_router,
    audit_log_router,
):
    app.include_router(router)


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    errors = [
        {
            "field": str(error["loc"][0]) if error["loc"] else "general",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=422,
        content={"message": "Validation error on request data.", "errors": errors},
    )


@app.get("/")
async def index():
    return {"service": app.title, "docs": app.docs_url}


@app.get("/health")
def health():
    return {"status": "ok"}
