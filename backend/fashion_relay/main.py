from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uvicorn
from .config import get_settings
from .logger import logger
from .routes import design
from .exceptions import (
    FashionRelayError,
    fashion_relay_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)

app = FastAPI(
    title="Fashion Design Relay",
    version="1.0.0",
    description="Relay between the fashion design wizard and the Replicate inference API"
)

app.add_exception_handler(FashionRelayError, fashion_relay_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
        }
    )

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Response: {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
    )

    return response

app.include_router(design.router)

@app.on_event("startup")
async def startup():
    settings = get_settings()
    base = f"http://localhost:{settings.PORT}"
    logger.info(f"Fashion design relay running on {base}")
    logger.info(f"Health check: {base}/api/health")
    logger.info(
        "Environment status",
        extra={
            "replicate_api_token": "set" if settings.REPLICATE_API_TOKEN else "missing",
            "model_id": settings.MODEL_ID or "using default",
            "prompt_template": settings.PROMPT_TEMPLATE or "using default",
        }
    )
    if not settings.REPLICATE_API_TOKEN:
        logger.warning("REPLICATE_API_TOKEN is missing; generation requests will fail until it is set in .env")

@app.on_event("shutdown")
async def shutdown():
    logger.info("Shutting down fashion design relay")

def run():
    settings = get_settings()
    # log_config=None keeps the JSON handlers installed by setup_logger()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None, log_level=settings.LOG_LEVEL.lower())

if __name__ == "__main__":
    run()
