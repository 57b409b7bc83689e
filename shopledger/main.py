import logging

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopledger.api.routes.attendance import router as attendance_router
from shopledger.api.routes.auth import router as auth_router
from shopledger.api.routes.expenses import router as expenses_router
from shopledger.api.routes.funds import router as funds_router
from shopledger.api.routes.items import router as items_router
from shopledger.api.routes.purchases import router as purchases_router
from shopledger.api.routes.sales import router as sales_router
from shopledger.api.routes.workers import router as workers_router
from shopledger.core.config import settings
from shopledger.core.logging_config import configure_logging
from shopledger.services.exceptions import LedgerError

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(_: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(funds_router)
api_router.include_router(items_router)
api_router.include_router(purchases_router)
api_router.include_router(sales_router)
api_router.include_router(expenses_router)
api_router.include_router(workers_router)
api_router.include_router(attendance_router)


@api_router.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}


app.include_router(api_router)
logger.info("%s ready with %d routes", settings.app_name, len(app.routes))
