# backend/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from exceptions import DomainError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Routers
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.cart import router as cart_router
from routes.warehouse import router as warehouse_router
from routes.orders import router as orders_router
from routes.reports import router as reports_router
from routes.products import router as products_router
from routes.stock import router as stock_router
from routes.suppliers import router as suppliers_router
from routes.customers import router as customers_router
from routes.purchases import router as purchases_router

init_db()

app = FastAPI(title="Storefront Inventory API", version="1.0.0")

origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Business rule violations from the service layer. The request session is
# closed without commit, so nothing staged by the failing operation persists.
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **({"data": exc.data} if exc.data else {})},
    )


app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(cart_router)
app.include_router(warehouse_router)
app.include_router(orders_router)
app.include_router(reports_router)
app.include_router(products_router)
app.include_router(stock_router)
app.include_router(suppliers_router)
app.include_router(customers_router)
app.include_router(purchases_router)


@app.get("/")
def read_root():
    return {"message": f"{settings.STORE_NAME} API is running"}
