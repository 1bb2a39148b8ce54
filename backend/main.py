# backend/main.py
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import SessionLocal, init_db
from models import users, plat, promotion, cart, order, log, favorite, review  # noqa: F401 (table registration)
from services.promotions import sweep_with_new_session
from utils.errors import ServiceError
from utils.ratelimit import RateLimitMiddleware
from utils.scheduler import PeriodicTask

# Router imports
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.plats import router as plats_router
from routes.promotions import router as promotions_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.favorites import router as favorites_router
from routes.reviews import router as reviews_router
from routes.ws import router as ws_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

init_db()


# Its run guard also covers POST /promotions/sweep
promotion_sweep = PeriodicTask(
    "promotion-sweep",
    settings.PROMOTION_SWEEP_INTERVAL_SECONDS,
    lambda: sweep_with_new_session(SessionLocal),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.PROMOTION_SWEEP_ENABLED:
        promotion_sweep.start()
    yield
    promotion_sweep.stop()


app = FastAPI(title="Food Marketplace API", version="1.0.0", lifespan=lifespan)
app.state.promotion_sweep = promotion_sweep


# Business errors raised by the services
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"kind": exc.kind, "detail": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"kind": "InvalidArgument", "detail": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"kind": "Internal", "detail": "Internal server error"})


# CORS: local frontend plus the deployed one from settings
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    RateLimitMiddleware,
    general_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    auth_per_minute=settings.AUTH_RATE_LIMIT_PER_MINUTE,
    order_per_minute=settings.ORDER_RATE_LIMIT_PER_MINUTE,
    enabled=settings.RATE_LIMIT_ENABLED,
    trusted_proxies=[p.strip() for p in settings.TRUSTED_PROXIES.split(",") if p.strip()],
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(plats_router)
app.include_router(promotions_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(favorites_router)
app.include_router(reviews_router)
app.include_router(ws_router)

@app.get("/")
def read_root():
    return {"message": "Food Marketplace API is running"}
