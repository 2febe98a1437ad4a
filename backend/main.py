# backend/main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path

from config import settings
from database import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

# Router imports
from routes.auth import router as auth_router
from routes.cart import router as cart_router
from routes.checkout import router as checkout_router
from routes.orders import router as orders_router
from routes.stats import router as stats_router
from routes.customers import router as customers_router
from routes.products import router as products_router
from routes.shop import router as shop_router
from routes.settings import router as settings_router
from routes.logs import router as logs_router

# Initialization
init_db()

app = FastAPI(title="Aroma Notes API", version="1.0.0")

# Uploads (product images, bank slips) - make sure the directory exists
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# CORS: the storefront and admin panel are served from the frontend origin
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(shop_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(stats_router)
app.include_router(customers_router)
app.include_router(products_router)
app.include_router(settings_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Aroma Notes API is running"}
