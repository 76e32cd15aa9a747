# stocksync/main.py

from fastapi import FastAPI

from stocksync.core.logging_config import configure_logging
from stocksync.routes.health import router as health_router
from stocksync.routes.products import router as products_router
from stocksync.routes.sync import router as sync_router

configure_logging()

app = FastAPI(title="Stock Sync", description="Keeps MercadoLibre stock in line with the ERP")

app.include_router(health_router)
app.include_router(sync_router)
app.include_router(products_router)
