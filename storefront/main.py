import logging
import os

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .config import CONFIG
from .db import create_db_and_tables, seed_if_empty
from . import views_menu, views_cart, views_checkout, views_orders, views_admin

logging.basicConfig(
    level=getattr(logging, CONFIG.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Taurus Storefront")


@app.on_event("startup")
def on_startup():
    create_db_and_tables()
    seed_if_empty()


@app.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"

# API JSON: menu, carrello, checkout, ordini cliente, board operatore
app.include_router(views_menu.router)
app.include_router(views_cart.router)
app.include_router(views_checkout.router)
app.include_router(views_orders.router)
app.include_router(views_admin.router)


def run():
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logging.getLogger(__name__).info("Starting storefront on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level=CONFIG.log_level.lower())


if __name__ == "__main__":
    run()
