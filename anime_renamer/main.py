from fastapi import FastAPI

from anime_renamer.api.routes import router
from anime_renamer.log_setup import setup_logging

app = FastAPI(title="Anime Renamer")
app.include_router(router, prefix="/api")


@app.on_event("startup")
def on_startup() -> None:
    setup_logging()


@app.get("/health")
def health() -> dict:
    return {"ok": True}
