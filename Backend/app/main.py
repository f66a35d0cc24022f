import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.db.models  # noqa: F401  registers tables on Base.metadata
from app.config import CORS_ORIGINS, LOG_LEVEL
from app.db.base import Base
from app.db.engine import engine
from app.routes import activities as activities_routes
from app.routes import auth as auth_routes
from app.strava.routes import router as strava_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Strava Activity Dashboard")
app.include_router(auth_routes.router)
app.include_router(strava_router)
app.include_router(activities_routes.router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors: 400 rather than FastAPI's 422.
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/healthz", tags=["Health"])
def healthz():
    return {"status": "ok"}


@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
