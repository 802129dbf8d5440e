import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import (
    charts,
    chat,
    debug,
    feedback,
    geospatial,
    knowledge_base,
    map_services,
    urban_planning,
    usage,
    worldpop,
)
from core.config import ALLOWED_CORS_ORIGINS, LOG_LEVEL

# Set LOG_LEVEL=WARNING in production to reduce noise, DEBUG for verbose output
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


tags_metadata = [
    {
        "name": "geospatial",
        "description": "Land cover and urban analyses on Google Earth Engine and the Flask "
        "analysis service.",
    },
    {
        "name": "urban planning",
        "description": "Green space and transport infrastructure analyses.",
    },
    {
        "name": "worldpop",
        "description": "Population statistics from the WorldPop Global Project.",
    },
    {
        "name": "debug",
        "description": "Diagnostics for the region of interest sent by the client.",
    },
]


app = FastAPI(
    title="Chat2Geo API",
    description="Geospatial analyses for a user-drawn region of interest",
    version="0.1.0",
    openapi_tags=tags_metadata,
)

# CORS
if ALLOWED_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    # Fallback: allow all origins but disable credentials, browsers reject credentials with "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include API routers
app.include_router(map_services.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(debug.router, prefix="/api")
app.include_router(feedback.router, prefix="/api")
app.include_router(usage.router, prefix="/api")
app.include_router(geospatial.router, prefix="/api")
app.include_router(charts.router, prefix="/api")
app.include_router(worldpop.router, prefix="/api")
app.include_router(urban_planning.router, prefix="/api")
app.include_router(knowledge_base.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Chat2Geo API is running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "Chat2Geo API is running"}


# Exception handlers


@app.exception_handler(status.HTTP_400_BAD_REQUEST)
async def validation_exception_handler_400(request: Request, exc):
    exc_str = f"{exc}".replace("\n", " ").replace("   ", " ")
    logging.error(f"{request}: {exc_str}")
    content = {"status_code": 10400, "message": exc_str, "data": None}
    return JSONResponse(content=content, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_422(request: Request, exc: RequestValidationError):
    exc_str = f"{exc}".replace("\n", " ").replace("   ", " ")
    logging.error(f"{request}: {exc_str}")
    content = {"status_code": 10422, "message": exc_str, "data": None}
    return JSONResponse(content=content, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
