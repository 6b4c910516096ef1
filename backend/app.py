from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backend import config
from backend.routers import curtains, models

app = FastAPI(
    title="CurtainBuilder API",
    description="Backend API for terrain-draping boundary curtains",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow the viewer dev server
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(curtains.router)
app.include_router(models.router)

# ---------------------------------------------------------------------------
# Static files -- serve exported GLB scenes
# ---------------------------------------------------------------------------
config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/output", StaticFiles(directory=str(config.OUTPUT_DIR)), name="output")


@app.get("/")
async def root():
    return {"status": "ok", "service": "CurtainBuilder API"}
