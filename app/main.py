from fastapi import FastAPI
from app.api import events
from app.api import places
from app.core.config import settings
from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title="Event Route Planner API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(places.router)
app.include_router(events.router)

@app.get("/")
def read_root():
    return {
        "message": "Event Route Planner API is running.",
        "status": "healthy",
        "version": "0.1.0"
    }
