from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from mapsy.core.config import settings
from mapsy.core.db_connection import db_connection
from mapsy.routes.nearby_route import RejectedRequest, error_response, router as nearby_router
from mapsy.services.Cache_service import drain_background_writes

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Store clients belong to the process: opened once, closed on shutdown
    await db_connection.connect()
    yield
    await drain_background_writes()
    await db_connection.close()

app = FastAPI(title="Mapsy Nearby Places", lifespan=lifespan)

# only allow requests from frontend part
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_DOMAIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(nearby_router)

@app.exception_handler(RejectedRequest)
async def rejected_request_handler(request: Request, exc: RejectedRequest):
    return error_response(exc.error)

# --- Health Check ---
@app.get("/")
async def root():
    return {"status": "alive", "service": "Mapsy Nearby Places"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mapsy.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
