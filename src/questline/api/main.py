import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from questline.api.routers.progress import router as progress_router
from questline.api.routers.quests import router as quests_router
from questline.bot.core.logging import configure_logging
from questline.domain.usecase.errors import InfrastructureFault
from questline.infra import db

logger = logging.getLogger(__name__)

app = FastAPI(title="Questline API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(quests_router)
app.include_router(progress_router)


@app.exception_handler(InfrastructureFault)
async def infrastructure_fault_handler(request: Request, exc: InfrastructureFault) -> JSONResponse:
    logger.error("Request failed on infrastructure", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get("/readyz")
async def readyz():
    return {"ok": await db.ping()}


def main() -> None:
    import uvicorn

    configure_logging("api.log")
    uvicorn.run("questline.api.main:app", host="0.0.0.0", port=8000, log_level="info")


if __name__ == "__main__":
    main()
