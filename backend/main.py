import sys
import os

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import logging
import traceback

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

# Routers
from apis.quality_api import router as quality_router

logger = logging.getLogger(__name__)


# -------------------------------------------------------
# FASTAPI INITIALIZATION
# -------------------------------------------------------
app = FastAPI(title="Release Intelligence")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "healthy", "service": "release-intelligence"}


# -------------------------------------------------------
# GLOBAL EXCEPTION HANDLER
# -------------------------------------------------------
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc)
    traceback.print_exc()

    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Credentials": "true",
        },
    )


# -------------------------------------------------------
# ROUTERS
# -------------------------------------------------------
app.include_router(quality_router, prefix="/quality")


# -------------------------------------------------------
# MAIN SERVER
# -------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("watchfiles").setLevel(logging.ERROR)

    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8001, reload=False, log_level="info")
