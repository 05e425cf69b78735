from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

from . import config
from .errors import LedgerError, TransferFailed
from .routers import assets, auth, events, licenses, provenance, revenue

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PatentChain Ledger",
    description="Rights-and-royalty ledger for patent assets: ownership, document provenance, licensing and revenue distribution.",
    version="0.1.0"
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(assets.router)
app.include_router(provenance.router)
app.include_router(licenses.router)
app.include_router(revenue.router)
app.include_router(events.router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Maps ledger failures onto HTTP status codes."""
    if isinstance(exc, TransferFailed):
        logger.error(f"{request.method} {request.url.path}: committed but payout failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/", tags=["Health Check"])
def read_root():
    """Root endpoint for health check."""
    return {"status": "ok", "message": "PatentChain ledger is running."}


# --- Server Startup (for local development) ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("patentchain.main:app", host="0.0.0.0", port=8000, reload=True)
