from fastapi import FastAPI
import os
import logging
from datetime import datetime
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings
from rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from sheet_fetcher import build_fetcher


# Create logs directory if it doesn't exist
log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
os.makedirs(log_dir, exist_ok=True)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file
log_file_path = os.path.join(log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
logging.getLogger().addHandler(file_handler)

# Missing SHEET_ID or API_KEY raises StartupConfigError here, before the app exists
settings = get_settings()
fetcher = build_fetcher(settings)
rate_limiter = FixedWindowRateLimiter()


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Google Sheet Data API",
    description="Serves a Google Sheet tab as nested JSON, including cell background colours",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Added last so CORS wraps the rate limiter and 429 responses carry CORS headers
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter, path_prefix="/api/")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# API Endpoints
@app.get("/", response_class=PlainTextResponse, tags=["Health"])
def root():
    """Liveness banner."""
    return "Google Sheet API is running. Use the /api/sheet-data endpoint to get data."


@app.get("/api/sheet-data", tags=["Sheet Data"])
def get_sheet_data():
    """
    Get the configured sheet as nested JSON.

    Served from an in-memory cache for 30 seconds after each successful fetch.

    Returns:
        dict: ``{sheet_name: {entity_name: record}}`` on success, or a 500
        response with ``error`` and ``details`` when the upstream call fails
    """
    result = fetcher.fetch_result()

    # Single exit point
    if result.is_failure():
        return JSONResponse(status_code=result.status_code.value, content=result.to_dict())
    return result.to_dict()


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Google Sheet API on port {settings.port}.")
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
