"""
Health check endpoint
"""
from fastapi import APIRouter
from datetime import datetime, timezone
from perfdash import __version__

router = APIRouter()


@router.post("/health")
def health_check():
    """Health check endpoint"""
    return {
        "return_code": "SUCCESS",
        "message": "Server is running",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
