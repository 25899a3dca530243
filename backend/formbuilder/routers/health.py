from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health")
def health():
	return {
		"status": "OK",
		"timestamp": datetime.now(timezone.utc).isoformat(),
		"version": API_VERSION,
	}
