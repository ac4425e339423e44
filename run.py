"""
Run the AdLens application
"""
import uvicorn
from adlens.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "adlens.main:app",
        host="0.0.0.0",
        port=8201,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
