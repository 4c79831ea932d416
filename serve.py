"""Run the Hitrate API with uvicorn."""
import os

import uvicorn

from hitrate.api.app import create_app

CORS_ORIGINS = [o.strip() for o in os.environ.get("HITRATE_CORS_ORIGINS", "").split(",") if o.strip()]

app = create_app(use_lifespan=True, cors_origins=CORS_ORIGINS or None)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("HITRATE_HOST", "0.0.0.0"),
        port=int(os.environ.get("HITRATE_PORT", "8000")),
    )
