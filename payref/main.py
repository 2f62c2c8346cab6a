import logging

from fastapi import FastAPI

from payref.core.config import settings
from payref.routes import health, instructions

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="payref")

app.include_router(health.router, prefix=settings.API_V1_STR)
app.include_router(instructions.router, prefix=settings.API_V1_STR)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
