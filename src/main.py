import logging

from fastapi import FastAPI

from config import LOG_FORMAT, get_settings
from matches.router import router as matches_router

logging.basicConfig(level=get_settings().log_level, format=LOG_FORMAT)

app = FastAPI(title="Club Match Generator")
app.include_router(matches_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
