import logging

from fastapi import FastAPI

from merchandising.api.endpoints import assistant, optimizations, recommendations

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Merchandising Intelligence")

app.include_router(recommendations.router, prefix="/api/recommendations", tags=["Recommendations"])
app.include_router(assistant.router, prefix="/api/assistant", tags=["Assistant"])
app.include_router(optimizations.router, prefix="/api/optimizations", tags=["Optimizations"])


@app.get("/health")
def health():
    return {"status": "ok"}
