from __future__ import annotations

from fastapi import FastAPI

try:
    from .routes import people, tree, views
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from routes import people, tree, views

app = FastAPI(title="Family Tree API", version="0.1.0")

app.include_router(tree.router)
app.include_router(views.router)
app.include_router(people.router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"ok": "true"}
