from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Transaction Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/transaction_stub") if os.path.exists("/transaction_stub") else Path(__file__).resolve().parents[1] / "transaction_stub"

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/api/transactions")
def get_transactions(limit: int = Query(20, ge=1), authorization: str | None = Header(None)):
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="missing bearer token")
    token = authorization.removeprefix("Bearer ")
    # tok-<code> maps to transactions_<code>.json, falling back to the default page
    file = DATA_DIR / f"transactions_{token.removeprefix('tok-')}.json"
    if not file.exists():
        file = DATA_DIR / "transactions.json"
    data = json.loads(file.read_text())
    if isinstance(data.get("transactions"), list):
        data["transactions"] = data["transactions"][:limit]
    return JSONResponse(content=data)
