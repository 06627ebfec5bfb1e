from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from urllib.parse import parse_qs

app = FastAPI(title="Mock Identity Provider", version="1.0.0")
REJECTED_CODES = {"invalid", "expired"}

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/realms/finance-app/protocol/openid-connect/token")
async def token(request: Request):
    form = {k: v[0] for k, v in parse_qs((await request.body()).decode()).items()}
    if form.get("grant_type") != "authorization_code":
        return JSONResponse(status_code=400, content={"error": "unsupported_grant_type"})
    if not form.get("client_id") or not form.get("client_secret"):
        return JSONResponse(status_code=401, content={"error": "invalid_client"})
    code = form.get("code", "")
    if not code or code in REJECTED_CODES:
        return JSONResponse(status_code=400, content={"error": "invalid_grant"})
    return {
        "access_token": f"tok-{code}",
        "token_type": "Bearer",
        "expires_in": 3600,
        "refresh_token": f"refresh-{code}",
        "scope": "openid transactions",
    }
