from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

# Monobank accepts up to 31 days + 1 hour per statement request
MAX_STATEMENT_SECONDS = 31 * 86400 + 3600

# Support both local development and Docker
DEFAULT_DATA_DIR = Path("/monobank_stub") if os.path.exists("/monobank_stub") else Path(__file__).resolve().parents[1] / "monobank_stub"


def create_app(data_dir: Path = DEFAULT_DATA_DIR) -> FastAPI:
    app = FastAPI(title="Mock Monobank Server", version="1.0.0")

    @app.get("/health")
    def health(): return {"status": "ok"}

    @app.get("/personal/client-info")
    def client_info(x_token: str | None = Header(default=None)):
        if not x_token:
            raise HTTPException(status_code=403, detail="Unknown 'X-Token'")
        return JSONResponse(content=json.loads((data_dir / "client-info.json").read_text()))

    @app.get("/personal/statement/{account}/{from_ts}/{to_ts}")
    def statement(account: str, from_ts: int, to_ts: int, x_token: str | None = Header(default=None)):
        if not x_token:
            raise HTTPException(status_code=403, detail="Unknown 'X-Token'")
        if to_ts - from_ts > MAX_STATEMENT_SECONDS:
            raise HTTPException(status_code=400, detail="Period must be no more than 31 days")
        file = data_dir / f"statement_{account}.json"
        if not file.exists():
            raise HTTPException(status_code=400, detail="invalid account")
        items = [t for t in json.loads(file.read_text()) if from_ts <= t["time"] <= to_ts]
        items.sort(key=lambda t: t["time"], reverse=True)
        return JSONResponse(content=items)

    return app


app = create_app()
