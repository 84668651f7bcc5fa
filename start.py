"""Server startup for deployments: runs the API with uvicorn."""
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

from api.server import app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8000"))
    print(f"[start.py] Starting on port {port}", flush=True)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
