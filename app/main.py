from __future__ import annotations

import os

import uvicorn


def run() -> None:
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("labsite_admin.web.app:create_app", factory=True, host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    run()
