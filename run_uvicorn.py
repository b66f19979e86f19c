# run_uvicorn.py
# Local launcher (no uvicorn reload subprocess), handy for debugging in an IDE.
import os

# Safe defaults so a bare checkout runs against a local SQLite file.
os.environ.setdefault("DATABASE_URL", "sqlite:///./dev_local.db")
os.environ.setdefault("PORT", "8000")

from gateway.main import app  # noqa: E402

if __name__ == "__main__":
    import uvicorn

    # reload=False keeps settlement tasks on this process's event loop
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.environ["PORT"]), reload=False)
