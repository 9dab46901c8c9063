# app/core/process_lock.py
from filelock import FileLock
from pathlib import Path

# Create a directory for lock files to keep things clean.
lock_dir = Path("/tmp/app_locks")
lock_dir.mkdir(exist_ok=True)

# A dedicated lock for the rembg model.
# Only one process can run background removal inference at a time.
# Callers pass REMOVER_LOCK_TIMEOUT_SECONDS, capped by the request timeout, when acquiring.
inference_lock = FileLock(lock_dir / "rembg_model.lock")
