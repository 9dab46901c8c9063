"""
Download the background removal model weights ahead of the first request.
rembg caches them under U2NET_HOME (default: ~/.u2net).
"""
import os
import sys

from rembg import new_session

from app.modules.remover.config import settings as remover_settings

CACHE_DIR = os.getenv("U2NET_HOME", os.path.expanduser(os.path.join("~", ".u2net")))


def download_models(model_names) -> int:
    """Download every requested model with proper error handling."""
    print("=" * 70)
    print("Model Download Script - Background Remover Service")
    print("=" * 70)
    print(f"--> All models will be saved to: {CACHE_DIR}")
    os.makedirs(CACHE_DIR, exist_ok=True)

    for index, model_name in enumerate(model_names, start=1):
        try:
            print(f"\n[{index}/{len(model_names)}] Fetching '{model_name}'...")
            # Creating a session downloads the weights if they are not cached yet
            new_session(model_name)
            print(f"      ✓ '{model_name}' is available in {CACHE_DIR}")
        except Exception as e:
            print(f"      ERROR: Failed to download '{model_name}': {e}")
            return 1

    print("\n" + "=" * 70)
    print("All required models downloaded successfully!")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(download_models(sys.argv[1:] or [remover_settings.MODEL_NAME]))
