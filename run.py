# =============================================================================
# run.py — Start the gateway API (uvicorn) and wait until /health answers
# =============================================================================
# Usage: python run.py
# Backend: http://127.0.0.1:8000 (override with GATEWAY_HOST / GATEWAY_PORT)
# =============================================================================

import os
import subprocess
import sys
import time
import urllib.request

BACKEND_HOST = os.environ.get("GATEWAY_HOST", "127.0.0.1")
BACKEND_PORT = int(os.environ.get("GATEWAY_PORT", "8000"))

# Project root (where run.py lives)
ROOT = os.path.dirname(os.path.abspath(__file__))


def wait_for_backend(url: str, proc: subprocess.Popen, timeout: float = 30.0) -> bool:
    print(f"Waiting for gateway at {url}...", end="", flush=True)
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        if proc.poll() is not None:
            print(" exited.")
            return False
        try:
            with urllib.request.urlopen(f"{url}/health", timeout=2) as response:
                if response.status == 200:
                    print(" Ready!")
                    return True
        except OSError:
            print(".", end="", flush=True)
            time.sleep(1)
    print(" Timeout.")
    return False


def main() -> int:
    url = f"http://{BACKEND_HOST}:{BACKEND_PORT}"
    cmd = [
        sys.executable,
        "-m", "uvicorn",
        "genai_gateway.main:app",
        "--host", BACKEND_HOST,
        "--port", str(BACKEND_PORT),
    ]
    print(f"Starting gateway on {url}...")
    proc = subprocess.Popen(cmd, cwd=ROOT, env=os.environ.copy())
    try:
        if not wait_for_backend(url, proc):
            print("Gateway failed to start.")
            return 1
        print(f"Docs: {url}/docs | Stats: {url}/llm/stats")
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        if proc.poll() is None:
            proc.terminate()
            proc.wait(timeout=5)
    return proc.returncode or 0


if __name__ == "__main__":
    sys.exit(main())
