#!/usr/bin/env python
"""
Persistent local runner for ReliefAnchor.
Keeps uvicorn running even if it crashes.
"""
import os
import subprocess
import sys
import time

os.chdir(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

PORT = os.getenv("RELIEFANCHOR_PORT", "8000")

while True:
    print(f"\n[INFO] Starting ReliefAnchor on port {PORT}...")
    try:
        subprocess.run(
            [
                sys.executable, "-m", "uvicorn",
                "reliefanchor.main:build_default_app", "--factory",
                "--port", PORT,
            ],
            check=False,
        )
    except KeyboardInterrupt:
        print("\n[INFO] Shutting down...")
        break
    except Exception as e:
        print(f"[ERROR] {e}")

    print("[INFO] Server stopped, will restart in 2 seconds...")
    time.sleep(2)
