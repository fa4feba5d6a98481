#!/usr/bin/env python3
"""
Development startup script.

Checks dependencies and configuration, then starts the storefront API
with auto-reload.
"""

import sys
import shutil
import subprocess
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import cryptography
        import pydantic_settings
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .[test]")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        print("  Please edit config/.env with your Razorpay keys")
        return True
    else:
        print("✗ No configuration file found")
        return False


def start_server(port: int = 8001):
    """Start the storefront in development mode."""
    print(f"\n🖼  Starting ArtVista storefront on http://localhost:{port} ...")
    print(f"   API docs: http://localhost:{port}/docs\n")
    try:
        subprocess.run(
            [
                sys.executable, "-m", "uvicorn",
                "storefront.main:app",
                "--reload",
                "--port", str(port),
            ],
            cwd=PROJECT_ROOT,
            check=False,
        )
    except KeyboardInterrupt:
        print("\nStorefront stopped")


def main():
    print("=" * 50)
    print("ArtVista Storefront - Development Server")
    print("=" * 50 + "\n")

    if not check_dependencies():
        sys.exit(1)
    if not check_env():
        sys.exit(1)

    start_server()


if __name__ == "__main__":
    main()
