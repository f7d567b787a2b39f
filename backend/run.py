#!/usr/bin/env python3
"""
Mapsy Backend - Run Script
This script starts the FastAPI backend server
"""

import os
import sys
import subprocess
import socket
from pathlib import Path
from urllib.parse import urlparse

def print_colored(message, color="blue"):
    """Print colored output"""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "reset": "\033[0m"
    }
    print(f"{colors.get(color, '')}{message}{colors['reset']}")

def check_file_exists(filepath, error_message):
    """Check if a file exists"""
    if not Path(filepath).exists():
        print_colored(f"❌ Error: {error_message}", "red")
        sys.exit(1)

def check_port_open(host, port):
    """Check if a port is open"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(2)
    result = sock.connect_ex((host, port))
    sock.close()
    return result == 0

def check_service(name, url, default_port):
    parsed = urlparse(url)
    host = parsed.hostname or "localhost"
    port = parsed.port or default_port
    print_colored(f"🔍 Checking {name} connection...", "blue")
    if not check_port_open(host, port):
        print_colored(f"⚠️  Warning: {name} doesn't appear to be running on {host}:{port}", "yellow")
        response = input("Continue anyway? (y/N): ").strip().lower()
        if response != 'y':
            sys.exit(1)

def main():
    print_colored("🚀 Starting Mapsy Backend...", "blue")

    # Check if we're in the backend directory
    check_file_exists("mapsy/main.py", "mapsy/main.py not found. Please run this script from the backend directory.")

    # Check if .env exists in parent directory
    env_path = Path("../.env")
    if not env_path.exists():
        print_colored("⚠️  Warning: .env file not found in project root.", "yellow")
        print("Please create a .env file with the following variables:")
        print("  REDIS_URL=redis://localhost:6379")
        print("  MONGO_URI=mongodb://localhost:27017")
        print("  GEOAPIFY_PLACES_KEY=your_api_key_here")
        print("  MAPBOX_ACCESS_TOKEN=your_token_here")
        print("  ALLOWED_DOMAIN=https://mapsy-theta.vercel.app")
        print("  LOGGER=20")
        sys.exit(1)

    # Check if dependencies are installed
    print_colored("🔍 Checking dependencies...", "blue")
    try:
        import fastapi
        import uvicorn
    except ImportError:
        print_colored("❌ Dependencies not installed.", "red")
        print("Installing dependencies...")
        subprocess.run([sys.executable, "-m", "pip", "install", "-e", ".."], check=True)

    from mapsy.core.config import settings

    check_service("Redis", settings.REDIS_URL, 6379)
    if settings.STORAGE_MODE == "mongodb" and not settings.MONGO_URI.startswith("mongodb+srv://"):
        check_service("MongoDB", settings.MONGO_URI, 27017)

    # Start the server
    print_colored("✅ All checks passed!", "green")
    print_colored("🌐 Starting Uvicorn server...", "blue")
    print(f"📍 Backend will be available at: http://localhost:{settings.PORT}")
    print(f"📍 Nearby places: http://localhost:{settings.PORT}/nearby-places?lat=..&lon=..")
    print(f"📍 API Documentation: http://localhost:{settings.PORT}/docs")
    print()
    print("Press Ctrl+C to stop the server")
    print()

    # Run uvicorn with auto-reload for development
    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "mapsy.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", str(settings.PORT)
        ], check=True)
    except KeyboardInterrupt:
        print_colored("\n👋 Backend server stopped.", "yellow")
    except subprocess.CalledProcessError as e:
        print_colored(f"\n❌ Error starting server: {e}", "red")
        sys.exit(1)

if __name__ == "__main__":
    main()
