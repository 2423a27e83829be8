#!/usr/bin/env python3
"""
adinsight API Startup Script

Starts the adinsight chat API with uvicorn (auto-reload for development).
"""

import sys
from pathlib import Path

import uvicorn


def main():
    """Start the adinsight API server."""
    print("🚀 Starting adinsight API Server...")
    print("📖 Documentation will be available at:")
    print("   🌐 Swagger UI:  http://localhost:8000/docs")
    print("   📚 ReDoc:       http://localhost:8000/redoc")
    print("")

    if not Path(".env").exists():
        print("⚠️  No .env file found - answers will be rule-based unless a gateway key is exported:")
        print("   AI_GATEWAY_API_KEY=...   or   OPENAI_API_KEY=...")
        print("")

    try:
        uvicorn.run(
            "adinsight.main:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            reload_dirs=["adinsight"],
            log_level="info",
        )
    except KeyboardInterrupt:
        print("\n👋 Shutting down adinsight API server...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
