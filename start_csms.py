#!/usr/bin/env python3
"""
Startup script for the OCPP 2.0.1 CSMS with its command interface.
"""
import asyncio
import sys

from ocpplink import config
from ocpplink.main import main


def print_instructions():
    """Print startup instructions."""
    print("🎯 OCPP 2.0.1 CSMS with Command Interface")
    print("=" * 50)
    print()
    print("📋 What this does:")
    print(f"✅ Starts OCPP WebSocket server on ws://{config.HOST}:{config.PORT}{config.LISTEN_PATH}")
    print("✅ Provides a CSMS command interface")
    print()
    print("🔧 Setup Instructions:")
    print("1. Keep this terminal running (server + CLI)")
    print("2. In another terminal, run: python mock_client.py")
    print("3. Come back here and use CSMS commands")
    print()
    print("💡 Example Commands (after the mock station connects):")
    print("   list                    - See connected charging stations")
    print("   start CS001 VALID001    - Start a transaction")
    print("   trigger CS001 Heartbeat - Ask the station for a heartbeat")
    print("   help                    - Show all commands")
    print()
    print("🚀 Starting server...")
    print()


if __name__ == "__main__":
    print_instructions()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user.")
    except Exception as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)
