"""Simple entrypoint to send one chat message to Gear Concierge locally."""

import asyncio
import sys

from gear_app.app import GearConciergeApp


def main() -> None:
    message = " ".join(sys.argv[1:]) or "show my gear"
    app = GearConciergeApp()
    try:
        result = asyncio.run(app.orchestrator.handle_message(message))
        print(result.response)
    finally:
        app.close()


if __name__ == "__main__":
    main()
