#!/usr/bin/env python3
"""
Main entry point for the habit engine demo
"""

import asyncio
import logging
import sys

from habit_engine.demo import main


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Demo stopped")
    except Exception as e:
        logging.error(f"Demo crashed with error: {e}")
        sys.exit(1)
