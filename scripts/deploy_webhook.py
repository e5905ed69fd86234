#!/usr/bin/env python3
"""Deploy webhook listener.

Receives signed webhook calls (GitHub ``x-hub-signature-256``) on
POST /webhook/<app> and runs the steps configured for <app> in config.yml,
posting progress to Slack and/or Telegram.

Run with: python scripts/deploy_webhook.py
Config:   python scripts/deploy_webhook.py --config /etc/deployhook/config.yml
Port:     python scripts/deploy_webhook.py --port 9100

Requires WEBHOOK_SECRET in the environment (or .env).

Exit codes:
  0 = server stopped cleanly
  1 = startup error (missing secret, unreadable or invalid config)
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.deployhook.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
