#!/usr/bin/env python3
"""
Obtain a Google OAuth refresh token for the google calendar backend.

Grants the same scopes the backend maps onto calendar read and write
permission, then prints the line to add to your .env file.

Usage:
    python scripts/get_token.py
    python scripts/get_token.py --client-id=XXX --client-secret=YYY

Without arguments, GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are read
from the environment or .env.
"""
import argparse
import sys

from google_auth_oauthlib.flow import InstalledAppFlow

from native_calendar.backends.google import SCOPES, TOKEN_URI
from native_calendar.core.config import settings


def main():
    parser = argparse.ArgumentParser(description="Get Google OAuth refresh token")
    parser.add_argument("--client-id", help="Google OAuth Client ID")
    parser.add_argument("--client-secret", help="Google OAuth Client Secret")
    parser.add_argument("--port", type=int, default=0, help="Local redirect port (0 = any free port)")
    args = parser.parse_args()

    client_id = args.client_id or settings.google_client_id
    client_secret = args.client_secret or settings.google_client_secret

    if not client_id or not client_secret:
        print("Error: GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required.")
        print("Set them in .env or pass --client-id and --client-secret.")
        sys.exit(1)

    client_config = {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": TOKEN_URI,
            "redirect_uris": ["http://localhost"],
        }
    }

    flow = InstalledAppFlow.from_client_config(client_config, SCOPES)

    print("Opening the Google consent page in your browser...")
    credentials = flow.run_local_server(
        port=args.port,
        access_type="offline",
        prompt="consent",
    )

    granted = set(credentials.scopes or [])
    missing = [scope for scope in SCOPES if scope not in granted]
    if missing:
        print(f"Warning: not granted: {', '.join(missing)}")
        print("Marker search and event writes need both scopes.")

    print()
    print("Add the following to your .env file:")
    print()
    print(f"GOOGLE_REFRESH_TOKEN={credentials.refresh_token}")


if __name__ == "__main__":
    main()
