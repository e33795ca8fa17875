#!/usr/bin/env python3
"""
Entry point for the ArenaSync hub.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, testing or production (default: development)
    PORT: Port to run on (default: 5000)
    REDIS_URL: Redis holding the state document (default: redis://localhost:6379)
"""
import os

from arena_hub.app import create_app


def run_hub():
    """Run the hub service."""
    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting {app.container.state.settings.app_name} hub on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_hub()
