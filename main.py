#!/usr/bin/env python3
"""
Main entry point for the Gemini Proxy when running locally.
This file allows running the proxy directly from the project root.
"""

import sys
from pathlib import Path

# Add the src directory to Python path
src_dir = Path(__file__).parent / "src"
sys.path.insert(0, str(src_dir))


def main():
    """Run the Gemini Proxy server with local debug settings."""
    import uvicorn
    from gemini_proxy.core.config import get_settings
    from gemini_proxy.core.logging import setup_logging
    from gemini_proxy.main import create_app

    settings = get_settings()
    setup_logging(settings)

    print("Starting Gemini Proxy locally...")
    print(f"Access at: http://localhost:{settings.PORT}")
    print(f"Health check: http://localhost:{settings.PORT}/health")
    print(f"Upstream: {settings.get_forwarder_config().upstream_url}")

    uvicorn.run(
        create_app(settings, configure_logging=True),
        host="127.0.0.1",
        port=settings.PORT,
        log_level="debug",
        reload=False  # Disable reload for debugging
    )


if __name__ == "__main__":
    main()
