"""
Gateway: builds the Flask app around the upload blueprint.
This is the local entrypoint; pick a provider with --openai or --anthropic.
"""

import argparse
import logging
import sys
from typing import List, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from alttext.ai_service.errors import ConfigError
from alttext.ai_service.providers import AltTextProvider, build_provider
from alttext.gateway.config import DEFAULT_PORT, Settings, load_settings

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def create_app(settings: Settings, provider: Optional[AltTextProvider] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        settings (Settings): Frozen process configuration.
        provider (AltTextProvider, optional): Adapter to use. Built from settings if omitted.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    CORS(app, resources={
        r"/*": {
            "origins": list(settings.cors_origins),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "HX-Request", "HX-Current-URL", "HX-Target", "HX-Trigger"],
        }
    })

    # Leave headroom for the multipart envelope around the file itself
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes + 64 * 1024
    app.config["ALT_TEXT_SETTINGS"] = settings
    app.config["ALT_TEXT_PROVIDER"] = provider or build_provider(settings)

    # --- REGISTER BLUEPRINTS ---
    from alttext.upload_service.routes import upload_bp

    app.register_blueprint(upload_bp)
    logging.info(f"Upload blueprint registered with provider {app.config['ALT_TEXT_PROVIDER'].name}.")

    # --- BASIC HEALTH CHECKPOINT ---
    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok", "provider": settings.provider}), 200

    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve an upload form that generates image alt text.")
    parser.add_argument("--openai", "-openai", action="store_true", help="Use the OpenAI API")
    parser.add_argument("--anthropic", "-anthropic", action="store_true", help="Use the Anthropic API")
    parser.add_argument("--env-file", default=".env", help="Path to the KEY=value env file (default: .env)")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=None, help=f"Port to listen on (default: PORT from the env file, or {DEFAULT_PORT})")
    return parser.parse_args(argv)


def select_provider(args: argparse.Namespace) -> str:
    """
    Map the provider flags to a provider name.

    Raises:
        ConfigError: If neither or both flags are set.
    """
    if args.openai and args.anthropic:
        raise ConfigError("Specify only one of --openai or --anthropic.")
    if args.openai:
        return "openai"
    if args.anthropic:
        return "anthropic"
    raise ConfigError("You must specify either --openai or --anthropic.")


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    try:
        provider_name = select_provider(args)
        logging.info(f"Loading environment variables from {args.env_file}")
        settings = load_settings(args.env_file, provider_name)
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)
    logging.info(f"Successfully loaded {args.env_file}")

    app = create_app(settings)
    port = args.port or settings.port
    logging.info(f"Starting server on {args.host}:{port}...")
    app.run(host=args.host, port=port, threaded=True)


if __name__ == "__main__":
    main()
