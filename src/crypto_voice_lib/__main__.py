"""Answer one question from the command line: ``python -m crypto_voice_lib "price of bitcoin?"``."""

import argparse
import asyncio
import sys
from typing import List, Optional

from .config import Settings
from .llm_core import CryptoVoiceError, setup_logging
from .service import CryptoVoiceService


async def _run(query: str, settings: Settings) -> int:
    async with await CryptoVoiceService.create(settings) as service:
        response = await service.respond(query)

    if response.success:
        print(response.speech)
        return 0
    print(f"Error: {response.error}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="crypto-voice", description="Ask a cryptocurrency question.")
    parser.add_argument("query", nargs="+", help="The question, as you would say it.")
    parser.add_argument("--provider", choices=["anthropic", "openai", "gemini"], help="Model vendor to use.")
    parser.add_argument("--model", help="Model name override.")
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG.")
    args = parser.parse_args(argv)

    overrides = {}
    if args.provider:
        overrides["model_provider"] = args.provider
    if args.model:
        overrides["model_name"] = args.model
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()

    settings = Settings(**overrides)
    setup_logging(settings.log_level)

    try:
        return asyncio.run(_run(" ".join(args.query), settings))
    except CryptoVoiceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
