import asyncio

from dotenv import load_dotenv

from crypto_voice_lib import CryptoVoiceService, Settings
from crypto_voice_lib.llm_core import CryptoVoiceError, setup_logging

# Load environment variables
load_dotenv()


async def main() -> None:
    """
    Ask the crypto voice service questions from the terminal.

    Needs ANTHROPIC_API_KEY (or the key of the configured provider) and
    COINGECKO_PRO_API_KEY, plus Node.js for the ``npx mcp-remote`` bridge.
    """
    settings = Settings()
    setup_logging("WARNING")

    try:
        service = await CryptoVoiceService.create(settings)
    except CryptoVoiceError as e:
        print(f"Could not start: {e}")
        return

    print(f"Using {settings.model_provider}. Ask about prices, trends or charts.")
    print("Type 'exit' or 'quit' to stop.")

    async with service:
        while True:
            user_input = input("\nYou: ").strip()
            if user_input.lower() in ["exit", "quit"]:
                print("Goodbye!")
                break

            if not user_input:
                continue

            response = await service.respond(user_input)
            if response.success:
                print(f"Assistant: {response.speech}")
            else:
                print(f"An error occurred: {response.error}")


if __name__ == "__main__":
    asyncio.run(main())
