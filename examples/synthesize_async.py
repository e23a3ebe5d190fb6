"""
Example: live synthesis, sending text fragments while audio streams back.

Environment variables:
- FISH_API_KEY
- FISH_DEVELOPER_ID (optional)
"""
import asyncio
from pathlib import Path

from fish_audio_client import AsyncWebSocketSession, ClientConfig, TTSRequest


async def fragments():
    for text in ["Hello ", "from the ", "live synthesis ", "socket!"]:
        await asyncio.sleep(0.1)
        yield text


async def main() -> None:
    config = ClientConfig.from_env()
    if not config.api_key:
        raise SystemExit("Set FISH_API_KEY.")

    session = AsyncWebSocketSession(config.api_key, developer_id=config.developer_id)
    output = Path("output_live.mp3")
    with output.open("wb") as f:
        async for chunk in session.tts(TTSRequest(format="mp3", latency="balanced"), fragments()):
            f.write(chunk)
    print(f"Wrote synthesized audio to {output}")


if __name__ == "__main__":
    asyncio.run(main())
