"""
Example: convert text to speech and write the audio to disk.

Environment variables:
- FISH_API_KEY
- FISH_BASE_URL (optional)
- FISH_DEVELOPER_ID (optional)
"""
from pathlib import Path

from fish_audio_client import ClientConfig, Session, TTSRequest


def main() -> None:
    config = ClientConfig.from_env()
    if not config.api_key:
        raise SystemExit("Set FISH_API_KEY.")

    output = Path("output.mp3")
    with Session.from_config(config) as session, output.open("wb") as f:
        for chunk in session.tts(TTSRequest(text="Hello, world!", format="mp3")):
            f.write(chunk)
    print(f"Wrote synthesized audio to {output}")


if __name__ == "__main__":
    main()
