import logging
import os
import pathlib

from dotenv import load_dotenv

from lixi_server.models.dc_models import GameSettings

load_dotenv()

_data_dir = pathlib.Path(__file__).parents[1] / "data"

DEFAULT_ALLOWED_ORIGINS = (
    "https://clawdaily.blog,http://localhost:3000,https://lixi-api.onrender.com"
)

database_url = os.getenv(
    "DATABASE_URL", f"sqlite+aiosqlite:///{_data_dir / 'game_state.sqlite3'}"
)
share_url_base = os.getenv("SHARE_URL_BASE", "https://clawdaily.blog/lixi")
allowed_origins = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS).split(",")
    if origin.strip()
]
total_money = int(os.getenv("TOTAL_MONEY", "500000"))
total_envelopes = int(os.getenv("TOTAL_ENVELOPES", "10"))
max_players = int(os.getenv("MAX_PLAYERS", "10"))
log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
host = os.getenv("HOST", "0.0.0.0")
port = int(os.getenv("PORT", "3001"))


def game_settings() -> GameSettings:
    """Game numbers read from the environment."""
    return GameSettings(
        total_money=total_money,
        total_envelopes=total_envelopes,
        max_players=max_players,
        share_url_base=share_url_base,
    )


if __name__ == "__main__":
    print(database_url, share_url_base, allowed_origins, game_settings())
