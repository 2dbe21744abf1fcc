from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./chat.db"
    debug: bool = False
    log_dir: Optional[str] = None

    # 세션: 7일 슬라이딩 만료, 1시간마다 정리
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    session_sweep_interval_seconds: int = 60 * 60

    # 채팅방 입장 시 내려주는 메시지 최대 개수
    room_backlog_limit: int = 100

    cors_origins: List[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3000

    class Config:
        env_file = ".env"


settings = Settings()
