# world3/config/server_config.py
from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    stream_port: int = Field(8765, ge=0, le=65535)
    api_port: int = Field(8080, ge=0, le=65535)
