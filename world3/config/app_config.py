#!filepath: world3/config/app_config.py
import os

import yaml
from pydantic import BaseModel
from dotenv import load_dotenv

from .log_config import LogConfig
from .server_config import ServerConfig
from .simulation_config import SimulationConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    world3/config/app_config.py → world3/config → world3 → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


# env var → (section, key)
_ENV_OVERRIDES = {
    "WORLD3_HOST": ("server", "host"),
    "WORLD3_STREAM_PORT": ("server", "stream_port"),
    "WORLD3_API_PORT": ("server", "api_port"),
    "WORLD3_LOG_LEVEL": ("log", "level"),
}


class AppConfig(BaseModel):
    log: LogConfig
    simulation: SimulationConfig
    server: ServerConfig

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 world3/config/base.yml（随包安装）
        - 不依赖当前工作目录
        - 环境变量覆盖 server / log 的少量字段
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = os.path.join(os.path.dirname(__file__), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) 环境变量覆盖
        for env_key, (section, key) in _ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value is not None:
                raw.setdefault(section, {})[key] = value

        return cls(**raw)
