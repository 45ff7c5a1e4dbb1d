"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
Relay 与聊天前端共用同一份 settings，各自只读取自己关心的字段。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Relay / 上游 Langflow ----
    base_api_url: str = Field(
        default="https://api.langflow.astra.datastax.com",
        description="Langflow 服务基础URL",
    )
    langflow_id: Optional[str] = Field(default=None, description="Langflow 工作流分组 ID")
    application_token: Optional[str] = Field(default=None, description="上游 Bearer 令牌，只在服务端使用")
    host: str = Field(default="0.0.0.0", description="Relay 监听地址")
    port: int = Field(default=3001, ge=1, le=65535, description="Relay 监听端口")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="允许跨域的来源")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    default_endpoint: str = Field(
        default="eba9f4be-3d7b-45ec-b580-a5d225a92b67",
        description="默认调用的 flow endpoint",
    )

    # ---- 聊天前端 ----
    relay_base_url: str = Field(default="http://localhost:3001/api", description="前端访问 Relay 的基础URL")
    ui_port: int = Field(default=3000, ge=1, le=65535, description="聊天页面端口")
    max_sessions: int = Field(default=1000, ge=1, description="聊天页面内存中保留的最大会话数")
    kroki_url: str = Field(default="https://kroki.io", description="图表渲染服务地址")
    diagram_timeout: float = Field(default=15.0, ge=1.0, description="图表渲染超时时间（秒）")

    # ---- 基础设施 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("application_token")
    @classmethod
    def validate_token(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("Application token seems too short")
        return v

    @field_validator("base_api_url", "relay_base_url", "kroki_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
