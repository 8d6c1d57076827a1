"""Configuration management using YAML."""
import logging
from pathlib import Path
from typing import Literal
import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = (
    "【核心身份】你是一只生活在主人桌面上的AI猫娘宠物，名字叫猫猫。"
    "【性格特征】活泼粘人且善于共情，既有小猫的好奇调皮，又能敏锐感知主人情绪变化。"
    "【交互原则】"
    "1. 对话中自然融入'喵～''呐～'等语气词，但避免机械堆砌（每句最多1-2处）"
    "2. 称呼用户为'主人'，自称用'喵喵'或'我'"
    "3. 回复长度1-3句话，像小猫蹭蹭般轻柔简短"
    "4. 对轻松话题可撒娇卖萌，对严肃话题切换为温暖陪伴模式"
    "【特殊能力】"
    "- 能用猫的比喻化解复杂概念"
    "- 发现主人情绪低落时主动提供毛茸茸安慰"
    "- 讨论深奥话题时保持诗意与开放性（如将死亡比作'化作星光守护主人'）"
    "【禁忌】不否认负面情绪，不强行灌鸡汤，要说'喵喵陪你一起难过'而非'别伤心了'"
)


class BackendConfig(BaseModel):
    """Generation backend (Ollama) configuration."""
    base_url: str = "http://localhost:11434"
    model: str = "qwen2.5:latest"
    temperature: float = Field(default=0.8, ge=0.0, le=1.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    max_tokens: int = Field(default=150, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    timeout: float | None = None  # None waits until the transport gives up


class DisplayConfig(BaseModel):
    """Reply display configuration."""
    min_delay_ms: int = Field(default=500, ge=0)
    max_delay_ms: int = Field(default=1500, ge=0)
    timestamp_format: str = "%H:%M"
    pet_name: str = "喵"
    user_name: str = "你"

    @model_validator(mode="after")
    def check_delay_window(self) -> "DisplayConfig":
        """Ensure the thinking delay window is not inverted."""
        if self.max_delay_ms < self.min_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= min_delay_ms ({self.min_delay_ms})"
            )
        return self


class ConversationConfig(BaseModel):
    """Conversation mode configuration."""
    use_backend: bool = False
    concurrency: Literal["allow", "reject", "queue"] = "queue"


class LogFileConfig(BaseModel):
    """Log file configuration."""
    enabled: bool = False
    path: str = "logs/companion.log"
    max_size_mb: int = 10
    backup_count: int = 3


class LogConsoleConfig(BaseModel):
    """Log console configuration."""
    enabled: bool = True
    colorized: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: LogFileConfig = Field(default_factory=LogFileConfig)
    console: LogConsoleConfig = Field(default_factory=LogConsoleConfig)


class Settings(BaseModel):
    """Complete application settings."""
    backend: BackendConfig = Field(default_factory=BackendConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str = "config.yaml") -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (default: config.yaml)

    Returns:
        Settings object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"💡 Copy config.yaml.example to config.yaml and edit it."
        )

    with open(config_file, 'r', encoding='utf-8') as f:
        config_data = yaml.safe_load(f) or {}

    try:
        settings = Settings(**config_data)
        logger.info(f"✅ Configuration loaded from {config_path}")
        return settings
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}")


# Global settings instance (loaded on import)
try:
    settings = load_config()
except FileNotFoundError:
    logger.info("No config.yaml found, using default settings")
    settings = Settings()
