from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


IMPLEMENTATION_NAMES = ("reference", "first_party", "optimized")


class Settings(BaseSettings):
    """应用配置"""

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_JSON_FORMAT: bool = False

    # 指标实现选择 (ImplementationHint.AUTO 时按顺序尝试)
    IMPLEMENTATION_PREFERENCE: List[str] = ["optimized", "first_party", "reference"]

    # 单根 K 线平均处理耗时目标 (毫秒)，仅供基准测试使用
    LATENCY_BUDGET_MS: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("IMPLEMENTATION_PREFERENCE")
    @classmethod
    def _check_preference(cls, value: List[str]) -> List[str]:
        normalized = [name.lower() for name in value]
        unknown = [name for name in normalized if name not in IMPLEMENTATION_NAMES]
        if unknown:
            raise ValueError(f"未知的实现类型: {unknown}，可选: {list(IMPLEMENTATION_NAMES)}")
        if not normalized:
            raise ValueError("IMPLEMENTATION_PREFERENCE 不能为空")
        return normalized

    @field_validator("LATENCY_BUDGET_MS")
    @classmethod
    def _check_latency(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"LATENCY_BUDGET_MS 必须 > 0，当前值: {value}")
        return value


settings = Settings()
