"""统一的健康检查类型定义。"""

from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """健康检查状态枚举。"""

    OK = "ok"
    ERROR = "error"
    DEGRADED = "degraded"


class ScheduleCacheHealthResult(BaseModel):
    """Schedule 缓存健康检查结果。"""

    status: HealthStatus = Field(..., description="健康状态")
    state: str = Field(..., description="缓存状态: empty/fresh/stale")
    building: bool = Field(..., description="是否有构建进行中")
    item_count: int = Field(0, description="缓存条目数")
    age_sec: float | None = Field(None, description="缓存年龄（秒）")

    def to_dict(self) -> dict[str, str | bool | int | float | None]:
        """转换为字典（用于 API 响应）。"""
        return self.model_dump(mode="json", exclude_none=False)


class RateLimiterHealthResult(BaseModel):
    """限流器健康检查结果。"""

    status: HealthStatus = Field(..., description="健康状态")
    calls_in_window: int = Field(..., description="当前窗口内的调用数")
    max_calls: int = Field(..., description="窗口内调用上限")
    window_sec: float = Field(..., description="窗口长度（秒）")
    min_interval_sec: float = Field(..., description="最小调用间隔（秒）")

    def to_dict(self) -> dict[str, str | int | float]:
        """转换为字典（用于 API 响应）。"""
        return self.model_dump(mode="json")
