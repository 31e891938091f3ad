"""
配置管理模块
使用Pydantic Settings从环境变量加载配置
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    应用配置类
    从环境变量加载配置，支持类型转换和验证
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # 未声明的 env 变量忽略，不抛出校验错误
    )

    # 应用配置
    app_host: str = "0.0.0.0"  # 应用主机地址，默认0.0.0.0（允许外部访问）
    app_port: int = 8000  # 应用端口，默认8000

    # CORS跨域配置
    cors_origins: List[str] = ["*"]  # 允许访问的域名列表

    # 时刻表配置
    load_fallback_schedule: bool = Field(
        True,
        validation_alias="LOAD_FALLBACK_SCHEDULE",
        description="启动时加载内置的慕尼黑静态时刻表",
    )
    default_modes: List[str] = Field(
        ["subway", "tram", "bus"],
        validation_alias="DEFAULT_MODES",
        description="默认交通方式过滤（bus / subway / tram / rail）",
    )

    # 等时圈（Isochrone）配置
    time_budget_min: int = Field(
        30,
        validation_alias="TIME_BUDGET_MIN",
        description="连通性搜索的默认时间预算（分钟，5-60）",
    )
    sampler_max_distance_km: float = Field(
        15.0,
        validation_alias="SAMPLER_MAX_DISTANCE_KM",
        description="径向模拟采样的最大距离（公里）",
    )
    sampler_num_radials: int = Field(
        24,
        validation_alias="SAMPLER_NUM_RADIALS",
        description="径向模拟采样的射线数量",
    )
    sampler_points_per_radial: int = Field(
        10,
        validation_alias="SAMPLER_POINTS_PER_RADIAL",
        description="每条射线上的采样点数量",
    )
    sampler_average_speed_kmh: float = Field(
        30.0,
        validation_alias="SAMPLER_AVERAGE_SPEED_KMH",
        description="径向模拟采样的平均速度（公里/小时）",
    )
    sampler_grid_size: int = Field(
        24,
        validation_alias="SAMPLER_GRID_SIZE",
        description="锚点插值时补充采样网格的边长（点数）",
    )
    isoline_grid_size: int = Field(
        48,
        validation_alias="ISOLINE_GRID_SIZE",
        description="等值线提取时插值网格的边长（点数）",
    )
    concave_max_edge_km: float = Field(
        1.0,
        validation_alias="CONCAVE_MAX_EDGE_KM",
        description="凹包允许的最大边长（公里）",
    )
    circle_radius_km_per_15min: float = Field(
        0.5,
        validation_alias="CIRCLE_RADIUS_KM_PER_15MIN",
        description="兜底圆形半径系数：每15分钟对应的半径（公里）",
    )
    circle_segments: int = Field(
        64,
        validation_alias="CIRCLE_SEGMENTS",
        description="兜底圆形的边数",
    )


settings = Settings()
