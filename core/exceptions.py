from typing import Any, Dict, Optional

class BizError(Exception):
    """
    通用业务异常
    """
    def __init__(
        self,
        message: str,
        code: int = 400,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.payload = payload or {}
        super().__init__(self.message)

class ConfigurationError(BizError):
    """
    请求参数不合法 (阈值越界 / 交通方式为空 / 阈值列表为空)
    唯一允许抛给调用方的异常
    """
    def __init__(self, message: str, **payload: Any):
        super().__init__(message=message, code=400, payload=payload)

class DataIntegrityError(BizError):
    """
    时刻表存在悬空引用 (站点/班次/线路不存在), 建索引时丢弃该行
    """
    def __init__(self, message: str, kind: str = ""):
        super().__init__(message=message, code=422, payload={"kind": kind})

class InsufficientDataError(BizError):
    """
    起点站没有任何班次经过
    """
    def __init__(self, stop_id: str):
        super().__init__(
            message=f"Stop {stop_id} has no scheduled visits",
            code=404,
            payload={"stop_id": stop_id},
        )

class GeometryConstructionFailure(BizError):
    """
    单个几何提取策略失败, 由轮廓提取器回退到下一个策略
    """
    def __init__(self, message: str, strategy: str = ""):
        super().__init__(message=message, code=500, payload={"strategy": strategy})
