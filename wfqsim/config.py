"""仿真配置模块"""
from dataclasses import dataclass
from typing import Dict, Any, Optional

@dataclass
class SimulationConfig:
    """仿真配置"""
    # 输入参数
    input_path: Optional[str] = None   # 输入文件（None或"-"表示标准输入）

    # 调度参数
    default_weight: float = 1.0        # 未显式指定权重时的默认权重

    # 输出参数
    verbose: bool = False              # 是否在stderr上输出进度和事件
    show_stats: bool = False           # 结束后打印统计摘要
    export_dir: Optional[str] = None   # 数据导出目录
    visualize: bool = False            # 是否绘图

    # 统计参数
    log_interval: int = 1000           # 进度日志间隔（发送包数）

    def __post_init__(self):
        if self.default_weight <= 0:
            raise ValueError(f"default_weight 必须为正数: {self.default_weight}")
        if self.log_interval <= 0:
            raise ValueError(f"log_interval 必须为正数: {self.log_interval}")

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {k: v for k, v in self.__dict__.items()
                if not k.startswith('_')}

    def update(self, **kwargs):
        """更新配置"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
