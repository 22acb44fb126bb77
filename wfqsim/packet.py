"""数据包定义模块"""
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class PacketRecord:
    """到达记录（解析后不可变）"""
    arrival_time: int                        # 到达时间
    flow_key: str                            # 流标识（源地址 源端口 目的地址 目的端口）
    length: int                              # 包长度（即传输耗时）
    explicit_weight: Optional[float] = None  # 输入中显式给出的权重
    seq_num: int = 0                         # 输入中的序号
    line_no: int = 0                         # 源行号

    @property
    def has_explicit_weight(self) -> bool:
        return self.explicit_weight is not None

    def format_line(self) -> str:
        """输出格式: 到达时间 流标识 长度[ 权重]"""
        text = f"{self.arrival_time} {self.flow_key} {self.length}"
        if self.explicit_weight is not None:
            text += f" {self.explicit_weight:.2f}"
        return text

    def __repr__(self):
        return (f"PacketRecord(seq={self.seq_num}, "
                f"arrival={self.arrival_time}, "
                f"flow={self.flow_key!r}, "
                f"length={self.length}, "
                f"weight={self.explicit_weight})")

@dataclass
class DispatchRecord:
    """一次发送的结果"""
    physical_time: int     # 开始发送的物理时间
    packet: PacketRecord   # 被发送的包
    channel_index: int     # 所属通道编号
    finish_tag: float      # 虚拟完成时间
    weight: float          # 发送时通道的权重

    @property
    def queuing_delay(self) -> int:
        """排队时延"""
        return self.physical_time - self.packet.arrival_time

    @property
    def end_time(self) -> int:
        return self.physical_time + self.packet.length

    def format_line(self) -> str:
        return f"{self.physical_time}: {self.packet.format_line()}"
