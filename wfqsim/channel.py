"""通道（流）管理模块"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterator, List

from .packet import PacketRecord

@dataclass
class Channel:
    """通道：同一个四元组的所有包"""
    index: int                       # 创建顺序编号（仅用于打破平局）
    flow_key: str                    # 流标识
    weight: float = 1.0              # 当前权重
    queue: Deque[PacketRecord] = field(default_factory=deque)  # 待发送队列
    last_finish_time: float = 0.0    # 最近一次激活分配的虚拟完成时间

    # 统计
    packets_admitted: int = 0
    packets_dispatched: int = 0
    bytes_dispatched: int = 0
    finish_tags: List[float] = field(default_factory=list)

    @property
    def head(self) -> PacketRecord:
        return self.queue[0]

    def __len__(self):
        return len(self.queue)

    def __repr__(self):
        return (f"Channel(index={self.index}, "
                f"flow={self.flow_key!r}, "
                f"weight={self.weight}, "
                f"queued={len(self.queue)}, "
                f"last_finish={self.last_finish_time:.3f})")

class ChannelRegistry:
    """通道注册表

    通道按创建顺序存放在列表中，编号即下标；优先队列中只保存编号，
    字典只负责 flow_key -> 编号 的查找。通道在整个运行期间都不会被删除，
    因为 last_finish_time 需要跨越空闲期保留。
    """

    def __init__(self, default_weight: float = 1.0):
        self.default_weight = default_weight
        self._channels: List[Channel] = []
        self._index_by_key: Dict[str, int] = {}
        self.backlog = 0  # 所有通道中排队的包数

    def get_or_create(self, flow_key: str) -> Channel:
        """查找通道，不存在则创建"""
        index = self._index_by_key.get(flow_key)
        if index is not None:
            return self._channels[index]

        channel = Channel(
            index=len(self._channels),
            flow_key=flow_key,
            weight=self.default_weight
        )
        self._channels.append(channel)
        self._index_by_key[flow_key] = channel.index
        return channel

    def enqueue(self, channel: Channel, record: PacketRecord):
        """包入队；显式权重在任何完成时间计算之前生效"""
        if record.explicit_weight is not None:
            channel.weight = record.explicit_weight
        channel.queue.append(record)
        channel.packets_admitted += 1
        self.backlog += 1

    def dequeue(self, channel: Channel) -> PacketRecord:
        """取出队首包"""
        record = channel.queue.popleft()
        channel.packets_dispatched += 1
        channel.bytes_dispatched += record.length
        self.backlog -= 1
        return record

    def channel_at(self, index: int) -> Channel:
        return self._channels[index]

    def __len__(self):
        return len(self._channels)

    def __iter__(self) -> Iterator[Channel]:
        return iter(self._channels)

    def __contains__(self, flow_key: str) -> bool:
        return flow_key in self._index_by_key
