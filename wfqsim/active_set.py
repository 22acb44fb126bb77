"""活跃通道优先队列模块"""
import heapq
from typing import List, Optional, Set, Tuple

from .channel import Channel, ChannelRegistry

class ActiveSetEmpty(LookupError):
    """活跃集合为空"""

class ActiveSet:
    """
    活跃通道集合（最小堆）

    堆元素为 (完成时间快照, 通道编号)：完成时间小的优先，相等时编号小的优先。
    排序只比较入堆时的快照，不读取通道的实时状态。
    """

    def __init__(self, registry: ChannelRegistry):
        self.registry = registry
        self._heap: List[Tuple[float, int]] = []
        self._members: Set[int] = set()

    def activate(self, channel: Channel, virtual_time: float) -> float:
        """
        为通道的队首包计算完成时间并入堆

        Args:
            channel: 队列非空且不在活跃集合中的通道
            virtual_time: 当前系统虚拟时间

        Returns:
            队首包的虚拟完成时间
        """
        if not channel.queue:
            raise ValueError(f"通道 {channel.index} 队列为空，无法激活")
        if channel.index in self._members:
            raise ValueError(f"通道 {channel.index} 已在活跃集合中")

        start = max(virtual_time, channel.last_finish_time)
        finish = start + channel.head.length / channel.weight
        channel.last_finish_time = finish
        channel.finish_tags.append(finish)

        heapq.heappush(self._heap, (finish, channel.index))
        self._members.add(channel.index)
        return finish

    def pop_highest_priority(self) -> Tuple[Channel, float]:
        """弹出完成时间最小的通道"""
        if not self._heap:
            raise ActiveSetEmpty("活跃集合为空")
        finish, index = heapq.heappop(self._heap)
        self._members.discard(index)
        return self.registry.channel_at(index), finish

    def peek(self) -> Optional[Tuple[Channel, float]]:
        if not self._heap:
            return None
        finish, index = self._heap[0]
        return self.registry.channel_at(index), finish

    def __contains__(self, channel: Channel) -> bool:
        return channel.index in self._members

    def __len__(self):
        return len(self._heap)

    def __bool__(self):
        return bool(self._heap)
