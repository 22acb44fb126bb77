"""接纳/预读控制模块"""
from typing import List, Optional

from .active_set import ActiveSet
from .channel import ChannelRegistry
from .clock import SchedulerClock
from .packet import PacketRecord
from .reader import RecordReader
from .stats import StatisticsCollector

class AdmissionController:
    """
    接纳控制器

    只读取到达时间不超过给定上界的记录。在做出任何发送决策之前，
    所有到达时间不晚于当前物理时间的记录都必须已被接纳，否则
    调度器会基于不完整的信息做决定。
    """

    def __init__(self, reader: RecordReader, registry: ChannelRegistry,
                 active_set: ActiveSet, clock: SchedulerClock,
                 stats_collector: Optional[StatisticsCollector] = None):
        self.reader = reader
        self.registry = registry
        self.active_set = active_set
        self.clock = clock
        self.stats_collector = stats_collector

        self.total_admitted = 0
        self.last_batch: List[PacketRecord] = []  # 最近一次 admit_up_to 接纳的记录

    def admit_up_to(self, time_bound: Optional[int] = None) -> int:
        """
        接纳一批记录

        第一条记录被接纳后，上界收紧到它的到达时间，
        因此一次调用最多接纳一个到达时间相同的批次。

        Args:
            time_bound: 到达时间上界（含），None表示无上界

        Returns:
            本次接纳的记录数
        """
        batch = []

        while True:
            record = self.reader.peek()
            if record is None:
                break
            if time_bound is not None and record.arrival_time > time_bound:
                break
            time_bound = record.arrival_time

            self.reader.consume()
            self._admit(record)
            batch.append(record)

        self.last_batch = batch
        self.total_admitted += len(batch)

        if batch and self.stats_collector:
            batch_bytes = sum(r.length for r in batch)
            self.stats_collector.record_event(
                'ADMIT',
                f'接纳 {len(batch)} 个包 (到达时间={batch[0].arrival_time})',
                self.clock.physical_time,
                {'count': len(batch),
                 'arrival_time': batch[0].arrival_time,
                 'bytes': batch_bytes}
            )
            self.stats_collector.update_cumulative_stats({
                'total_packets_admitted': len(batch),
                'total_bytes_admitted': batch_bytes
            })
        return len(batch)

    def admit_all_due(self, time_bound: Optional[int] = None) -> int:
        """反复接纳，直到没有到达时间不超过上界的记录"""
        total = 0
        while True:
            count = self.admit_up_to(time_bound)
            if count == 0:
                break
            total += count
        return total

    def _admit(self, record: PacketRecord):
        """单条记录入队；通道由空变为非空时激活"""
        channel = self.registry.get_or_create(record.flow_key)
        self.registry.enqueue(channel, record)
        if len(channel.queue) == 1:
            self.active_set.activate(channel, self.clock.virtual_time)
