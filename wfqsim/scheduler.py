"""WFQ调度器模块"""
from enum import Enum
from typing import Iterable, Iterator, Optional

from .active_set import ActiveSet
from .admission import AdmissionController
from .channel import ChannelRegistry
from .clock import SchedulerClock
from .packet import DispatchRecord
from .reader import RecordReader
from .stats import StatisticsCollector

class SchedulerState(Enum):
    """调度器状态"""
    IDLE = 1        # 没有活跃通道，等待输入
    DRAINING = 2    # 活跃集合非空，持续发送
    FINISHED = 3    # 输入耗尽且没有待发送的包

class WFQScheduler:
    """加权公平队列调度器"""

    def __init__(self, reader: RecordReader, default_weight: float = 1.0,
                 stats_collector: Optional[StatisticsCollector] = None):
        self.reader = reader
        self.stats_collector = stats_collector

        self.clock = SchedulerClock()
        self.registry = ChannelRegistry(default_weight)
        self.active_set = ActiveSet(self.registry)
        self.admission = AdmissionController(
            reader, self.registry, self.active_set, self.clock, stats_collector
        )

        self.state = SchedulerState.IDLE
        self.dispatch_count = 0
        self._admission_pending = False

    @classmethod
    def from_lines(cls, lines: Iterable[str], **kwargs) -> 'WFQScheduler':
        return cls(RecordReader(lines), **kwargs)

    def step(self) -> Optional[DispatchRecord]:
        """执行一次状态转移，发送了包则返回发送记录"""
        if self.state is SchedulerState.IDLE:
            self._step_idle()
            return None
        if self.state is SchedulerState.DRAINING:
            return self._step_draining()
        return None

    def run(self) -> Iterator[DispatchRecord]:
        """运行到输入耗尽，逐个产出发送记录"""
        while self.state is not SchedulerState.FINISHED:
            dispatch = self.step()
            if dispatch is not None:
                yield dispatch

    def _step_idle(self):
        # 只读取一个到达时间批次
        admitted = self.admission.admit_up_to(None)
        if admitted == 0:
            self.state = SchedulerState.FINISHED
            if self.stats_collector:
                self.stats_collector.update_cumulative_stats({
                    'total_channels': len(self.registry)
                })
                self.stats_collector.record_event(
                    'END', '输入耗尽，调度结束', self.clock.physical_time,
                    {'dispatched': self.dispatch_count,
                     'virtual_time': self.clock.virtual_time}
                )
            return

        arrival_time = self.admission.last_batch[0].arrival_time
        if self.stats_collector and self.dispatch_count > 0:
            self.stats_collector.update_cumulative_stats({'total_idle_periods': 1})
            self.stats_collector.record_event(
                'IDLE',
                f'链路空闲 {self.clock.physical_time} -> {arrival_time}',
                self.clock.physical_time,
                {'idle_from': self.clock.physical_time, 'idle_to': arrival_time}
            )
        self.clock.sync_physical(arrival_time)
        self.state = SchedulerState.DRAINING

    def _step_draining(self) -> Optional[DispatchRecord]:
        # 上一个包发送期间到达的记录必须在下一次决策之前全部接纳
        if self._admission_pending:
            self._admission_pending = False
            self.admission.admit_all_due(self.clock.physical_time)
            if self.stats_collector:
                self.stats_collector.record_time_series(
                    'backlog', self.clock.physical_time, self.registry.backlog
                )
                self.stats_collector.record_time_series(
                    'active_channels', self.clock.physical_time, len(self.active_set)
                )
            if not self.active_set:
                self.state = SchedulerState.IDLE
                return None

        channel, finish_tag = self.active_set.pop_highest_priority()
        self.clock.advance_virtual(finish_tag)
        packet = self.registry.dequeue(channel)

        dispatch = DispatchRecord(
            physical_time=self.clock.physical_time,
            packet=packet,
            channel_index=channel.index,
            finish_tag=finish_tag,
            weight=channel.weight
        )
        self.dispatch_count += 1
        self.clock.advance_physical(packet.length)

        # 同一通道的下一个包成为队首
        if channel.queue:
            self.active_set.activate(channel, self.clock.virtual_time)
        self._admission_pending = True

        if self.stats_collector:
            self.stats_collector.record_dispatch(dispatch)
            self.stats_collector.record_event(
                'DISPATCH',
                f'发送 seq={packet.seq_num} flow={packet.flow_key}',
                dispatch.physical_time,
                {'seq_num': packet.seq_num,
                 'channel_index': channel.index,
                 'finish_tag': finish_tag}
            )
        return dispatch
