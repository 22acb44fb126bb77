"""WFQ加权公平队列调度仿真器包"""

__version__ = "1.0.0"
__description__ = "WFQ加权公平队列调度仿真器"

# 导出主要类
from .config import SimulationConfig
from .packet import PacketRecord, DispatchRecord
from .reader import RecordReader, MalformedRecordError, parse_record
from .channel import Channel, ChannelRegistry
from .active_set import ActiveSet, ActiveSetEmpty
from .clock import SchedulerClock
from .admission import AdmissionController
from .scheduler import WFQScheduler, SchedulerState
from .stats import StatisticsCollector
from .visualizer import WFQVisualizer
from .main import WFQSimulator, main

__all__ = [
    'SimulationConfig',
    'PacketRecord',
    'DispatchRecord',
    'RecordReader',
    'MalformedRecordError',
    'parse_record',
    'Channel',
    'ChannelRegistry',
    'ActiveSet',
    'ActiveSetEmpty',
    'SchedulerClock',
    'AdmissionController',
    'WFQScheduler',
    'SchedulerState',
    'StatisticsCollector',
    'WFQVisualizer',
    'WFQSimulator',
    'main'
]
