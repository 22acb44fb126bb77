"""统计和监控模块"""
import sys
import time
from typing import Dict, List, Any, TextIO
from dataclasses import dataclass, field
import json
import csv

import numpy as np
import pandas as pd

from .packet import DispatchRecord

@dataclass
class TimeSeriesPoint:
    """时间序列数据点"""
    timestamp: float
    value: float
    metadata: Dict[str, Any] = field(default_factory=dict)

class StatisticsCollector:
    """统计收集器"""

    DISPATCH_COLUMNS = ['physical_time', 'end_time', 'arrival_time', 'flow_key',
                        'channel_index', 'length', 'explicit_weight', 'weight',
                        'finish_tag', 'queuing_delay', 'seq_num']

    def __init__(self, simulation_id: str = None):
        self.simulation_id = simulation_id or f"sim_{int(time.time())}"
        self.start_time = time.time()

        # 时间序列数据
        self.time_series = {
            'backlog': [],
            'active_channels': [],
            'queuing_delay': [],
            'virtual_time': []
        }

        # 累计统计
        self.cumulative_stats = {
            'total_packets_admitted': 0,
            'total_packets_dispatched': 0,
            'total_bytes_admitted': 0,
            'total_bytes_dispatched': 0,
            'total_idle_periods': 0,
            'total_channels': 0,
            'busy_time': 0,
            'first_arrival': None,
            'makespan': 0
        }

        # 发送记录
        self.dispatches: List[DispatchRecord] = []

        # 事件日志
        self.event_log = []

    def record_time_series(self, metric_name: str, timestamp: float,
                           value: float, metadata: Dict = None):
        """记录时间序列数据"""
        if metric_name in self.time_series:
            point = TimeSeriesPoint(timestamp, value, metadata or {})
            self.time_series[metric_name].append(point)

    def record_event(self, event_type: str, description: str,
                     timestamp: float = None, details: Dict = None):
        """记录事件"""
        if timestamp is None:
            timestamp = time.time() - self.start_time

        event = {
            'timestamp': timestamp,
            'type': event_type,
            'description': description,
            'details': details or {}
        }
        self.event_log.append(event)

    def record_dispatch(self, dispatch: DispatchRecord):
        """记录一次发送"""
        self.dispatches.append(dispatch)
        packet = dispatch.packet

        if self.cumulative_stats['first_arrival'] is None:
            self.cumulative_stats['first_arrival'] = packet.arrival_time

        self.update_cumulative_stats({
            'total_packets_dispatched': 1,
            'total_bytes_dispatched': packet.length,
            'busy_time': packet.length
        })
        self.cumulative_stats['makespan'] = (
            dispatch.end_time - self.cumulative_stats['first_arrival']
        )

        self.record_time_series('queuing_delay', dispatch.physical_time,
                                dispatch.queuing_delay,
                                {'channel_index': dispatch.channel_index})
        self.record_time_series('virtual_time', dispatch.physical_time,
                                dispatch.finish_tag)

    def update_cumulative_stats(self, stats: Dict[str, Any]):
        """更新累计统计"""
        for key, value in stats.items():
            if key in self.cumulative_stats:
                if isinstance(value, (int, float)) and self.cumulative_stats[key] is not None:
                    self.cumulative_stats[key] += value
                else:
                    self.cumulative_stats[key] = value

    def get_summary_stats(self) -> Dict[str, Any]:
        """获取汇总统计"""
        summary = self.cumulative_stats.copy()

        # 计算衍生指标
        if summary['makespan'] > 0:
            summary['link_utilization'] = summary['busy_time'] / summary['makespan']

        if summary['total_packets_admitted'] > 0:
            summary['pending_packets'] = (
                summary['total_packets_admitted'] - summary['total_packets_dispatched']
            )

        # 添加时间序列摘要
        for metric, points in self.time_series.items():
            if points:
                values = np.array([p.value for p in points], dtype=float)
                summary[f'{metric}_avg'] = float(values.mean())
                summary[f'{metric}_max'] = float(values.max())
                summary[f'{metric}_min'] = float(values.min())
                summary[f'{metric}_std'] = float(values.std(ddof=1)) if len(values) > 1 else 0.0

        return summary

    def get_channel_summary(self) -> Dict[int, Dict[str, Any]]:
        """按通道汇总：包数、字节数、吞吐份额和排队时延"""
        per_channel: Dict[int, Dict[str, Any]] = {}
        delays: Dict[int, List[int]] = {}

        for dispatch in self.dispatches:
            entry = per_channel.setdefault(dispatch.channel_index, {
                'flow_key': dispatch.packet.flow_key,
                'packets': 0,
                'bytes': 0,
                'weight': dispatch.weight
            })
            entry['packets'] += 1
            entry['bytes'] += dispatch.packet.length
            entry['weight'] = dispatch.weight
            delays.setdefault(dispatch.channel_index, []).append(dispatch.queuing_delay)

        total_bytes = sum(e['bytes'] for e in per_channel.values())
        for index, entry in per_channel.items():
            values = np.array(delays[index], dtype=float)
            entry['share'] = entry['bytes'] / total_bytes if total_bytes else 0.0
            entry['avg_delay'] = float(values.mean())
            entry['max_delay'] = float(values.max())

        return dict(sorted(per_channel.items()))

    def to_dataframe(self) -> pd.DataFrame:
        """发送记录转换为 DataFrame"""
        rows = [{
            'physical_time': d.physical_time,
            'end_time': d.end_time,
            'arrival_time': d.packet.arrival_time,
            'flow_key': d.packet.flow_key,
            'channel_index': d.channel_index,
            'length': d.packet.length,
            'explicit_weight': d.packet.explicit_weight,
            'weight': d.weight,
            'finish_tag': d.finish_tag,
            'queuing_delay': d.queuing_delay,
            'seq_num': d.packet.seq_num
        } for d in self.dispatches]
        return pd.DataFrame(rows, columns=self.DISPATCH_COLUMNS)

    def export_to_csv(self, filename: str):
        """导出时间序列数据到CSV"""
        # 合并所有时间序列
        all_points = {}

        for metric, points in self.time_series.items():
            for point in points:
                timestamp = point.timestamp
                if timestamp not in all_points:
                    all_points[timestamp] = {'timestamp': timestamp}
                all_points[timestamp][metric] = point.value

        # 写入CSV
        if all_points:
            timestamps = sorted(all_points.keys())
            fieldnames = ['timestamp'] + list(self.time_series.keys())

            with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
                writer.writeheader()

                for ts in timestamps:
                    writer.writerow(all_points[ts])

    def export_events(self, filename: str):
        """导出事件日志"""
        with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
            fieldnames = ['timestamp', 'type', 'description', 'details']
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for event in self.event_log:
                row = event.copy()
                row['details'] = json.dumps(row['details'])
                writer.writerow(row)

    def export_dispatches(self, filename: str):
        """导出发送记录"""
        self.to_dataframe().to_csv(filename, index=False)

    def export_channels(self, filename: str):
        """导出通道汇总"""
        summary = self.get_channel_summary()
        df = pd.DataFrame.from_dict(summary, orient='index')
        df.index.name = 'channel_index'
        df.to_csv(filename)

    def print_summary(self, file: TextIO = None):
        """打印统计摘要"""
        file = file or sys.stderr
        summary = self.get_summary_stats()

        def out(text=""):
            print(text, file=file)

        out("\n" + "="*60)
        out("WFQ调度统计摘要")
        out("="*60)

        out(f"\n基本信息:")
        out(f"  仿真ID: {self.simulation_id}")
        out(f"  通道数: {summary['total_channels']}")
        out(f"  空闲次数: {summary['total_idle_periods']}")

        out(f"\n流量统计:")
        out(f"  接纳包数: {summary['total_packets_admitted']}")
        out(f"  发送包数: {summary['total_packets_dispatched']}")
        out(f"  接纳字节: {summary['total_bytes_admitted']:,}")
        out(f"  发送字节: {summary['total_bytes_dispatched']:,}")
        out(f"  链路利用率: {summary.get('link_utilization', 0):.2%}")

        out(f"\n性能指标:")
        out(f"  平均排队时延: {summary.get('queuing_delay_avg', 0):.1f}")
        out(f"  最大排队时延: {summary.get('queuing_delay_max', 0):.1f}")
        out(f"  积压峰值: {summary.get('backlog_max', 0):.0f}")
        out(f"  活跃通道峰值: {summary.get('active_channels_max', 0):.0f}")

        channels = self.get_channel_summary()
        if channels:
            out(f"\n通道统计:")
            out(f"  {'编号':<6}{'流标识':<40}{'权重':>8}{'包数':>8}{'份额':>9}{'平均时延':>12}")
            for index, entry in channels.items():
                out(f"  {index:<6}{entry['flow_key']:<40}{entry['weight']:>8.2f}"
                    f"{entry['packets']:>8}{entry['share']:>9.2%}{entry['avg_delay']:>12.1f}")

        out("="*60)
