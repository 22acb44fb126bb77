"""数据可视化模块"""
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec
import numpy as np
from typing import Optional

from .stats import StatisticsCollector

class WFQVisualizer:
    """WFQ调度可视化器"""

    def __init__(self, stats_collector: StatisticsCollector):
        self.stats = stats_collector
        self.figure = None

    def plot_comprehensive(self, save_path: Optional[str] = None, show: bool = True):
        """绘制综合可视化图表"""
        fig = plt.figure(figsize=(16, 10))
        gs = gridspec.GridSpec(2, 3, figure=fig)

        # 1. 发送时序（甘特图）
        ax1 = fig.add_subplot(gs[0, :2])
        self._plot_transmission_timeline(ax1)

        # 2. 统计摘要表格
        ax2 = fig.add_subplot(gs[0, 2])
        self._plot_summary_table(ax2)

        # 3. 各通道累计发送字节
        ax3 = fig.add_subplot(gs[1, 0])
        self._plot_cumulative_bytes(ax3)

        # 4. 积压和活跃通道数
        ax4 = fig.add_subplot(gs[1, 1])
        self._plot_backlog(ax4)

        # 5. 各通道排队时延
        ax5 = fig.add_subplot(gs[1, 2])
        self._plot_queuing_delay(ax5)

        plt.suptitle('WFQ调度仿真综合分析', fontsize=16, fontweight='bold')
        plt.tight_layout()
        self.figure = fig

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"图表已保存到: {save_path}")

        if show:
            plt.show()
        return fig

    def _plot_transmission_timeline(self, ax):
        """绘制发送时序图"""
        dispatches = self.stats.dispatches

        if dispatches:
            indices = sorted({d.channel_index for d in dispatches})
            colors = plt.cm.tab10(np.linspace(0, 1, max(10, len(indices))))

            for d in dispatches:
                ax.barh(d.channel_index, d.packet.length, left=d.physical_time,
                        height=0.6, color=colors[d.channel_index % len(colors)],
                        edgecolor='black', linewidth=0.5)
                ax.plot(d.packet.arrival_time, d.channel_index, 'k|', markersize=8)

            ax.set_yticks(indices)
            ax.set_yticklabels([f'#{i}' for i in indices])

        ax.set_xlabel('物理时间')
        ax.set_ylabel('通道')
        ax.set_title('发送时序（竖线为到达时间）')
        ax.grid(True, alpha=0.3, axis='x')

    def _plot_cumulative_bytes(self, ax):
        """绘制各通道累计发送字节"""
        df = self.stats.to_dataframe()

        if not df.empty:
            for index, group in df.groupby('channel_index'):
                times = group['end_time'].to_numpy()
                values = np.cumsum(group['length'].to_numpy())
                ax.step(times, values, where='post', linewidth=1.5, label=f'#{index}')
            ax.legend(fontsize=8)

        ax.set_xlabel('物理时间')
        ax.set_ylabel('累计字节')
        ax.set_title('各通道累计发送量')
        ax.grid(True, alpha=0.3)

    def _plot_backlog(self, ax):
        """绘制积压包数和活跃通道数"""
        backlog_points = self.stats.time_series.get('backlog', [])
        active_points = self.stats.time_series.get('active_channels', [])

        if backlog_points:
            times = [p.timestamp for p in backlog_points]
            values = [p.value for p in backlog_points]
            ax.step(times, values, 'b-', where='post', linewidth=1.5, label='积压包数')
            ax.fill_between(times, 0, values, step='post', alpha=0.3, color='blue')

        if active_points:
            times = [p.timestamp for p in active_points]
            values = [p.value for p in active_points]
            ax.step(times, values, 'r--', where='post', linewidth=1.5, label='活跃通道')

        ax.set_xlabel('物理时间')
        ax.set_ylabel('数量')
        ax.set_title('积压 vs 活跃通道')
        ax.legend()
        ax.grid(True, alpha=0.3)
        ax.set_ylim(bottom=0)

    def _plot_queuing_delay(self, ax):
        """绘制各通道平均/最大排队时延"""
        summary = self.stats.get_channel_summary()

        if summary:
            indices = np.arange(len(summary))
            avg = [e['avg_delay'] for e in summary.values()]
            peak = [e['max_delay'] for e in summary.values()]

            ax.bar(indices - 0.2, avg, width=0.4, alpha=0.7, color='teal', label='平均')
            ax.bar(indices + 0.2, peak, width=0.4, alpha=0.7, color='orange', label='最大')
            ax.set_xticks(indices)
            ax.set_xticklabels([f'#{i}' for i in summary.keys()])
            ax.legend()

        ax.set_xlabel('通道')
        ax.set_ylabel('排队时延')
        ax.set_title('各通道排队时延')
        ax.grid(True, alpha=0.3, axis='y')

    def _plot_summary_table(self, ax):
        """绘制统计摘要表格"""
        ax.axis('tight')
        ax.axis('off')

        summary = self.stats.get_summary_stats()

        # 选择关键指标
        key_metrics = {
            '通道数': f"{summary.get('total_channels', 0):,}",
            '发送包数': f"{summary.get('total_packets_dispatched', 0):,}",
            '发送字节': f"{summary.get('total_bytes_dispatched', 0):,}",
            '链路利用率': f"{summary.get('link_utilization', 0):.2%}",
            '空闲次数': f"{summary.get('total_idle_periods', 0):,}",
            '平均时延': f"{summary.get('queuing_delay_avg', 0):.1f}",
            '最大时延': f"{summary.get('queuing_delay_max', 0):.1f}",
            '积压峰值': f"{summary.get('backlog_max', 0):.0f}"
        }

        # 创建表格
        table_data = [[k, v] for k, v in key_metrics.items()]
        table = ax.table(cellText=table_data,
                         colLabels=['指标', '数值'],
                         cellLoc='left',
                         loc='center',
                         colWidths=[0.4, 0.4])

        table.auto_set_font_size(False)
        table.set_fontsize(9)
        table.scale(1, 1.5)

        # 设置样式
        for i in range(len(table_data) + 1):
            for j in range(2):
                cell = table[i, j]
                if i == 0:
                    cell.set_facecolor('#40466e')
                    cell.set_text_props(weight='bold', color='white')
                elif i % 2 == 1:
                    cell.set_facecolor('#f0f0f0')

        ax.set_title('统计摘要')
